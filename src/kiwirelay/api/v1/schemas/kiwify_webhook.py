from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class KiwifyOrderData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    customer_email: Optional[str] = None
    email: Optional[str] = None
    customer_name: Optional[str] = None
    name: Optional[str] = None
    # 숫자/문자열 등 형태가 제각각이라 그대로 받고 classifier에서 문자열로 변환
    product_id: Any = None
    product_name: Optional[str] = None


class KiwifyWebhookIn(BaseModel):
    model_config = ConfigDict(extra="ignore")

    event: Optional[str] = None
    token: Any = None
    data: Optional[KiwifyOrderData] = None
