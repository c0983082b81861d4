from __future__ import annotations

import logging
from typing import Any, Optional, Protocol
from urllib.parse import quote

import requests

from kiwirelay.core.config import Settings
from kiwirelay.core.errors import ConfigError, RemoteCallError

logger = logging.getLogger(__name__)

_DETAIL_MAX_CHARS = 300


class DirectoryClient(Protocol):
    """reconciler / cart guard가 쓰는 원격 directory 인터페이스."""

    def get_subscriber(self, email: str, *, include_groups: bool = False) -> Optional[dict]: ...

    def create_subscriber(self, email: str, name: Optional[str] = None) -> str: ...

    def find_group_id(self, name: str) -> Optional[str]: ...

    def add_subscriber_to_group(self, group_id: str, subscriber_id: str) -> None: ...

    def remove_subscriber_from_group(self, subscriber_id: str, group_id: str) -> None: ...

    def attach_tag(self, tag_name: str, subscriber_id: str) -> None: ...

    def list_tags(self) -> list[dict]: ...

    def detach_tag(self, tag_id: str, subscriber_id: str) -> None: ...


def extract_id(payload: Any) -> Optional[str]:
    """응답이 {"id": ...} 이거나 {"data": {"id": ...}} 둘 다 올 수 있음."""
    if not isinstance(payload, dict):
        return None
    value = payload.get("id")
    if not value and isinstance(payload.get("data"), dict):
        value = payload["data"].get("id")
    return str(value) if value else None


def extract_group_ids(payload: Any) -> set[str]:
    """subscriber 응답의 groups (top-level 또는 data 안) -> group id set."""
    if not isinstance(payload, dict):
        return set()

    groups = payload.get("groups")
    if not groups and isinstance(payload.get("data"), dict):
        groups = payload["data"].get("groups")
    if not isinstance(groups, list):
        return set()

    ids: set[str] = set()
    for g in groups:
        if isinstance(g, str):
            ids.add(g)
        elif isinstance(g, dict) and g.get("id"):
            ids.add(str(g["id"]))
    return ids


def _snippet(resp: requests.Response) -> str:
    text = " ".join((resp.text or "").split())
    if len(text) > _DETAIL_MAX_CHARS:
        text = text[:_DETAIL_MAX_CHARS] + "…"
    return text


class MailerLiteClient:
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = "https://connect.mailerlite.com/api",
        timeout: float = 10,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(
            {
                "Authorization": f"Bearer {api_key}",
                "Accept": "application/json",
            }
        )

    @classmethod
    def from_settings(cls, s: Settings) -> MailerLiteClient:
        api_key = s.api_key
        if not api_key:
            raise ConfigError("Missing MAILERLITE_API_KEY")
        return cls(api_key, base_url=s.mailerlite_base_url, timeout=s.mailerlite_timeout_sec)

    def close(self) -> None:
        self.session.close()

    # -----------------------------
    # low-level
    # -----------------------------
    def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
        allow_404: bool = False,
    ) -> Optional[requests.Response]:
        url = f"{self.base_url}{path}"
        try:
            resp = self.session.request(method, url, params=params, json=json, timeout=self.timeout)
        except requests.RequestException as e:
            raise RemoteCallError(method, path, detail=str(e)) from e

        logger.debug("MailerLite %s %s -> %s", method, path, resp.status_code)
        if allow_404 and resp.status_code == 404:
            return None
        if not 200 <= resp.status_code < 300:
            raise RemoteCallError(method, path, status_code=resp.status_code, detail=_snippet(resp))
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        try:
            return resp.json()
        except ValueError:
            return None

    # -----------------------------
    # subscribers
    # -----------------------------
    def get_subscriber(self, email: str, *, include_groups: bool = False) -> Optional[dict]:
        params = {"include": "groups"} if include_groups else None
        resp = self._request("GET", f"/subscribers/{quote(email, safe='')}", params=params, allow_404=True)
        if resp is None:
            return None
        payload = self._json(resp)
        return payload if isinstance(payload, dict) else None

    def create_subscriber(self, email: str, name: Optional[str] = None) -> str:
        body = {
            "email": email,
            "fields": {"name": name} if name else {},
            "groups": [],
        }
        resp = self._request("POST", "/subscribers", json=body)
        assert resp is not None

        subscriber_id = extract_id(self._json(resp))
        if not subscriber_id:
            raise RemoteCallError("POST", "/subscribers", status_code=resp.status_code, detail="response without id")
        return subscriber_id

    # -----------------------------
    # groups
    # -----------------------------
    def find_group_id(self, name: str) -> Optional[str]:
        resp = self._request("GET", "/groups", params={"filter[name]": name})
        assert resp is not None

        payload = self._json(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list) or not data:
            return None
        # filter[name]은 비슷한 이름도 돌려줄 수 있어서 이름이 정확히 같은 첫 번째만 사용
        for group in data:
            if isinstance(group, dict) and group.get("name") == name:
                return extract_id(group)
        return None

    def add_subscriber_to_group(self, group_id: str, subscriber_id: str) -> None:
        self._request("POST", f"/groups/{group_id}/subscribers/{subscriber_id}")

    def remove_subscriber_from_group(self, subscriber_id: str, group_id: str) -> None:
        self._request("DELETE", f"/subscribers/{subscriber_id}/groups/{group_id}")

    # -----------------------------
    # tags
    # -----------------------------
    def attach_tag(self, tag_name: str, subscriber_id: str) -> None:
        # tag가 없으면 생성, 있으면 subscriber만 붙는다
        self._request("POST", "/tags", json={"name": tag_name, "subscribers": [subscriber_id]})

    def list_tags(self) -> list[dict]:
        resp = self._request("GET", "/tags")
        assert resp is not None

        payload = self._json(resp)
        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [t for t in data if isinstance(t, dict)]

    def detach_tag(self, tag_id: str, subscriber_id: str) -> None:
        self._request("DELETE", f"/tags/{tag_id}/subscribers/{subscriber_id}")
