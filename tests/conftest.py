"""Shared fixtures: in-memory MailerLite fake, settings factory, sample payloads."""

from __future__ import annotations

import json
from typing import Any, Optional

import pytest

from kiwirelay.core.config import Settings
from kiwirelay.core.errors import RemoteCallError
from kiwirelay.core.products import DEFAULT_CATALOG, ProductCatalog

PLANNER_ID = "5fade7e0-f9ee-11ef-af9f-2d476897d216"

MUTATING_CALLS = frozenset(
    {
        "create_subscriber",
        "add_subscriber_to_group",
        "remove_subscriber_from_group",
        "attach_tag",
        "detach_tag",
    }
)


class FakeDirectory:
    """Records every call; behaves like a tiny MailerLite account."""

    def __init__(
        self,
        *,
        groups: Optional[dict[str, str]] = None,
        tags: Optional[dict[str, str]] = None,
        subscribers: Optional[dict[str, dict[str, Any]]] = None,
        fail: Optional[set[str]] = None,
    ) -> None:
        self.groups = dict(groups or {})  # name -> id
        self.tags = dict(tags or {})  # name -> id
        self.subscribers = dict(subscribers or {})  # email -> {"id", "groups"}
        self.fail = set(fail or ())
        self.calls: list[tuple] = []

    def _record(self, name: str, *args: Any) -> None:
        self.calls.append((name, *args))
        if name in self.fail:
            raise RemoteCallError("TEST", name, status_code=500, detail="boom")

    def calls_to(self, name: str) -> list[tuple]:
        return [c for c in self.calls if c[0] == name]

    @property
    def mutations(self) -> list[tuple]:
        return [c for c in self.calls if c[0] in MUTATING_CALLS]

    # DirectoryClient
    def get_subscriber(self, email: str, *, include_groups: bool = False) -> Optional[dict]:
        self._record("get_subscriber", email, include_groups)
        sub = self.subscribers.get(email)
        if sub is None:
            return None
        data: dict[str, Any] = {"id": sub["id"], "email": email}
        if include_groups:
            data["groups"] = [{"id": g} for g in sub.get("groups", [])]
        return {"data": data}

    def create_subscriber(self, email: str, name: Optional[str] = None) -> str:
        self._record("create_subscriber", email, name)
        sub_id = f"sub-{len(self.subscribers) + 1}"
        self.subscribers[email] = {"id": sub_id, "groups": []}
        return sub_id

    def find_group_id(self, name: str) -> Optional[str]:
        self._record("find_group_id", name)
        return self.groups.get(name)

    def add_subscriber_to_group(self, group_id: str, subscriber_id: str) -> None:
        self._record("add_subscriber_to_group", group_id, subscriber_id)

    def remove_subscriber_from_group(self, subscriber_id: str, group_id: str) -> None:
        self._record("remove_subscriber_from_group", subscriber_id, group_id)

    def attach_tag(self, tag_name: str, subscriber_id: str) -> None:
        self._record("attach_tag", tag_name, subscriber_id)

    def list_tags(self) -> list[dict]:
        self._record("list_tags")
        return [{"id": tid, "name": name} for name, tid in self.tags.items()]

    def detach_tag(self, tag_id: str, subscriber_id: str) -> None:
        self._record("detach_tag", tag_id, subscriber_id)


@pytest.fixture
def catalog() -> ProductCatalog:
    return DEFAULT_CATALOG


@pytest.fixture
def planner(catalog: ProductCatalog):
    return catalog.products[PLANNER_ID]


@pytest.fixture
def make_settings():
    def _make(**overrides: Any) -> Settings:
        values: dict[str, Any] = {"mailerlite_api_key": "ml-test-key"}
        values.update(overrides)
        return Settings(_env_file=None, **values)

    return _make


@pytest.fixture
def directory(planner) -> FakeDirectory:
    """Account where every planner group and tag already exists."""
    return FakeDirectory(
        groups={
            planner.group_client: "g-client",
            planner.group_cart_recovery: "g-cart",
        },
        tags={
            planner.tag_bought: "t-bought",
            planner.tag_refund: "t-refund",
            planner.tag_abandoned_cart: "t-cart",
        },
    )


def make_body(
    event: Optional[str] = "order.approved",
    *,
    email: Optional[str] = "a@x.com",
    name: Optional[str] = "Ana Souza",
    product_id: Any = PLANNER_ID,
    **extra: Any,
) -> bytes:
    data: dict[str, Any] = {"product_name": "Planner"}
    if email is not None:
        data["customer_email"] = email
    if name is not None:
        data["customer_name"] = name
    if product_id is not None:
        data["product_id"] = product_id
    payload: dict[str, Any] = {"data": data, **extra}
    if event is not None:
        payload["event"] = event
    return json.dumps(payload).encode("utf-8")
