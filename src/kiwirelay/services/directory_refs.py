from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Union

from kiwirelay.core.errors import RemoteCallError
from kiwirelay.integrations.mailerlite.client import DirectoryClient, extract_group_ids

logger = logging.getLogger(__name__)


# 그룹 참조는 이름 또는 id 둘 중 하나. resolve_group_id 하나로만 푼다.
@dataclass(frozen=True)
class GroupByName:
    name: str


@dataclass(frozen=True)
class GroupById:
    id: str


GroupRef = Union[GroupByName, GroupById]


def resolve_group_id(client: DirectoryClient, ref: GroupRef) -> Optional[str]:
    """
    GroupRef -> 원격 group id.
    이름 검색은 이름이 정확히 같은 첫 그룹. 못 찾으면 None.
    RemoteCallError는 호출자에게 그대로 전달.
    """
    if isinstance(ref, GroupById):
        return ref.id or None
    if not ref.name:
        return None
    return client.find_group_id(ref.name)


def describe_group(ref: GroupRef) -> str:
    if isinstance(ref, GroupById):
        return f"id={ref.id}"
    return ref.name


def find_tag_id(client: DirectoryClient, tag_name: str) -> Optional[str]:
    for tag in client.list_tags():
        if tag.get("name") == tag_name and tag.get("id"):
            return str(tag["id"])
    return None


def subscriber_group_ids(client: DirectoryClient, email: str) -> Optional[set[str]]:
    """subscriber의 현재 group id 목록. subscriber가 없으면 None."""
    payload = client.get_subscriber(email, include_groups=True)
    if payload is None:
        return None
    return extract_group_ids(payload)


def is_group_member(client: DirectoryClient, email: str, ref: GroupRef) -> bool:
    """
    email이 ref 그룹에 이미 속해 있는지.
    조회 실패(그룹 없음 / subscriber 없음 / 원격 에러)는 전부 False.
    """
    try:
        group_id = resolve_group_id(client, ref)
        if not group_id:
            logger.info("Group not found for membership check: %s", describe_group(ref))
            return False

        group_ids = subscriber_group_ids(client, email)
    except RemoteCallError as e:
        logger.warning("Membership check failed for %s: %s", email, e)
        return False

    if group_ids is None:
        return False
    return group_id in group_ids
