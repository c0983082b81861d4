from __future__ import annotations

import logging

from kiwirelay.integrations.mailerlite.client import DirectoryClient
from kiwirelay.services.classifier import ReconciliationIntent
from kiwirelay.services.directory_refs import GroupByName, is_group_member

logger = logging.getLogger(__name__)


def should_skip_cart_recovery(client: DirectoryClient, email: str, client_group: str) -> bool:
    """
    이미 구매 완료(client group 멤버)한 고객을 abandoned cart로 다시 태깅하지 않기 위한 체크.
    approved 이벤트와 늦게 도착한 checkout.abandoned가 경합할 수 있음.
    """
    if not client_group:
        return False

    if is_group_member(client, email, GroupByName(client_group)):
        logger.info("Cart recovery skipped, %s already in %r", email, client_group)
        return True
    return False


def guard_allows(client: DirectoryClient, intent: ReconciliationIntent) -> bool:
    if intent.skip_if_member_of is None:
        return True
    return not should_skip_cart_recovery(client, intent.email, intent.skip_if_member_of)
