from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional

from kiwirelay.core.errors import ReconcileError, RemoteCallError
from kiwirelay.integrations.mailerlite.client import DirectoryClient, extract_id
from kiwirelay.services.classifier import ReconciliationIntent
from kiwirelay.services.directory_refs import GroupByName, GroupRef, describe_group, find_tag_id, resolve_group_id

logger = logging.getLogger(__name__)

Action = Literal["group_add", "group_remove", "tag_add", "tag_remove"]
StepStatus = Literal["applied", "skipped", "failed"]


@dataclass(frozen=True)
class StepResult:
    action: Action
    target: str
    status: StepStatus
    detail: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != "failed"


@dataclass
class ReconcileReport:
    email: str
    subscriber_id: Optional[str] = None
    created: bool = False
    dry_run: bool = False
    steps: list[StepResult] = field(default_factory=list)

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]

    @property
    def applied(self) -> list[StepResult]:
        return [s for s in self.steps if s.status == "applied"]


# -----------------------------
# Step 1: resolve-or-create
# -----------------------------
def ensure_subscriber(client: DirectoryClient, email: str, name: Optional[str]) -> tuple[str, bool]:
    """
    (subscriber_id, created) 반환.
    조회 실패는 로그만 남기고 생성 시도, 생성 실패면 ReconcileError.
    """
    try:
        existing = client.get_subscriber(email)
    except RemoteCallError as e:
        logger.warning("Subscriber lookup failed for %s, trying create: %s", email, e)
        existing = None

    subscriber_id = extract_id(existing) if existing else None
    if subscriber_id:
        return subscriber_id, False

    try:
        subscriber_id = client.create_subscriber(email, name)
    except RemoteCallError as e:
        logger.error("Failed to create subscriber %s: %s", email, e)
        raise ReconcileError(f"could not create subscriber {email}") from e

    logger.info("Subscriber created: %s (id=%s)", email, subscriber_id)
    return subscriber_id, True


# -----------------------------
# Steps 2-5
# -----------------------------
def _run_step(action: Action, target: str, fn: Callable[[], StepStatus]) -> StepResult:
    try:
        status = fn()
    except RemoteCallError as e:
        logger.error("%s %r failed: %s", action, target, e)
        return StepResult(action=action, target=target, status="failed", detail=str(e))

    if status == "skipped":
        logger.info("%s %r skipped", action, target)
    return StepResult(action=action, target=target, status=status)


def add_to_group(client: DirectoryClient, subscriber_id: str, ref: GroupRef) -> StepResult:
    def _apply() -> StepStatus:
        group_id = resolve_group_id(client, ref)
        if not group_id:
            logger.error("Group not found: %s", describe_group(ref))
            return "skipped"
        client.add_subscriber_to_group(group_id, subscriber_id)
        return "applied"

    return _run_step("group_add", describe_group(ref), _apply)


def remove_from_group(client: DirectoryClient, subscriber_id: str, ref: GroupRef) -> StepResult:
    def _apply() -> StepStatus:
        group_id = resolve_group_id(client, ref)
        if not group_id:
            logger.error("Group not found: %s", describe_group(ref))
            return "skipped"
        client.remove_subscriber_from_group(subscriber_id, group_id)
        return "applied"

    return _run_step("group_remove", describe_group(ref), _apply)


def add_tag(client: DirectoryClient, subscriber_id: str, tag_name: str) -> StepResult:
    def _apply() -> StepStatus:
        client.attach_tag(tag_name, subscriber_id)
        return "applied"

    return _run_step("tag_add", tag_name, _apply)


def remove_tag(client: DirectoryClient, subscriber_id: str, tag_name: str) -> StepResult:
    def _apply() -> StepStatus:
        tag_id = find_tag_id(client, tag_name)
        if not tag_id:
            return "skipped"
        client.detach_tag(tag_id, subscriber_id)
        return "applied"

    return _run_step("tag_remove", tag_name, _apply)


def _log_plan(intent: ReconciliationIntent, *, use_tags: bool) -> None:
    logger.info(
        "DRY RUN for %s: groups +%s -%s, tags +%s -%s%s",
        intent.email,
        sorted(intent.groups_to_add),
        sorted(intent.groups_to_remove),
        sorted(intent.tags_to_add),
        sorted(intent.tags_to_remove),
        "" if use_tags else " (tags disabled)",
    )


def reconcile(
    intent: ReconciliationIntent,
    client: DirectoryClient,
    *,
    dry_run: bool = False,
    use_tags: bool = False,
) -> ReconcileReport:
    """
    intent를 MailerLite에 적용한다.

    순서: subscriber 확보 -> group add -> group remove -> tag add -> tag remove.
    각 step은 독립적이라 하나가 실패해도 나머지는 계속 진행 (best-effort).
    subscriber 생성 실패만 ReconcileError로 전체 중단.
    """
    report = ReconcileReport(email=intent.email, dry_run=dry_run)

    if dry_run:
        _log_plan(intent, use_tags=use_tags)
        return report

    # 1) resolve-or-create
    subscriber_id, created = ensure_subscriber(client, intent.email, intent.name)
    report.subscriber_id = subscriber_id
    report.created = created

    # 2) groups
    for name in sorted(n for n in intent.groups_to_add if n):
        report.steps.append(add_to_group(client, subscriber_id, GroupByName(name)))

    for name in sorted(n for n in intent.groups_to_remove if n):
        report.steps.append(remove_from_group(client, subscriber_id, GroupByName(name)))

    # 3) tags (USE_TAGS=true 일 때만)
    if use_tags:
        for tag in sorted(t for t in intent.tags_to_add if t):
            report.steps.append(add_tag(client, subscriber_id, tag))

        for tag in sorted(t for t in intent.tags_to_remove if t):
            report.steps.append(remove_tag(client, subscriber_id, tag))

    if report.failures:
        logger.warning(
            "Reconcile for %s finished with %d failed step(s) of %d",
            intent.email,
            len(report.failures),
            len(report.steps),
        )
    else:
        logger.info("Reconcile for %s done (%d step(s))", intent.email, len(report.steps))

    return report
