from __future__ import annotations

import argparse
from pathlib import Path

from kiwirelay.api.deps import get_catalog
from kiwirelay.core.config import settings
from kiwirelay.core.logging import configure_logging
from kiwirelay.integrations.mailerlite.client import MailerLiteClient
from kiwirelay.services.webhook_flow import process_webhook


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Replay a saved Kiwify webhook payload")
    parser.add_argument("payload", type=Path, help="JSON file with the webhook body")
    parser.add_argument("--apply", action="store_true", help="actually mutate MailerLite (default: dry run)")
    parser.add_argument("--token", default=None, help="value sent as x-kiwify-token header")
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)

    # ✅ 기본은 dry run. --apply 일 때만 실제 반영
    run_settings = settings.model_copy(update={"mailerlite_dry_run": not args.apply})

    raw = args.payload.read_bytes()
    headers = {"x-kiwify-token": args.token} if args.token else {}

    client = MailerLiteClient.from_settings(run_settings) if run_settings.api_key else None
    try:
        result = process_webhook(
            raw,
            headers,
            settings=run_settings,
            catalog=get_catalog(),
            client=client,
        )
    finally:
        if client is not None:
            client.close()

    print(f"{result.status_code} {result.text}")
    if result.report is not None:
        r = result.report
        mode = "dry run" if r.dry_run else f"subscriber={r.subscriber_id} created={r.created}"
        print(f"{mode}, applied={len(r.applied)}, failed={len(r.failures)}")
        for step in r.steps:
            print(f"  {step.action:<12} {step.status:<8} {step.target}")

    return 0 if result.status_code < 400 else 1


if __name__ == "__main__":
    raise SystemExit(main())
