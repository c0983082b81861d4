"""Tests for the replay script (dry run by default)."""

from __future__ import annotations

from unittest.mock import patch

from kiwirelay.scripts import replay_webhook

from conftest import FakeDirectory, make_body


def test_replay_defaults_to_dry_run(tmp_path, make_settings, capsys):
    path = tmp_path / "payload.json"
    path.write_bytes(make_body("order.approved"))
    directory = FakeDirectory()

    with (
        patch.object(replay_webhook, "settings", make_settings()),
        patch.object(replay_webhook.MailerLiteClient, "from_settings", return_value=directory),
        patch.object(FakeDirectory, "close", create=True),
    ):
        code = replay_webhook.main([str(path)])

    out = capsys.readouterr().out
    assert code == 0
    assert out.startswith("200 Webhook processed")
    assert "dry run" in out
    assert directory.mutations == []


def test_replay_reports_rejection(tmp_path, make_settings, capsys):
    path = tmp_path / "payload.json"
    path.write_bytes(make_body(email=None))

    with (
        patch.object(replay_webhook, "settings", make_settings()),
        patch.object(replay_webhook.MailerLiteClient, "from_settings", return_value=FakeDirectory()),
        patch.object(FakeDirectory, "close", create=True),
    ):
        code = replay_webhook.main([str(path)])

    assert code == 1
    assert capsys.readouterr().out.startswith("400 No email in payload")
