"""Tests for environment-driven settings."""

from __future__ import annotations

import pytest

from kiwirelay.core.config import Settings


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "MAILERLITE_API_KEY",
        "KIWIFY_WEBHOOK_TOKEN",
        "KIWIFY_TOKEN",
        "PROCESS_UNKNOWN_PRODUCTS",
        "MAILERLITE_DRY_RUN",
        "USE_TAGS",
    ):
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = Settings(_env_file=None)

    assert s.api_key is None
    assert s.shared_secret is None
    assert s.process_unknown_products is False
    assert s.mailerlite_dry_run is False
    assert s.use_tags is False
    assert s.mailerlite_base_url == "https://connect.mailerlite.com/api"


def test_reads_environment(monkeypatch):
    monkeypatch.setenv("MAILERLITE_API_KEY", "ml-key")
    monkeypatch.setenv("KIWIFY_WEBHOOK_TOKEN", "tok")
    monkeypatch.setenv("PROCESS_UNKNOWN_PRODUCTS", "true")
    monkeypatch.setenv("MAILERLITE_DRY_RUN", "true")
    monkeypatch.setenv("USE_TAGS", "true")

    s = Settings(_env_file=None)

    assert s.api_key == "ml-key"
    assert s.shared_secret == "tok"
    assert s.process_unknown_products is True
    assert s.mailerlite_dry_run is True
    assert s.use_tags is True


def test_legacy_token_variable(monkeypatch):
    monkeypatch.setenv("KIWIFY_TOKEN", "legacy")
    assert Settings(_env_file=None).shared_secret == "legacy"


def test_empty_secret_counts_as_unset(monkeypatch):
    monkeypatch.setenv("KIWIFY_WEBHOOK_TOKEN", "")
    monkeypatch.setenv("MAILERLITE_API_KEY", "")

    s = Settings(_env_file=None)

    assert s.shared_secret is None
    assert s.api_key is None
