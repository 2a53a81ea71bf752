from __future__ import annotations

import pytest
from fakes import make_settings

from servicehub.settings import get_settings


def test_production_requires_bucket_account_and_table():
    s = make_settings(NODE_ENV="prod", ASSETS_BUCKET_NAME=None, AWS_ACCOUNT_ID=None, DDB_TABLE_NAME=None)

    with pytest.raises(RuntimeError) as ei:
        s.require_in_production()

    msg = str(ei.value)
    for name in ("ASSETS_BUCKET_NAME", "AWS_ACCOUNT_ID", "DDB_TABLE_NAME"):
        assert name in msg


def test_non_production_tolerates_partial_config():
    make_settings(ASSETS_BUCKET_NAME=None, DDB_TABLE_NAME=None).require_in_production()


def test_get_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("LISTING_NOTIFY_MODE", "Strict")
    monkeypatch.setenv("STRICT_OWNER_UPDATE", "0")
    get_settings.cache_clear()

    s = get_settings()

    assert s.normalized_notify_mode == "strict"
    assert s.strict_owner_update is False
    assert s.notification_topic_name == "ServiceHubAllUsers"
    assert s.upload_key_prefix == "images"


def test_log_safe_dict_never_contains_secrets():
    s = make_settings(AWS_ACCESS_KEY_ID="AKIAEXAMPLE", AWS_SECRET_ACCESS_KEY="topsecret")

    out = s.to_log_safe_dict()

    assert out["aws"]["static_credentials_configured"] is True
    assert "topsecret" not in repr(out)
    assert "AKIAEXAMPLE" not in repr(out)


def test_tracing_is_off_by_default():
    from fastapi import FastAPI

    from servicehub.observability.otel import configure_otel, instrument_app

    s = make_settings()
    assert s.otel_enabled is False
    configure_otel(s)
    instrument_app(FastAPI(), s)
