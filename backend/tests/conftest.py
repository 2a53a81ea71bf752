from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure `backend/` (for `import servicehub.*`) and this directory (for `import fakes`) are importable.
BACKEND_DIR = Path(__file__).resolve().parents[1]
TESTS_DIR = Path(__file__).resolve().parent
for p in (str(BACKEND_DIR), str(TESTS_DIR)):
    if p not in sys.path:
        sys.path.insert(0, p)

from fakes import FakeS3, FakeSns, InMemoryListings, InMemoryOutbox, InMemoryProviders, make_settings  # noqa: E402

from servicehub.domain.models import Provider  # noqa: E402
from servicehub.registry import S3_CLIENT, SNS_CLIENT, build_registry  # noqa: E402
from servicehub.repositories.base_repository import ListingsRepository, ProvidersRepository  # noqa: E402
from servicehub.repositories.outbox_repo import OutboxRepository  # noqa: E402
from servicehub.settings import get_settings  # noqa: E402


@pytest.fixture(autouse=True)
def _test_environment(monkeypatch):
    monkeypatch.setenv("NODE_ENV", "test")
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def providers():
    return InMemoryProviders(
        Provider(id="7", username="alice"),
        Provider(id="8", username="bob"),
    )


@pytest.fixture
def fake_sns():
    return FakeSns()


@pytest.fixture
def fake_s3():
    return FakeS3()


@pytest.fixture
def make_registry(providers, fake_sns, fake_s3):
    """Default wiring with every AWS / DynamoDB collaborator swapped for a fake."""

    def _make(**env):
        listings = InMemoryListings()
        outbox = InMemoryOutbox()
        reg = build_registry(
            make_settings(**env),
            overrides={
                S3_CLIENT: fake_s3,
                SNS_CLIENT: fake_sns,
                ProvidersRepository: providers,
                ListingsRepository: listings,
                OutboxRepository: outbox,
            },
        )
        return reg

    return _make
