# tests/conftest.py

import pytest
from fastapi.testclient import TestClient

from vaultledger.core.config import Settings
from vaultledger.core.ledger import LedgerService
from vaultledger.main import create_app

ADMIN = "0xadmin"
START = 1_700_000_000


class FakeClock:
    def __init__(self, now: int = START):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'ledger.db'}",
        admin=ADMIN,
        rate_limit="10000/minute",
        log_level="DEBUG",
    )


@pytest.fixture
def make_ledger(settings, clock):
    opened = []

    def _make(**overrides):
        from dataclasses import replace

        payout = overrides.pop("payout", None)
        ledger = LedgerService.from_settings(replace(settings, **overrides), clock=clock, payout=payout)
        opened.append(ledger)
        return ledger

    yield _make
    for ledger in opened:
        ledger.close()


@pytest.fixture
def ledger(make_ledger):
    return make_ledger()


@pytest.fixture
def client(settings, ledger):
    app = create_app(settings, ledger=ledger)
    with TestClient(app) as test_client:
        yield test_client
