"""Shared fixtures for cashplus_autosub tests."""

from __future__ import annotations

import os
import random

import pytest

from cashplus_autosub.runner import AutosubRunner

from tests.factories import make_config
from tests.mocks import MockLedger, RecordingSleep

# Every variable load_config() reads, bare and prefixed
ENV_NAMES = [
    "RPC_URL", "PRIVATE_KEY", "CONTRACT_ADDRESS", "USDT_ADDRESS", "TOKEN_ADDRESS",
    "SUBSCRIBE_VALUE", "GAS_LIMIT", "RECEIPT_TIMEOUT", "APPROVE_MODE",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and any .env file."""
    for name in ENV_NAMES:
        monkeypatch.delenv(name, raising=False)
        monkeypatch.delenv(f"CASHPLUS_{name}", raising=False)
    monkeypatch.chdir(tmp_path)
    yield
    # load_dotenv() writes to os.environ directly
    for name in ENV_NAMES:
        os.environ.pop(name, None)
        os.environ.pop(f"CASHPLUS_{name}", None)


@pytest.fixture
def test_config():
    return make_config()


@pytest.fixture
def ledger():
    return MockLedger()


@pytest.fixture
def sleeper():
    return RecordingSleep()


@pytest.fixture
def rng():
    return random.Random(1234)


@pytest.fixture
def runner(test_config, ledger, sleeper, rng):
    """AutosubRunner wired to the mock ledger."""
    return AutosubRunner(
        test_config,
        client_factory=lambda cfg: ledger,
        sleep=sleeper,
        rng=rng,
    )
