"""Pytest configuration shared across the suite."""

import pytest

from passlane.crypto import CryptoManager
from passlane.storage import RecordStore

from tests.fakes import FakeUI


@pytest.fixture
def crypto() -> CryptoManager:
    """Argon2 with the cheapest parameters so the suite stays fast."""
    return CryptoManager(time_cost=1, memory_cost=64, parallelism=1)


@pytest.fixture
def vault_dir(tmp_path):
    return str(tmp_path / "vault")


@pytest.fixture
def record_store(vault_dir, crypto) -> RecordStore:
    return RecordStore(vault_dir, crypto)


@pytest.fixture
def fake_ui() -> FakeUI:
    return FakeUI()
