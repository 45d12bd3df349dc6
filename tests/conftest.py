"""Shared fixtures for ledger runtime tests."""

import pytest

from ledger_actors.config import LedgerConfig


@pytest.fixture
def config():
    """Configuration with timeouts short enough for tests."""
    return LedgerConfig(
        forward_timeout=0.5,
        request_timeout=0.5,
        mature_deposit_timeout=0.5,
        delete_timeout=0.5,
        reap_timeout=0.2,
    )
