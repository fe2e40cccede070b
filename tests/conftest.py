"""
Shared fixtures.

The tests directory is on sys.path (rootdir conftest, no __init__.py), so
test modules import stubs with ``from helpers import ...``.
"""

import pytest

from near_client.account import Account
from near_client.crypto.ed25519 import Ed25519KeyPair
from near_client.recovery.retry import ExponentialBackoff


@pytest.fixture
def fake_keypair():
    """Provide a deterministic Ed25519 key pair for testing."""
    return Ed25519KeyPair.from_seed(b'test_seed_for_deterministic_key_pair')


@pytest.fixture
def other_keypair():
    return Ed25519KeyPair.from_seed(b'another_deterministic_seed')


@pytest.fixture
def sleeps():
    """List that records the waits of a policy built by ``no_wait_policy``."""
    return []


@pytest.fixture
def no_wait_policy(sleeps):
    """Default exponential policy that records delays instead of sleeping."""
    return ExponentialBackoff(sleep=sleeps.append)


@pytest.fixture
def make_account(fake_keypair, no_wait_policy):
    """Factory binding the fake key pair to a connection."""
    def _make(connection, account_id="alice.test", policy=None):
        return Account(account_id, fake_keypair, connection, policy or no_wait_policy)
    return _make
