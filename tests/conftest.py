"""Shared fixtures: deterministic keypairs, a program id and an in-memory ledger."""

import pytest
from solders.hash import Hash
from solders.keypair import Keypair

from tests.helpers import FakeRpc, key


@pytest.fixture
def payer():
    return Keypair.from_seed(bytes([1]) * 32)


@pytest.fixture
def cosigner():
    return Keypair.from_seed(bytes([2]) * 32)


@pytest.fixture
def program_id():
    return key(200)


@pytest.fixture
def blockhash():
    return Hash(bytes([9]) * 32)


@pytest.fixture
def rpc():
    return FakeRpc()
