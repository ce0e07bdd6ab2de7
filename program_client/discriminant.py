"""
Anchor-style discriminants: sha256("<namespace>:<name>")[:8].

Instructions use the "global" namespace, account types the "account" namespace.
Both sides (client and program) must agree on the convention byte-for-byte.
"""

import hashlib
from dataclasses import dataclass

from .errors import MalformedPayload

GLOBAL_NAMESPACE = "global"
ACCOUNT_NAMESPACE = "account"
DISCRIMINANT_SIZE = 8


@dataclass(frozen=True)
class DiscriminantConvention:
    namespace: str = GLOBAL_NAMESPACE
    size: int = DISCRIMINANT_SIZE

    def preimage(self, name: str) -> bytes:
        return f"{self.namespace}:{name}".encode()

    def derive(self, name: str) -> bytes:
        return hashlib.sha256(self.preimage(name)).digest()[: self.size]


INSTRUCTION_CONVENTION = DiscriminantConvention()
ACCOUNT_CONVENTION = DiscriminantConvention(namespace=ACCOUNT_NAMESPACE)


def derive(instruction_name: str, convention: DiscriminantConvention = INSTRUCTION_CONVENTION) -> bytes:
    return convention.derive(instruction_name)


def sighash(name: str) -> bytes:
    return INSTRUCTION_CONVENTION.derive(name)


def account_discriminator(account_name: str) -> bytes:
    return ACCOUNT_CONVENTION.derive(account_name)


def validate_discriminator(data: bytes, expected: bytes) -> None:
    if len(data) < len(expected):
        raise MalformedPayload(f"data too short: {len(data)} bytes, need at least {len(expected)}")
    got = bytes(data[: len(expected)])
    if got != expected:
        raise MalformedPayload(f"invalid discriminator: got {got.hex()}, want {expected.hex()}")
