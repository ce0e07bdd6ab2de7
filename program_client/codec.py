"""
Instruction argument encoding.

A payload is a dataclass with a class-level ``layout``; its fields are written
in declaration order with the layout's rules. Program arguments use Borsh
(``borsh_construct``): little-endian integers, u32 length prefixes for
``Vec``/``Bytes``/``String``, no tags or padding.

    @dataclass
    class UpdateBlob(Payload):
        data: bytes
        layout: ClassVar[Construct] = CStruct("data" / Bytes)
"""

from dataclasses import dataclass, fields
from typing import Any, ClassVar, Dict, Type, TypeVar

from borsh_construct import CStruct
from construct import Bytes, Construct, ConstructError, ExprAdapter, GreedyBytes, Struct, Terminated
from solders.pubkey import Pubkey

from .errors import MalformedPayload

P = TypeVar("P", bound="Payload")

# 32 raw address bytes, surfaced as a solders Pubkey
PubkeyLayout = ExprAdapter(Bytes(32), lambda obj, ctx: Pubkey(obj), lambda obj, ctx: bytes(obj))


def _exact(layout: Construct) -> Construct:
    return Struct("value" / layout, Terminated)


@dataclass
class Payload:
    layout: ClassVar[Construct] = CStruct()

    def _values(self) -> Dict[str, Any]:
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def encode(self) -> bytes:
        try:
            return self.layout.build(self._values())
        except (ConstructError, TypeError, ValueError, OverflowError) as exc:
            raise MalformedPayload(f"{type(self).__name__} cannot be encoded: {exc}") from exc

    @classmethod
    def decode(cls: Type[P], data: bytes) -> P:
        """
        Parse exactly ``data`` into a payload.

        Only canonical bytes are accepted: bool and option tag bytes other than
        0 or 1 are rejected, as the program's Borsh deserializer rejects them.
        """
        data = bytes(data)
        try:
            parsed = _exact(cls.layout).parse(data).value
        except (ConstructError, UnicodeDecodeError, ValueError) as exc:
            raise MalformedPayload(f"{len(data)} bytes do not match the {cls.__name__} layout: {exc}") from exc
        payload = cls(**{f.name: parsed[f.name] for f in fields(cls) if f.init})
        if payload.encode() != data:
            raise MalformedPayload(f"{len(data)} bytes are not a canonical {cls.__name__} encoding")
        return payload


@dataclass
class EmptyPayload(Payload):
    """Arguments of an instruction that takes none; encodes to zero bytes."""


@dataclass
class RawPayload(Payload):
    """Bytes that are already in the program's wire layout."""

    data: bytes = b""
    layout: ClassVar[Construct] = Struct("data" / GreedyBytes)


def encode(payload: Payload) -> bytes:
    return payload.encode()


def decode(payload_cls: Type[P], data: bytes) -> P:
    return payload_cls.decode(data)
