"""
Address lookup tables: create/extend instructions and local snapshots of table state.

A snapshot is what the ledger returned at ``fetched_slot``. Tables live on the
ledger and change under the client; re-fetch after extending before relying
on new entries.
"""

import logging
import struct
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence, Tuple

from construct import Const, Construct, Int8ul, Int32ul, Int64ul, PrefixedArray, Struct
from solders.instruction import Instruction
from solders.pubkey import Pubkey

from .codec import Payload, PubkeyLayout
from .errors import EmptyExtend, LookupTableNotFound, MalformedLookupTable
from .instruction import SYS_PROGRAM_ID, compose_instruction, readonly, writable
from .rpc import LedgerRpc

logger = logging.getLogger(__name__)

ADDRESS_LOOKUP_TABLE_PROGRAM_ID = Pubkey.from_string("AddressLookupTab1e1111111111111111111111111")
LOOKUP_TABLE_META_SIZE = 56
LOOKUP_TABLE_MAX_ADDRESSES = 256
SLOT_MAX = 2**64 - 1

# Program instruction tags (u32 LE, bincode enum index)
CREATE_LOOKUP_TABLE = 0
EXTEND_LOOKUP_TABLE = 2

# Account state tags
_STATE_UNINITIALIZED = 0
_STATE_LOOKUP_TABLE = 1
# u32 tag, u64 deactivation slot, u64 last extended slot, u8 start index, u8 authority option tag
_META_HEADER = struct.Struct("<IQQBB")


@dataclass
class CreateLookupTableArgs(Payload):
    recent_slot: int
    bump_seed: int
    layout: ClassVar[Construct] = Struct(
        "instruction" / Const(CREATE_LOOKUP_TABLE, Int32ul),
        "recent_slot" / Int64ul,
        "bump_seed" / Int8ul,
    )


@dataclass
class ExtendLookupTableArgs(Payload):
    new_addresses: List[Pubkey]
    layout: ClassVar[Construct] = Struct(
        "instruction" / Const(EXTEND_LOOKUP_TABLE, Int32ul),
        "new_addresses" / PrefixedArray(Int64ul, PubkeyLayout),
    )


def derive_table_address(authority: Pubkey, recent_slot: int) -> Tuple[Pubkey, int]:
    seeds = [bytes(authority), int(recent_slot).to_bytes(8, "little")]
    return Pubkey.find_program_address(seeds, ADDRESS_LOOKUP_TABLE_PROGRAM_ID)


def create_table(authority: Pubkey, payer: Pubkey, recent_slot: int) -> Tuple[Instruction, Pubkey]:
    """
    Instruction creating a lookup table owned by ``authority`` and funded by ``payer``.

    The table address depends only on (authority, recent_slot), so the same inputs
    always predict the same address. ``recent_slot`` must be a slot the ledger
    still remembers when the transaction lands.
    """
    table_address, bump_seed = derive_table_address(authority, recent_slot)
    data = CreateLookupTableArgs(recent_slot=recent_slot, bump_seed=bump_seed).encode()
    accounts = [
        writable(table_address),
        readonly(authority),
        writable(payer, signer=True),
        readonly(SYS_PROGRAM_ID),
    ]
    return compose_instruction(ADDRESS_LOOKUP_TABLE_PROGRAM_ID, data, accounts), table_address


def extend_table(
    table_address: Pubkey,
    authority: Pubkey,
    payer: Optional[Pubkey],
    new_addresses: Sequence[Pubkey],
) -> Instruction:
    if not new_addresses:
        raise EmptyExtend(f"No addresses to append to lookup table {table_address}")
    data = ExtendLookupTableArgs(new_addresses=list(new_addresses)).encode()
    accounts = [writable(table_address), readonly(authority, signer=True)]
    # payer only needed when the table must be topped up for rent
    if payer is not None:
        accounts += [writable(payer, signer=True), readonly(SYS_PROGRAM_ID)]
    return compose_instruction(ADDRESS_LOOKUP_TABLE_PROGRAM_ID, data, accounts)


@dataclass(frozen=True)
class LookupTableSnapshot:
    address: Pubkey
    addresses: Tuple[Pubkey, ...] = field(default_factory=tuple)
    authority: Optional[Pubkey] = None
    deactivation_slot: int = SLOT_MAX
    last_extended_slot: int = 0
    last_extended_slot_start_index: int = 0
    fetched_slot: int = 0

    def __post_init__(self):
        object.__setattr__(self, "addresses", tuple(self.addresses))
        if len(self.addresses) > LOOKUP_TABLE_MAX_ADDRESSES:
            raise MalformedLookupTable(
                f"Lookup table {self.address} holds more than {LOOKUP_TABLE_MAX_ADDRESSES} addresses"
            )

    @classmethod
    def from_account_data(cls, address: Pubkey, data: bytes, fetched_slot: int = 0) -> "LookupTableSnapshot":
        if len(data) < LOOKUP_TABLE_META_SIZE:
            raise MalformedLookupTable(f"Lookup table {address} too short: {len(data)} bytes")
        tag, deactivation_slot, last_extended_slot, start_index, has_authority = _META_HEADER.unpack_from(data, 0)
        if tag == _STATE_UNINITIALIZED:
            raise MalformedLookupTable(f"Lookup table {address} is uninitialized")
        if tag != _STATE_LOOKUP_TABLE:
            raise MalformedLookupTable(f"Lookup table {address} has unknown state tag {tag}")
        authority: Optional[Pubkey] = None
        if has_authority:
            o = _META_HEADER.size
            authority = Pubkey.from_bytes(bytes(data[o : o + 32]))
        raw = bytes(data[LOOKUP_TABLE_META_SIZE:])
        if len(raw) % 32:
            raise MalformedLookupTable(f"Lookup table {address} address area is {len(raw)} bytes, not a multiple of 32")
        if len(raw) > LOOKUP_TABLE_MAX_ADDRESSES * 32:
            raise MalformedLookupTable(f"Lookup table {address} holds more than {LOOKUP_TABLE_MAX_ADDRESSES} addresses")
        addresses = tuple(Pubkey.from_bytes(raw[i : i + 32]) for i in range(0, len(raw), 32))
        return cls(
            address=address,
            addresses=addresses,
            authority=authority,
            deactivation_slot=deactivation_slot,
            last_extended_slot=last_extended_slot,
            last_extended_slot_start_index=start_index,
            fetched_slot=fetched_slot,
        )

    @property
    def is_deactivated(self) -> bool:
        return self.deactivation_slot != SLOT_MAX

    def active_addresses(self, current_slot: int) -> Tuple[Pubkey, ...]:
        # entries appended during last_extended_slot are only resolvable from the next slot on
        if current_slot > self.last_extended_slot:
            return self.addresses
        return self.addresses[: self.last_extended_slot_start_index]

    def is_usable_at(self, current_slot: int) -> bool:
        return not self.is_deactivated and len(self.active_addresses(current_slot)) == len(self.addresses)

    def index_of(self, address: Pubkey) -> Optional[int]:
        try:
            return self.addresses.index(address)
        except ValueError:
            return None


def fetch_lookup_table(rpc: LedgerRpc, table_address: Pubkey) -> LookupTableSnapshot:
    account = rpc.get_account(table_address)
    if account is None:
        raise LookupTableNotFound(table_address)
    if account.owner != ADDRESS_LOOKUP_TABLE_PROGRAM_ID:
        raise MalformedLookupTable(f"Account {table_address} is owned by {account.owner}, not the lookup table program")
    snapshot = LookupTableSnapshot.from_account_data(table_address, account.data, fetched_slot=account.slot)
    logger.debug(
        "lookup_table_fetched table=%s addresses=%s slot=%s",
        table_address,
        len(snapshot.addresses),
        snapshot.fetched_slot,
    )
    return snapshot
