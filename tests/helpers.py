import struct
from dataclasses import dataclass
from typing import ClassVar, List, Optional, Sequence

from borsh_construct import Bytes, CStruct
from construct import Construct
from solders.hash import Hash
from solders.pubkey import Pubkey

from program_client.codec import Payload
from program_client.lookup_table import ADDRESS_LOOKUP_TABLE_PROGRAM_ID, SLOT_MAX
from program_client.rpc import AccountSnapshot


@dataclass
class UpdateBlob(Payload):
    data: bytes
    layout: ClassVar[Construct] = CStruct("data" / Bytes)


def key(n: int) -> Pubkey:
    return Pubkey(bytes([n]) * 32)


def table_account_data(
    addresses: Sequence[Pubkey],
    authority: Optional[Pubkey] = None,
    deactivation_slot: int = SLOT_MAX,
    last_extended_slot: int = 0,
    start_index: int = 0,
) -> bytes:
    meta = struct.pack("<IQQB", 1, deactivation_slot, last_extended_slot, start_index)
    meta += (b"\x01" + bytes(authority)) if authority is not None else b"\x00"
    meta = meta.ljust(56, b"\x00")
    return meta + b"".join(bytes(a) for a in addresses)


class FakeRpc:
    """In-memory ledger collaborator recording every call."""

    def __init__(self, slot: int = 1000):
        self.blockhash = Hash(bytes([7]) * 32)
        self.slot = slot
        self.accounts = {}
        self.calls: List[str] = []
        self.sent = []
        self.confirmed = []
        self.submit_error: Optional[Exception] = None

    def add_table(self, address: Pubkey, addresses: Sequence[Pubkey], **kwargs) -> None:
        self.accounts[address] = AccountSnapshot(
            address=address,
            owner=ADDRESS_LOOKUP_TABLE_PROGRAM_ID,
            lamports=1_000_000,
            data=table_account_data(addresses, **kwargs),
            slot=self.slot,
        )

    def get_latest_blockhash(self) -> Hash:
        self.calls.append("get_latest_blockhash")
        return self.blockhash

    def get_account(self, address: Pubkey) -> Optional[AccountSnapshot]:
        self.calls.append("get_account")
        return self.accounts.get(address)

    def get_slot(self) -> int:
        self.calls.append("get_slot")
        return self.slot

    def submit_transaction(self, tx):
        self.calls.append("submit_transaction")
        if self.submit_error is not None:
            raise self.submit_error
        self.sent.append(tx)
        return tx.signatures[0]

    def confirm_transaction(self, signature) -> None:
        self.calls.append("confirm_transaction")
        self.confirmed.append(signature)


def resolved_keys(message, tables) -> List[Pubkey]:
    """Static keys, then every writable lookup entry, then every readonly one."""
    writable = []
    readonly = []
    for lookup in message.address_table_lookups:
        addresses = tables[lookup.account_key]
        writable += [addresses[i] for i in lookup.writable_indexes]
        readonly += [addresses[i] for i in lookup.readonly_indexes]
    return list(message.account_keys) + writable + readonly
