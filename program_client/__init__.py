"""Build, sign and submit calls to Anchor-style Solana programs."""

from .assembler import assemble_legacy, assemble_versioned
from .codec import EmptyPayload, Payload, PubkeyLayout, RawPayload
from .discriminant import derive, sighash
from .errors import (
    AddressNotFound,
    EmptyExtend,
    EmptyLookupTable,
    KeypairError,
    LookupTableNotFound,
    MalformedLookupTable,
    MalformedPayload,
    ProgramClientError,
    RpcFailure,
    SignerMismatch,
    TooManyAccounts,
)
from .facade import (
    call_with_lookup_table,
    create_lookup_table,
    extend_lookup_table,
    send_instructions,
    signed_call,
    versioned_call,
)
from .instruction import build_instruction, readonly, writable
from .lookup_table import LookupTableSnapshot, create_table, extend_table, fetch_lookup_table
from .rpc import AccountSnapshot, LedgerRpc, SolanaRpc
from .signer import sign

__version__ = "0.1.0"
