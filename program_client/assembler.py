"""
Compile instructions into legacy or v0 messages.

Key ordering follows the ledger SDK's compiler so messages are byte-identical
to what it produces: the fee payer is the first writable signer; flags for a
key are OR-ed across every instruction that mentions it; keys are grouped as
writable signers, readonly signers, writable non-signers, readonly non-signers
and sorted by address bytes within each group.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from solders.hash import Hash
from solders.instruction import CompiledInstruction, Instruction
from solders.message import Message, MessageAddressTableLookup, MessageHeader, MessageV0
from solders.pubkey import Pubkey

from .errors import AddressNotFound, EmptyLookupTable, TooManyAccounts
from .lookup_table import LookupTableSnapshot

logger = logging.getLogger(__name__)

MAX_ACCOUNT_KEYS = 256  # account indexes are a single byte
MAX_HEADER_COUNT = 255
MESSAGE_VERSION_PREFIX = 0x80


@dataclass
class _KeyMeta:
    is_signer: bool = False
    is_writable: bool = False
    is_invoked: bool = False


def _compile_keys(payer: Pubkey, instructions: Sequence[Instruction]) -> Dict[Pubkey, _KeyMeta]:
    key_metas: Dict[Pubkey, _KeyMeta] = {}
    for ix in instructions:
        key_metas.setdefault(ix.program_id, _KeyMeta()).is_invoked = True
        for meta in ix.accounts:
            entry = key_metas.setdefault(meta.pubkey, _KeyMeta())
            entry.is_signer |= meta.is_signer
            entry.is_writable |= meta.is_writable
    payer_meta = key_metas.setdefault(payer, _KeyMeta())
    payer_meta.is_signer = True
    payer_meta.is_writable = True
    return key_metas


def _static_components(payer: Pubkey, key_metas: Dict[Pubkey, _KeyMeta]) -> Tuple[MessageHeader, List[Pubkey]]:
    ordered = sorted((k for k in key_metas if k != payer), key=bytes)
    writable_signers = [payer] + [k for k in ordered if key_metas[k].is_signer and key_metas[k].is_writable]
    readonly_signers = [k for k in ordered if key_metas[k].is_signer and not key_metas[k].is_writable]
    writable_non_signers = [k for k in ordered if not key_metas[k].is_signer and key_metas[k].is_writable]
    readonly_non_signers = [k for k in ordered if not key_metas[k].is_signer and not key_metas[k].is_writable]

    num_signers = len(writable_signers) + len(readonly_signers)
    for label, count in (
        ("signers", num_signers),
        ("readonly signers", len(readonly_signers)),
        ("readonly non-signers", len(readonly_non_signers)),
    ):
        if count > MAX_HEADER_COUNT:
            raise TooManyAccounts(f"{count} {label} exceed the header limit of {MAX_HEADER_COUNT}")

    header = MessageHeader(
        num_required_signatures=num_signers,
        num_readonly_signed_accounts=len(readonly_signers),
        num_readonly_unsigned_accounts=len(readonly_non_signers),
    )
    return header, writable_signers + readonly_signers + writable_non_signers + readonly_non_signers


def _compile_instructions(instructions: Sequence[Instruction], account_keys: Sequence[Pubkey]) -> List[CompiledInstruction]:
    if len(account_keys) > MAX_ACCOUNT_KEYS:
        raise TooManyAccounts(f"{len(account_keys)} account keys exceed the limit of {MAX_ACCOUNT_KEYS}")
    index = {key: i for i, key in enumerate(account_keys)}
    return [
        CompiledInstruction(
            program_id_index=index[ix.program_id],
            data=bytes(ix.data),
            accounts=bytes(index[meta.pubkey] for meta in ix.accounts),
        )
        for ix in instructions
    ]


def assemble_legacy(instructions: Sequence[Instruction], payer: Pubkey, recent_blockhash: Hash) -> Message:
    key_metas = _compile_keys(payer, instructions)
    header, account_keys = _static_components(payer, key_metas)
    if header.num_required_signatures >= MESSAGE_VERSION_PREFIX:
        raise TooManyAccounts(
            f"{header.num_required_signatures} signers collide with the version prefix bit of a legacy message"
        )
    compiled = _compile_instructions(instructions, account_keys)
    logger.debug(
        "legacy_message_compiled keys=%s signers=%s instructions=%s",
        len(account_keys),
        header.num_required_signatures,
        len(compiled),
    )
    return Message.new_with_compiled_instructions(
        header.num_required_signatures,
        header.num_readonly_signed_accounts,
        header.num_readonly_unsigned_accounts,
        account_keys,
        recent_blockhash,
        compiled,
    )


def _bind_to_table(
    key_metas: Dict[Pubkey, _KeyMeta], table: LookupTableSnapshot
) -> Tuple[List[Tuple[int, Pubkey]], List[Tuple[int, Pubkey]]]:
    """Move every lookup-eligible key found in ``table`` out of ``key_metas``."""
    writable_hits: List[Tuple[int, Pubkey]] = []
    readonly_hits: List[Tuple[int, Pubkey]] = []
    for key in sorted(key_metas, key=bytes):
        meta = key_metas[key]
        if meta.is_signer or meta.is_invoked:
            continue
        position = table.index_of(key)
        if position is None:
            continue
        (writable_hits if meta.is_writable else readonly_hits).append((position, key))
    # writable keys are drained first, matching the SDK's two-pass extraction
    for _, key in writable_hits + readonly_hits:
        del key_metas[key]
    return writable_hits, readonly_hits


def assemble_versioned(
    instructions: Sequence[Instruction],
    payer: Pubkey,
    recent_blockhash: Hash,
    lookup_tables: Sequence[LookupTableSnapshot],
    static_fallback: bool = False,
) -> MessageV0:
    """
    Compile a v0 message that loads eligible accounts through ``lookup_tables``.

    Signers and invoked programs always stay static. Every other key is bound to
    the first table (in the order given) that contains it. Keys found in no
    table raise ``AddressNotFound`` unless ``static_fallback`` is set, in which
    case they are listed statically as the SDK's ``try_compile`` does.

    Table activation is not checked; snapshots must come from tables that are
    already usable, or the ledger rejects the transaction at submission.
    """
    for table in lookup_tables:
        if not table.addresses:
            raise EmptyLookupTable(table.address)

    key_metas = _compile_keys(payer, instructions)
    lookups: List[MessageAddressTableLookup] = []
    loaded_writable: List[Pubkey] = []
    loaded_readonly: List[Pubkey] = []
    for table in lookup_tables:
        writable_hits, readonly_hits = _bind_to_table(key_metas, table)
        if not writable_hits and not readonly_hits:
            continue
        lookups.append(
            MessageAddressTableLookup(
                account_key=table.address,
                writable_indexes=bytes(i for i, _ in writable_hits),
                readonly_indexes=bytes(i for i, _ in readonly_hits),
            )
        )
        loaded_writable += [k for _, k in writable_hits]
        loaded_readonly += [k for _, k in readonly_hits]

    if not static_fallback:
        for key in sorted(key_metas, key=bytes):
            meta = key_metas[key]
            if not meta.is_signer and not meta.is_invoked:
                raise AddressNotFound(key)

    header, static_keys = _static_components(payer, key_metas)
    compiled = _compile_instructions(instructions, static_keys + loaded_writable + loaded_readonly)
    logger.debug(
        "v0_message_compiled static=%s loaded_writable=%s loaded_readonly=%s tables=%s",
        len(static_keys),
        len(loaded_writable),
        len(loaded_readonly),
        len(lookups),
    )
    return MessageV0(
        header=header,
        account_keys=static_keys,
        recent_blockhash=recent_blockhash,
        instructions=compiled,
        address_table_lookups=lookups,
    )
