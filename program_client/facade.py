"""
One-call entry points: name + payload in, confirmed signature out.

Every network interaction goes through the ``LedgerRpc`` passed in. Errors from
it propagate unchanged; nothing here retries.
"""

import logging
from typing import Optional, Sequence, Tuple

from solders.instruction import AccountMeta, Instruction
from solders.keypair import Keypair
from solders.pubkey import Pubkey
from solders.signature import Signature

from .assembler import assemble_legacy, assemble_versioned
from .codec import Payload
from .instruction import build_instruction
from .lookup_table import LookupTableSnapshot, create_table, extend_table, fetch_lookup_table
from .rpc import LedgerRpc
from .signer import order_signers, sign

logger = logging.getLogger(__name__)


def send_instructions(
    rpc: LedgerRpc,
    payer: Keypair,
    instructions: Sequence[Instruction],
    signers: Sequence[Keypair] = (),
    lookup_tables: Optional[Sequence[LookupTableSnapshot]] = None,
    static_fallback: bool = False,
    confirm: bool = True,
) -> Signature:
    """
    Assemble, sign and submit ``instructions`` with ``payer`` paying fees.

    A legacy message is built when ``lookup_tables`` is None, a v0 message
    otherwise. ``signers`` may list the other required keypairs in any order.
    """
    blockhash = rpc.get_latest_blockhash()
    if lookup_tables is None:
        message = assemble_legacy(instructions, payer.pubkey(), blockhash)
    else:
        message = assemble_versioned(instructions, payer.pubkey(), blockhash, lookup_tables, static_fallback)
    tx = sign(message, order_signers(message, [payer, *signers]))
    signature = rpc.submit_transaction(tx)
    if confirm:
        rpc.confirm_transaction(signature)
    return signature


def signed_call(
    rpc: LedgerRpc,
    program_id: Pubkey,
    payer: Keypair,
    instruction_name: str,
    payload: Payload,
    accounts: Sequence[AccountMeta],
    signers: Sequence[Keypair] = (),
) -> Signature:
    ix = build_instruction(program_id, instruction_name, payload, accounts)
    signature = send_instructions(rpc, payer, [ix], signers)
    logger.info("signed_call program=%s ix=%s sig=%s", program_id, instruction_name, signature)
    return signature


def versioned_call(
    rpc: LedgerRpc,
    program_id: Pubkey,
    payer: Keypair,
    instruction_name: str,
    payload: Payload,
    accounts: Sequence[AccountMeta],
    lookup_tables: Sequence[LookupTableSnapshot],
    signers: Sequence[Keypair] = (),
    static_fallback: bool = False,
) -> Signature:
    ix = build_instruction(program_id, instruction_name, payload, accounts)
    signature = send_instructions(rpc, payer, [ix], signers, lookup_tables=lookup_tables, static_fallback=static_fallback)
    logger.info(
        "versioned_call program=%s ix=%s tables=%s sig=%s",
        program_id,
        instruction_name,
        ",".join(str(t.address) for t in lookup_tables),
        signature,
    )
    return signature


def call_with_lookup_table(
    rpc: LedgerRpc,
    program_id: Pubkey,
    payer: Keypair,
    instruction_name: str,
    payload: Payload,
    accounts: Sequence[AccountMeta],
    table_address: Pubkey,
    signers: Sequence[Keypair] = (),
    static_fallback: bool = True,
) -> Signature:
    """Fetch a fresh snapshot of ``table_address`` and call through it."""
    table = fetch_lookup_table(rpc, table_address)
    return versioned_call(
        rpc,
        program_id,
        payer,
        instruction_name,
        payload,
        accounts,
        [table],
        signers=signers,
        static_fallback=static_fallback,
    )


def create_lookup_table(
    rpc: LedgerRpc, payer: Keypair, authority: Optional[Keypair] = None
) -> Tuple[Pubkey, Signature]:
    authority_key = (authority or payer).pubkey()
    recent_slot = rpc.get_slot()
    ix, table_address = create_table(authority_key, payer.pubkey(), recent_slot)
    signature = send_instructions(rpc, payer, [ix])
    logger.info("lookup_table_created table=%s slot=%s sig=%s", table_address, recent_slot, signature)
    return table_address, signature


def extend_lookup_table(
    rpc: LedgerRpc,
    payer: Keypair,
    table_address: Pubkey,
    new_addresses: Sequence[Pubkey],
    authority: Optional[Keypair] = None,
) -> Signature:
    ix = extend_table(table_address, (authority or payer).pubkey(), payer.pubkey(), new_addresses)
    extra = [authority] if authority is not None and authority.pubkey() != payer.pubkey() else []
    signature = send_instructions(rpc, payer, [ix], extra)
    logger.info("lookup_table_extended table=%s added=%s sig=%s", table_address, len(new_addresses), signature)
    return signature
