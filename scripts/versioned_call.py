#!/usr/bin/env python3
"""
Call `update_blob` through an address lookup table.

1. Creates a lookup table owned by the payer.
2. Extends it with the program id and the blob PDA.
3. Waits until the new entries are active, then sends a v0 transaction.

Pass an existing table address as the first argument to skip steps 1-2.
Requires PROGRAM_ID; cluster defaults to devnet (override with SOLANA_RPC).
"""

import sys
import time

from solders.pubkey import Pubkey

from program_client import (
    SolanaRpc,
    call_with_lookup_table,
    create_lookup_table,
    extend_lookup_table,
    fetch_lookup_table,
    writable,
)
from program_client.config import configure_logging, get_settings
from program_client.instruction import program_address
from program_client.keys import load_keypair

from legacy_call import DEFAULT_KEYPAIR, UpdateBlob, load_pubkey

POLL_SECONDS = 0.5
ACTIVATION_TIMEOUT = 30


def wait_until_usable(rpc: SolanaRpc, table: Pubkey) -> None:
    deadline = time.time() + ACTIVATION_TIMEOUT
    while time.time() < deadline:
        snapshot = fetch_lookup_table(rpc, table)
        if snapshot.is_usable_at(rpc.get_slot()):
            return
        time.sleep(POLL_SECONDS)
    raise RuntimeError(f"Lookup table {table} not active after {ACTIVATION_TIMEOUT}s")


def main() -> None:
    configure_logging()
    settings = get_settings()
    program_id = load_pubkey("PROGRAM_ID")
    payer = load_keypair(settings.keypair_path or DEFAULT_KEYPAIR)
    rpc = SolanaRpc.from_settings(settings)
    blob_account = program_address([b"blob"], program_id)

    if len(sys.argv) > 1:
        table = Pubkey.from_string(sys.argv[1])
    else:
        table, _ = create_lookup_table(rpc, payer)
        extend_lookup_table(rpc, payer, table, [program_id, blob_account])
        print(f"Lookup table: {table}")
    wait_until_usable(rpc, table)

    accounts = [
        writable(blob_account),
        writable(payer.pubkey(), signer=True),
    ]
    sig = call_with_lookup_table(
        rpc, program_id, payer, "update_blob", UpdateBlob(data=b"another data"), accounts, table
    )
    print(f"update_blob via lookup table confirmed: {sig}")


if __name__ == "__main__":
    main()
