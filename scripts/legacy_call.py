#!/usr/bin/env python3
"""
Call `update_blob` on the blob program with a legacy transaction.

- Derives the blob PDA from the seed "blob".
- Signs with the keypair at KEYPAIR_PATH (default ~/.config/solana/id.json).

Requires PROGRAM_ID; cluster defaults to devnet (override with SOLANA_RPC).
"""

import os
import sys
from dataclasses import dataclass
from typing import ClassVar

from borsh_construct import Bytes, CStruct
from construct import Construct
from solders.pubkey import Pubkey

from program_client import SolanaRpc, signed_call, writable
from program_client.codec import Payload
from program_client.config import configure_logging, get_settings
from program_client.instruction import program_address
from program_client.keys import load_keypair

DEFAULT_KEYPAIR = "~/.config/solana/id.json"


@dataclass
class UpdateBlob(Payload):
    data: bytes
    layout: ClassVar[Construct] = CStruct("data" / Bytes)


def load_pubkey(env_name: str) -> Pubkey:
    value = os.environ.get(env_name)
    if not value:
        raise RuntimeError(f"{env_name} must be set to a valid program id")
    try:
        return Pubkey.from_string(value)
    except Exception as exc:  # noqa: BLE001
        raise RuntimeError(f"{env_name} is not a valid pubkey: {exc}") from exc


def main() -> None:
    configure_logging()
    settings = get_settings()
    program_id = load_pubkey("PROGRAM_ID")
    payer = load_keypair(settings.keypair_path or DEFAULT_KEYPAIR)
    rpc = SolanaRpc.from_settings(settings)

    blob_account = program_address([b"blob"], program_id)
    accounts = [
        writable(blob_account),
        writable(payer.pubkey(), signer=True),
    ]
    data = (sys.argv[1] if len(sys.argv) > 1 else "data").encode()
    sig = signed_call(rpc, program_id, payer, "update_blob", UpdateBlob(data=data), accounts)
    print(f"update_blob confirmed: {sig}")


if __name__ == "__main__":
    main()
