"""
Ledger access used by the facade.

``LedgerRpc`` is the whole contract; ``SolanaRpc`` implements it over
solana-py's synchronous client. Transport and RPC errors surface as
``RpcFailure`` with the original exception chained; no retries happen here.
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol, Union

from solana.rpc.api import Client
from solana.rpc.commitment import Commitment
from solana.rpc.types import TxOpts
from solders.hash import Hash
from solders.pubkey import Pubkey
from solders.signature import Signature
from solders.transaction import Transaction, VersionedTransaction

from .config import Settings, get_settings
from .errors import RpcFailure

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AccountSnapshot:
    address: Pubkey
    owner: Pubkey
    lamports: int
    data: bytes
    slot: int


class LedgerRpc(Protocol):
    def get_latest_blockhash(self) -> Hash: ...

    def get_account(self, address: Pubkey) -> Optional[AccountSnapshot]: ...

    def get_slot(self) -> int: ...

    def submit_transaction(self, tx: Union[Transaction, VersionedTransaction]) -> Signature: ...

    def confirm_transaction(self, signature: Signature) -> None: ...


class SolanaRpc:
    def __init__(self, client: Client, commitment: str = "confirmed", skip_preflight: bool = False):
        self.client = client
        self.commitment = Commitment(commitment)
        self.skip_preflight = skip_preflight

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SolanaRpc":
        settings = settings or get_settings()
        client = Client(settings.solana_rpc, commitment=Commitment(settings.commitment), timeout=settings.rpc_timeout)
        return cls(client, commitment=settings.commitment, skip_preflight=settings.skip_preflight)

    def get_latest_blockhash(self) -> Hash:
        try:
            return self.client.get_latest_blockhash(commitment=self.commitment).value.blockhash
        except Exception as exc:  # noqa: BLE001
            raise RpcFailure("get_latest_blockhash", str(exc)) from exc

    def get_account(self, address: Pubkey) -> Optional[AccountSnapshot]:
        try:
            resp = self.client.get_account_info(address, commitment=self.commitment)
        except Exception as exc:  # noqa: BLE001
            raise RpcFailure("get_account", str(exc)) from exc
        info = resp.value
        if info is None:
            return None
        return AccountSnapshot(
            address=address,
            owner=info.owner,
            lamports=info.lamports,
            data=bytes(info.data),
            slot=resp.context.slot,
        )

    def get_slot(self) -> int:
        try:
            return self.client.get_slot(commitment=self.commitment).value
        except Exception as exc:  # noqa: BLE001
            raise RpcFailure("get_slot", str(exc)) from exc

    def submit_transaction(self, tx: Union[Transaction, VersionedTransaction]) -> Signature:
        opts = TxOpts(skip_preflight=self.skip_preflight, preflight_commitment=self.commitment)
        try:
            resp = self.client.send_raw_transaction(bytes(tx), opts=opts)
        except Exception as exc:  # noqa: BLE001
            raise RpcFailure("send_transaction", str(exc)) from exc
        logger.debug("transaction_sent sig=%s", resp.value)
        return resp.value

    def confirm_transaction(self, signature: Signature) -> None:
        try:
            resp = self.client.confirm_transaction(signature, commitment=self.commitment)
        except Exception as exc:  # noqa: BLE001
            raise RpcFailure("confirm_transaction", str(exc)) from exc
        statuses = getattr(resp, "value", None) or []
        status = statuses[0] if statuses else None
        if status is not None and status.err is not None:
            raise RpcFailure("confirm_transaction", f"transaction {signature} failed: {status.err}")
