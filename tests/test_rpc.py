from unittest.mock import MagicMock, patch

import pytest
from solders.hash import Hash
from solders.signature import Signature

from program_client.config import Settings
from program_client.errors import RpcFailure
from program_client.rpc import AccountSnapshot, SolanaRpc
from tests.helpers import key


class RawTx:
    def __bytes__(self):
        return b"raw-tx"


@pytest.fixture
def client():
    return MagicMock()


@pytest.fixture
def solana_rpc(client):
    return SolanaRpc(client, commitment="finalized", skip_preflight=True)


def test_get_latest_blockhash(solana_rpc, client):
    client.get_latest_blockhash.return_value.value.blockhash = Hash(bytes([4]) * 32)
    assert solana_rpc.get_latest_blockhash() == Hash(bytes([4]) * 32)
    assert client.get_latest_blockhash.call_args.kwargs["commitment"] == "finalized"


def test_get_account_maps_response(solana_rpc, client):
    resp = client.get_account_info.return_value
    resp.value.owner = key(5)
    resp.value.lamports = 1234
    resp.value.data = b"\x01\x02"
    resp.context.slot = 99
    assert solana_rpc.get_account(key(90)) == AccountSnapshot(
        address=key(90), owner=key(5), lamports=1234, data=b"\x01\x02", slot=99
    )


def test_get_account_missing(solana_rpc, client):
    client.get_account_info.return_value.value = None
    assert solana_rpc.get_account(key(90)) is None


def test_get_slot(solana_rpc, client):
    client.get_slot.return_value.value = 321
    assert solana_rpc.get_slot() == 321


def test_submit_transaction_sends_raw_bytes(solana_rpc, client):
    signature = Signature.default()
    client.send_raw_transaction.return_value.value = signature
    tx = RawTx()
    assert solana_rpc.submit_transaction(tx) == signature
    args, kwargs = client.send_raw_transaction.call_args
    assert args[0] == b"raw-tx"
    assert kwargs["opts"].skip_preflight is True
    assert kwargs["opts"].preflight_commitment == "finalized"


@pytest.mark.parametrize(
    "method, client_method, args",
    [
        ("get_latest_blockhash", "get_latest_blockhash", ()),
        ("get_account", "get_account_info", (key(90),)),
        ("get_slot", "get_slot", ()),
        ("confirm_transaction", "confirm_transaction", (Signature.default(),)),
    ],
)
def test_transport_errors_are_wrapped(solana_rpc, client, method, client_method, args):
    cause = ConnectionError("connection refused")
    getattr(client, client_method).side_effect = cause
    with pytest.raises(RpcFailure) as excinfo:
        getattr(solana_rpc, method)(*args)
    assert excinfo.value.operation == method
    assert excinfo.value.__cause__ is cause
    assert "connection refused" in str(excinfo.value)


def test_submit_error_is_wrapped(solana_rpc, client):
    cause = RuntimeError("Transaction simulation failed")
    client.send_raw_transaction.side_effect = cause
    tx = RawTx()
    with pytest.raises(RpcFailure, match="send_transaction failed") as excinfo:
        solana_rpc.submit_transaction(tx)
    assert excinfo.value.__cause__ is cause


def test_confirm_transaction_success(solana_rpc, client):
    status = MagicMock(err=None)
    client.confirm_transaction.return_value.value = [status]
    solana_rpc.confirm_transaction(Signature.default())


def test_confirm_transaction_reports_failed_execution(solana_rpc, client):
    status = MagicMock(err="InstructionError")
    client.confirm_transaction.return_value.value = [status]
    with pytest.raises(RpcFailure, match="InstructionError"):
        solana_rpc.confirm_transaction(Signature.default())


def test_from_settings():
    settings = Settings(solana_rpc="http://localhost:8899", commitment="processed", rpc_timeout=5, skip_preflight=True)
    with patch("program_client.rpc.Client") as client_cls:
        rpc = SolanaRpc.from_settings(settings)
    client_cls.assert_called_once_with("http://localhost:8899", commitment="processed", timeout=5)
    assert rpc.client is client_cls.return_value
    assert rpc.skip_preflight is True
