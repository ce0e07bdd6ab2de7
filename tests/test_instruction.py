import base64
import logging

import pytest
from solders.instruction import AccountMeta

from program_client.discriminant import DiscriminantConvention, sighash
from program_client.errors import MalformedPayload
from program_client.instruction import (
    build_instruction,
    compose_instruction,
    decode_instruction,
    instruction_to_dict,
    program_address,
    readonly,
    writable,
)
from tests.helpers import UpdateBlob, key


def test_data_is_discriminant_then_payload(program_id):
    ix = build_instruction(program_id, "update_blob", UpdateBlob(data=b"data"), [writable(key(1))])
    assert ix.program_id == program_id
    assert ix.data == sighash("update_blob") + b"\x04\x00\x00\x00data"


def test_accounts_copied_verbatim(program_id):
    accounts = [
        readonly(key(9)),
        writable(key(3), signer=True),
        AccountMeta(key(5), is_signer=True, is_writable=False),
        writable(key(1)),
    ]
    ix = build_instruction(program_id, "update_blob", UpdateBlob(data=b""), accounts)
    assert list(ix.accounts) == accounts


def test_account_helpers_match_flags():
    assert writable(key(1)) == AccountMeta(key(1), False, True)
    assert writable(key(1), signer=True) == AccountMeta(key(1), True, True)
    assert readonly(key(1)) == AccountMeta(key(1), False, False)
    assert readonly(key(1), signer=True) == AccountMeta(key(1), True, False)


def test_decode_instruction_round_trip(program_id):
    ix = build_instruction(program_id, "update_blob", UpdateBlob(data=b"blob"), [])
    assert decode_instruction(ix, "update_blob", UpdateBlob) == UpdateBlob(data=b"blob")
    assert decode_instruction(bytes(ix.data), "update_blob", UpdateBlob) == UpdateBlob(data=b"blob")
    with pytest.raises(MalformedPayload):
        decode_instruction(ix, "close_blob", UpdateBlob)


def test_alternate_convention(program_id):
    convention = DiscriminantConvention(namespace="state")
    ix = build_instruction(program_id, "update_blob", UpdateBlob(data=b""), [], convention=convention)
    assert ix.data[:8] == convention.derive("update_blob")
    assert decode_instruction(ix, "update_blob", UpdateBlob, convention=convention) == UpdateBlob(data=b"")


def test_compose_has_no_discriminant(program_id):
    ix = compose_instruction(program_id, b"\x02\x00", [readonly(key(4))])
    assert ix.data == b"\x02\x00"


def test_instruction_to_dict(program_id):
    ix = build_instruction(program_id, "update_blob", UpdateBlob(data=b"x"), [writable(key(1), signer=True)])
    view = instruction_to_dict(ix)
    assert view["program_id"] == str(program_id)
    assert view["accounts"] == [{"pubkey": str(key(1)), "is_signer": True, "is_writable": True}]
    assert base64.b64decode(view["data"]) == bytes(ix.data)


def test_program_address_is_stable(program_id):
    assert program_address([b"blob"], program_id) == program_address([b"blob"], program_id)
    assert program_address([b"blob"], program_id) != program_address([b"other"], program_id)


def test_built_instruction_logged_at_debug(program_id, caplog):
    with caplog.at_level(logging.DEBUG, logger="program_client.instruction"):
        build_instruction(program_id, "update_blob", UpdateBlob(data=b"x"), [writable(key(1))])
    (record,) = [r for r in caplog.records if r.name == "program_client.instruction"]
    assert "instruction_built name=update_blob" in record.getMessage()
    assert str(key(1)) in record.getMessage()
