import base64
import logging
from typing import Sequence, Type, Union

from solders.instruction import AccountMeta, Instruction
from solders.pubkey import Pubkey

from .codec import P, Payload
from .discriminant import INSTRUCTION_CONVENTION, DiscriminantConvention, validate_discriminator

logger = logging.getLogger(__name__)

SYS_PROGRAM_ID = Pubkey.from_string("11111111111111111111111111111111")


def writable(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=signer, is_writable=True)


def readonly(pubkey: Pubkey, signer: bool = False) -> AccountMeta:
    return AccountMeta(pubkey=pubkey, is_signer=signer, is_writable=False)


def program_address(seeds: Sequence[bytes], program_id: Pubkey) -> Pubkey:
    return Pubkey.find_program_address(list(seeds), program_id)[0]


def compose_instruction(program_id: Pubkey, data: bytes, accounts: Sequence[AccountMeta]) -> Instruction:
    return Instruction(program_id=program_id, data=bytes(data), accounts=list(accounts))


def build_instruction(
    program_id: Pubkey,
    instruction_name: str,
    payload: Payload,
    accounts: Sequence[AccountMeta],
    convention: DiscriminantConvention = INSTRUCTION_CONVENTION,
) -> Instruction:
    """
    Build an instruction for an Anchor-style program.

    ``data`` is the discriminant of ``instruction_name`` followed by the encoded
    payload. ``accounts`` are used as given: their order and signer/writable
    flags must already match what the program expects.
    """
    data = convention.derive(instruction_name) + payload.encode()
    ix = compose_instruction(program_id, data, accounts)
    if logger.isEnabledFor(logging.DEBUG):
        logger.debug("instruction_built name=%s ix=%s", instruction_name, instruction_to_dict(ix))
    return ix


def decode_instruction(
    ix: Union[Instruction, bytes],
    instruction_name: str,
    payload_cls: Type[P],
    convention: DiscriminantConvention = INSTRUCTION_CONVENTION,
) -> P:
    data = bytes(ix.data) if isinstance(ix, Instruction) else bytes(ix)
    validate_discriminator(data, convention.derive(instruction_name))
    return payload_cls.decode(data[convention.size :])


def instruction_to_dict(ix: Instruction) -> dict:
    return {
        "program_id": str(ix.program_id),
        "accounts": [
            {
                "pubkey": str(k.pubkey),
                "is_signer": k.is_signer,
                "is_writable": k.is_writable,
            }
            for k in ix.accounts
        ],
        "data": base64.b64encode(ix.data).decode(),
    }
