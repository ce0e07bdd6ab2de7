from typing import Iterable, List, Sequence, Union

from solders.keypair import Keypair
from solders.message import Message, MessageV0, to_bytes_versioned
from solders.pubkey import Pubkey
from solders.transaction import Transaction, VersionedTransaction

from .errors import SignerMismatch

AnyMessage = Union[Message, MessageV0]
SignedTransaction = Union[Transaction, VersionedTransaction]


def required_signers(message: AnyMessage) -> List[Pubkey]:
    return list(message.account_keys[: message.header.num_required_signatures])


def message_bytes(message: AnyMessage) -> bytes:
    if isinstance(message, MessageV0):
        return to_bytes_versioned(message)
    return bytes(message)


def sign(message: AnyMessage, signers: Sequence[Keypair]) -> SignedTransaction:
    """
    Sign ``message`` with ``signers``, which must line up one-to-one with the
    message's signer keys (payer first).

    Any object exposing ``pubkey()`` and ``sign_message(bytes)`` can sign.
    """
    expected = required_signers(message)
    actual = [s.pubkey() for s in signers]
    if len(actual) != len(expected):
        raise SignerMismatch(
            f"Message requires {len(expected)} signatures, got {len(actual)} signers",
            expected=expected,
            actual=actual,
        )
    for position, (want, got) in enumerate(zip(expected, actual)):
        if want != got:
            raise SignerMismatch(
                f"Signer {position} is {got}, message expects {want}",
                expected=expected,
                actual=actual,
            )

    payload = message_bytes(message)
    signatures = [s.sign_message(payload) for s in signers]
    if isinstance(message, MessageV0):
        return VersionedTransaction.populate(message, signatures)
    return Transaction.populate(message, signatures)


def order_signers(message: AnyMessage, signers: Iterable[Keypair]) -> List[Keypair]:
    by_key = {}
    for s in signers:
        by_key.setdefault(s.pubkey(), s)
    expected = required_signers(message)
    missing = [k for k in expected if k not in by_key]
    if missing:
        raise SignerMismatch(
            f"Missing keypairs for required signers: {', '.join(str(k) for k in missing)}",
            expected=expected,
            actual=list(by_key),
        )
    extra = [k for k in by_key if k not in expected]
    if extra:
        raise SignerMismatch(
            f"Keypairs not required by the message: {', '.join(str(k) for k in extra)}",
            expected=expected,
            actual=list(by_key),
        )
    return [by_key[k] for k in expected]
