from typing import Optional, Sequence

from solders.pubkey import Pubkey


class ProgramClientError(Exception):
    """Base class for every error raised by program_client."""


class MalformedPayload(ProgramClientError):
    """Instruction arguments could not be encoded, or bytes do not match the payload layout."""


class TooManyAccounts(ProgramClientError):
    pass


class AddressNotFound(ProgramClientError):
    def __init__(self, address: Pubkey, message: Optional[str] = None):
        self.address = address
        super().__init__(message or f"Account {address} is not a signer or program and is missing from every lookup table")


class EmptyLookupTable(ProgramClientError):
    def __init__(self, table_address: Pubkey):
        self.table_address = table_address
        super().__init__(f"Lookup table {table_address} snapshot has no addresses")


class SignerMismatch(ProgramClientError):
    def __init__(self, message: str, expected: Sequence[Pubkey] = (), actual: Sequence[Pubkey] = ()):
        self.expected = list(expected)
        self.actual = list(actual)
        super().__init__(message)


class EmptyExtend(ProgramClientError):
    pass


class MalformedLookupTable(ProgramClientError):
    pass


class LookupTableNotFound(ProgramClientError):
    def __init__(self, table_address: Pubkey):
        self.table_address = table_address
        super().__init__(f"Lookup table account {table_address} not found")


class KeypairError(ProgramClientError):
    pass


class RpcFailure(ProgramClientError):
    """Opaque wrapper around a failed RPC call; the transport error is chained as __cause__."""

    def __init__(self, operation: str, message: str):
        self.operation = operation
        super().__init__(f"{operation} failed: {message}")
