"""
Exceptions for the multisig SDK.

Every error carries optional ``signer`` and ``stage`` attributes so callers can
tell which signer and which step of the flow failed. Nothing in the SDK retries
automatically.
"""
from typing import Optional


class MultisigError(Exception):
    """Base exception for all multisig SDK errors."""

    def __init__(self, message: str, signer: Optional[str] = None, stage: Optional[str] = None):
        self.signer = signer
        self.stage = stage
        super().__init__(message)


class InvalidInputError(MultisigError, ValueError):
    """Raised for malformed addresses, integers or record fields."""
    pass


class UnsupportedRecoveryByteError(MultisigError):
    """Raised when a signing primitive returns an unexpected recovery byte."""

    def __init__(self, v: int, signer: Optional[str] = None, stage: Optional[str] = None):
        self.v = v
        super().__init__(f"Unsupported recovery byte: {v}", signer=signer, stage=stage)


class DuplicateSignerError(MultisigError):
    """Raised when two different artifacts claim the same signer."""
    pass


class ApprovalRejectedError(MultisigError):
    """Raised when the Safe rejects an on-chain hash approval."""
    pass


class ProviderUnavailableError(MultisigError):
    """Raised when the JSON-RPC provider cannot be reached or answers garbage."""
    pass


class TransactionError(MultisigError):
    """Raised when a Safe transaction cannot be built, signed or sent."""
    pass


class ExecutionRevertedError(TransactionError):
    """Raised when ``execTransaction`` reverts.

    ``reason`` holds the revert string reported by the Safe (e.g. ``GS020``)
    when one is available.
    """

    def __init__(
        self,
        message: str,
        reason: Optional[str] = None,
        signer: Optional[str] = None,
        stage: Optional[str] = "execute"
    ):
        self.reason = reason
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, signer=signer, stage=stage)


class TransportError(TransactionError):
    """Raised when the execution transaction could not reach the network."""
    pass


class NetworkError(MultisigError):
    """Raised when the connected chain does not match the expected one."""
    pass
