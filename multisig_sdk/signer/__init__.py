"""
Signer interfaces for the multisig SDK.
"""
from typing import Any, Dict, Protocol, runtime_checkable

from eth_account.messages import SignableMessage


@runtime_checkable
class Signer(Protocol):
    """Protocol for custom signers

    ``eth_account`` ``LocalAccount`` objects satisfy it, as does any remote or
    hardware signer that exposes the same three members.
    """
    address: str

    def sign_message(self, signable_message: SignableMessage) -> Any:
        """Sign an EIP-191 message and return an object with a ``signature`` attribute"""
        ...

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        """Sign transaction and return signed tx object"""
        ...


from .local import LocalSigner  # noqa: E402

__all__ = ["Signer", "LocalSigner"]
