"""
Private-key backed signer.
"""
from typing import Any, Dict

from eth_account import Account
from eth_account.messages import SignableMessage
from eth_account.signers.local import LocalAccount


class LocalSigner:
    """Signer holding a private key in process memory"""

    def __init__(self, priv_key: str):
        """
        Args:
            priv_key: Hex private key, with or without 0x prefix
        """
        self._account: LocalAccount = Account.from_key(priv_key)

    @property
    def address(self) -> str:
        return self._account.address

    def sign_message(self, signable_message: SignableMessage) -> Any:
        return self._account.sign_message(signable_message)

    def sign_transaction(self, transaction_dict: Dict[str, Any]) -> Any:
        return self._account.sign_transaction(transaction_dict)

    def __repr__(self) -> str:
        return f"LocalSigner({self.address})"
