"""
EIP-712 hashing for Safe transactions and messages.

The digest of a Safe transaction commits to the Safe address and the chain id
(the EIP-712 domain) and to every ``SafeTx`` field in a fixed order. Off-wallet
messages are hashed under the same domain with the ``SafeMessage`` type, so a
signature over one kind of digest can never be replayed as the other.
"""
import logging
from typing import Dict, Any

from eth_account.messages import SignableMessage, encode_typed_data
from web3 import Web3

from .exceptions import InvalidInputError
from .models import OperationRecord
from .utils import BytesLike, short_hex, to_bytes, to_checksum

logger = logging.getLogger(__name__)

EIP712_DOMAIN_TYPE = [
    {"type": "uint256", "name": "chainId"},
    {"type": "address", "name": "verifyingContract"},
]

# SafeTx(address to,uint256 value,bytes data,uint8 operation,uint256 safeTxGas,uint256 baseGas,uint256 gasPrice,address gasToken,address refundReceiver,uint256 nonce)
EIP712_SAFE_TX_TYPE = {
    "SafeTx": [
        {"type": "address", "name": "to"},
        {"type": "uint256", "name": "value"},
        {"type": "bytes", "name": "data"},
        {"type": "uint8", "name": "operation"},
        {"type": "uint256", "name": "safeTxGas"},
        {"type": "uint256", "name": "baseGas"},
        {"type": "uint256", "name": "gasPrice"},
        {"type": "address", "name": "gasToken"},
        {"type": "address", "name": "refundReceiver"},
        {"type": "uint256", "name": "nonce"},
    ]
}

# SafeMessage(bytes message)
EIP712_SAFE_MESSAGE_TYPE = {
    "SafeMessage": [
        {"type": "bytes", "name": "message"},
    ]
}


def _domain(verifier: str, chain_id: int) -> Dict[str, Any]:
    if isinstance(chain_id, bool) or not isinstance(chain_id, int) or chain_id <= 0:
        raise InvalidInputError(f"chain_id must be a positive integer, got {chain_id!r}")
    return {
        "chainId": chain_id,
        "verifyingContract": to_checksum(verifier, "verifier address"),
    }


def _typed_data(primary_type: str, types: Dict[str, Any], domain: Dict[str, Any], message: Dict[str, Any]) -> Dict[str, Any]:
    return {
        "types": {"EIP712Domain": EIP712_DOMAIN_TYPE, **types},
        "primaryType": primary_type,
        "domain": domain,
        "message": message,
    }


def safe_tx_typed_data(verifier: str, chain_id: int, record: OperationRecord) -> Dict[str, Any]:
    """
    Full EIP-712 structure for a Safe transaction

    This is what a structured signer (hardware wallet, browser wallet)
    receives, so it can show the individual fields to its user.

    Args:
        verifier: Safe address (the verifying contract)
        chain_id: Chain the Safe lives on
        record: The proposed transaction

    Returns:
        Dictionary with ``types``, ``primaryType``, ``domain`` and ``message``
    """
    return _typed_data("SafeTx", EIP712_SAFE_TX_TYPE, _domain(verifier, chain_id), record.to_message())


def safe_message_typed_data(verifier: str, chain_id: int, message: BytesLike) -> Dict[str, Any]:
    """Full EIP-712 structure for an off-wallet Safe message."""
    return _typed_data(
        "SafeMessage",
        EIP712_SAFE_MESSAGE_TYPE,
        _domain(verifier, chain_id),
        {"message": to_bytes(message, "message")},
    )


def signable_digest(signable: SignableMessage) -> bytes:
    """keccak256 over the EIP-191 encoding of a signable message."""
    return bytes(Web3.keccak(b"\x19" + signable.version + signable.header + signable.body))


def safe_tx_signable(verifier: str, chain_id: int, record: OperationRecord) -> SignableMessage:
    return encode_typed_data(full_message=safe_tx_typed_data(verifier, chain_id, record))


def safe_tx_digest(verifier: str, chain_id: int, record: OperationRecord) -> bytes:
    """
    Compute the Safe transaction hash

    Matches ``getTransactionHash`` on the Safe contract bit for bit:
    keccak256(0x19 0x01 || domainSeparator || hashStruct(SafeTx)).

    Args:
        verifier: Safe address
        chain_id: Chain id the transaction is valid on
        record: The proposed transaction

    Returns:
        32-byte digest

    Raises:
        InvalidInputError: If the verifier address or chain id is invalid
    """
    digest = signable_digest(safe_tx_signable(verifier, chain_id, record))
    logger.debug(f"SafeTx digest for nonce {record.nonce} on chain {chain_id}: {short_hex(digest, 18)}")
    return digest


def safe_message_digest(verifier: str, chain_id: int, message: BytesLike) -> bytes:
    """
    Compute the Safe message hash for an arbitrary off-wallet message

    Uses the same domain as transactions but the ``SafeMessage`` type, so the
    result can never collide with a transaction digest.
    """
    signable = encode_typed_data(full_message=safe_message_typed_data(verifier, chain_id, message))
    return signable_digest(signable)


def domain_separator(verifier: str, chain_id: int) -> bytes:
    """EIP-712 domain separator of a Safe on a chain."""
    signable = encode_typed_data(full_message=safe_message_typed_data(verifier, chain_id, b""))
    return bytes(signable.header)
