"""
Utility functions for the multisig SDK.
"""
from typing import Union

from hexbytes import HexBytes
from web3 import Web3

from .exceptions import InvalidInputError

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"
UINT256_MAX = 2 ** 256 - 1

BytesLike = Union[bytes, bytearray, str]


def to_checksum(address: str, field: str = "address") -> str:
    """
    Validate an Ethereum address and return its checksummed form

    Args:
        address: Hex address, with or without checksum casing
        field: Name of the field being validated, used in error messages

    Returns:
        EIP-55 checksummed address

    Raises:
        InvalidInputError: If the address is not a 20-byte hex string
    """
    if not isinstance(address, str) or not Web3.is_address(address):
        raise InvalidInputError(f"Invalid {field}: {address!r}")
    return Web3.to_checksum_address(address)


def to_bytes(value: BytesLike, field: str = "value") -> bytes:
    """
    Convert bytes or a 0x-prefixed hex string to bytes

    Raises:
        InvalidInputError: If a string is not valid hex
    """
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return bytes(HexBytes(value))
        except ValueError as e:
            raise InvalidInputError(f"Invalid hex for {field}: {str(e)}")
    raise InvalidInputError(f"{field} must be bytes or hex string, got {type(value).__name__}")


def to_bytes32(value: BytesLike, field: str = "digest") -> bytes:
    """Convert to bytes and require exactly 32 bytes."""
    result = to_bytes(value, field)
    if len(result) != 32:
        raise InvalidInputError(f"{field} must be 32 bytes, got {len(result)}")
    return result


def check_uint(value: int, field: str, bits: int = 256) -> int:
    """Ensure value is a non-negative integer that fits in ``bits`` bits."""
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidInputError(f"{field} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise InvalidInputError(f"{field} must be non-negative, got {value}")
    if value >= 2 ** bits:
        raise InvalidInputError(f"{field} does not fit in uint{bits}")
    return value


def address_key(address: str) -> int:
    """Numeric value of an address, the order the Safe expects owners in."""
    return int(address, 16)


def short_hex(data: bytes, keep: int = 10) -> str:
    """Truncated hex for log lines."""
    text = "0x" + bytes(data).hex()
    if len(text) <= keep + 2:
        return text
    return text[:keep + 2] + "…"
