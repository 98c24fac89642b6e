"""
Builders for Safe transaction records.
"""
from typing import Any, Optional, Sequence, Union

from pydantic import ValidationError

from .exceptions import InvalidInputError
from .models import Operation, OperationRecord
from .utils import ZERO_ADDRESS, BytesLike, check_uint, to_bytes, to_checksum


def build_operation(
    target: str,
    payload: Optional[BytesLike] = None,
    kind: Union[Operation, int] = Operation.CALL,
    nonce: Optional[int] = None,
    value: int = 0,
    operation_gas_limit: int = 0,
    base_gas: int = 0,
    gas_price: int = 0,
    gas_token: str = ZERO_ADDRESS,
    refund_receiver: str = ZERO_ADDRESS
) -> OperationRecord:
    """
    Build a Safe transaction record with deterministic defaults

    Numeric fields default to 0, address fields to the zero address and the
    payload to empty bytes.

    Args:
        target: Address the Safe will call
        payload: Call data, as bytes or 0x-prefixed hex (None means empty)
        kind: CALL or DELEGATE_CALL
        nonce: Safe nonce the transaction is meant for (required)
        value: Wei sent along with the call
        operation_gas_limit: ``safeTxGas``
        base_gas: ``baseGas``
        gas_price: ``gasPrice`` used for refunds
        gas_token: Token used for refunds (zero address means ETH)
        refund_receiver: Refund receiver (zero address means tx.origin)

    Returns:
        Immutable OperationRecord

    Raises:
        InvalidInputError: If an address is malformed, an integer is negative
            or too large, or the operation kind is unknown
    """
    try:
        kind = Operation(kind)
    except (ValueError, TypeError):
        raise InvalidInputError(f"Unknown operation kind: {kind!r}")

    fields = {
        "to": to_checksum(target, "target"),
        "value": check_uint(value, "value"),
        "data": to_bytes(payload, "payload"),
        "operation": kind,
        "safeTxGas": check_uint(operation_gas_limit, "operation_gas_limit"),
        "baseGas": check_uint(base_gas, "base_gas"),
        "gasPrice": check_uint(gas_price, "gas_price"),
        "gasToken": to_checksum(gas_token, "gas_token"),
        "refundReceiver": to_checksum(refund_receiver, "refund_receiver"),
        "nonce": check_uint(nonce, "nonce"),
    }
    try:
        return OperationRecord(**fields)
    except ValidationError as e:
        raise InvalidInputError(f"Invalid operation record: {str(e)}")


def build_contract_call(
    contract: Any,
    method: str,
    params: Sequence[Any],
    nonce: int,
    kind: Union[Operation, int] = Operation.CALL
) -> OperationRecord:
    """
    Build a record that calls ``method(*params)`` on a web3 contract

    Args:
        contract: web3 contract object (needs ``address`` and ``encode_abi``)
        method: Function name in the contract ABI
        params: Positional arguments for the function
        nonce: Safe nonce

    Returns:
        OperationRecord targeting the contract with value 0
    """
    try:
        data = contract.encode_abi(method, args=list(params))
    except Exception as e:
        raise InvalidInputError(f"Failed to encode {method} call: {str(e)}")
    return build_operation(contract.address, data, kind, nonce)
