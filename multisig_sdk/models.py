"""
Data models for the multisig SDK.
"""
from enum import Enum, IntEnum
from typing import Dict, Any, Optional, List, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .utils import ZERO_ADDRESS, UINT256_MAX, to_bytes, to_checksum

SIGNATURE_LENGTH = 65


class Operation(IntEnum):
    """Safe operation type"""
    CALL = 0
    DELEGATE_CALL = 1


class SignatureMethod(str, Enum):
    """How a signer attested to a Safe transaction hash"""
    STRUCTURED = "structured"
    RAW_HASH = "raw_hash"
    APPROVED_HASH = "approved_hash"


class OperationRecord(BaseModel):
    """
    A proposed Safe transaction.

    Field aliases are the names used by the Safe contract ABI and the
    EIP-712 ``SafeTx`` type, so a record can be built from or dumped to
    either naming scheme.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target: str = Field(..., alias="to")
    value: int = Field(0, ge=0, le=UINT256_MAX)
    payload: bytes = Field(b"", alias="data")
    kind: Operation = Field(Operation.CALL, alias="operation")
    operation_gas_limit: int = Field(0, ge=0, le=UINT256_MAX, alias="safeTxGas")
    base_gas: int = Field(0, ge=0, le=UINT256_MAX, alias="baseGas")
    gas_price: int = Field(0, ge=0, le=UINT256_MAX, alias="gasPrice")
    gas_token: str = Field(ZERO_ADDRESS, alias="gasToken")
    refund_receiver: str = Field(ZERO_ADDRESS, alias="refundReceiver")
    nonce: int = Field(..., ge=0, le=UINT256_MAX)

    @field_validator("target", "gas_token", "refund_receiver", mode="before")
    @classmethod
    def _checksum(cls, v: Any) -> str:
        return to_checksum(v)

    @field_validator("payload", mode="before")
    @classmethod
    def _payload_bytes(cls, v: Any) -> bytes:
        return to_bytes(v, "payload")

    def to_message(self) -> Dict[str, Any]:
        """
        EIP-712 ``SafeTx`` message for this record

        Every field is present with its explicit value; defaults are
        encoded as zero, never omitted.
        """
        return {
            "to": self.target,
            "value": self.value,
            "data": self.payload,
            "operation": int(self.kind),
            "safeTxGas": self.operation_gas_limit,
            "baseGas": self.base_gas,
            "gasPrice": self.gas_price,
            "gasToken": self.gas_token,
            "refundReceiver": self.refund_receiver,
            "nonce": self.nonce,
        }

    def exec_args(self) -> Tuple[Any, ...]:
        """Positional ``execTransaction`` arguments, without the signatures."""
        return (
            self.target,
            self.value,
            self.payload,
            int(self.kind),
            self.operation_gas_limit,
            self.base_gas,
            self.gas_price,
            self.gas_token,
            self.refund_receiver,
        )


class SignatureArtifact(BaseModel):
    """One signer's 65-byte contribution to a Safe signature blob"""
    model_config = ConfigDict(frozen=True)

    signer: str
    data: bytes
    method: SignatureMethod

    @field_validator("signer", mode="before")
    @classmethod
    def _checksum(cls, v: Any) -> str:
        return to_checksum(v, "signer")

    @field_validator("data", mode="before")
    @classmethod
    def _signature_bytes(cls, v: Any) -> bytes:
        data = to_bytes(v, "signature")
        if len(data) != SIGNATURE_LENGTH:
            raise ValueError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(data)}")
        return data

    @property
    def v(self) -> int:
        """Trailing recovery / signature-type byte"""
        return self.data[-1]


class AggregatedSignatureBlob(BaseModel):
    """Concatenated signatures, ordered by ascending signer address"""
    model_config = ConfigDict(frozen=True)

    data: bytes = b""
    signers: Tuple[str, ...] = ()

    def __len__(self) -> int:
        return len(self.data)

    def hex(self) -> str:
        return "0x" + self.data.hex()


class ExecutionReceipt(BaseModel):
    """
    Mined approval or execution transaction.

    Hashes are 0x hex strings; ``logs`` keeps the raw entries so callers can
    look for Safe events such as ``ExecutionSuccess``.
    """
    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="transactionHash")
    block_number: int = Field(..., alias="blockNumber")
    block_hash: str = Field(..., alias="blockHash")
    status: int
    gas_used: int = Field(..., alias="gasUsed")
    from_address: str = Field(..., alias="from")
    to_address: Optional[str] = Field(None, alias="to")
    logs: List[Dict[str, Any]] = Field(default_factory=list)


class SignatureCollection(BaseModel):
    """Outcome of collecting signatures from several signers concurrently"""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    artifacts: List[SignatureArtifact] = Field(default_factory=list)
    failures: Dict[str, Exception] = Field(default_factory=dict)
    pending: List[str] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.failures and not self.pending
