"""
multisig-sdk: client-side coordination of Safe multi-signature transactions.
"""
from .version import __version__
from .models import (
    Operation,
    OperationRecord,
    SignatureMethod,
    SignatureArtifact,
    AggregatedSignatureBlob,
    ExecutionReceipt,
    SignatureCollection,
)
from .exceptions import (
    MultisigError,
    InvalidInputError,
    UnsupportedRecoveryByteError,
    DuplicateSignerError,
    ApprovalRejectedError,
    ProviderUnavailableError,
    TransactionError,
    ExecutionRevertedError,
    TransportError,
    NetworkError,
)
from .builder import build_operation, build_contract_call
from .hashing import safe_tx_digest, safe_message_digest, domain_separator
from .signatures import (
    sign_structured,
    sign_raw_hash,
    sign_safe_message,
    approve_on_chain,
    recover_signer,
    adjust_v,
)
from .aggregation import aggregate
from .safe import SafeContract, submit
from .signer import Signer, LocalSigner
from .config import NetworkConfig
from .client import MultisigClient

__all__ = [
    "MultisigClient",
    "Operation",
    "OperationRecord",
    "SignatureMethod",
    "SignatureArtifact",
    "AggregatedSignatureBlob",
    "ExecutionReceipt",
    "SignatureCollection",
    "MultisigError",
    "InvalidInputError",
    "UnsupportedRecoveryByteError",
    "DuplicateSignerError",
    "ApprovalRejectedError",
    "ProviderUnavailableError",
    "TransactionError",
    "ExecutionRevertedError",
    "TransportError",
    "NetworkError",
    "build_operation",
    "build_contract_call",
    "safe_tx_digest",
    "safe_message_digest",
    "domain_separator",
    "sign_structured",
    "sign_raw_hash",
    "sign_safe_message",
    "approve_on_chain",
    "recover_signer",
    "adjust_v",
    "aggregate",
    "SafeContract",
    "submit",
    "Signer",
    "LocalSigner",
    "NetworkConfig",
    "__version__",
]
