"""
Safe contract access: reads, hash approvals and transaction execution.
"""
import logging
from typing import Any, Callable, List, Optional, Protocol, Union

import requests
from hexbytes import HexBytes
from web3 import Web3
from web3.exceptions import ContractLogicError, TimeExhausted, Web3Exception
from web3.types import TxReceipt as Web3TxReceipt

from .exceptions import (
    ApprovalRejectedError,
    ExecutionRevertedError,
    MultisigError,
    ProviderUnavailableError,
    TransactionError,
    TransportError,
)
from .models import AggregatedSignatureBlob, ExecutionReceipt, OperationRecord
from .signer import Signer
from .utils import BytesLike, short_hex, to_bytes, to_bytes32, to_checksum

logger = logging.getLogger(__name__)

# Errors that mean the provider could not be reached or did not answer in time
TRANSPORT_ERRORS = (requests.RequestException, ConnectionError, TimeExhausted)

DEFAULT_GAS = 500000

# Emitted by execTransaction when the inner call fails without reverting
EXECUTION_FAILURE_TOPIC = bytes(Web3.keccak(text="ExecutionFailure(bytes32,uint256)"))


class Verifier(Protocol):
    """What the coordinator needs from a Safe"""
    address: str

    def current_nonce(self) -> int:
        ...

    def threshold(self) -> int:
        ...

    def owners(self) -> List[str]:
        ...

    def is_hash_approved(self, owner: str, digest: bytes) -> bool:
        ...

    def record_approval(self, signer: Signer, digest: bytes) -> ExecutionReceipt:
        ...

    def execute(self, executor: Signer, record: OperationRecord, blob: AggregatedSignatureBlob) -> ExecutionReceipt:
        ...


def _revert_reason(error: Exception) -> str:
    message = getattr(error, "message", None) or str(error)
    prefix = "execution reverted: "
    if message.startswith(prefix):
        message = message[len(prefix):]
    return message


class SafeContract:
    """
    Web3-backed access to a deployed Safe.

    Every state-changing call is built, signed by the given signer, sent and
    awaited exactly once; failures are reported, never retried.
    """

    # Subset of the Safe ABI the coordinator uses
    SAFE_ABI = [
        {
            "inputs": [],
            "name": "nonce",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "getThreshold",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "getOwners",
            "outputs": [{"internalType": "address[]", "name": "", "type": "address[]"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [],
            "name": "domainSeparator",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "", "type": "address"},
                {"internalType": "bytes32", "name": "", "type": "bytes32"}
            ],
            "name": "approvedHashes",
            "outputs": [{"internalType": "uint256", "name": "", "type": "uint256"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [{"internalType": "bytes32", "name": "hashToApprove", "type": "bytes32"}],
            "name": "approveHash",
            "outputs": [],
            "stateMutability": "nonpayable",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"},
                {"internalType": "bytes", "name": "data", "type": "bytes"},
                {"internalType": "enum Enum.Operation", "name": "operation", "type": "uint8"},
                {"internalType": "uint256", "name": "safeTxGas", "type": "uint256"},
                {"internalType": "uint256", "name": "baseGas", "type": "uint256"},
                {"internalType": "uint256", "name": "gasPrice", "type": "uint256"},
                {"internalType": "address", "name": "gasToken", "type": "address"},
                {"internalType": "address", "name": "refundReceiver", "type": "address"},
                {"internalType": "uint256", "name": "_nonce", "type": "uint256"}
            ],
            "name": "getTransactionHash",
            "outputs": [{"internalType": "bytes32", "name": "", "type": "bytes32"}],
            "stateMutability": "view",
            "type": "function"
        },
        {
            "inputs": [
                {"internalType": "address", "name": "to", "type": "address"},
                {"internalType": "uint256", "name": "value", "type": "uint256"},
                {"internalType": "bytes", "name": "data", "type": "bytes"},
                {"internalType": "enum Enum.Operation", "name": "operation", "type": "uint8"},
                {"internalType": "uint256", "name": "safeTxGas", "type": "uint256"},
                {"internalType": "uint256", "name": "baseGas", "type": "uint256"},
                {"internalType": "uint256", "name": "gasPrice", "type": "uint256"},
                {"internalType": "address", "name": "gasToken", "type": "address"},
                {"internalType": "address payable", "name": "refundReceiver", "type": "address"},
                {"internalType": "bytes", "name": "signatures", "type": "bytes"}
            ],
            "name": "execTransaction",
            "outputs": [{"internalType": "bool", "name": "success", "type": "bool"}],
            "stateMutability": "payable",
            "type": "function"
        }
    ]

    def __init__(
        self,
        w3: Web3,
        address: str,
        receipt_timeout: int = 120,
        poll_interval: float = 0.1,
        logger: Optional[logging.Logger] = None
    ):
        """
        Args:
            w3: Connected Web3 instance
            address: Safe address
            receipt_timeout: Seconds to wait for a transaction receipt
            poll_interval: Receipt polling interval in seconds
            logger: Optional logger instance

        Raises:
            InvalidInputError: If the address is malformed
        """
        self.w3 = w3
        self.address = to_checksum(address, "safe address")
        self.receipt_timeout = receipt_timeout
        self.poll_interval = poll_interval
        self.logger = logger or logging.getLogger(__name__)
        self.contract = self.w3.eth.contract(address=self.address, abi=self.SAFE_ABI)

    def _read(self, name: str, call: Callable[[], Any]) -> Any:
        try:
            return call()
        except Exception as e:
            self.logger.error(f"Safe read {name} failed: {e}")
            raise ProviderUnavailableError(f"Failed to read {name} from Safe {self.address}: {str(e)}", stage=name)

    def current_nonce(self) -> int:
        """Nonce the next executed Safe transaction must carry."""
        return int(self._read("nonce", lambda: self.contract.functions.nonce().call()))

    def threshold(self) -> int:
        return int(self._read("getThreshold", lambda: self.contract.functions.getThreshold().call()))

    def owners(self) -> List[str]:
        owners = self._read("getOwners", lambda: self.contract.functions.getOwners().call())
        return [Web3.to_checksum_address(o) for o in owners]

    def domain_separator(self) -> bytes:
        return bytes(self._read("domainSeparator", lambda: self.contract.functions.domainSeparator().call()))

    def is_hash_approved(self, owner: str, digest: BytesLike) -> bool:
        """Whether ``owner`` has called approveHash for ``digest``."""
        owner = to_checksum(owner, "owner")
        digest = to_bytes32(digest)
        approved = self._read(
            "approvedHashes",
            lambda: self.contract.functions.approvedHashes(owner, digest).call()
        )
        return int(approved) != 0

    def get_transaction_hash(self, record: OperationRecord) -> bytes:
        """Safe transaction hash as computed by the contract itself."""
        return bytes(self._read(
            "getTransactionHash",
            lambda: self.contract.functions.getTransactionHash(*record.exec_args(), record.nonce).call()
        ))

    def record_approval(self, signer: Signer, digest: BytesLike) -> ExecutionReceipt:
        """
        Send ``approveHash(digest)`` from ``signer``

        Returns:
            Receipt of the approval transaction

        Raises:
            ApprovalRejectedError: If the Safe reverts or the signer refuses to sign
            ProviderUnavailableError: If the provider cannot be reached
        """
        digest = to_bytes32(digest)
        fn = self.contract.functions.approveHash(digest)
        self.logger.debug(f"Approving {short_hex(digest, 18)} from {signer.address}")
        return self._transact(signer, fn, "approve")

    def execute(
        self,
        executor: Signer,
        record: OperationRecord,
        blob: Union[AggregatedSignatureBlob, BytesLike]
    ) -> ExecutionReceipt:
        """
        Send ``execTransaction`` with the record fields and signature blob

        Args:
            executor: Account paying for and sending the transaction
            record: The transaction the signatures cover
            blob: Aggregated signatures

        Returns:
            Receipt of the execution transaction

        Raises:
            ExecutionRevertedError: If the Safe reverts (with its reason, e.g. GS020)
                or reports a failed inner call through ``ExecutionFailure``
            TransportError: If the provider cannot be reached or the node
                refuses the transaction
            TransactionError: If the executor fails to sign
        """
        signatures = blob.data if isinstance(blob, AggregatedSignatureBlob) else to_bytes(blob, "signatures")
        fn = self.contract.functions.execTransaction(*record.exec_args(), signatures)
        receipt = self._transact(executor, fn, "execute")
        if self._execution_failed(receipt):
            self.logger.error(f"Safe transaction {receipt.tx_hash} mined but its inner call failed")
            raise ExecutionRevertedError(
                "Safe transaction inner call failed",
                reason="ExecutionFailure",
                signer=executor.address
            )
        return receipt

    def _execution_failed(self, receipt: ExecutionReceipt) -> bool:
        # With safeTxGas or gasPrice set the Safe does not revert a failed call
        for log in receipt.logs:
            topics = log.get("topics") or []
            if not topics or bytes(HexBytes(topics[0])) != EXECUTION_FAILURE_TOPIC:
                continue
            address = log.get("address")
            if address and Web3.to_checksum_address(address) == self.address:
                return True
        return False

    def _rejected(self, stage: str, reason: Optional[str], signer: str) -> MultisigError:
        if stage == "execute":
            return ExecutionRevertedError("Safe transaction reverted", reason=reason, signer=signer)
        message = f"Hash approval rejected: {reason}" if reason else "Hash approval rejected"
        return ApprovalRejectedError(message, signer=signer, stage=stage)

    def _unavailable(self, stage: str, error: Exception, signer: str) -> MultisigError:
        if stage == "execute":
            return TransportError(f"Failed to submit Safe transaction: {str(error)}", signer=signer, stage=stage)
        return ProviderUnavailableError(f"Provider unavailable during approval: {str(error)}", signer=signer, stage=stage)

    def _transact(self, signer: Signer, fn: Any, stage: str) -> ExecutionReceipt:
        from_address = signer.address

        try:
            nonce = self.w3.eth.get_transaction_count(from_address)

            # Reverts surface here first, with the Safe's reason string
            try:
                gas = int(fn.estimate_gas({'from': from_address}) * 1.1)
                self.logger.debug(f"Estimated gas: {gas}")
            except ContractLogicError:
                raise
            except TRANSPORT_ERRORS:
                raise
            except Exception as e:
                gas = DEFAULT_GAS
                self.logger.warning(f"Gas estimation failed, using default: {gas}. Error: {e}")

            tx = fn.build_transaction({
                'from': from_address,
                'nonce': nonce,
                'gas': gas,
                'gasPrice': self.w3.eth.gas_price,
            })
        except ContractLogicError as e:
            reason = _revert_reason(e)
            self.logger.error(f"Safe {stage} reverted: {reason}")
            raise self._rejected(stage, reason, from_address)
        except TRANSPORT_ERRORS as e:
            self.logger.error(f"Provider error during {stage}: {e}")
            raise self._unavailable(stage, e, from_address)
        except Web3Exception as e:
            self.logger.error(f"Node rejected {stage} transaction: {e}")
            raise self._unavailable(stage, e, from_address)

        try:
            signed_tx = signer.sign_transaction(tx)
        except Exception as e:
            self.logger.error(f"Transaction signing failed: {e}")
            if stage == "execute":
                raise TransactionError(f"Failed to sign transaction: {str(e)}", signer=from_address, stage=stage)
            raise ApprovalRejectedError(f"Failed to sign approval: {str(e)}", signer=from_address, stage=stage)

        try:
            tx_hash = self.w3.eth.send_raw_transaction(signed_tx.raw_transaction)
            self.logger.info(f"Transaction sent: {short_hex(tx_hash, 64)}")
            receipt = self.w3.eth.wait_for_transaction_receipt(
                tx_hash,
                timeout=self.receipt_timeout,
                poll_latency=self.poll_interval
            )
        except ContractLogicError as e:
            reason = _revert_reason(e)
            self.logger.error(f"Safe {stage} reverted: {reason}")
            raise self._rejected(stage, reason, from_address)
        except TRANSPORT_ERRORS as e:
            self.logger.error(f"Provider error during {stage}: {e}")
            raise self._unavailable(stage, e, from_address)
        except Web3Exception as e:
            self.logger.error(f"Node rejected {stage} transaction: {e}")
            raise self._unavailable(stage, e, from_address)

        result = self._convert_receipt(receipt)
        if result.status == 0:
            self.logger.error(f"Safe {stage} transaction {result.tx_hash} failed")
            raise self._rejected(stage, None, from_address)
        return result

    def _convert_receipt(self, web3_receipt: Web3TxReceipt) -> ExecutionReceipt:
        """Receipt model with top-level hashes as 0x hex; log entries become plain dicts."""
        fields = {
            key: "0x" + bytes(value).hex() if isinstance(value, bytes) else value
            for key, value in dict(web3_receipt).items()
        }
        fields["logs"] = [dict(log) for log in fields.get("logs") or []]
        return ExecutionReceipt.model_validate(fields)


def submit(
    verifier: Verifier,
    record: OperationRecord,
    blob: Union[AggregatedSignatureBlob, BytesLike],
    executor: Signer
) -> ExecutionReceipt:
    """
    Hand a record and its aggregated signatures to the Safe for execution

    Args:
        verifier: Safe to execute on
        record: The signed transaction
        blob: Aggregated signatures
        executor: Account sending the execution transaction

    Returns:
        Execution receipt

    Raises:
        ExecutionRevertedError: If the Safe rejects the transaction
        TransportError: If the network could not be reached
    """
    if not isinstance(blob, AggregatedSignatureBlob):
        blob = AggregatedSignatureBlob(data=to_bytes(blob, "signatures"))
    logger.info(
        f"Submitting Safe transaction nonce {record.nonce} to {verifier.address} "
        f"with {len(blob) // 65} signatures"
    )
    return verifier.execute(executor, record, blob)
