"""
MultisigClient - Main client for coordinating Safe multi-signature transactions.
"""
import logging
import urllib.parse
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Any, Iterable, List, Optional, Sequence, Union

from web3 import Web3

from .aggregation import aggregate
from .builder import build_contract_call, build_operation
from .config import NetworkConfig
from .exceptions import MultisigError, NetworkError, ProviderUnavailableError
from .hashing import safe_message_digest, safe_tx_digest
from .models import (
    AggregatedSignatureBlob,
    ExecutionReceipt,
    Operation,
    OperationRecord,
    SignatureArtifact,
    SignatureCollection,
    SignatureMethod,
)
from .safe import SafeContract, Verifier, submit
from .signatures import approve_on_chain, sign_raw_hash, sign_safe_message, sign_structured
from .signer import Signer
from .utils import BytesLike, short_hex, to_checksum


class MultisigClient:
    """
    Client for coordinating multi-signature transactions on a Safe.

    This client handles:
    1. Building Safe transactions with the Safe's current nonce
    2. Computing the Safe transaction hash once per transaction
    3. Collecting structured, raw-hash or on-chain approvals from owners
    4. Aggregating them and submitting ``execTransaction``

    To use this client, you'll need:
    - An Ethereum RPC endpoint
    - The Safe address
    - Owner signers, plus an executor signer for submission
    """

    def __init__(
        self,
        rpc_url: str,
        safe_address: str,
        signer: Optional[Signer] = None,
        expected_chain_id: Optional[int] = None,
        verifier: Optional[Verifier] = None,
        receipt_timeout: int = 120,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the MultisigClient

        Args:
            rpc_url: Ethereum RPC endpoint URL
            safe_address: Address of the Safe
            signer: Default executor for submissions (optional)
            expected_chain_id: Chain id the Safe is expected on; checked by
                ``assert_chain_id``
            verifier: Safe implementation to use instead of the web3-backed one
            receipt_timeout: Seconds to wait for transaction receipts
            logger: Optional logger instance to use for debug/info logging

        Raises:
            ValueError: If the RPC URL doesn't use https (unless it's localhost/127.0.0.1)
            InvalidInputError: If the Safe address is malformed
        """
        parsed = urllib.parse.urlparse(rpc_url)
        host = parsed.netloc.split(':')[0]
        is_local = host in ('localhost', '127.0.0.1')
        if parsed.scheme != 'https' and not is_local:
            raise ValueError(f"rpc_url must use https:// for security (got: {parsed.scheme}://)")

        self.rpc_url = rpc_url
        self.safe_address = to_checksum(safe_address, "safe address")
        self.signer = signer
        self.expected_chain_id = expected_chain_id
        self.logger = logger or logging.getLogger(__name__)
        self._network_name: Optional[str] = None

        self.w3 = Web3(Web3.HTTPProvider(rpc_url))
        self.verifier: Verifier = verifier or SafeContract(
            self.w3,
            self.safe_address,
            receipt_timeout=receipt_timeout,
            logger=self.logger
        )

    @classmethod
    def from_network(
        cls,
        network: str,
        safe_address: Optional[str] = None,
        signer: Optional[Signer] = None,
        rpc_url: Optional[str] = None,
        **kwargs: Any
    ) -> "MultisigClient":
        """
        Create a client from a named network in ``networks.json``

        Args:
            network: Network name (e.g. "sepolia")
            safe_address: Safe address; falls back to ``<NETWORK>_SAFE_ADDRESS``
            signer: Default executor
            rpc_url: RPC URL override

        Raises:
            ValueError: If the network is unknown or no Safe address is known
        """
        safe = NetworkConfig.get_safe_address(network, override=safe_address)
        if not safe:
            raise ValueError(f"No Safe address configured for network {network}")
        client = cls(
            rpc_url=NetworkConfig.get_rpc_url(network, override=rpc_url),
            safe_address=safe,
            signer=signer,
            expected_chain_id=NetworkConfig.get_chain_id(network),
            **kwargs
        )
        client._network_name = network
        return client

    @property
    def address(self) -> str:
        """
        Get the default executor address

        Raises:
            ValueError: If no signer is available
        """
        if self.signer:
            return self.signer.address
        raise ValueError("No signer available")

    def chain_id(self) -> int:
        """
        Chain id reported by the provider

        Raises:
            ProviderUnavailableError: If the provider cannot be queried
        """
        try:
            return int(self.w3.eth.chain_id)
        except Exception as e:
            self.logger.error(f"Failed to fetch chain id: {e}")
            raise ProviderUnavailableError(f"Failed to fetch chain id: {str(e)}", stage="chain_id")

    def assert_chain_id(self) -> None:
        """
        Check the provider is on the expected chain

        Raises:
            NetworkError: If the chain id differs or cannot be read
        """
        if self.expected_chain_id is None:
            self.logger.warning("No expected chain ID set, skipping chain ID validation")
            return

        try:
            actual = int(self.w3.eth.chain_id)
        except Exception as e:
            raise NetworkError(f"Failed to validate chain ID: {str(e)}", stage="chain_id")

        if actual != self.expected_chain_id:
            network = f" for network {self._network_name}" if self._network_name else ""
            raise NetworkError(
                f"Chain ID mismatch{network}: expected {self.expected_chain_id}, got {actual}",
                stage="chain_id"
            )

    def build(
        self,
        target: str,
        payload: Optional[BytesLike] = None,
        kind: Union[Operation, int] = Operation.CALL,
        nonce: Optional[int] = None,
        **fields: Any
    ) -> OperationRecord:
        """
        Build a Safe transaction, reading the Safe nonce when none is given

        Raises:
            InvalidInputError: If any field is malformed
            ProviderUnavailableError: If the nonce must be read and cannot be
        """
        if nonce is None:
            nonce = self.verifier.current_nonce()
        return build_operation(target, payload, kind, nonce, **fields)

    def build_contract_call(
        self,
        contract: Any,
        method: str,
        params: Sequence[Any],
        nonce: Optional[int] = None
    ) -> OperationRecord:
        """Build a Safe transaction calling ``method(*params)`` on ``contract``."""
        if nonce is None:
            nonce = self.verifier.current_nonce()
        return build_contract_call(contract, method, params, nonce)

    def digest(self, record: OperationRecord, chain_id: Optional[int] = None) -> bytes:
        """Safe transaction hash of ``record`` on the connected chain."""
        return safe_tx_digest(self.safe_address, chain_id or self.chain_id(), record)

    def message_digest(self, message: BytesLike) -> bytes:
        """Safe message hash of an off-wallet message."""
        return safe_message_digest(self.safe_address, self.chain_id(), message)

    def sign_structured(
        self,
        signer: Signer,
        record: OperationRecord,
        digest: BytesLike,
        chain_id: Optional[int] = None
    ) -> SignatureArtifact:
        """
        Sign ``record`` as EIP-712 structured data

        ``digest`` is the hash from ``digest(record)``; the structure handed to
        the signer must hash to it, so every signer in a flow attests to the
        same value even if the provider switches chains in between.

        Raises:
            InvalidInputError: If the record on the given chain does not hash to ``digest``
        """
        return sign_structured(signer, self.safe_address, chain_id or self.chain_id(), record, digest)

    def sign_raw_hash(self, signer: Signer, digest: BytesLike) -> SignatureArtifact:
        return sign_raw_hash(signer, digest)

    def sign_message(self, signer: Signer, message: BytesLike) -> SignatureArtifact:
        return sign_safe_message(signer, self.safe_address, self.chain_id(), message)

    def approve_on_chain(
        self,
        signer: Signer,
        record: OperationRecord,
        skip_on_chain_approval: bool = False,
        digest: Optional[BytesLike] = None
    ) -> SignatureArtifact:
        """
        Approve ``record`` on-chain from ``signer`` (or only build the placeholder)

        Raises:
            ApprovalRejectedError: If the Safe rejects the approval
            ProviderUnavailableError: If the provider cannot be reached
        """
        if digest is None:
            digest = self.digest(record)
        return approve_on_chain(signer, self.verifier, digest, skip_on_chain_approval)

    def aggregate(self, artifacts: Iterable[SignatureArtifact]) -> AggregatedSignatureBlob:
        return aggregate(artifacts)

    def submit(
        self,
        record: OperationRecord,
        blob: Union[AggregatedSignatureBlob, BytesLike],
        executor: Optional[Signer] = None
    ) -> ExecutionReceipt:
        """
        Execute ``record`` on the Safe with the aggregated signatures

        Args:
            record: The signed transaction
            blob: Aggregated signatures
            executor: Account sending the transaction (defaults to the client signer)

        Raises:
            ValueError: If no executor is available
            ExecutionRevertedError: If the Safe rejects the transaction
            TransportError: If the network could not be reached
        """
        executor = executor or self.signer
        if executor is None:
            raise ValueError("No signer available to submit the transaction")
        return submit(self.verifier, record, blob, executor)

    def collect_signatures(
        self,
        signers: Sequence[Signer],
        record: OperationRecord,
        method: SignatureMethod = SignatureMethod.STRUCTURED,
        timeout: Optional[float] = None,
        skip_on_chain_approval: bool = False,
        max_workers: Optional[int] = None
    ) -> SignatureCollection:
        """
        Ask every signer for an artifact concurrently

        The Safe transaction hash is computed once and shared by all signers.
        Signers still running when ``timeout`` expires are abandoned and
        reported in ``pending``; signer failures are reported in ``failures``
        keyed by signer address. Nothing is retried.

        Args:
            signers: Owners to collect from
            record: Transaction to sign
            method: Signing method used by every signer
            timeout: Seconds to wait for all signers (None waits forever)
            skip_on_chain_approval: Passed to on-chain approvals
            max_workers: Thread pool size (defaults to one thread per signer)

        Returns:
            SignatureCollection with the completed subset
        """
        if not signers:
            return SignatureCollection()

        chain_id = self.chain_id()
        digest = self.digest(record, chain_id)
        self.logger.debug(
            f"Collecting {method.value} signatures from {len(signers)} signers for {short_hex(digest, 18)}"
        )

        def produce(signer: Signer) -> SignatureArtifact:
            if method == SignatureMethod.STRUCTURED:
                return sign_structured(signer, self.safe_address, chain_id, record, digest)
            if method == SignatureMethod.RAW_HASH:
                return sign_raw_hash(signer, digest)
            return approve_on_chain(signer, self.verifier, digest, skip_on_chain_approval)

        pool = ThreadPoolExecutor(max_workers=max_workers or len(signers))
        try:
            futures = {pool.submit(produce, signer): signer for signer in signers}
            done, not_done = wait(futures, timeout=timeout)
        finally:
            pool.shutdown(wait=False, cancel_futures=True)

        collection = SignatureCollection()
        for future in done:
            address = futures[future].address
            error = future.exception()
            if error is not None:
                self.logger.warning(f"Signer {address} failed: {error}")
                collection.failures[address] = error
            else:
                collection.artifacts.append(future.result())
        for future in not_done:
            address = futures[future].address
            self.logger.warning(f"Signer {address} did not respond within {timeout}s")
            collection.pending.append(address)
        return collection

    def execute_with_signers(
        self,
        record: OperationRecord,
        signers: Sequence[Signer],
        executor: Optional[Signer] = None,
        timeout: Optional[float] = None
    ) -> ExecutionReceipt:
        """
        Collect structured signatures from all signers and execute

        Raises:
            The first signer failure, if any signer fails
            MultisigError: If a signer did not respond in time
            ExecutionRevertedError / TransportError: From submission
        """
        collection = self.collect_signatures(signers, record, timeout=timeout)
        if collection.failures:
            raise next(iter(collection.failures.values()))
        if collection.pending:
            raise MultisigError(
                f"Signers did not respond: {', '.join(collection.pending)}",
                stage="collect"
            )
        blob = aggregate(collection.artifacts)
        return self.submit(record, blob, executor)

    def execute_contract_call_with_signers(
        self,
        contract: Any,
        method: str,
        params: Sequence[Any],
        signers: Sequence[Signer],
        executor: Optional[Signer] = None
    ) -> ExecutionReceipt:
        """Build a contract call at the current Safe nonce, sign it with all signers and execute."""
        record = self.build_contract_call(contract, method, params)
        return self.execute_with_signers(record, signers, executor)

    def owners(self) -> List[str]:
        return self.verifier.owners()

    def threshold(self) -> int:
        return self.verifier.threshold()
