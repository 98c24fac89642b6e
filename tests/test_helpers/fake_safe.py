"""
In-memory Safe that checks signatures the way the contract does.

Only the parts of ``execTransaction`` that concern signatures are modelled:
threshold length check (GS020), approved hashes (GS025) and strictly
increasing owners (GS026).
"""
from typing import Dict, List, Optional, Tuple

from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError
from web3 import Web3

from multisig_sdk.exceptions import ApprovalRejectedError, ExecutionRevertedError, ProviderUnavailableError
from multisig_sdk.hashing import safe_tx_digest, signable_digest
from multisig_sdk.models import AggregatedSignatureBlob, ExecutionReceipt, OperationRecord

ZERO = "0x0000000000000000000000000000000000000000"


class FakeSafe:
    """Safe stand-in implementing the Verifier protocol"""

    def __init__(self, address: str, owners: List[str], threshold: int, chain_id: int = 1, nonce: int = 0):
        self.address = Web3.to_checksum_address(address)
        self._owners = [Web3.to_checksum_address(o) for o in owners]
        self._threshold = threshold
        self.chain_id = chain_id
        self.nonce = nonce
        self.approved: Dict[Tuple[str, bytes], bool] = {}
        self.executed: List[OperationRecord] = []
        self.unavailable = False
        self._tx_count = 0

    def _receipt(self, sender: str) -> ExecutionReceipt:
        self._tx_count += 1
        return ExecutionReceipt.model_validate({
            "transactionHash": "0x" + self._tx_count.to_bytes(32, "big").hex(),
            "blockNumber": 100 + self._tx_count,
            "blockHash": "0x" + "ab" * 32,
            "status": 1,
            "gasUsed": 85000,
            "from": sender,
            "to": self.address,
            "logs": [],
        })

    def current_nonce(self) -> int:
        if self.unavailable:
            raise ProviderUnavailableError("provider down", stage="nonce")
        return self.nonce

    def threshold(self) -> int:
        return self._threshold

    def owners(self) -> List[str]:
        return list(self._owners)

    def is_hash_approved(self, owner: str, digest: bytes) -> bool:
        return self.approved.get((Web3.to_checksum_address(owner), bytes(digest)), False)

    def record_approval(self, signer, digest: bytes) -> ExecutionReceipt:
        if self.unavailable:
            raise ProviderUnavailableError("provider down", signer=signer.address, stage="approve")
        if signer.address not in self._owners:
            raise ApprovalRejectedError("Hash approval rejected: GS030", signer=signer.address, stage="approve")
        self.approved[(signer.address, bytes(digest))] = True
        return self._receipt(signer.address)

    def _recover(self, executor: str, digest: bytes, signature: bytes) -> str:
        r, s, v = signature[:32], signature[32:64], signature[64]
        if v == 0:
            raise ExecutionRevertedError("Safe transaction reverted", reason="GS021")
        if v == 1:
            owner = Web3.to_checksum_address("0x" + r[12:].hex())
            if executor != owner and not self.is_hash_approved(owner, digest):
                raise ExecutionRevertedError("Safe transaction reverted", reason="GS025")
            return owner
        if v > 30:
            message_hash = signable_digest(encode_defunct(primitive=digest))
            recovery = v - 31
        else:
            message_hash = digest
            recovery = v - 27
        try:
            signature_obj = keys.Signature(vrs=(recovery, int.from_bytes(r, "big"), int.from_bytes(s, "big")))
            return signature_obj.recover_public_key_from_msg_hash(message_hash).to_checksum_address()
        except (BadSignature, ValidationError, ValueError):
            # ecrecover yields the zero address on garbage input
            return ZERO

    def check_signatures(self, executor: str, digest: bytes, data: bytes) -> None:
        if len(data) < self._threshold * 65:
            raise ExecutionRevertedError("Safe transaction reverted", reason="GS020")
        last_owner = 0
        for i in range(self._threshold):
            owner = self._recover(executor, digest, data[i * 65:(i + 1) * 65])
            if int(owner, 16) <= last_owner or owner not in self._owners:
                raise ExecutionRevertedError("Safe transaction reverted", reason="GS026")
            last_owner = int(owner, 16)

    def execute(self, executor, record: OperationRecord, blob: AggregatedSignatureBlob) -> ExecutionReceipt:
        if self.unavailable:
            raise ProviderUnavailableError("provider down", stage="execute")
        # execTransaction hashes with the Safe's own nonce, not the record's
        digest = safe_tx_digest(self.address, self.chain_id, record.model_copy(update={"nonce": self.nonce}))
        self.check_signatures(executor.address, digest, blob.data)
        self.nonce += 1
        self.executed.append(record)
        return self._receipt(executor.address)
