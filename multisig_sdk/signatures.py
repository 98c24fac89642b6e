"""
Signature producers for Safe transactions.

Three methods are supported, each yielding a 65-byte SignatureArtifact over the
same Safe transaction hash:

- STRUCTURED: EIP-712 signature over the full SafeTx structure (v is 27/28)
- RAW_HASH: eth_sign style signature over the 32-byte hash (v is 31/32)
- APPROVED_HASH: on-chain ``approveHash`` plus a placeholder (v is 1)

The Safe tells them apart by the trailing byte only.
"""
import logging
from typing import Optional, TYPE_CHECKING

from eth_account.messages import encode_defunct
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from .exceptions import InvalidInputError, UnsupportedRecoveryByteError
from .hashing import safe_message_digest, safe_tx_signable, signable_digest
from .models import OperationRecord, SignatureArtifact, SignatureMethod, SIGNATURE_LENGTH
from .signer import Signer
from .utils import BytesLike, short_hex, to_bytes32, to_checksum

if TYPE_CHECKING:
    from .safe import Verifier

logger = logging.getLogger(__name__)

# eth_sign signatures are marked by adding 4 to v
ETH_SIGN_V_MAP = {
    0: 31,
    1: 32,
    27: 31,
    28: 32,
}

ECDSA_V_MAP = {
    0: 27,
    1: 28,
    27: 27,
    28: 28,
}

APPROVED_HASH_V = 1


def adjust_v(v: int, signer: Optional[str] = None) -> int:
    """
    Map an ECDSA recovery byte to the Safe's eth_sign marker

    Raises:
        UnsupportedRecoveryByteError: If v is not one of 0, 1, 27, 28
    """
    try:
        return ETH_SIGN_V_MAP[v]
    except KeyError:
        raise UnsupportedRecoveryByteError(v, signer=signer, stage="sign_raw_hash")


def _signature_bytes(signed, signer: str, stage: str) -> bytes:
    signature = bytes(getattr(signed, "signature", signed))
    if len(signature) != SIGNATURE_LENGTH:
        raise InvalidInputError(
            f"Signer returned {len(signature)} byte signature, expected {SIGNATURE_LENGTH}",
            signer=signer,
            stage=stage
        )
    return signature


def sign_structured(
    signer: Signer,
    verifier: str,
    chain_id: int,
    record: OperationRecord,
    digest: BytesLike
) -> SignatureArtifact:
    """
    Sign the full EIP-712 SafeTx structure

    The signature is returned in its native form (v of 27 or 28); a v of 0/1
    is normalised to 27/28 so the Safe does not mistake it for a contract or
    approved-hash signature.

    Args:
        signer: Signer holding the owner key
        verifier: Safe address
        chain_id: Chain id of the Safe
        record: Transaction to sign
        digest: Safe transaction hash computed once for this record; the
            structure being signed must hash to exactly this value

    Returns:
        SignatureArtifact with method STRUCTURED

    Raises:
        InvalidInputError: If ``digest`` does not match the record
        UnsupportedRecoveryByteError: If the signer returns an unexpected v
    """
    address = signer.address
    signable = safe_tx_signable(verifier, chain_id, record)
    if signable_digest(signable) != to_bytes32(digest):
        raise InvalidInputError(
            "Digest does not match the transaction being signed",
            signer=address,
            stage="sign_structured"
        )

    signature = _signature_bytes(signer.sign_message(signable), address, "sign_structured")
    v = signature[-1]
    if v not in ECDSA_V_MAP:
        raise UnsupportedRecoveryByteError(v, signer=address, stage="sign_structured")

    data = signature[:-1] + bytes([ECDSA_V_MAP[v]])
    logger.debug(f"Structured signature from {address}: {short_hex(data)}")
    return SignatureArtifact(signer=address, data=data, method=SignatureMethod.STRUCTURED)


def sign_raw_hash(signer: Signer, digest: BytesLike) -> SignatureArtifact:
    """
    Sign a 32-byte hash as an EIP-191 personal message (eth_sign)

    The recovery byte is remapped from 27/28 (or 0/1) to 31/32, which is how
    the Safe recognises eth_sign signatures.

    Args:
        signer: Signer holding the owner key
        digest: Safe transaction or message hash

    Returns:
        SignatureArtifact with method RAW_HASH

    Raises:
        InvalidInputError: If the digest is not 32 bytes
        UnsupportedRecoveryByteError: If the signer returns an unexpected v
    """
    address = signer.address
    digest = to_bytes32(digest)
    signed = signer.sign_message(encode_defunct(primitive=digest))
    signature = _signature_bytes(signed, address, "sign_raw_hash")

    data = signature[:-1] + bytes([adjust_v(signature[-1], signer=address)])
    logger.debug(f"Raw hash signature from {address}: {short_hex(data)}")
    return SignatureArtifact(signer=address, data=data, method=SignatureMethod.RAW_HASH)


def sign_safe_message(signer: Signer, verifier: str, chain_id: int, message: BytesLike) -> SignatureArtifact:
    """Sign an off-wallet message under the Safe's domain, eth_sign style."""
    return sign_raw_hash(signer, safe_message_digest(verifier, chain_id, message))


def approved_hash_signature(address: str) -> bytes:
    """
    Placeholder signature for an owner that approved the hash on-chain

    Layout: 12 zero bytes, the 20-byte owner address (r), 32 zero bytes (s)
    and v = 1.
    """
    owner = bytes.fromhex(to_checksum(address)[2:])
    return b"\x00" * 12 + owner + b"\x00" * 32 + bytes([APPROVED_HASH_V])


def approve_on_chain(
    signer: Signer,
    verifier: "Verifier",
    digest: BytesLike,
    skip_on_chain_approval: bool = False
) -> SignatureArtifact:
    """
    Approve a Safe transaction hash on-chain and return its placeholder

    Args:
        signer: Owner sending the ``approveHash`` transaction
        verifier: Safe to record the approval with
        digest: Safe transaction hash
        skip_on_chain_approval: Only build the placeholder; the caller
            guarantees the approval already exists on-chain

    Returns:
        SignatureArtifact with method APPROVED_HASH

    Raises:
        ApprovalRejectedError: If the Safe rejects the approval
        ProviderUnavailableError: If the provider cannot be reached
    """
    address = signer.address
    digest = to_bytes32(digest)
    if skip_on_chain_approval:
        logger.debug(f"Skipping on-chain approval of {short_hex(digest, 18)} for {address}")
    else:
        verifier.record_approval(signer, digest)
        logger.info(f"Owner {address} approved {short_hex(digest, 18)} on-chain")
    return SignatureArtifact(
        signer=address,
        data=approved_hash_signature(address),
        method=SignatureMethod.APPROVED_HASH
    )


def recover_signer(digest: BytesLike, artifact: SignatureArtifact) -> str:
    """
    Recover the owner address a signature artifact attests to

    Args:
        digest: Safe transaction hash the artifact is supposed to cover
        artifact: The artifact to check

    Returns:
        Checksummed address recovered from the signature (or embedded in the
        placeholder for approved hashes)

    Raises:
        InvalidInputError: If the signature cannot be recovered
        UnsupportedRecoveryByteError: If v does not match the artifact method
    """
    digest = to_bytes32(digest)
    data = artifact.data
    v = data[-1]

    if artifact.method == SignatureMethod.APPROVED_HASH:
        if v != APPROVED_HASH_V:
            raise UnsupportedRecoveryByteError(v, signer=artifact.signer, stage="recover")
        return to_checksum("0x" + data[12:32].hex())

    if artifact.method == SignatureMethod.RAW_HASH:
        if v not in (31, 32):
            raise UnsupportedRecoveryByteError(v, signer=artifact.signer, stage="recover")
        message_hash = signable_digest(encode_defunct(primitive=digest))
        recovery = v - 31
    else:
        if v not in (27, 28):
            raise UnsupportedRecoveryByteError(v, signer=artifact.signer, stage="recover")
        message_hash = digest
        recovery = v - 27

    r = int.from_bytes(data[0:32], "big")
    s = int.from_bytes(data[32:64], "big")
    try:
        public_key = keys.Signature(vrs=(recovery, r, s)).recover_public_key_from_msg_hash(message_hash)
    except (BadSignature, ValidationError) as e:
        raise InvalidInputError(f"Cannot recover signer: {str(e)}", signer=artifact.signer, stage="recover")
    return public_key.to_checksum_address()
