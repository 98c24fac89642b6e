"""
Aggregation of per-signer artifacts into a Safe signature blob.
"""
import logging
from typing import Dict, Iterable

from .exceptions import DuplicateSignerError
from .models import AggregatedSignatureBlob, SignatureArtifact
from .utils import address_key

logger = logging.getLogger(__name__)


def aggregate(artifacts: Iterable[SignatureArtifact]) -> AggregatedSignatureBlob:
    """
    Concatenate signatures in ascending signer order

    The Safe walks the blob expecting strictly increasing owner addresses, so
    the order is a function of the signer set only, never of arrival order.

    Args:
        artifacts: Any collection of artifacts; exact duplicates are collapsed

    Returns:
        AggregatedSignatureBlob (empty if no artifacts were given)

    Raises:
        DuplicateSignerError: If one signer contributed two different artifacts
    """
    by_signer: Dict[str, SignatureArtifact] = {}
    for artifact in artifacts:
        existing = by_signer.get(artifact.signer)
        if existing is None:
            by_signer[artifact.signer] = artifact
        elif existing != artifact:
            raise DuplicateSignerError(
                f"Conflicting signatures for signer {artifact.signer}",
                signer=artifact.signer,
                stage="aggregate"
            )

    ordered = sorted(by_signer.values(), key=lambda a: address_key(a.signer))
    blob = AggregatedSignatureBlob(
        data=b"".join(a.data for a in ordered),
        signers=tuple(a.signer for a in ordered)
    )
    logger.debug(f"Aggregated {len(ordered)} signatures ({len(blob)} bytes)")
    return blob
