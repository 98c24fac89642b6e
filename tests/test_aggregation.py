"""
Tests for ordering and concatenating signature artifacts.
"""
import itertools

import pytest

from multisig_sdk.aggregation import aggregate
from multisig_sdk.exceptions import DuplicateSignerError
from multisig_sdk.models import AggregatedSignatureBlob, SignatureArtifact, SignatureMethod

ADDR_1 = "0x0100000000000000000000000000000000000000"
ADDR_2 = "0x0200000000000000000000000000000000000000"
ADDR_3 = "0x0300000000000000000000000000000000000000"


def make_artifact(address, fill, method=SignatureMethod.STRUCTURED, v=27):
    return SignatureArtifact(signer=address, data=bytes([fill]) * 64 + bytes([v]), method=method)


@pytest.fixture
def artifacts():
    return [make_artifact(ADDR_3, 0x33), make_artifact(ADDR_1, 0x11), make_artifact(ADDR_2, 0x22)]


def test_aggregate_sorts_by_signer_address(artifacts):
    blob = aggregate(artifacts)

    assert len(blob) == 195
    assert blob.data[0:65] == artifacts[1].data
    assert blob.data[65:130] == artifacts[2].data
    assert blob.data[130:195] == artifacts[0].data
    assert [int(s, 16) for s in blob.signers] == sorted(int(a, 16) for a in (ADDR_1, ADDR_2, ADDR_3))


def test_aggregate_is_independent_of_arrival_order(artifacts):
    blobs = {aggregate(list(p)).data for p in itertools.permutations(artifacts)}
    assert len(blobs) == 1


def test_aggregate_compares_addresses_numerically():
    lower = "0x00000000000000000000000000000000000000ff"
    upper = "0x0000000000000000000000000000000000000100"
    blob = aggregate([make_artifact(upper, 0x02), make_artifact(lower, 0x01)])
    assert blob.signers == (
        SignatureArtifact(signer=lower, data=b"\x00" * 65, method=SignatureMethod.STRUCTURED).signer,
        SignatureArtifact(signer=upper, data=b"\x00" * 65, method=SignatureMethod.STRUCTURED).signer,
    )


def test_aggregate_mixes_methods():
    blob = aggregate([
        make_artifact(ADDR_2, 0x22, SignatureMethod.RAW_HASH, 31),
        make_artifact(ADDR_1, 0x11, SignatureMethod.APPROVED_HASH, 1),
        make_artifact(ADDR_3, 0x33, SignatureMethod.STRUCTURED, 28),
    ])
    assert [blob.data[64], blob.data[129], blob.data[194]] == [1, 31, 28]


def test_aggregate_collapses_exact_duplicates(artifacts):
    blob = aggregate(artifacts + [artifacts[0]])
    assert len(blob) == 195
    assert len(blob.signers) == 3


def test_aggregate_rejects_conflicting_signatures():
    with pytest.raises(DuplicateSignerError, match="Conflicting signatures") as exc_info:
        aggregate([make_artifact(ADDR_1, 0x11), make_artifact(ADDR_1, 0x12)])
    assert exc_info.value.stage == "aggregate"
    assert exc_info.value.signer == ADDR_1


def test_aggregate_rejects_same_signer_with_two_methods():
    with pytest.raises(DuplicateSignerError):
        aggregate([
            make_artifact(ADDR_1, 0x11, SignatureMethod.RAW_HASH, 31),
            make_artifact(ADDR_1, 0x11, SignatureMethod.STRUCTURED, 27),
        ])


def test_aggregate_empty():
    blob = aggregate([])
    assert blob == AggregatedSignatureBlob()
    assert len(blob) == 0
    assert blob.hex() == "0x"


def test_aggregate_accepts_generator(artifacts):
    assert aggregate(a for a in artifacts) == aggregate(artifacts)
