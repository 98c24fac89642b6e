"""
Pytest fixtures for the multisig SDK tests.
"""
import pytest
from web3.providers.rpc import HTTPProvider

from multisig_sdk.builder import build_operation
from multisig_sdk.signer.local import LocalSigner

from tests.test_helpers import (
    FakeSafe,
    create_test_client,
    make_signers,
    EXECUTOR_KEY,
    TEST_CHAIN_ID,
    TEST_SAFE,
)

SCENARIO_TARGET = "0xAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAAA"


RPC_STUB_RESULTS = {
    "eth_chainId": hex(TEST_CHAIN_ID),
    "eth_gasPrice": hex(10 ** 9),
}


@pytest.fixture(autouse=True)
def _patch_http_provider(monkeypatch):
    """Answer JSON-RPC calls locally so clients built on a real HTTPProvider never hit the network"""
    def _respond(self, method, params=None, _=None):
        return {"jsonrpc": "2.0", "id": 1, "result": RPC_STUB_RESULTS.get(method, "0x0")}

    monkeypatch.setattr(HTTPProvider, "make_request", _respond, raising=True)


@pytest.fixture
def owners():
    """Three Safe owners, in key order (not address order)"""
    return make_signers()[:3]


@pytest.fixture
def outsider():
    """A signer that is not a Safe owner"""
    return make_signers()[3]


@pytest.fixture
def executor():
    return LocalSigner(EXECUTOR_KEY)


@pytest.fixture
def fake_safe(owners):
    """2-of-3 Safe at nonce 5 on chain 1"""
    return FakeSafe(TEST_SAFE, [o.address for o in owners], threshold=2, chain_id=TEST_CHAIN_ID, nonce=5)


@pytest.fixture
def client(fake_safe, executor):
    return create_test_client(verifier=fake_safe, signer=executor)


@pytest.fixture
def record():
    """The transaction used by the end-to-end scenarios"""
    return build_operation(SCENARIO_TARGET, "0xabcd", nonce=5)
