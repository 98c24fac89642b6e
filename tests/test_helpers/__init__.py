from .client_creator import (
    create_test_client,
    make_signers,
    TEST_RPC_URL,
    TEST_SAFE,
    TEST_CHAIN_ID,
    OWNER_KEYS,
    EXECUTOR_KEY,
)
from .fake_safe import FakeSafe

__all__ = [
    "create_test_client",
    "make_signers",
    "FakeSafe",
    "TEST_RPC_URL",
    "TEST_SAFE",
    "TEST_CHAIN_ID",
    "OWNER_KEYS",
    "EXECUTOR_KEY",
]
