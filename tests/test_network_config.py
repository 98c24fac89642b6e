"""
Tests for the NetworkConfig module.
"""
import os
from unittest.mock import patch

import pytest

from multisig_sdk.config import NetworkConfig

# Sample network configuration
MOCK_NETWORKS = {
    "test-network": {
        "chainId": 123,
        "rpc": "https://test.example.com",
        "safe": "0x1234567890123456789012345678901234567890"
    },
    "bare": {
        "chainId": 5,
        "rpc": "https://bare.example.com"
    }
}


@pytest.fixture(autouse=True)
def mock_networks():
    """Serve MOCK_NETWORKS from the cache and reset it afterwards"""
    NetworkConfig._networks_cache = MOCK_NETWORKS
    yield
    NetworkConfig._networks_cache = None


class TestNetworkConfig:
    """Test NetworkConfig class."""

    def test_load_networks_cached(self):
        """Test that networks are cached after first load."""
        with patch("importlib.resources.files") as mock_files:
            result = NetworkConfig.load_networks()
            mock_files.assert_not_called()

        assert result == MOCK_NETWORKS

    def test_load_packaged_networks(self):
        """The packaged file defines the supported networks"""
        NetworkConfig._networks_cache = None
        networks = NetworkConfig.load_networks()

        assert networks["mainnet"]["chainId"] == 1
        assert networks["sepolia"]["chainId"] == 11155111
        assert networks["localhost"]["rpc"].startswith("http://localhost")

    def test_get_network(self):
        result = NetworkConfig.get_network("test-network")

        assert result == MOCK_NETWORKS["test-network"]
        assert result["chainId"] == 123

    def test_get_network_not_found(self):
        with pytest.raises(ValueError) as exc_info:
            NetworkConfig.get_network("non-existent-network")

        # Error message lists available networks
        assert "bare, test-network" in str(exc_info.value)

    def test_get_rpc_url_default(self):
        assert NetworkConfig.get_rpc_url("test-network") == "https://test.example.com"

    def test_get_rpc_url_override(self):
        result = NetworkConfig.get_rpc_url("test-network", override="https://override.example.com")
        assert result == "https://override.example.com"

    def test_get_rpc_url_env_var(self):
        with patch.dict(os.environ, {"TEST_NETWORK_RPC_URL": "https://env.example.com"}):
            assert NetworkConfig.get_rpc_url("test-network") == "https://env.example.com"

    def test_get_chain_id(self):
        assert NetworkConfig.get_chain_id("test-network") == 123

    def test_get_safe_address(self):
        result = NetworkConfig.get_safe_address("test-network")
        assert result == "0x1234567890123456789012345678901234567890"

    def test_get_safe_address_env_var(self):
        with patch.dict(os.environ, {"TEST_NETWORK_SAFE_ADDRESS": "0x" + "ab" * 20}):
            assert NetworkConfig.get_safe_address("test-network") == "0x" + "ab" * 20

    def test_get_safe_address_override(self):
        with patch.dict(os.environ, {"TEST_NETWORK_SAFE_ADDRESS": "0x" + "ab" * 20}):
            result = NetworkConfig.get_safe_address("test-network", override="0x" + "cd" * 20)
        assert result == "0x" + "cd" * 20

    def test_get_safe_address_missing(self, monkeypatch):
        monkeypatch.delenv("BARE_SAFE_ADDRESS", raising=False)
        assert NetworkConfig.get_safe_address("bare") is None
