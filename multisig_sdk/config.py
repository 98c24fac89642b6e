"""
Network configuration for the multisig SDK.

Networks are read from the packaged ``networks.json``. RPC URLs and Safe
addresses can be overridden per network through ``<NETWORK>_RPC_URL`` and
``<NETWORK>_SAFE_ADDRESS`` environment variables.
"""
import importlib.resources
import json
import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)


def _env_prefix(network: str) -> str:
    return network.upper().replace("-", "_")


class NetworkConfig:
    """Access to the packaged network definitions"""

    _networks_cache: Optional[Dict[str, Dict[str, Any]]] = None

    @classmethod
    def load_networks(cls) -> Dict[str, Dict[str, Any]]:
        """
        Load all network definitions (cached after the first call)

        Returns:
            Mapping of network name to its configuration
        """
        if cls._networks_cache is None:
            resource = importlib.resources.files("multisig_sdk").joinpath("networks.json")
            with resource.open("r") as f:
                cls._networks_cache = json.load(f)
            logger.debug(f"Loaded {len(cls._networks_cache)} network definitions")
        return cls._networks_cache

    @classmethod
    def get_network(cls, network: str) -> Dict[str, Any]:
        """
        Get configuration for one network

        Raises:
            ValueError: If the network is unknown
        """
        networks = cls.load_networks()
        if network not in networks:
            available = ", ".join(sorted(networks))
            raise ValueError(f"Unknown network: {network}. Available networks: {available}")
        return networks[network]

    @classmethod
    def get_rpc_url(cls, network: str, override: Optional[str] = None) -> str:
        """RPC URL: explicit override, then env var, then the packaged value."""
        if override:
            return override
        env_url = os.environ.get(f"{_env_prefix(network)}_RPC_URL")
        if env_url:
            return env_url
        return cls.get_network(network)["rpc"]

    @classmethod
    def get_chain_id(cls, network: str) -> int:
        return int(cls.get_network(network)["chainId"])

    @classmethod
    def get_safe_address(cls, network: str, override: Optional[str] = None) -> Optional[str]:
        """Safe address: explicit override, then env var, then the packaged value."""
        if override:
            return override
        env_address = os.environ.get(f"{_env_prefix(network)}_SAFE_ADDRESS")
        if env_address:
            return env_address
        return cls.get_network(network).get("safe")
