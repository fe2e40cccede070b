"""
Network configuration.
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Optional

from .keys.credentials import DEFAULT_CREDENTIALS_DIR

NODE_URLS: Dict[str, str] = {
    "mainnet": "https://rpc.mainnet.near.org",
    "testnet": "https://rpc.testnet.near.org",
    "local": "http://127.0.0.1:3030",
}


@dataclass
class NetworkConfig:
    """Configuration for a connection to one NEAR network."""

    network_id: str
    node_url: str
    timeout: float = 30.0
    credentials_dir: Path = field(default_factory=lambda: DEFAULT_CREDENTIALS_DIR)

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> NetworkConfig:
        """
        Build a config from ``NEAR_ENV``, ``NEAR_NODE_URL`` and
        ``NEAR_CREDENTIALS_DIR``. Defaults to testnet.
        """
        env = os.environ if environ is None else environ
        network_id = env.get("NEAR_ENV", "testnet")
        node_url = env.get("NEAR_NODE_URL") or NODE_URLS.get(network_id)
        if not node_url:
            raise ValueError(f"No node URL known for network '{network_id}'; set NEAR_NODE_URL")
        credentials_dir = env.get("NEAR_CREDENTIALS_DIR")
        return cls(
            network_id=network_id,
            node_url=node_url,
            credentials_dir=Path(credentials_dir) if credentials_dir else DEFAULT_CREDENTIALS_DIR,
        )


def mainnet_config(**kwargs) -> NetworkConfig:
    """Config for NEAR mainnet."""
    return NetworkConfig("mainnet", NODE_URLS["mainnet"], **kwargs)


def testnet_config(**kwargs) -> NetworkConfig:
    """Config for NEAR testnet."""
    return NetworkConfig("testnet", NODE_URLS["testnet"], **kwargs)


def local_config(**kwargs) -> NetworkConfig:
    """Config for a local node (nearup / sandbox)."""
    return NetworkConfig("local", NODE_URLS["local"], **kwargs)


__all__ = [
    "NODE_URLS",
    "NetworkConfig",
    "mainnet_config",
    "testnet_config",
    "local_config",
]
