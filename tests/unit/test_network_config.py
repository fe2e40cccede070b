"""
Network configuration tests.
"""

from pathlib import Path

import pytest

from near_client.config import NODE_URLS, NetworkConfig, local_config, mainnet_config, testnet_config
from near_client.keys.credentials import DEFAULT_CREDENTIALS_DIR


def test_presets():
    assert mainnet_config().node_url == "https://rpc.mainnet.near.org"
    assert testnet_config().network_id == "testnet"
    assert local_config(timeout=5.0).timeout == 5.0


def test_from_env_defaults_to_testnet():
    config = NetworkConfig.from_env({})

    assert config.network_id == "testnet"
    assert config.node_url == NODE_URLS["testnet"]
    assert config.credentials_dir == DEFAULT_CREDENTIALS_DIR


def test_from_env_overrides():
    config = NetworkConfig.from_env({
        "NEAR_ENV": "mainnet",
        "NEAR_NODE_URL": "https://archival.example",
        "NEAR_CREDENTIALS_DIR": "/tmp/creds",
    })

    assert config.network_id == "mainnet"
    assert config.node_url == "https://archival.example"
    assert config.credentials_dir == Path("/tmp/creds")


def test_unknown_network_needs_url():
    with pytest.raises(ValueError):
        NetworkConfig.from_env({"NEAR_ENV": "betanet"})
    assert NetworkConfig.from_env({"NEAR_ENV": "betanet", "NEAR_NODE_URL": "http://x"}).node_url == "http://x"
