"""
NEAR node RPC: connection interface, JSON-RPC implementation and result models.
"""

from .connection import Connection, JsonRpcConnection
from .models import AccessKeyInfo, BlockHeader, RemoteResult

__all__ = [
    "Connection",
    "JsonRpcConnection",
    "AccessKeyInfo",
    "BlockHeader",
    "RemoteResult",
]
