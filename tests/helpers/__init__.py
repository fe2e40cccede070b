from .mocks import (
    BLOCK_HASH, StubConnection, FailingConnection, nonce_conflict,
)

__all__ = [
    "BLOCK_HASH",
    "StubConnection",
    "FailingConnection",
    "nonce_conflict",
]
