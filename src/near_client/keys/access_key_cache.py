"""
Per-account cache of access keys and their nonces.

Entries are keyed by the structured pair (account_id, public_key) and are
filled lazily from the connection. Nonce claims on one entry are serialized
with that entry's lock, so two callers signing with the same key never claim
the same nonce.
"""

from __future__ import annotations
import logging
import threading
from typing import TYPE_CHECKING, Dict, Optional, Tuple

from ..crypto.ed25519 import Ed25519PublicKey
from ..rpc.models import AccessKeyInfo

if TYPE_CHECKING:
    from ..rpc.connection import Connection

logger = logging.getLogger(__name__)

CacheKey = Tuple[str, Ed25519PublicKey]


class _Entry:
    __slots__ = ("info", "lock")

    def __init__(self, info: AccessKeyInfo):
        self.info = info
        self.lock = threading.Lock()


class AccessKeyCache:
    """
    Access key cache owned by a single Account.

    ``get`` returns immutable snapshots; ``advance_nonce`` is the only local
    mutation and is not persisted to the node.
    """

    def __init__(self, connection: Connection, account_id: str):
        """
        Args:
            connection: Shared connection used to fetch missing entries
            account_id: Account whose keys this cache holds
        """
        self._connection = connection
        self._account_id = account_id
        self._entries: Dict[CacheKey, _Entry] = {}
        self._registry_lock = threading.Lock()

    @property
    def account_id(self) -> str:
        return self._account_id

    def _key(self, public_key: Ed25519PublicKey) -> CacheKey:
        return (self._account_id, public_key)

    def _entry(self, public_key: Ed25519PublicKey) -> _Entry:
        key = self._key(public_key)
        with self._registry_lock:
            entry = self._entries.get(key)
        if entry is not None:
            return entry

        # Fetch outside the registry lock; the first writer wins
        info = self._connection.view_access_key(self._account_id, public_key)
        logger.debug(f"Fetched access key {public_key} for {self._account_id}: nonce={info.nonce}")
        with self._registry_lock:
            return self._entries.setdefault(key, _Entry(info))

    def get(self, public_key: Ed25519PublicKey) -> AccessKeyInfo:
        """
        Return the cached record, querying the node on a miss.

        Raises:
            KeyLookupError: If the node has no such key for the account
        """
        return self._entry(public_key).info

    def advance_nonce(self, public_key: Ed25519PublicKey) -> int:
        """
        Claim the next nonce for a key.

        An unestablished nonce (None) advances to 1.

        Returns:
            The claimed nonce
        """
        entry = self._entry(public_key)
        with entry.lock:
            nonce = (entry.info.nonce or 0) + 1
            entry.info = entry.info.model_copy(update={"nonce": nonce})
        logger.debug(f"Claimed nonce {nonce} for {self._account_id} {public_key}")
        return nonce

    def reconcile(self, public_key: Ed25519PublicKey, ak_nonce: int) -> Optional[int]:
        """
        Raise the cached nonce to at least the node's reported value.

        Never lowers the nonce. No-op if the key is not cached.

        Returns:
            The cached nonce after reconciliation, or None if not cached
        """
        with self._registry_lock:
            entry = self._entries.get(self._key(public_key))
        if entry is None:
            return None
        with entry.lock:
            current = entry.info.nonce or 0
            if ak_nonce > current:
                logger.info(
                    f"Reconciling nonce for {self._account_id} {public_key}: {current} -> {ak_nonce}"
                )
                entry.info = entry.info.model_copy(update={"nonce": ak_nonce})
            return entry.info.nonce

    def invalidate(self, public_key: Ed25519PublicKey) -> bool:
        """Drop a cached entry so the next access re-queries the node."""
        with self._registry_lock:
            return self._entries.pop(self._key(public_key), None) is not None

    def __contains__(self, public_key: Ed25519PublicKey) -> bool:
        with self._registry_lock:
            return self._key(public_key) in self._entries

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)
