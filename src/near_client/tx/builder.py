"""
Transaction builder.

Assembles and signs a transaction for one account:

1. resolve the account's access key through the cache
2. fetch the latest block hash from the connection
3. claim the next nonce
4. assemble the UnsignedTransaction
5. sign sha256 of its canonical encoding
6. wrap into a SignedTransaction

A failure at any step aborts the build; no partial transaction is returned.
"""

from __future__ import annotations
import logging
from typing import TYPE_CHECKING, Sequence, Tuple

from ..crypto.ed25519 import Ed25519KeyPair, KeyType
from ..runtime.errors import BuildError, KeyLookupError, NearClientError
from .transaction import Signature, SignedTransaction, UnsignedTransaction

if TYPE_CHECKING:
    from ..keys.access_key_cache import AccessKeyCache
    from ..rpc.connection import Connection

logger = logging.getLogger(__name__)


class TransactionBuilder:
    """
    Builds signed transactions for a single signer.
    """

    def __init__(
        self,
        signer_id: str,
        key_pair: Ed25519KeyPair,
        connection: Connection,
        cache: AccessKeyCache,
    ):
        """
        Args:
            signer_id: Account that signs and pays for the transaction
            key_pair: Signing key registered as an access key of signer_id
            connection: Source of the latest block hash
            cache: Access key cache for signer_id
        """
        self.signer_id = signer_id
        self.key_pair = key_pair
        self.connection = connection
        self.cache = cache

    def build(self, receiver_id: str, actions: Sequence) -> Tuple[bytes, SignedTransaction]:
        """
        Build and sign a transaction.

        Args:
            receiver_id: Account the actions apply to
            actions: Ordered, non-empty sequence of actions

        Returns:
            (transaction hash, signed transaction)

        Raises:
            KeyLookupError: If the node has no record of the signing key
            BuildError: If the key or block hash cannot be retrieved
        """
        if not actions:
            raise BuildError("A transaction needs at least one action")

        public_key = self.key_pair.public_key

        try:
            self.cache.get(public_key)
        except KeyLookupError:
            raise
        except NearClientError as e:
            raise BuildError(f"Failed to resolve access key {public_key}: {e.message}", cause=e)
        except Exception as e:
            raise BuildError(f"Failed to resolve access key {public_key}: {e}", cause=e)

        try:
            block_hash = self.connection.block().hash_bytes
        except Exception as e:
            raise BuildError(f"Failed to fetch latest block hash: {e}", cause=e)

        nonce = self.cache.advance_nonce(public_key)

        try:
            tx = UnsignedTransaction(
                signer_id=self.signer_id,
                public_key=public_key,
                nonce=nonce,
                receiver_id=receiver_id,
                actions=tuple(actions),
                block_hash=block_hash,
            )
        except ValueError as e:
            raise BuildError(f"Invalid transaction: {e}", cause=e)

        tx_hash = tx.hash()
        signature = Signature(key_type=KeyType.ED25519, data=self.key_pair.sign(tx_hash))
        logger.debug(
            f"Built transaction {tx.hash_b58()} {self.signer_id} -> {receiver_id} "
            f"nonce={nonce} actions={len(tx.actions)}"
        )
        return tx_hash, SignedTransaction(transaction=tx, signature=signature)
