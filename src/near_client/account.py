"""
Account facade.

Binds an account's credentials, its access key cache and a shared connection,
and exposes the public operations. Every operation goes through
``sign_and_send_transaction`` and therefore through the retry loop.
"""

from __future__ import annotations
import json
import logging
import threading
from typing import Any, Optional, Sequence, Type, Union

from pydantic import BaseModel, ValidationError

from .config import NetworkConfig
from .crypto.ed25519 import Ed25519KeyPair, Ed25519PublicKey
from .keys.access_key_cache import AccessKeyCache
from .keys.credentials import CredentialStore, FileCredentialStore
from .recovery.retry import ExponentialBackoff, RetryPolicy, TransactionRetrier
from .rpc.connection import Connection, JsonRpcConnection
from .rpc.models import RemoteResult
from .runtime.errors import BuildError, CredentialError, ErrorCode
from .tx.actions import (
    AccessKey, AddKey, CreateAccount, DeleteAccount, DeleteKey, DeployContract,
    FullAccessPermission, FunctionCall, Stake, Transfer,
)
from .tx.builder import TransactionBuilder

logger = logging.getLogger(__name__)

# 100 TGas
DEFAULT_FUNCTION_CALL_GAS = 100_000_000_000_000


def _action(action_type: Type[BaseModel], **fields) -> Any:
    """Construct an action; invalid fields surface as BuildError."""
    try:
        return action_type(**fields)
    except ValidationError as e:
        raise BuildError(f"Invalid {action_type.__name__} action: {e}", cause=e)


class Account:
    """
    Access credentials for one NEAR account.

    Example:
        ```python
        conn = JsonRpcConnection("https://rpc.testnet.near.org")
        account = load_account(conn, testnet_config(), "alice.testnet")
        account.send_money("bob.testnet", 10**24)
        ```
    """

    def __init__(
        self,
        account_id: str,
        key_pair: Ed25519KeyPair,
        connection: Connection,
        retry_policy: Optional[RetryPolicy] = None,
    ):
        """
        Args:
            account_id: Account identifier
            key_pair: Ed25519 key pair registered as an access key of the account
            connection: Shared connection, not owned by the account
            retry_policy: Retry policy for submissions (default: ExponentialBackoff())

        Raises:
            CredentialError: If the public key is not derived from the private key
        """
        if not account_id:
            raise CredentialError("account_id must not be empty")
        if not key_pair.is_consistent():
            raise CredentialError(
                f"public_key does not match private_key for {account_id}",
                ErrorCode.KEY_MISMATCH,
            )

        self.account_id = account_id
        self.key_pair = key_pair
        self.connection = connection
        self.access_keys = AccessKeyCache(connection, account_id)
        self.builder = TransactionBuilder(account_id, key_pair, connection, self.access_keys)
        self.retrier = TransactionRetrier(self.builder, connection, retry_policy or ExponentialBackoff())

    @property
    def public_key(self) -> Ed25519PublicKey:
        return self.key_pair.public_key

    def sign_and_send_transaction(
        self,
        receiver_id: str,
        actions: Sequence,
        cancel: Optional[threading.Event] = None,
    ) -> RemoteResult:
        """
        Sign the given actions and send them as one transaction to receiver_id.

        Args:
            receiver_id: Account the actions apply to
            actions: Ordered sequence of actions
            cancel: Event that interrupts the backoff wait

        Returns:
            The node's transaction outcome
        """
        logger.debug(f"{self.account_id}: sending {len(actions)} action(s) to {receiver_id}")
        return self.retrier.submit(receiver_id, actions, cancel=cancel)

    def send_money(self, receiver_id: str, amount: int) -> RemoteResult:
        """Send ``amount`` yoctoNEAR from this account to receiver_id."""
        return self.sign_and_send_transaction(receiver_id, [_action(Transfer, deposit=amount)])

    def delete_account(self, beneficiary_id: str) -> RemoteResult:
        """Delete this account and send the remaining balance to beneficiary_id."""
        return self.sign_and_send_transaction(
            self.account_id, [_action(DeleteAccount, beneficiary_id=beneficiary_id)]
        )

    def function_call(
        self,
        contract_id: str,
        method_name: str,
        args: Union[bytes, Any] = b"",
        gas: int = DEFAULT_FUNCTION_CALL_GAS,
        amount: int = 0,
    ) -> RemoteResult:
        """
        Call a contract method.

        Args:
            contract_id: Contract account
            method_name: Method to call
            args: Raw argument bytes, or a JSON-serializable object
            gas: Gas budget
            amount: Attached deposit in yoctoNEAR
        """
        if not isinstance(args, (bytes, bytearray)):
            try:
                args = json.dumps(args, separators=(",", ":")).encode("utf-8")
            except (TypeError, ValueError) as e:
                raise BuildError(f"Function call args are not JSON-serializable: {e}", cause=e)
        return self.sign_and_send_transaction(contract_id, [_action(
            FunctionCall,
            method_name=method_name,
            args=bytes(args),
            gas=gas,
            deposit=amount,
        )])

    def create_account(
        self,
        new_account_id: str,
        public_key: Ed25519PublicKey,
        amount: int = 0,
    ) -> RemoteResult:
        """Create a sub-account with a full access key and an initial balance."""
        actions = [
            CreateAccount(),
            _action(AddKey, public_key=public_key, access_key=AccessKey(permission=FullAccessPermission())),
        ]
        if amount:
            actions.insert(1, _action(Transfer, deposit=amount))
        return self.sign_and_send_transaction(new_account_id, actions)

    def deploy_contract(self, code: bytes) -> RemoteResult:
        """Deploy Wasm code to this account."""
        return self.sign_and_send_transaction(self.account_id, [_action(DeployContract, code=code)])

    def add_key(self, public_key: Ed25519PublicKey, access_key: Optional[AccessKey] = None) -> RemoteResult:
        """Add an access key (full access unless access_key says otherwise)."""
        return self.sign_and_send_transaction(
            self.account_id, [_action(AddKey, public_key=public_key, access_key=access_key or AccessKey())]
        )

    def delete_key(self, public_key: Ed25519PublicKey) -> RemoteResult:
        """Remove an access key from this account."""
        result = self.sign_and_send_transaction(self.account_id, [_action(DeleteKey, public_key=public_key)])
        self.access_keys.invalidate(public_key)
        return result

    def stake(self, public_key: Ed25519PublicKey, amount: int) -> RemoteResult:
        """Stake ``amount`` yoctoNEAR with a validator key."""
        return self.sign_and_send_transaction(
            self.account_id, [_action(Stake, stake=amount, public_key=public_key)]
        )

    def __repr__(self) -> str:
        return f"Account(account_id='{self.account_id}', public_key='{self.public_key}')"


def load_account(
    connection: Connection,
    config: NetworkConfig,
    account_id: str,
    store: Optional[CredentialStore] = None,
    retry_policy: Optional[RetryPolicy] = None,
) -> Account:
    """
    Load the credential of account_id and bind it to a connection.

    Args:
        connection: Connection to the network named by config
        config: Network config; selects the credential directory and network id
        account_id: Account to load
        store: Credential store (default: files under config.credentials_dir)
        retry_policy: Retry policy for the account's submissions

    Raises:
        CredentialError: If the credential is missing or invalid
    """
    store = store or FileCredentialStore(config.credentials_dir)
    credential = store.load(config.network_id, account_id)
    logger.info(f"Loaded account {account_id} on {config.network_id} ({credential.public_key})")
    return Account(credential.account_id, credential.key_pair, connection, retry_policy)


def connect(config: NetworkConfig) -> JsonRpcConnection:
    """Open a JSON-RPC connection for a network config."""
    return JsonRpcConnection(config.node_url, timeout=config.timeout)


__all__ = [
    "DEFAULT_FUNCTION_CALL_GAS",
    "Account",
    "load_account",
    "connect",
]
