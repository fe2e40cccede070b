"""
NEAR Python Client - account-centric transaction signing

Builds, signs and submits NEAR transactions for one account, with nonce
sequencing through a per-account access key cache and exponential-backoff
retries that rebuild each attempt with a fresh nonce.
"""

from .account import Account, load_account, connect, DEFAULT_FUNCTION_CALL_GAS
from .config import NetworkConfig, mainnet_config, testnet_config, local_config
from .crypto import Ed25519KeyPair, Ed25519PrivateKey, Ed25519PublicKey, KeyType
from .keys import (
    AccessKeyCache, Credential, CredentialStore, FileCredentialStore, MemoryCredentialStore,
)
from .recovery import ExponentialBackoff, FixedBackoff, RetryPolicy, TransactionRetrier
from .rpc import AccessKeyInfo, BlockHeader, Connection, JsonRpcConnection, RemoteResult
from .runtime.errors import (
    ErrorCode, NearClientError, CredentialError, KeyLookupError, BuildError,
    SubmissionErrorKind, SubmissionError, ExhaustedRetriesError, RetryCancelledError,
    NetworkError, RpcError, EncodingError, ErrorHandler,
)
from .tx import (
    ActionKind, AccessKey, FunctionCallPermission, FullAccessPermission,
    CreateAccount, DeployContract, FunctionCall, Transfer, Stake, AddKey, DeleteKey,
    DeleteAccount, Action, UnsignedTransaction, Signature, SignedTransaction,
)
from .tx.builder import TransactionBuilder

__version__ = "0.1.0"
__all__ = [
    # Account
    "Account",
    "load_account",
    "connect",
    "DEFAULT_FUNCTION_CALL_GAS",

    # Configuration
    "NetworkConfig",
    "mainnet_config",
    "testnet_config",
    "local_config",

    # Keys
    "Ed25519KeyPair",
    "Ed25519PrivateKey",
    "Ed25519PublicKey",
    "KeyType",
    "AccessKeyCache",
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",

    # Submission
    "TransactionBuilder",
    "TransactionRetrier",
    "RetryPolicy",
    "ExponentialBackoff",
    "FixedBackoff",

    # RPC
    "Connection",
    "JsonRpcConnection",
    "AccessKeyInfo",
    "BlockHeader",
    "RemoteResult",

    # Errors
    "ErrorCode",
    "NearClientError",
    "CredentialError",
    "KeyLookupError",
    "BuildError",
    "SubmissionErrorKind",
    "SubmissionError",
    "ExhaustedRetriesError",
    "RetryCancelledError",
    "NetworkError",
    "RpcError",
    "EncodingError",
    "ErrorHandler",

    # Transactions
    "ActionKind",
    "AccessKey",
    "FunctionCallPermission",
    "FullAccessPermission",
    "CreateAccount",
    "DeployContract",
    "FunctionCall",
    "Transfer",
    "Stake",
    "AddKey",
    "DeleteKey",
    "DeleteAccount",
    "Action",
    "UnsignedTransaction",
    "Signature",
    "SignedTransaction",
]
