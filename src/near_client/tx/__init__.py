"""
Transaction model for NEAR: actions, transactions and their wire encoding.

The builder lives in ``near_client.tx.builder``; it depends on the access key
cache and the connection, so it is not imported here.
"""

from .actions import (
    ActionKind, PermissionKind, AccessKey, FunctionCallPermission, FullAccessPermission,
    CreateAccount, DeployContract, FunctionCall, Transfer, Stake, AddKey, DeleteKey,
    DeleteAccount, Action,
)
from .transaction import UnsignedTransaction, Signature, SignedTransaction
from .codec import (
    encode_action, decode_action, encode_transaction, decode_transaction,
    encode_signed_transaction, decode_signed_transaction,
)

__all__ = [
    "ActionKind",
    "PermissionKind",
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
    "encode_action",
    "decode_action",
    "encode_transaction",
    "decode_transaction",
    "encode_signed_transaction",
    "decode_signed_transaction",
]
