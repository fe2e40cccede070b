"""
Borsh encoding of actions and transactions.

Layouts follow the network's wire format byte for byte:

    PublicKey          u8 key_type, [u8; 32]
    Signature          u8 key_type, [u8; 64]
    Action             u8 discriminant, variant fields
    Transaction        signer_id, public_key, u64 nonce, receiver_id,
                       [u8; 32] block_hash, Vec<Action>
    SignedTransaction  Transaction, Signature
"""

from __future__ import annotations
from typing import Tuple

from ..codec.reader import BorshReader
from ..codec.writer import BorshWriter
from ..crypto.ed25519 import Ed25519PublicKey, KeyType
from ..runtime.errors import EncodingError
from .actions import (
    ActionKind, PermissionKind, AccessKey, FunctionCallPermission, FullAccessPermission,
    CreateAccount, DeployContract, FunctionCall, Transfer, Stake, AddKey, DeleteKey,
    DeleteAccount,
)
from .transaction import UnsignedTransaction, Signature, SignedTransaction


# =============================================================================
# Keys
# =============================================================================

def write_public_key(w: BorshWriter, key: Ed25519PublicKey) -> None:
    w.u8(KeyType.ED25519)
    w.fixed_bytes(key.to_bytes(), 32)


def read_public_key(r: BorshReader) -> Ed25519PublicKey:
    key_type = r.u8()
    if key_type != KeyType.ED25519:
        raise EncodingError(f"Unsupported key type {key_type}")
    return Ed25519PublicKey(r.fixed_bytes(32))


def _write_access_key(w: BorshWriter, access_key: AccessKey) -> None:
    w.u64(access_key.nonce)
    permission = access_key.permission
    w.u8(permission.kind)
    if isinstance(permission, FunctionCallPermission):
        w.option_tag(permission.allowance is not None)
        if permission.allowance is not None:
            w.u128(permission.allowance)
        w.string(permission.receiver_id)
        w.u32(len(permission.method_names))
        for name in permission.method_names:
            w.string(name)


def _read_access_key(r: BorshReader) -> AccessKey:
    nonce = r.u64()
    kind = r.u8()
    if kind == PermissionKind.FULL_ACCESS:
        return AccessKey(nonce=nonce, permission=FullAccessPermission())
    if kind != PermissionKind.FUNCTION_CALL:
        raise EncodingError(f"Unknown access key permission {kind}")
    allowance = r.u128() if r.option_tag() else None
    receiver_id = r.string()
    method_names = tuple(r.string() for _ in range(r.u32()))
    return AccessKey(
        nonce=nonce,
        permission=FunctionCallPermission(
            allowance=allowance, receiver_id=receiver_id, method_names=method_names
        ),
    )


# =============================================================================
# Actions
# =============================================================================

def write_action(w: BorshWriter, action) -> None:
    """Write the discriminant followed by the active variant's fields."""
    w.u8(action.kind)
    if isinstance(action, CreateAccount):
        pass
    elif isinstance(action, DeployContract):
        w.bytes(action.code)
    elif isinstance(action, FunctionCall):
        w.string(action.method_name)
        w.bytes(action.args)
        w.u64(action.gas)
        w.u128(action.deposit)
    elif isinstance(action, Transfer):
        w.u128(action.deposit)
    elif isinstance(action, Stake):
        w.u128(action.stake)
        write_public_key(w, action.public_key)
    elif isinstance(action, AddKey):
        write_public_key(w, action.public_key)
        _write_access_key(w, action.access_key)
    elif isinstance(action, DeleteKey):
        write_public_key(w, action.public_key)
    elif isinstance(action, DeleteAccount):
        w.string(action.beneficiary_id)
    else:
        raise EncodingError(f"Unsupported action type: {type(action).__name__}")


def read_action(r: BorshReader):
    """Read one discriminant-tagged action."""
    tag = r.u8()
    try:
        kind = ActionKind(tag)
    except ValueError:
        raise EncodingError(f"Unknown action discriminant {tag}")

    if kind is ActionKind.CREATE_ACCOUNT:
        return CreateAccount()
    if kind is ActionKind.DEPLOY_CONTRACT:
        return DeployContract(code=r.bytes())
    if kind is ActionKind.FUNCTION_CALL:
        return FunctionCall(method_name=r.string(), args=r.bytes(), gas=r.u64(), deposit=r.u128())
    if kind is ActionKind.TRANSFER:
        return Transfer(deposit=r.u128())
    if kind is ActionKind.STAKE:
        return Stake(stake=r.u128(), public_key=read_public_key(r))
    if kind is ActionKind.ADD_KEY:
        return AddKey(public_key=read_public_key(r), access_key=_read_access_key(r))
    if kind is ActionKind.DELETE_KEY:
        return DeleteKey(public_key=read_public_key(r))
    return DeleteAccount(beneficiary_id=r.string())


def encode_action(action) -> bytes:
    w = BorshWriter()
    write_action(w, action)
    return w.to_bytes()


def decode_action(data: bytes):
    r = BorshReader(data)
    action = read_action(r)
    r.expect_eof()
    return action


# =============================================================================
# Transactions
# =============================================================================

def _write_transaction(w: BorshWriter, tx: UnsignedTransaction) -> None:
    w.string(tx.signer_id)
    write_public_key(w, tx.public_key)
    w.u64(tx.nonce)
    w.string(tx.receiver_id)
    w.fixed_bytes(tx.block_hash, 32)
    w.u32(len(tx.actions))
    for action in tx.actions:
        write_action(w, action)


def _read_transaction(r: BorshReader) -> UnsignedTransaction:
    signer_id = r.string()
    public_key = read_public_key(r)
    nonce = r.u64()
    receiver_id = r.string()
    block_hash = r.fixed_bytes(32)
    actions: Tuple = tuple(read_action(r) for _ in range(r.u32()))
    return UnsignedTransaction(
        signer_id=signer_id,
        public_key=public_key,
        nonce=nonce,
        receiver_id=receiver_id,
        actions=actions,
        block_hash=block_hash,
    )


def encode_transaction(tx: UnsignedTransaction) -> bytes:
    w = BorshWriter()
    _write_transaction(w, tx)
    return w.to_bytes()


def decode_transaction(data: bytes) -> UnsignedTransaction:
    r = BorshReader(data)
    tx = _read_transaction(r)
    r.expect_eof()
    return tx


def encode_signed_transaction(signed: SignedTransaction) -> bytes:
    w = BorshWriter()
    _write_transaction(w, signed.transaction)
    w.u8(signed.signature.key_type)
    w.fixed_bytes(signed.signature.data, 64)
    return w.to_bytes()


def decode_signed_transaction(data: bytes) -> SignedTransaction:
    r = BorshReader(data)
    tx = _read_transaction(r)
    key_type = r.u8()
    if key_type != KeyType.ED25519:
        raise EncodingError(f"Unsupported signature key type {key_type}")
    signature = Signature(key_type=KeyType(key_type), data=r.fixed_bytes(64))
    r.expect_eof()
    return SignedTransaction(transaction=tx, signature=signature)


__all__ = [
    "write_public_key",
    "read_public_key",
    "write_action",
    "read_action",
    "encode_action",
    "decode_action",
    "encode_transaction",
    "decode_transaction",
    "encode_signed_transaction",
    "decode_signed_transaction",
]
