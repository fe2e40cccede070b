"""
Transaction actions.

Each action is a frozen pydantic model whose ``kind`` is a fixed wire
discriminant. ``Action`` is the discriminated union of all variants, so only
the active variant's fields can ever be populated.
"""

from __future__ import annotations
from enum import IntEnum
from typing import Annotated, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field

from ..codec.writer import U64_MAX, U128_MAX
from ..crypto.ed25519 import Ed25519PublicKey

U64 = Annotated[int, Field(ge=0, le=U64_MAX)]
U128 = Annotated[int, Field(ge=0, le=U128_MAX)]


class ActionKind(IntEnum):
    """Wire discriminants. The order is fixed by the protocol."""
    CREATE_ACCOUNT = 0
    DEPLOY_CONTRACT = 1
    FUNCTION_CALL = 2
    TRANSFER = 3
    STAKE = 4
    ADD_KEY = 5
    DELETE_KEY = 6
    DELETE_ACCOUNT = 7


class PermissionKind(IntEnum):
    """Wire discriminants for access key permissions."""
    FUNCTION_CALL = 0
    FULL_ACCESS = 1


_FROZEN = {"frozen": True, "extra": "forbid"}


# =============================================================================
# Access key permissions
# =============================================================================

class FunctionCallPermission(BaseModel):
    """Key restricted to calling methods on one contract."""
    kind: Literal[PermissionKind.FUNCTION_CALL] = PermissionKind.FUNCTION_CALL
    allowance: Optional[U128] = None
    receiver_id: str
    method_names: Tuple[str, ...] = ()

    model_config = _FROZEN


class FullAccessPermission(BaseModel):
    """Key allowed to sign any action."""
    kind: Literal[PermissionKind.FULL_ACCESS] = PermissionKind.FULL_ACCESS

    model_config = _FROZEN


AccessKeyPermission = Annotated[
    Union[FunctionCallPermission, FullAccessPermission],
    Field(discriminator="kind"),
]


class AccessKey(BaseModel):
    """Access key record attached by an AddKey action."""
    nonce: U64 = 0
    permission: AccessKeyPermission = Field(default_factory=FullAccessPermission)

    model_config = _FROZEN


# =============================================================================
# Actions
# =============================================================================

class CreateAccount(BaseModel):
    """Create the receiver account."""
    kind: Literal[ActionKind.CREATE_ACCOUNT] = ActionKind.CREATE_ACCOUNT

    model_config = _FROZEN


class DeployContract(BaseModel):
    """Deploy Wasm code to the receiver account."""
    kind: Literal[ActionKind.DEPLOY_CONTRACT] = ActionKind.DEPLOY_CONTRACT
    code: bytes

    model_config = _FROZEN


class FunctionCall(BaseModel):
    """Call a contract method."""
    kind: Literal[ActionKind.FUNCTION_CALL] = ActionKind.FUNCTION_CALL
    method_name: str
    args: bytes = b""
    gas: U64
    deposit: U128 = 0

    model_config = _FROZEN


class Transfer(BaseModel):
    """Move tokens (in yoctoNEAR) to the receiver."""
    kind: Literal[ActionKind.TRANSFER] = ActionKind.TRANSFER
    deposit: U128

    model_config = _FROZEN


class Stake(BaseModel):
    """Lock tokens for validation with the given key."""
    kind: Literal[ActionKind.STAKE] = ActionKind.STAKE
    stake: U128
    public_key: Ed25519PublicKey

    model_config = _FROZEN


class AddKey(BaseModel):
    """Attach a new access key to the receiver account."""
    kind: Literal[ActionKind.ADD_KEY] = ActionKind.ADD_KEY
    public_key: Ed25519PublicKey
    access_key: AccessKey = Field(default_factory=AccessKey)

    model_config = _FROZEN


class DeleteKey(BaseModel):
    """Remove an access key from the receiver account."""
    kind: Literal[ActionKind.DELETE_KEY] = ActionKind.DELETE_KEY
    public_key: Ed25519PublicKey

    model_config = _FROZEN


class DeleteAccount(BaseModel):
    """Delete the receiver account, sending its balance to the beneficiary."""
    kind: Literal[ActionKind.DELETE_ACCOUNT] = ActionKind.DELETE_ACCOUNT
    beneficiary_id: str

    model_config = _FROZEN


Action = Annotated[
    Union[
        CreateAccount,
        DeployContract,
        FunctionCall,
        Transfer,
        Stake,
        AddKey,
        DeleteKey,
        DeleteAccount,
    ],
    Field(discriminator="kind"),
]


__all__ = [
    "U64",
    "U128",
    "ActionKind",
    "PermissionKind",
    "FunctionCallPermission",
    "FullAccessPermission",
    "AccessKeyPermission",
    "AccessKey",
    "CreateAccount",
    "DeployContract",
    "FunctionCall",
    "Transfer",
    "Stake",
    "AddKey",
    "DeleteKey",
    "DeleteAccount",
    "Action",
]
