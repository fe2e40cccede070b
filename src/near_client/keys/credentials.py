r"""
Credential storage for NEAR accounts.

The file store reads the layout written by the NEAR CLI:

    <base_dir>/<network_id>/<account_id>.json
    {"account_id": "...", "public_key": "ed25519:...", "private_key": "ed25519:..."}
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from typing import Any, Dict, Tuple, Union
import json
import logging
from pathlib import Path

from pydantic import BaseModel, ValidationError

from ..crypto.ed25519 import (
    ED25519_PREFIX, Ed25519Error, Ed25519KeyPair, Ed25519PrivateKey, Ed25519PublicKey,
)
from ..runtime.errors import CredentialError, ErrorCode

logger = logging.getLogger(__name__)

DEFAULT_CREDENTIALS_DIR = Path.home() / ".near-credentials"


class CredentialFile(BaseModel):
    """On-disk credential record."""
    account_id: str
    public_key: str
    private_key: str


class Credential:
    """
    Validated credential: an account id and its Ed25519 key pair.
    """

    def __init__(self, account_id: str, key_pair: Ed25519KeyPair):
        self.account_id = account_id
        self.key_pair = key_pair

    @property
    def public_key(self):
        return self.key_pair.public_key

    @property
    def private_key(self):
        return self.key_pair.private_key

    @classmethod
    def parse(cls, data: Dict[str, Any], account_id: str, source: str = "<memory>") -> Credential:
        """
        Validate a raw credential record for ``account_id``.

        Raises:
            CredentialError: On missing fields, account id mismatch, a
                non-ed25519 key or a public/private key mismatch
        """
        try:
            record = CredentialFile.model_validate(data)
        except ValidationError as e:
            raise CredentialError(f"Malformed credential {source}: {e}", cause=e)

        if record.account_id != account_id:
            raise CredentialError(
                f"Parsed account_id '{record.account_id}' does not match '{account_id}'",
                details={"source": source},
            )
        if not record.public_key.startswith(ED25519_PREFIX):
            raise CredentialError(f"Parsed public_key '{record.public_key}' is not an Ed25519 key",
                                  details={"source": source})
        if not record.private_key.startswith(ED25519_PREFIX):
            # Never echo private key material
            raise CredentialError("Parsed private_key is not an Ed25519 key", details={"source": source})

        try:
            public_key = Ed25519PublicKey.from_string(record.public_key)
        except Ed25519Error as e:
            raise CredentialError(f"Malformed public_key in {source}: {e.message}",
                                  details={"source": source}, cause=e)
        try:
            private_key = Ed25519PrivateKey.from_string(record.private_key)
        except Ed25519Error as e:
            raise CredentialError(f"Malformed private_key in {source}", details={"source": source}, cause=e)

        try:
            key_pair = Ed25519KeyPair(private_key, public_key)
        except Ed25519Error as e:
            raise CredentialError(
                f"public_key does not match private_key: {source}",
                ErrorCode.KEY_MISMATCH,
                details={"source": source},
                cause=e,
            )
        return cls(account_id, key_pair)

    def to_dict(self) -> Dict[str, str]:
        return {
            "account_id": self.account_id,
            "public_key": self.key_pair.public_key.to_string(),
            "private_key": self.key_pair.private_key.to_string(),
        }

    def __repr__(self) -> str:
        return f"Credential(account_id='{self.account_id}', public_key='{self.public_key}')"


class CredentialStore(ABC):
    """
    Abstract credential store interface.
    """

    @abstractmethod
    def load(self, network_id: str, account_id: str) -> Credential:
        """
        Load and validate the credential of an account.

        Args:
            network_id: Network identifier (mainnet, testnet, ...)
            account_id: Account identifier

        Raises:
            CredentialError: If no valid credential exists
        """
        pass


class MemoryCredentialStore(CredentialStore):
    """
    In-memory credential store implementation.
    """

    def __init__(self):
        self._records: Dict[Tuple[str, str], Dict[str, Any]] = {}

    def add(self, network_id: str, record: Union[Credential, Dict[str, Any]], account_id: str = None) -> None:
        """Store a credential (or raw record) under its account id."""
        data = record.to_dict() if isinstance(record, Credential) else dict(record)
        self._records[(network_id, account_id or data.get("account_id", ""))] = data

    def load(self, network_id: str, account_id: str) -> Credential:
        data = self._records.get((network_id, account_id))
        if data is None:
            raise CredentialError(
                f"No credential for {account_id} on {network_id}",
                ErrorCode.CREDENTIAL_NOT_FOUND,
            )
        return Credential.parse(data, account_id, source=f"memory:{network_id}/{account_id}")

    def __repr__(self) -> str:
        return f"MemoryCredentialStore(count={len(self._records)})"


class FileCredentialStore(CredentialStore):
    """
    File-based credential store implementation.
    """

    def __init__(self, base_dir: Union[str, Path, None] = None):
        """
        Args:
            base_dir: Root directory (default: ~/.near-credentials)
        """
        self.base_dir = Path(base_dir) if base_dir is not None else DEFAULT_CREDENTIALS_DIR

    def path_for(self, network_id: str, account_id: str) -> Path:
        return self.base_dir / network_id / f"{account_id}.json"

    def load(self, network_id: str, account_id: str) -> Credential:
        path = self.path_for(network_id, account_id)
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except FileNotFoundError as e:
            raise CredentialError(f"Credential file not found: {path}", ErrorCode.CREDENTIAL_NOT_FOUND,
                                  cause=e)
        except (OSError, json.JSONDecodeError) as e:
            raise CredentialError(f"Failed to read credential file {path}: {e}", cause=e)

        if not isinstance(data, dict):
            raise CredentialError(f"Credential file {path} does not hold a JSON object")

        credential = Credential.parse(data, account_id, source=str(path))
        logger.debug(f"Loaded credential for {account_id} from {path}")
        return credential

    def save(self, network_id: str, credential: Credential) -> Path:
        """Write a credential in the same layout ``load`` reads."""
        path = self.path_for(network_id, credential.account_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(credential.to_dict(), f, indent=2)
        logger.debug(f"Stored credential for {credential.account_id} to {path}")
        return path

    def __repr__(self) -> str:
        return f"FileCredentialStore(path='{self.base_dir}')"


__all__ = [
    "DEFAULT_CREDENTIALS_DIR",
    "CredentialFile",
    "Credential",
    "CredentialStore",
    "MemoryCredentialStore",
    "FileCredentialStore",
]
