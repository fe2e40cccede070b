"""
Key management: local credentials and the access key cache.
"""

from .access_key_cache import AccessKeyCache
from .credentials import (
    Credential, CredentialStore, FileCredentialStore, MemoryCredentialStore,
    DEFAULT_CREDENTIALS_DIR,
)

__all__ = [
    "AccessKeyCache",
    "Credential",
    "CredentialStore",
    "FileCredentialStore",
    "MemoryCredentialStore",
    "DEFAULT_CREDENTIALS_DIR",
]
