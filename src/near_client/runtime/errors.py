"""
NEAR client error model.

Every failure surfaced by the client is a subclass of ``NearClientError`` and
carries a stable ``ErrorCode`` so callers can branch on it without string
matching.
"""

from __future__ import annotations
from typing import Optional, Dict, Any
from enum import Enum, IntEnum


class ErrorCode(IntEnum):
    """Error codes for the NEAR client."""

    # General errors (1-99)
    UNKNOWN = 1

    # Encoding errors (100-199)
    ENCODING_ERROR = 100

    # Network errors (200-299)
    NETWORK_ERROR = 200
    RPC_ERROR = 201

    # Credential errors (300-399)
    INVALID_CREDENTIAL = 300
    CREDENTIAL_NOT_FOUND = 301
    KEY_MISMATCH = 302

    # Transaction errors (400-499)
    BUILD_FAILED = 400
    SUBMISSION_FAILED = 401
    NONCE_CONFLICT = 402
    RETRIES_EXHAUSTED = 403
    RETRY_CANCELLED = 404

    # Key/Account errors (700-799)
    KEY_NOT_FOUND = 701


class NearClientError(Exception):
    """
    Base class for all NEAR client errors.

    Provides structured error information: a code, free-form details and the
    underlying exception, if any.
    """

    def __init__(self, message: str, code: ErrorCode = ErrorCode.UNKNOWN,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        """
        Initialize a client error.

        Args:
            message: Error message
            code: Error code
            details: Additional error details
            cause: Underlying exception that caused this error
        """
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """String representation of the error."""
        parts = [f"[{self.code.name}] {self.message}"]
        if self.details:
            parts.append(f"Details: {self.details}")
        if self.cause:
            parts.append(f"Caused by: {self.cause}")
        return " | ".join(parts)

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary representation."""
        result = {
            "code": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.cause:
            result["cause"] = str(self.cause)
        return result


class CredentialError(NearClientError):
    """Malformed or mismatched local credential. Never retried."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.INVALID_CREDENTIAL,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class KeyLookupError(NearClientError):
    """The node has no record of the signing key for the account."""

    def __init__(self, message: str = "Access key not found",
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.KEY_NOT_FOUND, details, cause)


class BuildError(NearClientError):
    """Failure assembling a transaction (block hash or nonce retrieval)."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.BUILD_FAILED, details, cause)


class SubmissionErrorKind(Enum):
    """How a rejected submission should be treated."""
    NONCE_CONFLICT = "nonce_conflict"
    PERMANENT = "permanent"
    TRANSIENT = "transient"


class SubmissionError(NearClientError):
    """
    Remote rejection of a submitted transaction.

    ``kind`` separates nonce conflicts, which the next attempt fixes by
    rebuilding with an advanced nonce, from permanent rejections such as
    insufficient balance, where another attempt is wasted work.
    """

    def __init__(self, message: str, kind: SubmissionErrorKind = SubmissionErrorKind.TRANSIENT,
                 ak_nonce: Optional[int] = None, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        code = ErrorCode.NONCE_CONFLICT if kind is SubmissionErrorKind.NONCE_CONFLICT \
            else ErrorCode.SUBMISSION_FAILED
        super().__init__(message, code, details, cause)
        self.kind = kind
        self.ak_nonce = ak_nonce

    @property
    def is_nonce_conflict(self) -> bool:
        return self.kind is SubmissionErrorKind.NONCE_CONFLICT

    @property
    def permanent(self) -> bool:
        return self.kind is SubmissionErrorKind.PERMANENT


class ExhaustedRetriesError(NearClientError):
    """Attempt ceiling reached; carries the last underlying error."""

    def __init__(self, attempts: int, last_error: Optional[Exception]):
        super().__init__(
            f"Max retries ({attempts}) exceeded. Last error: {last_error}",
            ErrorCode.RETRIES_EXHAUSTED,
            {"attempts": attempts},
            last_error,
        )
        self.attempts = attempts
        self.last_error = last_error


class RetryCancelledError(NearClientError):
    """The caller cancelled the submission during a backoff wait."""

    def __init__(self, attempts: int, last_error: Optional[Exception]):
        super().__init__(
            f"Retry cancelled after {attempts} attempt(s)",
            ErrorCode.RETRY_CANCELLED,
            {"attempts": attempts},
            last_error,
        )
        self.attempts = attempts
        self.last_error = last_error


class NetworkError(NearClientError):
    """Network-related errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None,
                 cause: Optional[Exception] = None):
        super().__init__(message, ErrorCode.NETWORK_ERROR, details, cause)


class RpcError(NetworkError):
    """Error object returned by the JSON-RPC endpoint."""

    def __init__(self, message: str, rpc_code: Optional[int] = None,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, details, cause)
        self.code = ErrorCode.RPC_ERROR
        self.rpc_code = rpc_code


class EncodingError(NearClientError):
    """Data encoding/decoding errors."""

    def __init__(self, message: str, code: ErrorCode = ErrorCode.ENCODING_ERROR,
                 details: Optional[Dict[str, Any]] = None, cause: Optional[Exception] = None):
        super().__init__(message, code, details, cause)


class ErrorHandler:
    """
    Utility class for categorizing errors.
    """

    @staticmethod
    def is_fatal(error: Exception) -> bool:
        """
        Check if an error can never be fixed by rebuilding and resubmitting.

        Args:
            error: Exception to check

        Returns:
            True for credential problems, missing keys and programming errors
        """
        if isinstance(error, (CredentialError, KeyLookupError, EncodingError)):
            return True
        return isinstance(error, (KeyboardInterrupt, SystemExit, MemoryError))

    @staticmethod
    def is_permanent(error: Exception) -> bool:
        """Check if the node rejected the transaction for a reason a retry cannot change."""
        return isinstance(error, SubmissionError) and error.permanent

    @staticmethod
    def is_retryable(error: Exception, stop_on_permanent: bool = False) -> bool:
        """
        Check if an error is worth another attempt.

        Every non-fatal error is retried, permanent node rejections included,
        unless ``stop_on_permanent`` is set.

        Args:
            error: Exception to check
            stop_on_permanent: Treat permanent rejections as final

        Returns:
            True if the error should be retried
        """
        if ErrorHandler.is_fatal(error):
            return False
        return not (stop_on_permanent and ErrorHandler.is_permanent(error))


__all__ = [
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
]
