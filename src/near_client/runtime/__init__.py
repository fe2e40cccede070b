"""Runtime helpers for the NEAR client"""

from .errors import (
    ErrorCode,
    NearClientError,
    CredentialError,
    KeyLookupError,
    BuildError,
    SubmissionErrorKind,
    SubmissionError,
    ExhaustedRetriesError,
    RetryCancelledError,
    NetworkError,
    RpcError,
    EncodingError,
    ErrorHandler,
)

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
