"""
Error recovery for transaction submission.

Provides retry policies and the nonce-aware transaction retrier.
"""

from .retry import (
    RetryAttempt, RetryPolicy, ExponentialBackoff, FixedBackoff, TransactionRetrier,
    TX_NONCE_RETRY_NUMBER, TX_NONCE_RETRY_WAIT, TX_NONCE_RETRY_WAIT_BACKOFF,
)

__all__ = [
    "RetryAttempt",
    "RetryPolicy",
    "ExponentialBackoff",
    "FixedBackoff",
    "TransactionRetrier",
    "TX_NONCE_RETRY_NUMBER",
    "TX_NONCE_RETRY_WAIT",
    "TX_NONCE_RETRY_WAIT_BACKOFF",
]
