"""
Retry policies and nonce-aware transaction submission.

``TransactionRetrier`` wraps submission in an exponential backoff loop. Every
attempt rebuilds the transaction from scratch (fresh nonce, fresh block hash)
instead of resubmitting the previous signed bytes: the common failure is a
stale nonce, and only a rebuild fixes it.
"""

import logging
import random
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence

from pydantic import TypeAdapter, ValidationError

from ..runtime.errors import (
    BuildError, ErrorHandler, ExhaustedRetriesError, RetryCancelledError, SubmissionError,
)
from ..tx.actions import Action

logger = logging.getLogger(__name__)

# Defaults for transaction submission: 12 attempts, 500 ms initial wait, x1.5
TX_NONCE_RETRY_NUMBER = 12
TX_NONCE_RETRY_WAIT = 0.5
TX_NONCE_RETRY_WAIT_BACKOFF = 1.5

_ACTIONS = TypeAdapter(Action)


@dataclass
class RetryAttempt:
    """Information about a retry attempt."""
    attempt: int
    delay: float
    exception: Optional[Exception] = None
    retried: bool = False
    start_time: float = 0.0
    end_time: float = 0.0

    @property
    def duration(self) -> float:
        """Get attempt duration in seconds."""
        if self.end_time > self.start_time:
            return self.end_time - self.start_time
        return 0.0


class RetryPolicy(ABC):
    """
    Abstract base class for retry policies.

    The baseline retries every non-fatal error up to ``max_attempts``.
    ``stop_on_permanent`` opts in to stopping on rejections the node marks as
    permanent; ``retry_if`` adds a caller-supplied condition.
    """

    def __init__(
        self,
        max_attempts: int = 3,
        base_delay: float = 1.0,
        max_delay: float = 60.0,
        jitter: bool = False,
        jitter_factor: float = 0.1,
        stop_on_permanent: bool = False,
        retry_if: Optional[Callable[[int, Exception], bool]] = None,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        """
        Initialize retry policy.

        Args:
            max_attempts: Maximum number of attempts, including the first
            base_delay: Delay after the first failed attempt, in seconds
            max_delay: Maximum delay between attempts in seconds
            jitter: Whether to add jitter to delays
            jitter_factor: Jitter factor (0.0 to 1.0)
            stop_on_permanent: Stop early on permanent submission errors
            retry_if: Extra condition; returning False stops retrying
            sleep: Wait function used when no cancel event is given
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.max_attempts = max_attempts
        self.base_delay = base_delay
        self.max_delay = max_delay
        self.jitter = jitter
        self.jitter_factor = jitter_factor
        self.stop_on_permanent = stop_on_permanent
        self.retry_if = retry_if
        self._sleep = sleep or time.sleep

        # Statistics, shared by concurrent callers
        self._stats_lock = threading.Lock()
        self.total_attempts = 0
        self.total_retries = 0
        self.total_successes = 0
        self.total_failures = 0
        self.last_attempts: List[RetryAttempt] = []

    @abstractmethod
    def calculate_delay(self, attempt: int) -> float:
        """
        Calculate delay after the given failed attempt.

        Args:
            attempt: Attempt number (1-based)

        Returns:
            Delay in seconds
        """
        pass

    def is_fatal(self, exception: Exception) -> bool:
        """Errors that stop the loop and propagate unchanged."""
        return not ErrorHandler.is_retryable(exception, self.stop_on_permanent)

    def should_retry(self, attempt: int, exception: Exception) -> bool:
        """
        Determine if operation should be retried.

        Args:
            attempt: Current attempt number
            exception: Exception that occurred

        Returns:
            True if should retry, False otherwise
        """
        if attempt >= self.max_attempts:
            return False
        if self.is_fatal(exception):
            return False
        if self.retry_if is not None and not self.retry_if(attempt, exception):
            return False
        return True

    def add_jitter(self, delay: float) -> float:
        """Add jitter to delay if enabled."""
        if not self.jitter:
            return delay

        jitter_amount = delay * self.jitter_factor * (random.random() - 0.5)
        return max(0, delay + jitter_amount)

    def schedule(self) -> List[float]:
        """Delays between attempts when every attempt fails (jitter excluded)."""
        return [min(self.calculate_delay(k), self.max_delay) for k in range(1, self.max_attempts)]

    def _wait(self, delay: float, cancel: Optional[threading.Event]) -> bool:
        """Wait ``delay`` seconds; returns True if cancelled."""
        if cancel is not None:
            return cancel.wait(delay)
        self._sleep(delay)
        return False

    def execute(
        self,
        func: Callable[..., Any],
        *args,
        cancel: Optional[threading.Event] = None,
        **kwargs
    ) -> Any:
        """
        Execute function with retry policy.

        Args:
            func: Function to execute
            *args: Function arguments
            cancel: Event that interrupts the wait between attempts
            **kwargs: Function keyword arguments

        Returns:
            Function result

        Raises:
            ExhaustedRetriesError: If every attempt failed
            RetryCancelledError: If ``cancel`` was set during a wait
            Exception: A fatal error from ``func``, unchanged
        """
        attempt = 0
        last_exception: Optional[Exception] = None
        attempts: List[RetryAttempt] = []

        while attempt < self.max_attempts:
            attempt += 1

            retry_attempt = RetryAttempt(attempt=attempt, delay=0.0)
            retry_attempt.start_time = time.monotonic()

            try:
                result = func(*args, **kwargs)
            except Exception as e:
                retry_attempt.end_time = time.monotonic()
                retry_attempt.exception = e
                attempts.append(retry_attempt)
                last_exception = e

                if self.is_fatal(e):
                    self._record(attempts, succeeded=False)
                    logger.error(f"Attempt {attempt} failed with non-retryable error: {e}")
                    raise

                if not self.should_retry(attempt, e):
                    break

                delay = self.add_jitter(min(self.calculate_delay(attempt), self.max_delay))
                retry_attempt.delay = delay
                retry_attempt.retried = True

                logger.warning(
                    f"Attempt {attempt} failed: {e}. "
                    f"Retrying in {delay:.2f}s..."
                )

                if self._wait(delay, cancel):
                    self._record(attempts, succeeded=False)
                    raise RetryCancelledError(attempt, last_exception)
                continue

            retry_attempt.end_time = time.monotonic()
            attempts.append(retry_attempt)
            self._record(attempts, succeeded=True)
            if attempt > 1:
                logger.info(f"Operation succeeded on attempt {attempt}")
            return result

        self._record(attempts, succeeded=False)
        raise ExhaustedRetriesError(attempt, last_exception)

    def _record(self, attempts: List[RetryAttempt], succeeded: bool) -> None:
        """Fold one finished call into the statistics."""
        with self._stats_lock:
            self.total_attempts += len(attempts)
            self.total_retries += sum(1 for a in attempts if a.retried)
            if succeeded:
                self.total_successes += 1
            else:
                self.total_failures += 1
            self.last_attempts = attempts

    def get_stats(self) -> dict:
        """Get retry policy statistics."""
        with self._stats_lock:
            return {
                "total_attempts": self.total_attempts,
                "total_retries": self.total_retries,
                "total_successes": self.total_successes,
                "total_failures": self.total_failures,
                "success_rate": self.total_successes / max(self.total_attempts, 1),
                "retry_rate": self.total_retries / max(self.total_attempts, 1)
            }


class ExponentialBackoff(RetryPolicy):
    """
    Exponential backoff retry policy.

    Delay after failed attempt k is base_delay * factor ** (k - 1).
    """

    def __init__(
        self,
        max_attempts: int = TX_NONCE_RETRY_NUMBER,
        base_delay: float = TX_NONCE_RETRY_WAIT,
        max_delay: float = 60.0,
        factor: float = TX_NONCE_RETRY_WAIT_BACKOFF,
        **kwargs
    ):
        """
        Initialize exponential backoff policy.

        Args:
            max_attempts: Maximum attempts (default 12)
            base_delay: Base delay in seconds (default 0.5)
            max_delay: Maximum delay cap
            factor: Exponential factor (default 1.5)
            **kwargs: Options accepted by RetryPolicy
        """
        super().__init__(max_attempts, base_delay, max_delay, **kwargs)
        self.factor = factor

    def calculate_delay(self, attempt: int) -> float:
        """Calculate exponential backoff delay."""
        delay = self.base_delay * (self.factor ** (attempt - 1))
        return min(delay, self.max_delay)


class FixedBackoff(RetryPolicy):
    """
    Fixed delay retry policy.

    Uses constant delay between all retry attempts.
    """

    def __init__(self, max_attempts: int = 3, delay: float = 1.0, **kwargs):
        super().__init__(max_attempts, delay, delay, **kwargs)

    def calculate_delay(self, attempt: int) -> float:
        """Calculate fixed delay."""
        return self.base_delay


class TransactionRetrier:
    """
    Submits transactions with a fresh build per attempt.

    On a nonce conflict that reports the node's current nonce, the cache is
    raised to that value before the next attempt, so the rebuild claims a
    nonce the node will accept.
    """

    def __init__(self, builder, connection, policy: Optional[RetryPolicy] = None):
        """
        Args:
            builder: TransactionBuilder for the signing account
            connection: Connection used for submission
            policy: Retry policy (default: ExponentialBackoff())
        """
        self.builder = builder
        self.connection = connection
        self.policy = policy or ExponentialBackoff()

    def _attempt(self, receiver_id: str, actions: Sequence):
        _, signed = self.builder.build(receiver_id, actions)
        try:
            return self.connection.send_transaction(signed.encode())
        except SubmissionError as e:
            if e.is_nonce_conflict:
                logger.debug(f"Nonce {signed.nonce} rejected: {e.message}")
                if e.ak_nonce is not None:
                    self.builder.cache.reconcile(self.builder.key_pair.public_key, e.ak_nonce)
            raise

    def submit(self, receiver_id: str, actions: Sequence, cancel: Optional[threading.Event] = None):
        """
        Build, sign and submit until the node accepts or attempts run out.

        Args:
            receiver_id: Account the actions apply to
            actions: Ordered sequence of actions
            cancel: Event that interrupts the backoff wait

        Returns:
            RemoteResult of the accepted transaction

        Raises:
            ExhaustedRetriesError: After the attempt ceiling, with the last error
            RetryCancelledError: If cancelled during a wait
            BuildError: If actions is empty or holds an invalid action
            CredentialError, KeyLookupError: Propagated without retry
        """
        try:
            actions = tuple(_ACTIONS.validate_python(a) for a in actions)
        except ValidationError as e:
            raise BuildError(f"Invalid action: {e}", cause=e)
        if not actions:
            raise BuildError("A transaction needs at least one action")
        return self.policy.execute(self._attempt, receiver_id, actions, cancel=cancel)


__all__ = [
    "TX_NONCE_RETRY_NUMBER",
    "TX_NONCE_RETRY_WAIT",
    "TX_NONCE_RETRY_WAIT_BACKOFF",
    "RetryAttempt",
    "RetryPolicy",
    "ExponentialBackoff",
    "FixedBackoff",
    "TransactionRetrier",
]
