"""
Retry policy and transaction retrier tests.
"""

import threading
import time

import pytest

from helpers import FailingConnection, StubConnection, nonce_conflict

from near_client.keys.access_key_cache import AccessKeyCache
from near_client.recovery.retry import (
    ExponentialBackoff, FixedBackoff, TransactionRetrier,
    TX_NONCE_RETRY_NUMBER, TX_NONCE_RETRY_WAIT, TX_NONCE_RETRY_WAIT_BACKOFF,
)
from near_client.runtime.errors import (
    CredentialError, ErrorHandler, ExhaustedRetriesError, KeyLookupError, RetryCancelledError, RpcError,
    SubmissionError, SubmissionErrorKind,
)
from near_client.tx.actions import Transfer
from near_client.tx.builder import TransactionBuilder


def make_retrier(keypair, connection, policy):
    cache = AccessKeyCache(connection, "alice.test")
    builder = TransactionBuilder("alice.test", keypair, connection, cache)
    return TransactionRetrier(builder, connection, policy)


class TestExponentialBackoff:

    def test_defaults(self):
        policy = ExponentialBackoff()
        assert policy.max_attempts == TX_NONCE_RETRY_NUMBER == 12
        assert policy.base_delay == TX_NONCE_RETRY_WAIT == 0.5
        assert policy.factor == TX_NONCE_RETRY_WAIT_BACKOFF == 1.5

    def test_schedule(self):
        schedule = ExponentialBackoff().schedule()

        assert len(schedule) == 11
        assert schedule[0] == 0.5
        assert schedule[1] == pytest.approx(0.75)
        assert schedule[-1] == pytest.approx(0.5 * 1.5 ** 10)
        assert sum(schedule) == pytest.approx(1.5 ** 11 - 1, rel=1e-9)

    def test_max_delay_caps(self):
        policy = ExponentialBackoff(max_attempts=5, base_delay=10.0, factor=10.0, max_delay=30.0)
        assert policy.schedule() == [10.0, 30.0, 30.0, 30.0]

    def test_rejects_zero_attempts(self):
        with pytest.raises(ValueError):
            ExponentialBackoff(max_attempts=0)


class TestRetryPolicyExecute:

    def test_success_without_retry(self, no_wait_policy, sleeps):
        assert no_wait_policy.execute(lambda: "ok") == "ok"
        assert sleeps == []
        assert no_wait_policy.get_stats()["total_retries"] == 0

    def test_exhausts_after_max_attempts(self, no_wait_policy, sleeps):
        calls = []

        def always_fail():
            calls.append(1)
            raise RpcError("node unavailable")

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            no_wait_policy.execute(always_fail)

        assert len(calls) == 12
        assert exc_info.value.attempts == 12
        assert isinstance(exc_info.value.last_error, RpcError)
        assert sleeps == pytest.approx(no_wait_policy.schedule())
        assert sum(sleeps) == pytest.approx(85.4970, abs=1e-3)

    def test_recovers_midway(self, sleeps):
        policy = FixedBackoff(max_attempts=5, delay=0.25, sleep=sleeps.append)
        outcomes = [RpcError("a"), RpcError("b"), "done"]

        def flaky():
            outcome = outcomes.pop(0)
            if isinstance(outcome, Exception):
                raise outcome
            return outcome

        assert policy.execute(flaky) == "done"
        assert sleeps == [0.25, 0.25]
        assert [a.exception is not None for a in policy.last_attempts] == [True, True, False]

    @pytest.mark.parametrize("error", [
        KeyLookupError("no key"),
        CredentialError("bad credential"),
    ])
    def test_fatal_errors_propagate_unchanged(self, no_wait_policy, sleeps, error):
        def fail():
            raise error

        with pytest.raises(type(error)) as exc_info:
            no_wait_policy.execute(fail)

        assert exc_info.value is error
        assert sleeps == []

    def test_permanent_errors_retried_by_default(self, no_wait_policy):
        def reject():
            raise SubmissionError("NotEnoughBalance", SubmissionErrorKind.PERMANENT)

        with pytest.raises(ExhaustedRetriesError):
            no_wait_policy.execute(reject)
        assert len(no_wait_policy.last_attempts) == 12

    def test_stop_on_permanent(self, sleeps):
        policy = ExponentialBackoff(stop_on_permanent=True, sleep=sleeps.append)
        error = SubmissionError("NotEnoughBalance", SubmissionErrorKind.PERMANENT)

        def reject():
            raise error

        with pytest.raises(SubmissionError) as exc_info:
            policy.execute(reject)
        assert exc_info.value is error
        assert sleeps == []

    def test_retry_if_can_stop_early(self, sleeps):
        policy = ExponentialBackoff(retry_if=lambda attempt, exc: attempt < 3, sleep=sleeps.append)

        with pytest.raises(ExhaustedRetriesError) as exc_info:
            policy.execute(lambda: (_ for _ in ()).throw(RpcError("x")))

        assert exc_info.value.attempts == 3
        assert len(sleeps) == 2

    def test_cancel_during_wait(self):
        policy = ExponentialBackoff(max_attempts=3, base_delay=10.0)
        cancel = threading.Event()
        started = threading.Event()
        calls = []

        def fail():
            calls.append(1)
            started.set()
            raise RpcError("node unavailable")

        def cancel_soon():
            started.wait(5)
            time.sleep(0.2)
            cancel.set()

        timer = threading.Thread(target=cancel_soon)
        timer.start()
        began = time.monotonic()
        with pytest.raises(RetryCancelledError):
            policy.execute(fail, cancel=cancel)
        timer.join()

        assert time.monotonic() - began < 5.0
        assert len(calls) == 1

    def test_cancel_interrupts_wait(self, no_wait_policy):
        cancel = threading.Event()
        cancel.set()
        calls = []

        def fail():
            calls.append(1)
            raise RpcError("node unavailable")

        with pytest.raises(RetryCancelledError) as exc_info:
            no_wait_policy.execute(fail, cancel=cancel)

        assert len(calls) == 1
        assert exc_info.value.attempts == 1
        assert isinstance(exc_info.value.last_error, RpcError)


class TestTransactionRetrier:

    def test_rebuilds_with_fresh_nonce(self, fake_keypair, no_wait_policy):
        conn = StubConnection(nonce=41, responses=[nonce_conflict(), nonce_conflict()])
        retrier = make_retrier(fake_keypair, conn, no_wait_policy)

        result = retrier.submit("bob.test", [Transfer(deposit=1)])

        assert result.succeeded
        assert conn.nonces == [42, 43, 44]
        assert conn.block_calls == 3
        assert result.transaction_hash == conn.submitted[-1].transaction.hash_b58()

    def test_reconciles_to_node_nonce(self, fake_keypair, no_wait_policy):
        conn = StubConnection(nonce=41, responses=[nonce_conflict(ak_nonce=90)])
        retrier = make_retrier(fake_keypair, conn, no_wait_policy)

        retrier.submit("bob.test", [Transfer(deposit=1)])

        assert conn.nonces == [42, 91]

    def test_exhaustion_sends_strictly_increasing_nonces(self, fake_keypair, no_wait_policy):
        conn = FailingConnection(nonce=0)
        retrier = make_retrier(fake_keypair, conn, no_wait_policy)

        with pytest.raises(ExhaustedRetriesError):
            retrier.submit("bob.test", [Transfer(deposit=1)])

        assert conn.nonces == list(range(1, 13))

    def test_missing_key_not_retried(self, fake_keypair, no_wait_policy, sleeps):
        conn = StubConnection(key_missing=True)
        retrier = make_retrier(fake_keypair, conn, no_wait_policy)

        with pytest.raises(KeyLookupError):
            retrier.submit("bob.test", [Transfer(deposit=1)])

        assert conn.submitted == []
        assert sleeps == []


class TestErrorClassification:

    @pytest.mark.parametrize("error, default, stop_on_permanent", [
        (RpcError("down"), True, True),
        (SubmissionError("nonce", SubmissionErrorKind.NONCE_CONFLICT), True, True),
        (SubmissionError("balance", SubmissionErrorKind.PERMANENT), True, False),
        (RuntimeError("unexpected"), True, True),
        (KeyLookupError("no key"), False, False),
        (CredentialError("bad credential"), False, False),
    ])
    def test_policy_follows_error_handler(self, error, default, stop_on_permanent):
        assert ErrorHandler.is_retryable(error) is default
        assert ErrorHandler.is_retryable(error, stop_on_permanent=True) is stop_on_permanent
        assert ExponentialBackoff().should_retry(1, error) is default
        assert ExponentialBackoff(stop_on_permanent=True).should_retry(1, error) is stop_on_permanent


class TestConcurrentExecute:

    def test_statistics_are_consistent(self):
        policy = FixedBackoff(max_attempts=3, delay=0.0, sleep=lambda delay: None)
        histories = []
        lock = threading.Lock()
        start = threading.Barrier(8)

        def fail_once():
            state = {"failed": False}

            def call():
                if not state["failed"]:
                    state["failed"] = True
                    raise RpcError("transient")
                return "ok"
            return call

        def worker():
            start.wait()
            for _ in range(25):
                policy.execute(fail_once())
                with lock:
                    histories.append(len(policy.last_attempts))

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        stats = policy.get_stats()
        assert stats["total_attempts"] == 400
        assert stats["total_retries"] == 200
        assert stats["total_successes"] == 200
        assert stats["total_failures"] == 0
        assert set(histories) == {2}
