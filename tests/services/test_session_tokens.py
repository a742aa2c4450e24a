"""Session token store, issuer and validator tests."""

import asyncio
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from datetime import UTC, datetime, timedelta
from unittest.mock import MagicMock

import pytest

from carquery.services.rate_limit import WINDOW_SECONDS, InMemoryRateLimiter, RateLimitType
from carquery.services.session_tokens import (
    DEFAULT_TTL,
    ExpiredTokenError,
    InvalidTokenError,
    SessionTokenStore,
    StoreFaultError,
    TokenAlreadyConsumedError,
    issue_session_token,
    run_token_sweeper,
    validate_session_token,
)


@pytest.fixture
def store() -> SessionTokenStore:
    return SessionTokenStore()


class TestIssueSessionToken:
    """Tests for minting tokens."""

    def test_issue_stores_unconsumed_entry(self, store):
        """Test that a new token is stored against the subject name."""
        token = issue_session_token(store, "Asha Rao")

        entry = store.get(token)
        assert entry is not None
        assert entry.subject_name == "Asha Rao"
        assert entry.consumed is False
        assert len(store) == 1

    def test_token_is_64_hex_chars(self, store):
        """Test that tokens carry 256 bits of hex-encoded entropy."""
        token = issue_session_token(store, "Asha Rao")

        assert len(token) == 64
        int(token, 16)

    def test_empty_subject_rejected(self, store):
        """Test that a token cannot be issued without a name."""
        with pytest.raises(ValueError):
            issue_session_token(store, "")
        assert len(store) == 0

    def test_store_fault(self):
        """Test that a store that cannot grow surfaces as StoreFaultError."""
        broken = MagicMock(spec=SessionTokenStore)
        broken.put.side_effect = MemoryError()

        with pytest.raises(StoreFaultError):
            issue_session_token(broken, "Asha Rao")

    def test_concurrent_issue_is_unique(self, store):
        """Test that 1000 concurrent issues yield 1000 distinct tokens."""
        with ThreadPoolExecutor(max_workers=16) as pool:
            tokens = list(pool.map(lambda i: issue_session_token(store, f"User {i}"), range(1000)))

        assert len(set(tokens)) == 1000
        assert len(store) == 1000

        for token in tokens:
            validate_session_token(store, token)
        for token in tokens:
            with pytest.raises(TokenAlreadyConsumedError):
                validate_session_token(store, token)


class TestValidateSessionToken:
    """Tests for consuming tokens."""

    def test_first_validation_returns_subject(self, store):
        """Test that a fresh token validates and is marked consumed."""
        token = issue_session_token(store, "Asha Rao")

        assert validate_session_token(store, token) == "Asha Rao"
        assert store.get(token).consumed is True

    def test_second_validation_rejected_and_removed(self, store):
        """Test that a consumed token fails once, then is unknown."""
        token = issue_session_token(store, "Asha Rao")
        validate_session_token(store, token)

        with pytest.raises(TokenAlreadyConsumedError) as exc_info:
            validate_session_token(store, token)
        assert exc_info.value.reason == "already_consumed"
        assert token not in store

        with pytest.raises(InvalidTokenError):
            validate_session_token(store, token)

    def test_unknown_token(self, store):
        """Test that a well-formed token never issued is rejected."""
        with pytest.raises(InvalidTokenError) as exc_info:
            validate_session_token(store, "a" * 64)
        assert exc_info.value.reason == "invalid_token"

    def test_expired_token_removed(self, store):
        """Test that a token older than the TTL is rejected and removed."""
        issued = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        token = "b" * 64
        store.put(token, "Asha Rao", now=issued)

        with pytest.raises(ExpiredTokenError) as exc_info:
            validate_session_token(store, token, now=issued + DEFAULT_TTL + timedelta(seconds=1))
        assert exc_info.value.reason == "expired_token"
        assert token not in store

    def test_token_valid_until_ttl(self, store):
        """Test that a token is accepted right up to the TTL boundary."""
        issued = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        token = "c" * 64
        store.put(token, "Asha Rao", now=issued)

        assert validate_session_token(store, token, now=issued + DEFAULT_TTL) == "Asha Rao"

    def test_custom_ttl(self, store):
        """Test that the TTL can be overridden per call."""
        issued = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        token = "d" * 64
        store.put(token, "Asha Rao", now=issued)

        with pytest.raises(ExpiredTokenError):
            validate_session_token(
                store, token, now=issued + timedelta(minutes=2), ttl=timedelta(minutes=1)
            )

    @pytest.mark.parametrize("token", [None, "", "short", "x" * 31, 12345, ["a" * 64]])
    def test_malformed_token_skips_store(self, token):
        """Test that malformed tokens are rejected without a store lookup."""
        spy = MagicMock(spec=SessionTokenStore)

        with pytest.raises(InvalidTokenError):
            validate_session_token(spy, token)

        spy.consume.assert_not_called()
        spy.get.assert_not_called()

    def test_concurrent_validation_single_winner(self, store):
        """Test that racing validations of one token succeed exactly once."""
        for _ in range(50):
            token = issue_session_token(store, "Asha Rao")
            barrier = threading.Barrier(8)
            outcomes: list[str] = []
            outcomes_lock = threading.Lock()

            def attempt(token=token, barrier=barrier):
                barrier.wait()
                try:
                    validate_session_token(store, token)
                    result = "ok"
                except TokenAlreadyConsumedError:
                    result = "consumed"
                except InvalidTokenError:
                    result = "invalid"
                with outcomes_lock:
                    outcomes.append(result)

            threads = [threading.Thread(target=attempt) for _ in range(8)]
            for t in threads:
                t.start()
            for t in threads:
                t.join()

            assert outcomes.count("ok") == 1
            assert len(outcomes) == 8

    @pytest.mark.asyncio
    async def test_concurrent_validation_from_tasks(self, store):
        """Test that two validations scheduled together have one winner."""
        token = issue_session_token(store, "Asha Rao")

        results = await asyncio.gather(
            asyncio.to_thread(validate_session_token, store, token),
            asyncio.to_thread(validate_session_token, store, token),
            return_exceptions=True,
        )

        assert results.count("Asha Rao") == 1
        errors = [r for r in results if isinstance(r, Exception)]
        assert len(errors) == 1
        assert isinstance(errors[0], TokenAlreadyConsumedError | InvalidTokenError)


class TestSessionTokenStore:
    """Tests for store primitives and sweeping."""

    def test_mark_consumed_and_delete_missing_are_noops(self, store):
        """Test that absent keys are ignored."""
        store.mark_consumed("missing")
        store.delete("missing")
        assert len(store) == 0

    def test_put_overwrites(self, store):
        """Test that putting an existing token replaces its entry."""
        store.put("e" * 64, "First")
        store.put("e" * 64, "Second")

        assert store.get("e" * 64).subject_name == "Second"
        assert len(store) == 1

    def test_sweep_removes_stale_and_consumed(self, store):
        """Test that sweep drops consumed and old entries only."""
        now = datetime(2026, 10, 18, 12, 0, tzinfo=UTC)
        store.put("old" * 22, "Old", now=now - timedelta(minutes=16))
        store.put("used" * 16, "Used", now=now - timedelta(minutes=1))
        store.mark_consumed("used" * 16)
        store.put("fresh" * 13, "Fresh", now=now - timedelta(minutes=5))

        removed = store.sweep(now=now, max_age=timedelta(minutes=15))

        assert removed == 2
        assert "fresh" * 13 in store
        assert "old" * 22 not in store
        assert "used" * 16 not in store

    def test_sweep_empty_store(self, store):
        """Test that sweeping nothing removes nothing."""
        assert store.sweep() == 0


class TestTokenSweeper:
    """Tests for the background sweep loop."""

    @pytest.mark.asyncio
    async def test_sweeper_removes_stale_entries(self, store):
        """Test that the loop sweeps on its interval."""
        store.put("f" * 64, "Stale", now=datetime.now(UTC) - timedelta(hours=1))
        store.put("g" * 64, "Fresh")

        task = asyncio.create_task(
            run_token_sweeper(
                store, interval=timedelta(milliseconds=10), max_age=timedelta(minutes=15)
            )
        )
        try:
            await asyncio.sleep(0.1)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert "f" * 64 not in store
        assert "g" * 64 in store

    @pytest.mark.asyncio
    async def test_sweeper_survives_errors(self, caplog):
        """Test that a failing sweep is logged and the loop keeps going."""
        import logging

        failing = MagicMock(spec=SessionTokenStore)
        calls = []

        def sweep(**kwargs):
            calls.append(kwargs)
            if len(calls) == 1:
                raise RuntimeError("boom")
            return 0

        failing.sweep.side_effect = sweep

        task = asyncio.create_task(run_token_sweeper(failing, interval=timedelta(milliseconds=5)))
        with caplog.at_level(logging.ERROR):
            try:
                await asyncio.sleep(0.1)
            finally:
                task.cancel()
                with pytest.raises(asyncio.CancelledError):
                    await task

        assert failing.sweep.call_count >= 2
        assert "Session token sweep failed" in caplog.text

    @pytest.mark.asyncio
    async def test_sweeper_prunes_rate_limiter(self, store):
        """Test that idle rate limit keys are dropped on the sweep schedule."""
        limiter = InMemoryRateLimiter()
        await limiter.check("ip:10.0.0.1", RateLimitType.LOGIN)
        limiter._requests["login:ip:10.0.0.1"] = [time.time() - WINDOW_SECONDS - 1]

        task = asyncio.create_task(
            run_token_sweeper(store, interval=timedelta(milliseconds=10), rate_limiter=limiter)
        )
        try:
            await asyncio.sleep(0.1)
        finally:
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        assert len(limiter) == 0
