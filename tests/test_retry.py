"""Tests for retrying remote operations with backoff."""

import asyncio

import pytest

from timeguru.errors import AuthError, NotFound, RateLimited, TransientNetwork
from timeguru.service.retry import NO_RETRY, RetryPolicy, with_retry


class FakeSleep:
    def __init__(self):
        self.delays = []

    async def __call__(self, seconds):
        self.delays.append(seconds)


def failing(errors, result="ok"):
    """Operation that raises each error in turn, then returns ``result``."""
    calls = []

    async def operation():
        calls.append(len(calls) + 1)
        if len(calls) <= len(errors):
            raise errors[len(calls) - 1]
        return result

    return operation, calls


def test_transient_failures_are_retried_with_backoff():
    sleep = FakeSleep()
    operation, calls = failing([TransientNetwork("down"), TransientNetwork("down")])

    result = asyncio.run(with_retry(operation, RetryPolicy(), sleep=sleep))

    assert result == "ok"
    assert len(calls) == 3
    assert sleep.delays == [0.5, 1.0]


def test_retry_after_extends_the_delay():
    sleep = FakeSleep()
    operation, _ = failing([RateLimited("slow down", retry_after=5.0)])

    asyncio.run(with_retry(operation, RetryPolicy(), sleep=sleep))

    assert sleep.delays == [5.0]


def test_delay_is_capped():
    policy = RetryPolicy(max_attempts=10, base_delay=1.0, max_delay=4.0)

    assert [policy.delay(n, TransientNetwork("x")) for n in range(1, 6)] == [
        1.0,
        2.0,
        4.0,
        4.0,
        4.0,
    ]


@pytest.mark.parametrize("error", [AuthError("bad token", 401), NotFound("gone", 404)])
def test_non_retryable_errors_propagate_at_once(error):
    sleep = FakeSleep()
    operation, calls = failing([error])

    with pytest.raises(type(error)):
        asyncio.run(with_retry(operation, RetryPolicy(), sleep=sleep))

    assert len(calls) == 1
    assert sleep.delays == []


def test_last_error_is_raised_when_attempts_run_out():
    sleep = FakeSleep()
    errors = [TransientNetwork(f"failure {n}") for n in range(1, 5)]
    operation, calls = failing(errors)

    with pytest.raises(TransientNetwork, match="failure 3"):
        asyncio.run(with_retry(operation, RetryPolicy(max_attempts=3), sleep=sleep))

    assert len(calls) == 3


def test_no_retry_policy_makes_a_single_attempt():
    operation, calls = failing([TransientNetwork("down")])

    with pytest.raises(TransientNetwork):
        asyncio.run(with_retry(operation, NO_RETRY, sleep=FakeSleep()))

    assert len(calls) == 1
