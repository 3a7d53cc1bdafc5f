"""
Retry-until-success helpers.

Repeatedly runs a zero-argument condition until it returns a truthy value or the
attempt budget runs out. Exceptions raised by the condition count as a failed
attempt; only the final exhaustion reaches the caller.
"""
import asyncio
import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from logging_utils import log_retry_attempt


# Configuration
DEFAULT_ATTEMPT_LIMIT = 3
DEFAULT_DELAY_MS = 0


class ConfigurationError(ValueError):
    """Raised for an invalid retry policy or missing suite settings."""


@dataclass(frozen=True)
class RetryPolicy:
    """Attempt budget and pause between unsuccessful attempts."""
    attempt_limit: int = DEFAULT_ATTEMPT_LIMIT
    delay_ms: int = DEFAULT_DELAY_MS

    def __post_init__(self):
        if isinstance(self.attempt_limit, bool) or not isinstance(self.attempt_limit, int) \
                or self.attempt_limit < 1:
            raise ConfigurationError(
                f"attempt_limit must be a positive integer, got {self.attempt_limit!r}"
            )
        if isinstance(self.delay_ms, bool) or not isinstance(self.delay_ms, (int, float)) \
                or self.delay_ms < 0:
            raise ConfigurationError(
                f"delay_ms must be a non-negative number, got {self.delay_ms!r}"
            )


@dataclass(frozen=True)
class AttemptFailure:
    """An exception raised by the condition on a given attempt."""
    attempt: int
    error: Exception

    def __str__(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


class RetryExhausted(AssertionError):
    """
    No attempt succeeded within the budget.

    Subclasses AssertionError so pytest reports it as a failed expectation.
    """

    def __init__(self, description: str, attempts: int, last_failure: Optional[AttemptFailure] = None):
        self.description = description
        self.attempts = attempts
        self.last_failure = last_failure

        with_error = ""
        if last_failure is not None:
            with_error = f"with error (attempt {last_failure.attempt}): {last_failure}\n"
        super().__init__(
            f"retry_until failed after {attempts} attempt(s) {with_error}"
            f"Condition wasn't successful:\n{description}"
        )


def describe_action(action: Callable) -> str:
    """
    Human readable representation of a condition for error messages.

    Uses the condition's source when available, otherwise its qualified name.
    """
    try:
        return inspect.getsource(action).strip()
    except (OSError, TypeError):
        return getattr(action, '__qualname__', None) or repr(action)


def wait(ms: float) -> None:
    """Block the calling thread for ``ms`` milliseconds."""
    if ms > 0:
        time.sleep(ms / 1000)


async def wait_async(ms: float) -> None:
    """Suspend the calling task for ``ms`` milliseconds."""
    if ms > 0:
        await asyncio.sleep(ms / 1000)


def retry_until(
    action: Callable[[], Any],
    attempt_limit: int = DEFAULT_ATTEMPT_LIMIT,
    delay_ms: float = DEFAULT_DELAY_MS,
    description: str = None
) -> Any:
    """
    Call ``action`` until it returns a truthy value.

    Args:
        action: Zero-argument callable (the condition)
        attempt_limit: Total attempts including the first (>= 1)
        delay_ms: Pause after each unsuccessful attempt except the last
        description: Text identifying the condition in the failure message

    Returns:
        The first truthy value returned by ``action``

    Raises:
        ConfigurationError: If the policy is invalid (no attempt is made)
        RetryExhausted: If every attempt returned falsy or raised
    """
    policy = RetryPolicy(attempt_limit, delay_ms)
    description = description or describe_action(action)
    last_failure = None

    for attempt in range(1, policy.attempt_limit + 1):
        error = None
        try:
            result = action()
        except Exception as e:
            error = e
            last_failure = AttemptFailure(attempt, e)
            result = False

        if result:
            return result

        log_retry_attempt(description, attempt, policy.attempt_limit, error)

        if attempt < policy.attempt_limit:
            wait(policy.delay_ms)

    raise RetryExhausted(description, policy.attempt_limit, last_failure)


async def retry_until_async(
    action: Callable[[], Awaitable[Any]],
    attempt_limit: int = DEFAULT_ATTEMPT_LIMIT,
    delay_ms: float = DEFAULT_DELAY_MS,
    description: str = None
) -> Any:
    """
    Asyncio variant of retry_until.

    ``action`` is a zero-argument coroutine function. Delays suspend only the
    calling task.
    """
    policy = RetryPolicy(attempt_limit, delay_ms)
    description = description or describe_action(action)
    last_failure = None

    for attempt in range(1, policy.attempt_limit + 1):
        error = None
        try:
            result = await action()
        except Exception as e:
            error = e
            last_failure = AttemptFailure(attempt, e)
            result = False

        if result:
            return result

        log_retry_attempt(description, attempt, policy.attempt_limit, error)

        if attempt < policy.attempt_limit:
            await wait_async(policy.delay_ms)

    raise RetryExhausted(description, policy.attempt_limit, last_failure)
