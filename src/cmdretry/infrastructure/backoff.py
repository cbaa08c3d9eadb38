"""Backoff delay computation using tenacity wait strategies."""

from __future__ import annotations

import threading

from tenacity import RetryCallState, wait_exponential, wait_fixed
from tenacity.wait import wait_base

from cmdretry.domain.config.policy import BackoffStrategy, RetryPolicy


def create_wait_strategy(policy: RetryPolicy) -> wait_base:
    """Create the tenacity wait strategy for a policy

    Args:
        policy: Retry policy

    Returns:
        Wait strategy mapping an attempt number to a delay in seconds
    """
    if policy.backoff == BackoffStrategy.FIXED:
        return wait_fixed(policy.initial_delay)

    # initial_delay * 2 ^ (attempt - 1)
    if policy.max_delay is None:
        return wait_exponential(multiplier=policy.initial_delay, exp_base=2, min=policy.initial_delay)
    return wait_exponential(
        multiplier=policy.initial_delay,
        exp_base=2,
        min=policy.initial_delay,
        max=policy.max_delay,
    )


class BackoffSchedule:
    """Delay to wait after a failed attempt"""

    def __init__(self, policy: RetryPolicy):
        self.policy = policy
        self._wait = create_wait_strategy(policy)

    def delay(self, attempt_number: int) -> float:
        """Delay in seconds after attempt ``attempt_number`` failed

        Raises:
            ValueError: If attempt_number is smaller than 1
        """
        if attempt_number < 1:
            raise ValueError(f"attempt number must be at least 1, got {attempt_number}")
        state = RetryCallState(retry_object=None, fn=None, args=(), kwargs={})
        state.attempt_number = attempt_number
        # Event.wait rejects timeouts above TIMEOUT_MAX
        return min(float(self._wait(state)), threading.TIMEOUT_MAX)
