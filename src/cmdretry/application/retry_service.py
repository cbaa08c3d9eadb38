"""Retry service - the attempt loop"""

from __future__ import annotations

import logging
from typing import Callable, List, Optional, Sequence

from cmdretry.domain.config.policy import RetryPolicy
from cmdretry.domain.errors import CancellationError, ConfigurationError, RetryExhaustedError
from cmdretry.domain.models.attempt import AttemptOutcome, RetryResult, RetryState
from cmdretry.infrastructure.backoff import BackoffSchedule
from cmdretry.infrastructure.cancellation import CancellationToken
from cmdretry.infrastructure.process_runner import ProcessRunner
from cmdretry.infrastructure.stdin_capture import CapturedInput

logger = logging.getLogger(__name__)

FailureCallback = Callable[[int, Optional[Exception]], None]


class RetryService:
    """Runs a command repeatedly until it succeeds, attempts run out, or
    the cancellation token fires.

    States: PENDING -> RUNNING -> SUCCEEDED | EXHAUSTED | CANCELLED.
    Attempts are strictly sequential; the failure callback runs between a
    failed attempt and the following delay, so reports come in attempt order.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        cancellation: Optional[CancellationToken] = None,
        runner: Optional[ProcessRunner] = None,
        on_attempt_failure: Optional[FailureCallback] = None,
    ):
        """Initialize retry service

        Args:
            policy: Retry policy (max attempts, delay, backoff, quiet)
            cancellation: Token observed between and during attempts
            runner: Attempt executor (defaults to ProcessRunner)
            on_attempt_failure: Called with (attempt_number, error) for every
                failed attempt that will be retried, unless policy.quiet
        """
        self.policy = policy
        self.cancellation = cancellation or CancellationToken()
        self.runner = runner or ProcessRunner()
        self.on_attempt_failure = on_attempt_failure
        self.schedule = BackoffSchedule(policy)
        self.state = RetryState.PENDING

    def execute(self, argv: Sequence[str], captured: Optional[CapturedInput] = None) -> RetryResult:
        """Run the command under the retry policy

        Args:
            argv: Command name followed by its arguments
            captured: Captured standard input (empty input if None)

        Returns:
            RetryResult with the final state and every attempt outcome

        Raises:
            ConfigurationError: If no command is given
        """
        if not argv:
            raise ConfigurationError("no command specified")
        if self.state.is_terminal:
            raise RuntimeError(f"retry service already used (state: {self.state.value})")
        if captured is None:
            captured = CapturedInput(b"")

        outcomes: List[AttemptOutcome] = []
        self.state = RetryState.RUNNING

        for attempt in range(1, self.policy.max_attempts + 1):
            if self.cancellation.cancelled:
                return self._finish(RetryState.CANCELLED, outcomes, CancellationError())

            outcome = self.runner.run_once(argv, captured, self.cancellation, attempt)
            outcomes.append(outcome)

            if isinstance(outcome.error, CancellationError) or self.cancellation.cancelled:
                return self._finish(RetryState.CANCELLED, outcomes, CancellationError())

            if outcome.succeeded:
                logger.debug(f"Command succeeded at attempt #{attempt}")
                return self._finish(RetryState.SUCCEEDED, outcomes)

            if attempt == self.policy.max_attempts:
                break

            if not self.policy.quiet and self.on_attempt_failure is not None:
                self.on_attempt_failure(attempt, outcome.error)

            delay = self.schedule.delay(attempt)
            logger.debug(f"Waiting {delay:.3f}s before attempt #{attempt + 1}")
            if self.cancellation.wait(delay):
                return self._finish(RetryState.CANCELLED, outcomes, CancellationError())

        logger.debug(f"Command failed after {len(outcomes)} attempts")
        return self._finish(RetryState.EXHAUSTED, outcomes, RetryExhaustedError(outcomes))

    def _finish(self, state: RetryState, outcomes: List[AttemptOutcome], error=None) -> RetryResult:
        self.state = state
        return RetryResult(state=state, outcomes=outcomes, error=error)
