"""Error taxonomy for the retry engine."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Optional

if TYPE_CHECKING:
    from cmdretry.domain.models.attempt import AttemptOutcome


class RetryToolError(Exception):
    """Base class for all cmdretry errors."""

    pass


class ConfigurationError(RetryToolError):
    """Invalid retry policy or missing command."""

    pass


class IOReadError(RetryToolError):
    """Standard input could not be captured."""

    pass


class AttemptError(RetryToolError):
    """A single attempt failed. Always eligible for retry."""

    pass


class ChildStartError(AttemptError):
    """The target executable could not be launched."""

    def __init__(self, command: str, cause: OSError):
        self.command = command
        self.cause = cause
        super().__init__(f"cannot start {command!r}: {cause.strerror or cause}")


class ChildExitError(AttemptError):
    """The child ran and exited with a non-zero status."""

    def __init__(self, exit_code: int, signal_name: Optional[str] = None):
        self.exit_code = exit_code
        self.signal_name = signal_name
        if signal_name:
            message = f"terminated by signal {signal_name}"
        else:
            message = f"exit status {exit_code}"
        super().__init__(message)


class CancellationError(RetryToolError):
    """Retrying was aborted by an external signal."""

    def __init__(self, message: str = "retry cancelled"):
        super().__init__(message)


class RetryExhaustedError(RetryToolError):
    """Every attempt failed.

    Attributes:
        outcomes: Outcome of every attempt made, in order
    """

    def __init__(self, outcomes: List["AttemptOutcome"]):
        self.outcomes = list(outcomes)
        lines = ["All attempts fail:"]
        for outcome in self.outcomes:
            lines.append(f"#{outcome.attempt_number}: {outcome.error}")
        super().__init__("\n".join(lines))

    def __len__(self) -> int:
        return len(self.outcomes)
