"""Attempt and run result models"""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from cmdretry.domain.errors import RetryToolError


class RetryState(str, Enum):
    """States of the retry loop"""

    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    EXHAUSTED = "exhausted"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (RetryState.SUCCEEDED, RetryState.EXHAUSTED, RetryState.CANCELLED)


@dataclass(frozen=True)
class AttemptOutcome:
    """Result of one invocation of the target command"""

    attempt_number: int
    succeeded: bool
    error: Optional[RetryToolError] = None
    exit_code: Optional[int] = None  # None if the child never started
    duration: float = 0.0


@dataclass
class RetryResult:
    """Overall result of the retry loop"""

    state: RetryState
    outcomes: List[AttemptOutcome] = field(default_factory=list)
    error: Optional[RetryToolError] = None  # None on success

    @property
    def succeeded(self) -> bool:
        return self.state is RetryState.SUCCEEDED

    @property
    def attempts(self) -> int:
        """Number of attempts that were started"""
        return len(self.outcomes)
