"""Retry policy model."""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator


class BackoffStrategy(str, Enum):
    """How the delay between attempts grows"""

    FIXED = "fixed"
    EXPONENTIAL = "exponential"


class RetryPolicy(BaseModel):
    """Immutable policy handed to the retry loop.

    Attributes:
        max_attempts: Maximum number of attempts (including the first one)
        initial_delay: Delay in seconds after the first failed attempt
        backoff: Backoff strategy for subsequent delays
        max_delay: Upper bound for exponential delays (None = unbounded)
        quiet: Suppress the per-attempt failure lines
    """

    max_attempts: int = Field(3, gt=0)
    initial_delay: float = Field(2.0, ge=0.0)
    backoff: BackoffStrategy = BackoffStrategy.EXPONENTIAL
    max_delay: Optional[float] = Field(None, ge=0.0)
    quiet: bool = False

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        json_schema_extra={
            "example": {
                "max_attempts": 3,
                "initial_delay": 2.0,
                "backoff": "exponential",
                "max_delay": None,
                "quiet": False,
            }
        },
    )

    @model_validator(mode="after")
    def _check_max_delay(self) -> "RetryPolicy":
        if self.max_delay is not None and self.max_delay < self.initial_delay:
            raise ValueError("max_delay must not be smaller than initial_delay")
        return self
