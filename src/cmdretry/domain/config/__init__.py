"""Configuration models with Pydantic validation."""

from cmdretry.domain.config.policy import BackoffStrategy, RetryPolicy

__all__ = [
    "BackoffStrategy",
    "RetryPolicy",
]
