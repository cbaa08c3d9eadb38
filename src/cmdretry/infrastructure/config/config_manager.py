"""Configuration manager for building and validating the retry policy"""

import logging
import os
from typing import Any, Dict, Mapping, Optional

from pydantic import ValidationError

from cmdretry.domain.config import RetryPolicy
from cmdretry.domain.errors import ConfigurationError
from cmdretry.infrastructure.config.duration import parse_duration

logger = logging.getLogger(__name__)

# environment variables to configure tool behavior
RETRY_ATTEMPTS = "RETRY_ATTEMPTS"
RETRY_DELAY = "RETRY_DELAY"
RETRY_MAX_DELAY = "RETRY_MAX_DELAY"
RETRY_BACKOFF = "RETRY_BACKOFF"
RETRY_BEQUIET = "RETRY_BEQUIET"

_TRUE_VALUES = {"1", "t", "true", "yes", "y", "on"}
_FALSE_VALUES = {"0", "f", "false", "no", "n", "off"}


def _parse_int(name: str, value: str) -> int:
    try:
        return int(value.strip())
    except ValueError:
        raise ConfigurationError(f"{name}: cannot parse {value!r} as a number") from None


def _parse_duration(name: str, value: str) -> float:
    try:
        return parse_duration(value)
    except ValueError as e:
        raise ConfigurationError(f"{name}: {e}") from None


def _parse_bool(name: str, value: str) -> bool:
    normalized = value.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise ConfigurationError(f"{name}: cannot parse {value!r} as boolean")


class ConfigManager:
    """Builds the retry policy from environment variables and CLI overrides

    Configuration priority:
    1. Default values (defined in the RetryPolicy model)
    2. Environment variables (RETRY_*)
    3. CLI arguments (passed as overrides, None means "not given")
    """

    def __init__(
        self,
        overrides: Optional[Mapping[str, Any]] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize config manager

        Args:
            overrides: Policy fields given on the command line
            environ: Environment to read (defaults to os.environ)

        Raises:
            ConfigurationError: If a value cannot be parsed or fails validation
        """
        self.environ = os.environ if environ is None else environ
        config_dict = self._apply_env_overrides({})
        for key, value in (overrides or {}).items():
            if value is not None:
                config_dict[key] = value

        try:
            self.policy = RetryPolicy(**config_dict)
        except ValidationError as e:
            # Format validation errors for user
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"]) or "policy"
                msg = error["msg"]
                errors.append(f"  - {field}: {msg}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

        logger.debug(f"Retry policy: {self.policy.model_dump()}")

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides

        Args:
            config: Configuration dictionary

        Returns:
            Configuration with env overrides applied
        """
        if self.environ.get(RETRY_ATTEMPTS):
            config["max_attempts"] = _parse_int(RETRY_ATTEMPTS, self.environ[RETRY_ATTEMPTS])

        if self.environ.get(RETRY_DELAY):
            config["initial_delay"] = _parse_duration(RETRY_DELAY, self.environ[RETRY_DELAY])

        if self.environ.get(RETRY_MAX_DELAY):
            config["max_delay"] = _parse_duration(RETRY_MAX_DELAY, self.environ[RETRY_MAX_DELAY])

        if self.environ.get(RETRY_BACKOFF):
            config["backoff"] = self.environ[RETRY_BACKOFF].strip().lower()

        if self.environ.get(RETRY_BEQUIET):
            config["quiet"] = _parse_bool(RETRY_BEQUIET, self.environ[RETRY_BEQUIET])

        return config

    def get_retry_policy(self) -> RetryPolicy:
        """Get retry policy

        Returns:
            Validated retry policy
        """
        return self.policy
