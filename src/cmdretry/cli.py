"""CLI interface for cmdretry"""

import logging
from typing import Optional, Tuple

import click

from cmdretry import __version__
from cmdretry.application.reporting import AttemptReporter
from cmdretry.application.retry_service import RetryService
from cmdretry.domain.errors import ConfigurationError, IOReadError
from cmdretry.infrastructure.cancellation import CancellationToken, install_signal_handlers
from cmdretry.infrastructure.config.config_manager import (
    RETRY_ATTEMPTS,
    RETRY_BACKOFF,
    RETRY_BEQUIET,
    RETRY_DELAY,
    RETRY_MAX_DELAY,
    ConfigManager,
)
from cmdretry.infrastructure.config.duration import format_duration, parse_duration
from cmdretry.infrastructure.process_runner import ProcessRunner
from cmdretry.infrastructure.stdin_capture import capture_stdin

logger = logging.getLogger(__name__)

EXAMPLES = """\b
Examples:
  Retry a flaky download, up to 3 attempts with 2s initial delay
    cmdretry curl --fail https://example.org/file.tar.gz

  Retry with custom attempts and delay
    cmdretry --attempts 5 --delay 500ms -- make test

  Input piped into cmdretry is replayed to every attempt
    echo '{"key": "value"}' | cmdretry --quiet -- jq .key

\b
Environment:
  RETRY_ATTEMPTS, RETRY_DELAY, RETRY_MAX_DELAY, RETRY_BACKOFF, RETRY_BEQUIET
  set the defaults for the matching options.
"""


class DurationParamType(click.ParamType):
    """Click parameter for duration strings such as 25ms, 2s or 1m30s"""

    name = "duration"

    def convert(self, value, param, ctx):
        if isinstance(value, (int, float)):
            return float(value)
        try:
            return parse_duration(value)
        except ValueError as e:
            self.fail(str(e), param, ctx)


DURATION = DurationParamType()


def setup_logging(verbose: bool = False) -> None:
    """Setup logging configuration

    Diagnostics share stderr with the child, so only warnings and errors
    are logged unless verbose.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        force=True,
    )
    logging.getLogger().setLevel(level)


def _die(message: str, verbose: bool = False, exc: Optional[Exception] = None) -> None:
    """Exit with a user-friendly error message"""
    if exc is not None:
        logger.debug(message, exc_info=verbose)
    raise click.ClickException(message)


@click.command(
    context_settings={
        "ignore_unknown_options": True,
        "allow_interspersed_args": False,
        "help_option_names": ["-h", "--help"],
    },
    epilog=EXAMPLES,
)
@click.option(
    "--attempts",
    type=int,
    default=None,
    help=f"Number of attempts (default: 3, env: {RETRY_ATTEMPTS})",
)
@click.option(
    "--delay",
    type=DURATION,
    default=None,
    help=f"Initial delay between attempts (default: {format_duration(2.0)}, env: {RETRY_DELAY})",
)
@click.option(
    "--max-delay",
    type=DURATION,
    default=None,
    help=f"Upper bound for exponential delays (env: {RETRY_MAX_DELAY})",
)
@click.option(
    "--backoff",
    type=click.Choice(["exponential", "fixed"], case_sensitive=False),
    default=None,
    help=f"Delay growth between attempts (default: exponential, env: {RETRY_BACKOFF})",
)
@click.option(
    "--quiet/--no-quiet",
    default=None,
    help=f"Disable output for failed attempts (env: {RETRY_BEQUIET})",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose (DEBUG) logging")
@click.version_option(__version__, "--version", message="%(version)s", help="Show tool version")
@click.argument("command", nargs=-1, type=click.UNPROCESSED)
def cli(
    attempts: Optional[int],
    delay: Optional[float],
    max_delay: Optional[float],
    backoff: Optional[str],
    quiet: Optional[bool],
    verbose: bool,
    command: Tuple[str, ...],
):
    """Retry a command in case it fails.

    COMMAND and its arguments are run as-is (no shell) until the command
    exits with code 0 or all attempts are used up.
    """
    setup_logging(verbose)

    if not command:
        raise click.UsageError("no command specified")

    try:
        config_manager = ConfigManager(
            overrides={
                "max_attempts": attempts,
                "initial_delay": delay,
                "max_delay": max_delay,
                "backoff": backoff.lower() if backoff else None,
                "quiet": quiet,
            }
        )
    except ConfigurationError as e:
        raise click.UsageError(str(e))
    policy = config_manager.get_retry_policy()

    try:
        captured = capture_stdin()
    except IOReadError as e:
        _die(str(e), verbose=verbose, exc=e)

    cancellation = CancellationToken()
    restore_signals = install_signal_handlers(cancellation)
    try:
        reporter = AttemptReporter(quiet=policy.quiet)
        service = RetryService(
            policy,
            cancellation=cancellation,
            runner=ProcessRunner(),
            on_attempt_failure=reporter.report,
        )
        result = service.execute(list(command), captured)
    finally:
        restore_signals()

    if not result.succeeded:
        _die(str(result.error), verbose=verbose, exc=result.error)


def main():
    """Main entry point"""
    cli(prog_name="cmdretry")


if __name__ == "__main__":
    main()
