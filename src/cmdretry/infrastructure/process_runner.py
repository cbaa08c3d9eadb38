"""Attempt executor - runs the target command once"""

from __future__ import annotations

import logging
import signal
import subprocess
import threading
import time
from typing import Optional, Sequence

from cmdretry.domain.errors import CancellationError, ChildExitError, ChildStartError
from cmdretry.domain.models.attempt import AttemptOutcome
from cmdretry.infrastructure.cancellation import CancellationToken
from cmdretry.infrastructure.stdin_capture import CapturedInput

logger = logging.getLogger(__name__)


def _signal_name(returncode: int) -> Optional[str]:
    if returncode >= 0:
        return None
    try:
        return signal.Signals(-returncode).name
    except ValueError:
        return f"SIG{-returncode}"


def _feed_stdin(process: subprocess.Popen, data: bytes) -> None:
    """Write the captured input to the child and close its stdin"""
    try:
        if data:
            process.stdin.write(data)
            process.stdin.flush()
    except (BrokenPipeError, ValueError):
        # child exited or closed its input before reading everything
        pass
    finally:
        try:
            process.stdin.close()
        except OSError:
            pass


class ProcessRunner:
    """Starts the target command as a child process, once per attempt.

    The argument vector is passed to the OS untouched (no shell). Standard
    output and error are inherited so the child writes straight to ours.
    Captured input is replayed through a fresh pipe on every attempt.
    """

    def __init__(self, poll_interval: float = 0.05, terminate_timeout: float = 5.0):
        """Initialize process runner

        Args:
            poll_interval: Seconds between cancellation checks while the child runs
            terminate_timeout: Seconds to wait after SIGTERM before killing the child
        """
        self.poll_interval = poll_interval
        self.terminate_timeout = terminate_timeout

    def run_once(
        self,
        argv: Sequence[str],
        captured: CapturedInput,
        cancellation: CancellationToken,
        attempt_number: int = 1,
    ) -> AttemptOutcome:
        """Run the command once and report how it went

        Args:
            argv: Command name followed by its arguments
            captured: Input to replay, or the pass-through sentinel
            cancellation: Token that aborts the running child
            attempt_number: Attempt counter for the outcome

        Returns:
            AttemptOutcome for this attempt
        """
        started = time.monotonic()
        logger.debug(f"Attempt #{attempt_number}: starting {list(argv)}")

        stdin = None if captured.is_passthrough else subprocess.PIPE
        try:
            process = subprocess.Popen(list(argv), stdin=stdin)
        except OSError as e:
            logger.debug(f"Attempt #{attempt_number}: cannot start command: {e}")
            return AttemptOutcome(
                attempt_number=attempt_number,
                succeeded=False,
                error=ChildStartError(argv[0], e),
                duration=time.monotonic() - started,
            )

        returncode = self._wait(process, captured.data, cancellation)
        duration = time.monotonic() - started

        if returncode is None:
            logger.debug(f"Attempt #{attempt_number}: child terminated on cancellation")
            return AttemptOutcome(
                attempt_number=attempt_number,
                succeeded=False,
                error=CancellationError(),
                exit_code=process.returncode,
                duration=duration,
            )

        logger.debug(f"Attempt #{attempt_number}: exited with {returncode} after {duration:.3f}s")
        if returncode == 0:
            return AttemptOutcome(
                attempt_number=attempt_number,
                succeeded=True,
                exit_code=0,
                duration=duration,
            )
        return AttemptOutcome(
            attempt_number=attempt_number,
            succeeded=False,
            error=ChildExitError(returncode, _signal_name(returncode)),
            exit_code=returncode,
            duration=duration,
        )

    def _wait(
        self,
        process: subprocess.Popen,
        data: Optional[bytes],
        cancellation: CancellationToken,
    ) -> Optional[int]:
        """Feed input and wait for exit, racing against cancellation

        Returns:
            Exit code, or None if the child was terminated on cancellation
        """
        feeder = None
        if data is not None:
            feeder = threading.Thread(
                target=_feed_stdin, args=(process, data), name="stdin-feeder", daemon=True
            )
            feeder.start()

        try:
            while True:
                if cancellation.cancelled:
                    self._terminate(process)
                    return None
                try:
                    return process.wait(timeout=self.poll_interval)
                except subprocess.TimeoutExpired:
                    continue
        finally:
            if feeder is not None:
                feeder.join(timeout=self.terminate_timeout)

    def _terminate(self, process: subprocess.Popen) -> None:
        if process.poll() is not None:
            return
        logger.debug(f"Terminating child process {process.pid}")
        process.terminate()
        try:
            process.wait(timeout=self.terminate_timeout)
        except subprocess.TimeoutExpired:
            logger.debug(f"Child process {process.pid} ignored SIGTERM, killing it")
            process.kill()
            process.wait()
