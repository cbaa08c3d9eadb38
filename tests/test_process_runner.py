"""Tests for ProcessRunner with real child processes"""

from __future__ import annotations

import threading
import time

import pytest

from cmdretry.domain.errors import CancellationError, ChildExitError, ChildStartError
from cmdretry.infrastructure.process_runner import ProcessRunner, _signal_name
from cmdretry.infrastructure.stdin_capture import CapturedInput

from conftest import requires_posix

pytestmark = requires_posix


@pytest.fixture
def runner() -> ProcessRunner:
    return ProcessRunner(poll_interval=0.01, terminate_timeout=2.0)


class TestRunOnce:
    """Tests for ProcessRunner.run_once"""

    def test_zero_exit_is_success(self, runner, token):
        outcome = runner.run_once(["true"], CapturedInput(b""), token)

        assert outcome.succeeded is True
        assert outcome.exit_code == 0
        assert outcome.error is None
        assert outcome.attempt_number == 1

    def test_non_zero_exit_is_failure(self, runner, token):
        outcome = runner.run_once(["sh", "-c", "exit 3"], CapturedInput(b""), token, attempt_number=2)

        assert outcome.succeeded is False
        assert outcome.exit_code == 3
        assert outcome.attempt_number == 2
        assert isinstance(outcome.error, ChildExitError)
        assert str(outcome.error) == "exit status 3"

    def test_child_killed_by_signal(self, runner, token):
        outcome = runner.run_once(["sh", "-c", "kill -TERM $$"], CapturedInput(b""), token)

        assert outcome.succeeded is False
        assert outcome.exit_code == -15
        assert isinstance(outcome.error, ChildExitError)
        assert outcome.error.signal_name == "SIGTERM"
        assert str(outcome.error) == "terminated by signal SIGTERM"

    def test_missing_binary_is_start_failure(self, runner, token):
        outcome = runner.run_once(["cmdretry-no-such-binary-xyz"], CapturedInput(b""), token)

        assert outcome.succeeded is False
        assert outcome.exit_code is None
        assert isinstance(outcome.error, ChildStartError)
        assert "cmdretry-no-such-binary-xyz" in str(outcome.error)

    def test_arguments_are_not_shell_expanded(self, runner, token, tmp_path):
        target = tmp_path / "args.txt"
        script = 'printf "%s\\n" "$@" > "$0"'

        outcome = runner.run_once(
            ["sh", "-c", script, str(target), "$HOME", "*", "a b"],
            CapturedInput(b""),
            token,
        )

        assert outcome.succeeded
        assert target.read_text().splitlines() == ["$HOME", "*", "a b"]

    def test_captured_input_is_fed_to_child(self, runner, token, tmp_path):
        target = tmp_path / "stdin.txt"

        outcome = runner.run_once(
            ["sh", "-c", 'cat > "$0"', str(target)], CapturedInput(b"hello\nworld\n"), token
        )

        assert outcome.succeeded
        assert target.read_bytes() == b"hello\nworld\n"

    def test_large_input_does_not_block(self, runner, token, tmp_path):
        target = tmp_path / "stdin.bin"
        data = b"x" * (1024 * 1024)

        outcome = runner.run_once(["sh", "-c", 'cat > "$0"', str(target)], CapturedInput(data), token)

        assert outcome.succeeded
        assert target.stat().st_size == len(data)

    def test_child_not_reading_input(self, runner, token):
        outcome = runner.run_once(["true"], CapturedInput(b"y" * (1024 * 1024)), token)

        assert outcome.succeeded

    def test_cancellation_terminates_running_child(self, runner, token):
        timer = threading.Timer(0.2, token.cancel)
        timer.start()
        started = time.monotonic()
        try:
            outcome = runner.run_once(["sleep", "30"], CapturedInput(b""), token)
        finally:
            timer.cancel()

        assert time.monotonic() - started < 10
        assert outcome.succeeded is False
        assert isinstance(outcome.error, CancellationError)

    def test_already_cancelled_token(self, runner, token):
        token.cancel()

        outcome = runner.run_once(["sleep", "30"], CapturedInput(b""), token)

        assert isinstance(outcome.error, CancellationError)
        assert outcome.duration < 10

    def test_child_ignoring_sigterm_is_killed(self, token):
        runner = ProcessRunner(poll_interval=0.01, terminate_timeout=0.2)
        timer = threading.Timer(0.3, token.cancel)
        timer.start()
        started = time.monotonic()
        try:
            outcome = runner.run_once(
                ["sh", "-c", "trap '' TERM; exec sleep 30"], CapturedInput(b""), token
            )
        finally:
            timer.cancel()

        assert time.monotonic() - started < 10
        assert isinstance(outcome.error, CancellationError)


class TestSignalName:
    """Tests for _signal_name"""

    def test_normal_exit_has_no_signal(self):
        assert _signal_name(0) is None
        assert _signal_name(3) is None

    def test_known_signal(self):
        assert _signal_name(-15) == "SIGTERM"

    def test_unknown_signal_number(self):
        assert _signal_name(-200) == "SIG200"
