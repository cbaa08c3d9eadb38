"""Tests for the cancellation token and signal source"""

from __future__ import annotations

import os
import signal
import sys
import threading
import time
from unittest.mock import MagicMock

import pytest

from cmdretry.infrastructure.cancellation import CancellationToken, install_signal_handlers


class TestCancellationToken:
    """Tests for CancellationToken"""

    def test_starts_live(self, token):
        assert token.cancelled is False
        assert token.wait(0) is False

    def test_cancel_is_permanent(self, token):
        token.cancel()
        token.cancel()

        assert token.cancelled is True
        assert token.wait(0) is True
        assert token.wait(10) is True

    def test_wait_times_out(self, token):
        started = time.monotonic()

        assert token.wait(0.05) is False
        assert time.monotonic() - started >= 0.04

    def test_wait_wakes_up_on_cancel(self, token):
        timer = threading.Timer(0.05, token.cancel)
        timer.start()
        started = time.monotonic()
        try:
            assert token.wait(10) is True
        finally:
            timer.cancel()
        assert time.monotonic() - started < 5

    def test_cancel_without_wake_is_still_noticed(self, token):
        timer = threading.Timer(0.05, token.cancel, kwargs={"wake": False})
        timer.start()
        started = time.monotonic()
        try:
            assert token.wait(10) is True
        finally:
            timer.cancel()
        assert time.monotonic() - started < 5


@pytest.mark.skipif(sys.platform == "win32", reason="POSIX signals")
class TestInstallSignalHandlers:
    """Tests for install_signal_handlers"""

    def test_signal_handler_does_not_take_event_lock(self, token, monkeypatch):
        set_event = MagicMock()
        monkeypatch.setattr(token._event, "set", set_event)
        restore = install_signal_handlers(token)
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            assert token.wait(5) is True
        finally:
            restore()

        set_event.assert_not_called()

    def test_sigterm_cancels_token(self, token):
        previous = signal.getsignal(signal.SIGTERM)
        restore = install_signal_handlers(token)
        try:
            os.kill(os.getpid(), signal.SIGTERM)
            assert token.wait(5) is True
        finally:
            restore()

        assert signal.getsignal(signal.SIGTERM) == previous

    def test_first_signal_restores_previous_handlers(self, token):
        previous = signal.getsignal(signal.SIGINT)
        restore = install_signal_handlers(token)
        try:
            assert signal.getsignal(signal.SIGINT) != previous
            os.kill(os.getpid(), signal.SIGINT)
            assert token.wait(5) is True
            assert signal.getsignal(signal.SIGINT) == previous
        finally:
            restore()

    def test_restore_without_signal(self, token):
        previous = signal.getsignal(signal.SIGINT)
        restore = install_signal_handlers(token)
        restore()

        assert signal.getsignal(signal.SIGINT) == previous
        assert token.cancelled is False

    def test_noop_outside_main_thread(self, token):
        result = {}

        def install():
            result["restore"] = install_signal_handlers(token)

        thread = threading.Thread(target=install)
        thread.start()
        thread.join()

        result["restore"]()
        assert token.cancelled is False
