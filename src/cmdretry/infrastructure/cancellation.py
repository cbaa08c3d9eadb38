"""Cancellation token and the OS signal source that trips it."""

from __future__ import annotations

import logging
import signal
import threading
import time
from typing import Callable, Dict, Optional

logger = logging.getLogger(__name__)

# longest a waiter can miss a cancel(wake=False)
_WAKE_INTERVAL = 0.05


class CancellationToken:
    """One-way cancellation flag with a wake-up primitive.

    Transitions once from live to cancelled and never resets. Both the
    backoff delay and the child process wait go through ``wait`` so a
    cancellation interrupts either of them.
    """

    def __init__(self) -> None:
        self._cancelled = False
        self._event = threading.Event()

    def cancel(self, wake: bool = True) -> None:
        """Cancel the token

        Args:
            wake: Also wake blocked waiters right away. Signal handlers pass
                False: Event.set() takes a lock the interrupted thread may hold.
        """
        self._cancelled = True
        if wake:
            self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until cancelled or the timeout elapses

        Returns:
            True if the token is cancelled
        """
        deadline = None if timeout is None else time.monotonic() + timeout
        while not self._cancelled:
            remaining = _WAKE_INTERVAL
            if deadline is not None:
                remaining = min(remaining, deadline - time.monotonic())
                if remaining <= 0:
                    break
            self._event.wait(remaining)
        return self._cancelled


def _default_signals() -> list:
    signals = [signal.SIGINT]
    if hasattr(signal, "SIGTERM"):
        signals.append(signal.SIGTERM)
    return signals


def install_signal_handlers(token: CancellationToken) -> Callable[[], None]:
    """Cancel the token on SIGINT/SIGTERM

    The first signal cancels the token and restores the previous handlers,
    so a second signal gets the default behaviour. Outside the main thread
    nothing is installed.

    Args:
        token: Token to cancel

    Returns:
        Callable restoring the previous handlers
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on the main thread, signal handlers not installed")
        return lambda: None

    previous: Dict[int, object] = {}

    def restore() -> None:
        for signum, old in previous.items():
            # None means the handler was not installed from Python
            signal.signal(signum, old if old is not None else signal.SIG_DFL)
        previous.clear()

    def handler(signum, frame) -> None:
        logger.debug(f"Received signal {signal.Signals(signum).name}, cancelling")
        token.cancel(wake=False)
        restore()

    for signum in _default_signals():
        previous[signum] = signal.getsignal(signum)
        signal.signal(signum, handler)

    return restore
