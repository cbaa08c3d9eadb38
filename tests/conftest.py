"""Shared fixtures"""

from __future__ import annotations

import shutil
import sys
from typing import List, Optional, Sequence

import pytest

from cmdretry.domain.errors import ChildExitError
from cmdretry.domain.models.attempt import AttemptOutcome
from cmdretry.infrastructure.cancellation import CancellationToken
from cmdretry.infrastructure.stdin_capture import CapturedInput

requires_posix = pytest.mark.skipif(
    sys.platform == "win32" or shutil.which("sh") is None,
    reason="needs a POSIX shell and coreutils",
)


class ScriptedRunner:
    """Runner returning pre-defined exit codes instead of spawning processes"""

    def __init__(self, exit_codes: Sequence[int], on_run=None):
        self.exit_codes = list(exit_codes)
        self.on_run = on_run
        self.calls: List[dict] = []

    def run_once(
        self,
        argv: Sequence[str],
        captured: CapturedInput,
        cancellation: CancellationToken,
        attempt_number: int = 1,
    ) -> AttemptOutcome:
        self.calls.append(
            {"argv": list(argv), "captured": captured, "attempt_number": attempt_number}
        )
        if self.on_run is not None:
            self.on_run(attempt_number)
        code = self.exit_codes[min(len(self.calls), len(self.exit_codes)) - 1]
        error: Optional[ChildExitError] = ChildExitError(code) if code != 0 else None
        return AttemptOutcome(
            attempt_number=attempt_number,
            succeeded=code == 0,
            error=error,
            exit_code=code,
        )


@pytest.fixture
def token() -> CancellationToken:
    return CancellationToken()
