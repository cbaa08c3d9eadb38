"""Reporting sink for failed attempts"""

from __future__ import annotations

import logging
import sys
from typing import Optional, TextIO

logger = logging.getLogger(__name__)


class AttemptReporter:
    """Writes one line per failed attempt to the diagnostic stream"""

    def __init__(self, stream: Optional[TextIO] = None, quiet: bool = False):
        self.stream = stream
        self.quiet = quiet

    def report(self, attempt_number: int, error: Optional[Exception]) -> None:
        if self.quiet:
            return

        stream = self.stream if self.stream is not None else sys.stderr
        try:
            stream.write(f"command failed at attempt #{attempt_number}: {error}\n")
            stream.flush()
        except (OSError, ValueError) as e:
            # a broken diagnostic stream must not stop retrying
            logger.debug(f"Cannot report failed attempt #{attempt_number}: {e}")
