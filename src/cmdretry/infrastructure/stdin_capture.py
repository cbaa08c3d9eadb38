"""Standard input capture.

A pipe can only be consumed once, so non-interactive input is read into
memory before the first attempt and replayed to every attempt.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from typing import BinaryIO, Optional, TextIO, Union

from cmdretry.domain.errors import IOReadError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CapturedInput:
    """Buffered standard input, or the pass-through sentinel (data is None)"""

    data: Optional[bytes] = b""

    @classmethod
    def passthrough(cls) -> "CapturedInput":
        return cls(data=None)

    @property
    def is_passthrough(self) -> bool:
        return self.data is None


def _is_interactive(stream: Union[TextIO, BinaryIO]) -> bool:
    try:
        return stream.isatty()
    except (AttributeError, ValueError):
        # closed or non-file streams are never terminals
        return False


def capture_stdin(stream: Optional[Union[TextIO, BinaryIO]] = None) -> CapturedInput:
    """Capture standard input for replay

    Args:
        stream: Input stream (defaults to sys.stdin)

    Returns:
        Pass-through sentinel for a terminal, buffered bytes otherwise

    Raises:
        IOReadError: If reading the stream fails
    """
    if stream is None:
        stream = sys.stdin
    if stream is None:
        logger.debug("No standard input attached, using empty input")
        return CapturedInput(b"")

    if _is_interactive(stream):
        logger.debug("Standard input is a terminal, passing it through")
        return CapturedInput.passthrough()

    source = getattr(stream, "buffer", stream)
    try:
        data = source.read()
    except (OSError, ValueError) as e:
        raise IOReadError(f"cannot read standard input: {e}") from e

    if isinstance(data, str):
        data = data.encode(getattr(stream, "encoding", None) or "utf-8")
    logger.debug(f"Captured {len(data)} bytes of standard input")
    return CapturedInput(data)
