"""Measurement primitives: latency / time-to-first-token timers and token accounting."""

from __future__ import annotations

import time
from dataclasses import dataclass
from datetime import datetime

TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
DETAIL_LIMIT = 300


def now_string() -> str:
    """Wall-clock timestamp used for start/end times and report headers."""
    return datetime.now().strftime(TIME_FORMAT)


def truncate(text: str, limit: int) -> str:
    """Strip and cut text to at most ``limit`` characters, marking the cut with '...'."""
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[:limit] + "..."


class Stopwatch:
    """Monotonic timer for one measured request.

    ``mark_first()`` records the time-to-first-token the first time it is
    called; later calls are ignored. Both values share the same origin, so a
    TTFT taken before ``elapsed_ms()`` can never exceed it.
    """

    def __init__(self) -> None:
        self._start = time.perf_counter()
        self._first: float | None = None

    def elapsed_ms(self) -> float:
        return (time.perf_counter() - self._start) * 1000.0

    def mark_first(self) -> float:
        if self._first is None:
            self._first = self.elapsed_ms()
        return self._first

    @property
    def first_ms(self) -> float:
        """TTFT in ms, or 0.0 if no chunk was marked."""
        return self._first if self._first is not None else 0.0


@dataclass
class TokenUsage:
    """Token counts taken from a response's usage block.

    ``reported`` is False when the provider did not send usage data, in which
    case both counts stay 0.
    """

    input_tokens: int = 0
    output_tokens: int = 0
    reported: bool = False

    def add(self, other: TokenUsage) -> TokenUsage:
        return TokenUsage(
            input_tokens=self.input_tokens + other.input_tokens,
            output_tokens=self.output_tokens + other.output_tokens,
            reported=self.reported or other.reported,
        )

    @classmethod
    def from_counts(cls, input_tokens: object, output_tokens: object) -> TokenUsage:
        """Build usage from raw JSON values; non-integers count as missing."""
        tin = input_tokens if isinstance(input_tokens, int) else None
        tout = output_tokens if isinstance(output_tokens, int) else None
        if tin is None and tout is None:
            return cls()
        return cls(input_tokens=tin or 0, output_tokens=tout or 0, reported=True)
