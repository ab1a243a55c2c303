"""Run id generation."""

from __future__ import annotations

import time


class RunIdGenerator:
    """Time-based ids that never repeat within one generator.

    Ids are the lowercase hex of the current time in nanoseconds. When the
    clock has not advanced since the previous id, the value is bumped by one.
    """

    def __init__(self) -> None:
        self._last_ns = 0

    def __call__(self) -> str:
        now_ns = time.time_ns()
        if now_ns <= self._last_ns:
            now_ns = self._last_ns + 1
        self._last_ns = now_ns
        return f"{now_ns:x}"
