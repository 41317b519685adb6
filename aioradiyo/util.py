"""Utility functions for aioradiyo."""

from __future__ import annotations

import time


def now_ms() -> int:
    """Return the current wall-clock time in epoch milliseconds.

    Every timestamp written to the playback record uses this clock unless a
    component is given its own `now_ms` callable.
    """
    return time.time_ns() // 1_000_000
