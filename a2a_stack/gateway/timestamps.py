"""Millisecond/nanosecond conversion between the dashboard and Loki.

The dashboard speaks epoch milliseconds, Loki epoch nanoseconds. ms -> ns is
exact. ns -> ms floors, so a displayed time can be up to 999 microseconds
earlier than the stored one.
"""

import time
from typing import Optional, Tuple, Union

from a2a_stack.config.constants import DEFAULT_WINDOW_MS

NS_PER_MS = 1_000_000


def now_ms() -> int:
    return int(time.time() * 1000)


def ms_to_ns(ms: int) -> int:
    return int(ms) * NS_PER_MS


def ns_to_ms(ns: Union[int, str]) -> int:
    return int(ns) // NS_PER_MS


def seconds_to_ms(seconds: Union[float, str]) -> int:
    return int(round(float(seconds) * 1000))


def resolve_window(
    start_ms: Optional[int],
    end_ms: Optional[int],
    current_ms: Optional[int] = None,
    window_ms: int = DEFAULT_WINDOW_MS,
) -> Tuple[int, int]:
    """Fills in a missing bound: no end means now, no start means end - window."""
    if end_ms is None:
        end_ms = current_ms if current_ms is not None else now_ms()
    if start_ms is None:
        start_ms = end_ms - window_ms
    if start_ms > end_ms:
        raise ValueError(f"start ({start_ms}) must not be after end ({end_ms})")
    return start_ms, end_ms
