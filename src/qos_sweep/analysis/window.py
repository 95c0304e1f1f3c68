# src/qos_sweep/analysis/window.py
# One measurement window: received sequence numbers, arrival gaps, statistics

import math
from dataclasses import dataclass
from typing import List, Optional

from ..config import WINDOW_MS


@dataclass(frozen=True)
class WindowStats:
    received: int
    expected: int
    message_rate: float
    loss_rate: Optional[float]  # None when only one distinct sequence value was seen
    out_of_order_rate: float
    delay_mean: float
    delay_median: float


class MeasurementWindow:
    """
    Sequence numbers in arrival order, and the gap in ms before each one.

    The first message of a window gets the sentinel gap 0, so once anything
    has arrived there are exactly as many gaps as sequence numbers.
    """

    def __init__(self):
        self.sequence: List[int] = []
        self.gaps: List[int] = [0]
        self._last_ms = None

    def __len__(self):
        return len(self.sequence)

    def mark(self, now_ms):
        """Move the gap reference point without recording a message."""
        self._last_ms = now_ms

    def record(self, seq, now_ms):
        if self.sequence:
            self.gaps.append(now_ms - self._last_ms)
        self.sequence.append(seq)
        self._last_ms = now_ms

    def reset(self):
        # The gap reference carries over: it is wall-clock, not per window
        self.sequence.clear()
        self.gaps.clear()
        self.gaps.append(0)


def compute_stats(sequence, gaps, window_seconds=WINDOW_MS / 1000):
    """
    sequence: received sequence numbers in arrival order
    gaps: inter-arrival gaps in ms, same length, gaps[0] is the sentinel 0

    Returns WindowStats, or None for an empty window.
    """
    n = len(sequence)
    if n == 0:
        return None

    # -------------------------------
    # Throughput and loss
    # -------------------------------
    expected = max(sequence) - min(sequence)
    message_rate = n / window_seconds
    loss_rate = None if expected == 0 else 1.0 - n / expected

    # -------------------------------
    # Reordering, in arrival order
    # -------------------------------
    out_of_order = 0
    for current, following in zip(sequence, sequence[1:]):
        if following < current:
            out_of_order += 1

    # -------------------------------
    # Inter-arrival delay
    # Median is positional over the unsorted gaps, not a sorted median.
    # -------------------------------
    delay_mean = sum(gaps) / n
    if n % 2 == 0:
        mid = n // 2
    else:
        mid = math.ceil(n / 2)
    mid = min(mid, len(gaps) - 1)

    return WindowStats(
        received=n,
        expected=expected,
        message_rate=float(message_rate),
        loss_rate=loss_rate,
        out_of_order_rate=out_of_order / n,
        delay_mean=float(delay_mean),
        delay_median=float(gaps[mid]),
    )
