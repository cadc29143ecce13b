"""
Address-Event Containers

Input and output event types for the cluster tracker.

An event is a single timestamped pixel sample from an event-based vision
sensor. Timestamps are integer ticks (microseconds by default) and are
expected to be monotonically non-decreasing within a stream.

Orientation events additionally carry a quantized edge direction (0-3),
which restricts how far a captured event can drag its cluster.
"""

import math
from dataclasses import dataclass
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple

import numpy as np


class Polarity(IntEnum):
    """Event polarity (brightness change direction)."""

    OFF = 0
    ON = 1


_R = 1.0 / math.sqrt(2.0)

# Unit vectors for the four quantized orientations: 0, 45, 90, 135 degrees
ORIENTATION_UNIT_VECTORS: Tuple[Tuple[float, float], ...] = (
    (1.0, 0.0),
    (_R, _R),
    (0.0, 1.0),
    (-_R, _R),
)


@dataclass(frozen=True)
class Event:
    """
    Single sensor event.

    Attributes:
        x: Pixel column
        y: Pixel row
        timestamp: Event time [ticks]
        polarity: ON or OFF
        orientation: Optional quantized edge orientation (0-3)
    """

    x: int
    y: int
    timestamp: int
    polarity: Polarity = Polarity.ON
    orientation: Optional[int] = None


@dataclass(frozen=True)
class ClusterEvent:
    """Output event tagged with the id of the cluster that captured it."""

    event: Event
    cluster_id: int

    @property
    def x(self) -> int:
        return self.event.x

    @property
    def y(self) -> int:
        return self.event.y

    @property
    def timestamp(self) -> int:
        return self.event.timestamp


def events_from_arrays(
    x: Sequence[int],
    y: Sequence[int],
    t: Sequence[int],
    polarity: Optional[Sequence[int]] = None,
) -> List[Event]:
    """
    Build a packet of events from column arrays.

    Args:
        x: Pixel columns
        y: Pixel rows
        t: Timestamps [ticks]
        polarity: Optional polarities (0=OFF, 1=ON); defaults to ON

    Returns:
        List of Event, in input order

    Raises:
        ValueError: If the columns differ in length
    """
    xs = np.asarray(x, dtype=np.int64)
    ys = np.asarray(y, dtype=np.int64)
    ts = np.asarray(t, dtype=np.int64)
    if polarity is None:
        ps = np.ones(len(xs), dtype=np.int64)
    else:
        ps = np.asarray(polarity, dtype=np.int64)

    if not (len(xs) == len(ys) == len(ts) == len(ps)):
        raise ValueError(
            f"Event columns must have equal length, got {len(xs)}, {len(ys)}, {len(ts)}, {len(ps)}"
        )

    return [
        Event(int(ex), int(ey), int(et), Polarity(1 if ep else 0))
        for ex, ey, et, ep in zip(xs, ys, ts, ps)
    ]
