"""
Velocity Filters

Single-pole lowpass filter used to smooth cluster velocities, and a
least-squares fit of velocity over recent cluster path points.

The lowpass filter is driven by event timestamps rather than a fixed
sample rate, so the effective mixing factor for each sample is
dt / tau, saturating at 1 for long gaps:

    y_k = y_{k-1} + (x_k - y_{k-1}) * min(1, dt / tau)
"""

from typing import Optional, Sequence, Tuple

import numpy as np


class LowpassFilter:
    """
    First-order IIR lowpass filter with a time constant in milliseconds.

    The first sample initializes the output directly. A zero time constant
    disables filtering.

    Example:
        >>> f = LowpassFilter(tau_ms=10.0)
        >>> f.filter(1.0, 0)
        1.0
        >>> f.filter(0.0, 5000)  # 5 ms later, halfway to the new value
        0.5
    """

    def __init__(self, tau_ms: float = 10.0, ticks_per_ms: float = 1000.0) -> None:
        """
        Initialize filter.

        Args:
            tau_ms: Time constant [ms]
            ticks_per_ms: Timestamp ticks per millisecond (1000 for us ticks)
        """
        self.tau_ms = tau_ms
        self.ticks_per_ms = ticks_per_ms
        self.value = 0.0
        self.last_time = 0
        self.initialized = False

    def filter(self, value: float, time: int) -> float:
        """
        Filter a new sample.

        Args:
            value: Input sample
            time: Sample timestamp [ticks]

        Returns:
            Filtered value
        """
        if not self.initialized:
            self.value = value
            self.last_time = time
            self.initialized = True
            return self.value

        if self.tau_ms <= 0:
            self.value = value
            self.last_time = time
            return self.value

        dt = time - self.last_time
        if dt < 0:
            dt = 0
        self.last_time = time

        fac = dt / (self.tau_ms * self.ticks_per_ms)
        if fac > 1.0:
            fac = 1.0
        self.value += (value - self.value) * fac
        return self.value

    def reset(self) -> None:
        self.initialized = False
        self.value = 0.0


def fit_path_velocity(
    points: Sequence, n_points: int, t0: int = 0
) -> Optional[Tuple[float, float]]:
    """
    Ordinary least-squares velocity over the last n path points.

    Fits x(t) and y(t) with straight lines and returns their slopes.
    Times are taken relative to t0 to keep the sums well conditioned.

    Args:
        points: Path points with x, y, t attributes (oldest first)
        n_points: Window length
        t0: Reference time [ticks], usually the cluster birth time

    Returns:
        (vx, vy) in pixels/tick, or None if fewer than n_points points are
        available or the time samples are degenerate
    """
    if n_points < 2 or len(points) < n_points:
        return None

    window = points[-n_points:]
    t = np.array([p.t - t0 for p in window], dtype=np.float64)
    x = np.array([p.x for p in window], dtype=np.float64)
    y = np.array([p.y for p in window], dtype=np.float64)

    n = float(n_points)
    st = t.sum()
    den = n * np.dot(t, t) - st * st
    if den == 0:
        return None

    vx = (n * np.dot(x, t) - st * x.sum()) / den
    vy = (n * np.dot(y, t) - st * y.sum()) / den
    return float(vx), float(vy)
