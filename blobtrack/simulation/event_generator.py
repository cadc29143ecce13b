"""
Synthetic Event Stream Generator

Produces event streams of moving blobs over uniform background noise,
for headless runs and tests without a physical sensor.

Model:
    - Each blob emits events as a Poisson process at rate_hz
    - Event positions are Gaussian around the blob center,
      sigma = radius / 2, center moving at constant velocity
    - Background noise is uniform over the array at noise_rate_hz
    - Events falling off the array are dropped

Usage:
    gen = EventStreamGenerator(128, 128, [BlobSpec(20, 64, vx_pps=500)], StreamConfig(seed=1))
    for packet in gen.packets():
        tracker.process_packet(packet)
"""

from dataclasses import dataclass
from typing import Iterator, List, Optional, Sequence, Tuple

import numpy as np

from ..tracking.events import Event, events_from_arrays


@dataclass
class BlobSpec:
    """
    Moving blob.

    Attributes:
        x, y: Initial center [pixels]
        vx_pps, vy_pps: Velocity [pixels/s]
        radius: Spatial spread [pixels]
        rate_hz: Event rate [events/s]
    """

    x: float
    y: float
    vx_pps: float = 0.0
    vy_pps: float = 0.0
    radius: float = 3.0
    rate_hz: float = 20000.0

    def position_at(self, t_us: float) -> Tuple[float, float]:
        """Blob center at time t_us [us]."""
        t_s = t_us * 1e-6
        return (self.x + self.vx_pps * t_s, self.y + self.vy_pps * t_s)


@dataclass
class StreamConfig:
    """
    Stream parameters.

    Attributes:
        duration_us: Stream length [us]
        packet_us: Packet length [us]
        noise_rate_hz: Background noise rate over the whole array [events/s]
        seed: Random seed for reproducibility
    """

    duration_us: int = 200000
    packet_us: int = 10000
    noise_rate_hz: float = 2000.0
    seed: Optional[int] = None


class EventStreamGenerator:
    """Generates a time-sorted synthetic event stream and splits it into packets."""

    def __init__(
        self,
        size_x: int,
        size_y: int,
        blobs: Sequence[BlobSpec],
        config: Optional[StreamConfig] = None,
    ):
        """
        Initialize generator.

        Args:
            size_x: Sensor width [pixels]
            size_y: Sensor height [pixels]
            blobs: Moving blobs
            config: Stream parameters (defaults if None)
        """
        self.size_x = size_x
        self.size_y = size_y
        self.blobs = list(blobs)
        self.config = config or StreamConfig()
        self.rng = np.random.default_rng(self.config.seed)

    def _blob_events(self, blob: BlobSpec, duration_us: int) -> Tuple[np.ndarray, ...]:
        n = self.rng.poisson(blob.rate_hz * duration_us * 1e-6)
        t = np.sort(self.rng.integers(0, duration_us, size=n))
        t_s = t * 1e-6
        sigma = blob.radius / 2
        x = blob.x + blob.vx_pps * t_s + self.rng.normal(0.0, sigma, size=n)
        y = blob.y + blob.vy_pps * t_s + self.rng.normal(0.0, sigma, size=n)
        return np.round(x).astype(np.int64), np.round(y).astype(np.int64), t

    def _noise_events(self, duration_us: int) -> Tuple[np.ndarray, ...]:
        n = self.rng.poisson(self.config.noise_rate_hz * duration_us * 1e-6)
        t = self.rng.integers(0, duration_us, size=n)
        x = self.rng.integers(0, self.size_x, size=n)
        y = self.rng.integers(0, self.size_y, size=n)
        return x, y, t

    def generate(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, np.ndarray]:
        """
        Generate the whole stream.

        Returns:
            (x, y, t, polarity) arrays sorted by timestamp
        """
        duration = self.config.duration_us
        parts = [self._blob_events(b, duration) for b in self.blobs]
        parts.append(self._noise_events(duration))

        x = np.concatenate([p[0] for p in parts])
        y = np.concatenate([p[1] for p in parts])
        t = np.concatenate([p[2] for p in parts])

        on_array = (x >= 0) & (x < self.size_x) & (y >= 0) & (y < self.size_y)
        x, y, t = x[on_array], y[on_array], t[on_array]

        order = np.argsort(t, kind="stable")
        x, y, t = x[order], y[order], t[order]
        polarity = self.rng.integers(0, 2, size=len(t))
        return x, y, t, polarity

    def packets(self) -> Iterator[List[Event]]:
        """
        Yield the stream as packets of packet_us each.

        Empty packets are yielded too, so packet index maps to time.
        """
        x, y, t, p = self.generate()
        packet_us = self.config.packet_us
        edges = np.arange(0, self.config.duration_us + packet_us, packet_us)
        bounds = np.searchsorted(t, edges)
        for start, stop in zip(bounds[:-1], bounds[1:]):
            yield events_from_arrays(x[start:stop], y[start:stop], t[start:stop], p[start:stop])
