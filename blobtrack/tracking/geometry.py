"""
Sensor Geometry

Sensor bounds, perspective scaling, and the small planar helpers shared by
the cluster model.
"""

import math
from dataclasses import dataclass
from typing import Optional, Tuple

# Perspective scale floor, keeps clusters near the horizon from collapsing
MIN_PERSPECTIVE_SCALE = 0.1


@dataclass(frozen=True)
class SensorGeometry:
    """
    Pixel array dimensions.

    Attributes:
        size_x: Array width [pixels]
        size_y: Array height [pixels]
    """

    size_x: int
    size_y: int

    def __post_init__(self):
        if self.size_x <= 0 or self.size_y <= 0:
            raise ValueError(f"Sensor size must be positive, got {self.size_x}x{self.size_y}")

    @property
    def max_size(self) -> int:
        return max(self.size_x, self.size_y)

    def perspective_scale(
        self, x: float, y: float, vanishing_point: Optional[Tuple[float, float]] = None
    ) -> float:
        """
        Geometric scale factor for a point viewed down a flat surface.

        Without a vanishing point the scale grows linearly from the top row
        (far) to 1 at the bottom row (near, y=0). With a vanishing point it
        grows linearly with distance from that point, reaching 1 at the
        larger sensor dimension.

        Args:
            x: Column [pixels]
            y: Row [pixels]
            vanishing_point: Optional horizon point (x, y) [pixels]

        Returns:
            Scale factor, at least MIN_PERSPECTIVE_SCALE
        """
        if vanishing_point is None:
            scale = 1.0 - y / self.size_y
        else:
            vx, vy = vanishing_point
            scale = math.hypot(x - vx, y - vy) / self.max_size
        return max(scale, MIN_PERSPECTIVE_SCALE)


def manhattan(dx: float, dy: float) -> float:
    """Cheap distance metric |dx| + |dy|."""
    return abs(dx) + abs(dy)


def fold_angle(candidate: float, current: float) -> float:
    """
    Unwrap an axis orientation relative to the current cluster angle.

    Orientations are axial: an edge at 10 deg and one at 190 deg are the
    same line. The candidate is first folded into [0, pi), then shifted by
    pi toward the current angle whenever the two differ by more than pi/2.

    This is an approximation. The exact circular mean of axial data needs
    the angle doubled before averaging; the two-branch fold matches that
    only while the cluster angle changes slowly between events.

    Args:
        candidate: Raw bearing from atan2 [rad], in (-pi, pi]
        current: Current cluster angle [rad]

    Returns:
        Candidate angle within pi/2 of current where possible [rad]
    """
    if candidate < 0:
        candidate += math.pi
    diff = candidate - current
    if diff > math.pi / 2:
        candidate -= math.pi
    elif diff < -math.pi / 2:
        candidate += math.pi
    return candidate
