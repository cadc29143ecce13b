"""
Event-to-Cluster Assignment

Finds the cluster that owns an event. An event is contained by a cluster
when its motion-predicted distance along the cluster axis is below
radius_x AND its distance across the axis is below radius_y. The two
bounds are tested independently, not as an ellipse.

Policies:
    - First containing (default): first cluster in set order, usually the
      oldest. Cheapest, since the scan stops at the first match.
    - Nearest: containing cluster with the smallest dx + dy.
"""

from dataclasses import dataclass
from typing import Iterable, Optional

from .cluster import Cluster
from .config import TrackerConfig
from .events import Event


@dataclass
class Assignment:
    """
    Owning cluster and the event's axis distances to it.

    Attributes:
        cluster: Owning cluster
        dx: Along-axis distance [pixels]
        dy: Cross-axis distance [pixels]
    """

    cluster: Cluster
    dx: float
    dy: float

    @property
    def distance(self) -> float:
        return self.dx + self.dy


def _capture_radii(cluster: Cluster, config: TrackerConfig):
    rx = cluster.radius_x
    ry = cluster.radius_y
    if config.dynamic_size_enabled:
        # the event is captured even when it is in the surround
        rx *= config.surround
        ry *= config.surround
    return rx, ry


def find_first_containing(
    event: Event, clusters: Iterable[Cluster], config: TrackerConfig
) -> Optional[Assignment]:
    """
    Return the first cluster containing the event.

    Args:
        event: Incoming event
        clusters: Live clusters in set order
        config: Tracker parameters

    Returns:
        Assignment, or None if no cluster contains the event
    """
    for c in clusters:
        rx, ry = _capture_radii(c, config)
        dx, dy = c.axis_distances(event)
        if dx < rx and dy < ry:
            return Assignment(c, dx, dy)
    return None


def find_nearest(
    event: Event, clusters: Iterable[Cluster], config: TrackerConfig
) -> Optional[Assignment]:
    """
    Return the containing cluster with the smallest dx + dy.

    Ties keep the earlier cluster in set order.
    """
    best: Optional[Assignment] = None
    for c in clusters:
        rx, ry = _capture_radii(c, config)
        dx, dy = c.axis_distances(event)
        if dx < rx and dy < ry:
            if best is None or dx + dy < best.distance:
                best = Assignment(c, dx, dy)
    return best


def assign(event: Event, clusters: Iterable[Cluster], config: TrackerConfig) -> Optional[Assignment]:
    """Dispatch to the configured assignment policy."""
    if config.use_nearest_cluster:
        return find_nearest(event, clusters, config)
    return find_first_containing(event, clusters, config)
