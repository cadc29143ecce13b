"""
Tracking Module

Multi-object cluster tracking for event-based vision sensors.

Components:
    - ClusterTracker: Packet driver (assign, prune, merge, locate, path)
    - Cluster: Rectangular event cluster with decaying mass
    - ClusterSnapshot: Immutable cluster state for concurrent readers
    - TrackerConfig: Tunable parameters
    - Event / ClusterEvent: Input events and filtered output events

Example:
    >>> from blobtrack.tracking import ClusterTracker, Event
    >>> tracker = ClusterTracker(128, 128)
    >>> _ = tracker.process_packet([Event(10, 10, 0), Event(11, 10, 5)])
    >>> len(tracker.snapshot())
    1
"""

from .assignment import Assignment, assign, find_first_containing, find_nearest
from .cluster import Cluster, ClusterSnapshot, PathPoint, TrackerContext, VisibilityState
from .config import TrackerConfig
from .events import ClusterEvent, Event, Polarity, events_from_arrays
from .filters import LowpassFilter, fit_path_velocity
from .geometry import SensorGeometry, fold_angle
from .merge import merge_clusters, should_merge
from .prune import prune_clusters, should_prune
from .tracker import ClusterTracker

__all__ = [
    "ClusterTracker",
    "Cluster",
    "ClusterSnapshot",
    "PathPoint",
    "TrackerContext",
    "VisibilityState",
    "TrackerConfig",
    "Event",
    "ClusterEvent",
    "Polarity",
    "events_from_arrays",
    "LowpassFilter",
    "fit_path_velocity",
    "SensorGeometry",
    "fold_angle",
    "Assignment",
    "assign",
    "find_first_containing",
    "find_nearest",
    "merge_clusters",
    "should_merge",
    "prune_clusters",
    "should_prune",
]
