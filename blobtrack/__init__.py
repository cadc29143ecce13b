"""
Blobtrack Source Package

Multi-object tracking for event-based vision sensors:
- Rectangular event clusters with decaying support mass
- Cluster merging, pruning and edge-exit purging
- Lowpass-filtered velocity with predictive positioning
- Synthetic event streams for headless runs
"""

from blobtrack.tracking import (
    Cluster,
    ClusterEvent,
    ClusterSnapshot,
    ClusterTracker,
    Event,
    Polarity,
    SensorGeometry,
    TrackerConfig,
    events_from_arrays,
)

__version__ = "1.0.0"
__author__ = "Blobtrack Contributors"

__all__ = [
    # Tracking
    "ClusterTracker",
    "Cluster",
    "ClusterSnapshot",
    "TrackerConfig",
    "SensorGeometry",
    # Events
    "Event",
    "ClusterEvent",
    "Polarity",
    "events_from_arrays",
]
