"""
Tracker Configuration

All tunable parameters of the cluster tracker in a single dataclass.
Values outside their valid range are clamped on construction, with a
logged warning, rather than rejected.
"""

import logging
from dataclasses import asdict, dataclass, fields
from typing import Any, Dict, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass
class TrackerConfig:
    """
    Cluster tracker parameters.

    Movement:
        mixing_factor: Fraction of event-to-cluster distance each event moves the cluster [0-1]
        velocity_tau_ms: Lowpass time constant for velocity updates [ms]
        velocity_points: Path points used by the regression velocity estimator
        use_velocity: Predict cluster positions from their velocity
        predictive_velocity_factor: Scale of the velocity prediction step
        use_nearest_cluster: Assign events to the nearest containing cluster, not the first
        initialize_velocity_to_average: Seed new clusters with the average cluster velocity
        velocity_regression_enabled: Use least-squares over velocity_points instead of two points

    Sizing:
        cluster_size: Default radius as a fraction of the larger sensor dimension [0-1]
        aspect_ratio: Default aspect ratio (radius_y / radius) [0.25-4]
        surround: Radius multiplier for the capture region when dynamic sizing is on
        dynamic_size_enabled: Radius follows event distances
        dynamic_aspect_ratio_enabled: Aspect ratio follows event distribution
        dynamic_angle_enabled: Angle follows event distribution
        grow_merged_size_enabled: Merged clusters grow instead of keeping the stronger radius
        highway_perspective_enabled: Radius scales with position toward a horizon
        vanishing_point: Optional (x, y) horizon point for perspective scaling

    Lifetime:
        max_num_clusters: Capacity of the cluster set
        threshold_events_for_visible_cluster: Events needed to become visible
        threshold_velocity_for_visible_cluster: Speed needed to become visible [px/s]
        cluster_lifetime_without_support_us: Mass decay time constant [ticks]
        enable_cluster_exit_purging: Prune clusters that leave the sensor area
        vel_ang_diff_deg_to_not_merge: Velocity angle above which overlapping clusters stay apart [deg]
        surround_inhibition_enabled: Surround events decrement cluster mass

    Update:
        use_one_polarity_only_enabled: Ignore one event polarity
        use_off_polarity_only_enabled: If single polarity, keep OFF events (else ON)
        update_interval_us: Optional schedule for mid-packet full-list updates [ticks]
        filter_events_enabled: Output only events captured by clusters
        tick_us: Duration of one timestamp tick [us]

    Paths:
        paths_enabled: Record cluster path points
        path_length: Maximum retained path points
        retain_full_paths: Never trim paths (for external history logging)
    """

    # Movement
    mixing_factor: float = 0.05
    velocity_tau_ms: float = 10.0
    velocity_points: int = 10
    use_velocity: bool = True
    predictive_velocity_factor: float = 1.0
    use_nearest_cluster: bool = False
    initialize_velocity_to_average: bool = False
    velocity_regression_enabled: bool = False

    # Sizing
    cluster_size: float = 0.1
    aspect_ratio: float = 1.0
    surround: float = 2.0
    dynamic_size_enabled: bool = False
    dynamic_aspect_ratio_enabled: bool = False
    dynamic_angle_enabled: bool = False
    grow_merged_size_enabled: bool = False
    highway_perspective_enabled: bool = False
    vanishing_point: Optional[Tuple[float, float]] = None

    # Lifetime
    max_num_clusters: int = 10
    threshold_events_for_visible_cluster: int = 10
    threshold_velocity_for_visible_cluster: float = 0.0
    cluster_lifetime_without_support_us: int = 10000
    enable_cluster_exit_purging: bool = True
    vel_ang_diff_deg_to_not_merge: float = 60.0
    surround_inhibition_enabled: bool = False

    # Update
    use_one_polarity_only_enabled: bool = False
    use_off_polarity_only_enabled: bool = False
    update_interval_us: Optional[int] = None
    filter_events_enabled: bool = False
    tick_us: float = 1.0

    # Paths
    paths_enabled: bool = True
    path_length: int = 100
    retain_full_paths: bool = False

    def __post_init__(self):
        """Clamp parameters to their valid ranges."""
        self.mixing_factor = self._clamp("mixing_factor", self.mixing_factor, 0.0, 1.0)
        self.surround = self._clamp("surround", self.surround, 1.0, None)
        self.path_length = int(self._clamp("path_length", self.path_length, 2, None))
        self.velocity_points = int(
            self._clamp("velocity_points", self.velocity_points, 2, self.path_length)
        )
        self.vel_ang_diff_deg_to_not_merge = self._clamp(
            "vel_ang_diff_deg_to_not_merge", self.vel_ang_diff_deg_to_not_merge, 0.0, 180.0
        )
        self.cluster_size = self._clamp("cluster_size", self.cluster_size, 0.0, 1.0)
        self.aspect_ratio = self._clamp("aspect_ratio", self.aspect_ratio, 0.25, 4.0)
        self.threshold_velocity_for_visible_cluster = self._clamp(
            "threshold_velocity_for_visible_cluster",
            self.threshold_velocity_for_visible_cluster,
            0.0,
            None,
        )
        self.max_num_clusters = int(self._clamp("max_num_clusters", self.max_num_clusters, 0, None))
        self.cluster_lifetime_without_support_us = int(
            self._clamp(
                "cluster_lifetime_without_support_us",
                self.cluster_lifetime_without_support_us,
                1,
                None,
            )
        )
        if self.tick_us <= 0:
            logger.warning("tick_us=%s is not positive, using 1", self.tick_us)
            self.tick_us = 1.0
        if self.update_interval_us is not None and self.update_interval_us <= 0:
            logger.warning("update_interval_us=%s disables scheduled updates", self.update_interval_us)
            self.update_interval_us = None
        if self.vanishing_point is not None:
            self.vanishing_point = (float(self.vanishing_point[0]), float(self.vanishing_point[1]))

        # Velocity prediction needs path points
        if self.use_velocity:
            self.paths_enabled = True

    @staticmethod
    def _clamp(name: str, value, lo, hi):
        if lo is not None and value < lo:
            logger.warning("%s=%s below minimum, clamped to %s", name, value, lo)
            return lo
        if hi is not None and value > hi:
            logger.warning("%s=%s above maximum, clamped to %s", name, value, hi)
            return hi
        return value

    @property
    def pixels_per_second_scale(self) -> float:
        """Multiplier converting pixels/tick to pixels/second."""
        return 1e6 / self.tick_us

    @property
    def ticks_per_ms(self) -> float:
        return 1000.0 / self.tick_us

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "TrackerConfig":
        """
        Create config from a mapping of field names to values.

        Raises:
            ValueError: If the mapping contains unknown keys
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown tracker parameters: {', '.join(unknown)}")
        values = dict(data)
        if values.get("vanishing_point") is not None:
            values["vanishing_point"] = tuple(values["vanishing_point"])
        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/serialization."""
        return asdict(self)
