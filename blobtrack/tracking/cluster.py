"""
Rectangular Event Cluster

A cluster is the online state of one tracked object: a rotated rectangle
(radius, aspect ratio, angle) with a decaying support mass, a path history
and a lowpass-filtered velocity.

Clusters are updated in two ways:
    - Per event: mass, location, event statistics and optional geometry
      scaling (add_event)
    - Per packet: path sampling, velocity estimation and visibility
      evaluation (update_path, evaluate_visibility)

Mass model:
    mass(t) = mass_k * exp((t_k - t) / tau)

where t_k is the time of the last supporting event and tau the cluster
lifetime without support. Each new event adds +1 (or -1 for surround
events when surround inhibition is on) to the decayed mass.
"""

import math
from dataclasses import dataclass, replace
from enum import Enum
from typing import List, Optional, Tuple

import numba
import numpy as np

from .config import TrackerConfig
from .events import ORIENTATION_UNIT_VECTORS, Event, Polarity
from .filters import LowpassFilter, fit_path_velocity
from .geometry import SensorGeometry, fold_angle, manhattan

# Scaling can't make a cluster bigger or smaller than this ratio to the default size
MAX_SCALE_RATIO = 2.0

# Dynamic aspect ratio bounds, tighter when the angle is also dynamic so the
# long axis lines up with edges in the scene
ASPECT_RATIO_MIN_DYNAMIC_ANGLE_DISABLED = 0.5
ASPECT_RATIO_MAX_DYNAMIC_ANGLE_DISABLED = 2.5
ASPECT_RATIO_MIN_DYNAMIC_ANGLE_ENABLED = 0.5
ASPECT_RATIO_MAX_DYNAMIC_ANGLE_ENABLED = 1.0


@numba.jit(nopython=True, cache=True)
def _axis_distances(
    ex: float,
    ey: float,
    cx: float,
    cy: float,
    vx: float,
    vy: float,
    dt: float,
    cos_a: float,
    sin_a: float,
) -> Tuple[float, float]:
    """
    JIT-compiled event distance along and across the cluster axis.

    The cluster center is advanced by its velocity over dt before
    projecting, so fast clusters capture events ahead of their last
    recorded position.
    """
    ox = ex - cx + vx * dt
    oy = ey - cy + vy * dt
    return abs(ox * cos_a + oy * sin_a), abs(oy * cos_a - ox * sin_a)


@numba.jit(nopython=True, cache=True)
def _decayed_mass(mass: float, last_t: float, t: float, tau: float) -> float:
    """JIT-compiled exponential decay of mass from last_t to t."""
    return mass * np.exp((last_t - t) / tau)


class VisibilityState(Enum):
    """Cluster visibility after the last evaluation."""

    HIDDEN = "hidden"
    VISIBLE = "visible"


@dataclass(frozen=True)
class PathPoint:
    """
    Cluster location sample, taken once per packet when the cluster got events.

    Attributes:
        x, y: Cluster location [pixels]
        t: Sample time [ticks]
        n_events: Events captured since the previous sample
        velocity_ppt: Filtered velocity at this sample [pixels/tick], if computed
    """

    x: float
    y: float
    t: int
    n_events: int
    velocity_ppt: Optional[Tuple[float, float]] = None


@dataclass(frozen=True)
class ClusterSnapshot:
    """Immutable copy of a cluster's public state, safe to share across threads."""

    id: int
    location: Tuple[float, float]
    radius: float
    radius_x: float
    radius_y: float
    angle: float
    aspect_ratio: float
    velocity_ppt: Tuple[float, float]
    velocity_pps: Tuple[float, float]
    velocity_valid: bool
    mass: float
    num_events: int
    visible: bool
    birth_location: Tuple[float, float]
    birth_time: int
    lifetime: int
    last_event_timestamp: int
    path: Tuple[PathPoint, ...]

    @property
    def speed_pps(self) -> float:
        return math.hypot(self.velocity_pps[0], self.velocity_pps[1])


class TrackerContext:
    """
    Parameters shared by a tracker and all of its clusters.

    Holding the config behind one reference lets runtime configuration
    changes reach every live cluster.
    """

    def __init__(self, config: TrackerConfig, sensor: SensorGeometry) -> None:
        self.config = config
        self.sensor = sensor

    @property
    def default_radius(self) -> float:
        """Starting cluster radius [pixels]."""
        return int(self.sensor.max_size) * self.config.cluster_size

    def perspective_scale(self, x: float, y: float) -> float:
        if not self.config.highway_perspective_enabled:
            return 1.0
        return self.sensor.perspective_scale(x, y, self.config.vanishing_point)

    def is_excluded_polarity(self, event: Event) -> bool:
        """True if single-polarity mode is on and the event has the other polarity."""
        cfg = self.config
        if not cfg.use_one_polarity_only_enabled:
            return False
        if cfg.use_off_polarity_only_enabled:
            return event.polarity == Polarity.ON
        return event.polarity == Polarity.OFF


class Cluster:
    """
    Tracked rectangular cluster of events.

    Two clusters are equal if their ids are equal.

    Attributes:
        id: Unique cluster number, never reused
        x, y: Location [pixels]
        radius: Size [pixels]; radius_x = radius / aspect_ratio, radius_y = radius * aspect_ratio
        angle: Orientation [rad], CCW from the x axis
        mass: Decaying count of supporting events at last_event_timestamp
        num_events: Total captured events
        path: Recent path points, oldest first
        visibility: Result of the last evaluate_visibility() call

    Example:
        >>> ctx = TrackerContext(TrackerConfig(), SensorGeometry(128, 128))
        >>> c = Cluster.from_event(1, Event(10, 10, 0), ctx)
        >>> dx, dy = c.axis_distances(Event(12, 10, 5))
        >>> c.add_event(Event(12, 10, 5), dx, dy)
        True
    """

    MIN_DT_FOR_VELOCITY_UPDATE = 10  # ticks

    def __init__(self, cluster_id: int, context: TrackerContext) -> None:
        self.id = cluster_id
        self._ctx = context
        cfg = context.config

        # Kinematics
        self.x = 0.0
        self.y = 0.0
        self.birth_location: Tuple[float, float] = (0.0, 0.0)
        self.last_packet_location: Tuple[float, float] = (0.0, 0.0)
        self.vx = 0.0  # pixels/tick
        self.vy = 0.0
        self._velocity_pps: Tuple[float, float] = (0.0, 0.0)
        self._velocity_valid = False
        self.vx_filter = LowpassFilter(cfg.velocity_tau_ms, cfg.ticks_per_ms)
        self.vy_filter = LowpassFilter(cfg.velocity_tau_ms, cfg.ticks_per_ms)

        # Geometry
        self.radius = 1.0
        self.radius_x = 1.0
        self.radius_y = 1.0
        self.aspect_ratio = cfg.aspect_ratio
        self.angle = 0.0
        self.cos_angle = 1.0
        self.sin_angle = 0.0

        # Statistics
        self.mass = 1.0
        self.num_events = 0
        self.previous_num_events = 0
        self.average_event_distance = 0.0
        self.average_event_x_distance = 0.0
        self.average_event_y_distance = 0.0
        self.instantaneous_isi = 0.0
        self.avg_isi = 0.0
        self.instantaneous_event_rate = 0.0
        self.avg_event_rate = 0.0

        # Timing
        self.first_event_timestamp = 0
        self.last_event_timestamp = 0
        self.last_update_time = 0

        self.path: List[PathPoint] = []
        self.hit_edge_time: Optional[int] = None
        self.visibility = VisibilityState.HIDDEN
        self.was_ever_visible = False

        self.set_radius(context.default_radius)

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @classmethod
    def from_event(
        cls,
        cluster_id: int,
        event: Event,
        context: TrackerContext,
        initial_velocity: Optional[Tuple[float, float]] = None,
    ) -> "Cluster":
        """
        Seed a cluster centered on an event.

        Args:
            cluster_id: New unique id
            event: Seeding event
            context: Shared tracker parameters
            initial_velocity: Optional prior velocity [pixels/tick], marked valid

        Returns:
            Cluster with one event and unit mass
        """
        c = cls(cluster_id, context)
        c.x = float(event.x)
        c.y = float(event.y)
        c.birth_location = (c.x, c.y)
        c.last_packet_location = (c.x, c.y)
        c.last_event_timestamp = event.timestamp
        c.first_event_timestamp = event.timestamp
        c.last_update_time = event.timestamp
        c.num_events = 1
        c.set_radius(context.default_radius)
        if initial_velocity is not None:
            c.set_velocity_ppt(initial_velocity[0], initial_velocity[1])
        return c

    @classmethod
    def merged(cls, one: "Cluster", two: "Cluster", context: TrackerContext) -> "Cluster":
        """
        Combine two clusters into one.

        The stronger cluster (larger mass) donates identity, location, angle,
        path, velocity and filters, so the merged track continues without a
        jump. Mass and event counts are summed; event distance statistics are
        mass-weighted.

        Args:
            one: First cluster
            two: Second cluster

        Returns:
            Replacement cluster carrying the stronger cluster's id
        """
        stronger = one if one.mass > two.mass else two
        c = cls(stronger.id, context)

        c.mass = one.mass + two.mass
        c.num_events = one.num_events + two.num_events
        c.x = stronger.x
        c.y = stronger.y
        c.set_angle(stronger.angle)

        if c.mass != 0:
            c.average_event_distance = (
                one.average_event_distance * one.mass + two.average_event_distance * two.mass
            ) / c.mass
            c.average_event_x_distance = (
                one.average_event_x_distance * one.mass + two.average_event_x_distance * two.mass
            ) / c.mass
            c.average_event_y_distance = (
                one.average_event_y_distance * one.mass + two.average_event_y_distance * two.mass
            ) / c.mass

        c.last_event_timestamp = max(one.last_event_timestamp, two.last_event_timestamp)
        c.last_update_time = c.last_event_timestamp
        c.last_packet_location = (stronger.x, stronger.y)
        c.first_event_timestamp = stronger.first_event_timestamp
        c.path = stronger.path
        c.birth_location = stronger.birth_location

        c.vx = stronger.vx
        c.vy = stronger.vy
        c._velocity_pps = stronger._velocity_pps
        c._velocity_valid = stronger._velocity_valid
        c.vx_filter = stronger.vx_filter
        c.vy_filter = stronger.vy_filter

        c.avg_event_rate = stronger.avg_event_rate
        c.avg_isi = stronger.avg_isi
        c.was_ever_visible = stronger.was_ever_visible
        c.visibility = stronger.visibility
        c.set_aspect_ratio(stronger.aspect_ratio)

        if context.config.grow_merged_size_enabled:
            r = (one.radius + two.radius) / 2
            c.set_radius(r + context.config.mixing_factor * r)
        else:
            c.set_radius(stronger.radius)
        return c

    # -------------------------------------------------------------------------
    # Geometry
    # -------------------------------------------------------------------------

    def set_radius(self, r: float) -> None:
        """
        Set radius, or the perspective radius when highway perspective is on.

        Also updates radius_x and radius_y from the aspect ratio.
        """
        if self._ctx.config.highway_perspective_enabled:
            self.radius = self._ctx.default_radius * self._ctx.perspective_scale(self.x, self.y)
        else:
            self.radius = r
        self.radius_x = self.radius / self.aspect_ratio
        self.radius_y = self.radius * self.aspect_ratio

    def set_aspect_ratio(self, aspect_ratio: float) -> None:
        """Aspect ratio is 1 for a square cluster, <1 is wide."""
        self.aspect_ratio = aspect_ratio
        self.radius_x = self.radius / aspect_ratio
        self.radius_y = self.radius * aspect_ratio

    def set_angle(self, angle: float) -> None:
        self.angle = angle
        self.cos_angle = math.cos(angle)
        self.sin_angle = math.sin(angle)

    def set_location(self, x: float, y: float) -> None:
        self.x = float(x)
        self.y = float(y)

    @property
    def location(self) -> Tuple[float, float]:
        """Current location (x, y) [pixels]."""
        return (self.x, self.y)

    def axis_distances(self, event: Event) -> Tuple[float, float]:
        """
        Distance of an event from the motion-predicted center.

        Returns:
            (along-axis distance, cross-axis distance) [pixels]
        """
        dt = event.timestamp - self.last_update_time
        return _axis_distances(
            float(event.x),
            float(event.y),
            self.x,
            self.y,
            self.vx,
            self.vy,
            float(dt),
            self.cos_angle,
            self.sin_angle,
        )

    def distance_to_event(self, event: Event) -> float:
        """Manhattan distance from the current center to an event."""
        return manhattan(event.x - self.x, event.y - self.y)

    def distance_to(self, other: "Cluster") -> float:
        """Manhattan distance between cluster centers (no prediction)."""
        return manhattan(other.x - self.x, other.y - self.y)

    def velocity_angle_to(self, other: "Cluster") -> float:
        """
        Angle between this cluster's velocity and another's.

        Returns:
            Angle in [0, pi] [rad]; 0 if either cluster is not moving
        """
        s1 = self.speed_pps
        s2 = other.speed_pps
        if s1 == 0 or s2 == 0:
            return 0.0
        dot = (
            self._velocity_pps[0] * other._velocity_pps[0]
            + self._velocity_pps[1] * other._velocity_pps[1]
        )
        cos_a = max(-1.0, min(1.0, dot / s1 / s2))
        return math.acos(cos_a)

    def is_overlapping_border(self) -> bool:
        """True if the cluster footprint crosses any edge of the sensor."""
        lx, ly = int(self.x), int(self.y)
        sx, sy = self._ctx.sensor.size_x, self._ctx.sensor.size_y
        if lx < 0 or lx > sx or ly < 0 or ly > sy:
            return True
        return lx < self.radius_x or lx > sx - self.radius_x or ly < self.radius_y or ly > sy - self.radius_y

    def has_hit_edge(self, t: int) -> bool:
        """
        Edge-exit test used for purging.

        A center outside the array always counts. A footprint overlapping the
        border first latches the time; it counts only if still overlapping
        on a later check. Leaving the border region clears the latch.

        Args:
            t: Current update time [ticks]

        Returns:
            True if the cluster should be purged for leaving the scene
        """
        if not self._ctx.config.enable_cluster_exit_purging:
            return False

        lx, ly = int(self.x), int(self.y)
        sx, sy = self._ctx.sensor.size_x, self._ctx.sensor.size_y

        # e.g. driven off the array by velocity prediction
        if lx < 0 or lx > sx or ly < 0 or ly > sy:
            return True

        if lx < self.radius_x or lx > sx - self.radius_x or ly < self.radius_y or ly > sy - self.radius_y:
            if self.hit_edge_time is None:
                self.hit_edge_time = t
                return False
            return t - self.hit_edge_time > 0

        self.hit_edge_time = None
        return False

    # -------------------------------------------------------------------------
    # Mass
    # -------------------------------------------------------------------------

    def mass_at(self, t: int) -> float:
        """
        Decayed mass at time t. Does not change the cluster.

        Args:
            t: Query time [ticks]

        Returns:
            mass * exp((last_event_timestamp - t) / lifetime)
        """
        return float(
            _decayed_mass(
                self.mass,
                float(self.last_event_timestamp),
                float(t),
                float(self._ctx.config.cluster_lifetime_without_support_us),
            )
        )

    def _update_mass(self, event: Event, distance: float) -> None:
        weight = 1.0
        if self._ctx.config.surround_inhibition_enabled:
            # surround events erode mass, center events build it
            weight = 1.0 if distance <= self.radius else -1.0
        # an earlier timestamp (reset or wrap) must not grow the mass
        t = max(event.timestamp, self.last_event_timestamp)
        self.mass = weight + self.mass_at(t)

    # -------------------------------------------------------------------------
    # Per-event update
    # -------------------------------------------------------------------------

    def add_event(self, event: Event, dx: float, dy: float) -> bool:
        """
        Update the cluster with one captured event.

        Velocity is not touched here; it is estimated once per packet from
        path points (see update_path).

        Args:
            event: Captured event
            dx: Along-axis distance from assignment [pixels]
            dy: Cross-axis distance from assignment [pixels]

        Returns:
            False if the event was ignored because of its polarity
        """
        cfg = self._ctx.config
        if self._ctx.is_excluded_polarity(event):
            return False

        distance = dx + dy
        self._update_mass(event, distance)

        m = cfg.mixing_factor
        m1 = 1.0 - m

        if event.orientation is not None:
            # only move perpendicular to the edge orientation
            ux, uy = ORIENTATION_UNIT_VECTORS[(int(event.orientation) + 2) % 4]
            proj = ux * (event.x - self.x) + uy * (event.y - self.y)
            new_x = proj * ux + self.x
            new_y = proj * uy + self.y
            self.x = m1 * self.x + m * new_x
            self.y = m1 * self.y + m * new_y
        else:
            self.x = m1 * self.x + m * event.x
            self.y = m1 * self.y + m * event.y

        self.last_update_time = event.timestamp

        prev_timestamp = self.last_event_timestamp
        self.last_event_timestamp = event.timestamp
        self.num_events += 1

        isi = self.last_event_timestamp - prev_timestamp
        if isi <= 0:
            isi = 1
        self.instantaneous_isi = float(isi)
        self.avg_isi = m1 * self.avg_isi + m * self.instantaneous_isi
        self.instantaneous_event_rate = 1.0 / self.instantaneous_isi
        self.avg_event_rate = m1 * self.avg_event_rate + m * self.instantaneous_event_rate

        self.average_event_distance = m1 * self.average_event_distance + m * distance
        self.average_event_x_distance = m1 * self.average_event_x_distance + m * dx
        self.average_event_y_distance = m1 * self.average_event_y_distance + m * dy

        self._scale(event)
        return True

    def _scale(self, event: Event) -> None:
        """Update radius, aspect ratio and angle from the event, as enabled."""
        cfg = self._ctx.config
        m = cfg.mixing_factor

        if cfg.dynamic_size_enabled:
            default = self._ctx.default_radius
            new_r = (1 - m) * self.radius + m * self.distance_to_event(event)
            new_r = min(max(new_r, default / MAX_SCALE_RATIO), default * MAX_SCALE_RATIO)
            self.set_radius(new_r)

        if cfg.dynamic_aspect_ratio_enabled:
            dx = event.x - self.x
            dy = event.y - self.y
            dw = dx * self.cos_angle + dy * self.sin_angle
            dh = -dx * self.sin_angle + dy * self.cos_angle
            if cfg.dynamic_angle_enabled:
                lo, hi = ASPECT_RATIO_MIN_DYNAMIC_ANGLE_ENABLED, ASPECT_RATIO_MAX_DYNAMIC_ANGLE_ENABLED
            else:
                lo, hi = ASPECT_RATIO_MIN_DYNAMIC_ANGLE_DISABLED, ASPECT_RATIO_MAX_DYNAMIC_ANGLE_DISABLED
            if dw != 0 or dh != 0:
                ratio = abs(dh / dw) if dw != 0 else hi
                ratio = min(max(ratio, lo), hi)
                self.set_aspect_ratio((1 - m) * self.aspect_ratio + m * ratio)

        if cfg.dynamic_angle_enabled:
            dx = self.x - event.x
            dy = self.y - event.y
            candidate = fold_angle(math.atan2(dy, dx), self.angle)
            self.set_angle(self.angle + m * (candidate - self.angle))

    # -------------------------------------------------------------------------
    # Per-packet update
    # -------------------------------------------------------------------------

    def update_path(self, t: int) -> None:
        """
        Append a path point and update velocity, if events arrived since the last point.

        Movement from velocity prediction alone does not create path points.
        The path is trimmed to path_length unless full retention is on.

        Args:
            t: Current update time [ticks]
        """
        cfg = self._ctx.config
        if not cfg.paths_enabled and not cfg.use_velocity:
            return
        if self.num_events == self.previous_num_events:
            return

        self.path.append(PathPoint(self.x, self.y, t, self.num_events - self.previous_num_events))
        self.previous_num_events = self.num_events
        self._update_velocity()

        if not cfg.retain_full_paths:
            while len(self.path) > cfg.path_length:
                self.path.pop(0)

    def _update_velocity(self) -> None:
        cfg = self._ctx.config
        if cfg.velocity_regression_enabled:
            fit = fit_path_velocity(self.path, cfg.velocity_points, self.first_event_timestamp)
            if fit is None:
                return
            raw_vx, raw_vy = fit
        else:
            if len(self.path) < 2:
                return
            p1, p2 = self.path[-2], self.path[-1]
            dt = p2.t - p1.t
            if dt <= self.MIN_DT_FOR_VELOCITY_UPDATE:
                return
            raw_vx = (p2.x - p1.x) / dt
            raw_vy = (p2.y - p1.y) / dt

        self.vx = self.vx_filter.filter(raw_vx, self.last_event_timestamp)
        self.vy = self.vy_filter.filter(raw_vy, self.last_event_timestamp)
        self.path[-1] = replace(self.path[-1], velocity_ppt=(self.vx, self.vy))
        scale = cfg.pixels_per_second_scale
        self._velocity_pps = (self.vx * scale, self.vy * scale)
        self._velocity_valid = True

    def retune_velocity_filters(self) -> None:
        """Apply the current velocity time constant and tick scale to this cluster."""
        cfg = self._ctx.config
        for f in (self.vx_filter, self.vy_filter):
            f.tau_ms = cfg.velocity_tau_ms
            f.ticks_per_ms = cfg.ticks_per_ms
        scale = cfg.pixels_per_second_scale
        self._velocity_pps = (self.vx * scale, self.vy * scale)

    def advance(self, t: int) -> bool:
        """
        Move the cluster along its velocity up to time t (prediction step).

        Returns:
            True if the cluster moved
        """
        if not self._velocity_valid:
            return False
        dt = t - self.last_update_time
        if dt <= 0:
            return False
        factor = self._ctx.config.predictive_velocity_factor
        self.x += self.vx * dt * factor
        self.y += self.vy * dt * factor
        self.last_update_time = t
        return True

    # -------------------------------------------------------------------------
    # Visibility
    # -------------------------------------------------------------------------

    def meets_visibility_criteria(self) -> bool:
        """Pure check of the event-count and speed thresholds."""
        cfg = self._ctx.config
        if self.num_events < cfg.threshold_events_for_visible_cluster:
            return False
        if cfg.paths_enabled and self.speed_pps < cfg.threshold_velocity_for_visible_cluster:
            return False
        return True

    def evaluate_visibility(self) -> VisibilityState:
        """
        Re-evaluate and store visibility.

        The caller resets the birth location on VISIBLE (reset_birth_location).
        """
        if self.meets_visibility_criteria():
            self.visibility = VisibilityState.VISIBLE
            self.was_ever_visible = True
        else:
            self.visibility = VisibilityState.HIDDEN
        return self.visibility

    def reset_birth_location(self) -> None:
        """Move the birth location to the current, presumably less noisy, location."""
        self.birth_location = (self.x, self.y)

    @property
    def is_visible(self) -> bool:
        return self.visibility is VisibilityState.VISIBLE

    # -------------------------------------------------------------------------
    # Velocity accessors
    # -------------------------------------------------------------------------

    @property
    def velocity_ppt(self) -> Tuple[float, float]:
        """Velocity [pixels/tick]."""
        return (self.vx, self.vy)

    @property
    def velocity_pps(self) -> Tuple[float, float]:
        """Velocity [pixels/second]."""
        return self._velocity_pps

    @property
    def velocity_valid(self) -> bool:
        """True once a filtered velocity sample has been computed."""
        return self._velocity_valid

    @velocity_valid.setter
    def velocity_valid(self, valid: bool) -> None:
        self._velocity_valid = valid

    def set_velocity_ppt(self, vx: float, vy: float) -> None:
        """Set velocity [pixels/tick] directly and mark it valid."""
        self.vx = vx
        self.vy = vy
        scale = self._ctx.config.pixels_per_second_scale
        self._velocity_pps = (vx * scale, vy * scale)
        self._velocity_valid = True

    @property
    def speed_pps(self) -> float:
        return math.hypot(self._velocity_pps[0], self._velocity_pps[1])

    @property
    def speed_ppt(self) -> float:
        return math.hypot(self.vx, self.vy)

    # -------------------------------------------------------------------------
    # Derived measurements
    # -------------------------------------------------------------------------

    @property
    def lifetime(self) -> int:
        """Ticks from first event to last update."""
        return self.last_update_time - self.first_event_timestamp

    @property
    def birth_time(self) -> int:
        return self.first_event_timestamp

    @property
    def distance_from_birth(self) -> float:
        return math.hypot(self.x - self.birth_location[0], self.y - self.birth_location[1])

    @property
    def distance_x_from_birth(self) -> float:
        return self.x - self.birth_location[0]

    @property
    def distance_y_from_birth(self) -> float:
        return self.y - self.birth_location[1]

    @property
    def measured_aspect_ratio(self) -> float:
        if self.average_event_x_distance == 0:
            return 0.0
        return self.average_event_y_distance / self.average_event_x_distance

    @property
    def measured_area(self) -> float:
        return self.average_event_x_distance * self.average_event_y_distance

    @property
    def measured_radius(self) -> float:
        return math.hypot(self.average_event_x_distance, self.average_event_y_distance)

    @property
    def measured_average_event_rate(self) -> float:
        if self.radius <= 0:
            return 0.0
        return self.avg_event_rate / self.radius

    @property
    def radius_corrected_for_perspective(self) -> float:
        """Radius as it would appear at the bottom of the scene."""
        return self.radius / self._ctx.perspective_scale(self.x, self.y)

    @property
    def measured_size_corrected_for_perspective(self) -> float:
        return self.average_event_distance / self._ctx.perspective_scale(self.x, self.y)

    def to_snapshot(self) -> ClusterSnapshot:
        return ClusterSnapshot(
            id=self.id,
            location=(self.x, self.y),
            radius=self.radius,
            radius_x=self.radius_x,
            radius_y=self.radius_y,
            angle=self.angle,
            aspect_ratio=self.aspect_ratio,
            velocity_ppt=(self.vx, self.vy),
            velocity_pps=self._velocity_pps,
            velocity_valid=self._velocity_valid,
            mass=self.mass,
            num_events=self.num_events,
            visible=self.is_visible,
            birth_location=self.birth_location,
            birth_time=self.first_event_timestamp,
            lifetime=self.lifetime,
            last_event_timestamp=self.last_event_timestamp,
            path=tuple(self.path),
        )

    def __eq__(self, other) -> bool:
        if self is other:
            return True
        if not isinstance(other, Cluster):
            return NotImplemented
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __str__(self) -> str:
        return (
            f"Cluster #{self.id} numEvents={self.num_events} "
            f"location=({int(self.x)}, {int(self.y)}) "
            f"radiusX={self.radius_x:.1f} radiusY={self.radius_y:.1f} "
            f"lifetime={self.lifetime} visible={self.is_visible} speedPPS={self.speed_pps:.2f}"
        )
