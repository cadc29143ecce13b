"""
Rectangular Cluster Tracker

Tracks multiple compact moving objects in a stream of sensor events.

Processing per packet:
    1. Assign: each event joins the first (or nearest) containing cluster,
       or seeds a new cluster if the set has capacity
    2. Prune: drop clusters without support, off the array, or with
       out-of-order timestamps
    3. Merge: combine overlapping clusters with similar velocities
    4. Locate: advance clusters along their velocity
    5. Path: sample cluster paths, update velocities and visibility

Steps 2-5 run at the end of every packet with the last event timestamp as
"now", and optionally also on a fixed schedule inside long packets.

Threading:
    One thread calls process_packet(). Other threads read snapshot(),
    an immutable tuple republished after every list update.
"""

import dataclasses
import logging
from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

from .assignment import assign
from .cluster import Cluster, ClusterSnapshot, TrackerContext, VisibilityState
from .config import TrackerConfig
from .events import ClusterEvent, Event
from .geometry import SensorGeometry
from .merge import merge_clusters
from .prune import prune_clusters

logger = logging.getLogger(__name__)

PruneListener = Callable[[Tuple[ClusterSnapshot, ...]], None]


class ClusterTracker:
    """
    Multi-object tracker for event streams.

    Features:
        - Greedy online event-to-cluster assignment
        - Decaying support mass with unsupported-cluster pruning
        - Cascading merge of overlapping, co-moving clusters
        - Lowpass-filtered velocity with predictive positioning
        - Lock-free snapshots for concurrent readers

    Example:
        >>> tracker = ClusterTracker(128, 128, TrackerConfig(mixing_factor=0.1))
        >>> _ = tracker.process_packet([Event(10, 10, 0), Event(11, 10, 5)])
        >>> for c in tracker.snapshot():
        ...     print(c.id, c.location)
    """

    # Mixing factor for the running average velocity used to seed new clusters
    AVERAGE_VELOCITY_MIXING_FACTOR = 0.001

    def __init__(self, size_x: int, size_y: int, config: Optional[TrackerConfig] = None) -> None:
        """
        Initialize tracker.

        Args:
            size_x: Sensor width [pixels]
            size_y: Sensor height [pixels]
            config: Tracker parameters (defaults if None)
        """
        self.context = TrackerContext(config or TrackerConfig(), SensorGeometry(size_x, size_y))

        # Cluster storage, keyed by id in set order
        self._clusters: Dict[int, Cluster] = {}
        self._next_id = 1
        self._snapshot: Tuple[ClusterSnapshot, ...] = ()
        self._prune_listeners: List[PruneListener] = []

        self.num_visible_clusters = 0
        self.average_velocity_ppt: Tuple[float, float] = (0.0, 0.0)
        self._next_update_time: Optional[int] = None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @property
    def config(self) -> TrackerConfig:
        return self.context.config

    @property
    def sensor(self) -> SensorGeometry:
        return self.context.sensor

    @property
    def default_radius(self) -> float:
        return self.context.default_radius

    def update_config(self, **changes) -> TrackerConfig:
        """
        Replace configuration values at runtime.

        Changing cluster_size resizes every live cluster to the new default
        radius; changing velocity_tau_ms or tick_us retunes every velocity
        filter and rescales cached pixels/second velocities.

        Args:
            **changes: TrackerConfig field values

        Returns:
            The new configuration
        """
        old = self.context.config
        new = dataclasses.replace(old, **changes)
        self.context.config = new

        if new.cluster_size != old.cluster_size:
            for c in self._clusters.values():
                c.set_radius(self.context.default_radius)
        if new.velocity_tau_ms != old.velocity_tau_ms or new.tick_us != old.tick_us:
            for c in self._clusters.values():
                c.retune_velocity_filters()
        if new.update_interval_us != old.update_interval_us:
            self._next_update_time = None
        return new

    # -------------------------------------------------------------------------
    # Processing
    # -------------------------------------------------------------------------

    def process_packet(self, events: Sequence[Event]) -> Union[Sequence[Event], List[ClusterEvent]]:
        """
        Track one packet of events.

        Args:
            events: Events with non-decreasing timestamps

        Returns:
            The input packet, or, when filter_events_enabled, the events
            captured by clusters tagged with their cluster id
        """
        cfg = self.config
        output: List[ClusterEvent] = []
        if len(events) == 0:
            return output if cfg.filter_events_enabled else events

        # record cluster locations before the packet is processed
        for c in self._clusters.values():
            c.last_packet_location = c.location

        last_update_at: Optional[int] = None
        for ev in events:
            self._track_event(ev, output if cfg.filter_events_enabled else None)
            if self._maybe_scheduled_update(ev.timestamp):
                last_update_at = ev.timestamp

        # at least once per packet, unless the schedule just ran at the same time
        last_t = events[-1].timestamp
        if last_update_at != last_t:
            self.update_cluster_list(last_t)

        return output if cfg.filter_events_enabled else events

    def _track_event(self, ev: Event, output: Optional[List[ClusterEvent]]) -> None:
        cfg = self.config
        found = assign(ev, self._clusters.values(), cfg)
        if found is not None:
            c = found.cluster
            if c.add_event(ev, found.dx, found.dy) and output is not None:
                if c.meets_visibility_criteria():
                    output.append(ClusterEvent(ev, c.id))
            return

        if len(self._clusters) >= cfg.max_num_clusters:
            return  # at capacity, drop the event
        if self.context.is_excluded_polarity(ev):
            return

        initial_velocity = self.average_velocity_ppt if cfg.initialize_velocity_to_average else None
        c = Cluster.from_event(self._next_id, ev, self.context, initial_velocity)
        self._next_id += 1
        self._clusters[c.id] = c
        logger.debug("New cluster %d at (%d, %d) t=%d", c.id, ev.x, ev.y, ev.timestamp)
        if output is not None:
            output.append(ClusterEvent(ev, c.id))

    def _maybe_scheduled_update(self, t: int) -> bool:
        interval = self.config.update_interval_us
        if interval is None:
            return False
        if self._next_update_time is None:
            self._next_update_time = t + interval
            return False
        if t >= self._next_update_time:
            self._next_update_time = t + interval
            self.update_cluster_list(t)
            return True
        return False

    def update_cluster_list(self, t: int) -> None:
        """
        Prune, merge, locate and sample paths of all clusters at time t.

        Args:
            t: Update time [ticks]
        """
        pruned = prune_clusters(self._clusters, t, self.context)
        if pruned and self._prune_listeners:
            self._notify_pruned(pruned)
        merge_clusters(self._clusters, self.context)
        self._update_cluster_locations(t)
        self._update_cluster_paths(t)
        self._publish()

    def _update_cluster_locations(self, t: int) -> None:
        cfg = self.config
        if not cfg.use_velocity:
            return
        m = self.AVERAGE_VELOCITY_MIXING_FACTOR
        for c in self._clusters.values():
            if c.advance(t) and cfg.initialize_velocity_to_average:
                ax, ay = self.average_velocity_ppt
                self.average_velocity_ppt = ((1 - m) * ax + m * c.vx, (1 - m) * ay + m * c.vy)

    def _update_cluster_paths(self, t: int) -> None:
        n_visible = 0
        for c in self._clusters.values():
            c.update_path(t)
            if c.evaluate_visibility() is VisibilityState.VISIBLE:
                c.reset_birth_location()
                n_visible += 1
        self.num_visible_clusters = n_visible

    def _publish(self) -> None:
        self._snapshot = tuple(c.to_snapshot() for c in self._clusters.values())

    def reset(self) -> None:
        """Remove all clusters and reset counters."""
        if self._clusters and self._prune_listeners:
            self._notify_pruned(list(self._clusters.values()))
        self._clusters.clear()
        self._next_id = 1
        self._snapshot = ()
        self.num_visible_clusters = 0
        self.average_velocity_ppt = (0.0, 0.0)
        self._next_update_time = None

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def add_prune_listener(self, listener: PruneListener) -> None:
        """
        Register a callable receiving snapshots of pruned clusters.

        Listeners are called from the processing thread, after pruning and
        on reset().
        """
        self._prune_listeners.append(listener)

    def remove_prune_listener(self, listener: PruneListener) -> None:
        self._prune_listeners.remove(listener)

    def _notify_pruned(self, clusters: List[Cluster]) -> None:
        snapshots = tuple(c.to_snapshot() for c in clusters)
        for listener in self._prune_listeners:
            listener(snapshots)

    # -------------------------------------------------------------------------
    # Accessors
    # -------------------------------------------------------------------------

    @property
    def clusters(self) -> Tuple[Cluster, ...]:
        """Live clusters in set order (read-only view, processing thread only)."""
        return tuple(self._clusters.values())

    @property
    def num_clusters(self) -> int:
        """Number of clusters, including those without enough support to be visible."""
        return len(self._clusters)

    def get_cluster(self, cluster_id: int) -> Optional[Cluster]:
        return self._clusters.get(cluster_id)

    def snapshot(self) -> Tuple[ClusterSnapshot, ...]:
        """Cluster state as of the last list update. Safe from any thread."""
        return self._snapshot

    def get_visible_clusters(self) -> List[ClusterSnapshot]:
        return [c for c in self._snapshot if c.visible]

    def visit_clusters(self, visitor: Callable[[Cluster], None], show_all: bool = False) -> bool:
        """
        Call visitor on live clusters, e.g. for drawing.

        If the set is structurally modified during the pass, the pass is
        abandoned and logged rather than raised.

        Args:
            visitor: Called with each cluster
            show_all: Include clusters that are not visible

        Returns:
            True if the pass completed
        """
        try:
            for c in self._clusters.values():
                if show_all or c.is_visible:
                    visitor(c)
        except RuntimeError as e:
            logger.warning("Cluster set changed during iteration, skipping pass: %s", e)
            return False
        return True

    def __str__(self) -> str:
        return f"ClusterTracker with {len(self._clusters)} clusters"
