"""
Cluster Tracker Test Suite

End-to-end packet processing on a 128x128 sensor.

Test ID | Description                    | Expected
--------|--------------------------------|-------------------------------------
1       | Empty packet                   | No state change
2       | Birth and capacity             | At most max_num_clusters clusters
3       | Stationary source              | One cluster at (10, 10), visible
4       | Velocity estimation            | 1 px/ms source gives 1000 px/s
5       | Filtered output                | Captured events tagged with id
6       | Prune listeners and reset      | Snapshots of removed clusters
7       | Scheduled mid-packet update    | Prune inside a long packet
8       | Runtime configuration          | Radius and filter retuning
"""

import logging

import pytest

from blobtrack.tracking import ClusterEvent, ClusterTracker, Event, Polarity, TrackerConfig


def make_tracker(**overrides):
    return ClusterTracker(128, 128, TrackerConfig(**overrides))


# =============================================================================
# TEST 1-2: Basic Packet Handling
# =============================================================================


class TestPacketBasics:
    """Empty packets, births and capacity."""

    def test_empty_packet_noop(self):
        tracker = make_tracker()
        packet = []
        assert tracker.process_packet(packet) is packet
        assert tracker.num_clusters == 0
        assert tracker.snapshot() == ()

    def test_empty_packet_keeps_clusters(self):
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 0)])
        before = tracker.snapshot()
        tracker.process_packet([])
        assert tracker.snapshot() is before
        assert tracker.num_clusters == 1

    def test_single_event_birth(self):
        tracker = make_tracker()
        tracker.process_packet([Event(40, 50, 100)])
        (c,) = tracker.clusters
        assert c.id == 1
        assert c.location == (40.0, 50.0)
        assert c.num_events == 1

    def test_input_packet_returned(self):
        tracker = make_tracker()
        packet = [Event(40, 50, 100)]
        assert tracker.process_packet(packet) is packet

    def test_capacity_bound(self):
        tracker = make_tracker(max_num_clusters=2)
        tracker.process_packet([Event(20, 20, 0), Event(64, 64, 0), Event(110, 110, 0)])
        assert tracker.num_clusters == 2
        assert [c.id for c in tracker.clusters] == [1, 2]

    def test_zero_capacity(self):
        tracker = make_tracker(max_num_clusters=0)
        tracker.process_packet([Event(64, 64, 0)])
        assert tracker.num_clusters == 0

    def test_excluded_polarity_no_birth(self):
        tracker = make_tracker(use_one_polarity_only_enabled=True)
        tracker.process_packet([Event(64, 64, 0, Polarity.OFF)])
        assert tracker.num_clusters == 0
        tracker.process_packet([Event(64, 64, 1, Polarity.ON)])
        assert tracker.num_clusters == 1

    def test_timestamp_reset_cluster_pruned(self):
        """A cluster hit by a much earlier timestamp still expires"""
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 2_000_000_000), Event(64, 64, 2_000_000_000)])
        tracker.process_packet([Event(64, 64, 0)])
        (c,) = tracker.clusters
        assert c.mass == pytest.approx(3.0)

        tracker.process_packet([Event(10, 10, 10_000_000)])
        assert [c.id for c in tracker.clusters] == [2]

    def test_ids_never_reused(self):
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 0)])
        # cluster 1 has lost its support by now
        tracker.process_packet([Event(20, 20, 50000)])
        assert tracker.get_cluster(1) is None
        assert [c.id for c in tracker.clusters] == [2]


# =============================================================================
# TEST 3: Stationary Source
# =============================================================================


class TestStationarySource:
    """Three events at one pixel, one per packet."""

    @pytest.fixture
    def tracker(self):
        return make_tracker(mixing_factor=0.1, threshold_events_for_visible_cluster=3)

    def test_single_cluster_visible_after_third_event(self, tracker):
        tracker.process_packet([Event(10, 10, 0)])
        assert tracker.num_visible_clusters == 0
        tracker.process_packet([Event(10, 10, 5)])
        assert tracker.num_visible_clusters == 0
        tracker.process_packet([Event(10, 10, 10)])

        assert tracker.num_clusters == 1
        assert tracker.num_visible_clusters == 1
        (snap,) = tracker.snapshot()
        assert snap.num_events == 3
        assert snap.location == (pytest.approx(10.0), pytest.approx(10.0))
        assert snap.visible

    def test_single_packet(self, tracker):
        tracker.process_packet([Event(10, 10, 0), Event(10, 10, 5), Event(10, 10, 10)])
        assert len(tracker.get_visible_clusters()) == 1

    def test_default_radius(self, tracker):
        assert tracker.default_radius == pytest.approx(12.8)


# =============================================================================
# TEST 4: Velocity Estimation
# =============================================================================


class TestVelocity:
    """Source moving 1 px per ms along x."""

    def test_velocity_from_path(self):
        tracker = make_tracker(mixing_factor=1.0, threshold_events_for_visible_cluster=0)
        for k in range(3):
            tracker.process_packet([Event(40 + k, 64, k * 1000)])

        (c,) = tracker.clusters
        assert c.velocity_valid
        assert c.velocity_ppt[0] == pytest.approx(0.001)
        assert c.velocity_pps[0] == pytest.approx(1000.0)
        assert c.velocity_pps[1] == pytest.approx(0.0)
        assert len(c.path) == 3

    def test_tick_scaling(self):
        """10 us ticks scale px/tick to px/s by 1e5"""
        tracker = make_tracker(
            mixing_factor=1.0, threshold_events_for_visible_cluster=0, tick_us=10.0
        )
        for k in range(3):
            tracker.process_packet([Event(40 + k, 64, k * 100)])
        (c,) = tracker.clusters
        assert c.velocity_pps[0] == pytest.approx(1000.0)

    def test_average_velocity_seeds_new_clusters(self):
        tracker = make_tracker(
            mixing_factor=1.0,
            threshold_events_for_visible_cluster=0,
            initialize_velocity_to_average=True,
        )
        for k in range(4):
            tracker.process_packet([Event(40 + k, 64, k * 1000)])
        # cluster 1 coasts through this update, feeding the average
        tracker.process_packet([Event(100, 20, 3500)])
        tracker.process_packet([Event(20, 100, 3600)])
        newest = tracker.clusters[-1]
        assert newest.id == 3
        assert newest.velocity_valid
        assert 0 < newest.vx < 0.001


# =============================================================================
# TEST 5: Filtered Output
# =============================================================================


class TestFilteredOutput:
    """Event filtering mode."""

    def test_captured_events_tagged(self):
        tracker = make_tracker(filter_events_enabled=True, threshold_events_for_visible_cluster=2)
        out = tracker.process_packet([Event(64, 64, 0), Event(65, 64, 0), Event(64, 65, 0)])
        assert len(out) == 3
        assert all(isinstance(e, ClusterEvent) for e in out)
        assert {e.cluster_id for e in out} == {1}
        assert out[1].x == 65

    def test_birth_event_only_until_visible(self):
        tracker = make_tracker(filter_events_enabled=True, threshold_events_for_visible_cluster=5)
        out = tracker.process_packet([Event(64, 64, 0), Event(65, 64, 0), Event(64, 65, 0)])
        assert len(out) == 1
        assert out[0].timestamp == 0

    def test_empty_packet_filtered(self):
        tracker = make_tracker(filter_events_enabled=True)
        assert tracker.process_packet([]) == []


# =============================================================================
# TEST 6: Listeners, Snapshots and Reset
# =============================================================================


class TestObservers:
    """Prune listeners, snapshots, visitors and reset."""

    def test_prune_listener(self):
        tracker = make_tracker()
        pruned = []
        tracker.add_prune_listener(pruned.extend)
        tracker.process_packet([Event(64, 64, 0)])
        tracker.process_packet([Event(20, 20, 50000)])
        assert [s.id for s in pruned] == [1]

        tracker.remove_prune_listener(pruned.extend)
        tracker.process_packet([Event(100, 100, 100000)])
        assert len(pruned) == 1

    def test_reset(self):
        tracker = make_tracker()
        removed = []
        tracker.add_prune_listener(removed.extend)
        tracker.process_packet([Event(20, 20, 0), Event(100, 100, 0)])
        tracker.reset()
        assert [s.id for s in removed] == [1, 2]
        assert tracker.num_clusters == 0
        assert tracker.snapshot() == ()

        tracker.process_packet([Event(64, 64, 10)])
        assert tracker.clusters[0].id == 1

    def test_snapshot_is_stable(self):
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 0)])
        snap = tracker.snapshot()
        tracker.process_packet([Event(66, 64, 1)])
        assert snap[0].num_events == 1
        assert tracker.snapshot()[0].num_events == 2

    def test_visit_visible_only(self):
        tracker = make_tracker(threshold_events_for_visible_cluster=2)
        tracker.process_packet([Event(20, 20, 0), Event(20, 20, 0), Event(100, 100, 0)])
        seen = []
        assert tracker.visit_clusters(lambda c: seen.append(c.id))
        assert seen == [1]
        seen.clear()
        tracker.visit_clusters(lambda c: seen.append(c.id), show_all=True)
        assert seen == [1, 2]

    def test_visit_aborts_on_concurrent_change(self, caplog):
        tracker = make_tracker()
        tracker.process_packet([Event(20, 20, 0), Event(100, 100, 0)])
        with caplog.at_level(logging.WARNING, logger="blobtrack.tracking.tracker"):
            completed = tracker.visit_clusters(lambda c: tracker.reset(), show_all=True)
        assert not completed
        assert "changed during iteration" in caplog.text


# =============================================================================
# TEST 7: Scheduled Updates
# =============================================================================


class TestScheduledUpdate:
    """Full-list updates inside a long packet."""

    PACKET = [Event(60, 64, 0), Event(110, 100, 5000), Event(60, 64, 5001)]

    def test_without_schedule(self):
        tracker = make_tracker()
        tracker.process_packet(self.PACKET)
        assert tracker.get_cluster(1).num_events == 2

    def test_mid_packet_prune(self):
        tracker = make_tracker(update_interval_us=1000)
        tracker.process_packet(self.PACKET)
        assert tracker.get_cluster(1) is None
        assert tracker.get_cluster(3).num_events == 1


# =============================================================================
# TEST 8: Runtime Configuration
# =============================================================================


class TestUpdateConfig:
    """Parameter changes reaching live clusters."""

    def test_cluster_size_resizes(self):
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 0)])
        tracker.update_config(cluster_size=0.2)
        assert tracker.clusters[0].radius == pytest.approx(25.6)

    def test_velocity_tau_retunes(self):
        tracker = make_tracker()
        tracker.process_packet([Event(64, 64, 0)])
        tracker.update_config(velocity_tau_ms=25.0)
        c = tracker.clusters[0]
        assert c.vx_filter.tau_ms == 25.0
        assert c.vy_filter.tau_ms == 25.0

    def test_tick_us_retunes(self):
        """Changing the tick length rescales filters and cached px/s velocities"""
        tracker = make_tracker(mixing_factor=1.0, threshold_events_for_visible_cluster=0)
        for k in range(3):
            tracker.process_packet([Event(40 + k, 64, k * 1000)])
        tracker.update_config(tick_us=10.0)
        (c,) = tracker.clusters
        assert c.vx_filter.ticks_per_ms == pytest.approx(100.0)
        assert c.vy_filter.ticks_per_ms == pytest.approx(100.0)
        assert c.velocity_pps[0] == pytest.approx(100.0)

    def test_values_clamped(self):
        tracker = make_tracker()
        new = tracker.update_config(mixing_factor=3.0)
        assert new.mixing_factor == 1.0
        assert tracker.config is new

    def test_unknown_field(self):
        tracker = make_tracker()
        with pytest.raises(TypeError):
            tracker.update_config(no_such_option=1)
