"""
Simulation and Scenario Test Suite

Synthetic streams, headless runs and YAML scenarios.

Test ID | Description                   | Expected
--------|-------------------------------|------------------------------------
1       | Stream generation             | Sorted, on-array, reproducible
2       | Packetization                 | Packets cover the whole stream
3       | Headless run                  | Moving blob tracked within 3 px
4       | Scenario loading              | YAML sections to configs
"""

import os

import numpy as np
import pytest

from blobtrack.io import ScenarioLoader, load_scenario
from blobtrack.simulation import (
    BlobSpec,
    EventStreamGenerator,
    HeadlessRunner,
    RunConfig,
    StreamConfig,
)
from blobtrack.tracking import ClusterTracker, TrackerConfig

EXAMPLE_SCENARIO = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "configs", "example_scenario.yaml"
)


@pytest.fixture
def one_blob():
    return [BlobSpec(x=40, y=64, vx_pps=200.0, radius=3.0, rate_hz=20000.0)]


# =============================================================================
# TEST 1-2: Event Stream
# =============================================================================


class TestEventStream:
    """Synthetic stream generator."""

    def test_sorted_and_on_array(self, one_blob):
        gen = EventStreamGenerator(128, 128, one_blob, StreamConfig(duration_us=50000, seed=1))
        x, y, t, p = gen.generate()
        assert len(t) > 0
        assert np.all(np.diff(t) >= 0)
        assert x.min() >= 0 and x.max() < 128
        assert y.min() >= 0 and y.max() < 128
        assert set(np.unique(p)) <= {0, 1}

    def test_reproducible(self, one_blob):
        cfg = StreamConfig(duration_us=20000, seed=7)
        a = EventStreamGenerator(128, 128, one_blob, cfg).generate()
        b = EventStreamGenerator(128, 128, one_blob, cfg).generate()
        for col_a, col_b in zip(a, b):
            np.testing.assert_array_equal(col_a, col_b)

    def test_rate(self, one_blob):
        """20 kHz for 100 ms is about 2000 events"""
        gen = EventStreamGenerator(
            128, 128, one_blob, StreamConfig(duration_us=100000, noise_rate_hz=0, seed=3)
        )
        _, _, t, _ = gen.generate()
        assert 1800 < len(t) < 2200

    def test_blob_position(self):
        blob = BlobSpec(x=10, y=20, vx_pps=100.0, vy_pps=-50.0)
        assert blob.position_at(1e6) == (pytest.approx(110.0), pytest.approx(-30.0))

    def test_packets_cover_stream(self, one_blob):
        cfg = StreamConfig(duration_us=50000, packet_us=10000, seed=2)
        _, _, t, _ = EventStreamGenerator(128, 128, one_blob, cfg).generate()
        packets = list(EventStreamGenerator(128, 128, one_blob, cfg).packets())
        assert len(packets) == 5
        assert sum(len(p) for p in packets) == len(t)
        for i, packet in enumerate(packets):
            for e in packet:
                assert i * 10000 <= e.timestamp < (i + 1) * 10000


# =============================================================================
# TEST 3: Headless Run
# =============================================================================


class TestHeadlessRun:
    """Tracker over a generated stream."""

    def test_single_blob_tracked(self, one_blob):
        config = RunConfig(
            blobs=one_blob,
            stream=StreamConfig(duration_us=200000, noise_rate_hz=0, seed=11),
        )
        result = HeadlessRunner(config).run()

        assert result.n_events > 0
        assert result.n_packets == 20
        assert result.n_visible == 1
        assert result.mean_location_error_px < 3.0
        (c,) = [s for s in result.final_clusters if s.visible]
        assert c.velocity_pps[0] > 0

    def test_noise_does_not_create_visible_clusters(self):
        config = RunConfig(stream=StreamConfig(duration_us=100000, noise_rate_hz=2000, seed=5))
        result = HeadlessRunner(config).run()
        assert result.max_visible == 0
        assert np.isnan(result.mean_location_error_px)

    def test_result_dict(self, one_blob):
        config = RunConfig(blobs=one_blob, stream=StreamConfig(duration_us=30000, seed=1))
        d = HeadlessRunner(config).run().to_dict()
        assert d["n_blobs"] == 1
        assert d["n_packets"] == 3


# =============================================================================
# TEST 4: Scenario Loading
# =============================================================================


class TestScenarioLoader:
    """YAML scenario files."""

    def test_example_scenario(self):
        config = load_scenario(EXAMPLE_SCENARIO)
        assert config.size_x == 128
        assert len(config.blobs) == 2
        assert config.stream.seed == 42
        assert config.tracker.vel_ang_diff_deg_to_not_merge == 60

    def test_minimal_file(self, tmp_path):
        path = tmp_path / "minimal.yaml"
        path.write_text("sensor:\n  size_x: 240\n  size_y: 180\ntracker:\n  max_num_clusters: 3\n")
        loader = ScenarioLoader(str(path))
        tracker = loader.create_tracker()
        assert isinstance(tracker, ClusterTracker)
        assert tracker.sensor.size_x == 240
        assert tracker.config.max_num_clusters == 3
        assert loader.get_config().blobs == []
        assert loader.get_config().stream == StreamConfig()

    def test_run_config(self, tmp_path):
        path = tmp_path / "run.yaml"
        path.write_text(
            "blobs:\n"
            "  - position: {x: 30, y: 40}\n"
            "    velocity: {vx_pps: 100}\n"
            "stream:\n"
            "  duration_us: 50000\n"
            "  seed: 3\n"
        )
        run = ScenarioLoader(str(path)).create_run_config()
        assert run.blobs == [BlobSpec(x=30.0, y=40.0, vx_pps=100.0)]
        assert run.stream.duration_us == 50000
        assert run.tracker == TrackerConfig()

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            ScenarioLoader(str(tmp_path / "missing.yaml"))

    def test_unknown_tracker_key(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("tracker:\n  mixing: 0.1\n")
        with pytest.raises(ValueError, match="mixing"):
            ScenarioLoader(str(path))

    def test_not_loaded(self):
        loader = ScenarioLoader()
        assert loader.get_scenario_name() == "Unknown"
        with pytest.raises(ValueError):
            loader.create_tracker()
