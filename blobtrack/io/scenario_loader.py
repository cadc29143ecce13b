"""
Scenario Loader

YAML-based configuration parser for tracking runs.

Loads a tracking scenario from a YAML file and creates a configured
ClusterTracker, or a full headless RunConfig with a synthetic stream.

Supported scenario sections:
    - scenario: name and description
    - sensor: array size (size_x, size_y)
    - tracker: TrackerConfig parameters by field name
    - stream: synthetic stream timing, noise rate and seed
    - blobs: moving blobs (position, velocity, radius, rate)

Usage:
    loader = ScenarioLoader('configs/example_scenario.yaml')
    tracker = loader.create_tracker()
"""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import yaml

from ..simulation.event_generator import BlobSpec, StreamConfig
from ..simulation.headless_runner import RunConfig
from ..tracking.config import TrackerConfig
from ..tracking.tracker import ClusterTracker


@dataclass
class ScenarioConfig:
    """Complete scenario configuration."""

    name: str
    description: str
    size_x: int
    size_y: int
    tracker: TrackerConfig
    stream: StreamConfig
    blobs: List[BlobSpec] = field(default_factory=list)


class ScenarioLoader:
    """
    Loads tracking scenarios from YAML files.

    Usage:
        loader = ScenarioLoader('configs/example_scenario.yaml')
        config = loader.get_config()
        runner = HeadlessRunner(loader.create_run_config())
    """

    def __init__(self, filepath: Optional[str] = None):
        """
        Initialize scenario loader.

        Args:
            filepath: Path to YAML scenario file (optional)
        """
        self.filepath = filepath
        self.data: Dict[str, Any] = {}
        self._config: Optional[ScenarioConfig] = None

        if filepath:
            self.load(filepath)

    def load(self, filepath: str) -> bool:
        """
        Load scenario from YAML file.

        Args:
            filepath: Path to YAML scenario file

        Returns:
            True if loaded successfully

        Raises:
            FileNotFoundError: If file doesn't exist
            ValueError: If the tracker section has unknown parameters
            yaml.YAMLError: If YAML parsing fails
        """
        if not os.path.exists(filepath):
            raise FileNotFoundError(f"Scenario file not found: {filepath}")

        self.filepath = filepath

        with open(filepath, "r", encoding="utf-8") as f:
            self.data = yaml.safe_load(f) or {}

        self._config = self._parse_config()
        return True

    def _parse_config(self) -> ScenarioConfig:
        """Parse loaded YAML data into ScenarioConfig."""
        scenario = self.data.get("scenario", {})
        sensor = self.data.get("sensor", {})

        return ScenarioConfig(
            name=scenario.get("name", "Unnamed Scenario"),
            description=scenario.get("description", ""),
            size_x=int(sensor.get("size_x", 128)),
            size_y=int(sensor.get("size_y", 128)),
            tracker=TrackerConfig.from_dict(self.data.get("tracker") or {}),
            stream=self._parse_stream(),
            blobs=self._parse_blobs(),
        )

    def _parse_stream(self) -> StreamConfig:
        """Parse synthetic stream configuration."""
        stream = self.data.get("stream", {})
        seed = stream.get("seed")

        return StreamConfig(
            duration_us=int(stream.get("duration_us", 200000)),
            packet_us=int(stream.get("packet_us", 10000)),
            noise_rate_hz=float(stream.get("noise_rate_hz", 2000.0)),
            seed=int(seed) if seed is not None else None,
        )

    def _parse_blobs(self) -> List[BlobSpec]:
        """Parse moving blob configurations."""
        blobs = []

        for b in self.data.get("blobs", []) or []:
            pos = b.get("position", {})
            vel = b.get("velocity", {})

            blobs.append(
                BlobSpec(
                    x=float(pos.get("x", 0)),
                    y=float(pos.get("y", 0)),
                    vx_pps=float(vel.get("vx_pps", 0)),
                    vy_pps=float(vel.get("vy_pps", 0)),
                    radius=float(b.get("radius", 3.0)),
                    rate_hz=float(b.get("rate_hz", 20000.0)),
                )
            )

        return blobs

    def get_config(self) -> Optional[ScenarioConfig]:
        """
        Get parsed scenario configuration.

        Returns:
            ScenarioConfig or None if not loaded
        """
        return self._config

    def get_scenario_name(self) -> str:
        """Get scenario name."""
        if self._config:
            return self._config.name
        return "Unknown"

    def create_tracker(self) -> ClusterTracker:
        """
        Create a ClusterTracker from the loaded scenario.

        Raises:
            ValueError: If no scenario is loaded
        """
        if not self._config:
            raise ValueError("No scenario loaded. Call load() first.")
        return ClusterTracker(self._config.size_x, self._config.size_y, self._config.tracker)

    def create_run_config(self) -> RunConfig:
        """
        Create a headless RunConfig from the loaded scenario.

        Raises:
            ValueError: If no scenario is loaded
        """
        if not self._config:
            raise ValueError("No scenario loaded. Call load() first.")
        return RunConfig(
            size_x=self._config.size_x,
            size_y=self._config.size_y,
            tracker=self._config.tracker,
            stream=self._config.stream,
            blobs=list(self._config.blobs),
        )


def load_scenario(filepath: str) -> ScenarioConfig:
    """
    Convenience function to load a scenario file.

    Args:
        filepath: Path to YAML scenario file

    Returns:
        ScenarioConfig instance
    """
    loader = ScenarioLoader(filepath)
    return loader.get_config()
