"""
Blobtrack I/O Package

Scenario configuration loading.
"""

from .scenario_loader import ScenarioConfig, ScenarioLoader, load_scenario

__all__ = ["ScenarioConfig", "ScenarioLoader", "load_scenario"]
