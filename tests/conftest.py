"""Shared fixtures for the tracker test suite."""

import os
import sys

import pytest

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from blobtrack.tracking import SensorGeometry, TrackerConfig, TrackerContext


@pytest.fixture
def sensor():
    """128x128 sensor, default radius 12.8 px at cluster_size 0.1"""
    return SensorGeometry(128, 128)


@pytest.fixture
def make_context(sensor):
    """Factory for a TrackerContext with config overrides."""

    def _make(**overrides):
        return TrackerContext(TrackerConfig(**overrides), sensor)

    return _make


@pytest.fixture
def context(make_context):
    return make_context()
