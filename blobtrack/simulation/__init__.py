"""
Blobtrack Simulation Package

Synthetic event streams and headless tracking runs.
"""

from .event_generator import BlobSpec, EventStreamGenerator, StreamConfig
from .headless_runner import HeadlessRunner, RunConfig, RunResult

__all__ = [
    "BlobSpec",
    "EventStreamGenerator",
    "StreamConfig",
    "HeadlessRunner",
    "RunConfig",
    "RunResult",
]
