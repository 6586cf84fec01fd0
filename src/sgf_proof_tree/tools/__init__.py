"""Developer tools for SGF proof-tree loading.

This module provides process memory reporting around loads.
"""

from .memory import MemoryReport, MemorySnapshot, measure_load, take_snapshot

__all__ = [
    "MemoryReport",
    "MemorySnapshot",
    "measure_load",
    "take_snapshot",
]
