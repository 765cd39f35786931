"""
Bounded sinks for sampled ray paths.

The tracer hands every sample to a ``PathSink``; it never looks at
capacity. ``PathRecorder`` is the standard sink: a pre-allocated buffer
that silently ignores samples once it is full.
"""

from __future__ import annotations

import numpy as np
from abc import ABC, abstractmethod
from typing import NamedTuple

from acoustic_svp.config import RecordMode


class PathSample(NamedTuple):
    """One sampled point of a ray path.

    Attributes
    ----------
    offset : float
        Signed horizontal offset from the source in meters.
    depth : float
        Depth in meters.
    time : float
        One-way travel time from the source in seconds.
    """

    offset: float
    depth:  float
    time:   float


class PathSink(ABC):
    """Abstract receiver of sampled ray-path points."""

    mode: RecordMode = RecordMode.FULL

    @abstractmethod
    def append(self, sample: PathSample) -> None:
        """Accept one sample. Must never raise because it is full."""


class PathRecorder(PathSink):
    """Fixed-capacity path buffer.

    Parameters
    ----------
    capacity : int
        Maximum number of samples kept. 0 records nothing.
    mode : RecordMode
        FULL interpolates points along circular arcs; TABLE keeps only the
        end of each layer step.
    """

    def __init__(self, capacity: int, mode: RecordMode = RecordMode.FULL) -> None:
        if capacity < 0:
            raise ValueError(f"capacity must be >= 0, got {capacity}.")
        self.capacity = int(capacity)
        self.mode = RecordMode(mode)
        self._offsets = np.zeros(self.capacity, dtype=np.float64)
        self._depths  = np.zeros(self.capacity, dtype=np.float64)
        self._times   = np.zeros(self.capacity, dtype=np.float64)
        self._count   = 0

    def append(self, sample: PathSample) -> None:
        if self._count >= self.capacity:
            return
        self._offsets[self._count] = sample.offset
        self._depths[self._count]  = sample.depth
        self._times[self._count]   = sample.time
        self._count += 1

    def clear(self) -> None:
        """Forget all samples so the buffer can be reused for another ray."""
        self._count = 0

    @property
    def full(self) -> bool:
        return self._count >= self.capacity

    @property
    def offsets(self) -> np.ndarray:
        return self._offsets[:self._count].copy()

    @property
    def depths(self) -> np.ndarray:
        return self._depths[:self._count].copy()

    @property
    def times(self) -> np.ndarray:
        return self._times[:self._count].copy()

    @property
    def samples(self) -> list[PathSample]:
        return [
            PathSample(float(x), float(z), float(t))
            for x, z, t in zip(self.offsets, self.depths, self.times)
        ]

    def as_array(self) -> np.ndarray:
        """Recorded samples as an array of shape (n, 3): offset, depth, time."""
        return np.column_stack([self.offsets, self.depths, self.times])

    def __len__(self) -> int:
        return self._count

    def __iter__(self):
        return iter(self.samples)

    def __repr__(self) -> str:
        return f"PathRecorder({self._count}/{self.capacity}, mode={self.mode.value})"
