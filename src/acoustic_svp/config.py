"""
Configuration module for sound-velocity raytracing.

Defines the enumerations, numeric tolerances, and sound-velocity profile
dataclasses used throughout the raytracing engine, plus a few preset
profiles for examples and validation.

All units are SI (meters, seconds, m/s) and angles are in degrees from
vertical unless noted otherwise. Depth is positive downward.
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass
from enum import Enum, IntEnum


# — Constants ————————————————————————————————————————————————————————————————
GRADIENT_TOLERANCE = 1e-5   # |dv/dz| below this is treated as homogeneous
ARC_SEGMENTS       = 5      # Recorded points per circular-arc layer step
SNELL_TOLERANCE    = 1e-9   # Allowed excess of p*v over 1 (rounding noise)
DEPTH_TOLERANCE    = 1e-6   # Relative slack for solved depths inside a layer


class LayerMode(Enum):
    """How a ray is integrated through a layer."""

    HOMOGENEOUS = 0
    GRADIENT = 1


class RayStatus(IntEnum):
    """Classification of a ray at the end of (or during) a trace.

    The integer values match the codes used by multibeam processing
    tools, so results can be written to legacy reports unchanged.
    """

    DOWN = 1
    UP = 2
    DOWN_TURN = 3
    UP_TURN = 4
    OUT_BOTTOM = 5
    OUT_TOP = 6


class SSVMode(IntEnum):
    """Surface sound velocity correction applied to the launch angle.

    NONE
        Use the launch angle as given.
    CORRECT
        The sonar's surface velocity was right: carry the ray parameter
        from the surface velocity to the model velocity at the source
        depth with flat-layer Snell's law. The null angle is ignored.
    INCORRECT
        The sonar's surface velocity was wrong: perform the same Snell
        reprojection in a frame rotated by the null angle so the
        receive-array geometry is preserved.
    """

    NONE = 0
    CORRECT = 1
    INCORRECT = 2


class RecordMode(Enum):
    """Path recording detail.

    FULL records ``ARC_SEGMENTS`` interpolated points along every
    circular arc; TABLE records only the point where each layer step
    ends.
    """

    FULL = "full"
    TABLE = "table"


@dataclass
class SoundVelocityProfile:
    """Depth / sound-velocity profile (SVP) from a CTD or XBT cast.

    Parameters
    ----------
    name : str
        Human-readable profile name.
    depths : array-like
        Node depths in meters, strictly increasing.
    velocities : array-like
        Sound velocity at each node in m/s.
    """

    name: str
    depths: np.ndarray
    velocities: np.ndarray

    def __post_init__(self) -> None:
        self.depths = np.asarray(self.depths, dtype=np.float64)
        self.velocities = np.asarray(self.velocities, dtype=np.float64)
        if self.depths.shape != self.velocities.shape or self.depths.ndim != 1:
            raise ValueError(
                "depths and velocities must be 1-D arrays of equal length."
            )

    @property
    def n_nodes(self) -> int:
        return len(self.depths)

    @property
    def max_depth(self) -> float:
        """Deepest node of the profile in meters."""
        return float(self.depths[-1])

    @property
    def nodes(self) -> list[tuple[float, float]]:
        """(depth, velocity) pairs in profile order."""
        return [(float(z), float(v)) for z, v in zip(self.depths, self.velocities)]


# — Pre-defined profiles ——————————————————————————————————————————————————————
ISOVELOCITY_1500 = SoundVelocityProfile(
    name="Isovelocity 1500 m/s",
    depths=[0.0, 12000.0],
    velocities=[1500.0, 1500.0],
)

THERMOCLINE = SoundVelocityProfile(
    name="Summer thermocline",
    depths=[0.0, 25.0, 60.0, 150.0, 400.0, 1000.0, 3000.0, 6000.0],
    velocities=[1520.0, 1519.0, 1495.0, 1488.0, 1484.0, 1482.0, 1500.0, 1545.0],
)

SURFACE_DUCT = SoundVelocityProfile(
    name="Mixed-layer surface duct",
    depths=[0.0, 80.0, 300.0, 1500.0],
    velocities=[1500.0, 1501.5, 1480.0, 1490.0],
)
