"""
Per-trace ray state and the result of a single layer traversal.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from acoustic_svp.config import RayStatus


@dataclass
class RayState:
    """Mutable state of one ray while it is being traced.

    Positions are kept in a frame where the ray always moves toward +x;
    ``sign_x`` restores the launch direction when results are reported.

    Attributes
    ----------
    x, z : float
        Unsigned horizontal offset and depth in meters.
    t : float
        Elapsed travel time in seconds.
    t_left : float
        Remaining travel-time budget in seconds.
    layer : int
        Index of the current layer (-1 or n_layers once out of bounds).
    turned : bool
        True while the ray is ascending.
    sign_x : int
        +1 or -1, fixed from the launch angle sign.
    p : float
        Ray parameter sin(angle)/v in s/m, constant along the ray.
    status : RayStatus
        Current classification.
    done : bool
        The time budget is exhausted.
    out_of_bounds : bool
        The ray left the model through the top or the bottom.
    """

    x:             float
    z:             float
    t:             float
    t_left:        float
    layer:         int
    turned:        bool
    sign_x:        int
    p:             float
    status:        RayStatus
    done:          bool = False
    out_of_bounds: bool = False

    @property
    def finished(self) -> bool:
        return self.done or self.out_of_bounds


@dataclass(frozen=True)
class ArcGeometry:
    """Circle followed by a ray inside a gradient layer.

    Attributes
    ----------
    radius : float
        R = 1 / (p |g|).
    depth_center : float
        Depth of the circle center (the layer's zero-velocity depth).
    beta : float
        Arc parameter acosh(1 / (p v)) at the start of the step.
    side_start : int
        -1 when the step starts before the ray's turning point, +1 when it
        starts past it.
    """

    radius:       float
    depth_center: float
    beta:         float
    side_start:   int


@dataclass(frozen=True)
class LayerStep:
    """Outcome of integrating a ray through (part of) one layer.

    Attributes
    ----------
    dt : float
        Travel time spent in this step.
    x, z : float
        Unsigned position at the end of the step.
    layer_delta : int
        -1 or +1 when the ray leaves the layer, 0 when it stays.
    exhausted : bool
        The time budget ran out inside the layer.
    turned : bool
        Direction flag after the step.
    status : RayStatus, optional
        New ray status when the ray turned in the layer.
    arc : ArcGeometry, optional
        Arc followed during the step, for path recording.
    """

    dt:          float
    x:           float
    z:           float
    layer_delta: int
    exhausted:   bool
    turned:      bool
    status:      Optional[RayStatus] = None
    arc:         Optional[ArcGeometry] = None
