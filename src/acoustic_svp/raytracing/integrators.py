"""
Per-layer integrators and the dispatch that selects one for each step.

Each integrator takes the current layer and ray state and returns a
``LayerStep``; none of them mutates the state. The variant is chosen once
per layer:

- HOMOGENEOUS layer            -> straight line
- GRADIENT layer, p == 0       -> vertical ray, exponential in time
- GRADIENT layer, p > 0        -> one of four circular-arc quadrants
"""

from __future__ import annotations

import numpy as np
from enum import Enum, auto
from typing import Callable, Dict

from acoustic_svp.config import SNELL_TOLERANCE, LayerMode
from acoustic_svp.errors import NonPropagatingRay
from acoustic_svp.raytracing.circular import (
    DOWN_NEGATIVE,
    DOWN_POSITIVE,
    UP_NEGATIVE,
    UP_POSITIVE,
    ArcQuadrant,
    integrate_arc,
)
from acoustic_svp.raytracing.model import Layer
from acoustic_svp.raytracing.state import LayerStep, RayState


class Traversal(Enum):
    """How the ray crosses the current layer."""

    LINE = auto()
    VERTICAL = auto()
    ARC_DOWN_POSITIVE = auto()
    ARC_UP_POSITIVE = auto()
    ARC_DOWN_NEGATIVE = auto()
    ARC_UP_NEGATIVE = auto()


_QUADRANTS: Dict[Traversal, ArcQuadrant] = {
    Traversal.ARC_DOWN_POSITIVE: DOWN_POSITIVE,
    Traversal.ARC_UP_POSITIVE:   UP_POSITIVE,
    Traversal.ARC_DOWN_NEGATIVE: DOWN_NEGATIVE,
    Traversal.ARC_UP_NEGATIVE:   UP_NEGATIVE,
}


def is_arc(traversal: Traversal) -> bool:
    return traversal in _QUADRANTS


def select_traversal(layer: Layer, state: RayState) -> Traversal:
    """Pick the integrator variant for ``state`` in ``layer``."""
    if layer.mode is LayerMode.HOMOGENEOUS:
        return Traversal.LINE
    if state.p <= 0.0:
        return Traversal.VERTICAL
    if not state.turned:
        if layer.gradient > 0.0:
            return Traversal.ARC_DOWN_POSITIVE
        return Traversal.ARC_DOWN_NEGATIVE
    if layer.gradient > 0.0:
        return Traversal.ARC_UP_POSITIVE
    return Traversal.ARC_UP_NEGATIVE


def integrate_line(layer: Layer, state: RayState) -> LayerStep:
    """Straight-line path through a constant-velocity layer.

    The ray direction follows from sin(theta) = p v; an ascending ray has
    the same horizontal component and a negative vertical one. A grazing
    ray (p v == 1) travels horizontally until the budget is spent.
    """
    velocity = layer.vel_top
    pv = state.p * velocity
    if pv > 1.0 + SNELL_TOLERANCE:
        raise NonPropagatingRay(state.p, velocity, layer.index)
    pv = min(pv, 1.0)

    xvel = velocity * pv
    zvel = velocity * np.sqrt(1.0 - pv * pv)
    if state.turned:
        zvel = -zvel
        z_target, layer_delta = layer.depth_top, -1
    else:
        z_target, layer_delta = layer.depth_bottom, 1

    if zvel != 0.0:
        dt = (z_target - state.z) / zvel
    else:
        dt = np.inf

    # ray exhausts the budget before leaving the layer
    if dt >= state.t_left:
        dt = state.t_left
        return LayerStep(
            dt=dt,
            x=state.x + xvel * dt,
            z=state.z + zvel * dt,
            layer_delta=0,
            exhausted=True,
            turned=state.turned,
        )

    return LayerStep(
        dt=dt,
        x=state.x + xvel * dt,
        z=z_target,
        layer_delta=layer_delta,
        exhausted=False,
        turned=state.turned,
    )


def integrate_vertical(layer: Layer, state: RayState) -> LayerStep:
    """Vertical ray (p == 0) through a gradient layer.

    With dz/dt = +-v and dv/dz = g, velocity evolves as
    v(t) = v_i * exp(+-g t), so the time to a target velocity is
    |ln(v_f / v_i)| / |g|.
    """
    g  = layer.gradient
    vi = layer.velocity_at(state.z)
    if state.turned:
        z_target, v_target, layer_delta = layer.depth_top, layer.vel_top, -1
    else:
        z_target, v_target, layer_delta = layer.depth_bottom, layer.vel_bottom, 1

    dt = float(abs(np.log(v_target / vi) / g))

    if dt >= state.t_left:
        dt = state.t_left
        ratio = np.exp(dt * g)
        vf = vi / ratio if state.turned else vi * ratio
        z_f = float(layer.depth_at(vf))
        z_f = min(max(z_f, layer.depth_top), layer.depth_bottom)
        return LayerStep(
            dt=dt,
            x=state.x,
            z=z_f,
            layer_delta=0,
            exhausted=True,
            turned=state.turned,
        )

    return LayerStep(
        dt=dt,
        x=state.x,
        z=z_target,
        layer_delta=layer_delta,
        exhausted=False,
        turned=state.turned,
    )


def _arc_integrator(quadrant: ArcQuadrant) -> Callable[[Layer, RayState], LayerStep]:
    def integrate(layer: Layer, state: RayState) -> LayerStep:
        return integrate_arc(quadrant, layer, state)
    return integrate


_INTEGRATORS: Dict[Traversal, Callable[[Layer, RayState], LayerStep]] = {
    Traversal.LINE:     integrate_line,
    Traversal.VERTICAL: integrate_vertical,
    **{t: _arc_integrator(q) for t, q in _QUADRANTS.items()},
}


def integrate_layer(traversal: Traversal, layer: Layer, state: RayState) -> LayerStep:
    """Run the integrator registered for ``traversal``."""
    return _INTEGRATORS[traversal](layer, state)
