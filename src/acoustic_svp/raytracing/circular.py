"""
Closed-form ray paths through linear-gradient layers.

In a layer where v(z) = g (z - z_c) a ray with parameter p > 0 follows a
circle of radius R = 1 / (p |g|) whose center lies at the layer's
zero-velocity depth z_c. Writing the local angle from vertical as theta
(sin theta = p v), the travel time along the arc is

    dt = d(theta) / (|g| sin theta)

which integrates to a difference of the arc parameter

    beta(v) = acosh(1 / (p v)) = ln(1/(p v) + sqrt(1/(p v)^2 - 1))

beta is zero at the turning point (p v = 1) and grows away from it, so
the time between two velocities on the same side of the turn is
|beta_f - beta_i| / |g|, and through the turn it is
(beta_f + beta_i) / |g|.

The four quadrant cases (descending/ascending times positive/negative
gradient) share one integrator, parameterized by ``ArcQuadrant``.
Horizontal motion is measured in a frame where the ray always moves
toward +x: before its turning point the ray sits at x_c - h, after it at
x_c + h, with h = sqrt(R^2 - (z - z_c)^2).
"""

from __future__ import annotations

import numpy as np
from dataclasses import dataclass

from acoustic_svp.config import DEPTH_TOLERANCE, SNELL_TOLERANCE, RayStatus
from acoustic_svp.errors import NonPropagatingRay, RayDomainError
from acoustic_svp.raytracing.model import Layer
from acoustic_svp.raytracing.state import ArcGeometry, LayerStep, RayState


@dataclass(frozen=True)
class ArcQuadrant:
    """Sign conventions for one of the four circular-arc cases.

    Attributes
    ----------
    descending : bool
        The ray enters the step moving down.
    gradient_positive : bool
        Velocity increases with depth in the layer.
    """

    descending:        bool
    gradient_positive: bool

    @property
    def can_turn(self) -> bool:
        """A ray heading into increasing velocity may turn in the layer."""
        return self.descending == self.gradient_positive


DOWN_POSITIVE = ArcQuadrant(descending=True,  gradient_positive=True)
UP_POSITIVE   = ArcQuadrant(descending=False, gradient_positive=True)
DOWN_NEGATIVE = ArcQuadrant(descending=True,  gradient_positive=False)
UP_NEGATIVE   = ArcQuadrant(descending=False, gradient_positive=False)


# — Closed forms ——————————————————————————————————————————————————————————————

def arc_parameter(p: float, velocity: float, layer_index: int = -1) -> float:
    """Arc parameter beta = acosh(1 / (p v)).

    Parameters
    ----------
    p : float
        Ray parameter in s/m, > 0.
    velocity : float
        Sound velocity in m/s.
    layer_index : int
        Reported in the error message only.

    Returns
    -------
    float
        beta >= 0; exactly 0 at a turning point.

    Raises
    ------
    NonPropagatingRay
        If p * v exceeds 1 by more than ``SNELL_TOLERANCE``.
    """
    pv = p * velocity
    if pv > 1.0 + SNELL_TOLERANCE:
        raise NonPropagatingRay(p, velocity, layer_index)
    if pv >= 1.0:
        return 0.0
    ipv = 1.0 / pv
    return float(np.log(ipv + np.sqrt(ipv * ipv - 1.0)))


def arc_time(beta_from: float, beta_to: float, gradient: float,
             through_turn: bool = False) -> float:
    """Travel time along an arc between two arc parameters.

    Parameters
    ----------
    beta_from, beta_to : float
        Arc parameters at the start and end velocities.
    gradient : float
        Layer gradient dv/dz.
    through_turn : bool
        The path passes the turning point (beta = 0) on the way.
    """
    if through_turn:
        return (beta_to + beta_from) / abs(gradient)
    return abs(beta_to - beta_from) / abs(gradient)


def turning_depth(layer: Layer, p: float, t_left: float, beta: float,
                  dir_sign: int, turn_sign: int) -> float:
    """Depth reached after spending ``t_left`` along an arc.

    The arc parameter after the remaining time is
    ``dir_sign * t_left * |g| + turn_sign * beta``; its magnitude gives the
    velocity through

        alpha = p * exp(dir_sign * t_left * |g| + turn_sign * beta)
        v     = 2 alpha / (alpha^2 + p^2)

    and the layer's linear law turns that velocity into a depth.

    ====================  ========  =========
    case                  dir_sign  turn_sign
    ====================  ========  =========
    approaching the turn     -1        +1
    past the turn            +1        -1
    moving away (no turn)    +1        +1
    ====================  ========  =========

    Raises
    ------
    RayDomainError
        If the solved depth falls outside the layer, which means the sign
        convention does not match the ray geometry.
    """
    alpha = p * np.exp(dir_sign * t_left * abs(layer.gradient) + turn_sign * beta)
    velocity = 2.0 / (alpha + p * p / alpha)
    depth = float(layer.depth_at(velocity))

    slack = DEPTH_TOLERANCE * layer.thickness
    if not np.isfinite(depth) or not (
        layer.depth_top - slack <= depth <= layer.depth_bottom + slack
    ):
        raise RayDomainError(
            f"solved depth {depth!r} m lies outside layer {layer.index} "
            f"[{layer.depth_top}, {layer.depth_bottom}] m"
        )
    return min(max(depth, layer.depth_top), layer.depth_bottom)


def _half_chord(radius: float, offset: float) -> float:
    """sqrt(R^2 - d^2), factored to keep precision for large radii."""
    return float(np.sqrt(max(0.0, (radius - offset) * (radius + offset))))


def _arc_dx(side_i: int, h_i: float, d_i: float,
            side_f: int, h_f: float, d_f: float) -> float:
    """Horizontal distance between two points of the same arc."""
    if side_i != side_f:
        return h_i + h_f
    total = h_i + h_f
    if total <= 0.0:
        return 0.0
    return side_f * (d_i - d_f) * (d_i + d_f) / total


# — Integrator ————————————————————————————————————————————————————————————————

def integrate_arc(quadrant: ArcQuadrant, layer: Layer, state: RayState) -> LayerStep:
    """Integrate a ray along its circular arc through one gradient layer.

    Decision tree:

    1. Can the ray turn inside this layer?
    2. If so, does the time budget run out before the turn, or does the
       ray turn and then leave through the boundary it came from (or run
       out of time on the way back)?
    3. Otherwise, does it leave through the boundary ahead of it before
       the budget runs out?

    Parameters
    ----------
    quadrant : ArcQuadrant
        Direction and gradient sign case for this step.
    layer : Layer
        Current (gradient) layer.
    state : RayState
        Ray state at the start of the step. Not modified.

    Returns
    -------
    LayerStep
    """
    p       = state.p
    abs_g   = abs(layer.gradient)
    radius  = 1.0 / (p * abs_g)
    z_c     = layer.depth_center
    t_left  = state.t_left

    beta    = arc_parameter(p, layer.velocity_at(state.z), layer.index)
    d_i     = abs(state.z - z_c)
    h_i     = _half_chord(radius, d_i)
    side_i  = -1 if quadrant.can_turn else 1

    if quadrant.descending:
        ahead_z,  ahead_v,  ahead_delta  = layer.depth_bottom, layer.vel_bottom, 1
        behind_z, behind_v, behind_delta = layer.depth_top,    layer.vel_top,   -1
    else:
        ahead_z,  ahead_v,  ahead_delta  = layer.depth_top,    layer.vel_top,   -1
        behind_z, behind_v, behind_delta = layer.depth_bottom, layer.vel_bottom, 1

    if quadrant.gradient_positive:
        turns_inside = z_c + radius < layer.depth_bottom
    else:
        turns_inside = z_c - radius > layer.depth_top

    turned      = state.turned
    status      = None
    layer_delta = 0
    exhausted   = False

    if quadrant.can_turn and turns_inside:
        dt = beta / abs_g
        if dt >= t_left:
            # time runs out before the turning point
            z_f    = turning_depth(layer, p, t_left, beta, -1, 1)
            side_f = -1
            dt     = t_left
            exhausted = True
        else:
            beta_exit = arc_parameter(p, behind_v, layer.index)
            dt      = arc_time(beta, beta_exit, layer.gradient, through_turn=True)
            turned  = not state.turned
            status  = RayStatus.UP_TURN if turned else RayStatus.DOWN_TURN
            side_f  = 1
            if dt <= t_left:
                z_f = behind_z
                layer_delta = behind_delta
            else:
                z_f = turning_depth(layer, p, t_left, beta, 1, -1)
                dt  = t_left
                exhausted = True
    else:
        beta_exit = arc_parameter(p, ahead_v, layer.index)
        dt     = arc_time(beta, beta_exit, layer.gradient)
        side_f = side_i
        if dt <= t_left:
            z_f = ahead_z
            layer_delta = ahead_delta
        else:
            dir_sign = -1 if quadrant.can_turn else 1
            z_f = turning_depth(layer, p, t_left, beta, dir_sign, 1)
            dt  = t_left
            exhausted = True

    d_f = abs(z_f - z_c)
    h_f = _half_chord(radius, d_f)
    x_f = state.x + _arc_dx(side_i, h_i, d_i, side_f, h_f, d_f)

    return LayerStep(
        dt=dt,
        x=x_f,
        z=z_f,
        layer_delta=layer_delta,
        exhausted=exhausted,
        turned=turned,
        status=status,
        arc=ArcGeometry(
            radius=radius,
            depth_center=z_c,
            beta=beta,
            side_start=side_i,
        ),
    )


def sample_arc(layer: Layer, state: RayState, step: LayerStep,
               n_segments: int) -> list[tuple[float, float, float]]:
    """Points along the arc of ``step``, evenly spaced in travel time.

    Returns ``n_segments`` unsigned (x, z, t) points; the last one is the
    exact end of the step.
    """
    arc = step.arc
    if arc is None:
        raise ValueError("step does not follow a circular arc.")

    abs_g = abs(layer.gradient)
    d_i   = abs(state.z - arc.depth_center)
    h_i   = _half_chord(arc.radius, d_i)

    points = []
    for k in range(1, n_segments):
        tau = step.dt * k / n_segments
        if arc.side_start < 0 and tau * abs_g <= arc.beta:
            z, side = turning_depth(layer, state.p, tau, arc.beta, -1, 1), -1
        elif arc.side_start < 0:
            z, side = turning_depth(layer, state.p, tau, arc.beta, 1, -1), 1
        else:
            z, side = turning_depth(layer, state.p, tau, arc.beta, 1, 1), 1
        d = abs(z - arc.depth_center)
        h = _half_chord(arc.radius, d)
        x = state.x + _arc_dx(arc.side_start, h_i, d_i, side, h, d)
        points.append((x, z, state.t + tau))
    points.append((step.x, step.z, state.t + step.dt))
    return points
