"""
Ray tracer: launch angle and travel time to offset and depth.

A ray leaves the source at a given angle from vertical and is traced
layer by layer through a ``VelocityModel`` until it exhausts its
travel-time budget or leaves the model through the top or bottom.

State machine
-------------
    DOWN / UP            initial state from the launch angle (< 90 / >= 90 deg)
    DOWN_TURN / UP_TURN  the ray reversed its vertical direction in a layer
    OUT_TOP / OUT_BOTTOM the ray left the model (terminal)

Example
-------
    model  = build_model([(0, 1500), (100, 1520), (500, 1480)])
    result = trace(model, source_depth=0.0, launch_angle=20.0, max_time=0.2)
    result.offset, result.depth, result.status
"""

from __future__ import annotations

import logging
import numpy as np
from dataclasses import dataclass
from typing import Optional

from acoustic_svp.config import ARC_SEGMENTS, RayStatus, RecordMode, SSVMode
from acoustic_svp.errors import RayDomainError
from acoustic_svp.raytracing.circular import sample_arc
from acoustic_svp.raytracing.integrators import (
    integrate_layer,
    is_arc,
    select_traversal,
)
from acoustic_svp.raytracing.model import Layer, VelocityModel
from acoustic_svp.raytracing.recorder import PathSample, PathSink
from acoustic_svp.raytracing.state import LayerStep, RayState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TraceResult:
    """Final position of a traced ray.

    Attributes
    ----------
    offset : float
        Horizontal offset from the source in meters, signed like the
        launch angle.
    depth : float
        Depth in meters.
    elapsed_time : float
        One-way travel time actually spent, in seconds. Less than the
        budget when the ray left the model.
    status : RayStatus
        Terminal classification.
    ray_parameter : float
        Snell invariant sin(angle)/v(source) in s/m.
    launch_angle : float
        Launch angle in degrees after surface velocity correction.
    """

    offset:        float
    depth:         float
    elapsed_time:  float
    status:        RayStatus
    ray_parameter: float
    launch_angle:  float

    @property
    def out_of_bounds(self) -> bool:
        return self.status in (RayStatus.OUT_TOP, RayStatus.OUT_BOTTOM)


def correct_launch_angle(
    launch_angle:     float,
    velocity_source:  float,
    ssv_mode:         SSVMode,
    surface_velocity: float,
    null_angle:       float = 0.0,
) -> float:
    """Reproject a launch angle for a surface sound velocity change.

    The ray parameter p = sin(angle) / surface_velocity is carried to the
    model velocity at the source with flat-layer Snell's law. In
    ``SSVMode.INCORRECT`` the angle is measured from ``null_angle`` during
    the reprojection and rotated back afterward. An upward launch
    (more than 90 degrees from the reference) stays upward: the
    reprojected angle is reflected about the horizontal.

    Parameters
    ----------
    launch_angle : float
        Angle from vertical in degrees, as reported by the sonar.
    velocity_source : float
        Model velocity at the source depth in m/s.
    ssv_mode : SSVMode
        Correction to apply. NONE, or a non-positive surface velocity,
        returns the angle unchanged.
    surface_velocity : float
        Surface sound velocity the sonar used, in m/s.
    null_angle : float
        Receive-array reference angle in degrees.

    Returns
    -------
    float
        Corrected angle in degrees.
    """
    ssv_mode = SSVMode(ssv_mode)
    if ssv_mode is SSVMode.NONE or surface_velocity <= 0.0:
        return launch_angle

    reference = null_angle if ssv_mode is SSVMode.INCORRECT else 0.0
    relative = launch_angle - reference
    p = np.sin(np.radians(relative)) / surface_velocity
    ratio = p * velocity_source
    if abs(ratio) > 1.0:
        logger.warning(
            "Surface velocity correction clamped: sin(angle)=%.6f at %.3f m/s "
            "(surface %.3f m/s, angle %.3f deg)",
            ratio, velocity_source, surface_velocity, launch_angle,
        )
        ratio = float(np.clip(ratio, -1.0, 1.0))
    corrected = float(np.degrees(np.arcsin(ratio)))
    if abs(relative) > 90.0:
        corrected = float(np.copysign(180.0, relative)) - corrected
    return reference + corrected


def _initial_state(
    model:        VelocityModel,
    source_depth: float,
    launch_angle: float,
    max_time:     float,
) -> RayState:
    layer = model.layer_index(source_depth)
    velocity = model.layers[layer].velocity_at(source_depth)

    sign_x = -1 if launch_angle < 0.0 else 1
    angle = abs(launch_angle)
    turned = angle >= 90.0
    return RayState(
        x=0.0,
        z=float(source_depth),
        t=0.0,
        t_left=float(max_time),
        layer=layer,
        turned=turned,
        sign_x=sign_x,
        p=float(np.sin(np.radians(angle)) / velocity),
        status=RayStatus.UP if turned else RayStatus.DOWN,
        done=max_time <= 0.0,
    )


def _record_step(sink: PathSink, layer: Layer, state: RayState,
                 step: LayerStep, arc: bool) -> None:
    if arc and sink.mode is RecordMode.FULL:
        for x, z, t in sample_arc(layer, state, step, ARC_SEGMENTS):
            sink.append(PathSample(state.sign_x * x, z, t))
    else:
        sink.append(PathSample(state.sign_x * step.x, step.z, state.t + step.dt))


def _apply_step(state: RayState, step: LayerStep, n_layers: int) -> None:
    state.t += step.dt
    state.t_left = 0.0 if step.exhausted else state.t_left - step.dt
    state.x = step.x
    state.z = step.z
    state.layer += step.layer_delta
    state.turned = step.turned
    if step.status is not None:
        state.status = step.status

    if state.layer < 0:
        state.out_of_bounds = True
        state.status = RayStatus.OUT_TOP
    elif state.layer >= n_layers:
        state.out_of_bounds = True
        state.status = RayStatus.OUT_BOTTOM
    if state.t_left <= 0.0:
        state.done = True


def trace(
    model:            VelocityModel,
    source_depth:     float,
    launch_angle:     float,
    max_time:         float,
    ssv_mode:         SSVMode = SSVMode.NONE,
    surface_velocity: float = 0.0,
    null_angle:       float = 0.0,
    recorder:         Optional[PathSink] = None,
) -> TraceResult:
    """Trace one ray through a velocity model.

    Parameters
    ----------
    model : VelocityModel
        Layered model; only read.
    source_depth : float
        Transducer depth in meters. Must lie within the model; a depth on
        an interior node starts in the deeper layer.
    launch_angle : float
        Angle from vertical in degrees, in [-180, 180]. The sign sets the
        horizontal direction; |angle| >= 90 launches upward.
    max_time : float
        One-way travel-time budget in seconds, >= 0.
    ssv_mode : SSVMode
        Surface sound velocity correction of the launch angle.
    surface_velocity : float
        Surface sound velocity used by the sonar, in m/s.
    null_angle : float
        Receive-array reference angle in degrees (``SSVMode.INCORRECT``).
    recorder : PathSink, optional
        Receives the source point and sampled path points.

    Returns
    -------
    TraceResult

    Raises
    ------
    SourceDepthOutOfRange
        If ``source_depth`` is not inside the model.
    NonPropagatingRay, RayDomainError
        If the ray reaches a numerically undefined state.
    """
    if not np.isfinite(launch_angle) or abs(launch_angle) > 180.0:
        raise ValueError(f"launch_angle must be within [-180, 180], got {launch_angle}.")
    if not np.isfinite(max_time) or max_time < 0.0:
        raise ValueError(f"max_time must be finite and >= 0, got {max_time}.")

    layers = model.layers
    n_layers = len(layers)

    angle = launch_angle
    if ssv_mode != SSVMode.NONE:
        velocity_source = model.velocity_at(source_depth)
        angle = correct_launch_angle(
            launch_angle, velocity_source, ssv_mode, surface_velocity, null_angle,
        )

    state = _initial_state(model, source_depth, angle, max_time)
    logger.debug(
        "Tracing ray: z0=%.3f m  angle=%.4f deg  p=%.9g s/m  budget=%.6f s  layer=%d  %s",
        state.z, angle, state.p, max_time, state.layer, state.status.name,
    )

    if recorder is not None:
        recorder.append(PathSample(0.0, state.z, 0.0))

    max_stalled = 4 * n_layers + 4
    steps = 0
    stalled = 0
    while not state.finished:
        if stalled > max_stalled:
            logger.error("Ray made no progress in %d consecutive layer steps", stalled)
            raise RayDomainError(
                f"ray made no progress in {stalled} consecutive layer steps "
                f"(layer {state.layer}, z={state.z} m)"
            )
        steps += 1

        layer = layers[state.layer]
        traversal = select_traversal(layer, state)
        try:
            step = integrate_layer(traversal, layer, state)
        except RayDomainError:
            logger.error(
                "Ray became undefined in layer %d (%s) at x=%.3f z=%.3f t=%.6f",
                layer.index, traversal.name, state.x, state.z, state.t,
            )
            raise

        if not (np.isfinite(step.x) and np.isfinite(step.z) and np.isfinite(step.dt)):
            logger.error(
                "Non-finite ray position in layer %d (%s): x=%r z=%r dt=%r",
                layer.index, traversal.name, step.x, step.z, step.dt,
            )
            raise RayDomainError(
                f"non-finite ray position in layer {layer.index}: "
                f"x={step.x!r} z={step.z!r} dt={step.dt!r}"
            )

        if recorder is not None:
            _record_step(recorder, layer, state, step, is_arc(traversal))

        stalled = stalled + 1 if step.dt <= 0.0 else 0
        _apply_step(state, step, n_layers)

    result = TraceResult(
        offset=state.sign_x * state.x,
        depth=state.z,
        elapsed_time=state.t,
        status=state.status,
        ray_parameter=state.p,
        launch_angle=angle,
    )
    logger.debug(
        "Ray finished after %d steps: x=%.3f m  z=%.3f m  t=%.6f s  %s",
        steps, result.offset, result.depth, result.elapsed_time, result.status.name,
    )
    return result
