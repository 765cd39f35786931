"""
Raytracing through layered sound-velocity models.

Provides the immutable ``VelocityModel``, the closed-form per-layer
integrators (straight line, vertical, and circular arcs), and the
``trace`` entry point that turns a launch angle and travel time into
offset and depth.
"""

from acoustic_svp.raytracing.model import (
    Layer,
    VelocityModel,
    build_model,
    destroy_model,
)
from acoustic_svp.raytracing.recorder import PathRecorder, PathSample, PathSink
from acoustic_svp.raytracing.tracer import TraceResult, correct_launch_angle, trace

__all__ = [
    "Layer",
    "VelocityModel",
    "build_model",
    "destroy_model",
    "PathRecorder",
    "PathSample",
    "PathSink",
    "TraceResult",
    "correct_launch_angle",
    "trace",
]
