"""
Exceptions raised by the raytracing engine.

All errors derive from ``ValueError`` so callers that validate inputs
the usual way keep working.
"""


class RaytraceError(ValueError):
    """Base class for raytracing failures."""


class InvalidProfile(RaytraceError):
    """The sound-velocity profile cannot be turned into a model."""


class SourceDepthOutOfRange(RaytraceError):
    """The ray source depth is not inside any layer of the model."""

    def __init__(self, depth: float, top: float, bottom: float) -> None:
        super().__init__(
            f"source depth {depth!r} m is outside the model [{top}, {bottom}] m"
        )
        self.depth = depth
        self.top = top
        self.bottom = bottom


class RayDomainError(RaytraceError):
    """A ray reached a numerically undefined state during integration."""


class NonPropagatingRay(RayDomainError):
    """The ray parameter exceeds the slowness of a layer it must cross.

    Raised instead of letting an ``asin``/``acosh`` argument leave its
    domain and turn the trace into NaNs.
    """

    def __init__(self, ray_parameter: float, velocity: float, layer: int) -> None:
        super().__init__(
            f"ray parameter {ray_parameter:.9g} s/m cannot propagate at "
            f"{velocity:.3f} m/s in layer {layer} (p*v = {ray_parameter * velocity:.12f})"
        )
        self.ray_parameter = ray_parameter
        self.velocity = velocity
        self.layer = layer
