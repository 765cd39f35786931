"""
Layered sound-velocity model.

A profile of N (depth, velocity) nodes is split into N-1 layers in which
velocity varies linearly with depth. Each layer stores its gradient, its
integration mode and, for gradient layers, the depth at which the linear
velocity law extrapolates to zero. That depth is the common center of
every circular ray arc inside the layer:

    v(z) = g * (z - z_c),    z_c = z_top - v_top / g

The model is immutable after construction, so one instance can serve any
number of independent traces.
"""

from __future__ import annotations

import logging
import numpy as np
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from acoustic_svp.config import GRADIENT_TOLERANCE, LayerMode, SoundVelocityProfile
from acoustic_svp.errors import InvalidProfile, SourceDepthOutOfRange

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Layer:
    """One linear-gradient layer of a velocity model.

    Attributes
    ----------
    index : int
        Position of the layer in the model, 0 at the top.
    depth_top, depth_bottom : float
        Layer bounds in meters.
    vel_top, vel_bottom : float
        Sound velocity at the bounds in m/s.
    gradient : float
        dv/dz in 1/s.
    mode : LayerMode
        HOMOGENEOUS when |gradient| <= GRADIENT_TOLERANCE.
    depth_center : float
        Depth where v(z) extrapolates to zero (0.0 for homogeneous layers).
    """

    index:        int
    depth_top:    float
    depth_bottom: float
    vel_top:      float
    vel_bottom:   float
    gradient:     float
    mode:         LayerMode
    depth_center: float

    @property
    def thickness(self) -> float:
        return self.depth_bottom - self.depth_top

    def velocity_at(self, depth: float) -> float:
        """Linear velocity law v(z) of this layer.

        A HOMOGENEOUS layer is traced at ``vel_top`` throughout, so its
        velocity law ignores the sub-tolerance gradient.
        """
        if self.mode is LayerMode.HOMOGENEOUS:
            return self.vel_top
        return self.vel_top + (depth - self.depth_top) * self.gradient

    def depth_at(self, velocity: float) -> float:
        """Inverse of ``velocity_at``; only defined for gradient layers."""
        return self.depth_top + (velocity - self.vel_top) / self.gradient


def _make_layer(index: int, z_top: float, z_bot: float,
                v_top: float, v_bot: float) -> Layer:
    gradient = (v_bot - v_top) / (z_bot - z_top)
    if abs(gradient) > GRADIENT_TOLERANCE:
        mode   = LayerMode.GRADIENT
        center = z_top - v_top / gradient
    else:
        mode   = LayerMode.HOMOGENEOUS
        center = 0.0
    return Layer(
        index=index,
        depth_top=z_top,
        depth_bottom=z_bot,
        vel_top=v_top,
        vel_bottom=v_bot,
        gradient=gradient,
        mode=mode,
        depth_center=center,
    )


class VelocityModel:
    """Immutable layered velocity model.

    Parameters
    ----------
    depths : array-like, shape (N,)
        Node depths in meters, strictly increasing, N >= 2.
    velocities : array-like, shape (N,)
        Node velocities in m/s, strictly positive.

    Raises
    ------
    InvalidProfile
        If the nodes do not describe a valid profile.
    """

    def __init__(self, depths: Sequence[float], velocities: Sequence[float]) -> None:
        try:
            z = np.array(depths, dtype=np.float64)
            v = np.array(velocities, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidProfile(f"profile nodes must be numeric: {exc}") from exc

        if z.ndim != 1 or v.ndim != 1 or z.shape != v.shape:
            raise InvalidProfile("depths and velocities must be 1-D and equal length.")
        if len(z) < 2:
            raise InvalidProfile(f"a profile needs at least 2 nodes, got {len(z)}.")
        if not (np.all(np.isfinite(z)) and np.all(np.isfinite(v))):
            raise InvalidProfile("profile nodes must be finite.")
        if np.any(np.diff(z) <= 0.0):
            bad = int(np.argmax(np.diff(z) <= 0.0))
            raise InvalidProfile(
                f"depths must be strictly increasing (node {bad + 1}: "
                f"{z[bad + 1]} after {z[bad]})."
            )
        if np.any(v <= 0.0):
            bad = int(np.argmax(v <= 0.0))
            raise InvalidProfile(f"velocity at node {bad} must be > 0, got {v[bad]}.")

        z.flags.writeable = False
        v.flags.writeable = False
        self._depths = z
        self._velocities = v
        self._layers: Optional[tuple[Layer, ...]] = tuple(
            _make_layer(i, float(z[i]), float(z[i + 1]), float(v[i]), float(v[i + 1]))
            for i in range(len(z) - 1)
        )

        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Built velocity model with %d layers", len(self._layers))
            for layer in self._layers:
                logger.debug(
                    "  layer %3d  z=[%9.3f, %9.3f]  v=[%8.3f, %8.3f]  g=%+.6f  %s  zc=%.3f",
                    layer.index, layer.depth_top, layer.depth_bottom,
                    layer.vel_top, layer.vel_bottom, layer.gradient,
                    layer.mode.name, layer.depth_center,
                )

    @classmethod
    def from_profile(cls, profile: SoundVelocityProfile) -> "VelocityModel":
        """Build a model from a ``SoundVelocityProfile``."""
        return cls(profile.depths, profile.velocities)

    # — Read-only views ————————————————————————————————————————————————————————

    @property
    def layers(self) -> tuple[Layer, ...]:
        if self._layers is None:
            raise ValueError("velocity model has been released.")
        return self._layers

    @property
    def depths(self) -> np.ndarray:
        return self._depths

    @property
    def velocities(self) -> np.ndarray:
        return self._velocities

    @property
    def n_layers(self) -> int:
        return len(self.layers)

    @property
    def depth_top(self) -> float:
        return float(self._depths[0])

    @property
    def depth_bottom(self) -> float:
        return float(self._depths[-1])

    @property
    def released(self) -> bool:
        return self._layers is None

    def layer_index(self, depth: float) -> int:
        """Index of the layer containing ``depth``.

        Boundaries are inclusive. A depth exactly on an interior node
        belongs to the deeper of the two layers that share it; the model
        bottom belongs to the last layer.

        Raises
        ------
        SourceDepthOutOfRange
            If ``depth`` is outside [top, bottom] or not finite.
        """
        layers = self.layers
        if not np.isfinite(depth) or depth < self.depth_top or depth > self.depth_bottom:
            raise SourceDepthOutOfRange(depth, self.depth_top, self.depth_bottom)
        index = int(np.searchsorted(self._depths, depth, side="right")) - 1
        return min(index, len(layers) - 1)

    def velocity_at(self, depth: float) -> float:
        """Sound velocity at ``depth`` by linear interpolation."""
        return self.layers[self.layer_index(depth)].velocity_at(depth)

    def release(self) -> None:
        """Drop the layer table. Further traces on this model fail."""
        self._layers = None

    def __repr__(self) -> str:
        state = "released" if self.released else f"{len(self._layers)} layers"
        return (f"VelocityModel({state}, z=[{self.depth_top:.1f}, "
                f"{self.depth_bottom:.1f}] m)")


def build_model(nodes: Iterable[Sequence[float]]) -> VelocityModel:
    """Build a velocity model from ordered (depth, velocity) pairs.

    Parameters
    ----------
    nodes : iterable of (depth, velocity)
        Profile nodes, or an array of shape (N, 2).

    Returns
    -------
    VelocityModel

    Raises
    ------
    InvalidProfile
        If fewer than 2 nodes are given, depths are not strictly
        increasing, or any velocity is <= 0.
    """
    try:
        arr = np.array(list(nodes), dtype=np.float64)
    except (TypeError, ValueError) as exc:
        raise InvalidProfile(f"profile nodes must be (depth, velocity) pairs: {exc}") from exc
    if arr.ndim != 2 or arr.shape[1] != 2:
        if arr.size == 0:
            raise InvalidProfile("a profile needs at least 2 nodes, got 0.")
        raise InvalidProfile("profile nodes must be (depth, velocity) pairs.")
    return VelocityModel(arr[:, 0], arr[:, 1])


def destroy_model(model: VelocityModel) -> None:
    """Release a model built by ``build_model``."""
    model.release()
