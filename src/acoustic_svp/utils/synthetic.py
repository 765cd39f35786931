"""
Synthetic sound-velocity profiles for validation and testing.

Generates velocity profiles with known structure (isovelocity, constant
gradient, the Munk deep-water channel) and converts temperature/salinity
casts to sound velocity with the Mackenzie (1981) equation, so the
raytracer can be exercised without real CTD or XBT data.
"""

from __future__ import annotations

import numpy as np
from typing import Optional

from acoustic_svp.config import SoundVelocityProfile


def isovelocity_profile(
    velocity: float = 1500.0,
    max_depth: float = 1000.0,
    n_nodes: int = 2,
) -> SoundVelocityProfile:
    """Constant-velocity profile.

    Parameters
    ----------
    velocity : float
        Sound velocity in m/s.
    max_depth : float
        Depth of the deepest node in meters.
    n_nodes : int
        Number of nodes (>= 2), evenly spaced from the surface.
    """
    depths = np.linspace(0.0, max_depth, n_nodes)
    return SoundVelocityProfile(
        name=f"Isovelocity {velocity:g} m/s",
        depths=depths,
        velocities=np.full(n_nodes, velocity),
    )


def linear_gradient_profile(
    surface_velocity: float = 1500.0,
    gradient: float = 0.017,
    max_depth: float = 1000.0,
    n_nodes: int = 2,
) -> SoundVelocityProfile:
    """Profile with a single constant gradient dv/dz.

    The default gradient is the pressure term of sound velocity in
    isothermal water (about 0.017 1/s).
    """
    depths = np.linspace(0.0, max_depth, n_nodes)
    return SoundVelocityProfile(
        name=f"Linear gradient {gradient:+g} 1/s",
        depths=depths,
        velocities=surface_velocity + gradient * depths,
    )


def munk_profile(
    depths: Optional[np.ndarray] = None,
    axis_depth: float = 1300.0,
    axis_velocity: float = 1500.0,
    scale_depth: float = 1300.0,
    epsilon: float = 0.00737,
) -> SoundVelocityProfile:
    """Munk (1974) canonical deep-water sound channel.

        c(z) = c_1 * (1 + eps * (eta - 1 + exp(-eta))),
        eta  = 2 (z - z_1) / B

    Parameters
    ----------
    depths : np.ndarray, optional
        Node depths in meters. Default: 0 to 5000 m every 100 m.
    axis_depth : float
        Depth of the channel axis z_1 (velocity minimum).
    axis_velocity : float
        Velocity on the axis c_1.
    scale_depth : float
        Scale depth B.
    epsilon : float
        Perturbation coefficient.
    """
    if depths is None:
        depths = np.arange(0.0, 5001.0, 100.0)
    depths = np.asarray(depths, dtype=np.float64)
    eta = 2.0 * (depths - axis_depth) / scale_depth
    velocities = axis_velocity * (1.0 + epsilon * (eta - 1.0 + np.exp(-eta)))
    return SoundVelocityProfile(name="Munk", depths=depths, velocities=velocities)


def mackenzie_velocity(
    temperature: np.ndarray | float,
    salinity:    np.ndarray | float,
    depth:       np.ndarray | float,
) -> np.ndarray | float:
    """Sound velocity in seawater from the Mackenzie (1981) equation.

    Valid for 2-30 degC, 25-40 PSU and 0-8000 m.

    Parameters
    ----------
    temperature : array-like or float
        Temperature in degC.
    salinity : array-like or float
        Salinity in PSU.
    depth : array-like or float
        Depth in meters.

    Returns
    -------
    velocity : array-like or float
        Sound velocity in m/s.
    """
    T = np.asarray(temperature, dtype=np.float64)
    S = np.asarray(salinity, dtype=np.float64)
    D = np.asarray(depth, dtype=np.float64)
    c = (
        1448.96
        + 4.591 * T
        - 5.304e-2 * T ** 2
        + 2.374e-4 * T ** 3
        + 1.340 * (S - 35.0)
        + 1.630e-2 * D
        + 1.675e-7 * D ** 2
        - 1.025e-2 * T * (S - 35.0)
        - 7.139e-13 * T * D ** 3
    )
    return c if c.ndim else float(c)


def profile_from_cast(
    depths:      np.ndarray,
    temperature: np.ndarray,
    salinity:    np.ndarray | float = 35.0,
    name:        str = "CTD cast",
) -> SoundVelocityProfile:
    """Sound-velocity profile from a temperature/salinity cast.

    Parameters
    ----------
    depths : np.ndarray
        Sample depths in meters, strictly increasing.
    temperature : np.ndarray
        Temperature at each depth in degC.
    salinity : np.ndarray or float
        Salinity at each depth in PSU, or one value for the whole cast.
    name : str
        Profile name.
    """
    depths = np.asarray(depths, dtype=np.float64)
    salinity = np.broadcast_to(np.asarray(salinity, dtype=np.float64), depths.shape)
    velocities = mackenzie_velocity(temperature, salinity, depths)
    return SoundVelocityProfile(name=name, depths=depths, velocities=velocities)
