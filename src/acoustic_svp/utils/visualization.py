"""
Plotting utilities for sound-velocity profiles and traced ray paths.

All functions return (Figure, Axes) and accept an optional `ax` argument
for embedding into multi-panel figures. Depth increases downward.
"""

from __future__ import annotations

import numpy as np
import matplotlib.pyplot as plt
from matplotlib.figure import Figure
from matplotlib.axes import Axes
from typing import Iterable, Optional

from acoustic_svp.config import SoundVelocityProfile
from acoustic_svp.raytracing.model import VelocityModel
from acoustic_svp.raytracing.recorder import PathRecorder


def plot_velocity_profile(
    profile: VelocityModel | SoundVelocityProfile,
    title: str = "Sound Velocity Profile",
    figsize: tuple[float, float] = (4, 6),
    ax: Optional[Axes] = None,
    show_nodes: bool = True,
) -> tuple[Figure, Axes]:
    """Plot velocity against depth.

    Parameters
    ----------
    profile : VelocityModel or SoundVelocityProfile
        Profile to draw; layers are linear between nodes.
    title : str
        Plot title.
    figsize : tuple
        Figure size.
    ax : Axes, optional
    show_nodes : bool
        Mark the profile nodes.

    Returns
    -------
    fig, ax
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
    else:
        fig = ax.get_figure()

    depths = np.asarray(profile.depths)
    velocities = np.asarray(profile.velocities)

    ax.plot(velocities, depths, "b-", linewidth=1.5, label="SVP")
    if show_nodes:
        ax.scatter(velocities, depths, color="navy", s=12, zorder=5, label="Nodes")

    ax.set_xlabel("Velocity (m/s)")
    ax.set_ylabel("Depth (m)")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    if not ax.yaxis_inverted():
        ax.invert_yaxis()

    return fig, ax


def plot_raypaths(
    paths: Iterable[PathRecorder | np.ndarray],
    labels: Optional[Iterable[str]] = None,
    model: Optional[VelocityModel] = None,
    title: str = "Ray Paths",
    figsize: tuple[float, float] = (10, 5),
    ax: Optional[Axes] = None,
    cmap: str = "viridis",
) -> tuple[Figure, Axes]:
    """Plot recorded ray paths in the offset/depth plane.

    Parameters
    ----------
    paths : iterable of PathRecorder or np.ndarray
        Recorded rays. Arrays must have shape (n, 2) or (n, 3) with columns
        offset, depth[, time].
    labels : iterable of str, optional
        One legend entry per path.
    model : VelocityModel, optional
        Draw the layer boundaries of this model as dashed lines.
    title : str
    ax : Axes, optional
    cmap : str
        Colormap used to color successive rays.

    Returns
    -------
    fig, ax
    """
    if ax is None:
        fig, ax = plt.subplots(1, 1, figsize=figsize)
    else:
        fig = ax.get_figure()

    arrays = [
        p.as_array() if isinstance(p, PathRecorder) else np.asarray(p)
        for p in paths
    ]
    label_list = list(labels) if labels is not None else [None] * len(arrays)
    colors = plt.get_cmap(cmap)(np.linspace(0.0, 1.0, max(len(arrays), 1)))

    for path, label, color in zip(arrays, label_list, colors):
        if len(path) == 0:
            continue
        ax.plot(path[:, 0], path[:, 1], "-", color=color, linewidth=1.0, label=label)
        ax.plot(path[-1, 0], path[-1, 1], "o", color=color, markersize=3)

    if model is not None:
        for depth in model.depths:
            ax.axhline(depth, color="gray", linestyle="--", linewidth=0.5, alpha=0.5)

    ax.set_xlabel("Offset (m)")
    ax.set_ylabel("Depth (m)")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    if labels is not None:
        ax.legend(loc="best", fontsize=8)
    if not ax.yaxis_inverted():
        ax.invert_yaxis()

    return fig, ax
