"""
utils — Utility helpers for the acoustic_svp package.

Submodules
----------
synthetic       Synthetic sound-velocity profiles.
visualization   Velocity profile and ray path plotting.
"""

from . import synthetic, visualization

__all__ = ["synthetic", "visualization"]
