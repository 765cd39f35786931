"""
Example 01: Ray-tracing through a piecewise-linear profile

Traces a single beam through a three-node profile and compares the
traced offset and travel time with the closed-form per-layer solution.
Visualizes the profile and the recorded ray path.
"""

import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

import logging
import numpy as np
import matplotlib.pyplot as plt

from acoustic_svp.raytracing import PathRecorder, build_model, destroy_model, trace
from acoustic_svp.utils.visualization import plot_raypaths, plot_velocity_profile


def closed_form_layer(p, v1, v2, g):
    """Offset and time across one gradient layer without a turning point."""
    cos1 = np.sqrt(1.0 - (p * v1) ** 2)
    cos2 = np.sqrt(1.0 - (p * v2) ** 2)
    dx = (cos1 - cos2) / (p * g)
    dt = np.log((v2 / v1) * (1.0 + cos1) / (1.0 + cos2)) / g
    return dx, dt


def main():
    logging.basicConfig(level=logging.DEBUG, format="%(name)s %(levelname)s %(message)s")

    # — Configuration ————————————————————————————————————————————————————————
    nodes        = [(0.0, 1500.0), (100.0, 1520.0), (500.0, 1480.0)]
    launch_angle = 20.0     # degrees from vertical
    max_time     = 1.0      # seconds, one way

    model    = build_model(nodes)
    recorder = PathRecorder(64)

    # — Trace ————————————————————————————————————————————————————————————————
    result = trace(model, 0.0, launch_angle, max_time, recorder=recorder)

    print(f"Status:   {result.status.name}")
    print(f"Offset:   {result.offset:.4f} m")
    print(f"Depth:    {result.depth:.4f} m")
    print(f"Time:     {result.elapsed_time * 1e3:.4f} ms")

    # — Closed-form validation ———————————————————————————————————————————————
    p = result.ray_parameter
    dx0, dt0 = closed_form_layer(p, 1500.0, 1520.0, 0.2)
    dx1, dt1 = closed_form_layer(p, 1520.0, 1480.0, -0.1)

    print("\n— Closed-form Validation —")
    print(f"Offset error: {abs(result.offset - (dx0 + dx1)):.3e} m")
    print(f"Time error:   {abs(result.elapsed_time - (dt0 + dt1)):.3e} s")

    # — Visualization —————————————————————————————————————————————————————————
    fig, axes = plt.subplots(1, 2, figsize=(12, 5), gridspec_kw={"width_ratios": [1, 3]})
    plot_velocity_profile(model, title="Profile", ax=axes[0])
    plot_raypaths([recorder], labels=[f"{launch_angle:g} deg"], model=model,
                  title="Ray Path", ax=axes[1])

    plt.tight_layout()
    plt.savefig("gradient_profile_result.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("\nSaved: gradient_profile_result.png")

    destroy_model(model)


if __name__ == "__main__":
    main()
