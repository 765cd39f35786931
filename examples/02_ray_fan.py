"""
Example 02: Multibeam Ray Fan

Traces a swath of beams through the preset profiles and through a Munk
deep-water sound channel, showing refraction in a thermocline and rays
turning inside the channel.
"""

import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

import numpy as np
import matplotlib.pyplot as plt

from acoustic_svp.config import SURFACE_DUCT, THERMOCLINE, RecordMode
from acoustic_svp.raytracing import PathRecorder, VelocityModel, trace
from acoustic_svp.utils.synthetic import munk_profile
from acoustic_svp.utils.visualization import plot_raypaths, plot_velocity_profile


def trace_fan(model, source_depth, angles, max_time, mode=RecordMode.FULL):
    """Trace one ray per angle and return the recorders and results."""
    recorders, results = [], []
    for angle in angles:
        recorder = PathRecorder(2000, mode)
        results.append(trace(model, source_depth, angle, max_time, recorder=recorder))
        recorders.append(recorder)
    return recorders, results


def main():
    cases = [
        ("Thermocline", VelocityModel.from_profile(THERMOCLINE), 5.0,
         np.linspace(-75.0, 75.0, 21), 1.0),
        ("Surface duct", VelocityModel.from_profile(SURFACE_DUCT), 20.0,
         np.linspace(84.0, 96.0, 9), 4.0),
        ("Munk channel", VelocityModel.from_profile(munk_profile()), 1300.0,
         np.linspace(80.0, 100.0, 11), 60.0),
    ]

    fig, axes = plt.subplots(len(cases), 2, figsize=(14, 4 * len(cases)),
                             gridspec_kw={"width_ratios": [1, 4]})

    for row, (name, model, z0, angles, max_time) in zip(axes, cases):
        recorders, results = trace_fan(model, z0, angles, max_time)

        print(f"— {name} ({model.n_layers} layers, source {z0:g} m) —")
        for angle, result in zip(angles, results):
            print(f"  {angle:+7.2f} deg  x={result.offset:+10.2f} m  "
                  f"z={result.depth:8.2f} m  {result.status.name}")

        plot_velocity_profile(model, title=name, ax=row[0], show_nodes=False)
        plot_raypaths(recorders, title=f"{name}: {len(angles)} beams", ax=row[1])

    plt.tight_layout()
    plt.savefig("ray_fan_result.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("\nSaved: ray_fan_result.png")


if __name__ == "__main__":
    main()
