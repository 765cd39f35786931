"""
Example 03: Surface Sound Velocity Correction

A sonar that beamforms with a surface sound velocity different from the
profile's steers every beam to a slightly different angle. Traces a swath
with and without the correction and plots the resulting depth error.
"""

import sys
import pathlib

sys.path.insert(0, str(pathlib.Path(__file__).resolve().parents[1] / "src"))

import numpy as np
import matplotlib.pyplot as plt

from acoustic_svp.config import SSVMode
from acoustic_svp.raytracing import VelocityModel, trace
from acoustic_svp.utils.synthetic import profile_from_cast


def main():
    # — Configuration ————————————————————————————————————————————————————————
    depths      = np.array([0.0, 10.0, 30.0, 75.0, 150.0, 400.0, 1000.0])
    temperature = np.array([24.0, 23.5, 19.0, 14.0, 11.0, 8.0, 5.0])
    profile     = profile_from_cast(depths, temperature, salinity=35.0)
    model       = VelocityModel.from_profile(profile)

    transducer_depth = 4.0
    surface_velocity = model.velocity_at(transducer_depth) - 6.0   # sonar's SSV
    null_angle       = 0.0
    angles           = np.linspace(-65.0, 65.0, 53)
    two_way_time     = 0.9

    print(f"Model velocity at transducer: {model.velocity_at(transducer_depth):.2f} m/s")
    print(f"Sonar surface velocity:       {surface_velocity:.2f} m/s")

    # — Trace ————————————————————————————————————————————————————————————————
    raw, corrected = [], []
    for angle in angles:
        raw.append(trace(model, transducer_depth, angle, two_way_time / 2))
        corrected.append(trace(
            model, transducer_depth, angle, two_way_time / 2,
            ssv_mode=SSVMode.CORRECT,
            surface_velocity=surface_velocity,
            null_angle=null_angle,
        ))

    x_raw = np.array([r.offset for r in raw])
    z_raw = np.array([r.depth for r in raw])
    x_cor = np.array([r.offset for r in corrected])
    z_cor = np.array([r.depth for r in corrected])

    print(f"Max depth difference: {np.max(np.abs(z_cor - z_raw)):.3f} m")

    # — Visualization —————————————————————————————————————————————————————————
    fig, axes = plt.subplots(1, 2, figsize=(14, 5))

    axes[0].plot(x_raw, z_raw, "r.-", label="Uncorrected")
    axes[0].plot(x_cor, z_cor, "b.-", label="SSV corrected")
    axes[0].invert_yaxis()
    axes[0].set_xlabel("Offset (m)")
    axes[0].set_ylabel("Depth (m)")
    axes[0].set_title("Swath footprint")
    axes[0].legend()
    axes[0].grid(True, alpha=0.3)

    axes[1].plot(angles, z_cor - z_raw, "k.-")
    axes[1].set_xlabel("Launch angle (deg)")
    axes[1].set_ylabel("Depth change (m)")
    axes[1].set_title("Effect of the correction")
    axes[1].grid(True, alpha=0.3)

    plt.tight_layout()
    plt.savefig("ssv_correction_result.png", dpi=150, bbox_inches="tight")
    plt.show()
    print("\nSaved: ssv_correction_result.png")


if __name__ == "__main__":
    main()
