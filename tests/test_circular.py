"""
Tests for the circular-arc and straight-line layer integrators.

Closed-form travel times and offsets are checked against numerical
quadrature of the ray equations

    dt = dz / (v cos theta),   dx = tan(theta) dz,   sin theta = p v
"""

from dataclasses import fields

import numpy as np
import pytest
from scipy.integrate import quad

from acoustic_svp.config import RayStatus
from acoustic_svp.errors import NonPropagatingRay, RayDomainError
from acoustic_svp.raytracing.circular import (
    DOWN_NEGATIVE,
    DOWN_POSITIVE,
    UP_NEGATIVE,
    UP_POSITIVE,
    arc_parameter,
    arc_time,
    integrate_arc,
    sample_arc,
    turning_depth,
)
from acoustic_svp.raytracing.integrators import (
    Traversal,
    integrate_layer,
    integrate_line,
    integrate_vertical,
    select_traversal,
)
from acoustic_svp.raytracing.model import build_model
from acoustic_svp.raytracing.state import RayState


def make_state(z, p, turned=False, t_left=10.0, x=0.0):
    return RayState(
        x=x, z=z, t=0.0, t_left=t_left, layer=0, turned=turned, sign_x=1, p=p,
        status=RayStatus.UP if turned else RayStatus.DOWN,
    )


def quad_path(p, layer, z_a, z_b):
    """Travel time and horizontal distance between two depths by quadrature."""
    def cos_theta(z):
        pv = p * layer.velocity_at(z)
        return np.sqrt(1.0 - pv * pv)

    lo, hi = min(z_a, z_b), max(z_a, z_b)
    t, _ = quad(lambda z: 1.0 / (layer.velocity_at(z) * cos_theta(z)), lo, hi,
                epsabs=0.0, epsrel=1e-13)
    x, _ = quad(lambda z: p * layer.velocity_at(z) / cos_theta(z), lo, hi,
                epsabs=0.0, epsrel=1e-13)
    return t, x


class TestArcParameter:

    def test_matches_acosh(self):
        p = np.sin(np.radians(40.0)) / 1500.0
        np.testing.assert_allclose(arc_parameter(p, 1520.0), np.arccosh(1.0 / (p * 1520.0)),
                                   rtol=1e-12)

    def test_zero_at_turning_point(self):
        assert arc_parameter(1.0 / 1500.0, 1500.0) == 0.0

    def test_within_tolerance_is_grazing(self):
        p = (1.0 + 1e-12) / 1500.0
        assert arc_parameter(p, 1500.0) == 0.0

    def test_beyond_tolerance_raises(self):
        p = (1.0 + 1e-6) / 1500.0
        with pytest.raises(NonPropagatingRay) as excinfo:
            arc_parameter(p, 1500.0, layer_index=3)
        assert excinfo.value.layer == 3
        assert isinstance(excinfo.value, RayDomainError)

    def test_arc_time(self):
        assert arc_time(0.3, 0.1, -0.05) == pytest.approx(4.0)
        assert arc_time(0.3, 0.1, 0.05, through_turn=True) == pytest.approx(8.0)


class TestQuadrants:

    def test_can_turn(self):
        assert DOWN_POSITIVE.can_turn
        assert UP_NEGATIVE.can_turn
        assert not UP_POSITIVE.can_turn
        assert not DOWN_NEGATIVE.can_turn


class TestArcAgainstQuadrature:
    """Layer crossings without a turning point."""

    def setup_method(self):
        self.increasing = build_model([(0.0, 1500.0), (1000.0, 1550.0)]).layers[0]
        self.decreasing = build_model([(0.0, 1550.0), (1000.0, 1500.0)]).layers[0]

    def _check(self, quadrant, layer, z_start, z_end, p, turned):
        step = integrate_arc(quadrant, layer, make_state(z_start, p, turned))
        t_ref, x_ref = quad_path(p, layer, z_start, z_end)

        assert not step.exhausted
        assert step.z == z_end
        assert step.status is None
        np.testing.assert_allclose(step.dt, t_ref, rtol=1e-10)
        np.testing.assert_allclose(step.x, x_ref, rtol=1e-9)
        return step

    def test_down_positive(self):
        p = np.sin(np.radians(40.0)) / 1500.0
        step = self._check(DOWN_POSITIVE, self.increasing, 0.0, 1000.0, p, False)
        assert step.layer_delta == 1

    def test_down_negative(self):
        p = np.sin(np.radians(40.0)) / 1550.0
        step = self._check(DOWN_NEGATIVE, self.decreasing, 0.0, 1000.0, p, False)
        assert step.layer_delta == 1

    def test_up_positive(self):
        p = np.sin(np.radians(40.0)) / 1550.0
        step = self._check(UP_POSITIVE, self.increasing, 1000.0, 0.0, p, True)
        assert step.layer_delta == -1
        assert step.turned

    def test_up_negative_without_turn(self):
        p = np.sin(np.radians(20.0)) / 1500.0
        step = self._check(UP_NEGATIVE, self.decreasing, 1000.0, 0.0, p, True)
        assert step.layer_delta == -1

    def test_partial_layer_from_interior(self):
        p = np.sin(np.radians(30.0)) / self.increasing.velocity_at(250.0)
        step = integrate_arc(DOWN_POSITIVE, self.increasing, make_state(250.0, p, x=12.5))
        t_ref, x_ref = quad_path(p, self.increasing, 250.0, 1000.0)
        np.testing.assert_allclose(step.dt, t_ref, rtol=1e-10)
        np.testing.assert_allclose(step.x, 12.5 + x_ref, rtol=1e-9)

    @pytest.mark.parametrize("fraction", [0.1, 0.5, 0.9])
    def test_exhaustion_depth(self, fraction):
        p = np.sin(np.radians(40.0)) / 1500.0
        full = integrate_arc(DOWN_POSITIVE, self.increasing, make_state(0.0, p))
        budget = fraction * full.dt
        step = integrate_arc(DOWN_POSITIVE, self.increasing, make_state(0.0, p, t_left=budget))

        assert step.exhausted
        assert step.layer_delta == 0
        assert step.dt == budget
        t_ref, x_ref = quad_path(p, self.increasing, 0.0, step.z)
        np.testing.assert_allclose(t_ref, budget, rtol=1e-9)
        np.testing.assert_allclose(step.x, x_ref, rtol=1e-8)

    @pytest.mark.parametrize("fraction", [0.2, 0.7])
    def test_exhaustion_moving_away(self, fraction):
        p = np.sin(np.radians(40.0)) / 1550.0
        full = integrate_arc(DOWN_NEGATIVE, self.decreasing, make_state(0.0, p))
        budget = fraction * full.dt
        step = integrate_arc(DOWN_NEGATIVE, self.decreasing, make_state(0.0, p, t_left=budget))

        t_ref, _ = quad_path(p, self.decreasing, 0.0, step.z)
        np.testing.assert_allclose(t_ref, budget, rtol=1e-9)


class TestTurningArc:
    """An ascending ray turned back down by velocity increasing upward."""

    def setup_method(self):
        self.layer = build_model([(0.0, 1550.0), (1000.0, 1500.0)]).layers[0]
        self.abs_g = 0.05
        self.p = np.sin(np.radians(100.0)) / 1500.0
        self.z_turn = (1550.0 - 1.0 / self.p) / self.abs_g

    def _quad_to_turn(self, z):
        """Time and offset from depth ``z`` up to the turning point.

        Substituting z = z_turn + u^2 removes the 1/sqrt singularity of the
        integrands at the turning depth.
        """
        p, g = self.p, self.abs_g

        def velocity(u):
            return 1.0 / p - g * u * u

        def t_integrand(u):
            v = velocity(u)
            return 2.0 / (v * np.sqrt(g * p * (1.0 + p * v)))

        def x_integrand(u):
            v = velocity(u)
            return 2.0 * p * v / np.sqrt(g * p * (1.0 + p * v))

        u_max = np.sqrt(z - self.z_turn)
        t, _ = quad(t_integrand, 0.0, u_max, epsabs=0.0, epsrel=1e-13)
        x, _ = quad(x_integrand, 0.0, u_max, epsabs=0.0, epsrel=1e-13)
        return t, x

    def test_turns_and_exits_bottom(self):
        step = integrate_arc(UP_NEGATIVE, self.layer, make_state(1000.0, self.p, turned=True))
        t_half, x_half = self._quad_to_turn(1000.0)

        assert step.status == RayStatus.DOWN_TURN
        assert not step.turned
        assert step.layer_delta == 1
        assert step.z == 1000.0
        np.testing.assert_allclose(step.dt, 2.0 * t_half, rtol=1e-9)
        np.testing.assert_allclose(step.x, 2.0 * x_half, rtol=1e-9)

    def test_closed_form(self):
        step = integrate_arc(UP_NEGATIVE, self.layer, make_state(1000.0, self.p, turned=True))
        beta = np.arccosh(1.0 / (self.p * 1500.0))
        cos0 = np.sqrt(1.0 - (self.p * 1500.0) ** 2)
        np.testing.assert_allclose(step.dt, 2.0 * beta / self.abs_g, rtol=1e-12)
        np.testing.assert_allclose(step.x, 2.0 * cos0 / (self.p * self.abs_g), rtol=1e-9)

    def test_exhausted_before_turn(self):
        t_half, _ = self._quad_to_turn(1000.0)
        state = make_state(1000.0, self.p, turned=True, t_left=0.5 * t_half)
        step = integrate_arc(UP_NEGATIVE, self.layer, state)

        assert step.exhausted
        assert step.status is None
        assert step.turned
        assert self.z_turn < step.z < 1000.0
        t_rest, _ = self._quad_to_turn(step.z)
        np.testing.assert_allclose(t_half - t_rest, 0.5 * t_half, rtol=1e-9)

    def test_exhausted_after_turn(self):
        t_half, x_half = self._quad_to_turn(1000.0)
        state = make_state(1000.0, self.p, turned=True, t_left=1.5 * t_half)
        step = integrate_arc(UP_NEGATIVE, self.layer, state)

        assert step.exhausted
        assert step.status == RayStatus.DOWN_TURN
        assert not step.turned
        t_back, x_back = self._quad_to_turn(step.z)
        np.testing.assert_allclose(t_back, 0.5 * t_half, rtol=1e-8)
        np.testing.assert_allclose(step.x, x_half + x_back, rtol=1e-8)

    def test_turning_depth(self):
        beta = arc_parameter(self.p, 1500.0)
        z = turning_depth(self.layer, self.p, beta / self.abs_g, beta, -1, 1)
        np.testing.assert_allclose(z, self.z_turn, rtol=1e-9)

    def test_turning_depth_outside_layer(self):
        beta = arc_parameter(self.p, 1500.0)
        with pytest.raises(RayDomainError):
            turning_depth(self.layer, self.p, 100.0, beta, 1, 1)


class TestSampleArc:

    def setup_method(self):
        self.layer = build_model([(0.0, 1550.0), (1000.0, 1500.0)]).layers[0]
        self.p = np.sin(np.radians(100.0)) / 1500.0
        self.state = make_state(1000.0, self.p, turned=True)
        self.step = integrate_arc(UP_NEGATIVE, self.layer, self.state)

    def test_count_and_end_point(self):
        points = sample_arc(self.layer, self.state, self.step, 5)
        assert len(points) == 5
        assert points[-1] == (self.step.x, self.step.z, self.step.dt)

    def test_even_in_time(self):
        points = sample_arc(self.layer, self.state, self.step, 5)
        times = np.array([t for _, _, t in points])
        np.testing.assert_allclose(np.diff(times), self.step.dt / 5, rtol=1e-12)

    def test_points_on_circle(self):
        arc = self.step.arc
        assert arc.side_start == -1
        h_start = np.sqrt(arc.radius ** 2 - (self.state.z - arc.depth_center) ** 2)
        x_center = self.state.x + h_start
        for x, z, _ in sample_arc(self.layer, self.state, self.step, 8):
            np.testing.assert_allclose(
                np.hypot(x - x_center, z - arc.depth_center), arc.radius, rtol=1e-9
            )

    def test_offsets_increase(self):
        xs = [x for x, _, _ in sample_arc(self.layer, self.state, self.step, 8)]
        assert np.all(np.diff(xs) > 0.0)

    def test_geometry_fields(self):
        names = {f.name for f in fields(self.step.arc)}
        assert names == {"radius", "depth_center", "beta", "side_start"}

    def test_requires_arc(self):
        line_step = integrate_line(
            build_model([(0.0, 1500.0), (10.0, 1500.0)]).layers[0],
            make_state(0.0, 1e-4),
        )
        with pytest.raises(ValueError):
            sample_arc(self.layer, self.state, line_step, 5)


class TestDispatch:

    def setup_method(self):
        model = build_model([(0.0, 1500.0), (10.0, 1500.0), (20.0, 1510.0), (30.0, 1490.0)])
        self.flat, self.rising, self.falling = model.layers

    def test_homogeneous_is_line(self):
        assert select_traversal(self.flat, make_state(5.0, 1e-4)) is Traversal.LINE
        assert select_traversal(self.flat, make_state(5.0, 0.0)) is Traversal.LINE

    def test_zero_parameter_is_vertical(self):
        assert select_traversal(self.rising, make_state(15.0, 0.0)) is Traversal.VERTICAL

    @pytest.mark.parametrize(
        "which, turned, expected",
        [
            ("rising", False, Traversal.ARC_DOWN_POSITIVE),
            ("rising", True, Traversal.ARC_UP_POSITIVE),
            ("falling", False, Traversal.ARC_DOWN_NEGATIVE),
            ("falling", True, Traversal.ARC_UP_NEGATIVE),
        ],
    )
    def test_arc_quadrants(self, which, turned, expected):
        layer = getattr(self, which)
        state = make_state(layer.depth_top, 1e-4, turned=turned)
        assert select_traversal(layer, state) is expected

    def test_integrate_layer_dispatches(self):
        state = make_state(0.0, 1e-4)
        assert integrate_layer(Traversal.LINE, self.flat, state) == integrate_line(self.flat, state)


class TestLineAndVertical:

    def setup_method(self):
        self.flat = build_model([(0.0, 1500.0), (100.0, 1500.0)]).layers[0]

    def test_grazing_ray_spends_budget(self):
        state = make_state(40.0, 1.0 / 1500.0, t_left=0.2)
        step = integrate_line(self.flat, state)
        assert step.exhausted
        assert step.dt == 0.2
        np.testing.assert_allclose(step.z, 40.0, atol=1e-4)
        np.testing.assert_allclose(step.x, 300.0, rtol=1e-12)

    def test_non_propagating_line(self):
        with pytest.raises(NonPropagatingRay):
            integrate_line(self.flat, make_state(40.0, 1.1 / 1500.0))

    def test_ascending_line_exits_top(self):
        p = np.sin(np.radians(30.0)) / 1500.0
        step = integrate_line(self.flat, make_state(60.0, p, turned=True))
        assert step.layer_delta == -1
        assert step.z == 0.0
        np.testing.assert_allclose(step.dt, 60.0 / (1500.0 * np.cos(np.radians(30.0))), rtol=1e-12)

    def test_vertical_exit_time(self):
        layer = build_model([(0.0, 1500.0), (500.0, 1525.0)]).layers[0]
        step = integrate_vertical(layer, make_state(0.0, 0.0))
        np.testing.assert_allclose(step.dt, np.log(1525.0 / 1500.0) / 0.05, rtol=1e-12)
        assert step.z == 500.0
        assert step.x == 0.0

    def test_vertical_upward_exhaustion(self):
        layer = build_model([(0.0, 1500.0), (500.0, 1525.0)]).layers[0]
        step = integrate_vertical(layer, make_state(500.0, 0.0, turned=True, t_left=0.1))
        expected = (1525.0 * np.exp(-0.05 * 0.1) - 1500.0) / 0.05
        np.testing.assert_allclose(step.z, expected, rtol=1e-12)
        assert step.exhausted
