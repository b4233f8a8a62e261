"""Plane strain/stress states: rotation, principal decomposition and algebra."""

import math

import numpy as np
import pytest

from rc_membrane.plane_state import (
    TAN_SENTINEL,
    PrincipalStrainState,
    PrincipalStressState,
    StrainState,
    StressState,
    direction_cosines,
    normalize_angle,
    stiffness_to_reference,
    tangent,
    to_principal,
    transform,
)


def test_direction_cosines_snap_to_zero():
    c, s = direction_cosines(0.5 * math.pi)
    assert c == 0.0
    assert s == 1.0

    c, s = direction_cosines(math.pi)
    assert c == -1.0
    assert s == 0.0


def test_tangent_sentinel_is_finite_and_signed():
    assert tangent(0.5 * math.pi) == TAN_SENTINEL
    assert tangent(-0.5 * math.pi) == -TAN_SENTINEL
    assert tangent(0.25 * math.pi) == pytest.approx(1.0)


@pytest.mark.parametrize("theta", [0.0, 0.3, math.pi, -2.0, 0.5 * math.pi, -0.5 * math.pi])
def test_normalize_angle_range(theta):
    t = normalize_angle(theta)
    assert -0.5 * math.pi < t <= 0.5 * math.pi
    assert math.tan(t) == pytest.approx(math.tan(theta), abs=1e-6) or abs(math.cos(t)) < 1e-9


def test_principal_round_trip():
    s = StrainState(0.001, -0.0005, 0.0008)
    p = s.to_principal()
    back = p.to_strain_state()

    assert p.epsilon_1 >= p.epsilon_2
    assert back.theta_x == pytest.approx(0.0)
    np.testing.assert_allclose(back.as_vector(), s.as_vector(), atol=1e-15)


def test_principal_order_for_many_states():
    rng = np.random.default_rng(3)
    for v in rng.normal(scale=1e-3, size=(50, 3)):
        p = StrainState.from_vector(v).to_principal()
        assert p.epsilon_1 >= p.epsilon_2
        assert -0.5 * math.pi < p.theta_1 <= 0.5 * math.pi


def test_principal_angle_without_shear():
    assert StrainState(0.002, 0.001, 0.0).to_principal().theta_1 == 0.0
    assert StrainState(0.001, 0.002, 0.0).to_principal().theta_1 == pytest.approx(0.5 * math.pi)


def test_principal_angle_equal_normals_negative_shear():
    p = StrainState(0.001, 0.001, -0.002).to_principal()
    assert p.theta_1 == pytest.approx(-0.25 * math.pi)
    assert p.epsilon_1 == pytest.approx(0.002)
    assert p.epsilon_2 == pytest.approx(0.0)


def test_pure_shear_stress_principal():
    p = StressState(0.0, 0.0, 3.0).to_principal()
    assert p.sigma_1 == pytest.approx(3.0)
    assert p.sigma_2 == pytest.approx(-3.0)
    assert p.theta_1 == pytest.approx(0.25 * math.pi)

    back = p.to_stress_state()
    np.testing.assert_allclose(back.as_vector(), [0.0, 0.0, 3.0], atol=1e-12)


def test_stress_rotation_by_right_angle():
    s = StressState(2.0, -1.0, 0.5).transform(0.5 * math.pi)
    assert s.sigma_x == pytest.approx(-1.0)
    assert s.sigma_y == pytest.approx(2.0)
    assert s.tau_xy == pytest.approx(-0.5)


def test_strain_transform_matches_module_function():
    s = StrainState(0.001, 0.0002, -0.0004)
    a = s.transform(0.4)
    b = transform(s, 0.4)
    assert a == b
    assert a.theta_x == pytest.approx(0.4)
    np.testing.assert_allclose(a.to_horizontal().as_vector(), s.as_vector(), atol=1e-15)


def test_algebra_aligns_axes():
    a = StrainState(0.001, 0.0, 0.0)
    b = StrainState(0.001, 0.0, 0.0).transform(0.3)
    total = a + b
    np.testing.assert_allclose(total.as_vector(), [0.002, 0.0, 0.0], atol=1e-15)
    np.testing.assert_allclose((a - b).as_vector(), [0.0, 0.0, 0.0], atol=1e-15)
    assert (2.0 * a).epsilon_x == pytest.approx(0.002)
    assert (a / 2.0).epsilon_x == pytest.approx(0.0005)
    assert (-a).epsilon_x == pytest.approx(-0.001)


def test_stress_strain_conversions():
    K = np.array([[200.0, 20.0, 0.0], [20.0, 100.0, 0.0], [0.0, 0.0, 40.0]])
    e = StrainState(0.01, -0.02, 0.005)
    sig = StressState.from_strains(e, K)
    back = StrainState.from_stresses(sig, K)
    np.testing.assert_allclose(back.as_vector(), e.as_vector(), rtol=1e-12)


def test_to_principal_dispatch():
    assert isinstance(to_principal(StrainState()), PrincipalStrainState)
    assert isinstance(to_principal(StressState()), PrincipalStressState)
    with pytest.raises(TypeError):
        to_principal((0.0, 0.0, 0.0))


def test_isotropic_stiffness_is_rotation_invariant():
    K = stiffness_to_reference(100.0, 100.0, 0.37)
    np.testing.assert_allclose(K, np.diag([100.0, 100.0, 50.0]), atol=1e-10)


def test_stiffness_shear_modulus_guard():
    K = stiffness_to_reference(0.0, 0.0, 0.2)
    assert np.all(K == 0.0)
