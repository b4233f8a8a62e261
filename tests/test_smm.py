"""Softened Membrane Model: Poisson ratios and strain decoupling."""

import numpy as np
import pytest

from rc_membrane.panels import make_panel
from rc_membrane.plane_state import PrincipalStrainState, StrainState
from rc_membrane.reinforcement import WebReinforcement
from rc_membrane.variants import SMMVariant, poisson_coefficients, remove_poisson_effect


@pytest.fixture
def web():
    return WebReinforcement.from_bars(6.35, 50.55, 400.0, 70.0)


def test_poisson_without_reinforcement():
    assert poisson_coefficients(None, StrainState(0.001, 0.0, 0.0), cracked=False) == (0.2, 0.2)
    assert poisson_coefficients(None, StrainState(0.001, 0.0, 0.0), cracked=True) == (0.2, 0.0)


def test_poisson_follows_larger_bar_strain(web):
    nu12, nu21 = poisson_coefficients(web, StrainState(-0.001, -0.0005, 0.0), cracked=True)
    assert nu12 == pytest.approx(0.2)
    assert nu21 == 0.0

    nu12, _ = poisson_coefficients(web, StrainState(0.0005, 0.0001, 0.0), cracked=True)
    assert nu12 == pytest.approx(0.2 + 850.0 * 0.0005)

    nu12, _ = poisson_coefficients(web, StrainState(0.0001, 0.01, 0.0), cracked=True)
    assert nu12 == pytest.approx(1.9)


def test_remove_poisson_identity_when_uncoupled():
    p = PrincipalStrainState(0.002, -0.001, 0.4)
    q = remove_poisson_effect(p, 0.7, 0.0)
    assert q.epsilon_1 == pytest.approx(0.002)
    assert q.epsilon_2 == pytest.approx(-0.001)
    assert q.theta_1 == 0.4


def test_remove_poisson_symmetric_form():
    p = PrincipalStrainState(0.001, -0.002, 0.0)
    q = remove_poisson_effect(p, 0.2, 0.2)
    v1 = 1.0 / (1.0 - 0.04)
    v2 = 0.2 * v1
    assert q.epsilon_1 == pytest.approx(v1 * 0.001 + v2 * -0.002)
    assert q.epsilon_2 == pytest.approx(v2 * 0.001 + v1 * -0.002)


def test_smm_element_zero_state():
    el = make_panel("PV10", "smm")
    assert isinstance(el.variant, SMMVariant)
    el.calculate(StrainState.zero())
    np.testing.assert_allclose(el.average_stresses.as_vector(), 0.0, atol=1e-12)
    assert not el.cracked


def test_smm_cracks_under_shear():
    el = make_panel("PV10", "smm")
    el.calculate(StrainState(0.001, 0.0005, 0.004))
    assert el.cracked
    el.calculate(StrainState(0.001, 0.0005, 0.004))
    assert el.variant.poisson[1] == 0.0
    assert np.all(np.isfinite(el.average_stresses.as_vector()))
    assert np.all(np.isfinite(el.stiffness))


def test_smm_applies_crack_check():
    el = make_panel("PV10", "smm")
    el.calculate(StrainState(0.001, 0.0005, 0.004))
    check = el.last_crack_check
    assert check is not None
    assert el.concrete.principal_stresses.sigma_1 <= check.f1a + 1e-12
    assert el.concrete.principal_stresses.sigma_1 <= check.limit + 1e-12
