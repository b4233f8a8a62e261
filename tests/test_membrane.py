"""Membrane element: evaluation order, stiffness and variant agreement."""

import numpy as np
import pytest

from rc_membrane.concrete import ConcreteParameters, ConstitutiveModel
from rc_membrane.membrane import Membrane
from rc_membrane.plane_state import StrainState
from rc_membrane.variants import DSFMVariant, MCFTVariant, SMMVariant


UNCRACKED = StrainState(2e-5, 1e-5, 4e-5)
CRACKED = StrainState(0.002, 0.0005, 0.004)


def test_model_selects_variant():
    p = ConcreteParameters(30.0)
    assert isinstance(Membrane(p).variant, MCFTVariant)
    assert isinstance(Membrane(p, model="dsfm").variant, DSFMVariant)
    assert isinstance(Membrane(p, model=ConstitutiveModel.SMM).variant, SMMVariant)
    with pytest.raises(ValueError):
        Membrane(p, model="vecchio")


def test_initial_stiffness_independent_of_history(pv10_mcft):
    K0 = pv10_mcft.initial_stiffness.copy()
    pv10_mcft.calculate(CRACKED)
    np.testing.assert_allclose(pv10_mcft.initial_stiffness, K0)
    assert not np.allclose(pv10_mcft.stiffness, K0)


def test_initial_stiffness_is_concrete_plus_steel(pv10_mcft):
    Ec = pv10_mcft.concrete.parameters.Ec
    web = pv10_mcft.reinforcement
    K0 = pv10_mcft.initial_stiffness
    assert K0[0, 0] == pytest.approx(Ec + web.ratio_x * 200000.0)
    assert K0[1, 1] == pytest.approx(Ec + web.ratio_y * 200000.0)
    assert K0[2, 2] == pytest.approx(0.5 * Ec)


def test_zero_strain_gives_zero_stress(pv10_mcft):
    pv10_mcft.calculate(StrainState.zero())
    assert pv10_mcft.average_stresses.is_zero
    assert not pv10_mcft.cracked
    assert pv10_mcft.crack_opening == 0.0


def test_mcft_and_dsfm_agree_before_cracking(pv10_mcft, pv10_dsfm_mcft_parameters):
    pv10_mcft.calculate(UNCRACKED)
    pv10_dsfm_mcft_parameters.calculate(UNCRACKED)
    assert not pv10_mcft.cracked
    assert not pv10_dsfm_mcft_parameters.cracked
    np.testing.assert_allclose(
        pv10_mcft.average_stresses.as_vector(),
        pv10_dsfm_mcft_parameters.average_stresses.as_vector(),
        rtol=1e-12,
    )
    np.testing.assert_allclose(pv10_mcft.stiffness, pv10_dsfm_mcft_parameters.stiffness, rtol=1e-12)


def test_mcft_and_dsfm_differ_after_cracking(pv10_mcft, pv10_dsfm_mcft_parameters):
    for _ in range(2):
        pv10_mcft.calculate(CRACKED)
        pv10_dsfm_mcft_parameters.calculate(CRACKED)
    assert pv10_mcft.cracked
    assert pv10_dsfm_mcft_parameters.cracked
    assert not np.allclose(pv10_mcft.stiffness, pv10_dsfm_mcft_parameters.stiffness)


def test_cracking_is_latched(pv10_mcft):
    pv10_mcft.calculate(CRACKED)
    assert pv10_mcft.cracked
    pv10_mcft.calculate(StrainState.zero())
    assert pv10_mcft.cracked
    assert pv10_mcft.crack_opening == 0.0


def test_crack_check_recorded_after_cracking(pv10_mcft):
    pv10_mcft.calculate(UNCRACKED)
    assert pv10_mcft.last_crack_check is None
    pv10_mcft.calculate(CRACKED)
    check = pv10_mcft.last_crack_check
    assert check is not None
    assert pv10_mcft.concrete.principal_stresses.sigma_1 <= check.f1a + 1e-12
    assert pv10_mcft.crack_opening > 0.0
    assert pv10_mcft.crack_spacing > 0.0


def test_copy_is_independent(pv10_mcft):
    pv10_mcft.calculate(CRACKED)
    snapshot = pv10_mcft.copy()
    before = snapshot.average_stresses.as_vector()
    pv10_mcft.calculate(UNCRACKED)
    np.testing.assert_allclose(snapshot.average_stresses.as_vector(), before)
    assert snapshot.average_strains == CRACKED


def test_plain_concrete_element():
    el = Membrane(ConcreteParameters(30.0))
    el.calculate(StrainState(-0.0005, 0.0, 0.0))
    s = el.average_stresses
    assert s.sigma_x < 0.0
    assert s.sigma_y == pytest.approx(0.0, abs=1e-9)
    assert "rho_x=0.0000" in repr(el)


def test_mcft_has_no_slip(pv10_mcft):
    pv10_mcft.calculate(CRACKED)
    assert pv10_mcft.crack_slip_strains.is_zero
    assert pv10_mcft.pseudo_stresses.is_zero
    assert pv10_mcft.slip_approach is None
