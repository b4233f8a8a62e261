"""Load-stepping solver: configuration, stiffness updates and halting."""

import numpy as np
import pytest

from rc_membrane.convergence import MembraneConvergence, convergence_metric, relative_metric
from rc_membrane.panels import pure_shear
from rc_membrane.plane_state import StrainState, StressState
from rc_membrane.solver import (
    IterationRecord,
    MembraneSolver,
    SolverConfig,
    solve_increment,
    solve_membrane,
    update_stiffness,
)


# ----------------------------
# Configuration
# ----------------------------


def test_config_aliases():
    cfg = SolverConfig(update="Newton_Raphson", control="shear_strain")
    assert cfg.update == "newton"
    assert cfg.control == "mixed"
    assert SolverConfig(update="broyden").update == "secant"


@pytest.mark.parametrize(
    "kwargs",
    [dict(update="bfgs"), dict(control="arc-length"), dict(steps=0), dict(max_iterations=0), dict(stress_tolerance=0.0)],
)
def test_config_rejects_invalid(kwargs):
    with pytest.raises(ValueError):
        SolverConfig(**kwargs)


def test_config_dict_roundtrip():
    cfg = SolverConfig(steps=20, update="newton", control="strain", simulate=True, max_load_factor=2.0)
    cfg2 = SolverConfig.from_dict(cfg.to_dict())
    assert cfg2 == cfg
    with pytest.raises(ValueError, match="Unknown solver options"):
        SolverConfig.from_dict({"stepz": 10})


# ----------------------------
# Convergence and updates
# ----------------------------


def test_convergence_metric_scale():
    assert convergence_metric([0.1, 0.0, 0.0], [10.0, 0.0, 0.0]) == pytest.approx(0.01 / 101.0)
    assert convergence_metric([0.0, 0.0, 0.0], [0.0, 0.0, 0.0]) == 0.0
    assert relative_metric([0.0], [0.0]) == 0.0
    assert relative_metric([1.0], [0.0]) == float("inf")


def test_convergence_rules_need_minimum_iterations():
    conv = MembraneConvergence()
    assert not conv.stress_converged(0.0, 1)
    assert conv.stress_converged(0.0, 2)
    assert not conv.strain_converged([0.0], [1.0], 4)
    assert conv.strain_converged([0.0], [1.0], 5)


def test_secant_update_scales_by_strain_norm():
    K = np.eye(3)
    prev = IterationRecord(np.zeros(3), np.zeros(3), np.zeros(3), K)
    cur = IterationRecord(np.array([1e-3, 0.0, 0.0]), np.zeros(3), np.array([2e-3, 0.0, 0.0]), K)
    K_new = update_stiffness("secant", cur, prev)
    assert K_new[0, 0] == pytest.approx(1.001)
    np.testing.assert_allclose(K_new[1:, :], K[1:, :])


def test_secant_update_general_form():
    K = np.diag([3.0, 2.0, 1.0])
    de = np.array([0.1, -0.2, 0.05])
    dr = np.array([1.3, 0.6, 1.2])
    prev = IterationRecord(np.zeros(3), np.zeros(3), np.array([-1.0, -1.0, -1.0]), K)
    cur = IterationRecord(de, np.zeros(3), prev.residual + dr, K)
    K_new = update_stiffness("secant", cur, prev)
    expected = K + np.outer((dr - K @ de) / np.linalg.norm(de), de)
    np.testing.assert_allclose(K_new, expected)


def test_newton_update_rank_one():
    K = np.eye(3)
    prev = IterationRecord(np.zeros(3), np.zeros(3), np.zeros(3), K)
    cur = IterationRecord(np.array([1.0, 0.0, 0.0]), np.array([2.0, 1.0, 0.0]), np.zeros(3), K)
    K_new = update_stiffness("newton", cur, prev)
    np.testing.assert_allclose(K_new, K + np.outer([2.0, 1.0, 0.0], [1.0, 0.0, 0.0]))


def test_update_skipped_without_strain_change():
    K = np.eye(3)
    rec = IterationRecord(np.ones(3), np.ones(3), np.ones(3), K)
    assert update_stiffness("secant", rec, rec) is K


def test_solve_increment_singular_fallback():
    K = np.array([[1.0, 0.0, 0.0], [0.0, 0.0, 0.0], [0.0, 0.0, 1.0]])
    x = solve_increment(K, np.array([1.0, 0.0, 2.0]))
    np.testing.assert_allclose(x, [1.0, 0.0, 2.0], atol=1e-12)


# ----------------------------
# Solving
# ----------------------------


def test_zero_load_converges_in_minimum_iterations(pv10_mcft):
    result = solve_membrane(pv10_mcft, StressState.zero(), steps=3)
    assert result.converged
    assert len(result.steps) == 3
    assert all(s.iterations == 2 for s in result.steps)
    assert result.final_strain.is_zero
    assert result.cracking_step is None


def test_mcft_and_dsfm_match_before_cracking(pv10_mcft, pv10_dsfm_mcft_parameters):
    cfg = SolverConfig(steps=5)
    a = MembraneSolver(pv10_mcft, cfg).solve(pure_shear(1.0))
    b = MembraneSolver(pv10_dsfm_mcft_parameters, cfg).solve(pure_shear(1.0))
    assert a.converged and b.converged
    assert a.cracking_step is None and b.cracking_step is None
    np.testing.assert_allclose(a.final_strain.as_vector(), b.final_strain.as_vector(), rtol=1e-9, atol=1e-15)
    assert a.final_stress.tau_xy == pytest.approx(1.0, abs=0.05)


def test_step_results_follow_load(pv10_mcft):
    result = solve_membrane(pv10_mcft, pure_shear(1.0), steps=4)
    assert result.converged
    assert [s.step for s in result.steps] == [1, 2, 3, 4]
    assert [s.load_factor for s in result.steps] == pytest.approx([0.25, 0.5, 0.75, 1.0])
    taus = [s.stress.tau_xy for s in result.steps]
    assert taus == sorted(taus)
    assert result.ultimate_stresses == result.steps[-1].stress
    assert result.element is not None
    assert result.element is not pv10_mcft
    row = result.steps[-1].to_dict()
    assert row["step"] == 4
    assert row["cracked"] is False


def test_overload_halts_without_raising(pv10_mcft):
    cfg = SolverConfig(steps=100, max_iterations=200)
    result = MembraneSolver(pv10_mcft, cfg).solve(pure_shear(40.0))
    assert not result.converged
    assert result.failed_step is not None
    assert len(result.steps) >= 1
    assert len(result.steps) < 100
    assert result.failed_step == result.steps[-1].step + 1
    assert result.ultimate_stresses == result.steps[-1].stress
    assert result.calculations <= result.failed_step * cfg.max_iterations


def test_stress_control_rejects_strain_target(pv10_mcft):
    with pytest.raises(ValueError):
        solve_membrane(pv10_mcft, StrainState(0.0, 0.0, 0.001), control="stress")


def test_strain_control_follows_prescribed_strain(pv10_mcft):
    target = StrainState(0.0, 0.0, 0.004)
    result = solve_membrane(pv10_mcft, target, control="strain", steps=10)
    assert result.converged
    assert len(result.steps) == 10
    assert result.steps[0].strain.gamma_xy == pytest.approx(0.0004)
    assert result.final_strain.gamma_xy == pytest.approx(0.004)
    assert result.cracking_step == 1
    assert all(s.iterations == 2 for s in result.steps)


def test_mixed_control_prescribes_shear_strain(pv10_mcft):
    result = solve_membrane(pv10_mcft, StrainState(0.0, 0.0, 0.0005), control="mixed", steps=10)
    assert len(result.steps) >= 1
    first = result.steps[0]
    assert first.strain.gamma_xy == pytest.approx(5e-5)
    assert abs(first.stress.sigma_x) < 0.05
    assert abs(first.stress.sigma_y) < 0.05
    assert first.stress.tau_xy > 0.0


def test_simulate_stops_at_max_load_factor(pv10_mcft):
    result = solve_membrane(pv10_mcft, pure_shear(0.5), steps=5, simulate=True, max_load_factor=1.4)
    assert len(result.steps) <= 7
    assert all(s.load_factor <= 1.4 + 1e-12 for s in result.steps)
    if result.converged:
        assert len(result.steps) == 7


def test_verbose_logging(pv10_mcft, capsys):
    solve_membrane(pv10_mcft, pure_shear(0.5), steps=2, verbose=True)
    out = capsys.readouterr().out
    assert "[membrane] start model=mcft" in out
    assert "LS=001 converged" in out


def test_to_dataframe(pv10_mcft):
    result = solve_membrane(pv10_mcft, pure_shear(0.5), steps=2)
    df = result.to_dataframe()
    assert len(df) == 2
    assert list(df["step"]) == [1, 2]
