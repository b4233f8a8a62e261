"""Panel series runner."""

import pytest

from rc_membrane.series import run_panel, run_series
from rc_membrane.solver import SolverConfig


def test_run_panel_reaches_failure():
    row = run_panel("PV10", "mcft", tau_step=0.5, max_tau=20.0, config=SolverConfig(max_iterations=200))
    assert row.panel == "PV10"
    assert row.status == "failed"
    assert row.steps >= 1
    assert row.failed_step == row.steps + 1
    assert 0.0 < row.ultimate_tau < 20.0


def test_run_panel_stops_at_max_load():
    row = run_panel("pv10", "mcft", tau_step=0.25, max_tau=0.75)
    assert row.status == "max-load"
    assert row.steps == 3
    assert row.ultimate_tau == pytest.approx(0.75, abs=0.05)
    assert row.cracking_tau is None


def test_run_series_frame():
    df = run_series(["PV10"], ["mcft", "dsfm"], tau_step=0.25, max_tau=0.5)
    assert list(df["model"]) == ["mcft", "dsfm"]
    assert set(df["status"]) == {"max-load"}
