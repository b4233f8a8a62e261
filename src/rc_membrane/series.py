"""Run a set of tested panels under several constitutive models.

Each (panel, model) pair is driven in pure shear with ``simulate=True`` so the
last converged step gives the predicted capacity. Results are collected in a
pandas DataFrame, one row per run.
"""

from __future__ import annotations

import time
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

import numpy as np
import pandas as pd

from rc_membrane.concrete import ConstitutiveModel
from rc_membrane.panels import PANELS, make_panel, panel_spec, pure_shear
from rc_membrane.solver import MembraneSolver, SolverConfig


@dataclass
class SeriesRow:
    panel: str
    model: str
    status: str
    steps: int
    failed_step: Optional[int]
    cracking_tau: Optional[float]
    ultimate_tau: Optional[float]
    ultimate_gxy: Optional[float]
    calculations: int
    seconds: float


def run_panel(
    name: str,
    model="mcft",
    tau_step: float = 0.05,
    max_tau: float = 20.0,
    config: Optional[SolverConfig] = None,
) -> SeriesRow:
    """Step ``name`` in pure shear by ``tau_step`` until it fails (or ``max_tau``)."""
    m = ConstitutiveModel.parse(model)
    base = (config or SolverConfig()).to_dict()
    base.update(steps=1, simulate=True, max_load_factor=max_tau / tau_step)
    cfg = SolverConfig.from_dict(base)

    t0 = time.time()
    result = MembraneSolver(make_panel(name, m), cfg).solve(pure_shear(tau_step))
    elapsed = time.time() - t0

    last = result.last_step
    if not result.steps:
        status = "no-steps"
    elif result.converged:
        status = "max-load"
    else:
        status = "failed"
    if last is not None and not np.all(np.isfinite(last.stress.as_vector())):
        status = "nonfinite"

    return SeriesRow(
        panel=panel_spec(name).name,
        model=m.value,
        status=status,
        steps=len(result.steps),
        failed_step=result.failed_step,
        cracking_tau=result.cracking_stresses.tau_xy if result.cracking_stresses is not None else None,
        ultimate_tau=last.stress.tau_xy if last is not None else None,
        ultimate_gxy=last.strain.gamma_xy if last is not None else None,
        calculations=result.calculations,
        seconds=elapsed,
    )


def run_series(
    panels: Optional[Iterable[str]] = None,
    models: Iterable = ("mcft", "dsfm"),
    tau_step: float = 0.05,
    max_tau: float = 20.0,
    config: Optional[SolverConfig] = None,
    verbose: bool = False,
) -> pd.DataFrame:
    names: List[str] = list(panels) if panels is not None else list(PANELS)
    rows = []
    for name in names:
        for model in models:
            row = run_panel(name, model, tau_step=tau_step, max_tau=max_tau, config=config)
            if verbose:
                tau = "n/a" if row.ultimate_tau is None else f"{row.ultimate_tau:.3f}"
                print(f"[series] {row.panel:6s} {row.model:5s} {row.status:9s} steps={row.steps:4d} tau_u={tau} MPa")
            rows.append(asdict(row))
    return pd.DataFrame(rows)
