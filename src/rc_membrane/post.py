"""Post-processing of membrane solutions: tables, CSV export and plots."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import pandas as pd

COLUMNS = [
    "step", "load_factor", "iterations",
    "ex", "ey", "gxy",
    "sx", "sy", "txy",
    "e1", "e2", "theta1_deg",
    "ec1", "ec2", "fc1", "fc2", "theta_c_deg",
    "cracked", "slip_approach",
]


def results_to_dataframe(result) -> pd.DataFrame:
    """One row per converged step (empty frame with the same columns if none)."""
    rows = [s.to_dict() for s in result.steps]
    return pd.DataFrame(rows, columns=COLUMNS)


def write_csv(result, path: Union[str, Path]) -> Path:
    """Write the per-step table; parent directories are created."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    results_to_dataframe(result).to_csv(path, index=False, float_format="%.6e")
    return path


def _state_dict(state) -> Any:
    if state is None:
        return None
    return [float(v) for v in state.as_vector()]


def summary(result) -> Dict[str, Any]:
    """Key scalars of a run (JSON/YAML friendly)."""
    last = result.last_step
    return {
        "converged": bool(result.converged),
        "steps": len(result.steps),
        "failed_step": result.failed_step,
        "cracking_step": result.cracking_step,
        "cracking_stresses": _state_dict(result.cracking_stresses),
        "ultimate_stresses": _state_dict(result.ultimate_stresses),
        "final_strain": _state_dict(result.final_strain),
        "max_shear_stress": float(max((abs(s.stress.tau_xy) for s in result.steps), default=0.0)),
        "final_theta1_deg": last.theta1_deg if last is not None else None,
        "calculations": int(result.calculations),
    }


def format_summary(result, label: str = "") -> str:
    s = summary(result)
    lines = [f"=== Membrane analysis {label}".rstrip() + " ==="]
    lines.append(f"  converged      : {s['converged']} ({s['steps']} steps, {s['calculations']} evaluations)")
    if s["failed_step"] is not None:
        lines.append(f"  failed at step : {s['failed_step']}")
    if s["cracking_stresses"] is not None:
        sx, sy, txy = s["cracking_stresses"]
        lines.append(f"  cracking (LS={s['cracking_step']}) : sx={sx:.3f} sy={sy:.3f} txy={txy:.3f} MPa")
    if s["ultimate_stresses"] is not None:
        sx, sy, txy = s["ultimate_stresses"]
        lines.append(f"  ultimate       : sx={sx:.3f} sy={sy:.3f} txy={txy:.3f} MPa")
    return "\n".join(lines)


def plot_shear_response(result, filepath: Union[str, Path], title: str = "Shear stress - shear strain"):
    """Save the tau_xy - gamma_xy curve, marking the cracking step."""
    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    df = results_to_dataframe(result)
    fig, ax = plt.subplots(figsize=(8, 6))
    ax.plot(np.abs(df["gxy"]) * 1e3, np.abs(df["txy"]), "b-", linewidth=2, label="response")
    if result.cracking_step is not None:
        row = df[df["step"] == result.cracking_step]
        ax.plot(np.abs(row["gxy"]) * 1e3, np.abs(row["txy"]), "ro", label="cracking")
    ax.set_xlabel("Shear strain (E-03)")
    ax.set_ylabel("Shear stress (MPa)")
    ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()
    fig.savefig(filepath, dpi=150)
    plt.close(fig)
    return Path(filepath)
