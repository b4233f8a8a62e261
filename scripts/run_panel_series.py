"""Tested-panel series runner (predicted cracking / ultimate shear per model)."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_ROOT = REPO_ROOT / "src"
if str(SRC_ROOT) not in sys.path:
    sys.path.insert(0, str(SRC_ROOT))

from rc_membrane.panels import PANELS
from rc_membrane.series import run_series
from rc_membrane.solver import SolverConfig


def main() -> int:
    parser = argparse.ArgumentParser(description="Run tested panels in pure shear until failure")
    parser.add_argument("--panels", nargs="*", help="Panel names (default: all)")
    parser.add_argument("--models", nargs="*", default=["mcft", "dsfm"], help="Constitutive models")
    parser.add_argument("--tau-step", type=float, default=0.05, help="Shear stress increment [MPa]")
    parser.add_argument("--max-tau", type=float, default=20.0, help="Upper bound on applied shear [MPa]")
    parser.add_argument("--max-iterations", type=int, default=1000, help="Iteration cap per step")
    parser.add_argument("--update", type=str, default="secant", help="secant | newton")
    parser.add_argument("--output", type=str, default="outputs/panel_series.csv", help="CSV output path")
    args = parser.parse_args()

    unknown = [p for p in (args.panels or []) if p.upper() not in PANELS]
    if unknown:
        print(f"Unknown panels: {unknown}")
        return 1

    cfg = SolverConfig(max_iterations=args.max_iterations, update=args.update)
    df = run_series(args.panels, args.models, tau_step=args.tau_step, max_tau=args.max_tau, config=cfg, verbose=True)

    out = Path(args.output)
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_csv(out, index=False)
    print(f"\n{len(df)} runs -> {out}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
