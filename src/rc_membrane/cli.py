"""Command-line runner for membrane analyses.

Usage:
    rc-membrane --panel PV10 --model dsfm --shear 5.0
    rc-membrane --panel PV19 --model mcft --shear 4.0 --control mixed --simulate
    rc-membrane --case cases/pv10.yaml --csv out/pv10.csv --plot out/pv10.png
    rc-membrane --list
"""

from __future__ import annotations

import argparse
import sys
import time
from datetime import datetime
from typing import List, Optional
from zoneinfo import ZoneInfo

from rc_membrane.case_config import LoadingConfig, PanelCase
from rc_membrane.concrete import ConstitutiveModel
from rc_membrane.panels import PANELS
from rc_membrane.post import format_summary, plot_shear_response, write_csv
from rc_membrane.solver import SolverConfig


def print_run_header(tag: str) -> None:
    ts = datetime.now(ZoneInfo("Europe/Berlin")).strftime("%Y-%m-%d %H:%M:%S %Z")
    print(f"\n[run] {tag}  start={ts}")


def print_case_summary(case: PanelCase) -> None:
    el = case.build_membrane()
    p = el.concrete.parameters
    print(f"[material] model={case.model}  fc={p.fc:.3g} MPa  fcr={p.fcr:.3g} MPa  Ec={p.Ec:.5g} MPa")
    if el.reinforcement is not None:
        print(f"[steel] rho_x={el.reinforcement.ratio_x:.4f}  rho_y={el.reinforcement.ratio_y:.4f}")
    else:
        print("[steel] none")
    ld = case.loading
    print(f"[load] {ld.kind}  x={ld.x:.4g}  y={ld.y:.4g}  xy={ld.xy:.4g}")
    cfg = case.solver
    print(
        f"[solver] control={cfg.control}  update={cfg.update}  steps={cfg.steps}"
        f"  max_it={cfg.max_iterations}  simulate={'yes' if cfg.simulate else 'no'}"
    )


def list_panels() -> None:
    print("\nAvailable panels:")
    print("=" * 70)
    for name, p in PANELS.items():
        print(
            f"  {name:6s} fc={p.fc:5.1f}  x: {p.bar_x:.2f}@{p.spacing_x:.2f} fy={p.fy_x:.0f}"
            f"  y: {p.bar_y:.2f}@{p.spacing_y:.2f} fy={p.fy_y:.0f}"
        )
    print("=" * 70)
    print(f"\nTotal: {len(PANELS)} panels\n")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rc-membrane",
        description="Reinforced-concrete membrane analysis (MCFT / DSFM / SMM)",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  rc-membrane --list
  rc-membrane --panel PV10 --shear 4.0
  rc-membrane --panel PV19 --model dsfm --shear 4.0 --steps 200 --csv pv19.csv
        """,
    )
    parser.add_argument("--case", type=str, help="YAML/JSON case file")
    parser.add_argument("--panel", type=str, help="Tested panel name (e.g. PV10)")
    parser.add_argument("--model", type=str, default=None, help="mcft | dsfm | smm (default: mcft)")
    parser.add_argument("--no-slip", action="store_true", help="DSFM without crack-slip strains")
    parser.add_argument("--shear", type=float, help="Target shear stress [MPa]")
    parser.add_argument("--sx", type=float, default=0.0, help="Target normal stress x [MPa]")
    parser.add_argument("--sy", type=float, default=0.0, help="Target normal stress y [MPa]")
    parser.add_argument("--steps", type=int, help="Override number of load steps")
    parser.add_argument("--max-iterations", type=int, help="Override iteration cap per step")
    parser.add_argument("--update", type=str, help="secant | newton")
    parser.add_argument("--control", type=str, help="stress | mixed | strain")
    parser.add_argument("--simulate", action="store_true", help="Keep stepping past the target until failure")
    parser.add_argument("--csv", type=str, help="Write per-step results to CSV")
    parser.add_argument("--plot", type=str, help="Save shear stress-strain plot (PNG)")
    parser.add_argument("--list", action="store_true", help="List available panels and exit")
    parser.add_argument("--quiet", action="store_true", help="No per-step output")
    return parser


def case_from_args(args) -> PanelCase:
    if args.case:
        case = PanelCase.load(args.case)
        if args.model:
            case.model = ConstitutiveModel.parse(args.model).value
        if args.no_slip:
            case.consider_crack_slip = False
    else:
        if args.shear is None:
            raise ValueError("--shear is required with --panel")
        case = PanelCase(
            name=args.panel,
            model=args.model or "mcft",
            consider_crack_slip=not args.no_slip,
            panel=args.panel,
            loading=LoadingConfig("stress", args.sx, args.sy, args.shear),
        )

    solver = case.solver.to_dict()
    overrides = {
        "steps": args.steps,
        "max_iterations": args.max_iterations,
        "update": args.update,
        "control": args.control,
    }
    solver.update({k: v for k, v in overrides.items() if v is not None})
    if args.simulate:
        solver["simulate"] = True
    solver["verbose"] = not args.quiet
    case.solver = SolverConfig.from_dict(solver)
    return case


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list:
        list_panels()
        return 0

    if not args.case and not args.panel:
        parser.print_help()
        print("\nError: --case or --panel is required (or use --list)")
        return 1

    try:
        case = case_from_args(args)
    except ValueError as e:
        print(f"\nError: {e}")
        return 1

    print_run_header(case.name)
    print_case_summary(case)

    t0 = time.time()
    result = case.run()
    t_elapsed = time.time() - t0

    print()
    print(format_summary(result, case.name))
    print(f"  time           : {t_elapsed:.2f} s")

    if args.csv:
        print(f"  -> {write_csv(result, args.csv)}")
    if args.plot:
        print(f"  -> {plot_shear_response(result, args.plot, title=f'{case.name} ({case.model})')}")

    return 0 if result.converged else 2


if __name__ == "__main__":
    sys.exit(main())
