"""Nonlinear load-stepping solver for a single membrane element.

The solver drives :class:`~rc_membrane.membrane.Membrane` toward a target
state through load steps. Inside each step it iterates

    sigma_k = membrane(eps_k),  r_k = sigma_k - target,
    K_k = update(K_{k-1}),      eps_{k+1} = eps_k + solve(K_k, -r_k)

until ``sum(r^2) / (1 + sum(target^2)) <= stress_tolerance`` with at least
``min_iterations`` iterations. Iteration state is carried in immutable
:class:`IterationRecord` pairs (current, previous).

Control modes
-------------
stress
    All three stress components follow ``load_factor * applied``.
mixed
    Shear strain is prescribed (``step * d_gamma``) and the normal stresses
    follow the load factor; lets the run trace a descending branch.
strain
    All strain components follow ``load_factor * target``; iterations only
    settle the element's internal state (DSFM slip).

A step that exhausts ``max_iterations`` halts the run. This is reported in
the returned :class:`SolveResult` and never raised.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional, Tuple, Union

import numpy as np

from rc_membrane.convergence import MembraneConvergence, convergence_metric
from rc_membrane.membrane import Membrane
from rc_membrane.plane_state import (
    PrincipalStrainState,
    PrincipalStressState,
    StrainState,
    StressState,
)


@dataclass
class SolverConfig:
    steps: int = 100
    max_iterations: int = 10000
    stress_tolerance: float = 1e-3
    strain_tolerance: float = 1e-8
    update: str = "secant"  # secant | newton
    control: str = "stress"  # stress | mixed | strain
    min_iterations: int = 2
    min_strain_iterations: int = 5
    simulate: bool = False
    max_load_factor: float = 10.0
    verbose: bool = False

    def __post_init__(self):
        """Normalize selector aliases and validate counts."""
        up = (self.update or "secant").strip().lower().replace("_", "-")
        aliases = {
            "secant": "secant",
            "broyden": "secant",
            "quasi-newton": "secant",
            "newton": "newton",
            "newton-raphson": "newton",
            "newtonraphson": "newton",
            "nr": "newton",
        }
        up = aliases.get(up, up)
        if up not in ("secant", "newton"):
            raise ValueError(f"Unknown update='{self.update}'. Use 'secant' or 'newton'.")
        self.update = up

        ctl = (self.control or "stress").strip().lower().replace("_", "-")
        aliases = {
            "stress": "stress",
            "load": "stress",
            "force": "stress",
            "mixed": "mixed",
            "shear-strain": "mixed",
            "displacement": "mixed",
            "strain": "strain",
        }
        ctl = aliases.get(ctl, ctl)
        if ctl not in ("stress", "mixed", "strain"):
            raise ValueError(f"Unknown control='{self.control}'. Use 'stress', 'mixed' or 'strain'.")
        self.control = ctl

        if int(self.steps) < 1:
            raise ValueError(f"steps must be >= 1 (got {self.steps}).")
        if int(self.max_iterations) < 1:
            raise ValueError(f"max_iterations must be >= 1 (got {self.max_iterations}).")
        if self.stress_tolerance <= 0.0 or self.strain_tolerance <= 0.0:
            raise ValueError("Tolerances must be positive.")
        self.steps = int(self.steps)
        self.max_iterations = int(self.max_iterations)

    @property
    def convergence(self) -> MembraneConvergence:
        return MembraneConvergence(
            stress_tolerance=self.stress_tolerance,
            strain_tolerance=self.strain_tolerance,
            min_iterations=self.min_iterations,
            min_strain_iterations=self.min_strain_iterations,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "steps": self.steps,
            "max_iterations": self.max_iterations,
            "stress_tolerance": self.stress_tolerance,
            "strain_tolerance": self.strain_tolerance,
            "update": self.update,
            "control": self.control,
            "min_iterations": self.min_iterations,
            "min_strain_iterations": self.min_strain_iterations,
            "simulate": self.simulate,
            "max_load_factor": self.max_load_factor,
            "verbose": self.verbose,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SolverConfig":
        known = cls().to_dict().keys()
        unknown = set(data) - set(known)
        if unknown:
            raise ValueError(f"Unknown solver options: {sorted(unknown)}")
        return cls(**data)


# ----------------------------
# Iteration records and updates
# ----------------------------


@dataclass(frozen=True)
class IterationRecord:
    strain: np.ndarray
    stress: np.ndarray
    residual: np.ndarray
    stiffness: np.ndarray


def update_stiffness(rule: str, current: IterationRecord, previous: IterationRecord) -> np.ndarray:
    """Stiffness after the move ``previous -> current``.

    ``secant``: rank-1 update ``K + ((dr - K de) / |de|) (x) de`` from the
    residual change, scaled by the Euclidean norm of the strain change.
    ``newton``: ``K + ds (x) de`` from the raw stress and strain changes.
    """
    K = previous.stiffness
    de = current.strain - previous.strain
    norm = float(np.linalg.norm(de))
    if norm < 1e-15:
        return K
    if rule == "newton":
        ds = current.stress - previous.stress
        return K + np.outer(ds, de)
    dr = current.residual - previous.residual
    return K + np.outer((dr - K @ de) / norm, de)


def solve_increment(K: np.ndarray, rhs: np.ndarray) -> np.ndarray:
    """Linear solve with a least-squares fallback for singular matrices."""
    try:
        x = np.linalg.solve(K, rhs)
    except np.linalg.LinAlgError:
        x = np.linalg.lstsq(K, rhs, rcond=None)[0]
    if not np.all(np.isfinite(x)):
        x = np.linalg.lstsq(K, rhs, rcond=None)[0]
    return x


# ----------------------------
# Results
# ----------------------------


@dataclass(frozen=True)
class StepResult:
    step: int
    load_factor: float
    iterations: int
    convergence: float
    strain: StrainState
    stress: StressState
    concrete_principal_strains: PrincipalStrainState
    concrete_principal_stresses: PrincipalStressState
    average_principal_strains: PrincipalStrainState
    crack_slip_strains: StrainState
    cracked: bool
    slip_approach: Optional[str] = None

    @property
    def theta1_deg(self) -> float:
        return float(np.degrees(self.average_principal_strains.theta_1))

    @property
    def concrete_theta1_deg(self) -> float:
        return float(np.degrees(self.concrete_principal_strains.theta_1))

    def to_dict(self) -> Dict[str, Any]:
        e, s = self.strain, self.stress
        pe, ps = self.concrete_principal_strains, self.concrete_principal_stresses
        return {
            "step": self.step,
            "load_factor": self.load_factor,
            "iterations": self.iterations,
            "ex": e.epsilon_x,
            "ey": e.epsilon_y,
            "gxy": e.gamma_xy,
            "sx": s.sigma_x,
            "sy": s.sigma_y,
            "txy": s.tau_xy,
            "e1": self.average_principal_strains.epsilon_1,
            "e2": self.average_principal_strains.epsilon_2,
            "theta1_deg": self.theta1_deg,
            "ec1": pe.epsilon_1,
            "ec2": pe.epsilon_2,
            "fc1": ps.sigma_1,
            "fc2": ps.sigma_2,
            "theta_c_deg": self.concrete_theta1_deg,
            "cracked": self.cracked,
            "slip_approach": self.slip_approach,
        }


@dataclass
class SolveResult:
    converged: bool
    steps: List[StepResult] = field(default_factory=list)
    failed_step: Optional[int] = None
    cracking_step: Optional[int] = None
    cracking_stresses: Optional[StressState] = None
    ultimate_stresses: Optional[StressState] = None
    final_strain: StrainState = field(default_factory=StrainState)
    final_stress: StressState = field(default_factory=StressState)
    final_stiffness: Optional[np.ndarray] = None
    element: Optional[Membrane] = None
    calculations: int = 0

    @property
    def last_step(self) -> Optional[StepResult]:
        return self.steps[-1] if self.steps else None

    def to_dataframe(self):
        from rc_membrane.post import results_to_dataframe

        return results_to_dataframe(self)


# ----------------------------
# Solver
# ----------------------------


class MembraneSolver:
    """Load-stepping driver around one :class:`Membrane`.

    Parameters
    ----------
    element : Membrane
        Element to solve; mutated in place while iterating.
    config : SolverConfig, optional
        Steps, tolerances, update rule and control mode.
    """

    def __init__(self, element: Membrane, config: Optional[SolverConfig] = None):
        self.element = element
        self.config = config or SolverConfig()
        self._calculations = 0

    # -- single element evaluation --------------------------------------

    def _evaluate(self, strain: np.ndarray) -> np.ndarray:
        self.element.calculate(StrainState.from_vector(strain))
        self._calculations += 1
        return self.element.average_stresses.as_vector()

    def _log(self, msg: str) -> None:
        if self.config.verbose:
            print(f"    [membrane] {msg}")

    # -- step iteration ---------------------------------------------------

    def _iterate(
        self,
        start: IterationRecord,
        target: np.ndarray,
        control: str,
        prescribed_gamma: Optional[float] = None,
    ) -> Tuple[bool, IterationRecord, int, float]:
        """Iterate one step from the last converged record.

        Returns ``(ok, record, iterations, convergence)``; on failure the
        record is the last iterate (not converged).
        """
        cfg = self.config
        conv = cfg.convergence
        strain = start.strain.copy()
        if prescribed_gamma is not None:
            strain[2] = prescribed_gamma
        if control == "strain":
            strain = target.copy()

        previous: Optional[IterationRecord] = None
        first_increment: Optional[np.ndarray] = None

        for it in range(1, cfg.max_iterations + 1):
            stress = self._evaluate(strain)

            if control == "stress":
                residual = stress - target
                metric = convergence_metric(residual, target)
            elif control == "mixed":
                residual = np.array([stress[0] - target[0], stress[1] - target[1], 0.0])
                metric = convergence_metric(residual[:2], target[:2])
            else:
                ref = stress if previous is None else previous.stress
                residual = stress - ref
                metric = convergence_metric(residual, stress)

            K = start.stiffness if previous is None else previous.stiffness
            current = IterationRecord(strain, stress, residual, K)
            if previous is not None and control != "strain":
                current = replace(current, stiffness=update_stiffness(cfg.update, current, previous))

            if not np.all(np.isfinite(stress)):
                return False, current, it, metric

            if conv.stress_converged(metric, it):
                return True, current, it, metric

            if it == cfg.max_iterations:
                break

            if control == "stress":
                increment = solve_increment(current.stiffness, -residual)
            elif control == "mixed":
                increment = np.zeros(3)
                increment[:2] = solve_increment(current.stiffness[:2, :2], -residual[:2])
            else:
                increment = np.zeros(3)

            if not np.all(np.isfinite(increment)):
                return False, current, it, metric

            if control == "mixed":
                if first_increment is None:
                    first_increment = increment
                elif conv.strain_converged(increment, first_increment, it):
                    return True, current, it, metric

            previous = current
            strain = strain + increment

        return False, current, cfg.max_iterations, metric

    # -- stepping -----------------------------------------------------------

    def _step_targets(self, target: Union[StressState, StrainState], K0: np.ndarray):
        """(control, per-unit target vector, shear-strain increment)."""
        cfg = self.config
        vec = target.as_vector()
        if cfg.control == "strain":
            if isinstance(target, StressState):
                vec = StrainState.from_stresses(target, K0).as_vector()
            return "strain", vec, None
        if isinstance(target, StrainState):
            if cfg.control == "stress":
                raise ValueError("Stress control needs a StressState target; use control='mixed' or 'strain'.")
            return "mixed", np.zeros(3), float(vec[2]) / cfg.steps
        if cfg.control == "mixed":
            d_gamma = StrainState.from_stresses(target / cfg.steps, K0).gamma_xy
            return "mixed", vec, float(d_gamma)
        return "stress", vec, None

    def solve(self, target: Union[StressState, StrainState]) -> SolveResult:
        """Step the element toward ``target``; never raises on non-convergence."""
        cfg = self.config
        el = self.element
        self._calculations = 0

        K0 = el.initial_stiffness
        control, unit_target, d_gamma = self._step_targets(target, K0)

        zero = np.zeros(3)
        committed = IterationRecord(zero, zero, zero, K0)
        result = SolveResult(converged=True, final_stiffness=K0.copy())

        self._log(f"start model={el.model.value} control={control} update={cfg.update} steps={cfg.steps}")

        step = 1
        while True:
            lf = step / cfg.steps
            if step > cfg.steps and not cfg.simulate:
                break
            if lf > cfg.max_load_factor + 1e-12:
                break

            step_target = lf * unit_target
            gamma = step * d_gamma if control == "mixed" else None

            ok, record, its, metric = self._iterate(committed, step_target, control, gamma)

            if not ok:
                self._log(f"LS={step:03d} CONVERGENCE NOT REACHED (it={its}, conv={metric:.3e})")
                result.converged = False
                result.failed_step = step
                break

            committed = record
            res = StepResult(
                step=step,
                load_factor=lf,
                iterations=its,
                convergence=metric,
                strain=StrainState.from_vector(record.strain),
                stress=StressState.from_vector(record.stress),
                concrete_principal_strains=el.concrete.principal_strains,
                concrete_principal_stresses=el.concrete.principal_stresses,
                average_principal_strains=el.average_principal_strains,
                crack_slip_strains=el.crack_slip_strains,
                cracked=el.cracked,
                slip_approach=el.slip_approach,
            )
            result.steps.append(res)
            result.ultimate_stresses = res.stress
            result.final_strain = res.strain
            result.final_stress = res.stress
            result.final_stiffness = record.stiffness.copy()
            result.element = el.copy()

            if el.cracked and result.cracking_step is None:
                result.cracking_step = step
                result.cracking_stresses = res.stress
                self._log(f"concrete cracked at LS={step:03d}")

            msg = f"LS={step:03d} converged it={its:02d} conv={metric:.3e}"
            if res.slip_approach:
                msg += f" slip={res.slip_approach}"
            self._log(msg)
            step += 1

        result.calculations = self._calculations
        self._log(f"done converged={result.converged} steps={len(result.steps)} calculations={result.calculations}")
        return result


def solve_membrane(
    element: Membrane,
    target: Union[StressState, StrainState],
    config: Optional[SolverConfig] = None,
    **overrides,
) -> SolveResult:
    """Convenience wrapper: ``MembraneSolver(element, config).solve(target)``."""
    if config is None:
        config = SolverConfig(**overrides)
    elif overrides:
        data = config.to_dict()
        data.update(overrides)
        config = SolverConfig(**data)
    return MembraneSolver(element, config).solve(target)
