"""rc_membrane: reinforced-concrete membrane element analysis (MCFT, DSFM, SMM)."""

from .plane_state import (
    StrainState,
    StressState,
    PrincipalStrainState,
    PrincipalStressState,
    to_principal,
    transform,
)
from .reinforcement import ReinforcementDirection, WebReinforcement
from .concrete import ConstitutiveModel, ConcreteParameters, BiaxialConcrete
from .crack import CrackCheck, crack_check
from .variants import MCFTVariant, DSFMVariant, SMMVariant, make_variant
from .membrane import Membrane
from .convergence import MembraneConvergence, convergence_metric
from .solver import SolverConfig, MembraneSolver, SolveResult, StepResult, solve_membrane
from .panels import PANELS, make_panel, panel_spec, pure_shear

__all__ = [
    "StrainState", "StressState", "PrincipalStrainState", "PrincipalStressState",
    "to_principal", "transform",
    "ReinforcementDirection", "WebReinforcement",
    "ConstitutiveModel", "ConcreteParameters", "BiaxialConcrete",
    "CrackCheck", "crack_check",
    "MCFTVariant", "DSFMVariant", "SMMVariant", "make_variant",
    "Membrane",
    "MembraneConvergence", "convergence_metric",
    "SolverConfig", "MembraneSolver", "SolveResult", "StepResult", "solve_membrane",
    "PANELS", "make_panel", "panel_spec", "pure_shear",
]

__version__ = "0.1.0"
