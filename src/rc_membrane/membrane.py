"""Membrane element: smeared concrete plus web reinforcement."""

from __future__ import annotations

from typing import Optional, Union

import numpy as np

from rc_membrane.concrete import BiaxialConcrete, ConcreteParameters, ConstitutiveModel
from rc_membrane.crack import CrackCheck, average_crack_spacing, crack_opening
from rc_membrane.plane_state import PrincipalStrainState, StrainState, StressState
from rc_membrane.reinforcement import WebReinforcement
from rc_membrane.variants import ConstitutiveVariant, DSFMVariant, make_variant


class Membrane:
    """Single reinforced-concrete membrane element.

    ``calculate`` mutates the element in place; afterwards
    ``average_stresses`` and ``stiffness`` describe the state at the given
    average strains. The element keeps no history beyond what the variant
    needs (crack latch, DSFM slip and first-crack angle).

    Parameters
    ----------
    parameters : ConcreteParameters
        Concrete material record.
    reinforcement : WebReinforcement, optional
        Smeared web reinforcement; None for plain concrete.
    model : str or ConstitutiveModel
        'mcft', 'dsfm' or 'smm'.
    consider_crack_slip : bool
        DSFM only: compute crack-slip strains.
    width : float, optional
        Panel width [mm], informative only.
    """

    def __init__(
        self,
        parameters: ConcreteParameters,
        reinforcement: Optional[WebReinforcement] = None,
        model: Union[str, ConstitutiveModel] = ConstitutiveModel.MCFT,
        consider_crack_slip: bool = True,
        width: Optional[float] = None,
    ):
        self.model = ConstitutiveModel.parse(model)
        self.concrete = BiaxialConcrete(parameters)
        self.reinforcement = reinforcement
        self.variant: ConstitutiveVariant = make_variant(self.model, consider_crack_slip)
        self.width = width

        self.average_strains = StrainState.zero()
        self.average_principal_strains = PrincipalStrainState()
        self.last_crack_check: Optional[CrackCheck] = None

    def calculate(self, strains: StrainState) -> None:
        """Evaluate concrete and steel at the average ``strains``."""
        self.average_strains = strains
        self.average_principal_strains = strains.to_principal()

        concrete_strains, steel_strains = self.variant.prepare_strains(strains, self.concrete, self.reinforcement)
        self.variant.compute_concrete_response(self.concrete, concrete_strains, self.reinforcement)
        if self.reinforcement is not None:
            self.reinforcement.calculate(steel_strains)

        self.variant.update_crack_slip(strains, self.average_principal_strains, self.concrete, self.reinforcement)
        self.last_crack_check = self.variant.apply_crack_check(self.concrete, self.reinforcement)

    # ----------------------------
    # Results
    # ----------------------------

    @property
    def cracked(self) -> bool:
        return self.concrete.cracked

    @property
    def average_stresses(self) -> StressState:
        stresses = self.concrete.stresses
        if self.reinforcement is not None:
            stresses = stresses + self.reinforcement.stresses
        return stresses

    @property
    def stiffness(self) -> np.ndarray:
        K = self.concrete.stiffness
        if self.reinforcement is not None:
            K = K + self.reinforcement.stiffness
        return K

    @property
    def initial_stiffness(self) -> np.ndarray:
        """Uncracked elastic stiffness, independent of any previous ``calculate``."""
        K = self.concrete.initial_stiffness
        if self.reinforcement is not None:
            K = K + self.reinforcement.initial_stiffness
        return K

    @property
    def crack_slip_strains(self) -> StrainState:
        if isinstance(self.variant, DSFMVariant):
            return self.variant.slip_strains
        return StrainState.zero()

    @property
    def pseudo_stresses(self) -> StressState:
        """Concrete stiffness times slip strains (nonzero for DSFM with slip)."""
        slip = self.crack_slip_strains
        if slip.is_zero:
            return StressState.zero()
        return StressState.from_strains(slip, self.concrete.stiffness)

    @property
    def slip_approach(self) -> Optional[str]:
        if isinstance(self.variant, DSFMVariant) and self.concrete.cracked:
            return self.variant.slip_approach
        return None

    @property
    def crack_spacing(self) -> float:
        return average_crack_spacing(self.reinforcement, self.concrete.principal_strains.theta_1)

    @property
    def crack_opening(self) -> float:
        if not self.concrete.cracked:
            return 0.0
        return crack_opening(self.concrete.principal_strains.epsilon_1, self.crack_spacing)

    def copy(self) -> "Membrane":
        """Independent element with the same materials and current state."""
        other = Membrane.__new__(Membrane)
        other.model = self.model
        other.concrete = self.concrete.copy()
        other.reinforcement = self.reinforcement.copy() if self.reinforcement is not None else None
        other.variant = self.variant.copy()
        other.width = self.width
        other.average_strains = self.average_strains
        other.average_principal_strains = self.average_principal_strains
        other.last_crack_check = self.last_crack_check
        return other

    def __repr__(self) -> str:
        p = self.concrete.parameters
        rx = self.reinforcement.ratio_x if self.reinforcement is not None else 0.0
        ry = self.reinforcement.ratio_y if self.reinforcement is not None else 0.0
        return f"Membrane(model={self.model.value}, fc={p.fc:g}, rho_x={rx:.4f}, rho_y={ry:.4f})"
