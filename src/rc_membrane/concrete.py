"""Biaxial concrete: parameters, smeared-crack laws and the element-level state.

The stress laws are plain functions of principal strains so each theory can be
checked in isolation; :class:`BiaxialConcrete` only stores the current state
(principal strains/stresses and the latched ``cracked`` flag) and derives the
secant stiffness from it. Which laws are combined is decided by the
constitutive variants in :mod:`rc_membrane.variants`.

Sign convention: tension positive, so compressive strains/stresses are
negative and ``ec`` (strain at peak compressive stress) is negative.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional, Union

import numpy as np

from rc_membrane.plane_state import (
    PrincipalStrainState,
    PrincipalStressState,
    StrainState,
    StressState,
    stiffness_to_reference,
)


class ConstitutiveModel(str, Enum):
    MCFT = "mcft"
    DSFM = "dsfm"
    SMM = "smm"

    @classmethod
    def parse(cls, name: Union[str, "ConstitutiveModel"]) -> "ConstitutiveModel":
        if isinstance(name, ConstitutiveModel):
            return name
        key = (name or "mcft").strip().lower().replace("_", "-")
        aliases = {
            "mcft": "mcft",
            "modified-compression-field-theory": "mcft",
            "dsfm": "dsfm",
            "disturbed-stress-field-model": "dsfm",
            "smm": "smm",
            "softened-membrane-model": "smm",
        }
        key = aliases.get(key, key)
        try:
            return cls(key)
        except ValueError:
            raise ValueError(f"Unknown constitutive model='{name}'. Use 'mcft', 'dsfm' or 'smm'.") from None


# Fracture energy used by the DSFM tension-softening branch [N/mm]
DEFAULT_FRACTURE_ENERGY = 0.075


@dataclass
class ConcreteParameters:
    """Concrete material record.

    ``fcr`` and ``Ec`` are derived from ``fc`` with the formulas of the
    selected ``model`` unless given explicitly:

    ====  ======================  =========================
    MCFT  fcr = 0.33 sqrt(fc)     Ec = 2 fc / |ec|
    DSFM  fcr = 0.65 fc^0.33      Ec = 3320 sqrt(fc) + 6900
    SMM   fcr = 0.31 sqrt(fc)     Ec = 3875 sqrt(fc)
    ====  ======================  =========================
    """

    fc: float
    aggregate_diameter: float = 20.0
    model: Union[str, ConstitutiveModel] = "mcft"
    fcr: Optional[float] = None
    Ec: Optional[float] = None
    ec: float = -0.002
    Gf: float = DEFAULT_FRACTURE_ENERGY

    def __post_init__(self):
        if self.fc <= 0.0:
            raise ValueError(f"Concrete strength must be positive (got fc={self.fc}).")
        if self.aggregate_diameter < 0.0:
            raise ValueError(f"Aggregate diameter must be non-negative (got {self.aggregate_diameter}).")
        if self.ec >= 0.0:
            raise ValueError(f"Peak compressive strain must be negative (got ec={self.ec}).")
        if self.Gf <= 0.0:
            raise ValueError(f"Fracture energy must be positive (got Gf={self.Gf}).")
        self.model = ConstitutiveModel.parse(self.model)

        fc = float(self.fc)
        if self.fcr is None:
            if self.model is ConstitutiveModel.DSFM:
                self.fcr = 0.65 * fc**0.33
            elif self.model is ConstitutiveModel.SMM:
                self.fcr = 0.31 * math.sqrt(fc)
            else:
                self.fcr = 0.33 * math.sqrt(fc)
        if self.Ec is None:
            if self.model is ConstitutiveModel.DSFM:
                self.Ec = 3320.0 * math.sqrt(fc) + 6900.0
            elif self.model is ConstitutiveModel.SMM:
                self.Ec = 3875.0 * math.sqrt(fc)
            else:
                self.Ec = -2.0 * fc / self.ec
        if self.fcr <= 0.0 or self.Ec <= 0.0:
            raise ValueError(f"Cracking strength and modulus must be positive (fcr={self.fcr}, Ec={self.Ec}).")

    @property
    def ecr(self) -> float:
        """Cracking strain."""
        return self.fcr / self.Ec

    def to_dict(self) -> dict:
        return {
            "fc": self.fc,
            "aggregate_diameter": self.aggregate_diameter,
            "model": self.model.value,
            "fcr": self.fcr,
            "Ec": self.Ec,
            "ec": self.ec,
            "Gf": self.Gf,
        }


# ----------------------------
# Compression laws
# ----------------------------


def parabolic_compression(e2: float, fp: float, ep: float) -> float:
    """Hognestad parabola, zero beyond ``2 ep`` (``fp > 0``, ``ep < 0``)."""
    if e2 >= 0.0:
        return 0.0
    r = e2 / ep
    if r >= 2.0:
        return 0.0
    return -fp * (2.0 * r - r * r)


def mcft_softening(e1: float, ec: float) -> float:
    """Vecchio & Collins (1986) compression softening factor."""
    if e1 <= 0.0:
        return 1.0
    return min(1.0, 1.0 / (0.8 - 0.34 * e1 / ec))


def dsfm_softening(e1: float, e2: float, consider_slip: bool = True) -> float:
    """Vecchio (2000) softening ``1/(1 + Cs Cd)`` driven by the strain ratio."""
    if e1 <= 0.0 or e2 >= 0.0:
        return 1.0
    ratio = -e1 / e2
    if ratio <= 0.28:
        return 1.0
    cd = 0.35 * (ratio - 0.28) ** 0.8
    cs = 0.55 if consider_slip else 1.0
    return min(1.0, 1.0 / (1.0 + cs * cd))


def smm_softening(e1: float, fc: float) -> float:
    """Hsu & Zhu (2002) softening coefficient ``zeta``."""
    base = min(5.8 / math.sqrt(fc), 0.9)
    return base / math.sqrt(1.0 + 400.0 * max(e1, 0.0))


def smm_compression(e2: float, fc: float, ec: float, zeta: float) -> float:
    """Softened Belarbi-Hsu compression curve (peak ``zeta fc`` at ``zeta ec``)."""
    if e2 >= 0.0:
        return 0.0
    r = e2 / (zeta * ec)
    if r <= 1.0:
        return -zeta * fc * (2.0 * r - r * r)
    t = (r - 1.0) / (4.0 / zeta - 1.0)
    return -zeta * fc * max(1.0 - t * t, 0.0)


# ----------------------------
# Tension laws
# ----------------------------


def linear_tension(e1: float, Ec: float) -> float:
    return Ec * e1


def mcft_tension(e1: float, fcr: float) -> float:
    """Collins & Mitchell tension stiffening ``fcr / (1 + sqrt(500 e1))``."""
    return fcr / (1.0 + math.sqrt(500.0 * e1))


def dsfm_tension(
    e1: float,
    fcr: float,
    ecr: float,
    Gf: float,
    reference_length: float,
    stiffening_factor: Optional[float] = None,
) -> float:
    """Larger of tension stiffening and linear tension softening (Vecchio 2000).

    ``stiffening_factor`` is ``sum 4 rho_i / phi_i |cos theta_ni|`` [1/mm]; the
    stiffening coefficient is ``ct = 2.2 / factor`` (500 without bar data).
    """
    ct = 500.0 if not stiffening_factor else 2.2 / stiffening_factor
    stiffening = fcr / (1.0 + math.sqrt(ct * e1))
    softening = 0.0
    if reference_length > 0.0:
        ets = 2.0 * Gf / (fcr * reference_length)
        if ets > ecr:
            softening = max(fcr * (1.0 - (e1 - ecr) / (ets - ecr)), 0.0)
    return max(stiffening, softening)


def smm_tension(e1: float, fcr: float, ecr: float) -> float:
    """Belarbi & Hsu descending branch ``fcr (ecr / e1)^0.4``."""
    return fcr * (ecr / e1) ** 0.4


# ----------------------------
# State
# ----------------------------


@dataclass
class BiaxialConcrete:
    """Current smeared-concrete state of one membrane element."""

    parameters: ConcreteParameters
    cracked: bool = False
    strains: StrainState = field(default_factory=StrainState)
    principal_strains: PrincipalStrainState = field(default_factory=PrincipalStrainState)
    principal_stresses: PrincipalStressState = field(default_factory=PrincipalStressState)

    def update_cracking(self, e1: float) -> bool:
        """Latch the cracked flag once ``e1`` exceeds the cracking strain."""
        if not self.cracked and e1 > self.parameters.ecr:
            self.cracked = True
        return self.cracked

    def set_state(self, strains: StrainState, principal_strains: PrincipalStrainState, f1: float, f2: float) -> None:
        self.strains = strains
        self.principal_strains = principal_strains
        self.principal_stresses = PrincipalStressState(float(f1), float(f2), principal_strains.theta_1)

    def set_tensile_stress(self, f1: float) -> None:
        ps = self.principal_stresses
        self.principal_stresses = PrincipalStressState(float(f1), ps.sigma_2, ps.theta_1)

    @property
    def stresses(self) -> StressState:
        return self.principal_stresses.to_stress_state()

    def secant_moduli(self):
        """(E1, E2) from the current principal stresses and strains."""
        Ec = self.parameters.Ec
        e1, e2 = self.principal_strains.epsilon_1, self.principal_strains.epsilon_2
        f1, f2 = self.principal_stresses.sigma_1, self.principal_stresses.sigma_2
        E1 = Ec if abs(e1) < 1e-12 else f1 / e1
        E2 = Ec if abs(e2) < 1e-12 else f2 / e2
        return max(E1, 0.0), max(E2, 0.0)

    @property
    def stiffness(self) -> np.ndarray:
        E1, E2 = self.secant_moduli()
        return stiffness_to_reference(E1, E2, self.principal_strains.theta_1)

    @property
    def initial_stiffness(self) -> np.ndarray:
        Ec = self.parameters.Ec
        return np.diag([Ec, Ec, 0.5 * Ec])

    def copy(self) -> "BiaxialConcrete":
        return BiaxialConcrete(
            self.parameters,
            self.cracked,
            self.strains,
            self.principal_strains,
            self.principal_stresses,
        )
