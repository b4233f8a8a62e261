"""Constitutive variants of the smeared-crack membrane: MCFT, DSFM and SMM.

Every variant implements the same small contract used by
:class:`~rc_membrane.membrane.Membrane`:

- ``prepare_strains(average, concrete, reinforcement)`` returns the strains
  seen by concrete and by the reinforcement;
- ``compute_concrete_response(concrete, strains, reinforcement)`` evaluates
  the principal concrete stresses and latches cracking;
- ``update_crack_slip(average, apparent, concrete, reinforcement)`` runs after
  the reinforcement has been evaluated (DSFM only does work here);
- ``apply_crack_check(concrete, reinforcement)`` limits cracked tension.

Variant-specific state (DSFM slip strains, the angle at first cracking) lives
on the variant instance, one per membrane.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Callable, ClassVar, Optional, Protocol, Tuple

import numpy as np
from scipy.optimize import brentq

from rc_membrane.concrete import (
    BiaxialConcrete,
    ConstitutiveModel,
    dsfm_softening,
    dsfm_tension,
    linear_tension,
    mcft_softening,
    mcft_tension,
    parabolic_compression,
    smm_compression,
    smm_softening,
    smm_tension,
)
from rc_membrane.crack import (
    CrackCheck,
    average_crack_spacing,
    crack_check,
    crack_opening,
    reinforcement_angles,
)
from rc_membrane.plane_state import PrincipalStrainState, StrainState, direction_cosines
from rc_membrane.reinforcement import WebReinforcement


class ConstitutiveVariant(Protocol):
    model: ClassVar[ConstitutiveModel]

    def prepare_strains(
        self, average: StrainState, concrete: BiaxialConcrete, reinforcement: Optional[WebReinforcement]
    ) -> Tuple[StrainState, StrainState]:
        ...

    def compute_concrete_response(
        self, concrete: BiaxialConcrete, strains: StrainState, reinforcement: Optional[WebReinforcement]
    ) -> None:
        ...

    def update_crack_slip(
        self,
        average: StrainState,
        apparent: PrincipalStrainState,
        concrete: BiaxialConcrete,
        reinforcement: Optional[WebReinforcement],
    ) -> None:
        ...

    def apply_crack_check(
        self, concrete: BiaxialConcrete, reinforcement: Optional[WebReinforcement]
    ) -> Optional[CrackCheck]:
        ...

    def copy(self) -> "ConstitutiveVariant":
        ...


# ----------------------------
# Shared smeared-crack template
# ----------------------------


class _SmearedCrackVariant:
    """Principal-stress evaluation common to the three theories."""

    model: ClassVar[ConstitutiveModel]

    def prepare_strains(self, average, concrete, reinforcement):
        return average, average

    def cracked_tension(self, e: float, concrete: BiaxialConcrete, reinforcement, theta: float) -> float:
        raise NotImplementedError

    def compression(self, e2: float, e1: float, concrete: BiaxialConcrete) -> float:
        raise NotImplementedError

    def tension(self, e: float, cracked: bool, concrete: BiaxialConcrete, reinforcement, theta: float) -> float:
        p = concrete.parameters
        linear = linear_tension(e, p.Ec)
        if not cracked or e <= 0.0:
            return linear
        return min(linear, self.cracked_tension(e, concrete, reinforcement, theta))

    def compute_concrete_response(self, concrete, strains, reinforcement):
        ps = strains.to_principal()
        e1, e2 = ps.epsilon_1, ps.epsilon_2
        cracked = concrete.update_cracking(e1)

        if e1 > 0.0:
            f1 = self.tension(e1, cracked, concrete, reinforcement, ps.theta_1)
        else:
            f1 = self.compression(e1, 0.0, concrete)

        if e2 > 0.0:
            cracked_2 = cracked and e2 > concrete.parameters.ecr
            f2 = self.tension(e2, cracked_2, concrete, reinforcement, ps.theta_2)
        else:
            f2 = self.compression(e2, e1, concrete)

        concrete.set_state(strains, ps, f1, f2)

    def update_crack_slip(self, average, apparent, concrete, reinforcement):
        return None

    def apply_crack_check(self, concrete, reinforcement):
        return crack_check(concrete, reinforcement)


@dataclass
class MCFTVariant(_SmearedCrackVariant):
    """Modified Compression Field Theory (Vecchio & Collins 1986)."""

    model: ClassVar[ConstitutiveModel] = ConstitutiveModel.MCFT

    def cracked_tension(self, e, concrete, reinforcement, theta):
        return mcft_tension(e, concrete.parameters.fcr)

    def compression(self, e2, e1, concrete):
        p = concrete.parameters
        beta = mcft_softening(e1, p.ec)
        return parabolic_compression(e2, beta * p.fc, p.ec)

    def copy(self) -> "MCFTVariant":
        return MCFTVariant()


# ----------------------------
# DSFM crack slip
# ----------------------------

SLIP_BRACKET = (0.0, 0.005)


@dataclass(frozen=True)
class CrackRoot:
    """Outcome of the local crack-equilibrium search."""

    found: bool
    value: float = 0.0
    iterations: int = 0


def find_crack_root(
    func: Callable[[float], float],
    a: float = SLIP_BRACKET[0],
    b: float = SLIP_BRACKET[1],
    xtol: float = 1e-9,
    maxiter: int = 1000,
) -> CrackRoot:
    """Brent root of ``func`` on ``[a, b]``; ``found=False`` when not bracketed."""
    fa = float(func(a))
    fb = float(func(b))
    if not (np.isfinite(fa) and np.isfinite(fb)):
        return CrackRoot(False)
    if fa == 0.0:
        return CrackRoot(True, a)
    if fb == 0.0:
        return CrackRoot(True, b)
    if fa * fb > 0.0:
        return CrackRoot(False)
    x, info = brentq(func, a, b, xtol=xtol, maxiter=maxiter, full_output=True, disp=False)
    return CrackRoot(bool(info.converged), float(x), int(info.iterations))


@dataclass(frozen=True)
class SlipResult:
    stress_based: float
    rotation_lag: float
    approach: str
    strains: StrainState
    vci: float = 0.0
    root: CrackRoot = field(default_factory=lambda: CrackRoot(False))

    @property
    def magnitude(self) -> float:
        return max(abs(self.stress_based), abs(self.rotation_lag))


def shear_on_crack(
    concrete: BiaxialConcrete, reinforcement: Optional[WebReinforcement]
) -> Tuple[float, CrackRoot]:
    """Shear stress on the crack surface from local reinforcement equilibrium.

    Solves ``sum rho_i (fs_i(e_i + de1 cos^2 th_i) - fs_i) cos^2 th_i = fc1`` for
    the local strain increment ``de1``; ``vci`` is then
    ``sum rho_i (fscr_i - fs_i) cos th_i sin th_i``. Returns ``vci = 0`` when
    no root is bracketed.
    """
    if reinforcement is None:
        return 0.0, CrackRoot(False)

    fc1 = concrete.principal_stresses.sigma_1
    thx, thy = reinforcement_angles(reinforcement, concrete.principal_strains.theta_1)

    bars = []
    for d, th in ((reinforcement.x, thx), (reinforcement.y, thy)):
        if d is None or not d.is_reinforced:
            continue
        c, s = direction_cosines(th)
        bars.append((d, c, s))

    def equilibrium(de1: float) -> float:
        total = 0.0
        for d, c, s in bars:
            local = d.calculate_stress(d.strain + de1 * c * c)
            total += d.ratio * (local - d.stress) * c * c
        return total - fc1

    root = find_crack_root(equilibrium)
    if not root.found:
        return 0.0, root

    vci = 0.0
    for d, c, s in bars:
        local = d.calculate_stress(d.strain + root.value * c * c)
        vci += d.ratio * (local - d.stress) * c * s
    return vci, root


def stress_based_slip(vci: float, w: float, s: float, fc: float) -> float:
    """Walraven (1981) slip ``ds`` over crack spacing ``s``."""
    if abs(vci) < 1e-12 or w <= 0.0 or s <= 0.0:
        return 0.0
    a = max(0.234 * w**-0.707 - 0.2, 0.0)
    ds = abs(vci) / (1.8 * w**-0.8 + a * fc)
    return ds / s


def lag_angle(reinforced_directions: int) -> float:
    """Rotation lag between stress and strain fields [rad]."""
    if reinforced_directions >= 2:
        return math.radians(5.0)
    if reinforced_directions == 1:
        return math.radians(7.5)
    return math.radians(10.0)


def rotation_lag_slip(
    average: StrainState,
    apparent_theta: float,
    theta_ic: Optional[float],
    reinforced_directions: int,
) -> float:
    """Shear slip from the lag between apparent strain rotation and the crack."""
    theta_ic = 0.25 * math.pi if theta_ic is None else theta_ic
    d_theta_e = apparent_theta - theta_ic
    theta_l = lag_angle(reinforced_directions)
    if d_theta_e < 0.0:
        theta_l = -theta_l
    d_theta_s = d_theta_e - theta_l if abs(d_theta_e) > abs(theta_l) else d_theta_e
    theta_s = theta_ic + d_theta_s
    c2, s2 = direction_cosines(2.0 * theta_s)
    return abs(average.gamma_xy * c2 + (average.epsilon_y - average.epsilon_x) * s2)


def slip_strains(ys: float, theta_c: float, gamma_xy: float) -> StrainState:
    """Smeared strains of a crack-shear slip ``ys`` on cracks normal to ``theta_c``."""
    c2, s2 = direction_cosines(2.0 * theta_c)
    e = StrainState(-0.5 * ys * s2, 0.5 * ys * s2, ys * c2)
    return -e if gamma_xy < 0.0 else e


@dataclass
class DSFMVariant(_SmearedCrackVariant):
    """Disturbed Stress Field Model (Vecchio 2000)."""

    consider_crack_slip: bool = True
    slip_strains: StrainState = field(default_factory=StrainState)
    theta_ic: Optional[float] = None
    slip: Optional[SlipResult] = None

    model: ClassVar[ConstitutiveModel] = ConstitutiveModel.DSFM

    def prepare_strains(self, average, concrete, reinforcement):
        if not self.consider_crack_slip:
            return average, average
        return average - self.slip_strains, average

    def cracked_tension(self, e, concrete, reinforcement, theta):
        p = concrete.parameters
        s = average_crack_spacing(reinforcement, theta)
        factor = reinforcement.tension_stiffening_factor(theta) if reinforcement is not None else None
        return dsfm_tension(e, p.fcr, p.ecr, p.Gf, 0.5 * s, factor)

    def compression(self, e2, e1, concrete):
        p = concrete.parameters
        beta = dsfm_softening(e1, e2, self.consider_crack_slip) if concrete.cracked else 1.0
        return parabolic_compression(e2, beta * p.fc, p.ec)

    def update_crack_slip(self, average, apparent, concrete, reinforcement):
        if not self.consider_crack_slip or not concrete.cracked:
            return None
        if self.theta_ic is None:
            self.theta_ic = concrete.principal_strains.theta_1

        p = concrete.parameters
        theta_c = concrete.principal_strains.theta_1
        vci, root = shear_on_crack(concrete, reinforcement)
        s = average_crack_spacing(reinforcement, theta_c)
        w = crack_opening(concrete.principal_strains.epsilon_1, s)

        ysa = stress_based_slip(vci, w, s, p.fc)
        n = reinforcement.reinforced_directions if reinforcement is not None else 0
        ysb = rotation_lag_slip(average, apparent.theta_1, self.theta_ic, n)

        if ysa == 0.0 and ysb == 0.0:
            approach = "none"
        elif abs(ysa) >= abs(ysb):
            approach = "stress"
        else:
            approach = "rotation-lag"
        ys = max(abs(ysa), abs(ysb))

        strains = slip_strains(ys, theta_c, average.gamma_xy)
        self.slip = SlipResult(ysa, ysb, approach, strains, vci, root)
        self.slip_strains = strains
        return self.slip

    @property
    def slip_approach(self) -> Optional[str]:
        return self.slip.approach if self.slip is not None else None

    def copy(self) -> "DSFMVariant":
        return DSFMVariant(self.consider_crack_slip, self.slip_strains, self.theta_ic, self.slip)


# ----------------------------
# SMM Poisson correction
# ----------------------------


def poisson_coefficients(
    reinforcement: Optional[WebReinforcement], average: StrainState, cracked: bool
) -> Tuple[float, float]:
    """Hsu/Zhu ratios ``(nu12, nu21)``.

    ``nu12`` follows the larger bar strain ``esf``: 0.2 in compression,
    ``0.2 + 850 esf`` up to yield, 1.9 once that bar has yielded.
    """
    nu21 = 0.0 if cracked else 0.2
    if reinforcement is None:
        return 0.2, nu21

    candidates = [
        (d.project(average), d.yield_strain)
        for d in (reinforcement.x, reinforcement.y)
        if d is not None and d.is_reinforced
    ]
    if not candidates:
        return 0.2, nu21

    esf, ey = max(candidates, key=lambda item: item[0])
    if esf <= 0.0:
        return 0.2, nu21
    if esf > ey:
        return 1.9, nu21
    return 0.2 + 850.0 * esf, nu21


def remove_poisson_effect(principal: PrincipalStrainState, nu12: float, nu21: float) -> PrincipalStrainState:
    """Uniaxial strains ``(e1, e2)`` from biaxial principal strains."""
    v1 = 1.0 / (1.0 - nu12 * nu21)
    v2 = nu21 * v1
    e1i, e2i = principal.epsilon_1, principal.epsilon_2
    return PrincipalStrainState(v1 * e1i + v2 * e2i, v2 * e1i + v1 * e2i, principal.theta_1)


@dataclass
class SMMVariant(_SmearedCrackVariant):
    """Softened Membrane Model (Hsu & Zhu 2002)."""

    poisson: Tuple[float, float] = (0.2, 0.2)

    model: ClassVar[ConstitutiveModel] = ConstitutiveModel.SMM

    def prepare_strains(self, average, concrete, reinforcement):
        self.poisson = poisson_coefficients(reinforcement, average, concrete.cracked)
        decoupled = remove_poisson_effect(average.to_principal(), *self.poisson).to_strain_state()
        return decoupled, decoupled

    def cracked_tension(self, e, concrete, reinforcement, theta):
        p = concrete.parameters
        return smm_tension(e, p.fcr, p.ecr)

    def compression(self, e2, e1, concrete):
        p = concrete.parameters
        zeta = smm_softening(e1, p.fc)
        return smm_compression(e2, p.fc, p.ec, zeta)

    def copy(self) -> "SMMVariant":
        return SMMVariant(self.poisson)


def make_variant(model, consider_crack_slip: bool = True) -> ConstitutiveVariant:
    """Factory: variant instance for ``'mcft' | 'dsfm' | 'smm'``."""
    m = ConstitutiveModel.parse(model)
    if m is ConstitutiveModel.DSFM:
        return DSFMVariant(consider_crack_slip=consider_crack_slip)
    if m is ConstitutiveModel.SMM:
        return SMMVariant()
    return MCFTVariant()
