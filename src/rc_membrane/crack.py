"""Crack geometry and the crack-check limit on post-cracking tension.

The crack check bounds the average concrete tension by what can be carried
across a crack: local reinforcement reserve plus crack shear, the lesser of
the aggregate-interlock limit and the shear balanced at biaxial yielding
(Vecchio & Collins 1986, Bentz et al. 2006).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

from rc_membrane.concrete import BiaxialConcrete
from rc_membrane.plane_state import direction_cosines, tangent
from rc_membrane.reinforcement import DEFAULT_CRACK_SPACING, WebReinforcement, crack_spacing


def average_crack_spacing(reinforcement: Optional[WebReinforcement], theta: float) -> float:
    """Spacing of cracks whose normal is at ``theta`` [mm]."""
    if reinforcement is None:
        return crack_spacing(DEFAULT_CRACK_SPACING, DEFAULT_CRACK_SPACING, theta)
    return reinforcement.crack_spacing(theta)


def crack_opening(e1: float, spacing: float) -> float:
    """Average crack width ``w = e1 * sm`` [mm]; zero when not opened."""
    if e1 <= 1e-9:
        return 0.0
    return e1 * spacing


def maximum_shear_on_crack(fc: float, w: float, aggregate_diameter: float) -> float:
    """Aggregate-interlock limit ``0.18 sqrt(fc) / (0.31 + 24 w / (a + 16))`` [MPa]."""
    return 0.18 * math.sqrt(fc) / (0.31 + 24.0 * w / (aggregate_diameter + 16.0))


def reinforcement_angles(reinforcement: Optional[WebReinforcement], theta: float) -> Tuple[float, float]:
    """Angles between the crack normal and the x/y bars."""
    if reinforcement is None:
        return theta, theta - 0.5 * math.pi
    return reinforcement.angles(theta)


@dataclass(frozen=True)
class CrackCheck:
    f1a: float
    f1b: float
    f1c: float
    f1d: float
    vcimax: float
    crack_width: float

    @property
    def limit(self) -> float:
        return min(self.f1a, self.f1b, self.f1c, self.f1d)

    @property
    def governed(self) -> bool:
        """True when a crack-interface bound is below the average tension."""
        return self.limit < self.f1a


def evaluate_crack_check(
    concrete: BiaxialConcrete,
    reinforcement: Optional[WebReinforcement],
) -> CrackCheck:
    p = concrete.parameters
    theta = concrete.principal_strains.theta_1
    f1a = concrete.principal_stresses.sigma_1

    thx, thy = reinforcement_angles(reinforcement, theta)
    cos_x = direction_cosines(thx)[0]
    cos_y = direction_cosines(thy)[0]
    tan_x = abs(tangent(thx))
    tan_y = abs(tangent(thy))

    f1cx, f1cy = (0.0, 0.0) if reinforcement is None else reinforcement.capacity_reserves()

    s = average_crack_spacing(reinforcement, theta)
    w = crack_opening(concrete.principal_strains.epsilon_1, s)
    vcimax = maximum_shear_on_crack(p.fc, w, p.aggregate_diameter)
    # biaxial yielding caps the shear both bar sets can balance
    denom = tan_x + tan_y
    if denom > 0.0:
        vcimax = min(vcimax, abs(f1cx - f1cy) / denom)

    return CrackCheck(
        f1a=f1a,
        f1b=f1cx * cos_x * cos_x + f1cy * cos_y * cos_y,
        f1c=f1cx + vcimax * tan_x,
        f1d=f1cy + vcimax * tan_y,
        vcimax=vcimax,
        crack_width=w,
    )


def crack_check(concrete: BiaxialConcrete, reinforcement: Optional[WebReinforcement]) -> Optional[CrackCheck]:
    """Limit the stored tensile stress of cracked concrete in place.

    Returns the evaluated bounds, or None when the concrete is uncracked.
    The stored stress is only ever lowered.
    """
    if not concrete.cracked:
        return None
    check = evaluate_crack_check(concrete, reinforcement)
    if check.governed:
        concrete.set_tensile_stress(check.limit)
    return check
