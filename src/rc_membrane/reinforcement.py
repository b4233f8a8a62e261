"""Smeared web reinforcement (two bar directions, elastic-perfectly-plastic steel)."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from rc_membrane.plane_state import StrainState, StressState, direction_cosines

# Average crack spacing used when a direction carries no bars [mm]
DEFAULT_CRACK_SPACING = 21.0


def steel_stress(strain: float, fy: float, Es: float) -> float:
    """Elastic-perfectly-plastic law, symmetric in tension and compression."""
    return float(np.clip(Es * strain, -fy, fy))


def reinforcement_ratio(bar_diameter: float, spacing: float, width: float, layers: int = 2) -> float:
    """Smeared ratio of ``layers`` bar layers at ``spacing`` in a web of ``width``."""
    if bar_diameter <= 0.0 or spacing <= 0.0:
        return 0.0
    area = 0.25 * math.pi * bar_diameter**2
    return layers * area / (spacing * width)


@dataclass
class ReinforcementDirection:
    """One bar direction of the web.

    Parameters
    ----------
    fy : float
        Yield stress [MPa].
    Es : float
        Elastic modulus [MPa].
    ratio : float
        Smeared reinforcement ratio. Ignored when ``bar_diameter``,
        ``spacing`` and ``width`` are all given.
    bar_diameter, spacing, width : float, optional
        Bar geometry [mm]; the ratio is derived from them.
    angle : float, optional
        Bar axis angle from the reference x axis [rad]. When omitted, a
        :class:`WebReinforcement` places it on its x or y axis.
    """

    fy: float
    Es: float = 200000.0
    ratio: float = 0.0
    bar_diameter: Optional[float] = None
    spacing: Optional[float] = None
    width: Optional[float] = None
    angle: Optional[float] = None
    layers: int = 2

    strain: float = field(default=0.0, init=False)
    stress: float = field(default=0.0, init=False)

    def __post_init__(self):
        if self.fy <= 0.0:
            raise ValueError(f"Yield stress must be positive (got fy={self.fy}).")
        if self.Es <= 0.0:
            raise ValueError(f"Elastic modulus must be positive (got Es={self.Es}).")
        if self.bar_diameter is not None and self.bar_diameter < 0.0:
            raise ValueError(f"Bar diameter must be non-negative (got {self.bar_diameter}).")
        if self.spacing is not None or self.width is not None:
            if self.bar_diameter is None or self.spacing is None or self.width is None:
                raise ValueError("bar_diameter, spacing and width must be given together.")
            if self.spacing <= 0.0 or self.width <= 0.0:
                raise ValueError(f"Spacing and width must be positive (got s={self.spacing}, w={self.width}).")
            self.ratio = reinforcement_ratio(self.bar_diameter, self.spacing, self.width, self.layers)
        if self.ratio < 0.0:
            raise ValueError(f"Reinforcement ratio must be non-negative (got {self.ratio}).")

    @property
    def axis_angle(self) -> float:
        return 0.0 if self.angle is None else float(self.angle)

    @property
    def yield_strain(self) -> float:
        return self.fy / self.Es

    @property
    def is_reinforced(self) -> bool:
        return self.ratio > 0.0

    @property
    def yielded(self) -> bool:
        return abs(self.strain) >= self.yield_strain

    def calculate_stress(self, strain: float) -> float:
        return steel_stress(strain, self.fy, self.Es)

    def calculate(self, strain: float) -> None:
        self.strain = float(strain)
        self.stress = self.calculate_stress(self.strain)

    @property
    def secant_modulus(self) -> float:
        if self.strain == 0.0:
            return self.Es
        return self.stress / self.strain

    @property
    def capacity_reserve(self) -> float:
        """Tensile stress the bars can still pick up at a crack, smeared [MPa]."""
        return self.ratio * (self.fy - self.stress)

    @property
    def crack_spacing(self) -> float:
        """Crack spacing controlled by this direction, ``phi / (5.4 rho)`` [mm]."""
        if not self.is_reinforced or not self.bar_diameter:
            return DEFAULT_CRACK_SPACING
        return self.bar_diameter / (5.4 * self.ratio)

    def project(self, strains: StrainState) -> float:
        """Axial strain along the bar axis."""
        c, s = direction_cosines(self.axis_angle)
        return strains.epsilon_x * c * c + strains.epsilon_y * s * s + strains.gamma_xy * c * s

    def _axis_matrix(self) -> np.ndarray:
        c, s = direction_cosines(self.axis_angle)
        a = np.array([c * c, s * s, c * s], dtype=float)
        return np.outer(a, a)

    def stiffness(self, secant: bool = True) -> np.ndarray:
        E = self.secant_modulus if secant else self.Es
        return self.ratio * E * self._axis_matrix()

    def stresses(self) -> StressState:
        c, s = direction_cosines(self.axis_angle)
        f = self.ratio * self.stress
        return StressState(f * c * c, f * s * s, f * c * s)

    def copy(self) -> "ReinforcementDirection":
        other = ReinforcementDirection(
            fy=self.fy, Es=self.Es, ratio=self.ratio, angle=self.angle, layers=self.layers,
            bar_diameter=self.bar_diameter,
        )
        other.spacing, other.width = self.spacing, self.width
        other.strain, other.stress = self.strain, self.stress
        return other


@dataclass
class WebReinforcement:
    """Orthogonal (or skewed) pair of smeared reinforcement directions."""

    x: Optional[ReinforcementDirection] = None
    y: Optional[ReinforcementDirection] = None

    def __post_init__(self):
        if self.x is not None and self.x.angle is None:
            self.x.angle = 0.0
        if self.y is not None and self.y.angle is None:
            self.y.angle = 0.5 * math.pi

    @classmethod
    def from_bars(
        cls,
        bar_x: float,
        spacing_x: float,
        fy_x: float,
        width: float,
        bar_y: Optional[float] = None,
        spacing_y: Optional[float] = None,
        fy_y: Optional[float] = None,
        Es: float = 200000.0,
    ) -> "WebReinforcement":
        """Build from bar diameters and spacings; y defaults to the x layout."""
        if bar_y is None and spacing_y is None:
            bar_y, spacing_y = bar_x, spacing_x
        fy_y = fy_x if fy_y is None else fy_y

        def _direction(phi, s, fy, angle):
            if not phi or not s:
                return None
            return ReinforcementDirection(fy=fy, Es=Es, bar_diameter=phi, spacing=s, width=width, angle=angle)

        return cls(_direction(bar_x, spacing_x, fy_x, 0.0), _direction(bar_y, spacing_y, fy_y, 0.5 * math.pi))

    # ----------------------------
    # Geometry
    # ----------------------------

    def _directions(self):
        return [d for d in (self.x, self.y) if d is not None]

    @property
    def ratio_x(self) -> float:
        return self.x.ratio if self.x is not None else 0.0

    @property
    def ratio_y(self) -> float:
        return self.y.ratio if self.y is not None else 0.0

    @property
    def reinforced_directions(self) -> int:
        return sum(1 for d in self._directions() if d.is_reinforced)

    @property
    def xy_reinforced(self) -> bool:
        return self.reinforced_directions == 2

    def angles(self, theta: float) -> Tuple[float, float]:
        """Angles between the direction ``theta`` and the x/y bar axes."""
        ax = self.x.axis_angle if self.x is not None else 0.0
        ay = self.y.axis_angle if self.y is not None else 0.5 * math.pi
        return theta - ax, theta - ay

    def crack_spacing(self, theta: float) -> float:
        """Average crack spacing normal to a crack whose normal is at ``theta``."""
        smx = self.x.crack_spacing if self.x is not None else DEFAULT_CRACK_SPACING
        smy = self.y.crack_spacing if self.y is not None else DEFAULT_CRACK_SPACING
        return crack_spacing(smx, smy, theta)

    def tension_stiffening_factor(self, theta: float) -> Optional[float]:
        """``1/m = sum 4 rho / phi |cos theta_n|`` [1/mm]; None without bar data."""
        thx, thy = self.angles(theta)
        total = 0.0
        for d, th in ((self.x, thx), (self.y, thy)):
            if d is None or not d.is_reinforced or not d.bar_diameter:
                continue
            total += 4.0 * d.ratio / d.bar_diameter * abs(direction_cosines(th)[0])
        return total if total > 0.0 else None

    # ----------------------------
    # Response
    # ----------------------------

    def calculate(self, strains: StrainState) -> None:
        for d in self._directions():
            d.calculate(d.project(strains))

    @property
    def strains(self) -> Tuple[float, float]:
        return (
            self.x.strain if self.x is not None else 0.0,
            self.y.strain if self.y is not None else 0.0,
        )

    @property
    def stresses(self) -> StressState:
        total = StressState.zero()
        for d in self._directions():
            total = total + d.stresses()
        return total

    @property
    def stiffness(self) -> np.ndarray:
        K = np.zeros((3, 3), dtype=float)
        for d in self._directions():
            K += d.stiffness(secant=True)
        return K

    @property
    def initial_stiffness(self) -> np.ndarray:
        K = np.zeros((3, 3), dtype=float)
        for d in self._directions():
            K += d.stiffness(secant=False)
        return K

    def capacity_reserves(self) -> Tuple[float, float]:
        return (
            self.x.capacity_reserve if self.x is not None else 0.0,
            self.y.capacity_reserve if self.y is not None else 0.0,
        )

    def copy(self) -> "WebReinforcement":
        return WebReinforcement(
            self.x.copy() if self.x is not None else None,
            self.y.copy() if self.y is not None else None,
        )


def crack_spacing(smx: float, smy: float, theta: float) -> float:
    """Direction-weighted crack spacing ``1 / (|sin th|/smx + |cos th|/smy)``."""
    c, s = direction_cosines(theta)
    den = abs(s) / smx + abs(c) / smy
    if den <= 0.0:
        return min(smx, smy)
    return 1.0 / den
