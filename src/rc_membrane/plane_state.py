"""Plane strain/stress states and their principal decomposition.

All states use Voigt ordering ``[x, y, xy]``. Strain shear is the
*engineering* shear ``gamma_xy = 2 * eps_xy``; stress shear is the tensor
component ``tau_xy``. Angles are in radians, measured counter-clockwise from
the reference x axis.

Numeric conventions
-------------------
- direction cosines with magnitude below ``SNAP_TOL`` are returned as exactly 0
  (so 0/90/180 degree rotations do not leave round-off terms);
- ``tangent`` never returns +-inf: the 90/270 degree cases map to the signed
  finite sentinel ``TAN_SENTINEL`` because crack-check formulas divide by it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple, Union

import numpy as np

SNAP_TOL = 1e-6
TAN_SENTINEL = 1e12


# ----------------------------
# Angle helpers
# ----------------------------


def direction_cosines(theta: float, snap: bool = True) -> Tuple[float, float]:
    """Return ``(cos(theta), sin(theta))`` with near-zero values snapped to 0."""
    c = math.cos(theta)
    s = math.sin(theta)
    if snap:
        if abs(c) < SNAP_TOL:
            c = 0.0
        if abs(s) < SNAP_TOL:
            s = 0.0
    return c, s


def tangent(theta: float) -> float:
    """tan(theta) with a finite sentinel where cos(theta) vanishes."""
    c, s = direction_cosines(theta)
    if c == 0.0:
        return math.copysign(TAN_SENTINEL, s)
    return s / c


def normalize_angle(theta: float) -> float:
    """Map an orientation angle into (-pi/2, pi/2]."""
    t = math.fmod(theta, math.pi)
    if t > 0.5 * math.pi:
        t -= math.pi
    elif t <= -0.5 * math.pi:
        t += math.pi
    return t


def strain_transformation_matrix(theta: float) -> np.ndarray:
    """T such that ``eps' = T @ eps`` (engineering shear) in axes rotated by theta."""
    c, s = direction_cosines(theta)
    return np.array(
        [
            [c * c, s * s, c * s],
            [s * s, c * c, -c * s],
            [-2.0 * c * s, 2.0 * c * s, c * c - s * s],
        ],
        dtype=float,
    )


def stiffness_to_reference(e1: float, e2: float, theta: float, g: float | None = None) -> np.ndarray:
    """Rotate the principal-axis matrix diag(E1, E2, G) back to the reference axes.

    With ``eps' = T eps`` and energy conjugacy ``sig = T^T sig'`` the reference
    stiffness is ``T^T D' T``. ``G`` defaults to the secant shear modulus
    ``E1*E2/(E1+E2)`` and is taken as 0 when ``E1+E2`` vanishes.
    """
    if g is None:
        den = e1 + e2
        g = 0.0 if abs(den) < 1e-12 else e1 * e2 / den
    D = np.diag([float(e1), float(e2), float(g)])
    T = strain_transformation_matrix(theta)
    return T.T @ D @ T


# ----------------------------
# States
# ----------------------------


@dataclass(frozen=True)
class StrainState:
    epsilon_x: float = 0.0
    epsilon_y: float = 0.0
    gamma_xy: float = 0.0
    theta_x: float = 0.0

    @classmethod
    def zero(cls) -> "StrainState":
        return cls()

    @classmethod
    def from_vector(cls, v, theta_x: float = 0.0) -> "StrainState":
        a = np.asarray(v, dtype=float).reshape(3)
        return cls(float(a[0]), float(a[1]), float(a[2]), theta_x)

    @classmethod
    def from_stresses(cls, stresses: "StressState", stiffness: np.ndarray) -> "StrainState":
        """Strains producing ``stresses`` through ``stiffness`` (solved, not inverted)."""
        K = np.asarray(stiffness, dtype=float)
        try:
            e = np.linalg.solve(K, stresses.as_vector())
        except np.linalg.LinAlgError:
            e = np.linalg.lstsq(K, stresses.as_vector(), rcond=None)[0]
        return cls.from_vector(e, stresses.theta_x)

    def as_vector(self) -> np.ndarray:
        return np.array([self.epsilon_x, self.epsilon_y, self.gamma_xy], dtype=float)

    @property
    def is_zero(self) -> bool:
        return bool(np.all(np.abs(self.as_vector()) < 1e-15))

    def transform(self, theta: float) -> "StrainState":
        """Components in axes rotated by ``theta`` from the current ones."""
        if theta == 0.0:
            return self
        e = strain_transformation_matrix(theta) @ self.as_vector()
        return StrainState.from_vector(e, self.theta_x + theta)

    def to_horizontal(self) -> "StrainState":
        return self.transform(-self.theta_x)

    def to_principal(self) -> "PrincipalStrainState":
        return PrincipalStrainState.from_strain(self)

    def __add__(self, other: "StrainState") -> "StrainState":
        return StrainState.from_vector(self.as_vector() + _aligned(self, other).as_vector(), self.theta_x)

    def __sub__(self, other: "StrainState") -> "StrainState":
        return StrainState.from_vector(self.as_vector() - _aligned(self, other).as_vector(), self.theta_x)

    def __neg__(self) -> "StrainState":
        return StrainState.from_vector(-self.as_vector(), self.theta_x)

    def __mul__(self, factor: float) -> "StrainState":
        return StrainState.from_vector(float(factor) * self.as_vector(), self.theta_x)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> "StrainState":
        return StrainState.from_vector(self.as_vector() / float(divisor), self.theta_x)


@dataclass(frozen=True)
class StressState:
    sigma_x: float = 0.0
    sigma_y: float = 0.0
    tau_xy: float = 0.0
    theta_x: float = 0.0

    @classmethod
    def zero(cls) -> "StressState":
        return cls()

    @classmethod
    def from_vector(cls, v, theta_x: float = 0.0) -> "StressState":
        a = np.asarray(v, dtype=float).reshape(3)
        return cls(float(a[0]), float(a[1]), float(a[2]), theta_x)

    @classmethod
    def from_strains(cls, strains: StrainState, stiffness: np.ndarray) -> "StressState":
        return cls.from_vector(np.asarray(stiffness, dtype=float) @ strains.as_vector(), strains.theta_x)

    def as_vector(self) -> np.ndarray:
        return np.array([self.sigma_x, self.sigma_y, self.tau_xy], dtype=float)

    @property
    def is_zero(self) -> bool:
        return bool(np.all(np.abs(self.as_vector()) < 1e-12))

    def transform(self, theta: float) -> "StressState":
        if theta == 0.0:
            return self
        c, s = direction_cosines(theta)
        sx, sy, txy = self.sigma_x, self.sigma_y, self.tau_xy
        return StressState(
            sx * c * c + sy * s * s + 2.0 * txy * c * s,
            sx * s * s + sy * c * c - 2.0 * txy * c * s,
            (sy - sx) * c * s + txy * (c * c - s * s),
            self.theta_x + theta,
        )

    def to_horizontal(self) -> "StressState":
        return self.transform(-self.theta_x)

    def to_principal(self) -> "PrincipalStressState":
        return PrincipalStressState.from_stress(self)

    def __add__(self, other: "StressState") -> "StressState":
        return StressState.from_vector(self.as_vector() + _aligned(self, other).as_vector(), self.theta_x)

    def __sub__(self, other: "StressState") -> "StressState":
        return StressState.from_vector(self.as_vector() - _aligned(self, other).as_vector(), self.theta_x)

    def __neg__(self) -> "StressState":
        return StressState.from_vector(-self.as_vector(), self.theta_x)

    def __mul__(self, factor: float) -> "StressState":
        return StressState.from_vector(float(factor) * self.as_vector(), self.theta_x)

    __rmul__ = __mul__

    def __truediv__(self, divisor: float) -> "StressState":
        return StressState.from_vector(self.as_vector() / float(divisor), self.theta_x)


def _aligned(ref, other):
    """Express ``other`` in the axes of ``ref`` before component-wise algebra."""
    if other.theta_x == ref.theta_x:
        return other
    return other.transform(ref.theta_x - other.theta_x)


# ----------------------------
# Principal states
# ----------------------------


def _principal_angle(a: float, b: float, shear: float, lower: float) -> float:
    """Angle of the major principal direction.

    ``a``/``b`` are the normal components, ``shear`` the *tensor* shear and
    ``lower`` the minor principal value.
    """
    if shear == 0.0:
        return 0.0 if a >= b else 0.5 * math.pi
    if a == b and shear < 0.0:
        return -0.25 * math.pi
    return normalize_angle(0.5 * math.pi - math.atan((a - lower) / shear))


@dataclass(frozen=True)
class PrincipalStrainState:
    epsilon_1: float = 0.0
    epsilon_2: float = 0.0
    theta_1: float = 0.0

    @classmethod
    def from_strain(cls, strain: StrainState) -> "PrincipalStrainState":
        ex, ey, gxy = strain.epsilon_x, strain.epsilon_y, strain.gamma_xy
        center = 0.5 * (ex + ey)
        radius = 0.5 * math.sqrt((ey - ex) ** 2 + gxy * gxy)
        e1 = center + radius
        e2 = center - radius
        theta = _principal_angle(ex, ey, 0.5 * gxy, e2)
        return cls(e1, e2, theta + strain.theta_x)

    @property
    def theta_2(self) -> float:
        return self.theta_1 + 0.5 * math.pi

    @property
    def case(self) -> str:
        """'pure-tension', 'pure-compression' or 'tension-compression'."""
        if self.epsilon_2 >= 0.0:
            return "pure-tension"
        if self.epsilon_1 <= 0.0:
            return "pure-compression"
        return "tension-compression"

    def to_strain_state(self) -> StrainState:
        """Cartesian components in the reference axes."""
        return StrainState(self.epsilon_1, self.epsilon_2, 0.0, self.theta_1).to_horizontal()


@dataclass(frozen=True)
class PrincipalStressState:
    sigma_1: float = 0.0
    sigma_2: float = 0.0
    theta_1: float = 0.0

    @classmethod
    def from_stress(cls, stress: StressState) -> "PrincipalStressState":
        sx, sy, txy = stress.sigma_x, stress.sigma_y, stress.tau_xy
        center = 0.5 * (sx + sy)
        radius = math.sqrt((0.5 * (sy - sx)) ** 2 + txy * txy)
        s1 = center + radius
        s2 = center - radius
        theta = _principal_angle(sx, sy, txy, s2)
        return cls(s1, s2, theta + stress.theta_x)

    @property
    def theta_2(self) -> float:
        return self.theta_1 + 0.5 * math.pi

    def to_stress_state(self) -> StressState:
        return StressState(self.sigma_1, self.sigma_2, 0.0, self.theta_1).to_horizontal()


State = Union[StrainState, StressState]


def to_principal(state: State):
    """Principal decomposition of a strain or stress state."""
    if isinstance(state, StrainState):
        return PrincipalStrainState.from_strain(state)
    if isinstance(state, StressState):
        return PrincipalStressState.from_stress(state)
    raise TypeError(f"Expected StrainState or StressState, got {type(state).__name__}")


def transform(state: State, theta: float) -> State:
    """Rotate a strain or stress state by ``theta``."""
    return state.transform(theta)
