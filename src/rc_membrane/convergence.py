"""Convergence rules for the membrane equilibrium iterations."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np


def convergence_metric(numerator, denominator) -> float:
    """``sum(n^2) / (1 + sum(d^2))`` for residual/target vectors."""
    n = np.asarray(numerator, dtype=float).ravel()
    d = np.asarray(denominator, dtype=float).ravel()
    return float(np.dot(n, n) / (1.0 + np.dot(d, d)))


def relative_metric(numerator, denominator) -> float:
    """``sum(n^2) / sum(d^2)``; 0 when both vanish, inf when only d does."""
    n = np.asarray(numerator, dtype=float).ravel()
    d = np.asarray(denominator, dtype=float).ravel()
    nn = float(np.dot(n, n))
    dd = float(np.dot(d, d))
    if dd < 1e-300:
        return 0.0 if nn < 1e-300 else float("inf")
    return nn / dd


@dataclass(frozen=True)
class MembraneConvergence:
    stress_tolerance: float = 1e-3
    strain_tolerance: float = 1e-8
    min_iterations: int = 2
    min_strain_iterations: int = 5

    def stress_converged(self, metric: float, iteration: int) -> bool:
        """A small metric on the first iteration is not accepted."""
        return iteration >= self.min_iterations and float(metric) <= self.stress_tolerance

    def strain_converged(self, increment, first_increment, iteration: int) -> bool:
        if iteration < self.min_strain_iterations:
            return False
        return relative_metric(increment, first_increment) <= self.strain_tolerance
