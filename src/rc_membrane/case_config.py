"""Case files for membrane analyses (YAML / JSON).

A case either names a tested panel::

    name: pv10-shear
    panel: PV10
    model: dsfm
    loading: {sx: 0.0, sy: 0.0, txy: 5.0}
    solver: {steps: 100, update: secant}

or describes the materials explicitly::

    concrete: {fc: 30.0, aggregate_diameter: 10.0}
    reinforcement:
      x: {bar_diameter: 8.0, spacing: 50.0, fy: 450.0}
      y: {ratio: 0.01, fy: 450.0}
    width: 70.0
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import yaml

from rc_membrane.concrete import ConcreteParameters, ConstitutiveModel
from rc_membrane.membrane import Membrane
from rc_membrane.panels import PANEL_WIDTH, make_panel, panel_spec
from rc_membrane.plane_state import StrainState, StressState
from rc_membrane.reinforcement import ReinforcementDirection, WebReinforcement
from rc_membrane.solver import MembraneSolver, SolveResult, SolverConfig


@dataclass
class DirectionConfig:
    fy: float
    Es: float = 200000.0
    ratio: Optional[float] = None
    bar_diameter: Optional[float] = None
    spacing: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fy": self.fy,
            "Es": self.Es,
            "ratio": self.ratio,
            "bar_diameter": self.bar_diameter,
            "spacing": self.spacing,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DirectionConfig":
        return cls(**data)

    def build(self, width: float) -> ReinforcementDirection:
        if self.spacing is not None:
            return ReinforcementDirection(
                fy=self.fy, Es=self.Es, bar_diameter=self.bar_diameter, spacing=self.spacing, width=width
            )
        return ReinforcementDirection(
            fy=self.fy, Es=self.Es, ratio=self.ratio or 0.0, bar_diameter=self.bar_diameter
        )


@dataclass
class LoadingConfig:
    """Target state; ``kind='stress'`` (MPa) or ``kind='strain'``."""

    kind: str = "stress"
    x: float = 0.0
    y: float = 0.0
    xy: float = 0.0

    def __post_init__(self):
        k = (self.kind or "stress").strip().lower()
        if k not in ("stress", "strain"):
            raise ValueError(f"Unknown loading kind='{self.kind}'. Use 'stress' or 'strain'.")
        self.kind = k

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind, "x": self.x, "y": self.y, "xy": self.xy}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "LoadingConfig":
        data = dict(data)
        # accept sx/sy/txy and ex/ey/gxy spellings
        for short, keys in (("x", ("sx", "ex")), ("y", ("sy", "ey")), ("xy", ("txy", "gxy"))):
            for k in keys:
                if k in data:
                    data[short] = data.pop(k)
                    if k.startswith("e") or k == "gxy":
                        data.setdefault("kind", "strain")
        return cls(**data)

    def target(self):
        if self.kind == "strain":
            return StrainState(self.x, self.y, self.xy)
        return StressState(self.x, self.y, self.xy)


@dataclass
class PanelCase:
    name: str = "membrane"
    model: str = "mcft"
    consider_crack_slip: bool = True
    panel: Optional[str] = None
    concrete: Optional[Dict[str, Any]] = None
    reinforcement: Dict[str, DirectionConfig] = field(default_factory=dict)
    width: float = PANEL_WIDTH
    loading: LoadingConfig = field(default_factory=LoadingConfig)
    solver: SolverConfig = field(default_factory=SolverConfig)

    def __post_init__(self):
        self.model = ConstitutiveModel.parse(self.model).value
        if self.panel is None and self.concrete is None:
            raise ValueError("A case needs either 'panel' or 'concrete'.")
        if self.panel is not None:
            self.panel = panel_spec(self.panel).name
        unknown = set(self.reinforcement) - {"x", "y"}
        if unknown:
            raise ValueError(f"Unknown reinforcement directions: {sorted(unknown)}")

    def build_membrane(self) -> Membrane:
        if self.panel is not None:
            return make_panel(self.panel, self.model, self.consider_crack_slip)
        params = ConcreteParameters(**{"model": self.model, **self.concrete})
        web = None
        if self.reinforcement:
            web = WebReinforcement(
                self.reinforcement["x"].build(self.width) if "x" in self.reinforcement else None,
                self.reinforcement["y"].build(self.width) if "y" in self.reinforcement else None,
            )
        return Membrane(params, web, self.model, self.consider_crack_slip, self.width)

    def target(self):
        return self.loading.target()

    def run(self) -> SolveResult:
        return MembraneSolver(self.build_membrane(), self.solver).solve(self.target())

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "model": self.model,
            "consider_crack_slip": self.consider_crack_slip,
            "panel": self.panel,
            "concrete": dict(self.concrete) if self.concrete else None,
            "reinforcement": {k: v.to_dict() for k, v in self.reinforcement.items()},
            "width": self.width,
            "loading": self.loading.to_dict(),
            "solver": self.solver.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PanelCase":
        data = dict(data)
        data["reinforcement"] = {
            k: DirectionConfig.from_dict(v) for k, v in (data.get("reinforcement") or {}).items()
        }
        data["loading"] = LoadingConfig.from_dict(data.get("loading") or {})
        data["solver"] = SolverConfig.from_dict(data.get("solver") or {})
        return cls(**data)

    def save_json(self, filepath: str):
        with open(filepath, "w") as f:
            json.dump(self.to_dict(), f, indent=2)

    def save_yaml(self, filepath: str):
        with open(filepath, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False)

    @classmethod
    def load_json(cls, filepath: str) -> "PanelCase":
        with open(filepath, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)

    @classmethod
    def load_yaml(cls, filepath: str) -> "PanelCase":
        with open(filepath, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def load(cls, filepath: str) -> "PanelCase":
        if str(filepath).lower().endswith(".json"):
            return cls.load_json(filepath)
        return cls.load_yaml(filepath)
