"""Tested membrane panels (Vecchio & Collins PV series, Collins et al. PHS series).

All panels are 890 x 890 x 70 mm with two layers of web reinforcement. Each
entry stores concrete strength, aggregate size and, per direction, bar
diameter [mm], spacing [mm] and yield stress [MPa]. A zero diameter means the
direction is unreinforced.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

from rc_membrane.concrete import ConcreteParameters, ConstitutiveModel
from rc_membrane.membrane import Membrane
from rc_membrane.plane_state import StressState
from rc_membrane.reinforcement import WebReinforcement

PANEL_WIDTH = 70.0
STEEL_MODULUS = 200000.0


@dataclass(frozen=True)
class PanelSpec:
    name: str
    fc: float
    aggregate_diameter: float
    bar_x: float
    spacing_x: float
    fy_x: float
    bar_y: float
    spacing_y: float
    fy_y: float
    width: float = PANEL_WIDTH

    def reinforcement(self) -> Optional[WebReinforcement]:
        web = WebReinforcement.from_bars(
            self.bar_x, self.spacing_x, self.fy_x, self.width,
            bar_y=self.bar_y, spacing_y=self.spacing_y, fy_y=self.fy_y,
            Es=STEEL_MODULUS,
        )
        if web.x is None and web.y is None:
            return None
        return web

    def parameters(self, model="mcft") -> ConcreteParameters:
        return ConcreteParameters(self.fc, self.aggregate_diameter, model=model)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "fc": self.fc,
            "aggregate_diameter": self.aggregate_diameter,
            "bar_x": self.bar_x,
            "spacing_x": self.spacing_x,
            "fy_x": self.fy_x,
            "bar_y": self.bar_y,
            "spacing_y": self.spacing_y,
            "fy_y": self.fy_y,
            "width": self.width,
        }


def _pv(name, fc, bar_x, sx, fy_x, bar_y=None, sy=None, fy_y=None, agg=6.0):
    bar_y = bar_x if bar_y is None else bar_y
    sy = sx if sy is None else sy
    fy_y = fy_x if fy_y is None else fy_y
    return PanelSpec(name, fc, agg, bar_x, sx, fy_x, bar_y, sy, fy_y)


_PANELS = [
    _pv("PV1", 34.5, 6.35, 50.55, 483, 6.35, 53.86, 283),
    _pv("PV2", 23.5, 2.03, 51.37, 428),
    _pv("PV3", 26.6, 3.30, 50.91, 662),
    _pv("PV4", 26.6, 3.45, 25.20, 242),
    _pv("PV5", 28.3, 5.79, 101.66, 621),
    _pv("PV6", 29.8, 6.35, 50.55, 266),
    _pv("PV7", 31.0, 6.35, 50.55, 453),
    _pv("PV8", 29.8, 5.44, 25.37, 462),
    _pv("PV9", 11.6, 6.35, 50.55, 455),
    _pv("PV10", 14.5, 6.35, 50.55, 276, 4.70, 49.57, 276),
    _pv("PV11", 15.6, 6.35, 50.55, 235, 5.44, 50.70, 235),
    _pv("PV12", 16.0, 6.35, 50.55, 468, 3.18, 50.43, 468),
    _pv("PV13", 18.2, 6.35, 50.55, 248, 0.0, 0.0, 248),
    _pv("PV14", 20.4, 6.35, 50.55, 455),
    _pv("PV15", 21.7, 4.09, 50.73, 255),
    _pv("PV17", 18.6, 4.09, 50.73, 255),
    _pv("PV18", 19.5, 6.35, 50.55, 431, 2.67, 50.00, 412),
    _pv("PV19", 19.0, 6.35, 50.55, 458, 4.01, 50.82, 299),
    _pv("PV20", 19.6, 6.35, 50.55, 460, 4.47, 50.38, 297),
    _pv("PV21", 19.5, 6.35, 50.55, 458, 5.41, 50.52, 302),
    _pv("PV22", 19.6, 6.35, 50.55, 458, 5.87, 50.87, 420),
    _pv("PV23", 20.5, 6.35, 50.55, 518),
    _pv("PV24", 23.8, 6.35, 50.55, 492),
    _pv("PV25", 19.2, 6.35, 50.55, 466),
    _pv("PV26", 21.3, 6.35, 50.55, 456, 4.70, 49.08, 463),
    _pv("PV27", 20.5, 6.35, 50.55, 442),
    _pv("PV28", 19.0, 6.35, 50.55, 483),
    _pv("PV29", 21.7, 6.35, 50.55, 441, 4.47, 50.38, 324),
    _pv("PV30", 19.1, 6.35, 50.55, 437, 4.70, 49.08, 472),
    _pv("PHS1", 72.2, 8.0, 44.46, 606, 0.0, 0.0, 606, agg=10.0),
    _pv("PHS2", 66.1, 8.0, 44.46, 606, 5.72, 179.07, 521, agg=10.0),
    _pv("PHS3", 58.4, 8.0, 44.46, 606, 5.72, 89.54, 521, agg=10.0),
    _pv("PHS4", 68.5, 8.0, 44.46, 606, 5.72, 89.54, 521, agg=10.0),
    _pv("PHS5", 52.1, 8.0, 44.46, 606, 5.72, 179.07, 521, agg=10.0),
    _pv("PHS6", 49.7, 8.0, 44.46, 606, 5.72, 179.07, 521, agg=10.0),
    _pv("PHS7", 53.6, 8.0, 44.46, 606, 5.72, 89.54, 521, agg=10.0),
    _pv("PHS8", 55.9, 8.0, 44.46, 606, 5.72, 59.21, 521, agg=10.0),
    _pv("PHS9", 56.0, 8.0, 44.46, 606, 5.72, 179.07, 521, agg=10.0),
    _pv("PHS10", 51.4, 8.0, 44.46, 606, 5.72, 59.21, 521, agg=10.0),
]

PANELS: Dict[str, PanelSpec] = {p.name: p for p in _PANELS}


def panel_spec(name: str) -> PanelSpec:
    key = name.strip().upper().replace("-", "").replace("_", "")
    if key not in PANELS:
        raise ValueError(f"Unknown panel '{name}'. Available: {', '.join(PANELS)}")
    return PANELS[key]


def make_panel(
    name: str,
    model="mcft",
    consider_crack_slip: bool = True,
    parameter_model=None,
) -> Membrane:
    """Membrane for a tested panel.

    ``parameter_model`` selects the fcr/Ec formulas; it defaults to MCFT
    formulas for the MCFT variant and DSFM formulas otherwise.
    """
    spec = panel_spec(name)
    m = ConstitutiveModel.parse(model)
    if parameter_model is None:
        parameter_model = ConstitutiveModel.MCFT if m is ConstitutiveModel.MCFT else ConstitutiveModel.DSFM
        if m is ConstitutiveModel.SMM:
            parameter_model = ConstitutiveModel.SMM
    return Membrane(
        spec.parameters(parameter_model),
        spec.reinforcement(),
        model=m,
        consider_crack_slip=consider_crack_slip,
        width=spec.width,
    )


def pure_shear(tau: float) -> StressState:
    return StressState(0.0, 0.0, float(tau))
