from __future__ import annotations

"""
Typed result records for the three risk models.

Design intent:
- One frozen record per model; absence is expressed as None, never as a
  zero-filled record.
- Keep labels verbatim for display by the UI layer.
"""

from dataclasses import dataclass
from typing import Literal, Optional

RiskLevel = Literal["Low", "Moderate", "High"]
KfreEquation = Literal["4-variable", "8-variable", "manual"]
ResultSource = Literal["calculated", "manual"]

UNKNOWN_CATEGORY = "Unknown"

KFRE_HIGH_THRESHOLD = 0.4
KFRE_MODERATE_THRESHOLD = 0.1


def kfre_risk_level(two_year_fraction: float) -> RiskLevel:
    # Strict greater-than: a value equal to a threshold stays in the lower band.
    if two_year_fraction > KFRE_HIGH_THRESHOLD:
        return "High"
    if two_year_fraction > KFRE_MODERATE_THRESHOLD:
        return "Moderate"
    return "Low"


@dataclass(frozen=True)
class KfreResult:
    two_year: float
    five_year: float
    risk_level: RiskLevel
    equation: KfreEquation


@dataclass(frozen=True)
class PreventResult:
    cvd: float
    ascvd: float
    heart_failure: float


@dataclass(frozen=True)
class KdigoResult:
    cvd_mortality: float
    ckd_progression: float
    egfr_category: str
    acr_category: str


@dataclass(frozen=True)
class ResultSet:
    source: ResultSource
    kfre: Optional[KfreResult] = None
    prevent: Optional[PreventResult] = None
    kdigo: Optional[KdigoResult] = None
