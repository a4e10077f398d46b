from __future__ import annotations

"""
KDIGO eGFR x albuminuria staging with published annual event rates.

Design intent:
- Bucket eGFR into 7 bands and uACR into 4 bands.
- Look up CVD mortality and CKD progression (events per 1000 person-years)
  from two fixed 7x4 grids.
- A band without a grid cell is a programming error and raises.
"""

import numpy as np

from ckmrisk.risk.results import KdigoResult

EGFR_CATEGORIES: tuple[str, ...] = (">105", "90-105", "75-90", "60-75", "45-60", "30-45", "15-30")
ACR_CATEGORIES: tuple[str, ...] = ("<10", "10-29", "30-300", ">300")

# Rows follow EGFR_CATEGORIES, columns follow ACR_CATEGORIES.
CVD_MORTALITY_RATES = np.array(
    [
        [4.05, 5.85, 10.35, 9.45],
        [4.5, 6.75, 7.65, 16.65],
        [4.5, 5.85, 7.2, 16.65],
        [4.95, 6.3, 9.0, 18.45],
        [6.75, 9.9, 12.6, 19.35],
        [9.9, 12.15, 15.3, 23.4],
        [63.0, 35.55, 21.6, 36.45],
    ],
    dtype=float,
)

CKD_PROGRESSION_RATES = np.array(
    [
        [0.0, 0.0, 0.808, 6.06],
        [0.0, 0.0, 1.818, 6.666],
        [0.0, 0.0, 3.838, 10.1],
        [0.0, 0.0, 6.464, 16.362],
        [6.262, 8.08, 18.988, 115.14],
        [6.06, 38.38, 30.3, 44.44],
        [8.08, 24.24, 42.42, 15.554],
    ],
    dtype=float,
)


class KdigoLookupError(ValueError):
    """Raised when a category label has no cell in the rate grids."""


def classify_egfr(egfr: float) -> str:
    if egfr > 105:
        return ">105"
    if egfr >= 90:
        return "90-105"
    if egfr >= 75:
        return "75-90"
    if egfr >= 60:
        return "60-75"
    if egfr >= 45:
        return "45-60"
    if egfr >= 30:
        return "30-45"
    return "15-30"


def classify_acr(uacr: float) -> str:
    if uacr < 10:
        return "<10"
    if uacr < 30:
        return "10-29"
    if uacr <= 300:
        return "30-300"
    return ">300"


def lookup_rates(egfr_category: str, acr_category: str) -> tuple[float, float]:
    try:
        row = EGFR_CATEGORIES.index(egfr_category)
        col = ACR_CATEGORIES.index(acr_category)
    except ValueError as exc:
        raise KdigoLookupError(
            f"Unexpected KDIGO category: egfr={egfr_category!r}, acr={acr_category!r}"
        ) from exc
    return float(CVD_MORTALITY_RATES[row, col]), float(CKD_PROGRESSION_RATES[row, col])


def compute_kdigo(egfr: float | None, uacr: float | None) -> KdigoResult | None:
    if egfr is None or uacr is None:
        return None
    egfr_category = classify_egfr(float(egfr))
    acr_category = classify_acr(float(uacr))
    cvd_mortality, ckd_progression = lookup_rates(egfr_category, acr_category)
    return KdigoResult(
        cvd_mortality=cvd_mortality,
        ckd_progression=ckd_progression,
        egfr_category=egfr_category,
        acr_category=acr_category,
    )
