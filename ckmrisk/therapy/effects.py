from __future__ import annotations

"""
Apply medication hazard ratios to baseline risk figures.

Design intent:
- treated = baseline x hazard ratio, always against the untreated baseline.
- Each medication is composed on its own; effects are never compounded.
"""

from dataclasses import dataclass
from typing import Optional

from ckmrisk.risk.results import ResultSet
from ckmrisk.therapy.hazard_ratios import MEDICATIONS, HazardRatioTable


@dataclass(frozen=True)
class TreatedEstimate:
    medication: str
    hazard_ratio: Optional[float]
    treated: Optional[float]
    custom_hazard_ratio: bool

    @property
    def applicable(self) -> bool:
        return self.hazard_ratio is not None


@dataclass(frozen=True)
class TreatedFigure:
    model: str
    figure: str
    outcome: str
    baseline: float
    estimates: list[TreatedEstimate]


# (model, figure attribute, hazard-ratio outcome)
FIGURE_OUTCOMES: tuple[tuple[str, str, str], ...] = (
    ("kfre", "two_year", "ckd"),
    ("kfre", "five_year", "ckd"),
    ("prevent", "cvd", "cvd"),
    ("prevent", "ascvd", "cvd"),
    ("prevent", "heart_failure", "hf"),
    ("kdigo", "cvd_mortality", "cvd"),
    ("kdigo", "ckd_progression", "ckd"),
)


def apply_effect(baseline: float, hazard_ratio: Optional[float]) -> Optional[float]:
    if hazard_ratio is None:
        return None
    return baseline * hazard_ratio


def compose_effects(results: ResultSet, table: HazardRatioTable) -> list[TreatedFigure]:
    figures: list[TreatedFigure] = []
    for model, figure, outcome in FIGURE_OUTCOMES:
        record = getattr(results, model)
        if record is None:
            continue
        baseline = float(getattr(record, figure))
        estimates = []
        for medication in MEDICATIONS:
            hazard_ratio = table.effective(medication, outcome)
            estimates.append(
                TreatedEstimate(
                    medication=medication,
                    hazard_ratio=hazard_ratio,
                    treated=apply_effect(baseline, hazard_ratio),
                    custom_hazard_ratio=table.has_override(medication, outcome),
                )
            )
        figures.append(
            TreatedFigure(
                model=model,
                figure=figure,
                outcome=outcome,
                baseline=baseline,
                estimates=estimates,
            )
        )
    return figures
