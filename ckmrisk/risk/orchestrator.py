from __future__ import annotations

"""
Select the active input mode, gate on hard validation errors, and assemble results.

Design intent:
- Calculated and manual inputs are separate tagged variants; neither reads
  the other's fields.
- Any committed field in hard-error state suppresses every model result,
  whether or not that field feeds the model being viewed.
- Treated figures are attached only when the treatment-effect toggle is on.
"""

import logging
from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional, Union

from ckmrisk.risk.covariates import CovariateSet
from ckmrisk.risk.kdigo import compute_kdigo
from ckmrisk.risk.kfre import compute_kfre
from ckmrisk.risk.manual import ManualRiskInputs, from_manual_inputs
from ckmrisk.risk.prevent import compute_prevent
from ckmrisk.risk.results import ResultSet
from ckmrisk.therapy.effects import TreatedFigure, compose_effects
from ckmrisk.therapy.hazard_ratios import HazardRatioTable
from ckmrisk.validation.tiers import FieldValidationResult, has_hard_error

AssessmentStatus = Literal["ok", "suppressed"]
ModelStatus = Literal["available", "absent", "suppressed"]

SUPPRESSION_REASON = "hard validation error"
MODEL_NAMES: tuple[str, ...] = ("kfre", "prevent", "kdigo")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CalculatedInputs:
    covariates: CovariateSet
    mode: Literal["calculated"] = "calculated"


@dataclass(frozen=True)
class ManualInputs:
    manual: ManualRiskInputs
    mode: Literal["manual"] = "manual"


ModeInputs = Union[CalculatedInputs, ManualInputs]


@dataclass(frozen=True)
class Assessment:
    status: AssessmentStatus
    mode: str
    results: Optional[ResultSet]
    apply_treatment_effect: bool
    treated: list[TreatedFigure] = field(default_factory=list)
    reason: Optional[str] = None
    hard_error_fields: list[str] = field(default_factory=list)

    def model_status(self, model: str) -> ModelStatus:
        if model not in MODEL_NAMES:
            raise ValueError(f"Unknown model: {model}")
        if self.status == "suppressed" or self.results is None:
            return "suppressed"
        return "available" if getattr(self.results, model) is not None else "absent"


def compute_results(inputs: ModeInputs) -> ResultSet:
    if isinstance(inputs, ManualInputs):
        return from_manual_inputs(inputs.manual)
    covariates = inputs.covariates
    return ResultSet(
        source="calculated",
        kfre=compute_kfre(covariates),
        prevent=compute_prevent(covariates),
        kdigo=compute_kdigo(covariates.egfr, covariates.uacr),
    )


def assemble(
    inputs: ModeInputs,
    *,
    validation: Mapping[str, Optional[FieldValidationResult]],
    hazard_ratios: HazardRatioTable,
    apply_treatment_effect: bool,
) -> Assessment:
    if has_hard_error(validation):
        hard_fields = sorted(
            name for name, item in validation.items() if item is not None and item.severity == "hard"
        )
        logger.info("results suppressed mode=%s hard_fields=%s", inputs.mode, ",".join(hard_fields))
        return Assessment(
            status="suppressed",
            mode=inputs.mode,
            results=None,
            apply_treatment_effect=apply_treatment_effect,
            reason=SUPPRESSION_REASON,
            hard_error_fields=hard_fields,
        )

    results = compute_results(inputs)
    treated = compose_effects(results, hazard_ratios) if apply_treatment_effect else []
    return Assessment(
        status="ok",
        mode=inputs.mode,
        results=results,
        apply_treatment_effect=apply_treatment_effect,
        treated=treated,
    )
