from __future__ import annotations

"""
Build result records directly from manually entered risk figures.

Design intent:
- Bypass the models entirely; manual figures are taken literally.
- A model record exists only when at least one of its figures was entered.
"""

import math
from dataclasses import dataclass, fields

from ckmrisk.risk.results import (
    UNKNOWN_CATEGORY,
    KdigoResult,
    KfreResult,
    PreventResult,
    ResultSet,
    kfre_risk_level,
)


@dataclass(frozen=True)
class ManualRiskInputs:
    kfre: str = ""
    cvd: str = ""
    ascvd: str = ""
    hf: str = ""
    kdigo_cvd: str = ""
    kdigo_ckd: str = ""


MANUAL_FIELDS: tuple[str, ...] = tuple(item.name for item in fields(ManualRiskInputs))


def parse_manual_figure(raw: str | None) -> float | None:
    text = (raw or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    return value if math.isfinite(value) else None


def from_manual_inputs(inputs: ManualRiskInputs) -> ResultSet:
    kfre_value = parse_manual_figure(inputs.kfre)
    cvd_value = parse_manual_figure(inputs.cvd)
    ascvd_value = parse_manual_figure(inputs.ascvd)
    hf_value = parse_manual_figure(inputs.hf)
    kdigo_cvd_value = parse_manual_figure(inputs.kdigo_cvd)
    kdigo_ckd_value = parse_manual_figure(inputs.kdigo_ckd)

    kfre = None
    if kfre_value is not None:
        kfre = KfreResult(
            two_year=kfre_value,
            five_year=kfre_value,
            risk_level=kfre_risk_level(kfre_value / 100.0),
            equation="manual",
        )

    prevent = None
    if any(value is not None for value in (cvd_value, ascvd_value, hf_value)):
        prevent = PreventResult(
            cvd=_or_zero(cvd_value),
            ascvd=_or_zero(ascvd_value),
            heart_failure=_or_zero(hf_value),
        )

    kdigo = None
    if kdigo_cvd_value is not None or kdigo_ckd_value is not None:
        kdigo = KdigoResult(
            cvd_mortality=_or_zero(kdigo_cvd_value),
            ckd_progression=_or_zero(kdigo_ckd_value),
            egfr_category=UNKNOWN_CATEGORY,
            acr_category=UNKNOWN_CATEGORY,
        )

    return ResultSet(source="manual", kfre=kfre, prevent=prevent, kdigo=kdigo)


def _or_zero(value: float | None) -> float:
    return 0.0 if value is None else value
