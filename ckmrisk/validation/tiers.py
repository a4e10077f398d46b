from __future__ import annotations

"""
Classify committed numeric covariates against four-threshold plausibility ranges.

Design intent:
- Hard tier marks physiologically impossible values and gates every result.
- Soft tier marks unusual values and stays advisory.
- Draft edits are only shape-filtered; tiers are evaluated on commit.
"""

import math
import re
from dataclasses import dataclass
from typing import Literal, Mapping

Severity = Literal["soft", "hard"]

_DRAFT_SHAPE_RE = re.compile(r"\d*\.?\d*")

HARD_MESSAGE = "Input is physiologically impossible."
SOFT_LOW_MESSAGE = "Input is unusually low. Please check."
SOFT_HIGH_MESSAGE = "Input is unusually high. Please check."


@dataclass(frozen=True)
class ValidationRange:
    hard_min: float
    soft_min: float
    soft_max: float
    hard_max: float
    unit: str


@dataclass(frozen=True)
class FieldValidationResult:
    severity: Severity
    message: str


VALIDATION_RANGES: dict[str, ValidationRange] = {
    "age": ValidationRange(hard_min=18, soft_min=30, soft_max=90, hard_max=120, unit="yrs"),
    "egfr": ValidationRange(hard_min=1, soft_min=5, soft_max=120, hard_max=200, unit="mL/min/1.73m²"),
    "uacr": ValidationRange(hard_min=0, soft_min=1, soft_max=3500, hard_max=10000, unit="mg/g"),
    "sbp": ValidationRange(hard_min=60, soft_min=90, soft_max=180, hard_max=250, unit="mmHg"),
    "total_cholesterol": ValidationRange(hard_min=50, soft_min=100, soft_max=300, hard_max=500, unit="mg/dL"),
    "hdl_cholesterol": ValidationRange(hard_min=10, soft_min=20, soft_max=100, hard_max=150, unit="mg/dL"),
    "bmi": ValidationRange(hard_min=10, soft_min=18, soft_max=45, hard_max=70, unit="kg/m²"),
    "calcium": ValidationRange(hard_min=5, soft_min=7, soft_max=11, hard_max=15, unit="mg/dL"),
    "phosphate": ValidationRange(hard_min=1, soft_min=2, soft_max=6, hard_max=10, unit="mg/dL"),
    "albumin": ValidationRange(hard_min=1, soft_min=2.5, soft_max=5.5, hard_max=7, unit="g/dL"),
    "bicarbonate": ValidationRange(hard_min=5, soft_min=15, soft_max=35, hard_max=50, unit="mEq/L"),
}


def _validate_ranges(ranges: Mapping[str, ValidationRange]) -> None:
    for name, item in ranges.items():
        if not (item.hard_min <= item.soft_min <= item.soft_max <= item.hard_max):
            raise ValueError(f"Validation range for {name!r} is not ordered hard_min <= soft_min <= soft_max <= hard_max.")


_validate_ranges(VALIDATION_RANGES)


def parse_number(raw: str | None) -> float | None:
    """Parse committed field text; anything that is not a finite number is absent."""
    text = (raw or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    return value


def accepts_draft(raw: str) -> bool:
    return _DRAFT_SHAPE_RE.fullmatch(raw or "") is not None


def check_field(
    field_name: str,
    raw_value: str | None,
    *,
    ranges: Mapping[str, ValidationRange] = VALIDATION_RANGES,
) -> FieldValidationResult | None:
    config = ranges.get(field_name)
    if config is None:
        return None
    value = parse_number(raw_value)
    if value is None:
        return None

    if value < config.hard_min or value > config.hard_max:
        return FieldValidationResult(severity="hard", message=HARD_MESSAGE)
    if value < config.soft_min:
        return FieldValidationResult(severity="soft", message=SOFT_LOW_MESSAGE)
    if value > config.soft_max:
        return FieldValidationResult(severity="soft", message=SOFT_HIGH_MESSAGE)
    return None


def check_all(
    values: Mapping[str, str | None],
    *,
    ranges: Mapping[str, ValidationRange] = VALIDATION_RANGES,
) -> dict[str, FieldValidationResult | None]:
    return {name: check_field(name, raw, ranges=ranges) for name, raw in values.items()}


def has_hard_error(results: Mapping[str, FieldValidationResult | None]) -> bool:
    return any(item is not None and item.severity == "hard" for item in results.values())
