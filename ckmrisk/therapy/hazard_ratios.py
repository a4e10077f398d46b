from __future__ import annotations

"""
Hazard ratio table: literature defaults plus user overrides per medication/outcome.

Design intent:
- One explicit table object is injected into every consumer; no module singleton.
- Overrides are validated at entry; a rejected override never mutates state.
- GLP-1 RA x heart failure has no published effect and stays not-applicable.
"""

import logging
import math
from dataclasses import dataclass
from threading import RLock
from typing import Literal, Mapping, Optional

Medication = Literal["sglt2i", "glp1ra", "nsmra"]
Outcome = Literal["cvd", "hf", "ckd"]

MEDICATIONS: tuple[Medication, ...] = ("sglt2i", "glp1ra", "nsmra")
OUTCOMES: tuple[Outcome, ...] = ("cvd", "hf", "ckd")

MEDICATION_LABELS: dict[str, str] = {
    "sglt2i": "SGLT2i",
    "glp1ra": "GLP-1 RA",
    "nsmra": "nsMRA",
}

OVERRIDE_MIN_EXCLUSIVE = 0.0
OVERRIDE_MAX_EXCLUSIVE = 10.0

DEFAULT_HAZARD_RATIOS: dict[str, dict[str, Optional[float]]] = {
    "sglt2i": {"cvd": 0.87, "hf": 0.7, "ckd": 0.63},
    "glp1ra": {"cvd": 0.82, "hf": None, "ckd": 0.79},
    "nsmra": {"cvd": 0.86, "hf": 0.78, "ckd": 0.77},
}

logger = logging.getLogger(__name__)


class HazardRatioOverrideError(ValueError):
    """Raised when an override is rejected; the message is field-level UI text."""


@dataclass(frozen=True)
class HazardRatioEntry:
    medication: str
    outcome: str
    default: Optional[float]
    override: Optional[float]
    effective: Optional[float]

    @property
    def applicable(self) -> bool:
        return self.default is not None

    @property
    def custom(self) -> bool:
        return self.override is not None


class HazardRatioTable:
    def __init__(self, defaults: Mapping[str, Mapping[str, Optional[float]]] = DEFAULT_HAZARD_RATIOS) -> None:
        self._lock = RLock()
        self._defaults: dict[str, dict[str, Optional[float]]] = {
            medication: {outcome: defaults[medication][outcome] for outcome in OUTCOMES}
            for medication in MEDICATIONS
        }
        self._overrides: dict[str, dict[str, Optional[float]]] = {
            medication: {outcome: None for outcome in OUTCOMES} for medication in MEDICATIONS
        }

    def default(self, medication: str, outcome: str) -> Optional[float]:
        _require_key(medication, outcome)
        return self._defaults[medication][outcome]

    def override(self, medication: str, outcome: str) -> Optional[float]:
        _require_key(medication, outcome)
        with self._lock:
            return self._overrides[medication][outcome]

    def has_override(self, medication: str, outcome: str) -> bool:
        return self.override(medication, outcome) is not None

    def effective(self, medication: str, outcome: str) -> Optional[float]:
        default = self.default(medication, outcome)
        if default is None:
            return None
        with self._lock:
            override = self._overrides[medication][outcome]
        return override if override is not None else default

    def set_override(self, medication: str, outcome: str, raw_text: str) -> float:
        default = self.default(medication, outcome)
        if default is None:
            raise HazardRatioOverrideError(
                f"No published effect for {MEDICATION_LABELS[medication]} on outcome {outcome!r}."
            )
        value = parse_override(raw_text)
        with self._lock:
            self._overrides[medication][outcome] = value
        logger.info("hazard ratio override set medication=%s outcome=%s value=%s", medication, outcome, value)
        return value

    def clear_override(self, medication: str, outcome: str) -> None:
        _require_key(medication, outcome)
        with self._lock:
            self._overrides[medication][outcome] = None
        logger.info("hazard ratio override cleared medication=%s outcome=%s", medication, outcome)

    def entries(self) -> list[HazardRatioEntry]:
        with self._lock:
            return [
                HazardRatioEntry(
                    medication=medication,
                    outcome=outcome,
                    default=self._defaults[medication][outcome],
                    override=self._overrides[medication][outcome],
                    effective=self.effective(medication, outcome),
                )
                for medication in MEDICATIONS
                for outcome in OUTCOMES
            ]


def parse_override(raw_text: str | None) -> float:
    text = (raw_text or "").strip()
    if not text:
        raise HazardRatioOverrideError("Hazard ratio is required")
    try:
        value = float(text)
    except ValueError as exc:
        raise HazardRatioOverrideError("Must be a number") from exc
    if math.isnan(value):
        raise HazardRatioOverrideError("Must be a number")
    if value <= OVERRIDE_MIN_EXCLUSIVE:
        raise HazardRatioOverrideError("Must be greater than 0")
    if value >= OVERRIDE_MAX_EXCLUSIVE:
        raise HazardRatioOverrideError("Must be less than 10")
    return value


def _require_key(medication: str, outcome: str) -> None:
    if medication not in MEDICATIONS:
        raise ValueError(f"Unknown medication: {medication}")
    if outcome not in OUTCOMES:
        raise ValueError(f"Unknown outcome: {outcome}")
