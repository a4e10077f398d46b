from __future__ import annotations

"""
Patient covariate buffers and the parsed covariate set the models read.

Design intent:
- Keep a draft buffer (every keystroke) apart from the committed buffer.
- Only an explicit commit moves a draft into the committed buffer.
- Models never see drafts; they read a CovariateSet parsed from committed text.
"""

from dataclasses import dataclass, field
from typing import Literal

from ckmrisk.validation.tiers import accepts_draft, parse_number

Sex = Literal["male", "female"]

NUMERIC_FIELDS: tuple[str, ...] = (
    "age",
    "egfr",
    "uacr",
    "sbp",
    "total_cholesterol",
    "hdl_cholesterol",
    "bmi",
    "calcium",
    "phosphate",
    "albumin",
    "bicarbonate",
)

TOGGLE_FIELDS: tuple[str, ...] = (
    "diabetes",
    "smoking",
    "on_antihypertensive",
    "on_statin",
)


@dataclass(frozen=True)
class CovariateSet:
    age: float | None = None
    sex: Sex | None = None
    egfr: float | None = None
    uacr: float | None = None
    sbp: float | None = None
    total_cholesterol: float | None = None
    hdl_cholesterol: float | None = None
    diabetes: bool = False
    smoking: bool = False
    bmi: float | None = None
    on_antihypertensive: bool = False
    on_statin: bool = False
    calcium: float | None = None
    phosphate: float | None = None
    albumin: float | None = None
    bicarbonate: float | None = None


@dataclass
class FieldBuffer:
    draft: str = ""
    committed: str = ""


@dataclass
class CovariateForm:
    numeric: dict[str, FieldBuffer] = field(
        default_factory=lambda: {name: FieldBuffer() for name in NUMERIC_FIELDS}
    )
    toggles: dict[str, bool] = field(default_factory=lambda: {name: False for name in TOGGLE_FIELDS})
    sex: Sex | None = None

    def edit(self, name: str, raw: str) -> bool:
        buffer = self._buffer(name)
        if not accepts_draft(raw):
            return False
        buffer.draft = raw
        return True

    def commit(self, name: str) -> str:
        buffer = self._buffer(name)
        buffer.committed = buffer.draft
        return buffer.committed

    def set_toggle(self, name: str, value: bool) -> None:
        if name not in self.toggles:
            raise ValueError(f"Unknown toggle field: {name}")
        self.toggles[name] = bool(value)

    def set_sex(self, value: Sex | None) -> None:
        if value not in {"male", "female", None}:
            raise ValueError(f"Unsupported sex value: {value!r}")
        self.sex = value

    def committed_text(self) -> dict[str, str]:
        return {name: buffer.committed for name, buffer in self.numeric.items()}

    def draft_text(self) -> dict[str, str]:
        return {name: buffer.draft for name, buffer in self.numeric.items()}

    def committed_covariates(self) -> CovariateSet:
        return covariates_from_text(self.committed_text(), toggles=self.toggles, sex=self.sex)

    def _buffer(self, name: str) -> FieldBuffer:
        buffer = self.numeric.get(name)
        if buffer is None:
            raise ValueError(f"Unknown numeric field: {name}")
        return buffer


def covariates_from_text(
    values: dict[str, str | None],
    *,
    toggles: dict[str, bool] | None = None,
    sex: Sex | None = None,
) -> CovariateSet:
    parsed: dict[str, object] = {}
    for name, raw in values.items():
        if name not in NUMERIC_FIELDS:
            raise ValueError(f"Unknown numeric field: {name}")
        parsed[name] = parse_number(raw)
    for name, flag in (toggles or {}).items():
        if name not in TOGGLE_FIELDS:
            raise ValueError(f"Unknown toggle field: {name}")
        parsed[name] = bool(flag)
    return CovariateSet(sex=sex, **parsed)
