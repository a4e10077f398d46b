from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict

InputMode = Literal["calculated", "manual"]

AuditEventType = Literal[
    "SESSION_CREATED",
    "FIELD_COMMITTED",
    "VALIDATION_SOFT",
    "VALIDATION_HARD",
    "MODE_CHANGED",
    "TREATMENT_EFFECT_TOGGLED",
    "SESSION_RESET",
    "ERROR",
]


class AuditEvent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ts_iso: str
    session_id: str
    type: AuditEventType
    code: str
    detail: str = ""


class FieldValidationPayload(BaseModel):
    model_config = ConfigDict(extra="forbid")

    severity: Literal["soft", "hard"]
    message: str
