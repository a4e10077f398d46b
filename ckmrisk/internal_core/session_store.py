from __future__ import annotations

import time
import uuid
from dataclasses import replace
from threading import RLock
from typing import Any, Dict, Optional

from ckmrisk.risk.covariates import CovariateForm, Sex
from ckmrisk.risk.manual import MANUAL_FIELDS, ManualRiskInputs
from ckmrisk.risk.orchestrator import CalculatedInputs, ManualInputs, ModeInputs
from ckmrisk.validation.tiers import FieldValidationResult, check_field

from .contracts import AuditEvent, InputMode


class InMemorySessionStore:
    def __init__(self, ttl_seconds: int, *, default_apply_treatment_effect: bool = False):
        self._ttl_seconds = ttl_seconds
        self._default_apply_treatment_effect = default_apply_treatment_effect
        self._lock = RLock()
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def create_session(self) -> str:
        session_id = uuid.uuid4().hex
        now = time.time()
        with self._lock:
            self._sessions[session_id] = {
                "session_id": session_id,
                "created_at": now,
                "updated_at": now,
                "expires_at": now + self._ttl_seconds,
                "form": CovariateForm(),
                "validation": {},
                "mode": "calculated",
                "manual": ManualRiskInputs(),
                "apply_treatment_effect": self._default_apply_treatment_effect,
                "audit_events": [],
            }
        return session_id

    def _session(self, session_id: str) -> Dict[str, Any]:
        session = self._sessions.get(session_id)
        if session is None:
            raise KeyError(f"Unknown session_id: {session_id}")
        return session

    def _touch(self, session_id: str) -> None:
        now = time.time()
        session = self._sessions[session_id]
        session["updated_at"] = now
        session["expires_at"] = now + self._ttl_seconds

    def edit_field(self, session_id: str, name: str, raw: str) -> tuple[bool, str]:
        with self._lock:
            form: CovariateForm = self._session(session_id)["form"]
            accepted = form.edit(name, raw)
            self._touch(session_id)
            return accepted, form.numeric[name].draft

    def commit_field(self, session_id: str, name: str) -> tuple[str, Optional[FieldValidationResult]]:
        with self._lock:
            session = self._session(session_id)
            committed = session["form"].commit(name)
            result = check_field(name, committed)
            session["validation"][name] = result
            self._touch(session_id)
            return committed, result

    def set_toggle(self, session_id: str, name: str, value: bool) -> None:
        with self._lock:
            self._session(session_id)["form"].set_toggle(name, value)
            self._touch(session_id)

    def set_sex(self, session_id: str, value: Optional[Sex]) -> None:
        with self._lock:
            self._session(session_id)["form"].set_sex(value)
            self._touch(session_id)

    def set_mode(self, session_id: str, mode: InputMode) -> None:
        if mode not in {"calculated", "manual"}:
            raise ValueError(f"Unsupported input mode: {mode}")
        with self._lock:
            self._session(session_id)["mode"] = mode
            self._touch(session_id)

    def set_manual_figure(self, session_id: str, figure: str, raw: str) -> None:
        if figure not in MANUAL_FIELDS:
            raise ValueError(f"Unknown manual risk figure: {figure}")
        with self._lock:
            session = self._session(session_id)
            session["manual"] = replace(session["manual"], **{figure: raw})
            self._touch(session_id)

    def set_apply_treatment_effect(self, session_id: str, enabled: bool) -> None:
        with self._lock:
            self._session(session_id)["apply_treatment_effect"] = bool(enabled)
            self._touch(session_id)

    def reset_patient_data(self, session_id: str) -> None:
        with self._lock:
            session = self._session(session_id)
            session["form"] = CovariateForm()
            session["validation"] = {}
            session["mode"] = "calculated"
            session["manual"] = ManualRiskInputs()
            self._touch(session_id)

    def assessment_inputs(
        self, session_id: str
    ) -> tuple[ModeInputs, Dict[str, Optional[FieldValidationResult]], bool]:
        """Mode inputs, validation results and treatment toggle read under one lock."""
        with self._lock:
            session = self._session(session_id)
            inputs: ModeInputs
            if session["mode"] == "manual":
                inputs = ManualInputs(manual=session["manual"])
            else:
                inputs = CalculatedInputs(covariates=session["form"].committed_covariates())
            return inputs, dict(session["validation"]), bool(session["apply_treatment_effect"])

    def append_audit_event(self, session_id: str, event: AuditEvent) -> None:
        with self._lock:
            self._session(session_id)["audit_events"].append(event)
            self._touch(session_id)

    def get_session(self, session_id: str) -> Dict[str, Any]:
        with self._lock:
            session = self._session(session_id)
            form: CovariateForm = session["form"]
            return {
                "session_id": session["session_id"],
                "created_at": session["created_at"],
                "updated_at": session["updated_at"],
                "expires_at": session["expires_at"],
                "drafts": form.draft_text(),
                "committed": form.committed_text(),
                "toggles": dict(form.toggles),
                "sex": form.sex,
                "validation": dict(session["validation"]),
                "mode": session["mode"],
                "manual": session["manual"],
                "apply_treatment_effect": session["apply_treatment_effect"],
                "audit_events": list(session["audit_events"]),
            }

    def destroy_session(self, session_id: str, reason: str) -> bool:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        return session is not None

    def cleanup_expired_sessions(self) -> int:
        now = time.time()
        expired = []
        with self._lock:
            for session_id, session in self._sessions.items():
                if session["expires_at"] <= now:
                    expired.append(session_id)
        for session_id in expired:
            self.destroy_session(session_id, reason="ttl_expired")
        return len(expired)
