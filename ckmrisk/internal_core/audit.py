from __future__ import annotations

"""
Per-session audit trail writers.

Design intent:
- Events carry field names, severities and modes; covariate values never
  enter the trail.
- A commit always records FIELD_COMMITTED, followed by the validation tier
  it landed in when it is not clean.
"""

import datetime as _dt
import logging
from typing import Optional

from ckmrisk.validation.tiers import FieldValidationResult

from .contracts import AuditEvent, AuditEventType
from .session_store import InMemorySessionStore

MAX_DETAIL_CHARS = 200

logger = logging.getLogger(__name__)


def _sanitize_detail(detail: str) -> str:
    detail = " ".join((detail or "").split())
    if len(detail) > MAX_DETAIL_CHARS:
        detail = detail[:MAX_DETAIL_CHARS] + "..."
    return detail


def log_event(
    store: InMemorySessionStore,
    session_id: str,
    event_type: AuditEventType,
    code: str,
    detail: str = "",
) -> AuditEvent:
    event = AuditEvent(
        ts_iso=_dt.datetime.now(_dt.timezone.utc).isoformat(),
        session_id=session_id,
        type=event_type,
        code=code,
        detail=_sanitize_detail(detail),
    )
    store.append_audit_event(session_id, event)
    return event


def record_commit(
    store: InMemorySessionStore,
    session_id: str,
    field: str,
    result: Optional[FieldValidationResult],
) -> list[AuditEvent]:
    events = [log_event(store, session_id, "FIELD_COMMITTED", field)]
    if result is None:
        return events
    if result.severity == "hard":
        logger.warning("hard validation error session_id=%s field=%s", session_id, field)
        events.append(log_event(store, session_id, "VALIDATION_HARD", field, detail=result.message))
    else:
        events.append(log_event(store, session_id, "VALIDATION_SOFT", field, detail=result.message))
    return events
