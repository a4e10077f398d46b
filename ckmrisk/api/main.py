from __future__ import annotations

"""
HTTP API surface for the ckmrisk engine.

Design intent:
- Keep API orchestration thin and typed.
- Delegate validation/model/therapy logic to domain modules.
- Return verbatim figures and labels; rendering belongs to the UI layer.
"""

import logging
from dataclasses import asdict
from typing import Any, Literal, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from ckmrisk.content.store import ContentNotFoundError, ContentStore
from ckmrisk.internal_core.audit import log_event, record_commit
from ckmrisk.internal_core.config import AppConfig, load_config
from ckmrisk.internal_core.contracts import AuditEvent, FieldValidationPayload, InputMode
from ckmrisk.internal_core.session_store import InMemorySessionStore
from ckmrisk.risk.covariates import NUMERIC_FIELDS, TOGGLE_FIELDS, covariates_from_text
from ckmrisk.risk.kdigo import KdigoLookupError
from ckmrisk.risk.manual import MANUAL_FIELDS, ManualRiskInputs
from ckmrisk.risk.orchestrator import (
    MODEL_NAMES,
    Assessment,
    CalculatedInputs,
    ManualInputs,
    ModeInputs,
    assemble,
)
from ckmrisk.therapy.hazard_ratios import (
    MEDICATION_LABELS,
    HazardRatioOverrideError,
    HazardRatioTable,
)
from ckmrisk.validation.tiers import VALIDATION_RANGES, FieldValidationResult, check_all


class SessionCreatedResponse(BaseModel):
    session_id: str
    apply_treatment_effect: bool


class DraftEditRequest(BaseModel):
    value: str = Field(default="", max_length=64)


class DraftEditResponse(BaseModel):
    field: str
    accepted: bool
    draft: str


class FieldCommitResponse(BaseModel):
    field: str
    committed: str
    validation: Optional[FieldValidationPayload] = None


class ToggleRequest(BaseModel):
    value: bool


class SexRequest(BaseModel):
    sex: Optional[Literal["male", "female"]] = None


class ModeRequest(BaseModel):
    mode: InputMode


class ManualFigureRequest(BaseModel):
    value: str = Field(default="", max_length=64)


class TreatmentEffectRequest(BaseModel):
    enabled: bool


class SessionStateResponse(BaseModel):
    session_id: str
    drafts: dict[str, str]
    committed: dict[str, str]
    toggles: dict[str, bool]
    sex: Optional[Literal["male", "female"]] = None
    validation: dict[str, Optional[FieldValidationPayload]] = Field(default_factory=dict)
    mode: InputMode
    manual: dict[str, str]
    apply_treatment_effect: bool


class TreatedEstimateItem(BaseModel):
    medication: str
    medication_label: str
    hazard_ratio: Optional[float] = None
    treated: Optional[float] = None
    applicable: bool
    custom_hazard_ratio: bool


class TreatedFigureItem(BaseModel):
    figure: str
    outcome: str
    baseline: float
    estimates: list[TreatedEstimateItem] = Field(default_factory=list)


class ModelOutcome(BaseModel):
    status: Literal["available", "absent", "suppressed"]
    result: Optional[dict[str, Any]] = None
    treated: list[TreatedFigureItem] = Field(default_factory=list)


class AssessmentResponse(BaseModel):
    status: Literal["ok", "suppressed"]
    reason: Optional[str] = None
    mode: InputMode
    apply_treatment_effect: bool
    hard_error_fields: list[str] = Field(default_factory=list)
    models: dict[str, ModelOutcome]
    validation: dict[str, Optional[FieldValidationPayload]] = Field(default_factory=dict)


class CalculateRequest(BaseModel):
    mode: InputMode = "calculated"
    values: dict[str, str] = Field(default_factory=dict)
    toggles: dict[str, bool] = Field(default_factory=dict)
    sex: Optional[Literal["male", "female"]] = None
    manual: dict[str, str] = Field(default_factory=dict)
    apply_treatment_effect: bool = False


class ValidationRangeItem(BaseModel):
    hard_min: float
    soft_min: float
    soft_max: float
    hard_max: float
    unit: str


class HazardRatioItem(BaseModel):
    medication: str
    medication_label: str
    outcome: str
    default: Optional[float] = None
    override: Optional[float] = None
    effective: Optional[float] = None
    applicable: bool
    custom: bool


class HazardRatioTableResponse(BaseModel):
    entries: list[HazardRatioItem]


class HazardRatioOverrideRequest(BaseModel):
    value: str = Field(max_length=32)


class ContentIndexResponse(BaseModel):
    kind: Optional[str] = None
    keys: list[str]


class ContentResponse(BaseModel):
    kind: str
    key: str
    content: Any


class AuditTrailResponse(BaseModel):
    session_id: str
    events: list[AuditEvent] = Field(default_factory=list)


app = FastAPI(title="ckmrisk engine service")
logger = logging.getLogger(__name__)
_CONFIG: AppConfig = load_config()
logging.getLogger("ckmrisk").setLevel(_CONFIG.CKMRISK_LOG_LEVEL)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_CONFIG.CKMRISK_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_session_store() -> InMemorySessionStore:
    existing = getattr(app.state, "session_store", None)
    if isinstance(existing, InMemorySessionStore):
        return existing
    created = InMemorySessionStore(
        _CONFIG.CKMRISK_SESSION_TTL_SECONDS,
        default_apply_treatment_effect=_CONFIG.CKMRISK_DEFAULT_APPLY_TREATMENT,
    )
    setattr(app.state, "session_store", created)
    return created


def _get_hazard_ratio_table() -> HazardRatioTable:
    existing = getattr(app.state, "hazard_ratio_table", None)
    if isinstance(existing, HazardRatioTable):
        return existing
    created = HazardRatioTable()
    setattr(app.state, "hazard_ratio_table", created)
    return created


def _get_content_store() -> ContentStore:
    existing = getattr(app.state, "content_store", None)
    if isinstance(existing, ContentStore):
        return existing
    path = _CONFIG.content_path()
    try:
        created = ContentStore.packaged() if path is None else ContentStore.from_path(path)
    except ValueError as exc:
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    setattr(app.state, "content_store", created)
    return created


def _validation_payload(result: Optional[FieldValidationResult]) -> Optional[FieldValidationPayload]:
    if result is None:
        return None
    return FieldValidationPayload(severity=result.severity, message=result.message)


def _require_numeric_field(field: str) -> None:
    if field not in NUMERIC_FIELDS:
        raise HTTPException(status_code=404, detail=f"Unknown numeric field: {field}")


def _session_or_404(session_id: str) -> dict[str, Any]:
    try:
        return _get_session_store().get_session(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session_id: {session_id}") from exc


def _record_dict(record: Any) -> Optional[dict[str, Any]]:
    if record is None:
        return None
    return asdict(record)


def _serialize_assessment(
    assessment: Assessment,
    validation: dict[str, Optional[FieldValidationResult]],
) -> AssessmentResponse:
    models: dict[str, ModelOutcome] = {}
    for model in MODEL_NAMES:
        status = assessment.model_status(model)
        record = getattr(assessment.results, model) if assessment.results is not None else None
        treated = [
            TreatedFigureItem(
                figure=figure.figure,
                outcome=figure.outcome,
                baseline=figure.baseline,
                estimates=[
                    TreatedEstimateItem(
                        medication=item.medication,
                        medication_label=MEDICATION_LABELS[item.medication],
                        hazard_ratio=item.hazard_ratio,
                        treated=item.treated,
                        applicable=item.applicable,
                        custom_hazard_ratio=item.custom_hazard_ratio,
                    )
                    for item in figure.estimates
                ],
            )
            for figure in assessment.treated
            if figure.model == model
        ]
        models[model] = ModelOutcome(status=status, result=_record_dict(record), treated=treated)

    return AssessmentResponse(
        status=assessment.status,
        reason=assessment.reason,
        mode=assessment.mode,
        apply_treatment_effect=assessment.apply_treatment_effect,
        hard_error_fields=assessment.hard_error_fields,
        models=models,
        validation={name: _validation_payload(item) for name, item in validation.items()},
    )


def _run_assessment(
    inputs: ModeInputs,
    *,
    validation: dict[str, Optional[FieldValidationResult]],
    apply_treatment_effect: bool,
) -> AssessmentResponse:
    try:
        assessment = assemble(
            inputs,
            validation=validation,
            hazard_ratios=_get_hazard_ratio_table(),
            apply_treatment_effect=apply_treatment_effect,
        )
    except KdigoLookupError as exc:
        logger.error("KDIGO lookup failed: %s", exc)
        raise HTTPException(status_code=500, detail=str(exc)) from exc
    return _serialize_assessment(assessment, validation)


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/sessions", response_model=SessionCreatedResponse)
async def create_session() -> SessionCreatedResponse:
    store = _get_session_store()
    expired = store.cleanup_expired_sessions()
    if expired:
        logger.info("expired sessions purged count=%d", expired)
    session_id = store.create_session()
    log_event(store, session_id, "SESSION_CREATED", "ok")
    logger.info("session created session_id=%s", session_id)
    session = store.get_session(session_id)
    return SessionCreatedResponse(
        session_id=session_id,
        apply_treatment_effect=session["apply_treatment_effect"],
    )


@app.get("/sessions/{session_id}", response_model=SessionStateResponse)
async def session_state(session_id: str) -> SessionStateResponse:
    session = _session_or_404(session_id)
    return SessionStateResponse(
        session_id=session_id,
        drafts=session["drafts"],
        committed=session["committed"],
        toggles=session["toggles"],
        sex=session["sex"],
        validation={name: _validation_payload(item) for name, item in session["validation"].items()},
        mode=session["mode"],
        manual={name: getattr(session["manual"], name) for name in MANUAL_FIELDS},
        apply_treatment_effect=session["apply_treatment_effect"],
    )


@app.delete("/sessions/{session_id}")
async def delete_session(session_id: str) -> dict[str, str]:
    removed = _get_session_store().destroy_session(session_id, reason="client_request")
    if not removed:
        raise HTTPException(status_code=404, detail=f"Unknown session_id: {session_id}")
    logger.info("session destroyed session_id=%s", session_id)
    return {"status": "destroyed"}


@app.put("/sessions/{session_id}/fields/{field}/draft", response_model=DraftEditResponse)
async def edit_field(session_id: str, field: str, payload: DraftEditRequest) -> DraftEditResponse:
    _require_numeric_field(field)
    _session_or_404(session_id)
    accepted, draft = _get_session_store().edit_field(session_id, field, payload.value)
    return DraftEditResponse(field=field, accepted=accepted, draft=draft)


@app.post("/sessions/{session_id}/fields/{field}/commit", response_model=FieldCommitResponse)
async def commit_field(session_id: str, field: str) -> FieldCommitResponse:
    _require_numeric_field(field)
    _session_or_404(session_id)
    store = _get_session_store()
    committed, result = store.commit_field(session_id, field)
    record_commit(store, session_id, field, result)
    return FieldCommitResponse(field=field, committed=committed, validation=_validation_payload(result))


@app.put("/sessions/{session_id}/toggles/{name}")
async def set_toggle(session_id: str, name: str, payload: ToggleRequest) -> dict[str, Any]:
    if name not in TOGGLE_FIELDS:
        raise HTTPException(status_code=404, detail=f"Unknown toggle field: {name}")
    _session_or_404(session_id)
    _get_session_store().set_toggle(session_id, name, payload.value)
    return {"name": name, "value": payload.value}


@app.put("/sessions/{session_id}/sex")
async def set_sex(session_id: str, payload: SexRequest) -> dict[str, Any]:
    _session_or_404(session_id)
    _get_session_store().set_sex(session_id, payload.sex)
    return {"sex": payload.sex}


@app.put("/sessions/{session_id}/mode")
async def set_mode(session_id: str, payload: ModeRequest) -> dict[str, Any]:
    session = _session_or_404(session_id)
    store = _get_session_store()
    store.set_mode(session_id, payload.mode)
    if session["mode"] != payload.mode:
        log_event(store, session_id, "MODE_CHANGED", payload.mode, detail=f"{session['mode']} -> {payload.mode}")
    return {"mode": payload.mode}


@app.put("/sessions/{session_id}/manual/{figure}")
async def set_manual_figure(session_id: str, figure: str, payload: ManualFigureRequest) -> dict[str, Any]:
    if figure not in MANUAL_FIELDS:
        raise HTTPException(status_code=404, detail=f"Unknown manual risk figure: {figure}")
    _session_or_404(session_id)
    _get_session_store().set_manual_figure(session_id, figure, payload.value)
    return {"figure": figure, "value": payload.value}


@app.put("/sessions/{session_id}/treatment-effect")
async def set_treatment_effect(session_id: str, payload: TreatmentEffectRequest) -> dict[str, Any]:
    _session_or_404(session_id)
    store = _get_session_store()
    store.set_apply_treatment_effect(session_id, payload.enabled)
    log_event(store, session_id, "TREATMENT_EFFECT_TOGGLED", "on" if payload.enabled else "off")
    return {"enabled": payload.enabled}


@app.post("/sessions/{session_id}/reset")
async def reset_session(session_id: str) -> dict[str, str]:
    _session_or_404(session_id)
    store = _get_session_store()
    store.reset_patient_data(session_id)
    log_event(store, session_id, "SESSION_RESET", "ok")
    return {"status": "reset"}


@app.get("/sessions/{session_id}/results", response_model=AssessmentResponse)
async def session_results(session_id: str) -> AssessmentResponse:
    store = _get_session_store()
    try:
        inputs, validation, apply_treatment_effect = store.assessment_inputs(session_id)
    except KeyError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown session_id: {session_id}") from exc
    try:
        return _run_assessment(
            inputs,
            validation=validation,
            apply_treatment_effect=apply_treatment_effect,
        )
    except HTTPException as exc:
        log_event(store, session_id, "ERROR", "results", detail=str(exc.detail))
        raise


@app.get("/sessions/{session_id}/audit", response_model=AuditTrailResponse)
async def session_audit(session_id: str) -> AuditTrailResponse:
    session = _session_or_404(session_id)
    return AuditTrailResponse(session_id=session_id, events=session["audit_events"])


@app.post("/calculate", response_model=AssessmentResponse)
async def calculate(payload: CalculateRequest) -> AssessmentResponse:
    unknown_fields = sorted(set(payload.values) - set(NUMERIC_FIELDS))
    unknown_toggles = sorted(set(payload.toggles) - set(TOGGLE_FIELDS))
    unknown_manual = sorted(set(payload.manual) - set(MANUAL_FIELDS))
    if unknown_fields or unknown_toggles or unknown_manual:
        raise HTTPException(
            status_code=400,
            detail=(
                "Unknown inputs. "
                f"fields={unknown_fields}, toggles={unknown_toggles}, manual={unknown_manual}"
            ),
        )

    validation = check_all(payload.values)
    inputs: ModeInputs
    if payload.mode == "manual":
        inputs = ManualInputs(manual=ManualRiskInputs(**payload.manual))
    else:
        inputs = CalculatedInputs(
            covariates=covariates_from_text(payload.values, toggles=payload.toggles, sex=payload.sex)
        )
    return _run_assessment(
        inputs,
        validation=validation,
        apply_treatment_effect=payload.apply_treatment_effect,
    )


@app.get("/validation/ranges", response_model=dict[str, ValidationRangeItem])
async def validation_ranges() -> dict[str, ValidationRangeItem]:
    return {
        name: ValidationRangeItem(
            hard_min=item.hard_min,
            soft_min=item.soft_min,
            soft_max=item.soft_max,
            hard_max=item.hard_max,
            unit=item.unit,
        )
        for name, item in VALIDATION_RANGES.items()
    }


def _hazard_ratio_table_response(table: HazardRatioTable) -> HazardRatioTableResponse:
    return HazardRatioTableResponse(
        entries=[
            HazardRatioItem(
                medication=item.medication,
                medication_label=MEDICATION_LABELS[item.medication],
                outcome=item.outcome,
                default=item.default,
                override=item.override,
                effective=item.effective,
                applicable=item.applicable,
                custom=item.custom,
            )
            for item in table.entries()
        ]
    )


@app.get("/hazard-ratios", response_model=HazardRatioTableResponse)
async def hazard_ratios() -> HazardRatioTableResponse:
    return _hazard_ratio_table_response(_get_hazard_ratio_table())


@app.put("/hazard-ratios/{medication}/{outcome}", response_model=HazardRatioTableResponse)
async def set_hazard_ratio_override(
    medication: str,
    outcome: str,
    payload: HazardRatioOverrideRequest,
) -> HazardRatioTableResponse:
    table = _get_hazard_ratio_table()
    try:
        table.set_override(medication, outcome, payload.value)
    except HazardRatioOverrideError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _hazard_ratio_table_response(table)


@app.delete("/hazard-ratios/{medication}/{outcome}", response_model=HazardRatioTableResponse)
async def clear_hazard_ratio_override(medication: str, outcome: str) -> HazardRatioTableResponse:
    table = _get_hazard_ratio_table()
    try:
        table.clear_override(medication, outcome)
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc
    return _hazard_ratio_table_response(table)


@app.get("/content", response_model=ContentIndexResponse)
async def content_kinds() -> ContentIndexResponse:
    return ContentIndexResponse(keys=_get_content_store().kinds())


@app.get("/content/{kind}", response_model=ContentIndexResponse)
async def content_keys(kind: str) -> ContentIndexResponse:
    try:
        keys = _get_content_store().keys(kind)
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"Unknown content kind: {kind}") from exc
    return ContentIndexResponse(kind=kind, keys=keys)


@app.get("/content/{kind}/{key}", response_model=ContentResponse)
async def content_lookup(kind: str, key: str) -> ContentResponse:
    store = _get_content_store()
    try:
        content = store.lookup(kind, key)
    except ContentNotFoundError as exc:
        raise HTTPException(status_code=404, detail=f"No content for kind={kind!r} key={key!r}") from exc
    return ContentResponse(kind=kind, key=key, content=content)
