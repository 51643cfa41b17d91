from __future__ import annotations

"""
HTTP surface for the clinrisk engine.

Design intent:
- Validate request bodies with pydantic before the engine sees them.
- Delegate all scoring and escalation decisions to the engine.
- Map domain failures to predictable status codes.
"""

import logging
from typing import Any, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field

from clinrisk.internal_core.config import load_config
from clinrisk.internal_core.contracts import (
    AssessmentResult,
    BulkAssessmentResult,
    EmergencyReassessment,
    ProcessedQuestionnaire,
    SubjectProfile,
    TemporalReport,
)
from clinrisk.risk.engine import RiskAssessmentEngine
from clinrisk.risk.temporal import WINDOWS, UnknownWindowError


class AssessRequest(BaseModel):
    questionnaire: ProcessedQuestionnaire
    profile: Optional[SubjectProfile] = None
    track: bool = True


class EmergencyRequest(BaseModel):
    subject_id: str = Field(min_length=1, max_length=128)
    symptoms: list[str] = Field(default_factory=list)
    medications: list[str] = Field(default_factory=list)


class BulkAssessRequest(BaseModel):
    items: list[Any] = Field(default_factory=list)


app = FastAPI(title="clinrisk risk assessment service")
logger = logging.getLogger(__name__)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _get_engine() -> RiskAssessmentEngine:
    existing = getattr(app.state, "risk_engine", None)
    if isinstance(existing, RiskAssessmentEngine):
        return existing
    config = load_config()
    logging.getLogger("clinrisk").setLevel(config.CLINRISK_LOG_LEVEL.upper())
    created = RiskAssessmentEngine(config)
    setattr(app.state, "risk_engine", created)
    return created


@app.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/risk/assess", response_model=AssessmentResult)
async def risk_assess(payload: AssessRequest) -> AssessmentResult:
    engine = _get_engine()
    result = engine.assess(payload.questionnaire, payload.profile)
    if payload.track:
        engine.track(result)
    return result


@app.post("/risk/emergency", response_model=EmergencyReassessment)
async def risk_emergency(payload: EmergencyRequest) -> EmergencyReassessment:
    if not any(item.strip() for item in payload.symptoms):
        raise HTTPException(status_code=400, detail="Provide at least one symptom.")
    return _get_engine().emergency_reassessment(
        payload.subject_id,
        payload.symptoms,
        payload.medications,
    )


@app.get("/risk/temporal/{subject_id}", response_model=TemporalReport)
async def risk_temporal(
    subject_id: str,
    window: str = Query(default="30d"),
) -> TemporalReport:
    if window not in WINDOWS:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid window: {window}. Expected one of: {', '.join(WINDOWS)}",
        )
    engine = _get_engine()
    if not engine.tracker.has_history(subject_id):
        raise HTTPException(status_code=404, detail=f"No risk history for subject: {subject_id}")
    try:
        return engine.temporal_report(subject_id, window)
    except UnknownWindowError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@app.post("/risk/bulk-assess", response_model=BulkAssessmentResult)
async def risk_bulk_assess(payload: BulkAssessRequest) -> BulkAssessmentResult:
    if not payload.items:
        raise HTTPException(status_code=400, detail="Provide at least one item.")
    result = _get_engine().bulk_assess(payload.items)
    logger.info(
        "bulk-assess request total=%s failed=%s",
        result.total,
        result.failed,
    )
    return result
