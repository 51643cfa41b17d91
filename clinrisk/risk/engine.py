from __future__ import annotations

"""
Risk assessment orchestration.

Design intent:
- Score the four conditions concurrently, join, then aggregate and detect.
- Keep temporal recording off the synchronous path.
- Hold no per-request state; construct once and share.
"""

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Sequence
from uuid import uuid4

from pydantic import ValidationError

from clinrisk.internal_core.config import EngineConfig, load_config
from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    AssessmentResult,
    BulkAssessmentResult,
    BulkItemResult,
    Condition,
    ConditionRiskAssessment,
    EmergencyReassessment,
    ProcessedQuestionnaire,
    SubjectProfile,
    TemporalReport,
)
from clinrisk.internal_core.audit import log_event
from clinrisk.internal_core.history_store import InMemoryRiskHistoryStore
from clinrisk.internal_core.retry import RetryPolicy
from clinrisk.scoring.findings import collect_findings
from clinrisk.scoring.registry import build_scorer_table, score_all

from .compound import CompoundCoefficients, aggregate
from .emergency import SYSTEM_FAILURE_INDICATOR, detect
from .reassessment import build_emergency_questionnaire
from .temporal import TemporalRiskTracker

logger = logging.getLogger(__name__)

_RECOMMENDED_ACTIONS = {
    "emergency_dispatch": "Contact emergency services now.",
    "human_review": "A clinician should review this case promptly.",
    "ai_only": "Continue monitoring; no emergency signs detected.",
}


def _effective_profile(
    questionnaire: ProcessedQuestionnaire, profile: Optional[SubjectProfile]
) -> SubjectProfile:
    """Fill missing age/gender from questionnaire answers."""
    findings = collect_findings(questionnaire)
    base = profile or SubjectProfile()
    updates: dict[str, Any] = {}
    if base.age is None and findings.age is not None and 0 <= findings.age <= 130:
        updates["age"] = int(findings.age)
    if base.gender is None and findings.sex is not None:
        updates["gender"] = findings.sex
    return base.model_copy(update=updates) if updates else base


class RiskAssessmentEngine:
    def __init__(
        self,
        config: Optional[EngineConfig] = None,
        tracker: Optional[TemporalRiskTracker] = None,
    ) -> None:
        self._config = config or load_config()
        self._scorers = build_scorer_table(dka_threshold=self._config.CLINRISK_DKA_THRESHOLD)
        self._coefficients = CompoundCoefficients.from_config(self._config)
        if tracker is None:
            tracker = TemporalRiskTracker(
                InMemoryRiskHistoryStore(),
                RetryPolicy(
                    max_attempts=self._config.CLINRISK_HISTORY_RETRY_ATTEMPTS,
                    backoff_sec=self._config.CLINRISK_HISTORY_RETRY_BACKOFF_SEC,
                ),
                trend_delta=self._config.CLINRISK_TREND_DELTA,
                horizon_days=self._config.CLINRISK_PROJECTION_HORIZON_DAYS,
            )
        self._tracker = tracker
        self._scorer_pool = ThreadPoolExecutor(
            max_workers=self._config.CLINRISK_SCORER_WORKERS, thread_name_prefix="clinrisk-score"
        )
        self._bulk_pool = ThreadPoolExecutor(
            max_workers=self._config.CLINRISK_BULK_MAX_CONCURRENCY, thread_name_prefix="clinrisk-bulk"
        )
        self._history_pool = ThreadPoolExecutor(
            max_workers=self._config.CLINRISK_HISTORY_WORKERS, thread_name_prefix="clinrisk-history"
        )

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def tracker(self) -> TemporalRiskTracker:
        return self._tracker

    def _score_conditions(
        self, questionnaire: ProcessedQuestionnaire
    ) -> dict[Condition, ConditionRiskAssessment]:
        if not self._config.CLINRISK_PARALLEL_SCORING:
            return score_all(questionnaire, self._scorers)
        futures = {c: self._scorer_pool.submit(self._scorers[c], questionnaire) for c in ALL_CONDITIONS}
        return {c: futures[c].result() for c in ALL_CONDITIONS}

    def assess(
        self,
        questionnaire: ProcessedQuestionnaire,
        profile: Optional[SubjectProfile] = None,
    ) -> AssessmentResult:
        assessments = self._score_conditions(questionnaire)
        composite = aggregate(
            assessments, _effective_profile(questionnaire, profile), self._coefficients
        )
        alerts, protocol = detect(composite, assessments, questionnaire.emergency_flags)

        result = AssessmentResult(
            assessment_id=uuid4().hex,
            subject_id=questionnaire.subject_id,
            questionnaire_id=questionnaire.questionnaire_id,
            assessed_at=datetime.now(timezone.utc),
            diabetes=assessments[Condition.DIABETES],
            cardiovascular=assessments[Condition.CARDIOVASCULAR],
            mental_health=assessments[Condition.MENTAL_HEALTH],
            respiratory=assessments[Condition.RESPIRATORY],
            composite=composite,
            alerts=alerts,
            protocol=protocol,
        )
        if any(a.indicator == SYSTEM_FAILURE_INDICATOR for a in alerts):
            self._audit(
                questionnaire.subject_id,
                "DETECTOR_FAILSAFE",
                "FAILSAFE",
                f"assessment_id={result.assessment_id}",
            )
        logger.info(
            "assessment subject_id=%s composite=%.1f level=%s alerts=%s escalation=%s",
            result.subject_id,
            composite.overall_score,
            composite.risk_level,
            len(alerts),
            protocol.escalation_level,
        )
        return result

    def _audit(self, subject_id: str, event_type, code: str, detail: str) -> None:
        store = self._tracker.repository
        if isinstance(store, InMemoryRiskHistoryStore):
            log_event(store, subject_id, event_type, code, detail)

    def track(self, result: AssessmentResult) -> "Future[bool]":
        return self._history_pool.submit(self._tracker.record, result.subject_id, result)

    def assess_and_track(
        self,
        questionnaire: ProcessedQuestionnaire,
        profile: Optional[SubjectProfile] = None,
    ) -> AssessmentResult:
        result = self.assess(questionnaire, profile)
        self.track(result)
        return result

    def emergency_reassessment(
        self,
        subject_id: str,
        symptoms: Sequence[str],
        medications: Optional[Sequence[str]] = None,
    ) -> EmergencyReassessment:
        previous = self._tracker.latest_score(subject_id)
        questionnaire, match = build_emergency_questionnaire(subject_id, symptoms, medications or ())
        result = self.assess(questionnaire)
        self._audit(
            subject_id,
            "REASSESSMENT",
            "EMERGENCY",
            f"matched={len(match.items)} unmatched={len(match.unmatched)} level={result.protocol.escalation_level}",
        )
        return EmergencyReassessment(
            subject_id=subject_id,
            assessed_at=result.assessed_at,
            matched_items=list(match.items),
            unmatched_symptoms=list(match.unmatched),
            composite_score=result.composite.overall_score,
            risk_level=result.composite.risk_level,
            alerts=result.alerts,
            protocol=result.protocol,
            recommended_action=_RECOMMENDED_ACTIONS[result.protocol.escalation_level],
            previous_composite_score=previous,
        )

    def temporal_report(self, subject_id: str, window: str = "30d") -> TemporalReport:
        return self._tracker.report(subject_id, window)

    def _bulk_item(self, index: int, item: Any) -> BulkItemResult:
        started = time.perf_counter()
        subject_id = None
        if isinstance(item, Mapping):
            raw_subject = item.get("subject_id")
            subject_id = raw_subject if isinstance(raw_subject, str) else None
        try:
            if isinstance(item, ProcessedQuestionnaire):
                questionnaire, profile = item, None
            elif isinstance(item, Mapping) and "questionnaire" in item:
                questionnaire = ProcessedQuestionnaire.model_validate(item["questionnaire"])
                raw_profile = item.get("profile")
                profile = SubjectProfile.model_validate(raw_profile) if raw_profile else None
            else:
                questionnaire = ProcessedQuestionnaire.model_validate(item)
                profile = None
            subject_id = questionnaire.subject_id
            result = self.assess(questionnaire, profile)
        except ValidationError as exc:
            logger.warning("bulk item invalid index=%s errors=%s", index, exc.error_count())
            error = str(exc)
        except Exception as exc:
            logger.exception("bulk item failed index=%s", index)
            error = str(exc)
        else:
            return BulkItemResult(
                index=index,
                subject_id=subject_id,
                status="completed",
                result=result,
                latency_ms=(time.perf_counter() - started) * 1000.0,
            )
        return BulkItemResult(
            index=index,
            subject_id=subject_id,
            status="failed",
            error=error,
            latency_ms=(time.perf_counter() - started) * 1000.0,
        )

    def bulk_assess(self, items: Sequence[Any]) -> BulkAssessmentResult:
        futures = [self._bulk_pool.submit(self._bulk_item, i, item) for i, item in enumerate(items)]
        results = [future.result() for future in futures]
        completed = sum(1 for r in results if r.status == "completed")
        logger.info(
            "bulk assessment total=%s completed=%s failed=%s",
            len(results),
            completed,
            len(results) - completed,
        )
        return BulkAssessmentResult(
            total=len(results),
            completed=completed,
            failed=len(results) - completed,
            items=results,
        )

    def close(self) -> None:
        self._history_pool.shutdown(wait=True)
        self._bulk_pool.shutdown(wait=True)
        self._scorer_pool.shutdown(wait=True)
