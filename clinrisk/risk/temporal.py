from __future__ import annotations

"""
Track risk scores over time and summarize their trajectory.

Design intent:
- History is append-only; a correction is a new point, never an edit.
- Writes cross the persistence boundary through an explicit retry policy.
- Exhausted writes are dead-lettered and audited instead of failing the caller.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Dict, List, Mapping, Optional, Sequence

import numpy as np

from clinrisk.internal_core.audit import log_event
from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    AssessmentResult,
    TemporalDataPoint,
    TemporalProjection,
    TemporalReport,
    TemporalRiskRecord,
    Trend,
)
from clinrisk.internal_core.history_store import InMemoryRiskHistoryStore, RiskHistoryRepository
from clinrisk.internal_core.retry import RetryPolicy

logger = logging.getLogger(__name__)

COMPOSITE_SERIES = "composite"
SERIES_ORDER = (COMPOSITE_SERIES, *(c.value for c in ALL_CONDITIONS))

WINDOWS: Mapping[str, int] = {
    "7d": 7,
    "30d": 30,
    "90d": 90,
    "180d": 180,
    "1y": 365,
}


class UnknownWindowError(ValueError):
    pass


@dataclass(frozen=True)
class DeadLetter:
    subject_id: str
    series: str
    point: TemporalDataPoint
    error: str


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def classify_trend(scores: Sequence[float], delta: float) -> tuple[Trend, float, float]:
    """Compare the recent half of a series against the earlier half."""
    if not scores:
        return "stable", 0.0, 0.0
    if len(scores) == 1:
        return "stable", float(scores[0]), float(scores[0])
    half = len(scores) // 2
    earlier = float(np.mean(scores[:half]))
    recent = float(np.mean(scores[half:]))
    if recent - earlier > delta:
        return "worsening", recent, earlier
    if earlier - recent > delta:
        return "improving", recent, earlier
    return "stable", recent, earlier


def project(points: Sequence[TemporalDataPoint], horizon_days: int) -> Optional[TemporalProjection]:
    """Least-squares line through the series, evaluated `horizon_days` past the last point."""
    if len(points) < 2:
        return None
    origin = points[0].timestamp
    x = np.array([(p.timestamp - origin).total_seconds() / 86400.0 for p in points])
    y = np.array([p.score for p in points])
    if float(np.ptp(x)) == 0.0:
        return None
    slope, intercept = np.polyfit(x, y, 1)
    projected = float(intercept + slope * (x[-1] + horizon_days))
    return TemporalProjection(
        horizon_days=horizon_days,
        projected_score=max(0.0, min(100.0, projected)),
        slope_per_day=float(slope),
    )


def _next_assessment_days(records: Sequence[TemporalRiskRecord]) -> int:
    slopes = [r.projection.slope_per_day for r in records if r.projection is not None]
    if not slopes:
        return 30
    steepest = max(slopes, key=abs)
    if steepest > 5:
        return 7
    if steepest > 2:
        return 14
    if steepest < -2:
        return 60
    return 30


def _intervention_opportunities(records: Sequence[TemporalRiskRecord]) -> list[str]:
    items: list[str] = []
    for record in records:
        name = record.condition.replace("_", " ")
        slope = record.projection.slope_per_day if record.projection else 0.0
        if record.trend == "worsening" or slope > 1:
            items.append(f"Consider early intervention for worsening {name} risk ({slope:.2f}/day).")
        elif record.trend == "stable" and record.points and record.points[-1].score > 40:
            items.append(f"Consider optimizing management of stable {name} risk.")
        elif record.trend == "improving":
            items.append(f"Suggest maintaining current strategy for improving {name} risk.")
    return items


class TemporalRiskTracker:
    def __init__(
        self,
        repository: RiskHistoryRepository,
        retry_policy: Optional[RetryPolicy] = None,
        *,
        trend_delta: float = 5.0,
        horizon_days: int = 7,
        audit_store: Optional[InMemoryRiskHistoryStore] = None,
    ) -> None:
        self._repository = repository
        self._retry = retry_policy or RetryPolicy()
        self._trend_delta = trend_delta
        self._horizon_days = horizon_days
        if audit_store is None and isinstance(repository, InMemoryRiskHistoryStore):
            audit_store = repository
        self._audit_store = audit_store
        self._dead_letter_lock = Lock()
        self._dead_letters: List[DeadLetter] = []

    @property
    def repository(self) -> RiskHistoryRepository:
        return self._repository

    def _audit(self, subject_id: str, event_type, code: str, detail: str) -> None:
        if self._audit_store is not None:
            log_event(self._audit_store, subject_id, event_type, code, detail)

    def record(
        self,
        subject_id: str,
        result: AssessmentResult,
        timestamp: Optional[datetime] = None,
    ) -> bool:
        ts = _as_utc(timestamp or result.assessed_at)
        series_scores = [(COMPOSITE_SERIES, result.composite.overall_score)]
        series_scores.extend(
            (condition.value, assessment.overall_score)
            for condition, assessment in result.condition_assessments().items()
        )

        failures = 0
        for series, score in series_scores:
            point = TemporalDataPoint(timestamp=ts, score=score, assessment_id=result.assessment_id)
            try:
                self._retry.run(self._repository.append, subject_id, series, point)
            except Exception as exc:
                failures += 1
                with self._dead_letter_lock:
                    self._dead_letters.append(
                        DeadLetter(subject_id=subject_id, series=series, point=point, error=str(exc))
                    )
                logger.error(
                    "history write dead-lettered subject_id=%s series=%s error=%s",
                    subject_id,
                    series,
                    exc,
                )
                self._audit(
                    subject_id,
                    "HISTORY_WRITE_FAILED",
                    "DEAD_LETTER",
                    f"series={series} assessment_id={result.assessment_id} error={exc}",
                )

        if failures == 0:
            self._audit(
                subject_id,
                "ASSESSMENT_RECORDED",
                "OK",
                f"assessment_id={result.assessment_id} composite={result.composite.overall_score:.1f}",
            )
        return failures == 0

    def dead_letters(self) -> List[DeadLetter]:
        with self._dead_letter_lock:
            return list(self._dead_letters)

    def has_history(self, subject_id: str) -> bool:
        return any(self._repository.load(subject_id).values())

    def latest_score(self, subject_id: str, series: str = COMPOSITE_SERIES) -> Optional[float]:
        points = self._repository.load(subject_id).get(series) or []
        return points[-1].score if points else None

    def report(
        self,
        subject_id: str,
        window: str = "30d",
        now: Optional[datetime] = None,
    ) -> TemporalReport:
        if window not in WINDOWS:
            raise UnknownWindowError(
                f"Unknown window: {window}. Expected one of: {', '.join(WINDOWS)}"
            )
        now = _as_utc(now or datetime.now(timezone.utc))
        days = WINDOWS[window]
        loaded: Dict[str, List[TemporalDataPoint]] = self._repository.load(
            subject_id, since=now - timedelta(days=days)
        )

        records: list[TemporalRiskRecord] = []
        for series in sorted(loaded, key=lambda s: (SERIES_ORDER.index(s) if s in SERIES_ORDER else 99, s)):
            points = [p for p in loaded[series] if p.timestamp <= now]
            if not points:
                continue
            trend, recent, earlier = classify_trend([p.score for p in points], self._trend_delta)
            records.append(
                TemporalRiskRecord(
                    subject_id=subject_id,
                    condition=series,
                    points=points,
                    trend=trend,
                    projection=project(points, self._horizon_days),
                    recent_average=recent,
                    earlier_average=earlier,
                )
            )

        return TemporalReport(
            subject_id=subject_id,
            window=window,
            window_days=days,
            generated_at=now,
            records=records,
            next_assessment_recommended=now + timedelta(days=_next_assessment_days(records)),
            intervention_opportunities=_intervention_opportunities(records),
        )
