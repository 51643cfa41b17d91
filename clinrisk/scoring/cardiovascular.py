from __future__ import annotations

"""
Cardiovascular risk scorer.

Design intent:
- Framingham-style points carry the long-term baseline.
- Acute symptom combinations escalate independently of the baseline.
"""

from typing import Literal, Optional

from clinrisk.internal_core.contracts import (
    CardiovascularAssessment,
    Condition,
    ProcessedQuestionnaire,
    RiskLevel,
    risk_rank,
)

from .findings import Findings, clamp, collect_findings, tagged_points

FraminghamBand = Literal["low", "intermediate", "high", "very_high"]

_RISK_FACTOR_POINTS = (
    ("smoking", 4),
    ("hypertension", 3),
    ("diabetes_diagnosis", 3),
    ("high_cholesterol", 2),
    ("family_history_cardiac", 1),
)

_SYMPTOM_POINTS = (
    ("chest_pain", 15.0),
    ("shortness_of_breath", 10.0),
    ("palpitations", 5.0),
    ("syncope", 20.0),
)


def _age_points(age: Optional[float]) -> int:
    if age is None or age < 35:
        return 0
    if age < 45:
        return 2
    if age < 55:
        return 4
    if age < 65:
        return 6
    if age < 75:
        return 8
    return 10


def framingham_points(findings: Findings) -> tuple[int, list[str]]:
    points = _age_points(findings.age)
    factors: list[str] = ["age"] if points else []
    if findings.sex == "M":
        points += 2
        factors.append("male_sex")
    for key, value in _RISK_FACTOR_POINTS:
        if findings.has(key):
            points += value
            factors.append(key)
    return points, factors


def framingham_band(points: int) -> FraminghamBand:
    if points >= 16:
        return "very_high"
    if points >= 12:
        return "high"
    if points >= 8:
        return "intermediate"
    return "low"


def _score_band(score: float) -> FraminghamBand:
    if score >= 60:
        return "very_high"
    if score >= 45:
        return "high"
    if score >= 25:
        return "intermediate"
    return "low"


def _hypertensive_crisis(findings: Findings) -> bool:
    systolic = findings.number("systolic_bp")
    diastolic = findings.number("diastolic_bp")
    return (systolic is not None and systolic >= 180) or (
        diastolic is not None and diastolic >= 120
    )


def score_cardiovascular(questionnaire: ProcessedQuestionnaire) -> CardiovascularAssessment:
    findings = collect_findings(questionnaire)
    points, factors = framingham_points(findings)
    band = framingham_band(points)

    score = points * 3.0
    for key, value in _SYMPTOM_POINTS:
        if findings.has(key) or (key == "chest_pain" and findings.has("chest_pain_at_rest")):
            score += value
            factors.append(key)

    extra, sources = tagged_points(questionnaire, Condition.CARDIOVASCULAR)
    score = clamp(score + extra)
    factors.extend(sources)

    by_score = _score_band(score)
    level: RiskLevel = band if risk_rank(band) >= risk_rank(by_score) else by_score
    indicators: list[str] = []
    urgent_times: list[float] = []

    if findings.has("chest_pain_at_rest") and findings.has("shortness_of_breath"):
        indicators.append("ACUTE_CORONARY_SYNDROME_SUSPECTED")
        urgent_times.append(0.5)
    chest_pain = findings.has("chest_pain") or findings.has("chest_pain_at_rest")
    if findings.has("syncope") and chest_pain:
        indicators.append("CARDIAC_SYNCOPE_SUSPECTED")
        urgent_times.append(1.0)
    if _hypertensive_crisis(findings):
        indicators.append("HYPERTENSIVE_CRISIS")
        urgent_times.append(1.0)
        factors.append("blood_pressure_crisis_range")

    if indicators:
        level = "very_high"
        time_to_escalation = min(urgent_times)
    else:
        time_to_escalation = {"very_high": 2.0, "high": 12.0}.get(level, 24.0)

    return CardiovascularAssessment(
        condition=Condition.CARDIOVASCULAR,
        overall_score=score,
        risk_level=level,
        emergency_indicators=indicators,
        escalation_required=bool(indicators) or level == "very_high",
        time_to_escalation=time_to_escalation,
        contributing_factors=factors,
        framingham_points=points,
        framingham_band=band,
    )
