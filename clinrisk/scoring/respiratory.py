from __future__ import annotations

"""
Respiratory risk scorer.

Design intent:
- STOP-BANG screens for sleep apnea; a high index alone lifts the risk level.
- Asthma and COPD sub-scores are summed; acute exacerbation patterns escalate directly.
"""

from typing import Literal

from clinrisk.internal_core.contracts import (
    Condition,
    ProcessedQuestionnaire,
    RespiratoryAssessment,
    RiskLevel,
)

from .findings import Findings, clamp, collect_findings, tagged_points

_ASTHMA_POINTS = (
    ("wheezing", 10.0),
    ("shortness_of_breath", 8.0),
    ("chest_tightness", 6.0),
    ("cough", 4.0),
    ("night_symptoms", 5.0),
    ("exercise_symptoms", 3.0),
)

_COPD_POINTS = (
    ("chronic_cough", 6.0),
    ("sputum", 6.0),
    ("shortness_of_breath", 6.0),
    ("smoking", 8.0),
    ("occupational_exposure", 4.0),
)


def stop_bang_index(findings: Findings) -> tuple[int, list[str]]:
    bmi = findings.number("bmi")
    age = findings.age
    neck = findings.number("neck_circumference")
    criteria = (
        ("snoring", findings.has("snoring")),
        ("tiredness", findings.has("daytime_fatigue")),
        ("observed_apnea", findings.has("observed_apnea")),
        ("pressure", findings.has("hypertension")),
        ("bmi_over_35", bmi is not None and bmi > 35),
        ("age_over_50", age is not None and age > 50),
        ("neck_over_40cm", (neck is not None and neck > 40) or findings.has("large_neck")),
        ("male", findings.sex == "M"),
    )
    met = [name for name, present in criteria if present]
    return len(met), met


def sleep_apnea_band(index: int) -> Literal["low", "intermediate", "high"]:
    if index >= 5:
        return "high"
    if index >= 3:
        return "intermediate"
    return "low"


def asthma_score(findings: Findings) -> float:
    return sum(points for key, points in _ASTHMA_POINTS if findings.has(key))


def copd_score(findings: Findings) -> float:
    score = sum(points for key, points in _COPD_POINTS if findings.has(key))
    age = findings.age
    if age is not None and age > 40:
        score += 3.0
    return score


def _severe_dyspnea(findings: Findings) -> bool:
    return (
        findings.has("severe_dyspnea")
        or findings.scale("shortness_of_breath") >= 8
        or findings.severe("shortness_of_breath")
    )


def _level(score: float) -> RiskLevel:
    if score >= 40:
        return "critical"
    if score >= 25:
        return "high"
    if score >= 15:
        return "moderate"
    return "low"


def score_respiratory(questionnaire: ProcessedQuestionnaire) -> RespiratoryAssessment:
    findings = collect_findings(questionnaire)
    index, factors = stop_bang_index(findings)
    asthma = asthma_score(findings)
    copd = copd_score(findings)

    extra, sources = tagged_points(questionnaire, Condition.RESPIRATORY)
    factors.extend(sources)
    score = clamp(asthma + copd + index * 5.0 + extra)
    level = _level(score)

    if index >= 8:
        level = "critical"
    elif index >= 6 and level in ("low", "moderate"):
        level = "high"

    indicators: list[str] = []
    urgent_times: list[float] = []
    if (
        findings.has("wheezing")
        and _severe_dyspnea(findings)
        and findings.has("speech_difficulty")
        and findings.has("rapid_onset")
    ):
        indicators.append("SEVERE_ASTHMA_EXACERBATION")
        urgent_times.append(0.5)
        level = "critical"
    if findings.has("shortness_of_breath") and findings.has("sputum") and findings.has("fever"):
        indicators.append("COPD_EXACERBATION")
        urgent_times.append(1.0)
        level = "critical"
    if index > 5 and findings.has("hypertension"):
        indicators.append("SLEEP_APNEA_CARDIOVASCULAR_RISK")
        urgent_times.append(24.0)

    time_to_escalation = {"critical": 2.0, "high": 12.0}.get(level, 24.0)
    if urgent_times:
        time_to_escalation = min(time_to_escalation, min(urgent_times))

    return RespiratoryAssessment(
        condition=Condition.RESPIRATORY,
        overall_score=score,
        risk_level=level,
        emergency_indicators=indicators,
        escalation_required=level == "critical" or bool(indicators),
        time_to_escalation=time_to_escalation,
        contributing_factors=factors,
        sleep_apnea_index=index,
        sleep_apnea_band=sleep_apnea_band(index),
        asthma_score=asthma,
        copd_score=copd,
    )
