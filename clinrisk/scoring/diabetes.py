from __future__ import annotations

"""
Diabetes risk scorer.

Design intent:
- Anchor the score on the classic triad (polydipsia, polyphagia, polyuria).
- Estimate ketoacidosis likelihood separately and escalate on it regardless of total score.
"""

from clinrisk.internal_core.contracts import (
    ClassicTriad,
    Condition,
    DiabetesAssessment,
    ProcessedQuestionnaire,
    RiskLevel,
)

from .findings import Findings, clamp, collect_findings, tagged_points

TRIAD_WEIGHTS = {
    "excessive_thirst": 20.0,
    "excessive_hunger": 20.0,
    "frequent_urination": 20.0,
}

_ADDITIONAL_FACTORS = (
    ("rapid_weight_loss", 15.0),
    ("fatigue", 10.0),
    ("blurred_vision", 10.0),
    ("slow_healing", 8.0),
    ("frequent_infections", 8.0),
    ("family_history_diabetes", 12.0),
    ("obesity", 10.0),
)

_DKA_FACTORS = (
    ("rapid_weight_loss", 25.0),
    ("nausea_vomiting", 25.0),
    ("fruity_breath", 20.0),
    ("abdominal_pain", 10.0),
)


def _classic_triad(findings: Findings) -> ClassicTriad:
    present = {key: findings.has(key) for key in TRIAD_WEIGHTS}
    return ClassicTriad(
        polydipsia=present["excessive_thirst"],
        polyphagia=present["excessive_hunger"],
        polyuria=present["frequent_urination"],
        triad_complete=all(present.values()),
        triad_score=sum(weight for key, weight in TRIAD_WEIGHTS.items() if present[key]),
    )


def ketoacidosis_risk(findings: Findings, triad: ClassicTriad) -> float:
    count = sum((triad.polydipsia, triad.polyphagia, triad.polyuria))
    risk = 45.0 if triad.triad_complete else count * 10.0
    for key, points in _DKA_FACTORS:
        if findings.has(key):
            risk += points
    return clamp(risk)


def _level(score: float) -> RiskLevel:
    if score >= 60:
        return "critical"
    if score >= 40:
        return "high"
    if score >= 25:
        return "moderate"
    return "low"


def score_diabetes(
    questionnaire: ProcessedQuestionnaire, *, dka_threshold: float = 70.0
) -> DiabetesAssessment:
    findings = collect_findings(questionnaire)
    triad = _classic_triad(findings)
    factors: list[str] = [key for key in TRIAD_WEIGHTS if findings.has(key)]

    score = triad.triad_score
    for key, points in _ADDITIONAL_FACTORS:
        if findings.has(key):
            score += points
            factors.append(key)

    age = findings.age
    if age is not None and age > 65:
        score += 10.0
        factors.append("age_over_65")
    elif age is not None and age > 45:
        score += 5.0
        factors.append("age_over_45")

    extra, sources = tagged_points(questionnaire, Condition.DIABETES)
    score = clamp(score + extra)
    factors.extend(sources)

    dka = ketoacidosis_risk(findings, triad)
    indicators: list[str] = []
    level = _level(score)
    time_to_escalation = {"critical": 12.0, "high": 24.0}.get(level, 72.0)

    if findings.has("fruity_breath"):
        indicators.append("KETOSIS_DETECTED")
        if level in ("low", "moderate"):
            level = "high"
        time_to_escalation = min(time_to_escalation, 12.0)

    if findings.has("hypoglycemia_symptoms") and findings.has("hypoglycemic_medication"):
        indicators.append("HYPOGLYCEMIA_RISK")
        if level in ("low", "moderate"):
            level = "high"
        time_to_escalation = min(time_to_escalation, 2.0)

    if dka >= dka_threshold:
        indicators.insert(0, "DIABETIC_KETOACIDOSIS_RISK")
        level = "critical"
        time_to_escalation = min(time_to_escalation, 2.0)

    return DiabetesAssessment(
        condition=Condition.DIABETES,
        overall_score=score,
        risk_level=level,
        emergency_indicators=indicators,
        escalation_required=level == "critical" or bool(indicators),
        time_to_escalation=time_to_escalation,
        contributing_factors=factors,
        classic_triad=triad,
        ketoacidosis_risk=dka,
    )
