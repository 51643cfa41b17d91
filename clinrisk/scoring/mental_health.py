from __future__ import annotations

"""
Mental-health risk scorer.

Design intent:
- Use validated PHQ-9 / GAD-7 item sums for depression and anxiety indices.
- Treat suicide risk as its own sub-assessment that overrides every total.
- Any stated plan triggers immediate intervention, whatever the other answers.
"""

import math
from typing import Literal

from clinrisk.internal_core.contracts import (
    AnswerValue,
    Condition,
    MentalHealthAssessment,
    ProcessedQuestionnaire,
    RiskLevel,
    SuicideRisk,
)

from .findings import Findings, clamp, collect_findings, is_affirmative, tagged_points
from .items import GAD7_ITEMS, PHQ9_ITEMS, normalize_identifier

_SUICIDE_BONUS = {"imminent": 50.0, "high": 30.0, "moderate": 15.0, "low": 5.0, "none": 0.0}
_PROTECTIVE_ITEMS = ("social_support", "reasons_for_living", "engaged_in_treatment")


# PHQ-9 / GAD-7 response options, English and Portuguese.
_FREQUENCY_LABELS = {
    "not_at_all": 0,
    "never": 0,
    "nenhuma_vez": 0,
    "nunca": 0,
    "several_days": 1,
    "varios_dias": 1,
    "more_than_half_the_days": 2,
    "mais_da_metade_dos_dias": 2,
    "nearly_every_day": 3,
    "quase_todos_os_dias": 3,
}


def _item_points(answer: AnswerValue) -> int:
    if answer is None:
        return 0
    if isinstance(answer, bool):
        return 2 if answer else 0
    if isinstance(answer, (int, float)):
        number = float(answer)
    else:
        label = normalize_identifier(str(answer))
        if label in _FREQUENCY_LABELS:
            return _FREQUENCY_LABELS[label]
        try:
            number = float(str(answer).strip().replace(",", "."))
        except ValueError:
            return 2 if is_affirmative(answer) else 0
    if not math.isfinite(number):
        return 0
    return int(max(0, min(3, round(number))))


def depression_index(findings: Findings) -> int:
    return sum(_item_points(findings.values.get(key)) for key in PHQ9_ITEMS)


def anxiety_index(findings: Findings) -> int:
    return sum(_item_points(findings.values.get(key)) for key in GAD7_ITEMS)


def depression_severity(
    index: int,
) -> Literal["minimal", "mild", "moderate", "moderately_severe", "severe"]:
    if index >= 20:
        return "severe"
    if index >= 15:
        return "moderately_severe"
    if index >= 10:
        return "moderate"
    if index >= 5:
        return "mild"
    return "minimal"


def anxiety_severity(index: int) -> Literal["minimal", "mild", "moderate", "severe"]:
    if index >= 15:
        return "severe"
    if index >= 10:
        return "moderate"
    if index >= 5:
        return "mild"
    return "minimal"


def assess_suicide_risk(findings: Findings) -> SuicideRisk:
    ideation = findings.has("suicidal_ideation") or _item_points(findings.values.get("phq9_9")) > 0
    plan = findings.has("suicide_plan")
    intent = findings.has("suicide_intent")
    means = findings.has("access_to_means")
    prior_attempt = findings.has("prior_attempt")
    hopelessness = findings.has("hopelessness")

    risk_factors = [
        name
        for name, present in (
            ("suicidal_ideation", ideation),
            ("suicide_plan", plan),
            ("suicide_intent", intent),
            ("access_to_means", means),
            ("prior_attempt", prior_attempt),
            ("hopelessness", hopelessness),
        )
        if present
    ]
    protective = [key for key in _PROTECTIVE_ITEMS if findings.has(key)]

    if plan:
        band = "imminent" if (intent or means or prior_attempt) else "high"
        return SuicideRisk(
            risk_band=band,
            immediate_intervention=True,
            risk_factors=risk_factors,
            protective_factors=protective,
        )

    if ideation:
        points = 2 + (1 if hopelessness else 0) + (2 if prior_attempt else 0) - len(protective)
        if points >= 5:
            band = "high"
        elif points >= 3:
            band = "moderate"
        else:
            band = "low"
    elif hopelessness:
        band = "low"
    else:
        band = "none"

    return SuicideRisk(
        risk_band=band,
        immediate_intervention=False,
        risk_factors=risk_factors,
        protective_factors=protective,
    )


def _level(score: float, band: str) -> RiskLevel:
    if score >= 60 or band == "imminent":
        return "critical"
    if score >= 40 or band == "high":
        return "high"
    if score >= 20 or band == "moderate":
        return "moderate"
    return "low"


def score_mental_health(questionnaire: ProcessedQuestionnaire) -> MentalHealthAssessment:
    findings = collect_findings(questionnaire)
    dep = depression_index(findings)
    anx = anxiety_index(findings)
    suicide = assess_suicide_risk(findings)

    factors: list[str] = []
    if dep:
        factors.append(f"phq9:{dep}")
    if anx:
        factors.append(f"gad7:{anx}")
    factors.extend(suicide.risk_factors)

    extra, sources = tagged_points(questionnaire, Condition.MENTAL_HEALTH)
    factors.extend(sources)
    score = clamp(dep * 1.5 + anx + _SUICIDE_BONUS[suicide.risk_band] + extra)
    level = _level(score, suicide.risk_band)

    indicators: list[str] = []
    if suicide.risk_band == "imminent":
        indicators.append("SUICIDE_RISK_IMMINENT")
    elif suicide.risk_band == "high":
        indicators.append("SUICIDE_RISK_HIGH")
    if dep >= 20:
        indicators.append("SEVERE_DEPRESSION")
        if level in ("low", "moderate"):
            level = "high"
    if anx >= 15:
        indicators.append("SEVERE_ANXIETY")

    if suicide.risk_band == "imminent":
        time_to_escalation = 0.25
    elif suicide.immediate_intervention or suicide.risk_band == "high":
        time_to_escalation = 1.0
    else:
        time_to_escalation = {"critical": 2.0, "high": 12.0}.get(level, 48.0)

    return MentalHealthAssessment(
        condition=Condition.MENTAL_HEALTH,
        overall_score=score,
        risk_level=level,
        emergency_indicators=indicators,
        escalation_required=suicide.immediate_intervention or level in ("critical", "high"),
        time_to_escalation=time_to_escalation,
        contributing_factors=factors,
        depression_index=dep,
        depression_severity=depression_severity(dep),
        anxiety_index=anx,
        anxiety_severity=anxiety_severity(anx),
        suicide_risk=suicide,
    )
