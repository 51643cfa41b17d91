from __future__ import annotations

"""
Combine per-condition assessments into one composite risk.

Design intent:
- Comorbidity only ever raises risk: the composite never drops below the worst condition.
- Every coefficient comes from configuration; bounds are enforced here.
- Recommendations stay conservative (consider/suggest), never prescriptive.
"""

import logging
from dataclasses import dataclass
from typing import Literal, Mapping, Optional

from clinrisk.internal_core.config import EngineConfig
from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    CompositeRiskAssessment,
    CompoundAnalysis,
    Condition,
    ConditionRiskAssessment,
    MentalHealthAssessment,
    SocioeconomicContext,
    SubjectProfile,
    SynergyRecord,
    risk_rank,
)
from clinrisk.scoring.findings import clamp

logger = logging.getLogger(__name__)

_D = Condition.DIABETES
_C = Condition.CARDIOVASCULAR
_M = Condition.MENTAL_HEALTH
_R = Condition.RESPIRATORY

SynergyType = Literal["additive", "multiplicative", "exponential", "protective"]


@dataclass(frozen=True)
class PairSpec:
    correlation: float
    synergy_type: SynergyType
    factor: float
    multiplier: float
    evidence: str


_PAIRS: Mapping[frozenset, PairSpec] = {
    frozenset({_D, _C}): PairSpec(
        0.85, "exponential", 2.5, 1.8, "Diabetes markedly accelerates atherosclerotic disease."
    ),
    frozenset({_D, _M}): PairSpec(
        0.65, "multiplicative", 1.8, 1.4, "Depression worsens glycemic control and adherence."
    ),
    frozenset({_D, _R}): PairSpec(
        0.70, "multiplicative", 1.6, 1.2, "Sleep apnea and insulin resistance reinforce each other."
    ),
    frozenset({_C, _M}): PairSpec(
        0.55, "multiplicative", 1.4, 1.4, "Depression is an independent cardiac risk factor."
    ),
    frozenset({_C, _R}): PairSpec(
        0.60, "additive", 1.3, 1.0, "Hypoxemia adds cardiac strain."
    ),
    frozenset({_M, _R}): PairSpec(
        0.45, "additive", 1.2, 1.0, "Chronic dyspnea is associated with anxiety."
    ),
}

# Share of each condition in the contribution ranking.
_CONTRIBUTION_WEIGHTS = {_D: 0.3, _C: 0.25, _M: 0.25, _R: 0.2}

_SOCIAL_FACTORS = {
    "family_support_strong": 0.85,
    "religious_coping": 0.9,
    "social_isolation": 1.4,
    "domestic_violence": 1.6,
    "substance_abuse_family": 1.3,
}
_INSURANCE_FACTORS = {"public": 1.2, "none": 1.2, "private": 0.9}
_LOCATION_FACTORS = {"rural": 1.3, "urban_periphery": 1.15, "urban": 1.0}
_REGION_FACTORS = {
    "southeast": 0.95,
    "northeast": 1.15,
    "north": 1.25,
    "south": 0.9,
    "center_west": 1.1,
}


@dataclass(frozen=True)
class CompoundCoefficients:
    present_threshold: float = 25.0
    high_condition_threshold: float = 50.0
    spillover_weight: float = 0.1
    interaction_weight: float = 0.1
    penalty_base: float = 1.3
    penalty_cap: float = 2.0
    synergy_cap: float = 3.0
    socioeconomic_min: float = 0.8
    socioeconomic_max: float = 1.5

    @classmethod
    def from_config(cls, config: EngineConfig) -> "CompoundCoefficients":
        return cls(
            present_threshold=config.CLINRISK_PRESENT_THRESHOLD,
            high_condition_threshold=config.CLINRISK_HIGH_CONDITION_THRESHOLD,
            spillover_weight=config.CLINRISK_SPILLOVER_WEIGHT,
            interaction_weight=config.CLINRISK_INTERACTION_WEIGHT,
            penalty_base=config.CLINRISK_PENALTY_BASE,
            penalty_cap=config.CLINRISK_PENALTY_CAP,
            synergy_cap=config.CLINRISK_SYNERGY_CAP,
            socioeconomic_min=config.CLINRISK_SOCIOECONOMIC_MIN,
            socioeconomic_max=config.CLINRISK_SOCIOECONOMIC_MAX,
        )


DEFAULT_COEFFICIENTS = CompoundCoefficients()


def pair_correlation(first: Condition, second: Condition) -> float:
    spec = _PAIRS.get(frozenset({first, second}))
    return spec.correlation if spec else 0.0


def socioeconomic_multiplier(
    context: Optional[SocioeconomicContext],
    coefficients: CompoundCoefficients = DEFAULT_COEFFICIENTS,
) -> float:
    if context is None:
        return 1.0
    value = 1.0
    if context.low_education:
        value *= 1.25
    if context.low_income:
        value *= 1.3
    for factor in context.social_factors:
        value *= _SOCIAL_FACTORS.get(factor, 1.0)
    return clamp(value, coefficients.socioeconomic_min, coefficients.socioeconomic_max)


def access_to_care_multiplier(
    context: Optional[SocioeconomicContext],
    coefficients: CompoundCoefficients = DEFAULT_COEFFICIENTS,
) -> float:
    if context is None:
        return 1.0
    value = 1.0
    if context.insurance:
        value *= _INSURANCE_FACTORS.get(context.insurance, 1.0)
    if context.location:
        value *= _LOCATION_FACTORS.get(context.location, 1.0)
    if context.region:
        value *= _REGION_FACTORS.get(context.region, 1.0)
    return clamp(value, coefficients.socioeconomic_min, coefficients.socioeconomic_max)


def _age_adjustment(age: Optional[int]) -> float:
    if age is None:
        return 1.0
    if age > 65:
        return 1.3
    if age > 45:
        return 1.1
    if age < 18:
        return 0.8
    return 1.0


def _gender_adjustment(
    gender: Optional[str], assessments: Mapping[Condition, ConditionRiskAssessment]
) -> float:
    if gender == "M" and assessments[_C].risk_level != "low":
        return 1.2
    if gender == "F" and assessments[_M].risk_level != "low":
        return 1.1
    return 1.0


def _is_high(assessment: ConditionRiskAssessment, coefficients: CompoundCoefficients) -> bool:
    return (
        assessment.overall_score >= coefficients.high_condition_threshold
        or risk_rank(assessment.risk_level) >= risk_rank("high")
    )


def analyze_synergies(
    assessments: Mapping[Condition, ConditionRiskAssessment],
    coefficients: CompoundCoefficients = DEFAULT_COEFFICIENTS,
) -> list[SynergyRecord]:
    """One record per correlated pair whose scores both exceed the present threshold."""
    records: list[SynergyRecord] = []
    for i, first in enumerate(ALL_CONDITIONS):
        for second in ALL_CONDITIONS[i + 1 :]:
            spec = _PAIRS.get(frozenset({first, second}))
            if spec is None or spec.correlation <= 0:
                continue
            s_i = assessments[first].overall_score
            s_j = assessments[second].overall_score
            if s_i <= coefficients.present_threshold or s_j <= coefficients.present_threshold:
                continue
            interaction = (
                spec.correlation * spec.factor * s_i * s_j / 100.0 * coefficients.interaction_weight
            )
            records.append(
                SynergyRecord(
                    conditions=[first, second],
                    synergy_type=spec.synergy_type,
                    factor=spec.factor,
                    correlation=spec.correlation,
                    interaction=round(interaction, 4),
                    clinical_evidence=spec.evidence,
                )
            )
    return records


def _synergy_factor(
    assessments: Mapping[Condition, ConditionRiskAssessment],
    synergies: list[SynergyRecord],
    coefficients: CompoundCoefficients,
) -> float:
    factor = 1.0
    for record in synergies:
        first, second = record.conditions
        if _is_high(assessments[first], coefficients) and _is_high(assessments[second], coefficients):
            factor *= _PAIRS[frozenset({first, second})].multiplier
    return min(factor, coefficients.synergy_cap)


def _composite_level(score: float) -> Literal["low", "moderate", "high", "critical"]:
    if score >= 70:
        return "critical"
    if score >= 50:
        return "high"
    if score >= 30:
        return "moderate"
    return "low"


def _composite_indicators(assessments: Mapping[Condition, ConditionRiskAssessment]) -> list[str]:
    indicators: list[str] = []
    critical = sum(1 for a in assessments.values() if risk_rank(a.risk_level) >= risk_rank("critical"))
    if critical >= 2:
        indicators.append("MULTIPLE_CRITICAL_CONDITIONS")
    diabetes = assessments[_D]
    dka = getattr(diabetes, "ketoacidosis_risk", 0.0)
    if (dka > 50 or diabetes.risk_level == "critical") and risk_rank(
        assessments[_C].risk_level
    ) >= risk_rank("high"):
        indicators.append("DIABETIC_CARDIAC_EMERGENCY")
    return indicators


def _compound_analysis(
    assessments: Mapping[Condition, ConditionRiskAssessment],
    synergies: list[SynergyRecord],
) -> CompoundAnalysis:
    active = sorted(
        (c for c in ALL_CONDITIONS if assessments[c].risk_level != "low"),
        key=lambda c: -assessments[c].overall_score,
    )
    if not active:
        return CompoundAnalysis()
    primary, secondary = active[0], active[1:]

    multiplier = 1.0
    if secondary:
        multiplier = 1.2 + len(secondary) * 0.3
    if primary == _D and _C in secondary:
        multiplier *= 1.8
    if primary == _M and secondary:
        multiplier *= 1.4

    synergy_score = 0.0
    opportunities: list[str] = []
    for record in synergies:
        if record.synergy_type == "exponential":
            synergy_score += record.factor * 2
        elif record.synergy_type == "multiplicative":
            synergy_score += record.factor
        else:
            synergy_score += record.factor * 0.5
        names = " and ".join(c.value.replace("_", " ") for c in record.conditions)
        opportunities.append(f"Consider coordinated care plan for {names}.")

    return CompoundAnalysis(
        primary_condition=primary,
        secondary_conditions=list(secondary),
        risk_multiplier=min(multiplier, 3.0),
        synergy_score=round(synergy_score, 4),
        intervention_opportunities=opportunities,
    )


def _recommendations(
    level: str,
    emergency: bool,
    urgent: bool,
    prioritized: list[Condition],
    assessments: Mapping[Condition, ConditionRiskAssessment],
    synergies: list[SynergyRecord],
) -> list[str]:
    items: list[str] = []
    if emergency:
        items.append("Consider immediate clinical contact; emergency indicators are present.")
    elif urgent:
        items.append("Consider clinician review within 24 hours.")
    elif level != "low":
        items.append("Consider routine follow-up and repeat screening.")
    else:
        items.append("Continue routine preventive screening.")

    for condition in prioritized:
        if assessments[condition].risk_level == "low":
            continue
        items.append(
            f"Suggest focused {condition.value.replace('_', ' ')} evaluation "
            f"(risk level: {assessments[condition].risk_level})."
        )
    for record in synergies:
        names = " and ".join(c.value.replace("_", " ") for c in record.conditions)
        items.append(f"Highlight {record.synergy_type} interaction between {names}.")
    return items


def aggregate(
    assessments: Mapping[Condition, ConditionRiskAssessment],
    profile: Optional[SubjectProfile] = None,
    coefficients: CompoundCoefficients = DEFAULT_COEFFICIENTS,
) -> CompositeRiskAssessment:
    scores = {c: float(assessments[c].overall_score) for c in ALL_CONDITIONS}
    max_score = max(scores.values())
    base = max_score + coefficients.spillover_weight * (sum(scores.values()) - max_score)

    synergies = analyze_synergies(assessments, coefficients)
    interaction = sum(record.interaction for record in synergies)

    n_high = sum(1 for c in ALL_CONDITIONS if _is_high(assessments[c], coefficients))
    penalty = 1.0
    if n_high > 1:
        penalty = min(coefficients.penalty_base ** (n_high - 1), coefficients.penalty_cap)
    synergy = _synergy_factor(assessments, synergies, coefficients)

    age_adj = _age_adjustment(profile.age if profile else None)
    gender_adj = _gender_adjustment(profile.gender if profile else None, assessments)
    context = profile.socioeconomic if profile else None
    socio = socioeconomic_multiplier(context, coefficients)
    access = access_to_care_multiplier(context, coefficients)

    adjusted = base * penalty * synergy * age_adj * gender_adj * socio * access
    # Floor keeps the composite at or above the worst single condition, rounding included.
    composite = max(round(clamp(max(adjusted, base + interaction)), 4), max_score)
    level = _composite_level(composite)

    contributions: dict[str, float] = {}
    for condition in ALL_CONDITIONS:
        share = sum(r.interaction for r in synergies if condition in r.conditions) / 2.0
        contributions[condition.value] = round(
            scores[condition] * _CONTRIBUTION_WEIGHTS[condition] + share, 4
        )
    prioritized = sorted(
        ALL_CONDITIONS,
        key=lambda c: (-contributions[c.value], -risk_rank(assessments[c].risk_level)),
    )

    indicators = _composite_indicators(assessments)
    mental = assessments[_M]
    immediate_intervention = isinstance(mental, MentalHealthAssessment) and (
        mental.suicide_risk.immediate_intervention
    )
    emergency = (
        any(assessments[c].emergency_indicators for c in ALL_CONDITIONS)
        or immediate_intervention
        or bool(indicators)
    )
    urgent = not emergency and (
        level == "critical"
        or any(assessments[c].escalation_required for c in ALL_CONDITIONS)
        or any(assessments[c].time_to_escalation <= 2 for c in ALL_CONDITIONS)
    )
    routine = not emergency and not urgent and level != "low"

    logger.debug(
        "composite score=%.2f level=%s base=%.2f interaction=%.2f penalty=%.3f synergy=%.3f",
        composite,
        level,
        base,
        interaction,
        penalty,
        synergy,
    )

    return CompositeRiskAssessment(
        overall_score=composite,
        risk_level=level,
        multiple_conditions_penalty=penalty,
        synergy_factor=synergy,
        interaction_score=round(interaction, 4),
        age_adjustment=age_adj,
        gender_adjustment=gender_adj,
        socioeconomic_factor=socio,
        access_to_care_factor=access,
        prioritized_conditions=prioritized,
        condition_contributions=contributions,
        synergies=synergies,
        emergency_indicators=indicators,
        emergency_escalation=emergency,
        urgent_escalation=urgent,
        routine_followup=routine,
        compound_analysis=_compound_analysis(assessments, synergies),
        recommendations=_recommendations(
            level, emergency, urgent, prioritized, assessments, synergies
        ),
    )
