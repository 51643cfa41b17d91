from __future__ import annotations

"""
Turn emergency indicators into prioritized alerts and an escalation protocol.

Design intent:
- Every indicator maps to a fixed severity tier with a bounded time-to-action window.
- Tier windows are disjoint, so immediate always acts before critical, and critical before high.
- Detection never raises: an internal fault yields one conservative fail-safe alert.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence
from uuid import uuid4

from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    AlertSeverity,
    CompositeRiskAssessment,
    Condition,
    ConditionRiskAssessment,
    EmergencyAlert,
    EmergencyFlag,
    EscalationProtocol,
)

logger = logging.getLogger(__name__)

SYSTEM_FAILURE_INDICATOR = "SYSTEM_DETECTION_FAILURE"

SEVERITY_RANK: Mapping[str, int] = {"immediate": 3, "critical": 2, "high": 1}

# Inclusive minute bounds per tier.
TIER_WINDOWS: Mapping[str, tuple[int, int]] = {
    "immediate": (0, 30),
    "critical": (60, 240),
    "high": (360, 1440),
}


@dataclass(frozen=True)
class IndicatorRule:
    severity: AlertSeverity
    base_minutes: int
    description: str
    actions: tuple[str, ...] = ()


_EMERGENCY_SERVICES = "Contact emergency services"

INDICATOR_RULES: Mapping[str, IndicatorRule] = {
    "ACUTE_CORONARY_SYNDROME_SUSPECTED": IndicatorRule(
        "immediate",
        15,
        "Chest pain at rest with shortness of breath; possible acute coronary syndrome.",
        (_EMERGENCY_SERVICES, "Do not drive; stay at rest", "Share medication list with responders"),
    ),
    "DIABETIC_KETOACIDOSIS_RISK": IndicatorRule(
        "immediate",
        30,
        "High likelihood of diabetic ketoacidosis.",
        (_EMERGENCY_SERVICES, "Check blood glucose if a meter is available"),
    ),
    "SUICIDE_RISK_IMMINENT": IndicatorRule(
        "immediate",
        0,
        "Suicide plan with intent, means or prior attempt reported.",
        (_EMERGENCY_SERVICES, "Do not leave the person alone", "Connect to crisis line"),
    ),
    "SEVERE_ASTHMA_EXACERBATION": IndicatorRule(
        "immediate",
        15,
        "Wheeze with severe dyspnea, speech difficulty and rapid onset.",
        (_EMERGENCY_SERVICES, "Use rescue inhaler as prescribed"),
    ),
    "DIABETIC_CARDIAC_EMERGENCY": IndicatorRule(
        "immediate",
        20,
        "Decompensated diabetes together with high cardiovascular risk.",
        (_EMERGENCY_SERVICES, "Report both conditions on arrival"),
    ),
    "CARDIAC_SYNCOPE_SUSPECTED": IndicatorRule(
        "critical",
        60,
        "Syncope together with chest pain.",
        ("Same-day clinical evaluation", "Avoid driving"),
    ),
    "HYPERTENSIVE_CRISIS": IndicatorRule(
        "critical",
        60,
        "Blood pressure in crisis range.",
        ("Repeat measurement after rest", "Same-day clinical evaluation"),
    ),
    "HYPOGLYCEMIA_RISK": IndicatorRule(
        "critical",
        60,
        "Hypoglycemia symptoms while on glucose-lowering medication.",
        ("Take fast-acting carbohydrate", "Review medication dosing with clinician"),
    ),
    "KETOSIS_DETECTED": IndicatorRule(
        "critical",
        120,
        "Ketone breath reported.",
        ("Check glucose and ketones", "Clinician review today"),
    ),
    "SUICIDE_RISK_HIGH": IndicatorRule(
        "critical",
        60,
        "Suicide plan or high-risk ideation reported.",
        ("Same-day mental health contact", "Provide crisis line information"),
    ),
    "SEVERE_DEPRESSION": IndicatorRule(
        "critical",
        240,
        "PHQ-9 in the severe range.",
        ("Mental health review within 24 hours",),
    ),
    "COPD_EXACERBATION": IndicatorRule(
        "critical",
        120,
        "Dyspnea with sputum and fever; possible COPD exacerbation.",
        ("Same-day clinical evaluation",),
    ),
    "MULTIPLE_CRITICAL_CONDITIONS": IndicatorRule(
        "critical",
        60,
        "Two or more conditions at the highest risk level.",
        ("Specialist evaluation today", "Coordinate multidisciplinary care"),
    ),
    "SEVERE_ANXIETY": IndicatorRule(
        "high",
        720,
        "GAD-7 in the severe range.",
        ("Mental health follow-up",),
    ),
    "SLEEP_APNEA_CARDIOVASCULAR_RISK": IndicatorRule(
        "high",
        1440,
        "High STOP-BANG index with hypertension.",
        ("Consider sleep study referral",),
    ),
}

_UNKNOWN_RULE = IndicatorRule("high", 360, "Unclassified emergency indicator.", ("Clinician review",))


def _bounded_minutes(severity: str, minutes: float) -> int:
    low, high = TIER_WINDOWS[severity]
    return int(max(low, min(high, round(minutes))))


def _confidence(score: float) -> float:
    return round(0.6 + 0.4 * max(0.0, min(100.0, score)) / 100.0, 3)


def _alert(
    indicator: str,
    condition: str,
    rule: IndicatorRule,
    score: float,
    escalation_hours: float | None = None,
) -> EmergencyAlert:
    minutes = float(rule.base_minutes)
    if escalation_hours is not None:
        minutes = min(minutes, escalation_hours * 60.0)
    return EmergencyAlert(
        alert_id=uuid4().hex,
        indicator=indicator,
        condition=condition,
        severity=rule.severity,
        time_to_action=_bounded_minutes(rule.severity, minutes),
        description=rule.description,
        confidence=_confidence(score),
        actions=list(rule.actions),
    )


def _collect_alerts(
    composite: CompositeRiskAssessment,
    assessments: Mapping[Condition, ConditionRiskAssessment],
    flags: Sequence[EmergencyFlag],
) -> list[EmergencyAlert]:
    alerts: list[EmergencyAlert] = []
    for condition in ALL_CONDITIONS:
        assessment = assessments[condition]
        for indicator in assessment.emergency_indicators:
            rule = INDICATOR_RULES.get(indicator, _UNKNOWN_RULE)
            alerts.append(
                _alert(
                    indicator,
                    condition.value,
                    rule,
                    assessment.overall_score,
                    assessment.time_to_escalation,
                )
            )
    for indicator in composite.emergency_indicators:
        rule = INDICATOR_RULES.get(indicator, _UNKNOWN_RULE)
        alerts.append(_alert(indicator, "composite", rule, composite.overall_score))
    for flag in flags:
        rule = INDICATOR_RULES.get(flag.flag) or IndicatorRule(
            flag.severity,
            flag.time_to_action,
            f"Intake flag: {flag.flag}",
            (flag.immediate_action,) if flag.immediate_action else (),
        )
        alerts.append(_alert(flag.flag, flag.condition, rule, composite.overall_score))
    return prioritize(alerts)


def prioritize(alerts: Iterable[EmergencyAlert]) -> list[EmergencyAlert]:
    """Sort by severity desc, then time-to-action asc; keep the first alert per indicator."""
    ordered = sorted(alerts, key=lambda a: (-SEVERITY_RANK[a.severity], a.time_to_action))
    seen: set[str] = set()
    unique: list[EmergencyAlert] = []
    for alert in ordered:
        if alert.indicator in seen:
            continue
        seen.add(alert.indicator)
        unique.append(alert)
    return unique


def build_protocol(
    alerts: Sequence[EmergencyAlert],
    composite: CompositeRiskAssessment,
    assessments: Mapping[Condition, ConditionRiskAssessment] | None = None,
) -> EscalationProtocol:
    if not alerts:
        hours = 0.0
        if assessments:
            hours = min(a.time_to_escalation for a in assessments.values())
        routine = composite.routine_followup
        return EscalationProtocol(
            immediate=False,
            urgent=False,
            time_to_escalation=hours,
            escalation_level="ai_only",
            notification_channels=["email"] if routine else [],
            automatic_scheduling=routine,
        )

    hours = min(a.time_to_action for a in alerts) / 60.0
    severities = {a.severity for a in alerts}
    if "immediate" in severities:
        return EscalationProtocol(
            immediate=True,
            urgent=True,
            time_to_escalation=hours,
            escalation_level="emergency_dispatch",
            notification_channels=["call", "sms", "whatsapp"],
            automatic_scheduling=False,
        )
    if "critical" in severities:
        return EscalationProtocol(
            immediate=False,
            urgent=True,
            time_to_escalation=hours,
            escalation_level="human_review",
            notification_channels=["whatsapp", "sms"],
            automatic_scheduling=True,
        )
    return EscalationProtocol(
        immediate=False,
        urgent=False,
        time_to_escalation=hours,
        escalation_level="human_review",
        notification_channels=["whatsapp", "email"],
        automatic_scheduling=True,
    )


def failsafe_alert() -> EmergencyAlert:
    low, _ = TIER_WINDOWS["high"]
    return EmergencyAlert(
        alert_id=uuid4().hex,
        indicator=SYSTEM_FAILURE_INDICATOR,
        condition="system",
        severity="high",
        time_to_action=low,
        description="Emergency detection failed; manual clinical review required.",
        confidence=0.0,
        actions=["Manual clinical review of the questionnaire"],
    )


def detect(
    composite: CompositeRiskAssessment,
    assessments: Mapping[Condition, ConditionRiskAssessment],
    flags: Sequence[EmergencyFlag] = (),
) -> tuple[list[EmergencyAlert], EscalationProtocol]:
    try:
        alerts = _collect_alerts(composite, assessments, flags)
        protocol = build_protocol(alerts, composite, assessments)
    except Exception:
        logger.exception("emergency detection failed; emitting fail-safe alert")
        alerts = [failsafe_alert()]
        protocol = build_protocol(alerts, composite)
        return alerts, protocol

    if alerts:
        logger.info(
            "emergency alerts count=%s top=%s level=%s",
            len(alerts),
            alerts[0].indicator,
            protocol.escalation_level,
        )
    return alerts, protocol
