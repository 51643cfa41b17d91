from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class Condition(str, Enum):
    DIABETES = "diabetes"
    CARDIOVASCULAR = "cardiovascular"
    MENTAL_HEALTH = "mental_health"
    RESPIRATORY = "respiratory"


ALL_CONDITIONS = (
    Condition.DIABETES,
    Condition.CARDIOVASCULAR,
    Condition.MENTAL_HEALTH,
    Condition.RESPIRATORY,
)

RiskLevel = Literal["low", "moderate", "intermediate", "high", "very_high", "critical"]

# moderate/intermediate and very_high/critical share a rank.
RISK_LEVEL_RANK: Dict[str, int] = {
    "low": 0,
    "moderate": 1,
    "intermediate": 1,
    "high": 2,
    "very_high": 3,
    "critical": 3,
}

AnswerValue = Union[bool, int, float, str, None]
ResponseType = Literal["boolean", "numeric", "scale", "text", "multiple_choice"]
SymptomSeverity = Literal["mild", "moderate", "severe"]
AlertSeverity = Literal["immediate", "critical", "high"]
EscalationLevel = Literal["ai_only", "human_review", "emergency_dispatch"]
NotificationChannel = Literal["sms", "whatsapp", "call", "email"]
Trend = Literal["improving", "stable", "worsening"]
SuicideBand = Literal["none", "low", "moderate", "high", "imminent"]


def risk_rank(level: str) -> int:
    return RISK_LEVEL_RANK.get(level, 0)


class MedicalRelevance(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    conditions: List[str] = Field(default_factory=list)
    weight: float = Field(default=0.0, ge=0.0)
    category: str = "general"
    cutoff: Optional[float] = None
    cutoff_direction: Literal["above", "below"] = "above"


class QuestionnaireResponse(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    question_id: str = Field(min_length=1)
    question: str = ""
    answer: AnswerValue = None
    type: ResponseType = "text"
    medical_relevance: MedicalRelevance = Field(default_factory=MedicalRelevance)
    timestamp: Optional[datetime] = None


class ExtractedSymptom(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    symptom: str = Field(min_length=1)
    severity: SymptomSeverity = "moderate"
    duration: Optional[str] = None
    frequency: Optional[str] = None
    medical_relevance: List[str] = Field(default_factory=list)


class ExtractedRiskFactor(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    factor: str = Field(min_length=1)
    value: AnswerValue = True
    significance: Literal["low", "medium", "high"] = "medium"
    medical_conditions: List[str] = Field(default_factory=list)


class EmergencyFlag(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    flag: str = Field(min_length=1)
    severity: AlertSeverity = "high"
    condition: str = "composite"
    immediate_action: str = ""
    time_to_action: int = Field(default=360, ge=0)


class ProcessedQuestionnaire(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    subject_id: str = Field(min_length=1, max_length=128)
    questionnaire_id: str = ""
    responses: List[QuestionnaireResponse] = Field(default_factory=list)
    extracted_symptoms: List[ExtractedSymptom] = Field(default_factory=list)
    risk_factors: List[ExtractedRiskFactor] = Field(default_factory=list)
    emergency_flags: List[EmergencyFlag] = Field(default_factory=list)
    completed_at: Optional[datetime] = None


SocialFactor = Literal[
    "family_support_strong",
    "religious_coping",
    "social_isolation",
    "domestic_violence",
    "substance_abuse_family",
]


class SocioeconomicContext(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    insurance: Optional[Literal["public", "private", "none"]] = None
    location: Optional[Literal["urban", "urban_periphery", "rural"]] = None
    region: Optional[Literal["southeast", "northeast", "north", "south", "center_west"]] = None
    low_education: bool = False
    low_income: bool = False
    social_factors: List[SocialFactor] = Field(default_factory=list)


class SubjectProfile(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    age: Optional[int] = Field(default=None, ge=0, le=130)
    gender: Optional[Literal["M", "F"]] = None
    medical_history: List[str] = Field(default_factory=list)
    current_medications: List[str] = Field(default_factory=list)
    socioeconomic: Optional[SocioeconomicContext] = None


class ConditionRiskAssessment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    condition: Condition
    overall_score: float = Field(ge=0.0, le=100.0)
    risk_level: RiskLevel
    emergency_indicators: List[str] = Field(default_factory=list)
    escalation_required: bool = False
    time_to_escalation: float = Field(ge=0.0)
    contributing_factors: List[str] = Field(default_factory=list)


class ClassicTriad(BaseModel):
    model_config = ConfigDict(extra="forbid")

    polydipsia: bool = False
    polyphagia: bool = False
    polyuria: bool = False
    triad_complete: bool = False
    triad_score: float = 0.0


class DiabetesAssessment(ConditionRiskAssessment):
    condition: Condition = Condition.DIABETES
    classic_triad: ClassicTriad = Field(default_factory=ClassicTriad)
    ketoacidosis_risk: float = Field(default=0.0, ge=0.0, le=100.0)


class CardiovascularAssessment(ConditionRiskAssessment):
    condition: Condition = Condition.CARDIOVASCULAR
    framingham_points: int = 0
    framingham_band: Literal["low", "intermediate", "high", "very_high"] = "low"


class SuicideRisk(BaseModel):
    model_config = ConfigDict(extra="forbid")

    risk_band: SuicideBand = "none"
    immediate_intervention: bool = False
    risk_factors: List[str] = Field(default_factory=list)
    protective_factors: List[str] = Field(default_factory=list)


class MentalHealthAssessment(ConditionRiskAssessment):
    condition: Condition = Condition.MENTAL_HEALTH
    depression_index: int = Field(default=0, ge=0, le=27)
    depression_severity: Literal["minimal", "mild", "moderate", "moderately_severe", "severe"] = "minimal"
    anxiety_index: int = Field(default=0, ge=0, le=21)
    anxiety_severity: Literal["minimal", "mild", "moderate", "severe"] = "minimal"
    suicide_risk: SuicideRisk = Field(default_factory=SuicideRisk)


class RespiratoryAssessment(ConditionRiskAssessment):
    condition: Condition = Condition.RESPIRATORY
    sleep_apnea_index: int = Field(default=0, ge=0, le=8)
    sleep_apnea_band: Literal["low", "intermediate", "high"] = "low"
    asthma_score: float = 0.0
    copd_score: float = 0.0


class SynergyRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    conditions: List[Condition]
    synergy_type: Literal["additive", "multiplicative", "exponential", "protective"]
    factor: float
    correlation: float
    interaction: float
    clinical_evidence: str = ""


class CompoundAnalysis(BaseModel):
    model_config = ConfigDict(extra="forbid")

    primary_condition: Optional[Condition] = None
    secondary_conditions: List[Condition] = Field(default_factory=list)
    risk_multiplier: float = 1.0
    synergy_score: float = 0.0
    intervention_opportunities: List[str] = Field(default_factory=list)


class CompositeRiskAssessment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    overall_score: float = Field(ge=0.0, le=100.0)
    risk_level: Literal["low", "moderate", "high", "critical"]
    multiple_conditions_penalty: float = 1.0
    synergy_factor: float = 1.0
    interaction_score: float = 0.0
    age_adjustment: float = 1.0
    gender_adjustment: float = 1.0
    socioeconomic_factor: float = 1.0
    access_to_care_factor: float = 1.0
    prioritized_conditions: List[Condition] = Field(default_factory=list)
    condition_contributions: Dict[str, float] = Field(default_factory=dict)
    synergies: List[SynergyRecord] = Field(default_factory=list)
    emergency_indicators: List[str] = Field(default_factory=list)
    emergency_escalation: bool = False
    urgent_escalation: bool = False
    routine_followup: bool = False
    compound_analysis: CompoundAnalysis = Field(default_factory=CompoundAnalysis)
    recommendations: List[str] = Field(default_factory=list)


class EmergencyAlert(BaseModel):
    model_config = ConfigDict(extra="forbid")

    alert_id: str
    indicator: str
    condition: str
    severity: AlertSeverity
    time_to_action: int = Field(ge=0)
    description: str
    confidence: float = Field(ge=0.0, le=1.0)
    actions: List[str] = Field(default_factory=list)


class EscalationProtocol(BaseModel):
    model_config = ConfigDict(extra="forbid")

    immediate: bool = False
    urgent: bool = False
    time_to_escalation: float = 0.0
    escalation_level: EscalationLevel = "ai_only"
    notification_channels: List[NotificationChannel] = Field(default_factory=list)
    automatic_scheduling: bool = False


class TemporalDataPoint(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    timestamp: datetime
    score: float = Field(ge=0.0, le=100.0)
    assessment_id: str = ""


class TemporalProjection(BaseModel):
    model_config = ConfigDict(extra="forbid")

    horizon_days: int
    projected_score: float = Field(ge=0.0, le=100.0)
    slope_per_day: float


class TemporalRiskRecord(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject_id: str
    condition: str
    points: List[TemporalDataPoint] = Field(default_factory=list)
    trend: Trend = "stable"
    projection: Optional[TemporalProjection] = None
    recent_average: float = 0.0
    earlier_average: float = 0.0


class TemporalReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject_id: str
    window: str
    window_days: int
    generated_at: datetime
    records: List[TemporalRiskRecord] = Field(default_factory=list)
    next_assessment_recommended: datetime
    intervention_opportunities: List[str] = Field(default_factory=list)


class AssessmentResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    assessment_id: str
    subject_id: str
    questionnaire_id: str = ""
    assessed_at: datetime
    diabetes: DiabetesAssessment
    cardiovascular: CardiovascularAssessment
    mental_health: MentalHealthAssessment
    respiratory: RespiratoryAssessment
    composite: CompositeRiskAssessment
    alerts: List[EmergencyAlert] = Field(default_factory=list)
    protocol: EscalationProtocol

    def condition_assessments(self) -> Dict[Condition, ConditionRiskAssessment]:
        return {
            Condition.DIABETES: self.diabetes,
            Condition.CARDIOVASCULAR: self.cardiovascular,
            Condition.MENTAL_HEALTH: self.mental_health,
            Condition.RESPIRATORY: self.respiratory,
        }


class EmergencyReassessment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    subject_id: str
    assessed_at: datetime
    matched_items: List[str] = Field(default_factory=list)
    unmatched_symptoms: List[str] = Field(default_factory=list)
    composite_score: float
    risk_level: str
    alerts: List[EmergencyAlert] = Field(default_factory=list)
    protocol: EscalationProtocol
    recommended_action: str
    previous_composite_score: Optional[float] = None


class BulkItemResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: int
    subject_id: Optional[str] = None
    status: Literal["completed", "failed"]
    result: Optional[AssessmentResult] = None
    error: Optional[str] = None
    latency_ms: float = 0.0


class BulkAssessmentResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    total: int
    completed: int
    failed: int
    items: List[BulkItemResult] = Field(default_factory=list)


AuditEventType = Literal[
    "ASSESSMENT_RECORDED",
    "HISTORY_WRITE_FAILED",
    "DETECTOR_FAILSAFE",
    "REASSESSMENT",
]


class AuditEvent(BaseModel):
    model_config = ConfigDict(extra="forbid")

    ts_iso: str
    subject_id: str
    type: AuditEventType
    code: str
    detail: str


def questionnaire_from_answers(
    subject_id: str,
    answers: Dict[str, Any],
    *,
    questionnaire_id: str = "",
    symptoms: Optional[List[ExtractedSymptom]] = None,
    risk_factors: Optional[List[ExtractedRiskFactor]] = None,
) -> ProcessedQuestionnaire:
    """Build a questionnaire from a flat `{question_id: answer}` mapping."""
    responses: List[QuestionnaireResponse] = []
    for question_id, answer in answers.items():
        if isinstance(answer, bool):
            response_type: ResponseType = "boolean"
        elif isinstance(answer, (int, float)):
            response_type = "numeric"
        else:
            response_type = "text"
        responses.append(
            QuestionnaireResponse(question_id=question_id, answer=answer, type=response_type)
        )
    return ProcessedQuestionnaire(
        subject_id=subject_id,
        questionnaire_id=questionnaire_id,
        responses=responses,
        extracted_symptoms=list(symptoms or []),
        risk_factors=list(risk_factors or []),
    )
