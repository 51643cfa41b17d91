from dataclasses import replace

from clinrisk.internal_core.config import load_config
from clinrisk.internal_core.contracts import (
    MedicalRelevance,
    ProcessedQuestionnaire,
    QuestionnaireResponse,
    questionnaire_from_answers,
)
from clinrisk.risk.engine import RiskAssessmentEngine


def test_empty_questionnaire_yields_low_risk_without_alerts() -> None:
    engine = RiskAssessmentEngine()
    try:
        result = engine.assess(ProcessedQuestionnaire(subject_id="subj_empty"))
    finally:
        engine.close()
    assert result.composite.overall_score == 0.0
    assert result.composite.risk_level == "low"
    assert result.alerts == []
    assert result.protocol.escalation_level == "ai_only"


def test_sequential_scoring_matches_parallel_scoring() -> None:
    answers = {
        "age": 58,
        "sex": "F",
        "polydipsia": True,
        "polyuria": True,
        "hypertension": True,
        "phq9_1": 2,
        "phq9_2": 3,
        "snoring": True,
        "shortness_of_breath": True,
    }
    questionnaire = questionnaire_from_answers("subj_mixed", answers)
    parallel = RiskAssessmentEngine()
    sequential = RiskAssessmentEngine(replace(load_config(), CLINRISK_PARALLEL_SCORING=False))
    try:
        a = parallel.assess(questionnaire)
        b = sequential.assess(questionnaire)
    finally:
        parallel.close()
        sequential.close()
    assert a.composite == b.composite
    assert a.condition_assessments() == b.condition_assessments()
    assert [x.indicator for x in a.alerts] == [x.indicator for x in b.alerts]


def test_age_answer_feeds_composite_adjustment() -> None:
    engine = RiskAssessmentEngine()
    try:
        result = engine.assess(questionnaire_from_answers("subj_age", {"age": 70, "chest_pain": True}))
    finally:
        engine.close()
    assert result.composite.age_adjustment == 1.3


def test_bulk_assessment_isolates_malformed_items() -> None:
    good = {"subject_id": "subj_raw", "responses": [{"question_id": "polyuria", "answer": True}]}
    items = [
        questionnaire_from_answers("subj_0", {"polydipsia": True}),
        {"subject_id": "", "responses": []},
        {"questionnaire": {"subject_id": "subj_2"}, "profile": {"age": 40, "gender": "F"}},
        good,
        {"responses": "not a list"},
        questionnaire_from_answers("subj_5", {"wheezing": True}),
    ]
    engine = RiskAssessmentEngine()
    try:
        result = engine.bulk_assess(items)
    finally:
        engine.close()
    assert result.total == 6
    assert result.completed == 4
    assert result.failed == 2
    assert [item.index for item in result.items] == list(range(6))
    failed = [item for item in result.items if item.status == "failed"]
    assert [item.index for item in failed] == [1, 4]
    assert all(item.error and item.result is None for item in failed)
    assert result.items[3].subject_id == "subj_raw"


def test_emergency_reassessment_dispatches_for_acute_coronary_pattern() -> None:
    engine = RiskAssessmentEngine()
    try:
        baseline = engine.assess(questionnaire_from_answers("subj_er", {"hypertension": True}))
        assert engine.tracker.record("subj_er", baseline)
        outcome = engine.emergency_reassessment(
            "subj_er", ["chest pain at rest", "shortness of breath", "my knee itches"]
        )
        events = engine.tracker.repository.list_audit_events("subj_er")
    finally:
        engine.close()
    assert "chest_pain_at_rest" in outcome.matched_items
    assert "shortness_of_breath" in outcome.matched_items
    assert outcome.unmatched_symptoms == ["my knee itches"]
    assert outcome.alerts[0].indicator == "ACUTE_CORONARY_SYNDROME_SUSPECTED"
    assert outcome.protocol.escalation_level == "emergency_dispatch"
    assert outcome.recommended_action == "Contact emergency services now."
    assert outcome.previous_composite_score == baseline.composite.overall_score
    assert [e.type for e in events] == ["ASSESSMENT_RECORDED", "REASSESSMENT"]


def test_hypoglycemia_symptoms_on_insulin_raise_alert() -> None:
    engine = RiskAssessmentEngine()
    try:
        outcome = engine.emergency_reassessment(
            "subj_hypo", ["shaking and sweating"], medications=["Insulin glargine 20u"]
        )
    finally:
        engine.close()
    assert "HYPOGLYCEMIA_RISK" in [a.indicator for a in outcome.alerts]
    assert outcome.protocol.escalation_level == "human_review"
    assert outcome.previous_composite_score is None


def test_negated_symptoms_do_not_escalate() -> None:
    engine = RiskAssessmentEngine()
    try:
        outcome = engine.emergency_reassessment(
            "subj_neg", ["no chest pain", "denies shortness of breath"]
        )
    finally:
        engine.close()
    assert outcome.matched_items == []
    assert outcome.alerts == []
    assert outcome.protocol.escalation_level == "ai_only"


def test_detector_failure_is_audited(monkeypatch) -> None:
    def boom(*args, **kwargs):
        raise RuntimeError("forced failure for test")

    monkeypatch.setattr("clinrisk.risk.emergency._collect_alerts", boom)
    engine = RiskAssessmentEngine()
    try:
        result = engine.assess(questionnaire_from_answers("subj_fail", {"chest_pain_at_rest": True}))
        events = engine.tracker.repository.list_audit_events("subj_fail")
    finally:
        engine.close()
    assert [a.indicator for a in result.alerts] == ["SYSTEM_DETECTION_FAILURE"]
    assert [e.type for e in events] == ["DETECTOR_FAILSAFE"]


def test_assess_and_track_records_history_off_the_request_path() -> None:
    engine = RiskAssessmentEngine()
    try:
        result = engine.assess_and_track(questionnaire_from_answers("subj_track", {"polyuria": True}))
        engine.track(result).result()
    finally:
        engine.close()
    assert engine.tracker.has_history("subj_track")
    assert engine.tracker.latest_score("subj_track") == result.composite.overall_score


def test_composite_is_at_least_highest_condition_with_fractional_weight() -> None:
    questionnaire = ProcessedQuestionnaire(
        subject_id="subj_fraction",
        responses=[
            QuestionnaireResponse(
                question_id="night_breathlessness_custom",
                answer=True,
                type="boolean",
                medical_relevance=MedicalRelevance(conditions=["respiratory"], weight=10.123444),
            )
        ],
    )
    engine = RiskAssessmentEngine()
    try:
        result = engine.assess(questionnaire)
    finally:
        engine.close()
    assert result.respiratory.overall_score == 10.123444
    top = max(a.overall_score for a in result.condition_assessments().values())
    assert result.composite.overall_score >= top
