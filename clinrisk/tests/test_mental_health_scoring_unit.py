from clinrisk.internal_core.contracts import ProcessedQuestionnaire, questionnaire_from_answers
from clinrisk.scoring.mental_health import anxiety_severity, depression_severity, score_mental_health


def test_suicide_plan_alone_requires_immediate_intervention() -> None:
    assessment = score_mental_health(questionnaire_from_answers("subj_plan", {"suicide_plan": True}))
    assert assessment.suicide_risk.risk_band == "high"
    assert assessment.suicide_risk.immediate_intervention is True
    assert assessment.time_to_escalation <= 2.0
    assert "SUICIDE_RISK_HIGH" in assessment.emergency_indicators


def test_plan_with_intent_is_imminent() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_imminent", {"plano_suicida": True, "suicide_intent": True}
    )
    assessment = score_mental_health(questionnaire)
    assert assessment.suicide_risk.risk_band == "imminent"
    assert assessment.risk_level == "critical"
    assert "SUICIDE_RISK_IMMINENT" in assessment.emergency_indicators
    assert assessment.time_to_escalation < 1.0


def test_ideation_with_protective_factors_stays_low() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_protected",
        {"suicidal_ideation": True, "social_support": True, "reasons_for_living": True},
    )
    suicide = score_mental_health(questionnaire).suicide_risk
    assert suicide.risk_band == "low"
    assert suicide.immediate_intervention is False
    assert suicide.protective_factors == ["social_support", "reasons_for_living"]


def test_ideation_with_hopelessness_and_prior_attempt_is_high() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_ideation",
        {"pensamentos_suicidas": True, "sem_esperanca": True, "prior_attempt": True},
    )
    suicide = score_mental_health(questionnaire).suicide_risk
    assert suicide.risk_band == "high"
    assert suicide.immediate_intervention is False


def test_maximum_phq9_and_gad7_flag_severe_conditions() -> None:
    answers = {f"phq9_{i}": 3 for i in range(1, 10)}
    answers.update({f"gad7_{i}": 3 for i in range(1, 8)})
    assessment = score_mental_health(questionnaire_from_answers("subj_severe", answers))
    assert assessment.depression_index == 27
    assert assessment.anxiety_index == 21
    assert assessment.depression_severity == "severe"
    assert assessment.anxiety_severity == "severe"
    assert "SEVERE_DEPRESSION" in assessment.emergency_indicators
    assert "SEVERE_ANXIETY" in assessment.emergency_indicators


def test_text_answers_count_toward_indices() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_text", {"phq9_1": "often", "phq9_2": "no", "gad7_1": "2"}
    )
    assessment = score_mental_health(questionnaire)
    assert assessment.depression_index == 2
    assert assessment.anxiety_index == 2


def test_severity_band_boundaries() -> None:
    assert depression_severity(4) == "minimal"
    assert depression_severity(5) == "mild"
    assert depression_severity(10) == "moderate"
    assert depression_severity(15) == "moderately_severe"
    assert depression_severity(20) == "severe"
    assert anxiety_severity(9) == "mild"
    assert anxiety_severity(14) == "moderate"
    assert anxiety_severity(15) == "severe"


def test_empty_questionnaire_has_no_suicide_risk() -> None:
    assessment = score_mental_health(ProcessedQuestionnaire(subject_id="subj_empty"))
    assert assessment.suicide_risk.risk_band == "none"
    assert assessment.risk_level == "low"
    assert assessment.emergency_indicators == []


def test_non_finite_item_answers_count_as_zero() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_non_finite",
        {"phq9_1": "inf", "phq9_2": "nan", "phq9_3": float("inf"), "phq9_4": "1e999", "gad7_1": float("-inf")},
    )
    assessment = score_mental_health(questionnaire)
    assert assessment.depression_index == 0
    assert assessment.anxiety_index == 0
    assert assessment.risk_level == "low"


def test_standard_response_labels_map_to_item_points() -> None:
    answers = {f"phq9_{i}": "Nearly every day" for i in range(1, 10)}
    answers.update({f"gad7_{i}": "vários dias" for i in range(1, 8)})
    assessment = score_mental_health(questionnaire_from_answers("subj_labels", answers))
    assert assessment.depression_index == 27
    assert assessment.anxiety_index == 7
    assert "SEVERE_DEPRESSION" in assessment.emergency_indicators

    mixed = {
        "phq9_1": "not at all",
        "phq9_2": "several days",
        "phq9_3": "More than half the days",
        "phq9_4": "quase todos os dias",
        "phq9_5": "nenhuma vez",
        "phq9_6": "mais da metade dos dias",
    }
    assert score_mental_health(questionnaire_from_answers("subj_mixed", mixed)).depression_index == 0 + 1 + 2 + 3 + 0 + 2
