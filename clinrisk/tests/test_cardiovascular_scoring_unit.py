from clinrisk.internal_core.contracts import ProcessedQuestionnaire, questionnaire_from_answers
from clinrisk.scoring.cardiovascular import framingham_band, score_cardiovascular


def test_chest_pain_at_rest_with_dyspnea_suspects_acute_coronary_syndrome() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_acs", {"chest_pain_at_rest": True, "shortness_of_breath": True}
    )
    assessment = score_cardiovascular(questionnaire)
    assert "ACUTE_CORONARY_SYNDROME_SUSPECTED" in assessment.emergency_indicators
    assert assessment.escalation_required is True
    assert assessment.time_to_escalation < 1.0


def test_portuguese_identifiers_trigger_acute_coronary_syndrome() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_acs_pt", {"dor_no_peito_repouso": "sim", "falta_de_ar": "sim"}
    )
    assessment = score_cardiovascular(questionnaire)
    assert "ACUTE_CORONARY_SYNDROME_SUSPECTED" in assessment.emergency_indicators


def test_chest_pain_without_rest_does_not_suspect_acs() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_exertion", {"chest_pain": True, "shortness_of_breath": True}
    )
    assessment = score_cardiovascular(questionnaire)
    assert "ACUTE_CORONARY_SYNDROME_SUSPECTED" not in assessment.emergency_indicators


def test_framingham_points_accumulate_from_risk_factors() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_points",
        {
            "age": 60,
            "sex": "male",
            "fumante": True,
            "hypertension": True,
            "diabetes": True,
        },
    )
    assessment = score_cardiovascular(questionnaire)
    assert assessment.framingham_points == 6 + 2 + 4 + 3 + 3
    assert assessment.framingham_band == "very_high"
    assert assessment.risk_level == "very_high"
    assert assessment.overall_score == 54.0


def test_framingham_band_boundaries() -> None:
    assert framingham_band(7) == "low"
    assert framingham_band(8) == "intermediate"
    assert framingham_band(12) == "high"
    assert framingham_band(16) == "very_high"


def test_blood_pressure_in_crisis_range_is_flagged() -> None:
    questionnaire = questionnaire_from_answers("subj_bp", {"systolic_bp": 185, "diastolic_bp": 95})
    assessment = score_cardiovascular(questionnaire)
    assert "HYPERTENSIVE_CRISIS" in assessment.emergency_indicators
    assert assessment.time_to_escalation <= 1.0


def test_empty_questionnaire_is_low_risk() -> None:
    assessment = score_cardiovascular(ProcessedQuestionnaire(subject_id="subj_empty"))
    assert assessment.framingham_points == 0
    assert assessment.overall_score == 0.0
    assert assessment.risk_level == "low"
    assert assessment.escalation_required is False
