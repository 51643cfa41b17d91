from itertools import combinations

from clinrisk.internal_core.contracts import ProcessedQuestionnaire, questionnaire_from_answers
from clinrisk.scoring.respiratory import score_respiratory

_STOP_BANG_ANSWERS = {
    "snoring": True,
    "daytime_fatigue": True,
    "observed_apnea": True,
    "hypertension": True,
    "bmi": 36,
    "age": 51,
    "neck_circumference": 41,
    "sex": "M",
}


def test_severe_asthma_exacerbation_pattern_is_critical() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_asthma",
        {
            "chiado": True,
            "severe_dyspnea": True,
            "dificuldade_falar": True,
            "rapid_onset": True,
        },
    )
    assessment = score_respiratory(questionnaire)
    assert "SEVERE_ASTHMA_EXACERBATION" in assessment.emergency_indicators
    assert assessment.risk_level == "critical"
    assert assessment.time_to_escalation < 1.0


def test_dyspnea_scale_counts_as_severe_dyspnea() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_asthma_scale",
        {
            "wheezing": True,
            "shortness_of_breath": 9,
            "speech_difficulty": True,
            "sudden_onset": True,
        },
    )
    assert "SEVERE_ASTHMA_EXACERBATION" in score_respiratory(questionnaire).emergency_indicators


def test_stop_bang_six_or_more_is_at_least_high() -> None:
    keys = list(_STOP_BANG_ANSWERS)
    for size in (6, 7, 8):
        for chosen in combinations(keys, size):
            answers = {key: _STOP_BANG_ANSWERS[key] for key in chosen}
            assessment = score_respiratory(questionnaire_from_answers("subj_osa", answers))
            assert assessment.sleep_apnea_index == size
            assert assessment.sleep_apnea_band == "high"
            assert assessment.risk_level in {"high", "critical"}


def test_sleep_apnea_with_hypertension_flags_cardiovascular_risk() -> None:
    assessment = score_respiratory(questionnaire_from_answers("subj_osa_htn", dict(_STOP_BANG_ANSWERS)))
    assert assessment.sleep_apnea_index == 8
    assert "SLEEP_APNEA_CARDIOVASCULAR_RISK" in assessment.emergency_indicators


def test_copd_exacerbation_pattern() -> None:
    questionnaire = questionnaire_from_answers(
        "subj_copd", {"falta_de_ar": True, "catarro": True, "febre": True}
    )
    assessment = score_respiratory(questionnaire)
    assert "COPD_EXACERBATION" in assessment.emergency_indicators
    assert assessment.risk_level == "critical"
    assert assessment.copd_score == 12.0


def test_empty_questionnaire_is_low_risk() -> None:
    assessment = score_respiratory(ProcessedQuestionnaire(subject_id="subj_empty"))
    assert assessment.sleep_apnea_index == 0
    assert assessment.overall_score == 0.0
    assert assessment.risk_level == "low"
