from itertools import combinations, product

from clinrisk.internal_core.config import load_config
from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    CardiovascularAssessment,
    Condition,
    DiabetesAssessment,
    MentalHealthAssessment,
    RespiratoryAssessment,
    SocioeconomicContext,
    SubjectProfile,
)
from clinrisk.risk.compound import (
    CompoundCoefficients,
    access_to_care_multiplier,
    aggregate,
    pair_correlation,
    socioeconomic_multiplier,
)


def _assessments(
    diabetes: float = 0.0,
    cardiovascular: float = 0.0,
    mental_health: float = 0.0,
    respiratory: float = 0.0,
    *,
    diabetes_level: str = "low",
    cardiovascular_level: str = "low",
):
    return {
        Condition.DIABETES: DiabetesAssessment(
            overall_score=diabetes, risk_level=diabetes_level, time_to_escalation=72.0
        ),
        Condition.CARDIOVASCULAR: CardiovascularAssessment(
            overall_score=cardiovascular, risk_level=cardiovascular_level, time_to_escalation=24.0
        ),
        Condition.MENTAL_HEALTH: MentalHealthAssessment(
            overall_score=mental_health, risk_level="low", time_to_escalation=48.0
        ),
        Condition.RESPIRATORY: RespiratoryAssessment(
            overall_score=respiratory, risk_level="low", time_to_escalation=24.0
        ),
    }


def test_correlated_pair_raises_composite_above_max_score() -> None:
    score_pairs = [(5.0, 10.0), (30.0, 40.0), (60.0, 90.0), (99.0, 99.0), (100.0, 100.0)]
    for first, second in combinations(ALL_CONDITIONS, 2):
        assert pair_correlation(first, second) > 0
        for s_first, s_second in score_pairs:
            scores = {c.value: 0.0 for c in ALL_CONDITIONS}
            scores[first.value] = s_first
            scores[second.value] = s_second
            composite = aggregate(_assessments(**scores))
            top = max(s_first, s_second)
            assert composite.overall_score <= 100.0
            if top < 100.0:
                assert composite.overall_score > top


def test_young_subject_never_drops_below_max_score() -> None:
    profile = SubjectProfile(age=12, socioeconomic=SocioeconomicContext(insurance="private", region="south"))
    composite = aggregate(_assessments(diabetes=60.0, cardiovascular=30.0), profile)
    assert composite.age_adjustment == 0.8
    assert composite.overall_score > 60.0


def test_socioeconomic_and_access_multipliers_stay_in_bounds() -> None:
    social = ["family_support_strong", "religious_coping", "social_isolation", "domestic_violence", "substance_abuse_family"]
    for low_education, low_income in product([True, False], repeat=2):
        for size in range(len(social) + 1):
            for chosen in combinations(social, size):
                context = SocioeconomicContext(
                    low_education=low_education,
                    low_income=low_income,
                    social_factors=list(chosen),
                )
                assert 0.8 <= socioeconomic_multiplier(context) <= 1.5

    for insurance, location, region in product(
        [None, "public", "private", "none"],
        [None, "urban", "urban_periphery", "rural"],
        [None, "southeast", "northeast", "north", "south", "center_west"],
    ):
        context = SocioeconomicContext(insurance=insurance, location=location, region=region)
        assert 0.8 <= access_to_care_multiplier(context) <= 1.5


def test_all_zero_scores_are_low_risk() -> None:
    composite = aggregate(_assessments())
    assert composite.overall_score == 0.0
    assert composite.risk_level == "low"
    assert composite.emergency_escalation is False
    assert composite.routine_followup is False
    assert composite.synergies == []


def test_diabetes_and_cardiovascular_record_exponential_synergy() -> None:
    composite = aggregate(
        _assessments(
            diabetes=70.0,
            cardiovascular=60.0,
            diabetes_level="critical",
            cardiovascular_level="high",
        )
    )
    synergy_types = {record.synergy_type for record in composite.synergies}
    assert "exponential" in synergy_types
    assert composite.synergy_factor > 1.0
    assert composite.multiple_conditions_penalty > 1.0
    assert "DIABETIC_CARDIAC_EMERGENCY" in composite.emergency_indicators
    assert composite.emergency_escalation is True
    assert composite.risk_level == "critical"
    assert composite.compound_analysis.primary_condition == Condition.DIABETES
    assert composite.compound_analysis.risk_multiplier <= 3.0


def test_prioritized_conditions_rank_highest_contribution_first() -> None:
    composite = aggregate(_assessments(respiratory=80.0, mental_health=10.0))
    assert composite.prioritized_conditions[0] == Condition.RESPIRATORY
    assert set(composite.prioritized_conditions) == set(ALL_CONDITIONS)


def test_profile_adjustments_apply() -> None:
    profile = SubjectProfile(age=70, gender="M")
    composite = aggregate(
        _assessments(cardiovascular=40.0, cardiovascular_level="intermediate"), profile
    )
    assert composite.age_adjustment == 1.3
    assert composite.gender_adjustment == 1.2


def test_recommendations_use_conservative_language() -> None:
    composite = aggregate(_assessments(diabetes=45.0, diabetes_level="high"))
    assert composite.recommendations
    assert all(
        text.split()[0] in {"Consider", "Suggest", "Highlight", "Continue"}
        for text in composite.recommendations
    )


def test_coefficients_follow_preset(monkeypatch) -> None:
    monkeypatch.setenv("CLINRISK_PRESET", "conservative_v1")
    coefficients = CompoundCoefficients.from_config(load_config())
    assert coefficients.present_threshold == 20.0
    assert coefficients.high_condition_threshold == 40.0

    monkeypatch.delenv("CLINRISK_PRESET")
    assert CompoundCoefficients.from_config(load_config()) == CompoundCoefficients()


def test_composite_never_rounds_below_worst_condition() -> None:
    for score in (10.123444, 33.33335, 99.99999):
        composite = aggregate(_assessments(respiratory=score))
        assert composite.overall_score >= score

    composite = aggregate(_assessments(diabetes=0.00004, cardiovascular=0.00001))
    assert composite.overall_score >= 0.00004
