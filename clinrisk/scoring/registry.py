from __future__ import annotations

from functools import partial
from types import MappingProxyType
from typing import Callable, Mapping

from clinrisk.internal_core.contracts import (
    ALL_CONDITIONS,
    Condition,
    ConditionRiskAssessment,
    ProcessedQuestionnaire,
)

from .cardiovascular import score_cardiovascular
from .diabetes import score_diabetes
from .mental_health import score_mental_health
from .respiratory import score_respiratory

Scorer = Callable[[ProcessedQuestionnaire], ConditionRiskAssessment]


def build_scorer_table(*, dka_threshold: float = 70.0) -> Mapping[Condition, Scorer]:
    """Closed, read-only table of one scorer per condition."""
    return MappingProxyType(
        {
            Condition.DIABETES: partial(score_diabetes, dka_threshold=dka_threshold),
            Condition.CARDIOVASCULAR: score_cardiovascular,
            Condition.MENTAL_HEALTH: score_mental_health,
            Condition.RESPIRATORY: score_respiratory,
        }
    )


SCORERS = build_scorer_table()


def score_all(
    questionnaire: ProcessedQuestionnaire,
    table: Mapping[Condition, Scorer] = SCORERS,
) -> dict[Condition, ConditionRiskAssessment]:
    return {condition: table[condition](questionnaire) for condition in ALL_CONDITIONS}
