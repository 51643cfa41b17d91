from __future__ import annotations

"""
Collapse a processed questionnaire into canonical findings.

Design intent:
- Every scorer reads the same normalized view of responses, symptoms and risk factors.
- Malformed or unrecognized answers degrade to "absent", never to an error.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Optional

from clinrisk.internal_core.contracts import (
    AnswerValue,
    Condition,
    MedicalRelevance,
    ProcessedQuestionnaire,
)

from .items import canonical_key, condition_for_tag, normalize_identifier

_AFFIRMATIVE = frozenset(
    {
        "yes",
        "y",
        "true",
        "t",
        "sim",
        "s",
        "present",
        "positive",
        "sometimes",
        "often",
        "frequently",
        "always",
        "daily",
        "as_vezes",
        "frequentemente",
        "sempre",
    }
)

_MALE = frozenset({"m", "male", "masculino", "man", "homem"})
_FEMALE = frozenset({"f", "female", "feminino", "woman", "mulher"})


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, float(value)))


def _to_number(answer: AnswerValue) -> Optional[float]:
    if isinstance(answer, bool) or answer is None:
        return None
    if isinstance(answer, (int, float)):
        number = float(answer)
    else:
        try:
            number = float(str(answer).strip().replace(",", "."))
        except ValueError:
            return None
    return number if math.isfinite(number) else None


def is_affirmative(answer: AnswerValue) -> bool:
    if answer is None:
        return False
    if isinstance(answer, bool):
        return answer
    if isinstance(answer, (int, float)):
        return answer > 0
    number = _to_number(answer)
    if number is not None:
        return number > 0
    return normalize_identifier(str(answer)) in _AFFIRMATIVE


@dataclass(frozen=True)
class Findings:
    values: Dict[str, AnswerValue] = field(default_factory=dict)
    severe_items: FrozenSet[str] = frozenset()

    def has(self, key: str) -> bool:
        return is_affirmative(self.values.get(key))

    def number(self, key: str) -> Optional[float]:
        return _to_number(self.values.get(key))

    def scale(self, key: str) -> float:
        """Numeric answer for a 0-10 style item; True counts as the midpoint."""
        answer = self.values.get(key)
        if answer is True:
            return 5.0
        number = _to_number(answer)
        return number if number is not None else 0.0

    def severe(self, key: str) -> bool:
        return key in self.severe_items

    @property
    def age(self) -> Optional[float]:
        return self.number("age")

    @property
    def sex(self) -> Optional[str]:
        raw = self.values.get("sex")
        if raw is None or isinstance(raw, (bool, int, float)):
            return None
        token = normalize_identifier(str(raw))
        if token in _MALE:
            return "M"
        if token in _FEMALE:
            return "F"
        return None


def collect_findings(questionnaire: ProcessedQuestionnaire) -> Findings:
    values: Dict[str, AnswerValue] = {}
    severe: set[str] = set()

    # Later responses to the same item override earlier ones.
    for response in questionnaire.responses:
        key = canonical_key(response.question_id)
        if key is not None:
            values[key] = response.answer

    for symptom in questionnaire.extracted_symptoms:
        key = canonical_key(symptom.symptom)
        if key is None:
            continue
        if not is_affirmative(values.get(key)):
            values[key] = True
        if symptom.severity == "severe":
            severe.add(key)

    for factor in questionnaire.risk_factors:
        key = canonical_key(factor.factor)
        if key is None:
            continue
        if not is_affirmative(values.get(key)):
            values[key] = factor.value

    return Findings(values=values, severe_items=frozenset(severe))


def _scale_bucket(value: float) -> float:
    if value >= 8:
        return 1.0
    if value >= 5:
        return 0.5
    return 0.0


def _past_cutoff(number: Optional[float], relevance: MedicalRelevance) -> bool:
    if number is None or relevance.cutoff is None:
        return False
    if relevance.cutoff_direction == "below":
        return number < relevance.cutoff
    return number > relevance.cutoff


def tagged_points(
    questionnaire: ProcessedQuestionnaire, condition: Condition
) -> tuple[float, list[str]]:
    """Weight of condition-tagged responses that are not catalog items."""
    total = 0.0
    sources: list[str] = []
    for response in questionnaire.responses:
        if canonical_key(response.question_id) is not None:
            continue
        relevance = response.medical_relevance
        tags = {condition_for_tag(tag) for tag in relevance.conditions}
        if condition not in tags or relevance.weight <= 0:
            continue

        answer = response.answer
        if response.type == "scale":
            number = _to_number(answer)
            points = relevance.weight * _scale_bucket(number) if number is not None else 0.0
        elif response.type == "numeric":
            number = _to_number(answer)
            points = relevance.weight if _past_cutoff(number, relevance) else 0.0
        else:
            points = relevance.weight if is_affirmative(answer) else 0.0

        if points > 0:
            total += points
            sources.append(f"tagged:{response.question_id}")
    return total, sources
