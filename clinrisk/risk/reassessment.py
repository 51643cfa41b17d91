from __future__ import annotations

"""
Map free-text emergency symptoms onto catalog items.

Design intent:
- Match narrowly with explicit patterns; unmatched text is reported, never guessed.
- Honor simple negations ("no chest pain") so denials do not escalate.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Sequence

from clinrisk.internal_core.contracts import ProcessedQuestionnaire, questionnaire_from_answers
from clinrisk.scoring.items import canonical_key

_SYMPTOM_PATTERNS: tuple[tuple[re.Pattern[str], tuple[str, ...]], ...] = (
    (
        re.compile(r"\b(chest pain at rest|chest pain while resting|dor no peito em repouso)\b", re.IGNORECASE),
        ("chest_pain_at_rest", "chest_pain"),
    ),
    (re.compile(r"\b(chest pain|dor no peito|chest pressure)\b", re.IGNORECASE), ("chest_pain",)),
    (
        re.compile(
            r"\b(severe (?:shortness of breath|dyspnea)|can(?:no|')t breathe|falta de ar grave)\b",
            re.IGNORECASE,
        ),
        ("severe_dyspnea", "shortness_of_breath"),
    ),
    (
        re.compile(r"\b(shortness of breath|short of breath|dyspnea|falta de ar|breathless)\b", re.IGNORECASE),
        ("shortness_of_breath",),
    ),
    (re.compile(r"\b(wheez\w*|chiado)\b", re.IGNORECASE), ("wheezing",)),
    (
        re.compile(r"\b(can(?:no|')t (?:speak|talk)|difficulty (?:speaking|talking)|dificuldade (?:de )?falar)\b", re.IGNORECASE),
        ("speech_difficulty",),
    ),
    (re.compile(r"\b(sudden(?:ly)?|rapid onset|came on fast|de repente)\b", re.IGNORECASE), ("rapid_onset",)),
    (re.compile(r"\b(faint\w*|passed out|syncope|desmai\w*)\b", re.IGNORECASE), ("syncope",)),
    (re.compile(r"\b(palpitations?|racing heart|palpita\w*)\b", re.IGNORECASE), ("palpitations",)),
    (re.compile(r"\b(very thirsty|excessive thirst|sede excessiva)\b", re.IGNORECASE), ("excessive_thirst",)),
    (re.compile(r"\b(always hungry|excessive hunger|fome excessiva)\b", re.IGNORECASE), ("excessive_hunger",)),
    (
        re.compile(r"\b(frequent urination|urinating (?:a lot|often)|urina frequente)\b", re.IGNORECASE),
        ("frequent_urination",),
    ),
    (re.compile(r"\b(weight loss|losing weight|perda de peso)\b", re.IGNORECASE), ("rapid_weight_loss",)),
    (re.compile(r"\b(nausea|vomit\w*|n[aá]usea)\b", re.IGNORECASE), ("nausea_vomiting",)),
    (
        re.compile(r"\b(fruity breath|ketone breath|h[aá]lito cet[oô]nico)\b", re.IGNORECASE),
        ("fruity_breath",),
    ),
    (re.compile(r"\b(abdominal pain|stomach pain|dor abdominal)\b", re.IGNORECASE), ("abdominal_pain",)),
    (
        re.compile(r"\b(shak\w+ and sweat\w*|low blood sugar|hypoglyc\w*|hipoglicemia)\b", re.IGNORECASE),
        ("hypoglycemia_symptoms",),
    ),
    (re.compile(r"\b(fever|febre)\b", re.IGNORECASE), ("fever",)),
    (re.compile(r"\b(sputum|phlegm|catarro)\b", re.IGNORECASE), ("sputum",)),
    (
        re.compile(r"\b(plan to (?:kill myself|end my life)|suicide plan|plano suicida)\b", re.IGNORECASE),
        ("suicide_plan", "suicidal_ideation"),
    ),
    (
        re.compile(r"\b(suicidal|kill myself|end my life|want to die|pensamentos suicidas)\b", re.IGNORECASE),
        ("suicidal_ideation",),
    ),
    (re.compile(r"\b(hopeless\w*|sem esperan[cç]a)\b", re.IGNORECASE), ("hopelessness",)),
)

_NEGATION_RE = re.compile(r"^\s*(no|not|without|denies|sem|n[aã]o)\b", re.IGNORECASE)

_HYPOGLYCEMIC_MEDICATIONS = frozenset({"insulin", "glibenclamide", "glipizide", "gliclazide", "glimepiride"})


@dataclass(frozen=True)
class SymptomMatch:
    items: tuple[str, ...]
    unmatched: tuple[str, ...]


def match_symptoms(symptoms: Iterable[str]) -> SymptomMatch:
    items: list[str] = []
    unmatched: list[str] = []
    for raw in symptoms:
        text = (raw or "").strip()
        if not text:
            continue
        if _NEGATION_RE.search(text):
            continue
        matched: list[str] = []
        direct = canonical_key(text)
        if direct is not None:
            matched.append(direct)
        for pattern, keys in _SYMPTOM_PATTERNS:
            if pattern.search(text):
                matched.extend(keys)
        if not matched:
            unmatched.append(text)
            continue
        for key in matched:
            if key not in items:
                items.append(key)
    return SymptomMatch(items=tuple(items), unmatched=tuple(unmatched))


def on_hypoglycemic_medication(medications: Sequence[str]) -> bool:
    for medication in medications:
        tokens = re.findall(r"[a-z]+", (medication or "").lower())
        if any(token in _HYPOGLYCEMIC_MEDICATIONS for token in tokens):
            return True
    return False


def build_emergency_questionnaire(
    subject_id: str,
    symptoms: Sequence[str],
    medications: Sequence[str] = (),
) -> tuple[ProcessedQuestionnaire, SymptomMatch]:
    match = match_symptoms(symptoms)
    answers: dict[str, object] = {key: True for key in match.items}
    if on_hypoglycemic_medication(medications):
        answers["hypoglycemic_medication"] = True
    questionnaire = questionnaire_from_answers(
        subject_id, answers, questionnaire_id="emergency_reassessment"
    )
    return questionnaire, match
