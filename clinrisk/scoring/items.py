from __future__ import annotations

"""
Questionnaire item catalog.

Design intent:
- Map every question id, symptom name and risk-factor name onto one canonical item key.
- Accept the Portuguese intake identifiers alongside English ones.
- Keep the catalog closed; unknown ids fall through to tagged scoring.
"""

import re
import unicodedata
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional

from clinrisk.internal_core.contracts import Condition

_D = Condition.DIABETES
_C = Condition.CARDIOVASCULAR
_M = Condition.MENTAL_HEALTH
_R = Condition.RESPIRATORY


@dataclass(frozen=True)
class CatalogItem:
    key: str
    conditions: tuple[Condition, ...]
    aliases: tuple[str, ...] = ()


_ITEMS: tuple[CatalogItem, ...] = (
    # shared demographics
    CatalogItem("age", (_D, _C, _M, _R), ("idade", "age_years")),
    CatalogItem("sex", (_C, _R), ("sexo", "gender", "genero")),
    # diabetes
    CatalogItem("excessive_thirst", (_D,), ("polydipsia", "sede_excessiva", "thirst")),
    CatalogItem("excessive_hunger", (_D,), ("polyphagia", "fome_excessiva", "hunger")),
    CatalogItem("frequent_urination", (_D,), ("polyuria", "urina_frequente", "urinacao_frequente")),
    CatalogItem("rapid_weight_loss", (_D,), ("weight_loss", "perda_peso", "perda_de_peso")),
    CatalogItem("fatigue", (_D,), ("cansaco", "tiredness")),
    CatalogItem("blurred_vision", (_D,), ("visao_turva", "vision_blurred")),
    CatalogItem("slow_healing", (_D,), ("cicatrizacao_lenta", "slow_wound_healing")),
    CatalogItem("frequent_infections", (_D,), ("infeccoes_frequentes",)),
    CatalogItem("family_history_diabetes", (_D,), ("historico_familiar_diabetes",)),
    CatalogItem("obesity", (_D,), ("obesidade", "obese")),
    CatalogItem("nausea_vomiting", (_D,), ("nausea", "vomiting", "nausea_vomitos", "vomito")),
    CatalogItem("fruity_breath", (_D,), ("halito_cetonico", "cetose", "ketone_breath", "ketosis")),
    CatalogItem("abdominal_pain", (_D,), ("dor_abdominal",)),
    CatalogItem("hypoglycemia_symptoms", (_D,), ("hipoglicemia", "hypoglycemia", "low_blood_sugar")),
    CatalogItem("hypoglycemic_medication", (_D,), ("insulin_use", "uso_insulina", "hipoglicemiante")),
    # cardiovascular
    CatalogItem("chest_pain", (_C,), ("dor_no_peito", "dor_peito")),
    CatalogItem("chest_pain_at_rest", (_C,), ("dor_no_peito_repouso", "rest_chest_pain")),
    CatalogItem("shortness_of_breath", (_C, _R), ("dyspnea", "falta_de_ar", "breathlessness")),
    CatalogItem("palpitations", (_C,), ("palpitacoes", "palpitacao")),
    CatalogItem("syncope", (_C,), ("desmaio", "fainting")),
    CatalogItem("smoking", (_C, _R), ("fumante", "smoker", "tabagismo")),
    CatalogItem("hypertension", (_C, _R), ("pressao_alta", "high_blood_pressure", "hipertensao")),
    CatalogItem("diabetes_diagnosis", (_C,), ("diabetes", "diabetico", "has_diabetes")),
    CatalogItem("high_cholesterol", (_C,), ("colesterol_alto", "cholesterol")),
    CatalogItem("family_history_cardiac", (_C,), ("historico_familiar_cardiaco",)),
    CatalogItem("systolic_bp", (_C,), ("pressao_sistolica", "systolic")),
    CatalogItem("diastolic_bp", (_C,), ("pressao_diastolica", "diastolic")),
    # mental health: PHQ-9
    CatalogItem("phq9_1", (_M,), ("little_interest", "pouco_interesse")),
    CatalogItem("phq9_2", (_M,), ("feeling_down", "desanimo", "depressed_mood")),
    CatalogItem("phq9_3", (_M,), ("sleep_problems", "problemas_sono")),
    CatalogItem("phq9_4", (_M,), ("low_energy", "pouca_energia")),
    CatalogItem("phq9_5", (_M,), ("appetite_change", "alteracao_apetite")),
    CatalogItem("phq9_6", (_M,), ("feeling_failure", "sentimento_fracasso")),
    CatalogItem("phq9_7", (_M,), ("trouble_concentrating", "dificuldade_concentracao")),
    CatalogItem("phq9_8", (_M,), ("psychomotor_change", "lentidao_agitacao")),
    CatalogItem("phq9_9", (_M,), ("self_harm_thoughts", "pensamentos_autolesao")),
    # mental health: GAD-7
    CatalogItem("gad7_1", (_M,), ("nervous", "nervosismo", "ansiedade")),
    CatalogItem("gad7_2", (_M,), ("uncontrolled_worry", "preocupacao_incontrolavel")),
    CatalogItem("gad7_3", (_M,), ("excessive_worry", "preocupacao_excessiva")),
    CatalogItem("gad7_4", (_M,), ("trouble_relaxing", "dificuldade_relaxar")),
    CatalogItem("gad7_5", (_M,), ("restlessness", "inquietacao")),
    CatalogItem("gad7_6", (_M,), ("irritability", "irritabilidade")),
    CatalogItem("gad7_7", (_M,), ("feeling_afraid", "medo")),
    # mental health: suicide screen
    CatalogItem("suicidal_ideation", (_M,), ("pensamentos_suicidas", "suicidal_thoughts")),
    CatalogItem("suicide_plan", (_M,), ("plano_suicida", "suicidal_plan")),
    CatalogItem("suicide_intent", (_M,), ("intencao_suicida", "suicidal_intent")),
    CatalogItem("access_to_means", (_M,), ("acesso_meios", "means_access")),
    CatalogItem("prior_attempt", (_M,), ("tentativa_anterior", "previous_attempt")),
    CatalogItem("hopelessness", (_M,), ("sem_esperanca", "desesperanca")),
    CatalogItem("social_support", (_M,), ("apoio_social", "family_support")),
    CatalogItem("reasons_for_living", (_M,), ("razoes_para_viver",)),
    CatalogItem("engaged_in_treatment", (_M,), ("em_tratamento", "in_treatment")),
    # respiratory
    CatalogItem("snoring", (_R,), ("ronco", "snores")),
    CatalogItem("daytime_fatigue", (_R,), ("sonolencia_diurna", "daytime_sleepiness")),
    CatalogItem("observed_apnea", (_R,), ("apneia_observada", "apnea_observed")),
    CatalogItem("bmi", (_R, _D), ("imc",)),
    CatalogItem("neck_circumference", (_R,), ("circunferencia_pescoco", "neck_cm")),
    CatalogItem("large_neck", (_R,), ("pescoco_largo",)),
    CatalogItem("wheezing", (_R,), ("chiado", "chiado_no_peito", "wheeze")),
    CatalogItem("chest_tightness", (_R,), ("aperto_no_peito",)),
    CatalogItem("cough", (_R,), ("tosse",)),
    CatalogItem("chronic_cough", (_R,), ("tosse_cronica",)),
    CatalogItem("sputum", (_R,), ("catarro", "expectoracao", "sputum_production")),
    CatalogItem("night_symptoms", (_R,), ("sintomas_noturnos", "nocturnal_symptoms")),
    CatalogItem("exercise_symptoms", (_R,), ("sintomas_exercicio", "exercise_induced")),
    CatalogItem("severe_dyspnea", (_R,), ("falta_de_ar_grave", "severe_shortness_of_breath")),
    CatalogItem("speech_difficulty", (_R,), ("dificuldade_falar", "cannot_speak")),
    CatalogItem("rapid_onset", (_R,), ("inicio_rapido", "sudden_onset")),
    CatalogItem("fever", (_R,), ("febre",)),
    CatalogItem("occupational_exposure", (_R,), ("exposicao_ocupacional",)),
)


def normalize_identifier(raw: str) -> str:
    text = unicodedata.normalize("NFKD", str(raw or ""))
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = re.sub(r"[^a-z0-9]+", "_", text.lower())
    return text.strip("_")


def _build_alias_index(items: tuple[CatalogItem, ...]) -> Mapping[str, str]:
    index: dict[str, str] = {}
    for item in items:
        for name in (item.key, *item.aliases):
            normalized = normalize_identifier(name)
            if normalized in index and index[normalized] != item.key:
                raise ValueError(f"duplicate catalog alias: {name}")
            index[normalized] = item.key
    return MappingProxyType(index)


CATALOG: Mapping[str, CatalogItem] = MappingProxyType({item.key: item for item in _ITEMS})
_ALIAS_INDEX = _build_alias_index(_ITEMS)

_CONDITION_TAGS: Mapping[str, Condition] = MappingProxyType(
    {
        "diabetes": _D,
        "dka": _D,
        "metabolic": _D,
        "cardiovascular": _C,
        "cardiac": _C,
        "heart": _C,
        "hypertension": _C,
        "mental_health": _M,
        "depression": _M,
        "anxiety": _M,
        "suicide": _M,
        "respiratory": _R,
        "sleep_apnea": _R,
        "asthma": _R,
        "copd": _R,
    }
)

PHQ9_ITEMS = tuple(f"phq9_{i}" for i in range(1, 10))
GAD7_ITEMS = tuple(f"gad7_{i}" for i in range(1, 8))


def canonical_key(raw: str) -> Optional[str]:
    return _ALIAS_INDEX.get(normalize_identifier(raw))


def condition_for_tag(tag: str) -> Optional[Condition]:
    return _CONDITION_TAGS.get(normalize_identifier(tag))
