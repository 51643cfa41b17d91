from .cardiovascular import score_cardiovascular
from .diabetes import score_diabetes
from .mental_health import score_mental_health
from .registry import SCORERS, build_scorer_table, score_all
from .respiratory import score_respiratory

__all__ = [
    "SCORERS",
    "build_scorer_table",
    "score_all",
    "score_cardiovascular",
    "score_diabetes",
    "score_mental_health",
    "score_respiratory",
]
