from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional


class ConfigError(ValueError):
    pass


def _getenv_str(name: str, default: str) -> str:
    value = os.getenv(name)
    return default if value is None else value


def _getenv_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from exc


def _getenv_float(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a number, got {value!r}") from exc


def _getenv_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value.strip().lower() in {"1", "true", "t", "yes", "y", "on"}


def _env_set(name: str) -> bool:
    value = os.getenv(name)
    return value is not None and value != ""


def _getenv_float_preset(name: str, default: float, preset_value: Optional[float]) -> float:
    if _env_set(name):
        return _getenv_float(name, default)
    if preset_value is not None:
        return float(preset_value)
    return default


def _getenv_int_preset(name: str, default: int, preset_value: Optional[int]) -> int:
    if _env_set(name):
        return _getenv_int(name, default)
    if preset_value is not None:
        return int(preset_value)
    return default


def _preset_overrides(name: str) -> dict[str, float]:
    # Lower thresholds escalate earlier; used for high-acuity deployments.
    if name == "conservative_v1":
        return {
            "CLINRISK_PRESENT_THRESHOLD": 20.0,
            "CLINRISK_HIGH_CONDITION_THRESHOLD": 40.0,
            "CLINRISK_DKA_THRESHOLD": 60.0,
            "CLINRISK_TREND_DELTA": 3.0,
        }
    return {}


@dataclass(frozen=True)
class EngineConfig:
    CLINRISK_PRESET: str
    CLINRISK_LOG_LEVEL: str
    CLINRISK_PARALLEL_SCORING: bool
    CLINRISK_SCORER_WORKERS: int
    CLINRISK_BULK_MAX_CONCURRENCY: int
    CLINRISK_HISTORY_WORKERS: int
    CLINRISK_DKA_THRESHOLD: float
    CLINRISK_PRESENT_THRESHOLD: float
    CLINRISK_HIGH_CONDITION_THRESHOLD: float
    CLINRISK_SPILLOVER_WEIGHT: float
    CLINRISK_INTERACTION_WEIGHT: float
    CLINRISK_PENALTY_BASE: float
    CLINRISK_PENALTY_CAP: float
    CLINRISK_SYNERGY_CAP: float
    CLINRISK_SOCIOECONOMIC_MIN: float
    CLINRISK_SOCIOECONOMIC_MAX: float
    CLINRISK_TREND_DELTA: float
    CLINRISK_PROJECTION_HORIZON_DAYS: int
    CLINRISK_HISTORY_RETRY_ATTEMPTS: int
    CLINRISK_HISTORY_RETRY_BACKOFF_SEC: float

    def validate(self) -> "EngineConfig":
        if self.CLINRISK_SCORER_WORKERS < 1:
            raise ConfigError("CLINRISK_SCORER_WORKERS must be >= 1")
        if self.CLINRISK_BULK_MAX_CONCURRENCY < 1:
            raise ConfigError("CLINRISK_BULK_MAX_CONCURRENCY must be >= 1")
        if self.CLINRISK_HISTORY_WORKERS < 1:
            raise ConfigError("CLINRISK_HISTORY_WORKERS must be >= 1")
        if self.CLINRISK_HISTORY_RETRY_ATTEMPTS < 1:
            raise ConfigError("CLINRISK_HISTORY_RETRY_ATTEMPTS must be >= 1")
        if not 0.0 < self.CLINRISK_SOCIOECONOMIC_MIN <= 1.0 <= self.CLINRISK_SOCIOECONOMIC_MAX:
            raise ConfigError(
                "socioeconomic bounds must satisfy 0 < CLINRISK_SOCIOECONOMIC_MIN <= 1 <= CLINRISK_SOCIOECONOMIC_MAX"
            )
        if self.CLINRISK_PENALTY_BASE < 1.0 or self.CLINRISK_PENALTY_CAP < 1.0:
            raise ConfigError("penalty base and cap must be >= 1")
        if self.CLINRISK_SYNERGY_CAP < 1.0:
            raise ConfigError("CLINRISK_SYNERGY_CAP must be >= 1")
        if not 0.0 < self.CLINRISK_SPILLOVER_WEIGHT <= 1.0:
            raise ConfigError("CLINRISK_SPILLOVER_WEIGHT must be in (0, 1]")
        if self.CLINRISK_INTERACTION_WEIGHT <= 0.0:
            raise ConfigError("CLINRISK_INTERACTION_WEIGHT must be > 0")
        return self


def load_config() -> EngineConfig:
    preset_name = _getenv_str("CLINRISK_PRESET", "")
    preset = _preset_overrides(preset_name)

    return EngineConfig(
        CLINRISK_PRESET=preset_name,
        CLINRISK_LOG_LEVEL=_getenv_str("CLINRISK_LOG_LEVEL", "INFO"),
        CLINRISK_PARALLEL_SCORING=_getenv_bool("CLINRISK_PARALLEL_SCORING", True),
        CLINRISK_SCORER_WORKERS=_getenv_int("CLINRISK_SCORER_WORKERS", 4),
        CLINRISK_BULK_MAX_CONCURRENCY=_getenv_int("CLINRISK_BULK_MAX_CONCURRENCY", 5),
        CLINRISK_HISTORY_WORKERS=_getenv_int("CLINRISK_HISTORY_WORKERS", 2),
        CLINRISK_DKA_THRESHOLD=_getenv_float_preset(
            "CLINRISK_DKA_THRESHOLD", 70.0, preset.get("CLINRISK_DKA_THRESHOLD")
        ),
        CLINRISK_PRESENT_THRESHOLD=_getenv_float_preset(
            "CLINRISK_PRESENT_THRESHOLD", 25.0, preset.get("CLINRISK_PRESENT_THRESHOLD")
        ),
        CLINRISK_HIGH_CONDITION_THRESHOLD=_getenv_float_preset(
            "CLINRISK_HIGH_CONDITION_THRESHOLD",
            50.0,
            preset.get("CLINRISK_HIGH_CONDITION_THRESHOLD"),
        ),
        CLINRISK_SPILLOVER_WEIGHT=_getenv_float("CLINRISK_SPILLOVER_WEIGHT", 0.1),
        CLINRISK_INTERACTION_WEIGHT=_getenv_float("CLINRISK_INTERACTION_WEIGHT", 0.1),
        CLINRISK_PENALTY_BASE=_getenv_float("CLINRISK_PENALTY_BASE", 1.3),
        CLINRISK_PENALTY_CAP=_getenv_float("CLINRISK_PENALTY_CAP", 2.0),
        CLINRISK_SYNERGY_CAP=_getenv_float("CLINRISK_SYNERGY_CAP", 3.0),
        CLINRISK_SOCIOECONOMIC_MIN=_getenv_float("CLINRISK_SOCIOECONOMIC_MIN", 0.8),
        CLINRISK_SOCIOECONOMIC_MAX=_getenv_float("CLINRISK_SOCIOECONOMIC_MAX", 1.5),
        CLINRISK_TREND_DELTA=_getenv_float_preset(
            "CLINRISK_TREND_DELTA", 5.0, preset.get("CLINRISK_TREND_DELTA")
        ),
        CLINRISK_PROJECTION_HORIZON_DAYS=_getenv_int_preset(
            "CLINRISK_PROJECTION_HORIZON_DAYS", 7, None
        ),
        CLINRISK_HISTORY_RETRY_ATTEMPTS=_getenv_int("CLINRISK_HISTORY_RETRY_ATTEMPTS", 3),
        CLINRISK_HISTORY_RETRY_BACKOFF_SEC=_getenv_float("CLINRISK_HISTORY_RETRY_BACKOFF_SEC", 0.05),
    ).validate()
