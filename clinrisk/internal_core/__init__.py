from .config import ConfigError, EngineConfig, load_config
from .history_store import HistoryStoreError, InMemoryRiskHistoryStore, RiskHistoryRepository
from .retry import RetryPolicy

__all__ = [
    "ConfigError",
    "EngineConfig",
    "load_config",
    "HistoryStoreError",
    "InMemoryRiskHistoryStore",
    "RiskHistoryRepository",
    "RetryPolicy",
]
