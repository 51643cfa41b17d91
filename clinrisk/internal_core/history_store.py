from __future__ import annotations

import bisect
from abc import ABC, abstractmethod
from datetime import datetime
from threading import Lock, RLock
from typing import Dict, List, Optional

from .contracts import AuditEvent, TemporalDataPoint


class HistoryStoreError(RuntimeError):
    def __init__(self, code: str, message: str, store_name: str):
        super().__init__(message)
        self.code = code
        self.message = message
        self.store_name = store_name


class RiskHistoryRepository(ABC):
    """Persistence boundary for temporal risk points.

    Points are append-only; a correction is a new point.
    """

    @abstractmethod
    def append(self, subject_id: str, series: str, point: TemporalDataPoint) -> None: ...

    @abstractmethod
    def load(
        self, subject_id: str, since: Optional[datetime] = None
    ) -> Dict[str, List[TemporalDataPoint]]: ...

    @abstractmethod
    def name(self) -> str: ...


class InMemoryRiskHistoryStore(RiskHistoryRepository):
    def __init__(self) -> None:
        self._registry_lock = Lock()
        self._subject_locks: Dict[str, RLock] = {}
        self._series: Dict[str, Dict[str, List[TemporalDataPoint]]] = {}
        self._audit_events: Dict[str, List[AuditEvent]] = {}

    def _lock_for(self, subject_id: str) -> RLock:
        with self._registry_lock:
            lock = self._subject_locks.get(subject_id)
            if lock is None:
                lock = RLock()
                self._subject_locks[subject_id] = lock
                self._series[subject_id] = {}
                self._audit_events[subject_id] = []
            return lock

    def name(self) -> str:
        return "in_memory"

    def append(self, subject_id: str, series: str, point: TemporalDataPoint) -> None:
        if not subject_id:
            raise HistoryStoreError("INVALID_SUBJECT", "subject_id must be non-empty", self.name())
        with self._lock_for(subject_id):
            points = self._series[subject_id].setdefault(series, [])
            keys = [p.timestamp for p in points]
            # Keep series ordered by timestamp; equal timestamps keep arrival order.
            points.insert(bisect.bisect_right(keys, point.timestamp), point)

    def load(
        self, subject_id: str, since: Optional[datetime] = None
    ) -> Dict[str, List[TemporalDataPoint]]:
        with self._registry_lock:
            known = subject_id in self._subject_locks
        if not known:
            return {}
        with self._lock_for(subject_id):
            return {
                series: [p for p in points if since is None or p.timestamp >= since]
                for series, points in self._series[subject_id].items()
            }

    def has_history(self, subject_id: str) -> bool:
        with self._registry_lock:
            if subject_id not in self._subject_locks:
                return False
        with self._lock_for(subject_id):
            return any(self._series[subject_id].values())

    def append_audit_event(self, subject_id: str, event: AuditEvent) -> None:
        with self._lock_for(subject_id):
            self._audit_events[subject_id].append(event)

    def list_audit_events(self, subject_id: str) -> List[AuditEvent]:
        with self._registry_lock:
            if subject_id not in self._subject_locks:
                return []
        with self._lock_for(subject_id):
            return list(self._audit_events[subject_id])
