from __future__ import annotations

import datetime as _dt

from .contracts import AuditEvent, AuditEventType
from .history_store import InMemoryRiskHistoryStore


def _ts_iso() -> str:
    return _dt.datetime.now(_dt.timezone.utc).isoformat()


def _sanitize_detail(detail: str) -> str:
    # Never put questionnaire answers in detail; ids and scores only.
    detail = (detail or "").replace("\n", " ").strip()
    if len(detail) > 200:
        detail = detail[:200] + "..."
    return detail


def log_event(
    store: InMemoryRiskHistoryStore,
    subject_id: str,
    event_type: AuditEventType,
    code: str,
    detail: str,
) -> None:
    event = AuditEvent(
        ts_iso=_ts_iso(),
        subject_id=subject_id,
        type=event_type,
        code=code,
        detail=_sanitize_detail(detail),
    )
    store.append_audit_event(subject_id, event)
