from __future__ import annotations

import argparse
import json
from collections import Counter
from pathlib import Path
from typing import Any

import numpy as np

from clinrisk.internal_core.config import load_config
from clinrisk.internal_core.contracts import BulkAssessmentResult
from clinrisk.risk.engine import RiskAssessmentEngine


def latency_summary(latencies_ms: list[float]) -> dict[str, float]:
    """Mean and p50/p95/p99 latency; empty input gives an empty summary."""
    if not latencies_ms:
        return {}
    samples = np.asarray(latencies_ms, dtype=float)
    p50, p95, p99 = np.percentile(samples, [50, 95, 99])
    return {
        "count": float(samples.size),
        "mean_ms": float(samples.mean()),
        "p50_ms": float(p50),
        "p95_ms": float(p95),
        "p99_ms": float(p99),
    }


def describe_latency(summary: dict[str, float]) -> str:
    if not summary:
        return "no completed items"
    return (
        f"mean {summary['mean_ms']:.1f}ms, p50 {summary['p50_ms']:.1f}ms, "
        f"p95 {summary['p95_ms']:.1f}ms, p99 {summary['p99_ms']:.1f}ms "
        f"over {int(summary['count'])} items"
    )


def completion_share(completed: int, total: int) -> str:
    if total <= 0:
        return "no items"
    return f"{completed}/{total} completed ({completed / total:.1%})"


def load_items(path: Path) -> list[Any]:
    payload = json.loads(path.read_text(encoding="utf-8"))
    if isinstance(payload, dict) and isinstance(payload.get("items"), list):
        return payload["items"]
    if not isinstance(payload, list):
        raise SystemExit(f"expected a JSON list (or {{'items': [...]}}) in {path}")
    return payload


def summarize(result: BulkAssessmentResult) -> dict[str, Any]:
    completed = [item for item in result.items if item.status == "completed" and item.result]
    escalation_counts = Counter(item.result.protocol.escalation_level for item in completed)
    level_counts = Counter(item.result.composite.risk_level for item in completed)
    return {
        "total": result.total,
        "completed": result.completed,
        "failed": result.failed,
        "latencies": [item.latency_ms for item in completed],
        "escalation_counts": dict(escalation_counts),
        "risk_level_counts": dict(level_counts),
        "errors": [(item.index, item.error or "") for item in result.items if item.status == "failed"],
    }


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Run bulk risk assessment over a JSON file and summarize the outcome"
    )
    parser.add_argument(
        "--input",
        required=True,
        help="Path to a JSON list of questionnaires or {questionnaire, profile} items",
    )
    parser.add_argument(
        "--list-errors",
        action="store_true",
        help="Print the first line of each failed item's error in addition to summary.",
    )
    args = parser.parse_args()

    path = Path(args.input).expanduser()
    if not path.exists():
        raise SystemExit(f"input file not found: {path}")

    items = load_items(path)
    engine = RiskAssessmentEngine(load_config())
    try:
        stats = summarize(engine.bulk_assess(items))
    finally:
        engine.close()

    print(f"input: {path}")
    print("completion: " + completion_share(stats["completed"], stats["total"]))
    print(f"failed: {stats['failed']}")
    print("latency: " + describe_latency(latency_summary(stats["latencies"])))
    for level in ("emergency_dispatch", "human_review", "ai_only"):
        print(f"escalation_{level}: {stats['escalation_counts'].get(level, 0)}")
    for level in ("critical", "high", "moderate", "low"):
        print(f"risk_level_{level}: {stats['risk_level_counts'].get(level, 0)}")

    if args.list_errors:
        for index, error in stats["errors"]:
            first_line = error.splitlines()[0] if error else ""
            print(f"error[{index}]: {first_line}")


if __name__ == "__main__":
    main()
