import json

import pytest

from clinrisk.internal_core.contracts import BulkAssessmentResult, BulkItemResult
from clinrisk.scripts.bulk_assess_stats import (
    completion_share,
    describe_latency,
    latency_summary,
    load_items,
    summarize,
)


def test_latency_summary_uses_interpolated_percentiles() -> None:
    assert latency_summary([]) == {}
    assert describe_latency({}) == "no completed items"
    summary = latency_summary([0.0, 10.0])
    assert summary["count"] == 2.0
    assert summary["mean_ms"] == pytest.approx(5.0)
    assert summary["p50_ms"] == pytest.approx(5.0)
    assert summary["p95_ms"] == pytest.approx(9.5)
    assert describe_latency(summary).endswith("over 2 items")
    assert completion_share(1, 4) == "1/4 completed (25.0%)"
    assert completion_share(0, 0) == "no items"


def test_load_items_accepts_list_or_items_wrapper(tmp_path) -> None:
    as_list = tmp_path / "list.json"
    as_list.write_text(json.dumps([{"subject_id": "a"}]), encoding="utf-8")
    wrapped = tmp_path / "wrapped.json"
    wrapped.write_text(json.dumps({"items": [{"subject_id": "b"}]}), encoding="utf-8")
    bad = tmp_path / "bad.json"
    bad.write_text(json.dumps({"subject_id": "c"}), encoding="utf-8")

    assert load_items(as_list) == [{"subject_id": "a"}]
    assert load_items(wrapped) == [{"subject_id": "b"}]
    with pytest.raises(SystemExit):
        load_items(bad)


def test_summarize_counts_failures() -> None:
    result = BulkAssessmentResult(
        total=2,
        completed=0,
        failed=2,
        items=[
            BulkItemResult(index=0, status="failed", error="bad payload\ndetails"),
            BulkItemResult(index=1, status="failed", error="also bad"),
        ],
    )
    stats = summarize(result)
    assert stats["failed"] == 2
    assert stats["latencies"] == []
    assert stats["escalation_counts"] == {}
    assert stats["errors"] == [(0, "bad payload\ndetails"), (1, "also bad")]
