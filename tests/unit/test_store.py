"""Tests for the file-backed store adapters."""

import json
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest

from dealdedupe.audit import AuditLogger
from dealdedupe.clustering import ClusterStatus, DuplicateCluster
from dealdedupe.engine import RepositoryError
from dealdedupe.matching import DuplicateStrategy, MatchCandidate
from dealdedupe.models import DealRecord, EntityType
from dealdedupe.store import (
    AuditNotifier,
    DetectionRecord,
    InMemoryRecordRepository,
    JsonlMatchStore,
    JsonlRecordRepository,
    RecordValidationError,
    load_records,
    select_candidates,
    summarize_clusters,
    summarize_detections,
    validate_record,
    write_jsonl,
)

MakeDeal = Callable[..., DealRecord]
WriteRecords = Callable[..., Path]


def _match(
    matched_id: str,
    confidence: float,
    strategy: DuplicateStrategy = DuplicateStrategy.FUZZY_NAME,
) -> MatchCandidate:
    return MatchCandidate(
        matched_entity_id=matched_id,
        matched_entity=DealRecord(id=matched_id, deal_name="x", customer_name="y"),
        confidence=confidence,
        strategy=strategy,
        similarity_factors={"deal_name": confidence},
        reasoning="test",
    )


# ---------------------------------------------------------------------------
# Record files
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_validate_record_accepts_minimal_and_full(full_deal: DealRecord) -> None:
    """Test valid records pass schema validation."""
    validate_record({"deal_name": "Acme Renewal", "customer_name": "Acme Inc"})
    validate_record(full_deal.to_dict())


@pytest.mark.unit
@pytest.mark.parametrize(
    ("data", "fragment"),
    [
        ({"customer_name": "Acme Inc"}, "deal_name"),
        ({"deal_name": "Acme", "customer_name": "Acme", "deal_value": "lots"}, "deal_value"),
        ({"deal_name": "Acme", "customer_name": "Acme", "products": [1]}, "products/0"),
        (["not", "an", "object"], "<record>"),
    ],
)
def test_validate_record_rejects_invalid(data: object, fragment: str) -> None:
    """Test schema violations name the offending location."""
    with pytest.raises(RecordValidationError, match=fragment):
        validate_record(data, line=3)


@pytest.mark.unit
def test_load_records_round_trip(
    tmp_path: Path, full_deal: DealRecord, write_records: WriteRecords
) -> None:
    """Test records written as JSONL load back unchanged."""
    path = write_records(tmp_path / "deals.jsonl", [full_deal])

    assert load_records(path) == [full_deal]


@pytest.mark.unit
def test_load_records_skips_blank_lines(tmp_path: Path) -> None:
    """Test blank lines are ignored."""
    path = tmp_path / "deals.jsonl"
    path.write_text('\n{"deal_name": "A", "customer_name": "B", "id": 7}\n\n')

    records = load_records(path)

    assert len(records) == 1
    assert records[0].id == "7"


@pytest.mark.unit
def test_load_records_reports_line_numbers(tmp_path: Path) -> None:
    """Test invalid JSON and invalid records report their line."""
    bad_json = tmp_path / "bad_json.jsonl"
    bad_json.write_text('{"deal_name": "A", "customer_name": "B"}\n{oops\n')
    bad_record = tmp_path / "bad_record.jsonl"
    bad_record.write_text('{"deal_name": "A"}\n')

    with pytest.raises(RecordValidationError, match="line 2: invalid JSON") as exc_info:
        load_records(bad_json)
    assert exc_info.value.line == 2

    with pytest.raises(RecordValidationError, match="line 1: "):
        load_records(bad_record)


@pytest.mark.unit
def test_load_records_missing_file(tmp_path: Path) -> None:
    """Test a missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        load_records(tmp_path / "missing.jsonl")


@pytest.mark.unit
def test_write_jsonl_uses_to_dict(tmp_path: Path, make_deal: MakeDeal) -> None:
    """Test objects are written through to_dict with sorted keys."""
    path = tmp_path / "out" / "rows.jsonl"

    write_jsonl([make_deal("a"), {"b": 1, "a": 2}], path)

    lines = path.read_text().splitlines()
    assert json.loads(lines[0])["id"] == "a"
    assert lines[1] == '{"a": 2, "b": 1}'


# ---------------------------------------------------------------------------
# Repositories
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_select_candidates_filters_and_orders(make_deal: MakeDeal) -> None:
    """Test the candidate query matches customer or vendor, newest first."""
    existing = [
        make_deal("old", customer_name="Acme Inc International"),
        make_deal("vendor", customer_name="Zenith", vendor_id="v1"),
        make_deal("rejected", customer_name="Acme Inc", status="rejected"),
        make_deal("other", customer_name="Globex"),
        make_deal("new", customer_name="ACME INC"),
    ]
    record = make_deal("x", customer_name="Acme Inc", vendor_id="v1")

    selected = select_candidates(record, existing)

    assert [r.id for r in selected] == ["new", "vendor", "old"]
    assert [r.id for r in select_candidates(record, existing, limit=2)] == ["new", "vendor"]


@pytest.mark.unit
def test_in_memory_repository(make_deal: MakeDeal) -> None:
    """Test the in-memory repository applies the query and hides rejected records."""
    repo = InMemoryRecordRepository([make_deal("a"), make_deal("r", status="rejected")])
    repo.add(make_deal("b"))

    assert len(repo) == 3
    assert [r.id for r in repo.find_candidates(make_deal("x"))] == ["b", "a"]
    assert [r.id for r in repo.all_records()] == ["a", "b"]


@pytest.mark.unit
def test_jsonl_repository_rereads_file(
    tmp_path: Path, make_deal: MakeDeal, write_records: WriteRecords
) -> None:
    """Test the JSONL repository sees records appended after construction."""
    path = write_records(tmp_path / "deals.jsonl", [make_deal("a")])
    repo = JsonlRecordRepository(path, candidate_limit=10)
    assert [r.id for r in repo.all_records()] == ["a"]

    write_records(path, [make_deal("a"), make_deal("b")])

    assert [r.id for r in repo.find_candidates(make_deal("x"))] == ["b", "a"]


@pytest.mark.unit
def test_jsonl_repository_wraps_failures(tmp_path: Path) -> None:
    """Test missing or invalid files surface as RepositoryError."""
    missing = JsonlRecordRepository(tmp_path / "missing.jsonl")
    with pytest.raises(RepositoryError) as exc_info:
        missing.all_records()
    assert exc_info.value.source == str(tmp_path / "missing.jsonl")

    bad = tmp_path / "bad.jsonl"
    bad.write_text('{"deal_name": 1}\n')
    with pytest.raises(RepositoryError, match="line 1"):
        JsonlRecordRepository(bad).find_candidates(
            DealRecord(deal_name="a", customer_name="b")
        )


# ---------------------------------------------------------------------------
# Match store
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_match_store_upserts_on_sorted_pair(tmp_path: Path) -> None:
    """Test recording A→B then B→A updates one row and keeps its status."""
    store = JsonlMatchStore(tmp_path / "matches.jsonl")
    store.record_match(EntityType.DEAL, "b", "a", _match("a", 0.90))
    store.set_status(EntityType.DEAL, "a", "b", "confirmed")

    store.record_match(EntityType.DEAL, "a", "b", _match("b", 0.97, DuplicateStrategy.EXACT_MATCH))

    rows = store.rows()
    assert len(rows) == 1
    assert (rows[0].entity_id_1, rows[0].entity_id_2) == ("a", "b")
    assert rows[0].confidence_level == 0.97
    assert rows[0].detection_strategy == "exact_match"
    assert rows[0].status == "confirmed"


@pytest.mark.unit
def test_match_store_rejects_self_match_and_bad_status(tmp_path: Path) -> None:
    """Test self matches, unknown statuses and unknown pairs are errors."""
    store = JsonlMatchStore(tmp_path / "matches.jsonl")

    with pytest.raises(ValueError, match="itself"):
        store.record_match(EntityType.DEAL, "a", "a", _match("a", 0.9))

    store.record_match(EntityType.DEAL, "a", "b", _match("b", 0.9))
    with pytest.raises(ValueError, match="Unknown status"):
        store.set_status("deal", "a", "b", "maybe")
    with pytest.raises(KeyError):
        store.set_status("deal", "a", "z", "confirmed")


@pytest.mark.unit
def test_match_store_persists_between_instances(tmp_path: Path) -> None:
    """Test rows survive reopening the store."""
    path = tmp_path / "matches.jsonl"
    JsonlMatchStore(path).record_match(EntityType.DEAL, "a", "b", _match("b", 0.9))

    reopened = JsonlMatchStore(path).rows()

    assert len(reopened) == 1
    assert reopened[0].similarity_factors == {"deal_name": 0.9}
    assert reopened[0].detected_at.tzinfo is not None


@pytest.mark.unit
def test_match_store_failed_write_keeps_previous_file(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Test a write interrupted before the rename leaves the stored rows intact."""
    path = tmp_path / "matches.jsonl"
    store = JsonlMatchStore(path)
    store.record_match(EntityType.DEAL, "a", "b", _match("b", 0.9))
    before = path.read_text()

    def _fail_fsync(fd: int) -> None:
        raise OSError("disk full")

    monkeypatch.setattr("dealdedupe.store.match_store.os.fsync", _fail_fsync)
    with pytest.raises(OSError, match="disk full"):
        store.record_match(EntityType.DEAL, "c", "d", _match("d", 0.95))

    assert path.read_text() == before
    assert [(r.entity_id_1, r.entity_id_2) for r in JsonlMatchStore(path).rows()] == [("a", "b")]


@pytest.mark.unit
def test_match_store_leaves_no_temp_file(tmp_path: Path) -> None:
    """Test successful writes replace the file without leftovers."""
    store = JsonlMatchStore(tmp_path / "matches.jsonl")
    store.record_match(EntityType.DEAL, "a", "b", _match("b", 0.9))
    store.set_status("deal", "a", "b", "confirmed")

    assert sorted(p.name for p in tmp_path.iterdir()) == ["matches.jsonl"]


@pytest.mark.unit
def test_match_store_high_confidence(tmp_path: Path) -> None:
    """Test only pending pairs at or above the threshold are listed, best first."""
    store = JsonlMatchStore(tmp_path / "matches.jsonl")
    store.record_match(EntityType.DEAL, "a", "b", _match("b", 0.96))
    store.record_match(EntityType.DEAL, "a", "c", _match("c", 0.99))
    store.record_match(EntityType.DEAL, "a", "d", _match("d", 0.97))
    store.record_match(EntityType.DEAL, "a", "e", _match("e", 0.80))
    store.record_match(EntityType.VENDOR, "v1", "v2", _match("v2", 0.99))
    store.set_status(EntityType.DEAL, "a", "d", "rejected")

    rows = store.high_confidence()

    assert [r.entity_id_2 for r in rows] == ["c", "b"]
    assert len(store.high_confidence(limit=1)) == 1
    assert [r.entity_id_1 for r in store.high_confidence(entity_type="vendor")] == ["v1"]


# ---------------------------------------------------------------------------
# Notifier
# ---------------------------------------------------------------------------


@pytest.mark.unit
def test_audit_notifier_writes_event(tmp_path: Path) -> None:
    """Test notifications become audit events keyed by entity id."""
    log_path = tmp_path / "events.jsonl"
    with AuditLogger(run_id="r", log_path=log_path) as logger:
        AuditNotifier(logger).notify("duplicate.detected", {"entity_id": "a", "matches_count": 2})

    event = json.loads(log_path.read_text().splitlines()[0])
    assert event["event"] == "duplicate.detected"
    assert event["rid"] == "a"
    assert event["data"]["matches_count"] == 2


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------


def _row(
    id_2: str,
    confidence: float,
    *,
    entity_type: str = "deal",
    strategy: str = "fuzzy_name",
    status: str = "pending",
    detected_at: datetime | None = None,
) -> DetectionRecord:
    return DetectionRecord(
        entity_type=entity_type,
        entity_id_1="a",
        entity_id_2=id_2,
        similarity_score=confidence,
        confidence_level=confidence,
        detection_strategy=strategy,
        status=status,
        detected_at=detected_at or datetime(2024, 6, 1, tzinfo=UTC),
    )


@pytest.mark.unit
def test_summarize_detections() -> None:
    """Test per-type counts, confidence bands and strategy breakdown."""
    rows = [
        _row("b", 0.99, strategy="exact_match"),
        _row("c", 0.90, status="confirmed"),
        _row("d", 0.70),
        _row("e", 0.96, entity_type="vendor"),
    ]

    summary = summarize_detections(rows)

    deal, vendor = summary.detection_stats
    assert deal.entity_type == "deal"
    assert deal.total_detections == 3
    assert deal.avg_confidence == pytest.approx((0.99 + 0.90 + 0.70) / 3)
    assert deal.very_high_confidence_count == 1
    assert deal.high_confidence_count == 1
    assert deal.status_counts == {"pending": 2, "confirmed": 1, "rejected": 0, "auto_merged": 0}
    assert vendor.total_detections == 1
    assert [(s.strategy, s.usage_count) for s in summary.strategy_breakdown] == [
        ("fuzzy_name", 3),
        ("exact_match", 1),
    ]
    assert summary.to_dict()["detection_stats"][0]["confirmed_count"] == 1


@pytest.mark.unit
def test_summarize_detections_filters() -> None:
    """Test entity type and recency filters."""
    now = datetime(2024, 6, 30, tzinfo=UTC)
    rows = [
        _row("b", 0.9, detected_at=now - timedelta(days=2)),
        _row("c", 0.9, detected_at=now - timedelta(days=40)),
        _row("d", 0.9, entity_type="vendor", detected_at=now),
    ]

    recent = summarize_detections(rows, days=30, now=now)
    deals = summarize_detections(rows, entity_type="deal")

    assert [s.total_detections for s in recent.detection_stats] == [1, 1]
    assert [s.entity_type for s in deals.detection_stats] == ["deal"]
    assert summarize_detections([]).detection_stats == []


@pytest.mark.unit
def test_summarize_clusters() -> None:
    """Test cluster counts and sizes per entity type."""
    created = datetime(2024, 6, 1, tzinfo=UTC)

    def _cluster(ids: tuple[str, ...], status: ClusterStatus) -> DuplicateCluster:
        return DuplicateCluster(
            cluster_id=f"cluster_{'_'.join(ids)}",
            cluster_key="|".join(ids),
            entity_type=EntityType.DEAL,
            entity_ids=ids,
            confidence_score=0.85,
            created_at=created,
            status=status,
        )

    summary = summarize_clusters(
        [
            _cluster(("a", "b"), ClusterStatus.ACTIVE),
            _cluster(("c", "d", "e", "f"), ClusterStatus.MERGED),
        ]
    )

    assert summary == {
        "deal": {
            "total_clusters": 2,
            "avg_cluster_size": 3.0,
            "max_cluster_size": 4,
            "active_clusters": 1,
            "merged_clusters": 1,
        }
    }
