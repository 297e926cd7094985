"""Tests for cross-source duplicate reports."""

from collections.abc import Callable

import pytest

from dealdedupe.engine import DuplicateDetector, find_cross_source_duplicates
from dealdedupe.models import DealRecord

MakeDeal = Callable[..., DealRecord]


@pytest.fixture
def tagged_records(make_deal: MakeDeal) -> list[DealRecord]:
    """Records from three files; one deal appears in two of them."""
    return [
        make_deal("f1-a", "Acme Renewal", "Acme Inc", source_file_id="f1"),
        make_deal("f1-b", "Acme Renewal", "Acme Corp", source_file_id="f1"),
        make_deal("f2-a", "ACME renewal", "Acme, Inc.", source_file_id="f2"),
        make_deal("f3-a", "Globex Migration", "Globex", source_file_id="f3"),
        make_deal("untagged", "Acme Renewal", "Acme Inc"),
    ]


@pytest.mark.unit
def test_cross_source_keeps_only_matches_across_files(
    tagged_records: list[DealRecord],
) -> None:
    """Test same-file matches are dropped and untagged records ignored."""
    duplicates = find_cross_source_duplicates(DuplicateDetector(), tagged_records)

    by_id = {d.entity_id: d for d in duplicates}
    assert list(by_id) == ["f1-a", "f1-b", "f2-a"]
    assert [m.matched_entity_id for m in by_id["f1-a"].matches] == ["f2-a"]
    assert sorted(m.matched_entity_id for m in by_id["f2-a"].matches) == ["f1-a", "f1-b"]
    assert by_id["f2-a"].source_file_id == "f2"


@pytest.mark.unit
def test_cross_source_restricted_to_requested_files(tagged_records: list[DealRecord]) -> None:
    """Test requested source ids restrict both records and pool."""
    duplicates = find_cross_source_duplicates(DuplicateDetector(), tagged_records, ["f1", "f3"])

    assert duplicates == []


@pytest.mark.unit
def test_cross_source_serializes_match_sources(tagged_records: list[DealRecord]) -> None:
    """Test serialized matches carry the matched record's source file."""
    duplicates = find_cross_source_duplicates(DuplicateDetector(), tagged_records)

    data = duplicates[0].to_dict()

    assert data["source_file_id"] == "f1"
    assert data["matches"][0]["source_file_id"] == "f2"
    assert data["deal_name"] == "Acme Renewal"


@pytest.mark.unit
def test_cross_source_requires_two_sources(
    tagged_records: list[DealRecord], make_deal: MakeDeal
) -> None:
    """Test fewer than two source files is rejected."""
    detector = DuplicateDetector()

    with pytest.raises(ValueError, match="At least 2"):
        find_cross_source_duplicates(detector, tagged_records, ["f1"])
    with pytest.raises(ValueError, match="found 1"):
        find_cross_source_duplicates(detector, [make_deal("a", source_file_id="f1")])
    with pytest.raises(ValueError, match="No records"):
        find_cross_source_duplicates(detector, tagged_records, ["f8", "f9"])


@pytest.mark.unit
def test_cross_source_ignores_rejected_records(make_deal: MakeDeal) -> None:
    """Test a rejected registration is neither reported nor used as a match."""
    records = [
        make_deal("a", "Acme Renewal", "Acme Inc", deal_value=100000.0, source_file_id="f1"),
        make_deal(
            "b",
            "Acme Renewal ",
            "ACME Incorporated",
            deal_value=101000.0,
            status="rejected",
            source_file_id="f2",
        ),
    ]

    assert find_cross_source_duplicates(DuplicateDetector(), records) == []
    assert find_cross_source_duplicates(DuplicateDetector(), records, ["f1", "f2"]) == []


@pytest.mark.unit
def test_cross_source_rejected_record_leaves_live_pairs(
    tagged_records: list[DealRecord], make_deal: MakeDeal
) -> None:
    """Test live cross-file pairs are still reported next to a rejected copy."""
    rejected = make_deal("f3-x", "Acme Renewal", "Acme Inc", status="rejected", source_file_id="f3")

    duplicates = find_cross_source_duplicates(DuplicateDetector(), [*tagged_records, rejected])

    by_id = {d.entity_id: d for d in duplicates}
    assert list(by_id) == ["f1-a", "f1-b", "f2-a"]
    assert all(m.matched_entity_id != "f3-x" for d in duplicates for m in d.matches)
