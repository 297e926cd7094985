"""Command-line interface for dealdedupe.

Provides CLI commands for duplicate detection over JSONL record files.
"""

import importlib.metadata
import json
import sys
from pathlib import Path
from typing import Any

import click

from dealdedupe.audit import AuditLogger, generate_run_id
from dealdedupe.engine import DetectorConfig, DuplicateDetector, find_cross_source_duplicates
from dealdedupe.matching import DuplicateStrategy
from dealdedupe.store import (
    AuditNotifier,
    JsonlMatchStore,
    JsonlRecordRepository,
    load_records,
    summarize_detections,
    write_jsonl,
)

__all__ = ["cli"]

try:
    __version__ = importlib.metadata.version("dealdedupe")
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.1.0"  # Fallback for development


def _fail(message: str) -> None:
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _make_config(threshold: float | None = None, batch_size: int | None = None) -> DetectorConfig:
    overrides: dict[str, Any] = {}
    if threshold is not None:
        overrides["minimum_match_threshold"] = threshold
    if batch_size is not None:
        overrides["batch_size"] = batch_size
    return DetectorConfig.from_env(**overrides)


def _open_logger(audit_log: str | None) -> AuditLogger | None:
    if audit_log is None:
        return None
    return AuditLogger(run_id=generate_run_id(), log_path=Path(audit_log))


def _emit(payload: Any) -> None:
    click.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


audit_log_option = click.option(
    "--audit-log",
    type=click.Path(dir_okay=False),
    default=None,
    help="Append structured JSONL audit events to this file",
)


@click.group()
@click.version_option(version=__version__, prog_name="dealdedupe")
def cli() -> None:
    """Duplicate detection and clustering for deal records.

    Records are read from JSONL files, one deal per line.
    Use 'dealdedupe COMMAND --help' for command-specific help.
    """


@cli.command()
@click.argument("records_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--store",
    "store_path",
    type=click.Path(exists=True, dir_okay=False),
    required=True,
    help="JSONL file of existing records to compare against",
)
@click.option("--threshold", type=float, default=None, help="Minimum match confidence")
@click.option(
    "--strategy",
    "strategies",
    multiple=True,
    type=click.Choice([s.value for s in DuplicateStrategy]),
    help="Strategy to run (repeatable, default: all)",
)
@click.option(
    "--matches-out",
    type=click.Path(dir_okay=False),
    default=None,
    help="Record the top match of each duplicate in this JSONL match store",
)
@audit_log_option
def detect(
    records_path: str,
    store_path: str,
    threshold: float | None,
    strategies: tuple[str, ...],
    matches_out: str | None,
    audit_log: str | None,
) -> None:
    """Check each record in RECORDS_PATH against the store.

    Candidates are fetched per record with the bounded candidate query.
    Prints one verdict per record as JSON.

    Examples
    --------
        dealdedupe detect new.jsonl --store deals.jsonl
        dealdedupe detect new.jsonl --store deals.jsonl --strategy exact_match
    """
    logger = None
    try:
        config = _make_config(threshold=threshold)
        logger = _open_logger(audit_log)
        detector = DuplicateDetector(
            config=config,
            repository=JsonlRecordRepository(store_path, candidate_limit=config.candidate_limit),
            match_store=JsonlMatchStore(matches_out) if matches_out else None,
            notifier=AuditNotifier(logger) if logger else None,
            logger=logger,
        )

        output = []
        for record in load_records(records_path):
            result = detector.detect(record, strategies=list(strategies) or None)
            output.append(
                {"entity_id": record.id, "deal_name": record.deal_name, **result.to_dict()}
            )

        _emit(output)
    except Exception as e:
        _fail(str(e))
    finally:
        if logger:
            logger.close()


@cli.command()
@click.argument("records_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--pool",
    "pool_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="JSONL file of existing records (default: RECORDS_PATH itself)",
)
@click.option("--threshold", type=float, default=None, help="Minimum match confidence")
@click.option("--batch-size", type=int, default=None, help="Records per progress chunk")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write verdicts as JSONL instead of printing",
)
@audit_log_option
def batch(
    records_path: str,
    pool_path: str | None,
    threshold: float | None,
    batch_size: int | None,
    output: str | None,
    audit_log: str | None,
) -> None:
    """Detect duplicates for every record in RECORDS_PATH against one pool.

    Examples
    --------
        dealdedupe batch deals.jsonl
        dealdedupe batch new.jsonl --pool deals.jsonl -o verdicts.jsonl
    """
    logger = None
    try:
        config = _make_config(threshold=threshold, batch_size=batch_size)
        logger = _open_logger(audit_log)
        records = load_records(records_path)
        pool = load_records(pool_path) if pool_path else records

        detector = DuplicateDetector(config=config, logger=logger)
        results = detector.detect_batch(records, pool=pool)
        rows = [{"entity_id": rid, **result.to_dict()} for rid, result in results.items()]

        if output:
            write_jsonl(rows, output)
            duplicates = sum(1 for r in results.values() if r.is_duplicate)
            click.secho(
                f"✓ Checked {len(results)} records ({duplicates} with duplicates) → {output}",
                fg="green",
            )
        else:
            _emit(rows)
    except Exception as e:
        _fail(str(e))
    finally:
        if logger:
            logger.close()


@cli.command()
@click.argument("records_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    default=None,
    help="Write clusters as JSONL instead of printing",
)
@audit_log_option
def cluster(records_path: str, output: str | None, audit_log: str | None) -> None:
    """Group transitively duplicated records in RECORDS_PATH into clusters.

    Examples
    --------
        dealdedupe cluster deals.jsonl -o clusters.jsonl
    """
    from dealdedupe.clustering import cluster_records

    logger = None
    try:
        logger = _open_logger(audit_log)
        detector = DuplicateDetector(config=_make_config(), logger=logger)
        clusters = cluster_records(detector, load_records(records_path))

        if output:
            write_jsonl(clusters, output)
            click.secho(f"✓ Found {len(clusters)} clusters → {output}", fg="green")
        else:
            _emit([c.to_dict() for c in clusters])
    except Exception as e:
        _fail(str(e))
    finally:
        if logger:
            logger.close()


@cli.command()
@click.argument("records_path", type=click.Path(exists=True, dir_okay=False))
@click.argument("first_id")
@click.argument("second_id")
def similarity(records_path: str, first_id: str, second_id: str) -> None:
    """Show the weighted similarity of two records in RECORDS_PATH.

    Examples
    --------
        dealdedupe similarity deals.jsonl d-101 d-205
    """
    try:
        by_id = {r.id: r for r in load_records(records_path) if r.id is not None}
        missing = [rid for rid in (first_id, second_id) if rid not in by_id]
        if missing:
            _fail(f"Record(s) not found: {', '.join(missing)}")

        config = _make_config()
        detector = DuplicateDetector(config=config)
        score = detector.score(by_id[first_id], by_id[second_id])
        _emit(
            {
                "entity_ids": [first_id, second_id],
                **score.to_dict(),
                "is_likely_duplicate": score.overall >= config.medium_confidence_threshold,
            }
        )
    except Exception as e:
        _fail(str(e))


@cli.command("cross-source")
@click.argument("records_path", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--source",
    "sources",
    multiple=True,
    help="Source file id to include (repeatable, default: all, at least two)",
)
@audit_log_option
def cross_source(records_path: str, sources: tuple[str, ...], audit_log: str | None) -> None:
    """Find duplicates that span different source files.

    Records must carry metadata.source_file_id.

    Examples
    --------
        dealdedupe cross-source deals.jsonl
        dealdedupe cross-source deals.jsonl --source f1 --source f2
    """
    logger = None
    try:
        logger = _open_logger(audit_log)
        detector = DuplicateDetector(config=_make_config(), logger=logger)
        records = load_records(records_path)
        duplicates = find_cross_source_duplicates(detector, records, list(sources) or None)
        _emit(
            {
                "summary": {
                    "total_records_analyzed": len(records),
                    "cross_source_duplicates_found": len(duplicates),
                },
                "duplicates": [d.to_dict() for d in duplicates],
            }
        )
    except Exception as e:
        _fail(str(e))
    finally:
        if logger:
            logger.close()


@cli.command()
@click.argument("store_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--entity-type", default=None, help="Only include this entity type")
@click.option("--days", type=int, default=None, help="Only include the last N days")
@click.option(
    "--high-confidence",
    is_flag=True,
    help="List pending pairs at or above --min-confidence instead",
)
@click.option("--min-confidence", type=float, default=0.95, help="High-confidence threshold")
@click.option("--limit", type=int, default=50, help="Maximum high-confidence pairs listed")
def stats(
    store_path: str,
    entity_type: str | None,
    days: int | None,
    high_confidence: bool,
    min_confidence: float,
    limit: int,
) -> None:
    """Summarize the detections recorded in the match store STORE_PATH.

    Examples
    --------
        dealdedupe stats matches.jsonl --days 30
        dealdedupe stats matches.jsonl --high-confidence --limit 10
    """
    try:
        store = JsonlMatchStore(store_path)
        if high_confidence:
            rows = store.high_confidence(
                threshold=min_confidence, limit=limit, entity_type=entity_type or "deal"
            )
            _emit({"threshold": min_confidence, "duplicates": [r.to_dict() for r in rows]})
        else:
            summary = summarize_detections(store.rows(), entity_type=entity_type, days=days)
            _emit(summary.to_dict())
    except Exception as e:
        _fail(str(e))


@cli.command()
def config() -> None:
    """Show the effective detection configuration and available strategies."""
    try:
        _emit(
            {
                "config": _make_config().to_dict(),
                "strategies": [s.value for s in DuplicateStrategy],
            }
        )
    except Exception as e:
        _fail(str(e))


if __name__ == "__main__":
    cli()
