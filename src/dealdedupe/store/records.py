"""JSONL record I/O with schema validation.

Input records are validated against ``DEAL_RECORD_SCHEMA`` before they are
turned into ``DealRecord`` objects, so a malformed line fails loudly with
its line number instead of silently scoring as "no match".
"""

import json
from collections.abc import Iterable, Iterator
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema.exceptions import best_match

from dealdedupe.models import DealRecord

_NULLABLE_STRING = {"type": ["string", "null"]}

CONTACT_SCHEMA: dict[str, Any] = {
    "type": "object",
    "properties": {
        "name": _NULLABLE_STRING,
        "email": _NULLABLE_STRING,
        "phone": _NULLABLE_STRING,
        "role": _NULLABLE_STRING,
        "company": _NULLABLE_STRING,
        "id": {"type": ["string", "integer", "null"]},
    },
}

DEAL_RECORD_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "DealRecord",
    "type": "object",
    "required": ["deal_name", "customer_name"],
    "properties": {
        "id": {"type": ["string", "integer", "null"]},
        "deal_name": {"type": "string"},
        "customer_name": {"type": "string"},
        "deal_value": {"type": ["number", "null"]},
        "currency": _NULLABLE_STRING,
        "close_date": _NULLABLE_STRING,
        "registration_date": _NULLABLE_STRING,
        "vendor_id": _NULLABLE_STRING,
        "vendor_name": _NULLABLE_STRING,
        "products": {"type": ["array", "null"], "items": {"type": "string"}},
        "contacts": {"type": ["array", "null"], "items": CONTACT_SCHEMA},
        "description": _NULLABLE_STRING,
        "status": _NULLABLE_STRING,
        "metadata": {"type": ["object", "null"]},
    },
}

_VALIDATOR = jsonschema.Draft202012Validator(DEAL_RECORD_SCHEMA)


class RecordValidationError(Exception):
    """Raised when an input record does not match the record schema."""

    def __init__(self, message: str, line: int | None = None, path: str | None = None) -> None:
        """Initialize record validation error.

        Parameters
        ----------
        message : str
            Error message.
        line : int | None, optional
            1-based line number in the source file.
        path : str | None, optional
            Source file path.
        """
        super().__init__(message)
        self.line = line
        self.path = path


def validate_record(data: Any, line: int | None = None, path: str | None = None) -> None:
    """Validate a raw record against the record schema.

    Parameters
    ----------
    data : Any
        Decoded JSON value.
    line : int | None, optional
        Line number for error messages.
    path : str | None, optional
        File path for error messages.

    Raises
    ------
    RecordValidationError
        If the value is not a valid record.
    """
    error = best_match(_VALIDATOR.iter_errors(data))
    if error is None:
        return

    location = "/".join(str(p) for p in error.absolute_path) or "<record>"
    where = f"line {line}: " if line is not None else ""
    raise RecordValidationError(f"{where}{location}: {error.message}", line=line, path=path)


def parse_record(data: Any, line: int | None = None, path: str | None = None) -> DealRecord:
    """Validate and convert one raw record."""
    validate_record(data, line=line, path=path)
    return DealRecord.from_dict(data)


def iter_records(path: str | Path) -> Iterator[DealRecord]:
    """Yield validated records from a JSONL file, skipping blank lines.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    RecordValidationError
        If a line is not valid JSON or not a valid record.
    """
    file_path = Path(path)
    if not file_path.exists():
        raise FileNotFoundError(f"File not found: {path}")

    with file_path.open("r", encoding="utf-8") as f:
        for line_no, line in enumerate(f, start=1):
            if not line.strip():
                continue
            try:
                data = json.loads(line)
            except json.JSONDecodeError as e:
                raise RecordValidationError(
                    f"line {line_no}: invalid JSON: {e.msg}", line=line_no, path=str(file_path)
                ) from e
            yield parse_record(data, line=line_no, path=str(file_path))


def load_records(path: str | Path) -> list[DealRecord]:
    """Load every record of a JSONL file.

    Parameters
    ----------
    path : str | Path
        JSONL file, one record per line.

    Returns
    -------
    list[DealRecord]
        Records in file order.
    """
    return list(iter_records(path))


def write_jsonl(items: Iterable[Any], path: str | Path, *, sort_keys: bool = True) -> None:
    """Write objects with ``to_dict()`` (or plain dicts) to a JSONL file.

    Parameters
    ----------
    items : Iterable[Any]
        Objects to write.
    path : str | Path
        Output file path.
    sort_keys : bool, optional
        Whether to sort dictionary keys for deterministic output,
        by default True.
    """
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)

    with file_path.open("w", encoding="utf-8", newline="\n") as f:
        for item in items:
            data = item.to_dict() if hasattr(item, "to_dict") else item
            f.write(json.dumps(data, ensure_ascii=False, sort_keys=sort_keys, default=str) + "\n")
