"""Bundled JSON schema for serialized transaction records."""

from __future__ import annotations

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import FormatChecker

RECORD_SCHEMA_PATH = Path(__file__).resolve().parent / "transaction.record.schema.json"


class SchemaValidationError(ValueError):
    def __init__(self, message: str, errors: list[str] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


@lru_cache(maxsize=1)
def record_validator() -> jsonschema.Validator:
    schema = load_json(RECORD_SCHEMA_PATH)
    validator_cls = jsonschema.validators.validator_for(schema)
    validator_cls.check_schema(schema)
    return validator_cls(schema, format_checker=FormatChecker())


def validate_record(instance: dict[str, Any]) -> None:
    """Raise SchemaValidationError listing every violation, ordered by location."""
    errors = sorted(record_validator().iter_errors(instance), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise SchemaValidationError(
            f"Invalid transaction record ({len(errors)} problem(s)).",
            errors=[f"{'/'.join(str(p) for p in err.path) or '<root>'}: {err.message}" for err in errors],
        )


def load_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as f:
        return json.load(f)


def write_json(path: Path, payload: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2, sort_keys=True)
        f.write("\n")
