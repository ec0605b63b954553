from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from snapset_loader.exceptions import ParseError


class ViewRow(BaseModel):
    """
    One row of a CouchDB view response. The row value is the stored document
    and is kept as a plain dict so every field round-trips untouched.
    """
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    key: Any = None
    value: Dict[str, Any]


class ViewResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    total_rows: Optional[int] = None
    offset: Optional[int] = None
    rows: List[ViewRow] = Field(default_factory=list)


class BulkDocResult(BaseModel):
    """A single per-document entry of a _bulk_docs response."""
    model_config = ConfigDict(extra="allow")

    id: Optional[str] = None
    rev: Optional[str] = None
    ok: Optional[bool] = None
    error: Optional[str] = None
    reason: Optional[str] = None


class DeletionSummary(BaseModel):
    snapsets: int = 0
    gpii_keys: int = 0


class BulkSummary(BaseModel):
    succeeded: int = 0
    failed: int = 0
    errors: List[BulkDocResult] = Field(default_factory=list)


def decode_json(body: str, *, source: str) -> Any:
    try:
        return json.loads(body)
    except json.JSONDecodeError as exc:
        raise ParseError(f"Invalid JSON from {source}: {exc}", source=source) from exc


def parse_view_result(body: str, *, source: str = "view response") -> ViewResult:
    data = decode_json(body, source=source)
    try:
        return ViewResult.model_validate(data)
    except ValidationError as exc:
        raise ParseError(f"Unexpected view response shape from {source}: {exc}", source=source) from exc


def parse_bulk_results(body: str, *, source: str = "bulk docs response") -> List[BulkDocResult]:
    data = decode_json(body, source=source)
    if not isinstance(data, list):
        raise ParseError(f"Bulk docs response from {source} must be a JSON array.", source=source)
    try:
        return [BulkDocResult.model_validate(item) for item in data]
    except ValidationError as exc:
        raise ParseError(f"Unexpected bulk docs entry from {source}: {exc}", source=source) from exc
