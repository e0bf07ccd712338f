"""
File parser — turns uploaded CSV / JSON bytes into row dicts with coerced cell values.
"""
import io
import json
import logging
import os
import re
from typing import Any

import pandas as pd

from config import settings
from core.data_quality import collect_column_names
from core.errors import AppError, ErrorCode
from models.dataset import DataQuery, QueryFilter, QueryResult

logger = logging.getLogger(__name__)

_INT_RE = re.compile(r"[+-]?\d+", re.ASCII)
_FLOAT_RE = re.compile(r"[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?", re.ASCII)


def file_type_for(filename: str) -> str:
    ext = os.path.splitext(filename or "")[1].lstrip(".").lower()
    if ext not in settings.allowed_extension_list:
        raise AppError(ErrorCode.FILE_UNSUPPORTED, technical=f"extension '{ext or '?'}' not allowed")
    return ext


def parse_value(value: Any) -> Any:
    """Coerce a raw CSV cell: empty/null → None, true/false (any case) → bool, numerics → int/float."""
    if value is None:
        return None
    text = str(value).strip()
    if text == "" or text == "null":
        return None
    if text.lower() == "true":
        return True
    if text.lower() == "false":
        return False
    # plain ASCII decimal notation only
    if _INT_RE.fullmatch(text):
        return int(text)
    if _FLOAT_RE.fullmatch(text):
        return float(text)
    return text


def parse_csv(raw: bytes) -> list[dict[str, Any]]:
    try:
        df = pd.read_csv(
            io.BytesIO(raw),
            dtype=str,
            keep_default_na=False,
            skipinitialspace=True,
            encoding="utf-8-sig",
        )
    except pd.errors.EmptyDataError as e:
        raise AppError(ErrorCode.FILE_EMPTY, technical=str(e)) from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise AppError(ErrorCode.FILE_PARSE_ERROR, technical=str(e)) from e

    df.columns = [str(c).strip() for c in df.columns]
    records = df.to_dict(orient="records")
    return [{k: parse_value(v) for k, v in rec.items()} for rec in records]


def parse_json(raw: bytes) -> list[dict[str, Any]]:
    try:
        parsed = json.loads(raw.decode("utf-8-sig"))
    except (ValueError, UnicodeDecodeError) as e:
        raise AppError(ErrorCode.FILE_PARSE_ERROR, technical=str(e)) from e

    if isinstance(parsed, list):
        rows = parsed
    elif isinstance(parsed, dict) and isinstance(parsed.get("data"), list):
        rows = parsed["data"]
    else:
        rows = [parsed]
    if not all(isinstance(r, dict) for r in rows):
        raise AppError(ErrorCode.DATA_INVALID, technical="JSON must be an object or an array of objects")
    return rows


def parse_upload(filename: str, raw: bytes) -> tuple[str, list[dict[str, Any]]]:
    """Validate and parse an uploaded file. Returns (file_type, rows)."""
    file_type = file_type_for(filename)
    if len(raw) > settings.MAX_UPLOAD_BYTES:
        raise AppError(
            ErrorCode.FILE_TOO_LARGE,
            technical=f"{len(raw)} bytes > limit {settings.MAX_UPLOAD_BYTES}",
        )
    if not raw.strip():
        raise AppError(ErrorCode.FILE_EMPTY, technical=f"{filename} has no content")

    rows = parse_csv(raw) if file_type == "csv" else parse_json(raw)
    if not rows:
        raise AppError(ErrorCode.FILE_EMPTY, technical=f"{filename} has a header but no rows")

    logger.info("Parsed %s: %d rows, %d columns", filename, len(rows), len(rows[0]))
    return file_type, rows


# ── Querying ─────────────────────────────────────────────────────────────────

def _matches(row: dict, f: QueryFilter) -> bool:
    value = row.get(f.column)
    if f.operator == "=":
        return value == f.value
    if f.operator == "!=":
        return value != f.value
    if f.operator == "contains":
        return str(f.value) in str(value)
    try:
        if f.operator == ">":
            return value > f.value
        if f.operator == "<":
            return value < f.value
    except TypeError:
        return False
    return True


def query_rows(rows: list[dict[str, Any]], query: DataQuery) -> QueryResult:
    result = [r for r in rows if all(_matches(r, f) for f in query.filters)]
    if query.offset:
        result = result[query.offset:]
    if query.limit:
        result = result[:query.limit]
    if query.columns:
        result = [{c: r.get(c) for c in query.columns} for r in result]

    return QueryResult(
        columns=query.columns or collect_column_names(rows),
        rows=result,
        row_count=len(result),
    )
