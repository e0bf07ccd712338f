"""
Data Quality — per-column statistics, issue detection and scoring.
Single pass over in-memory rows; no I/O.
"""
import json
import logging
import math
import re
from collections import Counter
from datetime import date, datetime
from typing import Any, Iterable, Optional

from models.quality import ColumnStats, DataIssue, DataQualityReport, DistributionEntry

logger = logging.getLogger(__name__)

SEVERITY_WEIGHTS = {"high": 15, "medium": 8, "low": 3}

MIXED_TYPE_RATIO = 0.9
SAMPLE_SIZE = 5
DISTRIBUTION_SIZE = 10
MAX_VALUE_LEN = 50

_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")


# ── Value helpers ─────────────────────────────────────────────────────────────

def is_null(value: Any) -> bool:
    return value is None or value == ""


def to_number(value: Any) -> Optional[float]:
    """Numeric reading of a cell, or None when it has none."""
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        return None if isinstance(value, float) and math.isnan(value) else float(value)
    if isinstance(value, str) and value.strip():
        try:
            n = float(value)
        except ValueError:
            return None
        return None if math.isnan(n) else n
    return None


def stringify(value: Any) -> str:
    """Stable text key for a cell, used for uniqueness and distributions."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (dict, list)):
        return json.dumps(value, sort_keys=True, default=str)
    return str(value)


def detect_type(value: Any) -> str:
    """Classify a single cell as null, boolean, number, date or string."""
    if is_null(value):
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (datetime, date)):
        return "date"
    if isinstance(value, str):
        if _DATE_PREFIX.match(value):
            return "date"
        if to_number(value) is not None:
            return "number"
    return "string"


# ── Column statistics ────────────────────────────────────────────────────────

def _predominant_type(non_null: list[Any]) -> str:
    type_counts = Counter(detect_type(v) for v in non_null)
    if not type_counts:
        return "unknown"
    # most_common keeps first-seen order for ties
    predominant, top = type_counts.most_common(1)[0]
    if len(type_counts) > 1 and top < len(non_null) * MIXED_TYPE_RATIO:
        return "mixed"
    return predominant


def calculate_column_stats(name: str, values: list[Any]) -> ColumnStats:
    total = len(values)
    non_null = [v for v in values if not is_null(v)]
    null_count = total - len(non_null)
    col_type = _predominant_type(non_null)

    keys = [stringify(v) for v in non_null]
    value_counts = Counter(keys)
    unique_count = len(value_counts)

    distribution = [
        DistributionEntry(
            value=v[:MAX_VALUE_LEN] + "..." if len(v) > MAX_VALUE_LEN else v,
            count=c,
            percentage=c / len(non_null) * 100,
        )
        for v, c in sorted(value_counts.items(), key=lambda kv: -kv[1])[:DISTRIBUTION_SIZE]
    ]

    stats = ColumnStats(
        name=name,
        type=col_type,
        total_count=total,
        null_count=null_count,
        unique_count=unique_count,
        null_percentage=(null_count / total * 100) if total else 0.0,
        unique_percentage=unique_count / max(len(non_null), 1) * 100,
        sample_values=list(value_counts)[:SAMPLE_SIZE],
        distribution=distribution,
    )

    if col_type == "number":
        numbers = sorted(n for n in (to_number(v) for v in non_null) if n is not None)
        if numbers:
            stats.min = numbers[0]
            stats.max = numbers[-1]
            stats.mean = sum(numbers) / len(numbers)
            stats.median = numbers[len(numbers) // 2]

    elif col_type == "string":
        lengths = [len(v) for v in non_null if isinstance(v, str)]
        if lengths:
            stats.min_length = min(lengths)
            stats.max_length = max(lengths)
            stats.avg_length = sum(lengths) / len(lengths)

    return stats


# ── Issue detection ──────────────────────────────────────────────────────────

def detect_issues(columns: list[ColumnStats]) -> list[DataIssue]:
    issues: list[DataIssue] = []

    for col in columns:
        if col.null_percentage > 50:
            issues.append(DataIssue(
                column=col.name,
                type="missing",
                severity="high" if col.null_percentage > 80 else "medium",
                message=f"{col.null_percentage:.1f}% missing values",
                affected_rows=col.null_count,
            ))
        elif col.null_percentage > 20:
            issues.append(DataIssue(
                column=col.name,
                type="missing",
                severity="low",
                message=f"{col.null_percentage:.1f}% missing values",
                affected_rows=col.null_count,
            ))

        if col.type == "mixed":
            issues.append(DataIssue(
                column=col.name,
                type="inconsistent",
                severity="medium",
                message="Mixed data types detected",
                affected_rows=col.total_count,
            ))

        if "id" in col.name.lower() and col.unique_percentage < 50:
            issues.append(DataIssue(
                column=col.name,
                type="duplicate",
                severity="medium",
                message=f"Low uniqueness ({col.unique_percentage:.1f}%) for ID column",
                affected_rows=col.total_count - col.unique_count,
            ))

        if col.type == "number" and None not in (col.min, col.max, col.mean):
            spread = col.max - col.min
            if spread > 0 and (col.max > col.mean * 100 or col.min < col.mean / 100):
                issues.append(DataIssue(
                    column=col.name,
                    type="outlier",
                    severity="low",
                    message=f"Potential outliers detected (range: {stringify(col.min)} to {stringify(col.max)})",
                    affected_rows=0,
                ))

    return issues


# ── Scoring ──────────────────────────────────────────────────────────────────

def calculate_quality_score(columns: list[ColumnStats], issues: list[DataIssue]) -> float:
    """Average completeness minus severity-weighted issue deductions, clamped to 0–100."""
    if not columns:
        return 0.0
    avg_completeness = sum(100 - c.null_percentage for c in columns) / len(columns)
    deduction = sum(SEVERITY_WEIGHTS.get(i.severity, 0) for i in issues)
    return max(0.0, min(100.0, avg_completeness - deduction))


def quality_label(score: float) -> str:
    if score >= 80: return "Good"
    if score >= 60: return "Fair"
    if score >= 40: return "Poor"
    return "Critical"


def quality_badge(score: float) -> str:
    return "green" if score >= 80 else "amber" if score >= 60 else "red"


def collect_column_names(rows: list[dict]) -> list[str]:
    seen: dict[str, None] = {}
    for row in rows:
        for key in row:
            seen.setdefault(key, None)
    return list(seen)


# ── Main entry point ─────────────────────────────────────────────────────────

def analyze_data_quality(
    rows: list[dict[str, Any]],
    column_names: Optional[Iterable[str]] = None,
) -> DataQualityReport:
    """
    Build a DataQualityReport for a list of row dicts.
    When column_names is omitted every key seen in the rows is analysed, in first-seen order.
    """
    names = list(column_names) if column_names is not None else collect_column_names(rows)

    if not rows:
        return DataQualityReport(
            total_rows=0,
            total_columns=len(names),
            overall_score=0.0,
            completeness=0.0,
            columns=[],
            issues=[],
            summary="No data to analyze",
            label=quality_label(0.0),
            badge_color=quality_badge(0.0),
        )

    columns = [calculate_column_stats(n, [row.get(n) for row in rows]) for n in names]
    issues = detect_issues(columns)
    score = calculate_quality_score(columns, issues)

    total_cells = len(rows) * len(names)
    null_cells = sum(c.null_count for c in columns)
    completeness = (total_cells - null_cells) / total_cells * 100 if total_cells else 0.0

    summary = f"{len(rows):,} rows, {len(names)} columns. "
    if score >= 80:
        summary += "Data quality is good."
    elif score >= 60:
        summary += "Some data quality issues detected."
    else:
        summary += "Significant data quality issues found."

    logger.debug("Quality analysis: %d rows, %d columns, %d issues, score %.1f",
                 len(rows), len(names), len(issues), score)

    return DataQualityReport(
        total_rows=len(rows),
        total_columns=len(names),
        overall_score=score,
        completeness=completeness,
        columns=columns,
        issues=issues,
        summary=summary,
        label=quality_label(score),
        badge_color=quality_badge(score),
    )
