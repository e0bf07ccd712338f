"""
Column Analyzer — LLM-first column mapping with fuzzy-matching fallback.
Assigns each uploaded column a canonical name, a value type and a coarse role.
"""
import json
import logging
import re
from typing import Any, Optional

from pydantic import ValidationError

from integrations.ollama_client import OllamaClient
from models.schema import ColumnMapping, SchemaAnalysisResult
from prompts.column_analysis import column_analysis_prompt

logger = logging.getLogger(__name__)

COLUMN_ALIASES: dict[str, list[str]] = {
    "user_id": ["user_id", "userid", "uid", "player_id", "playerid", "player", "account_id"],
    "session_id": ["session_id", "sessionid", "session", "game_session"],
    "timestamp": ["timestamp", "time", "ts", "datetime", "created_at", "event_time", "date"],
    "event_type": ["event_type", "eventtype", "event", "action", "event_name", "type"],
    "revenue": ["revenue", "money", "amount", "price", "iap_revenue", "purchase_amount", "usd"],
    "level": ["level", "lvl", "stage", "chapter", "level_id", "wave"],
    "country": ["country", "geo", "region", "location", "country_code", "nation"],
    "platform": ["platform", "os", "device_os", "operating_system"],
    "device_model": ["device_model", "device", "model", "device_type"],
    "app_version": ["app_version", "version", "build", "app_ver"],
}

CANONICAL_ROLES: dict[str, str] = {
    "user_id": "identifier",
    "session_id": "identifier",
    "timestamp": "timestamp",
    "event_type": "dimension",
    "revenue": "metric",
    "level": "dimension",
    "country": "dimension",
    "platform": "dimension",
    "device_model": "dimension",
    "app_version": "dimension",
}

NOISE_PATTERNS = ("debug", "test", "internal", "_id", "hash", "token", "secret")

HIGH_CONFIDENCE = 0.8
PARTIAL_MATCH_MIN = 0.6
NO_LLM_PENALTY = 0.8
VALIDATION_PENALTY = 0.9

_DATE_LIKE = (re.compile(r"^\d{4}-\d{2}-\d{2}"), re.compile(r"^\d{10,13}$"))


def _clean(name: str) -> str:
    cleaned = re.sub(r"[-_\s]+", "_", name.lower())
    return re.sub(r"[^a-z0-9_]", "", cleaned)


def fuzzy_match(original: str) -> Optional[tuple[str, float]]:
    """Return (canonical, confidence) for a header, or None if nothing is close."""
    cleaned = _clean(original)

    for canonical, aliases in COLUMN_ALIASES.items():
        if cleaned in aliases:
            return canonical, 1.0

    if not cleaned:
        return None
    for canonical, aliases in COLUMN_ALIASES.items():
        for alias in aliases:
            if alias in cleaned or cleaned in alias:
                similarity = min(len(cleaned), len(alias)) / max(len(cleaned), len(alias))
                if similarity > PARTIAL_MATCH_MIN:
                    return canonical, similarity
    return None


def infer_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, (dict, list)):
        return "json"
    if isinstance(value, str):
        if any(p.match(value) for p in _DATE_LIKE):
            return "date"
        if value.strip():
            try:
                float(value)
                return "number"
            except ValueError:
                pass
    return "string"


def role_for_canonical(canonical: str) -> str:
    return CANONICAL_ROLES.get(canonical, "unknown")


def is_noise(header: str) -> bool:
    lower = header.lower()
    return any(p in lower for p in NOISE_PATTERNS)


def _headers(rows: list[dict]) -> list[str]:
    return list(rows[0].keys()) if rows else []


# ── Fuzzy-only path ───────────────────────────────────────────────────────────

def fuzzy_only_analysis(rows: list[dict[str, Any]]) -> SchemaAnalysisResult:
    first = rows[0] if rows else {}
    columns: list[ColumnMapping] = []

    for header in _headers(rows):
        inferred = infer_type(first.get(header))
        match = fuzzy_match(header)
        if match:
            canonical, confidence = match
            columns.append(ColumnMapping(
                original=header,
                canonical=canonical,
                type=inferred,
                role=role_for_canonical(canonical),
                confidence=confidence * NO_LLM_PENALTY,
                reasoning="Matched by pattern",
            ))
        else:
            columns.append(ColumnMapping(
                original=header,
                canonical=re.sub(r"[^a-z0-9]+", "_", header.lower()),
                type=inferred,
                role="noise" if is_noise(header) else "unknown",
                confidence=0.3,
                reasoning="No pattern match found",
            ))

    return SchemaAnalysisResult(
        columns=columns,
        game_type="other",
        suggested_charts=["retention_curve", "revenue_timeline"],
        warnings=["Analysis done without AI - results may be less accurate"],
        data_quality=0.5,
    )


def validate_with_fuzzy(columns: list[ColumnMapping]) -> list[ColumnMapping]:
    """Re-check low-confidence LLM mappings against the alias table."""
    validated = []
    for col in columns:
        if col.confidence >= HIGH_CONFIDENCE:
            validated.append(col)
            continue
        match = fuzzy_match(col.original)
        if match and match[1] > col.confidence:
            canonical, confidence = match
            validated.append(col.model_copy(update={
                "canonical": canonical,
                "confidence": max(col.confidence, confidence * VALIDATION_PENALTY),
                "reasoning": f"{col.reasoning} (validated by pattern matching)",
            }))
        else:
            validated.append(col)
    return validated


# ── LLM path ─────────────────────────────────────────────────────────────────

def llm_analysis(rows: list[dict[str, Any]], client: OllamaClient) -> SchemaAnalysisResult:
    prompt_text = column_analysis_prompt.format(
        headers=", ".join(_headers(rows)),
        sample_rows=json.dumps(rows[:3], indent=2, default=str),
    )
    raw = client.generate_json(prompt_text)
    return SchemaAnalysisResult.model_validate(raw)


def analyze_schema(
    rows: list[dict[str, Any]],
    llm: Optional[OllamaClient] = None,
) -> SchemaAnalysisResult:
    """
    Map uploaded columns to canonical names and roles.
    Uses the LLM when a client is supplied; any LLM failure falls back to fuzzy matching.
    """
    if llm is not None and rows:
        try:
            result = llm_analysis(rows, llm)
            return result.model_copy(update={"columns": validate_with_fuzzy(result.columns)})
        except (RuntimeError, ValidationError) as e:
            logger.warning("LLM analysis failed, falling back to fuzzy matching: %s", e)

    return fuzzy_only_analysis(rows)
