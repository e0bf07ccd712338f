"""
POST /api/datasets/{id}/quality — scoring run that records history and evaluates alert rules.
GET  /api/datasets/{id}/quality/history — recorded runs and trend.
GET  /api/datasets/{id}/schema  — column roles, semantic types and engine template.
"""
import logging
from datetime import datetime, timezone
from fastapi import APIRouter

from api.alerts import get_alert_service
from api.datasets import get_dataset
from config import settings
from core.column_analyzer import analyze_schema
from core.data_quality import analyze_data_quality
from core.schema_analyzer import build_schema_info, schema_analyzer
from core.store import get_store
from core.templates import match_template
from integrations.ollama_client import OllamaClient
from models.alert import MetricSample
from models.quality import DataQualityReport
from models.schema import SchemaReport

router = APIRouter()
logger = logging.getLogger(__name__)

HISTORY_STORE = "quality_history"
HISTORY_LIMIT = 50
QUALITY_METRIC = "data_quality_score"


def load_history(dataset_id: str) -> list[dict]:
    doc = get_store().get(HISTORY_STORE, dataset_id)
    return doc["runs"] if doc else []


def record_quality(dataset_id: str, report: DataQualityReport) -> list[dict]:
    """Append a scoring run to the dataset's history; keeps the last 50 runs."""
    history = load_history(dataset_id)
    history.append({
        "analyzed_at": report.analyzed_at.isoformat(),
        "score": report.overall_score,
        "label": report.label,
    })
    history = history[-HISTORY_LIMIT:]
    get_store().put(HISTORY_STORE, dataset_id, {"runs": history})
    return history


@router.post("/datasets/{dataset_id}/quality", response_model=DataQualityReport)
def dataset_quality(dataset_id: str):
    """
    1. Score the dataset
    2. Record the run in its history
    3. Evaluate alert rules on data_quality_score against the previous run
    """
    ds = get_dataset(dataset_id)
    report = analyze_data_quality(ds.rows, ds.columns)

    history = record_quality(dataset_id, report)
    previous = history[-2]["score"] if len(history) >= 2 else None
    alerts = get_alert_service().evaluate_metrics({
        QUALITY_METRIC: MetricSample(current=report.overall_score, previous=previous),
    })
    if alerts:
        logger.info("Quality run for %s raised %d alert(s)", dataset_id, len(alerts))
    return report


@router.get("/datasets/{dataset_id}/quality/history")
def dataset_quality_history(dataset_id: str):
    get_dataset(dataset_id)
    history = load_history(dataset_id)
    trend = "stable"
    if len(history) >= 2:
        delta = history[-1]["score"] - history[-2]["score"]
        trend = "improving" if delta > 0 else "declining" if delta < 0 else "stable"
    return {
        "dataset_id": dataset_id,
        "runs": history,
        "trend": trend,
        "checked_at": datetime.now(timezone.utc).isoformat(),
    }


@router.get("/datasets/{dataset_id}/schema", response_model=SchemaReport)
def dataset_schema(dataset_id: str):
    ds = get_dataset(dataset_id)

    llm = OllamaClient() if settings.LLM_COLUMN_ANALYSIS else None
    analysis = analyze_schema(ds.rows, llm=llm)

    info = build_schema_info(ds.rows)
    meanings = schema_analyzer.analyze(info)

    return SchemaReport(
        dataset_id=dataset_id,
        analysis=analysis,
        meanings=meanings,
        suggested_metrics=schema_analyzer.suggested_metrics(meanings),
        template=match_template(ds.columns),
    )
