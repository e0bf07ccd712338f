"""
/api/alerts, /api/alert-rules, /api/alert-preferences — alert lifecycle, rule CRUD and evaluation.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from fastapi import APIRouter, HTTPException, Query
from pydantic import BaseModel, Field

from core.alerting import AlertService
from core.store import get_store
from integrations.notifier import deliver
from models.alert import (
    Alert,
    AlertPreferences,
    AlertRule,
    AlertRuleCreate,
    AlertStats,
    EvaluateRequest,
)

router = APIRouter()
logger = logging.getLogger(__name__)


def get_alert_service() -> AlertService:
    return AlertService(get_store(), notifier=deliver)


class ResolveRequest(BaseModel):
    action_taken: Optional[str] = None


class SnoozeRequest(BaseModel):
    hours: float = Field(..., gt=0)


# ── Alerts ────────────────────────────────────────────────────────────────────

@router.get("/alerts", response_model=list[Alert])
def list_alerts(
    status: Optional[str] = Query(None, pattern="^(active|acknowledged|resolved|snoozed)$"),
    type: Optional[str] = Query(None, pattern="^(threshold|anomaly|prediction|opportunity)$"),
    severity: Optional[str] = Query(None, pattern="^(low|medium|high|critical)$"),
):
    alerts = get_alert_service().list_alerts(status=status, type=type, severity=severity)
    alerts.sort(key=lambda a: a.created_at, reverse=True)
    return alerts


@router.get("/alerts/stats", response_model=AlertStats)
def alert_stats():
    return get_alert_service().stats()


@router.get("/alerts/{alert_id}", response_model=Alert)
def get_alert(alert_id: str):
    alert = get_alert_service().get_alert(alert_id)
    if alert is None:
        raise HTTPException(404, detail=f"Alert '{alert_id}' not found.")
    return alert


@router.post("/alerts/{alert_id}/acknowledge", response_model=Alert)
def acknowledge_alert(alert_id: str):
    alert = get_alert_service().acknowledge(alert_id)
    if alert is None:
        raise HTTPException(404, detail=f"Alert '{alert_id}' not found.")
    return alert


@router.post("/alerts/{alert_id}/resolve", response_model=Alert)
def resolve_alert(alert_id: str, req: ResolveRequest):
    alert = get_alert_service().resolve(alert_id, req.action_taken)
    if alert is None:
        raise HTTPException(404, detail=f"Alert '{alert_id}' not found.")
    return alert


@router.post("/alerts/{alert_id}/snooze", response_model=Alert)
def snooze_alert(alert_id: str, req: SnoozeRequest):
    alert = get_alert_service().snooze(alert_id, req.hours)
    if alert is None:
        raise HTTPException(404, detail=f"Alert '{alert_id}' not found.")
    return alert


@router.delete("/alerts/{alert_id}")
def delete_alert(alert_id: str):
    if not get_alert_service().delete_alert(alert_id):
        raise HTTPException(404, detail=f"Alert '{alert_id}' not found.")
    return {"message": f"Alert '{alert_id}' removed successfully."}


# ── Rules ─────────────────────────────────────────────────────────────────────

@router.get("/alert-rules", response_model=list[AlertRule])
def list_rules():
    return get_alert_service().list_rules()


@router.post("/alert-rules", response_model=AlertRule, status_code=201)
def create_rule(req: AlertRuleCreate):
    rule = AlertRule(**req.model_dump())
    return get_alert_service().save_rule(rule)


@router.post("/alert-rules/defaults", response_model=list[AlertRule])
def initialize_default_rules():
    """Seed the built-in rules when the rule store is empty; returns the rules created."""
    return get_alert_service().initialize_default_rules()


@router.post("/alert-rules/evaluate", response_model=list[Alert])
def evaluate_rules(req: EvaluateRequest):
    """
    Evaluate all stored rules against the posted metric readings.
    Returns the alerts raised (cooldown-suppressed and disabled rules raise nothing).
    """
    return get_alert_service().evaluate_metrics(req.metrics)


@router.get("/alert-rules/{rule_id}", response_model=AlertRule)
def get_rule(rule_id: str):
    rule = get_alert_service().get_rule(rule_id)
    if rule is None:
        raise HTTPException(404, detail=f"Rule '{rule_id}' not found.")
    return rule


@router.put("/alert-rules/{rule_id}", response_model=AlertRule)
def update_rule(rule_id: str, req: AlertRuleCreate):
    svc = get_alert_service()
    existing = svc.get_rule(rule_id)
    if existing is None:
        raise HTTPException(404, detail=f"Rule '{rule_id}' not found.")
    updated = existing.model_copy(update={
        **req.model_dump(),
        "updated_at": datetime.now(timezone.utc),
    })
    return svc.save_rule(updated)


@router.delete("/alert-rules/{rule_id}")
def delete_rule(rule_id: str):
    if not get_alert_service().delete_rule(rule_id):
        raise HTTPException(404, detail=f"Rule '{rule_id}' not found.")
    return {"message": f"Rule '{rule_id}' removed successfully."}


# ── Preferences ───────────────────────────────────────────────────────────────

@router.get("/alert-preferences", response_model=AlertPreferences)
def get_preferences():
    return get_alert_service().get_preferences()


@router.put("/alert-preferences", response_model=AlertPreferences)
def save_preferences(prefs: AlertPreferences):
    return get_alert_service().save_preferences(prefs)
