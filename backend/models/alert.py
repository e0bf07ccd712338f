"""Pydantic schemas for alerts, alert rules and alert preferences."""
from typing import Optional, Literal, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field

AlertType = Literal["threshold", "anomaly", "prediction", "opportunity"]
AlertSeverity = Literal["low", "medium", "high", "critical"]
AlertStatus = Literal["active", "acknowledged", "resolved", "snoozed"]
AlertChannel = Literal["in_app", "email", "slack", "discord", "webhook"]
RuleCondition = Literal["gt", "lt", "eq", "change_gt", "change_lt"]

ALERT_TYPES: tuple[str, ...] = ("threshold", "anomaly", "prediction", "opportunity")
SEVERITIES: tuple[str, ...] = ("low", "medium", "high", "critical")
CHANNELS: tuple[str, ...] = ("in_app", "email", "slack", "discord", "webhook")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _undelivered() -> dict[str, bool]:
    return {c: False for c in CHANNELS}


class Alert(BaseModel):
    id: str = ""
    type: AlertType
    severity: AlertSeverity
    status: AlertStatus = "active"

    title: str
    message: str
    metric: Optional[str] = None
    value: Optional[float] = None
    expected_value: Optional[float] = None
    expected_range: Optional[tuple[float, float]] = None

    recommendations: list[str] = Field(default_factory=list)
    action_taken: Optional[str] = None

    source: str = "system"
    data: Optional[dict[str, Any]] = None

    created_at: datetime = Field(default_factory=_utcnow)
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    snoozed_until: Optional[datetime] = None

    channels: list[AlertChannel] = Field(default_factory=lambda: ["in_app"])
    delivered: dict[str, bool] = Field(default_factory=_undelivered)


class AlertRule(BaseModel):
    id: str = ""
    name: str
    description: str = ""
    enabled: bool = True

    metric: str
    condition: RuleCondition
    threshold: float
    time_window: Optional[int] = None     # minutes

    severity: AlertSeverity = "medium"
    channels: list[AlertChannel] = Field(default_factory=lambda: ["in_app"])

    auto_adjust: bool = False
    day_of_week_aware: bool = False
    cooldown_minutes: int = Field(60, ge=0)

    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)
    last_triggered_at: Optional[datetime] = None


class AlertRuleCreate(BaseModel):
    """Request body for creating or replacing a rule."""
    name: str
    description: str = ""
    enabled: bool = True
    metric: str
    condition: RuleCondition
    threshold: float
    time_window: Optional[int] = None
    severity: AlertSeverity = "medium"
    channels: list[AlertChannel] = Field(default_factory=lambda: ["in_app"])
    auto_adjust: bool = False
    day_of_week_aware: bool = False
    cooldown_minutes: int = Field(60, ge=0)


class AlertPreferences(BaseModel):
    enabled: bool = True
    quiet_hours_start: Optional[int] = Field(None, ge=0, le=23)
    quiet_hours_end: Optional[int] = Field(None, ge=0, le=23)
    digest_mode: bool = True
    digest_frequency: Literal["hourly", "daily"] = "daily"

    min_severity_in_app: AlertSeverity = "low"
    min_severity_email: AlertSeverity = "high"

    email_address: Optional[str] = None
    slack_webhook: Optional[str] = None
    discord_webhook: Optional[str] = None
    custom_webhook: Optional[str] = None


class RuleEvaluation(BaseModel):
    triggered: bool
    alert: Optional[Alert] = None


class AlertStats(BaseModel):
    total: int
    active: int
    acknowledged: int
    resolved: int
    by_severity: dict[str, int]
    by_type: dict[str, int]
    last_24h: int
    last_7d: int


class MetricSample(BaseModel):
    current: float
    previous: Optional[float] = None


class EvaluateRequest(BaseModel):
    metrics: dict[str, MetricSample]
