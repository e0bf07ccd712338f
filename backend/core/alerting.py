"""
Alerting — alert/rule construction, rule evaluation and the persisted alert service.
"""
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from core.data_quality import stringify
from core.store import ObjectStore, generate_id
from models.alert import (
    ALERT_TYPES,
    SEVERITIES,
    Alert,
    AlertPreferences,
    AlertRule,
    AlertStats,
    MetricSample,
    RuleEvaluation,
)

logger = logging.getLogger(__name__)

ALERTS_STORE = "alerts"
RULES_STORE = "alert_rules"
SETTINGS_STORE = "settings"
PREFS_KEY = "alert_preferences"

MAX_RECOMMENDATIONS = 3

DEFAULT_RULES: list[dict] = [
    {
        "name": "DAU Drop",
        "description": "Alert when daily active users drops significantly",
        "metric": "dau",
        "condition": "change_lt",
        "threshold": -20,           # 20% drop
        "time_window": 1440,        # 1 day
        "severity": "high",
        "channels": ["in_app", "email"],
        "auto_adjust": True,
        "day_of_week_aware": True,
        "cooldown_minutes": 60,
    },
    {
        "name": "Revenue Anomaly",
        "description": "Alert on unusual revenue patterns",
        "metric": "revenue",
        "condition": "change_lt",
        "threshold": -30,
        "time_window": 1440,
        "severity": "critical",
        "channels": ["in_app", "email", "slack"],
        "auto_adjust": False,
        "day_of_week_aware": True,
        "cooldown_minutes": 120,
    },
    {
        "name": "High Churn Risk",
        "description": "Alert when many users are at risk of churning",
        "metric": "churn_risk_users",
        "condition": "gt",
        "threshold": 100,
        "severity": "high",
        "channels": ["in_app"],
        "auto_adjust": True,
        "day_of_week_aware": False,
        "cooldown_minutes": 1440,   # once per day
    },
    {
        "name": "Retention Drop",
        "description": "Alert when D7 retention falls below threshold",
        "metric": "d7_retention",
        "condition": "lt",
        "threshold": 0.10,
        "severity": "high",
        "channels": ["in_app", "email"],
        "auto_adjust": True,
        "day_of_week_aware": False,
        "cooldown_minutes": 1440,
    },
    {
        "name": "Conversion Opportunity",
        "description": "Alert when conversion conditions are optimal",
        "metric": "high_intent_non_payers",
        "condition": "gt",
        "threshold": 50,
        "severity": "low",
        "channels": ["in_app"],
        "auto_adjust": False,
        "day_of_week_aware": False,
        "cooldown_minutes": 2880,   # every 2 days
    },
]

# metric keyword(s) → recommendations; first hit wins
RECOMMENDATIONS: list[tuple[tuple[str, ...], list[str]]] = [
    (("dau", "user"), [
        "Check for technical issues or outages",
        "Review recent app updates or changes",
        "Analyze user acquisition channels",
    ]),
    (("revenue",), [
        "Review pricing and offers",
        "Check payment system status",
        "Analyze top spender activity",
    ]),
    (("retention",), [
        "Review onboarding experience",
        "Analyze level/content difficulty",
        "Check for engagement blockers",
    ]),
    (("churn",), [
        "Launch re-engagement campaign",
        "Offer incentives to at-risk users",
        "Gather feedback from churning users",
    ]),
]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(ts: datetime) -> datetime:
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


# ── Construction ─────────────────────────────────────────────────────────────

def create_alert(type: str, severity: str, title: str, message: str, **options) -> Alert:
    """New active alert; options may set metric, value, expected_value, expected_range,
    recommendations, source, data and channels."""
    return Alert(
        id=generate_id(),
        type=type,
        severity=severity,
        status="active",
        title=title,
        message=message,
        metric=options.get("metric"),
        value=options.get("value"),
        expected_value=options.get("expected_value"),
        expected_range=options.get("expected_range"),
        recommendations=options.get("recommendations") or [],
        source=options.get("source") or "system",
        data=options.get("data"),
        channels=options.get("channels") or ["in_app"],
    )


def create_rule(name: str, description: str, metric: str, condition: str, threshold: float, **options) -> AlertRule:
    now = _utcnow()
    return AlertRule(
        id=generate_id(),
        name=name,
        description=description,
        enabled=True,
        metric=metric,
        condition=condition,
        threshold=threshold,
        severity=options.get("severity") or "medium",
        channels=options.get("channels") or ["in_app"],
        auto_adjust=options.get("auto_adjust", False),
        day_of_week_aware=options.get("day_of_week_aware", False),
        cooldown_minutes=options.get("cooldown_minutes") or 60,
        time_window=options.get("time_window"),
        created_at=now,
        updated_at=now,
    )


# ── Evaluation ───────────────────────────────────────────────────────────────

def generate_recommendations(metric: str) -> list[str]:
    for keywords, recs in RECOMMENDATIONS:
        if any(k in metric for k in keywords):
            return recs[:MAX_RECOMMENDATIONS]
    return []


def percent_change(current: float, previous: Optional[float]) -> Optional[float]:
    if previous is None or previous == 0:
        return None
    return (current - previous) / previous * 100


def condition_met(rule: AlertRule, current: float, previous: Optional[float] = None) -> bool:
    if rule.condition == "gt":
        return current > rule.threshold
    if rule.condition == "lt":
        return current < rule.threshold
    if rule.condition == "eq":
        return current == rule.threshold

    change = percent_change(current, previous)
    if change is None:
        return False
    if rule.condition == "change_gt":
        return change > rule.threshold
    if rule.condition == "change_lt":
        return change < rule.threshold
    return False


def in_cooldown(rule: AlertRule, now: datetime) -> bool:
    if rule.last_triggered_at is None:
        return False
    elapsed = _aware(now) - _aware(rule.last_triggered_at)
    return elapsed < timedelta(minutes=rule.cooldown_minutes)


def evaluate_rule(
    rule: AlertRule,
    current_value: float,
    previous_value: Optional[float] = None,
    now: Optional[datetime] = None,
) -> RuleEvaluation:
    """Check one rule against a metric reading; a triggered rule inside its cooldown is suppressed."""
    if not rule.enabled:
        return RuleEvaluation(triggered=False)
    if not condition_met(rule, current_value, previous_value):
        return RuleEvaluation(triggered=False)

    now = now or _utcnow()
    if in_cooldown(rule, now):
        logger.debug("Rule %s suppressed by cooldown", rule.id)
        return RuleEvaluation(triggered=False)

    alert = Alert(
        type="threshold",
        severity=rule.severity,
        status="active",
        title=f"{rule.name} Alert",
        message=f"{rule.metric} is {stringify(current_value)} (threshold: {stringify(rule.threshold)})",
        metric=rule.metric,
        value=current_value,
        expected_value=previous_value,
        recommendations=generate_recommendations(rule.metric),
        source="alert_rule",
        data={"rule_id": rule.id},
        channels=list(rule.channels),
        created_at=now,
    )
    return RuleEvaluation(triggered=True, alert=alert)


# ── Persisted service ────────────────────────────────────────────────────────

Notifier = Callable[[Alert, AlertPreferences], Alert]


class AlertService:
    def __init__(self, store: ObjectStore, notifier: Optional[Notifier] = None):
        self.store = store
        self.notifier = notifier

    # Alerts
    def save_alert(self, alert: Alert) -> Alert:
        if not alert.id:
            alert = alert.model_copy(update={"id": generate_id()})
        self.store.put(ALERTS_STORE, alert.id, alert.model_dump(mode="json"))
        return alert

    def get_alert(self, alert_id: str) -> Optional[Alert]:
        doc = self.store.get(ALERTS_STORE, alert_id)
        return Alert.model_validate(doc) if doc else None

    def list_alerts(
        self,
        status: Optional[str] = None,
        type: Optional[str] = None,
        severity: Optional[str] = None,
    ) -> list[Alert]:
        alerts = [Alert.model_validate(d) for d in self.store.get_all(ALERTS_STORE)]
        if status:
            alerts = [a for a in alerts if a.status == status]
        if type:
            alerts = [a for a in alerts if a.type == type]
        if severity:
            alerts = [a for a in alerts if a.severity == severity]
        return alerts

    def active_alerts(self) -> list[Alert]:
        return self.list_alerts(status="active")

    def delete_alert(self, alert_id: str) -> bool:
        return self.store.delete(ALERTS_STORE, alert_id)

    # Rules
    def save_rule(self, rule: AlertRule) -> AlertRule:
        if not rule.id:
            rule = rule.model_copy(update={"id": generate_id()})
        self.store.put(RULES_STORE, rule.id, rule.model_dump(mode="json"))
        return rule

    def get_rule(self, rule_id: str) -> Optional[AlertRule]:
        doc = self.store.get(RULES_STORE, rule_id)
        return AlertRule.model_validate(doc) if doc else None

    def list_rules(self) -> list[AlertRule]:
        return [AlertRule.model_validate(d) for d in self.store.get_all(RULES_STORE)]

    def delete_rule(self, rule_id: str) -> bool:
        return self.store.delete(RULES_STORE, rule_id)

    # Preferences
    def get_preferences(self) -> AlertPreferences:
        doc = self.store.get(SETTINGS_STORE, PREFS_KEY)
        return AlertPreferences.model_validate(doc) if doc else AlertPreferences()

    def save_preferences(self, prefs: AlertPreferences) -> AlertPreferences:
        self.store.put(SETTINGS_STORE, PREFS_KEY, prefs.model_dump(mode="json"))
        return prefs

    # Lifecycle
    def acknowledge(self, alert_id: str, now: Optional[datetime] = None) -> Optional[Alert]:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        alert.status = "acknowledged"
        alert.acknowledged_at = now or _utcnow()
        return self.save_alert(alert)

    def resolve(self, alert_id: str, action_taken: Optional[str] = None, now: Optional[datetime] = None) -> Optional[Alert]:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        alert.status = "resolved"
        alert.resolved_at = now or _utcnow()
        if action_taken:
            alert.action_taken = action_taken
        return self.save_alert(alert)

    def snooze(self, alert_id: str, hours: float, now: Optional[datetime] = None) -> Optional[Alert]:
        alert = self.get_alert(alert_id)
        if alert is None:
            return None
        alert.status = "snoozed"
        alert.snoozed_until = (now or _utcnow()) + timedelta(hours=hours)
        return self.save_alert(alert)

    def stats(self, now: Optional[datetime] = None) -> AlertStats:
        now = _aware(now or _utcnow())
        alerts = self.list_alerts()
        by_severity = {s: 0 for s in SEVERITIES}
        by_type = {t: 0 for t in ALERT_TYPES}
        by_status = {"active": 0, "acknowledged": 0, "resolved": 0}
        last_24h = last_7d = 0

        for a in alerts:
            by_severity[a.severity] += 1
            by_type[a.type] += 1
            if a.status in by_status:
                by_status[a.status] += 1
            age = now - _aware(a.created_at)
            if age < timedelta(days=1):
                last_24h += 1
            if age < timedelta(days=7):
                last_7d += 1

        return AlertStats(
            total=len(alerts),
            active=by_status["active"],
            acknowledged=by_status["acknowledged"],
            resolved=by_status["resolved"],
            by_severity=by_severity,
            by_type=by_type,
            last_24h=last_24h,
            last_7d=last_7d,
        )

    def initialize_default_rules(self) -> list[AlertRule]:
        """Seed the default rules, but only into an empty rule store."""
        if self.list_rules():
            return []
        now = _utcnow()
        created = []
        for definition in DEFAULT_RULES:
            rule = AlertRule(id=generate_id(), created_at=now, updated_at=now, **definition)
            created.append(self.save_rule(rule))
        logger.info("Initialized %d default alert rules", len(created))
        return created

    def evaluate_metrics(
        self,
        metrics: dict[str, MetricSample],
        now: Optional[datetime] = None,
    ) -> list[Alert]:
        """Evaluate every stored rule whose metric is present; persist and dispatch triggered alerts."""
        now = now or _utcnow()
        triggered: list[Alert] = []
        prefs: Optional[AlertPreferences] = None

        for rule in self.list_rules():
            sample = metrics.get(rule.metric)
            if sample is None:
                continue
            result = evaluate_rule(rule, sample.current, sample.previous, now=now)
            if not result.triggered:
                continue

            alert = result.alert.model_copy(update={"id": generate_id()})
            if self.notifier is not None:
                prefs = prefs or self.get_preferences()
                alert = self.notifier(alert, prefs)
            triggered.append(self.save_alert(alert))

            rule.last_triggered_at = now
            rule.updated_at = now
            self.save_rule(rule)
            logger.info("Rule '%s' triggered on %s=%s", rule.name, rule.metric, sample.current)

        return triggered
