import pytest
from datetime import datetime, timedelta, timezone

from core.alerting import (
    AlertService,
    condition_met,
    create_alert,
    create_rule,
    evaluate_rule,
    generate_recommendations,
    percent_change,
)
from models.alert import AlertPreferences, MetricSample

NOW = datetime(2025, 3, 10, 12, 0, tzinfo=timezone.utc)


def _rule(condition, threshold, **options):
    return create_rule("Test Rule", "", "dau", condition, threshold, **options)


# ── Construction ─────────────────────────────────────────────────────────────

def test_create_alert_defaults():
    alert = create_alert("anomaly", "high", "Spike", "Something moved")
    assert alert.id
    assert alert.status == "active"
    assert alert.source == "system"
    assert alert.channels == ["in_app"]
    assert alert.recommendations == []
    assert set(alert.delivered.values()) == {False}


def test_create_alert_options():
    alert = create_alert(
        "threshold", "low", "t", "m",
        metric="revenue", value=5.0, channels=["slack"], source="import",
    )
    assert alert.metric == "revenue"
    assert alert.value == 5.0
    assert alert.channels == ["slack"]
    assert alert.source == "import"


def test_create_rule_defaults():
    rule = create_rule("R", "desc", "revenue", "gt", 10)
    assert rule.enabled
    assert rule.severity == "medium"
    assert rule.channels == ["in_app"]
    assert rule.auto_adjust is False
    assert rule.day_of_week_aware is False
    assert rule.cooldown_minutes == 60
    assert rule.last_triggered_at is None


# ── Evaluation ───────────────────────────────────────────────────────────────

@pytest.mark.parametrize("condition,threshold,current,previous,expected", [
    ("gt", 100, 101, None, True),
    ("gt", 100, 100, None, False),
    ("lt", 0.1, 0.05, None, True),
    ("lt", 0.1, 0.1, None, False),
    ("eq", 5, 5, None, True),
    ("eq", 5, 5.1, None, False),
    ("change_lt", -20, 70, 100, True),
    ("change_lt", -20, 90, 100, False),
    ("change_gt", 10, 120, 100, True),
    ("change_gt", 10, 105, 100, False),
    ("change_gt", 10, 120, None, False),
    ("change_gt", 10, 120, 0, False),
])
def test_condition_table(condition, threshold, current, previous, expected):
    rule = _rule(condition, threshold)
    assert condition_met(rule, current, previous) is expected
    assert evaluate_rule(rule, current, previous, now=NOW).triggered is expected


def test_percent_change():
    assert percent_change(70, 100) == -30
    assert percent_change(70, None) is None
    assert percent_change(70, 0) is None


def test_triggered_alert_contents():
    rule = create_rule("DAU Drop", "", "dau", "lt", 1000, severity="high", channels=["in_app", "slack"])
    result = evaluate_rule(rule, 800, 1200, now=NOW)

    assert result.triggered
    alert = result.alert
    assert alert.type == "threshold"
    assert alert.severity == "high"
    assert alert.title == "DAU Drop Alert"
    assert alert.message == "dau is 800 (threshold: 1000)"
    assert alert.value == 800
    assert alert.expected_value == 1200
    assert alert.source == "alert_rule"
    assert alert.data == {"rule_id": rule.id}
    assert alert.channels == ["in_app", "slack"]
    assert alert.created_at == NOW
    assert alert.recommendations[0] == "Check for technical issues or outages"


def test_disabled_rule_never_triggers():
    rule = _rule("gt", 0)
    rule.enabled = False
    assert not evaluate_rule(rule, 10).triggered


def test_cooldown_suppresses_retrigger():
    rule = _rule("gt", 0, cooldown_minutes=60)
    rule.last_triggered_at = NOW - timedelta(minutes=30)
    assert not evaluate_rule(rule, 10, now=NOW).triggered

    rule.last_triggered_at = NOW - timedelta(minutes=61)
    assert evaluate_rule(rule, 10, now=NOW).triggered


def test_cooldown_accepts_naive_timestamps():
    rule = _rule("gt", 0)
    rule.last_triggered_at = (NOW - timedelta(minutes=5)).replace(tzinfo=None)
    assert not evaluate_rule(rule, 10, now=NOW).triggered


@pytest.mark.parametrize("metric,first", [
    ("dau", "Check for technical issues or outages"),
    ("new_users", "Check for technical issues or outages"),
    ("revenue", "Review pricing and offers"),
    ("d7_retention", "Review onboarding experience"),
    ("churn_rate", "Launch re-engagement campaign"),
])
def test_recommendations(metric, first):
    recs = generate_recommendations(metric)
    assert len(recs) == 3
    assert recs[0] == first


def test_no_recommendations_for_unknown_metric():
    assert generate_recommendations("data_quality_score") == []


# ── Service ──────────────────────────────────────────────────────────────────

@pytest.fixture
def service(store):
    return AlertService(store)


def test_default_rules_seed_once(service):
    created = service.initialize_default_rules()
    assert [r.name for r in created] == [
        "DAU Drop",
        "Revenue Anomaly",
        "High Churn Risk",
        "Retention Drop",
        "Conversion Opportunity",
    ]
    assert service.initialize_default_rules() == []
    assert len(service.list_rules()) == 5


def test_evaluate_metrics_persists_and_stamps(service):
    service.initialize_default_rules()
    alerts = service.evaluate_metrics({"dau": MetricSample(current=70, previous=100)}, now=NOW)

    assert len(alerts) == 1
    assert alerts[0].title == "DAU Drop Alert"
    assert service.get_alert(alerts[0].id) is not None

    rule = next(r for r in service.list_rules() if r.metric == "dau")
    assert rule.last_triggered_at == NOW

    # still inside the 60 minute cooldown
    again = service.evaluate_metrics({"dau": MetricSample(current=70, previous=100)}, now=NOW + timedelta(minutes=10))
    assert again == []


def test_evaluate_metrics_ignores_missing_metrics(service):
    service.initialize_default_rules()
    assert service.evaluate_metrics({"unrelated": MetricSample(current=1)}, now=NOW) == []


def test_evaluate_metrics_calls_notifier(store):
    calls = []

    def notifier(alert, prefs):
        calls.append(prefs)
        return alert.model_copy(update={"delivered": {**alert.delivered, "in_app": True}})

    service = AlertService(store, notifier=notifier)
    service.save_rule(create_rule("Churn", "", "churn_risk_users", "gt", 100))
    alerts = service.evaluate_metrics({"churn_risk_users": MetricSample(current=150)}, now=NOW)

    assert len(calls) == 1
    assert alerts[0].delivered["in_app"] is True
    assert service.get_alert(alerts[0].id).delivered["in_app"] is True


def test_alert_lifecycle(service):
    alert = service.save_alert(create_alert("threshold", "high", "t", "m"))

    acked = service.acknowledge(alert.id, now=NOW)
    assert acked.status == "acknowledged"
    assert acked.acknowledged_at == NOW

    resolved = service.resolve(alert.id, "Rolled back build", now=NOW)
    assert resolved.status == "resolved"
    assert resolved.action_taken == "Rolled back build"

    snoozed = service.snooze(alert.id, 2, now=NOW)
    assert snoozed.status == "snoozed"
    assert snoozed.snoozed_until == NOW + timedelta(hours=2)


def test_lifecycle_on_missing_alert(service):
    assert service.acknowledge("missing") is None
    assert service.resolve("missing") is None
    assert service.snooze("missing", 1) is None
    assert service.delete_alert("missing") is False


def test_list_alert_filters(service):
    service.save_alert(create_alert("threshold", "high", "a", "m"))
    service.save_alert(create_alert("anomaly", "low", "b", "m"))
    done = service.save_alert(create_alert("anomaly", "high", "c", "m"))
    service.resolve(done.id)

    assert len(service.list_alerts()) == 3
    assert [a.title for a in service.list_alerts(type="anomaly", status="active")] == ["b"]
    assert {a.title for a in service.list_alerts(severity="high")} == {"a", "c"}
    assert {a.title for a in service.active_alerts()} == {"a", "b"}


def test_stats(service):
    recent = create_alert("threshold", "high", "recent", "m")
    recent.created_at = NOW - timedelta(hours=1)
    older = create_alert("opportunity", "low", "older", "m")
    older.created_at = NOW - timedelta(days=3)
    ancient = create_alert("anomaly", "critical", "ancient", "m")
    ancient.created_at = NOW - timedelta(days=30)
    for a in (recent, older, ancient):
        service.save_alert(a)
    service.acknowledge(older.id)

    stats = service.stats(now=NOW)
    assert stats.total == 3
    assert stats.active == 2
    assert stats.acknowledged == 1
    assert stats.resolved == 0
    assert stats.by_severity == {"low": 1, "medium": 0, "high": 1, "critical": 1}
    assert stats.by_type["anomaly"] == 1
    assert stats.last_24h == 1
    assert stats.last_7d == 2


def test_preferences_default_and_save(service):
    prefs = service.get_preferences()
    assert prefs.enabled
    assert prefs.digest_frequency == "daily"
    assert prefs.min_severity_in_app == "low"
    assert prefs.min_severity_email == "high"

    service.save_preferences(AlertPreferences(slack_webhook="https://hooks.example/x", quiet_hours_start=22))
    stored = service.get_preferences()
    assert stored.slack_webhook == "https://hooks.example/x"
    assert stored.quiet_hours_start == 22


def test_rule_crud(service):
    rule = service.save_rule(create_rule("R", "", "revenue", "gt", 1))
    assert service.get_rule(rule.id).name == "R"
    assert service.delete_rule(rule.id)
    assert service.get_rule(rule.id) is None
