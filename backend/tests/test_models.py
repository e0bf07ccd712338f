import pytest
from pydantic import ValidationError
from models.alert import Alert, AlertPreferences, AlertRule
from models.dataset import DataQuery, QueryFilter
from models.quality import DataQualityReport
from models.schema import ColumnMapping, SchemaAnalysisResult


def test_alert_defaults():
    alert = Alert(type="threshold", severity="low", title="t", message="m")
    assert alert.status == "active"
    assert alert.channels == ["in_app"]
    assert alert.delivered == {"in_app": False, "email": False, "slack": False, "discord": False, "webhook": False}
    assert alert.created_at.tzinfo is not None


def test_alert_rejects_unknown_severity():
    with pytest.raises(ValidationError):
        Alert(type="threshold", severity="urgent", title="t", message="m")


def test_alert_rule_cooldown_must_be_non_negative():
    rule = AlertRule(name="r", metric="dau", condition="gt", threshold=1)
    assert rule.cooldown_minutes == 60
    with pytest.raises(ValidationError):
        AlertRule(name="r", metric="dau", condition="gt", threshold=1, cooldown_minutes=-1)


def test_alert_rule_rejects_unknown_condition():
    with pytest.raises(ValidationError):
        AlertRule(name="r", metric="dau", condition="between", threshold=1)


def test_quiet_hours_range():
    with pytest.raises(ValidationError):
        AlertPreferences(quiet_hours_start=24)


def test_quality_report_defaults():
    report = DataQualityReport(
        total_rows=0, total_columns=0, overall_score=0, completeness=0,
        columns=[], issues=[], summary="No data to analyze",
    )
    assert report.label == "Critical"
    assert report.badge_color == "red"


def test_column_mapping_confidence_bounds():
    with pytest.raises(ValidationError):
        ColumnMapping(original="a", canonical="a", confidence=1.5)


def test_schema_analysis_result_from_llm_json():
    result = SchemaAnalysisResult.model_validate({
        "columns": [{"original": "uid", "canonical": "user_id", "type": "string",
                     "role": "identifier", "confidence": 0.9, "reasoning": "id"}],
        "game_type": "idle",
    })
    assert result.columns[0].role == "identifier"
    assert result.data_quality == 0.5


def test_data_query_operator():
    DataQuery(filters=[QueryFilter(column="a", operator="contains", value="x")])
    with pytest.raises(ValidationError):
        QueryFilter(column="a", operator="like", value="x")
