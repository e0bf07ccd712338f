import pytest
from core.schema_analyzer import DEFAULT_METRICS, build_schema_info, schema_analyzer
from models.schema import ColumnInfo, ColumnMeaning


@pytest.mark.parametrize("name,semantic", [
    ("userId", "user_id"),
    ("player_id", "user_id"),
    ("gemsSpent", "currency"),
    ("ad_revenue", "revenue"),
    ("kills", "kills"),
    ("d7", "retention_day"),
    ("VIP_Level", "vip_level"),
    ("utm_source", "acquisition_source"),
])
def test_name_patterns(name, semantic):
    meaning = schema_analyzer.analyze_column(ColumnInfo(name=name, type="string"))
    assert meaning.semantic_type == semantic
    assert meaning.confidence == 0.85


def test_value_fallback_timestamp():
    meaning = schema_analyzer.analyze_column(ColumnInfo(name="when", type="date"))
    assert (meaning.semantic_type, meaning.confidence) == ("timestamp", 0.7)


def test_value_fallback_price():
    meaning = schema_analyzer.analyze_column(ColumnInfo(name="zq", type="number", sample_values=[1.5, 2]))
    assert (meaning.semantic_type, meaning.confidence) == ("price", 0.5)


def test_value_fallback_integers_are_not_price():
    meaning = schema_analyzer.analyze_column(ColumnInfo(name="zq", type="number", sample_values=[1, 2]))
    assert meaning.semantic_type == "unknown"
    assert meaning.confidence == 0


def test_value_fallback_country_codes():
    meaning = schema_analyzer.analyze_column(ColumnInfo(name="cc", type="string", sample_values=["US", "DE"]))
    assert (meaning.semantic_type, meaning.confidence) == ("country", 0.6)


def test_value_fallback_unknown():
    meaning = schema_analyzer.analyze_column(ColumnInfo(name="notes", type="string", sample_values=["hello"]))
    assert meaning.semantic_type == "unknown"


def _meaning(semantic):
    return ColumnMeaning(column=semantic, detected_type="string", semantic_type=semantic, confidence=0.85)


def test_suggested_metrics():
    metrics = schema_analyzer.suggested_metrics([_meaning("revenue"), _meaning("user_id")])
    assert metrics == ["Total Revenue", "ARPU", "ARPPU", "Daily Revenue", "DAU", "MAU", "New Users"]


def test_suggested_metrics_default():
    assert schema_analyzer.suggested_metrics([_meaning("unknown")]) == DEFAULT_METRICS


def test_build_schema_info():
    rows = [
        {"ts": "2024-01-01", "n": 1, "flag": True, "name": "bob", "code": "x-y", "empty": None},
        {"ts": None, "n": 2, "flag": False, "name": "al", "code": "a-b", "empty": None},
    ]
    info = build_schema_info(rows)
    types = {c.name: c.type for c in info.columns}
    assert types == {
        "ts": "date",
        "n": "number",
        "flag": "boolean",
        "name": "string",
        "code": "string",
        "empty": "unknown",
    }
    nullable = {c.name: c.nullable for c in info.columns}
    assert nullable["ts"] is True
    assert nullable["n"] is False
    assert info.row_count == 2
    assert len(info.sample_data) == 2


def test_build_schema_info_samples_first_ten_rows():
    rows = [{"n": i} for i in range(25)]
    info = build_schema_info(rows)
    assert info.row_count == 25
    assert info.columns[0].sample_values == list(range(10))


def test_analyze_full_schema():
    info = build_schema_info([{"userId": "u1", "revenue": 2.5, "cc": "US"}])
    meanings = schema_analyzer.analyze(info)
    assert [m.semantic_type for m in meanings] == ["user_id", "revenue", "country"]
