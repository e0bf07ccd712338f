import pytest
from core.data_quality import (
    analyze_data_quality,
    calculate_column_stats,
    calculate_quality_score,
    detect_issues,
    detect_type,
    quality_badge,
    quality_label,
    stringify,
)
from models.quality import ColumnStats, DataIssue


@pytest.mark.parametrize("value,expected", [
    (None, "null"),
    ("", "null"),
    (True, "boolean"),
    (3, "number"),
    (2.5, "number"),
    ("2024-01-05", "date"),
    ("2024-01-05T10:00:00Z", "date"),
    ("42", "number"),
    ("-3.5", "number"),
    ("abc", "string"),
    (" ", "string"),
])
def test_detect_type(value, expected):
    assert detect_type(value) == expected


def test_stringify():
    assert stringify(True) == "true"
    assert stringify(10.0) == "10"
    assert stringify(2.5) == "2.5"
    assert stringify({"b": 1, "a": 2}) == '{"a": 2, "b": 1}'


def test_numeric_column_stats():
    stats = calculate_column_stats("score", [10, 20, 30, None])
    assert stats.type == "number"
    assert stats.total_count == 4
    assert stats.null_count == 1
    assert stats.unique_count == 3
    assert stats.null_percentage == 25.0
    assert stats.unique_percentage == 100.0
    assert stats.min == 10
    assert stats.max == 30
    assert stats.mean == 20
    assert stats.median == 20


def test_median_is_upper_middle():
    stats = calculate_column_stats("n", [4, 1, 3, 2])
    assert stats.median == 3


def test_mixed_column():
    stats = calculate_column_stats("v", [1, 2, "a", "b"])
    assert stats.type == "mixed"


def test_predominant_type_at_ninety_percent():
    values = [str(i) for i in range(9)] + ["x"]
    assert calculate_column_stats("v", values).type == "number"


def test_all_null_column():
    stats = calculate_column_stats("empty", [None, ""])
    assert stats.type == "unknown"
    assert stats.null_percentage == 100.0
    assert stats.unique_percentage == 0.0
    assert stats.distribution == []


def test_string_lengths_and_samples():
    stats = calculate_column_stats("name", ["ab", "abcd", "ab"])
    assert stats.min_length == 2
    assert stats.max_length == 4
    assert stats.avg_length == pytest.approx(8 / 3)
    assert stats.sample_values == ["ab", "abcd"]
    assert stats.distribution[0].value == "ab"
    assert stats.distribution[0].count == 2


def test_distribution_truncates_long_values():
    stats = calculate_column_stats("blob", ["a" * 60])
    assert stats.distribution[0].value == "a" * 50 + "..."
    assert stats.distribution[0].percentage == 100.0


def test_boolean_samples_are_stringified():
    stats = calculate_column_stats("paid", [True, False, True])
    assert stats.type == "boolean"
    assert stats.sample_values == ["true", "false"]


def test_detect_issues_missing_high():
    col = calculate_column_stats("country", [None] * 9 + ["US"])
    issues = detect_issues([col])
    assert len(issues) == 1
    assert issues[0].type == "missing"
    assert issues[0].severity == "high"
    assert issues[0].message == "90.0% missing values"
    assert issues[0].affected_rows == 9


def test_detect_issues_missing_low():
    col = calculate_column_stats("country", [None, "US", "DE", "FR"])
    issues = detect_issues([col])
    assert [(i.type, i.severity) for i in issues] == [("missing", "low")]


def test_detect_issues_duplicate_ids():
    col = calculate_column_stats("user_id", ["a", "a", "a", "a"])
    issues = detect_issues([col])
    assert issues[0].type == "duplicate"
    assert issues[0].message == "Low uniqueness (25.0%) for ID column"
    assert issues[0].affected_rows == 3


def test_detect_issues_outlier():
    col = calculate_column_stats("amount", [1, 1, 1, 1000])
    issues = detect_issues([col])
    assert issues[0].type == "outlier"
    assert issues[0].message == "Potential outliers detected (range: 1 to 1000)"
    assert issues[0].affected_rows == 0


def test_quality_score_deductions():
    col = ColumnStats(
        name="x", type="number", total_count=10, null_count=0, unique_count=10,
        null_percentage=0.0, unique_percentage=100.0,
    )
    issues = [
        DataIssue(column="x", type="inconsistent", severity="medium", message=""),
        DataIssue(column="x", type="outlier", severity="low", message=""),
    ]
    assert calculate_quality_score([col], issues) == 89.0
    assert calculate_quality_score([], []) == 0.0


def test_quality_score_is_clamped():
    col = calculate_column_stats("country", [None] * 9 + ["US"])
    assert calculate_quality_score([col], detect_issues([col])) == 0.0


@pytest.mark.parametrize("score,label,badge", [
    (100, "Good", "green"),
    (80, "Good", "green"),
    (79.9, "Fair", "amber"),
    (60, "Fair", "amber"),
    (59, "Poor", "red"),
    (40, "Poor", "red"),
    (39, "Critical", "red"),
])
def test_labels_and_badges(score, label, badge):
    assert quality_label(score) == label
    assert quality_badge(score) == badge


def test_analyze_empty():
    report = analyze_data_quality([])
    assert report.overall_score == 0
    assert report.completeness == 0
    assert report.columns == []
    assert report.summary == "No data to analyze"
    assert report.label == "Critical"


def test_analyze_clean_rows():
    rows = [{"user_id": "u1", "score": 10}, {"user_id": "u2", "score": 20}]
    report = analyze_data_quality(rows)
    assert report.total_rows == 2
    assert report.total_columns == 2
    assert report.issues == []
    assert report.overall_score == 100.0
    assert report.completeness == 100.0
    assert report.summary == "2 rows, 2 columns. Data quality is good."
    assert report.badge_color == "green"


def test_analyze_summary_formats_thousands():
    rows = [{"n": i} for i in range(1500)]
    report = analyze_data_quality(rows)
    assert report.summary.startswith("1,500 rows, 1 columns.")


def test_analyze_uses_given_column_order():
    rows = [{"a": 1, "b": None}, {"a": 2}]
    report = analyze_data_quality(rows, ["b", "a"])
    assert [c.name for c in report.columns] == ["b", "a"]
    assert report.completeness == 50.0
    assert report.summary.endswith("Significant data quality issues found.")
