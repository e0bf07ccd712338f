from core.data_quality import analyze_data_quality  # noqa: F401
from core.column_analyzer import analyze_schema  # noqa: F401
from core.schema_analyzer import schema_analyzer, build_schema_info  # noqa: F401
from core.templates import detect_template, apply_template  # noqa: F401
from core.alerting import AlertService, evaluate_rule  # noqa: F401
