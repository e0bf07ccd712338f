from models.quality import ColumnStats, DataIssue, DataQualityReport  # noqa: F401
from models.schema import ColumnMapping, SchemaAnalysisResult, SchemaInfo, ColumnInfo, EngineTemplate  # noqa: F401
from models.alert import Alert, AlertRule, AlertPreferences, AlertStats, RuleEvaluation  # noqa: F401
from models.dataset import Dataset, DatasetSummary, DataQuery  # noqa: F401
from models.error import ParsedError, RecoveryAction  # noqa: F401
