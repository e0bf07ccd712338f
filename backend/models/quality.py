"""Pydantic schemas for data quality statistics and reports."""
from typing import Optional, Literal, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field

ColumnType = Literal["string", "number", "boolean", "date", "mixed", "unknown"]
IssueType = Literal["missing", "outlier", "inconsistent", "duplicate", "format"]
IssueSeverity = Literal["low", "medium", "high"]


class DistributionEntry(BaseModel):
    value: str
    count: int
    percentage: float


class ColumnStats(BaseModel):
    """Descriptive statistics for one uploaded column."""
    name: str
    type: ColumnType = "unknown"
    total_count: int
    null_count: int
    unique_count: int
    null_percentage: float = Field(..., ge=0.0, le=100.0)
    unique_percentage: float = Field(..., ge=0.0, le=100.0)
    sample_values: list[Any] = Field(default_factory=list)
    # Numeric columns
    min: Optional[float] = None
    max: Optional[float] = None
    mean: Optional[float] = None
    median: Optional[float] = None
    # String columns
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    avg_length: Optional[float] = None
    distribution: list[DistributionEntry] = Field(default_factory=list)  # top 10


class DataIssue(BaseModel):
    column: str
    type: IssueType
    severity: IssueSeverity
    message: str
    affected_rows: int = 0


class DataQualityReport(BaseModel):
    total_rows: int
    total_columns: int
    overall_score: float            # 0–100
    completeness: float             # % of non-null cells
    columns: list[ColumnStats]
    issues: list[DataIssue]
    summary: str
    label: str = "Critical"         # Good Fair Poor Critical
    badge_color: str = "red"        # green amber red
    analyzed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
