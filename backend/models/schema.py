"""Pydantic schemas for column mapping, semantic typing and engine templates."""
from typing import Optional, Literal, Any
from pydantic import BaseModel, Field

MappingType = Literal["string", "number", "date", "boolean", "json"]
ColumnRole = Literal["identifier", "timestamp", "metric", "dimension", "noise", "unknown"]
InfoType = Literal["string", "number", "boolean", "date", "unknown"]


class ColumnMapping(BaseModel):
    original: str
    canonical: str
    type: MappingType = "string"
    role: ColumnRole = "unknown"
    confidence: float = Field(0.0, ge=0.0, le=1.0)
    reasoning: str = ""


class SchemaAnalysisResult(BaseModel):
    columns: list[ColumnMapping]
    game_type: str = "other"
    suggested_charts: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    data_quality: float = 0.5   # 0–1


class ColumnInfo(BaseModel):
    name: str
    type: InfoType = "unknown"
    nullable: bool = True
    sample_values: list[Any] = Field(default_factory=list)


class SchemaInfo(BaseModel):
    columns: list[ColumnInfo]
    row_count: int = 0
    sample_data: list[dict] = Field(default_factory=list)


class ColumnMeaning(BaseModel):
    column: str
    detected_type: InfoType
    semantic_type: str
    confidence: float


class ColumnTemplate(BaseModel):
    name: str
    aliases: list[str] = Field(default_factory=list)
    semantic_type: str
    required: bool = False


class EngineTemplate(BaseModel):
    id: str
    name: str
    description: str
    engine: str
    columns: list[ColumnTemplate]
    suggested_game_type: str = "custom"
    event_types: list[str] = Field(default_factory=list)
    sample_file_name: Optional[str] = None


class TemplateMatch(BaseModel):
    template: Optional[EngineTemplate] = None
    mappings: dict[str, str] = Field(default_factory=dict)   # upload column → semantic type


class SchemaReport(BaseModel):
    """Everything the column mapper needs for one dataset."""
    dataset_id: str
    analysis: SchemaAnalysisResult
    meanings: list[ColumnMeaning]
    suggested_metrics: list[str]
    template: TemplateMatch
