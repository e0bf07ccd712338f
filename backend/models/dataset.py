"""Pydantic schemas for uploaded datasets."""
from typing import Optional, Literal, Any
from datetime import datetime, timezone
from pydantic import BaseModel, Field


class Dataset(BaseModel):
    id: str
    name: str
    file_type: Literal["csv", "json"]
    columns: list[str]
    rows: list[dict[str, Any]]
    row_count: int
    uploaded_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class DatasetSummary(BaseModel):
    id: str
    name: str
    file_type: str
    columns: list[str]
    row_count: int
    uploaded_at: datetime


class QueryFilter(BaseModel):
    column: str
    operator: Literal["=", "!=", ">", "<", "contains"]
    value: Any = None


class DataQuery(BaseModel):
    columns: Optional[list[str]] = None
    filters: list[QueryFilter] = Field(default_factory=list)
    limit: Optional[int] = Field(None, ge=0)
    offset: Optional[int] = Field(None, ge=0)


class QueryResult(BaseModel):
    columns: list[str]
    rows: list[dict[str, Any]]
    row_count: int
