"""Pydantic schemas for user-facing error payloads."""
from typing import Optional, Literal
from pydantic import BaseModel, Field


class RecoveryAction(BaseModel):
    label: str
    action: Literal["retry", "refresh", "reconnect", "settings", "support", "dismiss"]
    primary: bool = False


class ParsedError(BaseModel):
    code: str
    title: str
    message: str
    technical: Optional[str] = None
    recovery_actions: list[RecoveryAction] = Field(default_factory=list)
