"""Pydantic schemas for table resolution and disambiguation."""
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, Field


class ResolutionState(str, Enum):
    RESOLVED = "resolved"
    UNRESOLVED = "unresolved"
    AWAITING_OPERATOR = "awaiting_operator"
    FAILED = "failed"


class DisambiguationSuggestion(BaseModel):
    name: str
    reasoning: str = ""
    similarity: Optional[float] = None
    foreign_key_chain: list[str] = Field(default_factory=list)   # ["orders.customer_id -> customer.id"]


class ColumnSuggestion(BaseModel):
    data_type: str = "string"
    value_range: list[Any] = Field(default_factory=list)
    reasoning: str = ""


class TableResolution(BaseModel):
    candidate: str
    state: ResolutionState = ResolutionState.UNRESOLVED
    table: Optional[str] = None
    related: list[str] = Field(default_factory=list)
    error: Optional[str] = None

    @property
    def tables(self) -> list[str]:
        """Primary table first, then related tables."""
        if self.table is None:
            return []
        return [self.table, *self.related]
