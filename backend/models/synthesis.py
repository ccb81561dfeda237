"""Pydantic schemas for synthesis run results."""
from typing import Literal, Optional
from pydantic import BaseModel, Field


class EndpointResult(BaseModel):
    endpoint: str
    status: Literal["success", "skipped"]
    tables: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    error: Optional[str] = None


class SynthesisSummary(BaseModel):
    endpoints_total: int
    endpoints_filled: int
    duration_seconds: float
    results: list[EndpointResult]
