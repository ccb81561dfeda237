"""Pydantic schemas for table and column metadata."""
from typing import Any, Optional
from pydantic import BaseModel, Field, model_validator


class ColumnMetadata(BaseModel):
    name: str
    data_type: str                              # lower-cased, e.g. "integer", "character varying"
    is_nullable: bool = True
    max_length: int = 0                         # 0 = unbounded
    numeric_precision: Optional[int] = None
    numeric_scale: Optional[int] = None
    is_primary_key: bool = False
    is_foreign_key: bool = False
    is_auto_increment: bool = False
    foreign_key_ref: Optional[str] = None       # referenced table
    referenced_column: Optional[str] = None
    default: Optional[Any] = None
    enum_values: list[Any] = Field(default_factory=list)
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    min_exclusive: bool = False                # bound came from a strict > / <
    max_exclusive: bool = False
    pattern: Optional[str] = None
    comment: Optional[str] = None

    @model_validator(mode="after")
    def _foreign_key_needs_target(self):
        if self.is_foreign_key and not self.foreign_key_ref:
            raise ValueError(f"Foreign key column '{self.name}' has no referenced table")
        return self

    @property
    def excluded_from_writes(self) -> bool:
        """Auto-increment primary keys never appear in POST/PUT payloads."""
        return self.is_primary_key and self.is_auto_increment


class ForeignKeyEdge(BaseModel):
    column: str
    referenced_table: str
    referenced_column: str


class TableMetadata(BaseModel):
    name: str
    columns: list[ColumnMetadata]
    primary_key: Optional[str] = None
    foreign_keys: list[ForeignKeyEdge] = Field(default_factory=list)

    def column(self, name: str) -> Optional[ColumnMetadata]:
        """Case-insensitive column lookup."""
        wanted = name.lower()
        for col in self.columns:
            if col.name.lower() == wanted:
                return col
        return None
