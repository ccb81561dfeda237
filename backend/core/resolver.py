"""
Relational resolver — maps an endpoint path onto a primary table plus the
tables joined to it by foreign keys, and looks up live values for single
foreign-key references.
"""
import logging
import random
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError

from core.db_connector import SchemaIntrospector
from core.disambiguation import DisambiguationCoordinator
from core.errors import DisambiguationError, UnresolvedTableError
from models.resolution import ResolutionState, TableResolution
from models.table import ColumnMetadata

logger = logging.getLogger(__name__)


def candidate_from_path(path: str) -> str:
    """``/api/Customer/{id}?x=1`` → ``customer``. Empty string when nothing static remains."""
    path = path.split("?", 1)[0]
    segments = [s for s in path.split("/") if s]
    while segments and segments[-1].startswith("{") and segments[-1].endswith("}"):
        segments.pop()
    return segments[-1].lower() if segments else ""


class RelationalResolver:

    def __init__(
        self,
        introspector: SchemaIntrospector,
        coordinator: Optional[DisambiguationCoordinator] = None,
        rng: Optional[random.Random] = None,
    ):
        self.introspector = introspector
        self.coordinator = coordinator
        self.rng = rng or random.Random()
        self.warnings: list[str] = []
        self._answers: dict[str, str] = {}   # candidate → operator-chosen table, for this run

    def _warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # ── Tables ────────────────────────────────────────────────────────────────

    def _disambiguate(self, candidate: str, method: str = "", path: str = "") -> str:
        """Operator-chosen table for ``candidate``; raises DisambiguationError."""
        if candidate in self._answers:
            return self._answers[candidate]
        suggestion = self.coordinator.resolve_table(candidate, method, path)
        name = suggestion.name.lower()
        if not self.introspector.table_exists(name):
            raise DisambiguationError(f"Table '{suggestion.name}' does not exist")
        self._answers[candidate] = name
        return name

    def resolve(self, method: str, path: str) -> TableResolution:
        res = TableResolution(candidate=candidate_from_path(path))
        if not res.candidate:
            res.state = ResolutionState.FAILED
            res.error = f"No static path segment in '{path}'"
            return res

        if self.introspector.table_exists(res.candidate):
            res.table = res.candidate
        elif self.coordinator is None:
            res.state = ResolutionState.FAILED
            res.error = f"No table matches '{res.candidate}' and no suggestion service is configured"
            return res
        else:
            res.state = ResolutionState.AWAITING_OPERATOR
            try:
                res.table = self._disambiguate(res.candidate, method, path)
            except DisambiguationError as e:
                res.state = ResolutionState.FAILED
                res.error = str(e)
                return res

        res.related = self.introspector.find_related_tables(res.table)
        res.state = ResolutionState.RESOLVED
        logger.info("%s %s → %s (related: %s)", method, path, res.table, ", ".join(res.related) or "none")
        return res

    def resolve_tables_for_endpoint(self, method: str, path: str) -> list[str]:
        """Primary table first, then related tables. Raises UnresolvedTableError."""
        res = self.resolve(method, path)
        if res.state != ResolutionState.RESOLVED:
            raise UnresolvedTableError(res.error or f"Could not resolve '{path}'")
        return res.tables

    # ── Foreign keys ──────────────────────────────────────────────────────────

    def _synthetic_key(self, reason: str) -> int:
        value = self.rng.randint(1, 1000)
        self._warn(f"{reason}; using synthetic key {value}")
        return value

    def resolve_foreign_value(self, referenced_table: str, referenced_column: str) -> Any:
        """A value that exists in ``referenced_table.referenced_column``, or a synthetic positive int."""
        table = referenced_table.lower()
        if not self.introspector.table_exists(table):
            if self.coordinator is None:
                return self._synthetic_key(f"Referenced table '{referenced_table}' not found")
            try:
                table = self._disambiguate(table)
            except DisambiguationError as e:
                return self._synthetic_key(f"Could not resolve referenced table '{referenced_table}': {e}")

        try:
            value = self.introspector.fetch_random_value(table, referenced_column)
        except SQLAlchemyError as e:
            return self._synthetic_key(f"Lookup of {table}.{referenced_column} failed: {e}")
        if value is None:
            return self._synthetic_key(f"No rows in {table}.{referenced_column}")
        return value

    def foreign_value(self, column: ColumnMetadata) -> Any:
        return self.resolve_foreign_value(column.foreign_key_ref, column.referenced_column or "id")
