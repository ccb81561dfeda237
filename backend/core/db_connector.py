"""
Database connector — SQLAlchemy engine factory and schema introspection.
Supports SQLite, PostgreSQL, MySQL and SQL Server. Extracts tables, columns,
types, PK/FK/check constraints and fetches random rows for sampling.
"""
import datetime as dt
import decimal
import logging
import re
import uuid
from typing import Any, Optional

from sqlalchemy import create_engine, func, inspect, select, table, column, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import OperationalError, SQLAlchemyError
from sqlalchemy.types import NullType

from models.connection import ConnectionRequest
from models.table import TableMetadata, ColumnMetadata, ForeignKeyEdge

logger = logging.getLogger(__name__)

USER_DEFINED = "user-defined"

# Column names may be closed by a quote or bracket: "age", `age`, [age]
_COL = r"(\w+)[\"`\]]?"
_NUM = r"(-?\d+(?:\.\d+)?)"
_BETWEEN_RE = re.compile(_COL + r"\s+between\s+" + _NUM + r"\s+and\s+" + _NUM, re.IGNORECASE)
_GE_RE = re.compile(_COL + r"\s*(>=?)\s*" + _NUM)
_LE_RE = re.compile(_COL + r"\s*(<=?)\s*" + _NUM)
_IN_RE = re.compile(_COL + r"\s+in\s*\(([^)]*)\)", re.IGNORECASE)
_LIKE_RE = re.compile(_COL + r"\s+like\s+'([^']*)'", re.IGNORECASE)


def create_engine_from_request(req: ConnectionRequest) -> Engine:
    """Build and test a SQLAlchemy engine from a ConnectionRequest."""
    url = req.get_sqlalchemy_url()
    engine = create_engine(url, pool_pre_ping=True)
    # Validate the connection immediately
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
    except OperationalError as e:
        engine.dispose()
        raise ValueError(f"Could not connect to database: {e}") from e
    return engine


def _get_default_schema(engine: Engine, req: ConnectionRequest) -> Optional[str]:
    if req.db_schema:
        return req.db_schema
    if engine.dialect.name == "postgresql":
        return "public"
    return None   # SQLite / MySQL / SQL Server use the connection default


def parse_check_constraint(sqltext: str) -> dict[str, dict[str, Any]]:
    """
    Extract bounds from a CHECK constraint body, keyed by lower-cased column.

    Understands ``col BETWEEN a AND b``, ``col >= a``, ``col > a``,
    ``col <= b``, ``col < b``, ``col IN ('x', 'y')`` and ``col LIKE 'pat'``.
    Strict comparisons set ``min_exclusive`` / ``max_exclusive``; ``<>`` is
    not a bound.
    """
    found: dict[str, dict[str, Any]] = {}

    def slot(col: str) -> dict[str, Any]:
        return found.setdefault(col.lower(), {})

    for col, lo, hi in _BETWEEN_RE.findall(sqltext):
        slot(col).update(min_value=float(lo), max_value=float(hi))
    for col, op, lo in _GE_RE.findall(sqltext):
        s = slot(col)
        if "min_value" not in s:
            s.update(min_value=float(lo), min_exclusive=op == ">")
    for col, op, hi in _LE_RE.findall(sqltext):
        s = slot(col)
        if "max_value" not in s:
            s.update(max_value=float(hi), max_exclusive=op == "<")
    for col, items in _IN_RE.findall(sqltext):
        values = [v.strip().strip("'\"") for v in items.split(",") if v.strip()]
        slot(col)["enum_values"] = values
    for col, pattern in _LIKE_RE.findall(sqltext):
        slot(col)["pattern"] = pattern
    return found


def to_json_value(value: Any) -> Any:
    """Convert driver values into something the template file can hold."""
    if isinstance(value, decimal.Decimal):
        return float(value)
    if isinstance(value, (dt.datetime, dt.date, dt.time)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    return value


class SchemaIntrospector:
    """
    Read-only view of one database's catalog for the duration of a run.

    Query errors propagate to the caller; the schema is assumed static, so
    nothing is retried.
    """

    def __init__(self, engine: Engine, schema: Optional[str] = None):
        self.engine = engine
        self.schema = schema
        self._insp = inspect(engine)
        self._names: Optional[dict[str, str]] = None   # lower-case → catalog spelling

    @classmethod
    def from_request(cls, req: ConnectionRequest) -> "SchemaIntrospector":
        engine = create_engine_from_request(req)
        return cls(engine, _get_default_schema(engine, req))

    def close(self) -> None:
        self.engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    # ── Catalog ───────────────────────────────────────────────────────────────

    def _table_names(self) -> dict[str, str]:
        if self._names is None:
            names = self._insp.get_table_names(schema=self.schema)
            self._names = {n.lower(): n for n in names}
            logger.info("Discovered %d tables", len(self._names))
        return self._names

    def list_tables(self) -> list[str]:
        """Base tables (no views), lower-cased."""
        return list(self._table_names().keys())

    def table_exists(self, name: str) -> bool:
        return name.lower() in self._table_names()

    def actual_name(self, name: str) -> str:
        """Catalog spelling of a table name, or KeyError."""
        return self._table_names()[name.lower()]

    def describe_table(self, name: str) -> TableMetadata:
        actual = self.actual_name(name)
        raw_cols = self._insp.get_columns(actual, schema=self.schema)
        pk_cols = self._insp.get_pk_constraint(actual, schema=self.schema).get("constrained_columns") or []
        pk_lower = {c.lower() for c in pk_cols}

        edges: list[ForeignKeyEdge] = []
        fk_map: dict[str, ForeignKeyEdge] = {}
        for fk in self._insp.get_foreign_keys(actual, schema=self.schema):
            for lc, rc in zip(fk["constrained_columns"], fk["referred_columns"]):
                edge = ForeignKeyEdge(column=lc, referenced_table=fk["referred_table"], referenced_column=rc)
                edges.append(edge)
                fk_map[lc.lower()] = edge

        checks = self._check_bounds(actual)
        single_pk = len(pk_cols) == 1

        columns = []
        for raw in raw_cols:
            lname = raw["name"].lower()
            is_pk = lname in pk_lower
            edge = fk_map.get(lname)
            col = _column_from_reflection(raw, is_pk, edge, checks.get(lname, {}))
            col.is_auto_increment = _is_auto_increment(raw, col, single_pk, self.engine.dialect.name)
            columns.append(col)

        return TableMetadata(
            name=actual,
            columns=columns,
            primary_key=pk_cols[0] if pk_cols else None,
            foreign_keys=edges,
        )

    def _check_bounds(self, actual: str) -> dict[str, dict[str, Any]]:
        bounds: dict[str, dict[str, Any]] = {}
        try:
            constraints = self._insp.get_check_constraints(actual, schema=self.schema)
        except NotImplementedError:
            return bounds
        for cc in constraints:
            for col, found in parse_check_constraint(cc.get("sqltext") or "").items():
                bounds.setdefault(col, {}).update(found)
        return bounds

    def find_related_tables(self, name: str) -> list[str]:
        """Tables joined to ``name`` by a foreign key in either direction."""
        target = name.lower()
        related: list[str] = []

        def add(other: str) -> None:
            if other.lower() != target and other.lower() not in related:
                related.append(other.lower())

        for fk in self._insp.get_foreign_keys(self.actual_name(name), schema=self.schema):
            add(fk["referred_table"])
        for lower, actual in self._table_names().items():
            if lower == target:
                continue
            for fk in self._insp.get_foreign_keys(actual, schema=self.schema):
                if fk["referred_table"].lower() == target:
                    add(actual)
                    break
        return related

    def schema_context(self, limit: int = 10, names: Optional[list[str]] = None) -> dict[str, list[dict[str, str]]]:
        """
        Bounded sample of tables and their key columns, small enough to send to
        a suggestion service. ``names`` picks the tables (default: catalog order);
        at most ``limit`` are described either way.
        """
        context: dict[str, list[dict[str, str]]] = {}
        for lower in list(names if names is not None else self._table_names())[:limit]:
            meta = self.describe_table(lower)
            keys = [c for c in meta.columns if c.is_primary_key or c.is_foreign_key] or meta.columns[:3]
            context[meta.name] = [{"name": c.name, "type": c.data_type} for c in keys]
        return context

    # ── Sampling ──────────────────────────────────────────────────────────────

    def _random(self):
        dialect = self.engine.dialect.name
        if dialect in ("mysql", "mariadb"):
            return func.rand()
        if dialect == "mssql":
            return func.newid()
        return func.random()

    def fetch_random_row(self, name: str) -> dict[str, Any]:
        """One row at random as a JSON-safe dict; empty dict if the table is empty."""
        meta = self.describe_table(name)
        cols = [column(c.name) for c in meta.columns]
        stmt = select(*cols).select_from(table(meta.name, schema=self.schema)).order_by(self._random()).limit(1)
        with self.engine.connect() as conn:
            row = conn.execute(stmt).mappings().first()
        if row is None:
            return {}
        return {k: to_json_value(v) for k, v in row.items()}

    def fetch_random_value(self, name: str, column_name: str) -> Optional[Any]:
        """One non-null value of ``column_name`` at random, or None if there is none."""
        col = column(column_name)
        stmt = (
            select(col)
            .select_from(table(self.actual_name(name), schema=self.schema))
            .where(col.is_not(None))
            .order_by(self._random())
            .limit(1)
        )
        with self.engine.connect() as conn:
            row = conn.execute(stmt).first()
        return to_json_value(row[0]) if row is not None else None


def _type_name(sa_type: Any) -> str:
    # VARCHAR(50) → "varchar", "DOUBLE PRECISION" → "double precision";
    # types the dialect could not map (domains, untyped columns) → "user-defined"
    if isinstance(sa_type, NullType):
        return USER_DEFINED
    try:
        name = str(sa_type)
    except SQLAlchemyError:
        return USER_DEFINED
    return name.split("(")[0].strip().lower()


def _column_from_reflection(
    raw: dict, is_pk: bool, edge: Optional[ForeignKeyEdge], bounds: dict[str, Any]
) -> ColumnMetadata:
    sa_type = raw["type"]
    enums = list(getattr(sa_type, "enums", None) or bounds.get("enum_values", []))
    default = raw.get("default")
    return ColumnMetadata(
        name=raw["name"],
        data_type=_type_name(sa_type),
        is_nullable=bool(raw.get("nullable", True)) and not is_pk,
        max_length=getattr(sa_type, "length", None) or 0,
        numeric_precision=getattr(sa_type, "precision", None),
        numeric_scale=getattr(sa_type, "scale", None),
        is_primary_key=is_pk,
        is_foreign_key=edge is not None,
        foreign_key_ref=edge.referenced_table if edge else None,
        referenced_column=edge.referenced_column if edge else None,
        default=str(default) if default is not None else None,
        enum_values=enums,
        min_value=bounds.get("min_value"),
        min_exclusive=bounds.get("min_exclusive", False),
        max_value=bounds.get("max_value"),
        max_exclusive=bounds.get("max_exclusive", False),
        pattern=bounds.get("pattern"),
        comment=raw.get("comment"),
    )


def _is_auto_increment(raw: dict, col: ColumnMetadata, single_pk: bool, dialect: str) -> bool:
    if raw.get("autoincrement") is True or raw.get("identity"):
        return True
    if col.default and "nextval(" in col.default.lower():
        return True
    # SQLite: only a lone column declared exactly INTEGER PRIMARY KEY aliases the rowid
    return dialect == "sqlite" and col.is_primary_key and single_pk and col.data_type == "integer"
