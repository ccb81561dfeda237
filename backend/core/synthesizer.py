"""
Value synthesizer — produces type-correct, plausible values for template
placeholders from column metadata, and fills nested JSON templates.

Precedence for a single field:
  1. non-null template values are kept verbatim
  2. foreign keys resolve through ``foreign_value`` (a live lookup)
  3. auto-increment primary keys are left out of write payloads
  4. nullable columns come back null with ``null_probability``
  5. name heuristics, then enum / check bounds, then the declared type
  6. strings are clipped to the column's max length
"""
import logging
import math
import random
import string
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Iterable, Optional

from core.errors import SynthesisError, UnresolvedColumnError
from models.table import ColumnMetadata, TableMetadata

logger = logging.getLogger(__name__)

_ALNUM = string.ascii_letters + string.digits
_NO_MATCH = object()

INTEGER_TYPES = {"integer", "int", "int2", "int4", "int8", "bigint", "smallint", "tinyint", "mediumint", "serial", "bigserial"}
DECIMAL_TYPES = {"numeric", "decimal", "real", "double precision", "double", "float", "float4", "float8", "money", "number"}
BOOLEAN_TYPES = {"boolean", "bool", "bit"}
TEXT_TYPES = {
    "character varying", "varchar", "text", "char", "character", "nvarchar", "nchar", "ntext",
    "string", "citext", "clob", "tinytext", "mediumtext", "longtext",
}
TIMESTAMP_TYPES = {
    "timestamp", "timestamp with time zone", "timestamp without time zone", "timestamptz",
    "datetime", "datetime2", "smalldatetime", "datetimeoffset", "date-time",
}
DATE_TYPES = {"date"}
TIME_TYPES = {"time", "time with time zone", "time without time zone", "timetz"}
UUID_TYPES = {"uuid", "uniqueidentifier"}


def _rfc3339(ts: datetime) -> str:
    return ts.replace(microsecond=0).isoformat()


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


# Ordered (needles, generator) pairs; the first needle found in the
# lower-cased field name wins.
NAME_HEURISTICS: tuple[tuple[tuple[str, ...], Callable[["ValueSynthesizer"], Any]], ...] = (
    (("email",), lambda s: f"user_{s.rng.randrange(1000)}@example.com"),
    (("phone",), lambda s: f"+1-{s.rng.randint(100, 999)}-{s.rng.randint(100, 999)}-{s.rng.randint(1000, 9999)}"),
    (("first_name", "firstname"), lambda s: f"John{s.rng.randrange(100)}"),
    (("last_name", "lastname"), lambda s: f"Doe{s.rng.randrange(100)}"),
    (("address",), lambda s: f"{s.rng.randint(1, 1000)} Main St"),
    (("city",), lambda s: f"City{s.rng.randrange(100)}"),
    (("country",), lambda s: f"Country{s.rng.randrange(100)}"),
    (("postal_code", "postcode", "zip"), lambda s: f"{s.rng.randint(10000, 99999)}{s.rng.randint(100, 999)}"),
    (("date_of_birth", "birth_date", "birthdate"), lambda s: s.date_of_birth()),
    (("username", "user_name"), lambda s: f"user_{s.rng.randrange(1000)}"),
    (("vat",), lambda s: f"VAT{s.rng.randrange(1000000)}"),
    (("system_name",), lambda s: f"system_{s.rng.randrange(1000)}"),
    (("timezone",), lambda s: "UTC"),
    (("gender",), lambda s: s.rng.choice(["M", "F", "O"])),
    (("company",), lambda s: f"Company{s.rng.randrange(1000)}"),
    (("county",), lambda s: f"County{s.rng.randrange(100)}"),
    (("comment",), lambda s: f"value_{s.rng.randrange(1000)}"),
    (("guid",), lambda s: s.new_uuid()),
    (("id",), lambda s: s.rng.randint(1, 1000)),
    (("created", "updated"), lambda s: _rfc3339(s.now())),
    (("deleted",), lambda s: False),
    (("active",), lambda s: True),
)


def normalize_name(name: str) -> str:
    """``hospitalCode``, ``hospital_code`` and ``Hospital-Code`` compare equal."""
    return name.lower().replace("_", "").replace("-", "")


def find_column(tables: Iterable[TableMetadata], name: str) -> Optional[ColumnMetadata]:
    """First column matching ``name`` across ``tables``, primary table first."""
    wanted = normalize_name(name)
    for t in tables:
        for col in t.columns:
            if normalize_name(col.name) == wanted:
                return col
    return None


def _cast_enum_value(value: str, dtype: str) -> Any:
    # CHECK (... IN (...)) lists are parsed as text; match the column's type
    if dtype in INTEGER_TYPES:
        return int(float(value))
    if dtype in DECIMAL_TYPES:
        return float(value)
    if dtype in BOOLEAN_TYPES:
        return str(value).lower() in ("1", "true", "t", "yes")
    return value


def has_placeholder(node: Any) -> bool:
    if node is None:
        return True
    if isinstance(node, dict):
        return any(has_placeholder(v) for v in node.values())
    if isinstance(node, list):
        return any(has_placeholder(v) for v in node)
    return False


class ValueSynthesizer:
    """
    Generates values for columns and templates.

    All randomness comes from ``rng``; pass a seeded ``random.Random`` for
    reproducible output. ``foreign_value`` receives a foreign-key column and
    returns a live value from the referenced table. ``unknown_field`` receives
    a field name that matches no column and returns a value or raises.
    """

    def __init__(
        self,
        rng: Optional[random.Random] = None,
        null_probability: float = 0.10,
        foreign_value: Optional[Callable[[ColumnMetadata], Any]] = None,
        unknown_field: Optional[Callable[[str], Any]] = None,
        now: Callable[[], datetime] = _utc_now,
    ):
        self.rng = rng or random.Random()
        self.null_probability = null_probability
        self.foreign_value = foreign_value
        self.unknown_field = unknown_field
        self.now = now
        self.warnings: list[str] = []

    # ── Scalars ───────────────────────────────────────────────────────────────

    def synthesize_scalar(self, column: ColumnMetadata) -> Any:
        """One value for ``column``; may be None for nullable columns."""
        if column.is_foreign_key:
            if self.foreign_value is not None:
                return self.foreign_value(column)
            return self.rng.randint(1, 1000)

        if column.is_nullable and self.rng.random() < self.null_probability:
            return None

        try:
            value = self._by_name(column.name)
            if value is _NO_MATCH:
                value = self._by_constraints(column)
            if value is _NO_MATCH:
                value = self.synthesize_for_type(column.data_type, column.name, column.max_length, column.numeric_scale)
        except (ValueError, TypeError, IndexError) as e:
            raise SynthesisError(f"Could not generate {column.name} ({column.data_type}): {e}") from e

        if isinstance(value, str) and column.max_length > 0:
            value = value[:column.max_length]
        return value

    def _by_name(self, name: str) -> Any:
        lowered = name.lower()
        for needles, generate in NAME_HEURISTICS:
            if any(n in lowered for n in needles):
                return generate(self)
        return _NO_MATCH

    def _by_constraints(self, column: ColumnMetadata) -> Any:
        dtype = column.data_type.lower()
        if column.enum_values:
            return _cast_enum_value(self.rng.choice(column.enum_values), dtype)

        if column.min_value is None and column.max_value is None:
            if column.pattern and dtype in TEXT_TYPES:
                return self._from_like_pattern(column.pattern)
            return _NO_MATCH

        if column.min_value is not None:
            lo = column.min_value
        else:
            lo = min(1.0, column.max_value - 1 if column.max_exclusive else column.max_value)
        hi = column.max_value if column.max_value is not None else lo + 1000
        if dtype in INTEGER_TYPES:
            lo_i = math.floor(lo) + 1 if column.min_exclusive else math.ceil(lo)
            hi_i = math.ceil(hi) - 1 if column.max_exclusive else math.floor(hi)
            return self.rng.randint(lo_i, hi_i) if lo_i <= hi_i else lo_i
        if dtype in DECIMAL_TYPES:
            scale = column.numeric_scale or 2
            step = 10 ** -scale
            if column.min_exclusive:
                lo += step
            if column.max_exclusive:
                hi -= step
            # rounding can land back on an excluded bound
            return min(max(round(self.rng.uniform(lo, hi), scale), round(lo, scale)), round(hi, scale))
        return _NO_MATCH

    def _from_like_pattern(self, pattern: str) -> str:
        out = []
        for ch in pattern:
            if ch == "%":
                out.append(self.random_string(4))
            elif ch == "_":
                out.append(self.rng.choice(_ALNUM))
            else:
                out.append(ch)
        return "".join(out)

    def synthesize_for_type(self, data_type: str, name: str = "", max_length: int = 0, scale: Optional[int] = None) -> Any:
        """Type-driven value, used when no name heuristic matched."""
        dtype = (data_type or "").lower().strip()
        lname = name.lower()
        rng = self.rng

        if dtype in INTEGER_TYPES:
            return rng.randint(1, 1000)
        if dtype in DECIMAL_TYPES:
            return round(rng.uniform(0, 1000), scale if scale else 2)
        if dtype in BOOLEAN_TYPES:
            # biased toward enabled / valid records
            return rng.random() < 0.7
        if dtype in TEXT_TYPES:
            return self.random_string(max_length or 10)
        if dtype in TIMESTAMP_TYPES:
            return _rfc3339(self.now() + timedelta(hours=rng.randrange(1000)))
        if dtype in DATE_TYPES:
            return (self.now() + timedelta(days=rng.randrange(365))).date().isoformat()
        if dtype in TIME_TYPES:
            return (self.now() + timedelta(hours=rng.randrange(24))).strftime("%H:%M:%S")
        if dtype in UUID_TYPES:
            return self.new_uuid()
        if dtype == "user-defined":
            if "date" in lname or "time" in lname:
                return _rfc3339(self.now())
            if "name" in lname:
                return f"Name{rng.randrange(1000)}"
            if "code" in lname:
                return f"CODE{rng.randrange(1000)}"
            if "id" in lname:
                return rng.randint(1, 1000)
            return f"value_{rng.randrange(1000)}"

        # Unknown vendor types: guess from the type name itself
        if "char" in dtype or "text" in dtype:
            return f"text_{rng.randrange(1000)}"
        if "int" in dtype or "number" in dtype:
            return rng.randrange(1000)
        if "date" in dtype or "time" in dtype:
            return _rfc3339(self.now())
        return f"value_{rng.randrange(1000)}"

    def random_string(self, length: int) -> str:
        return "".join(self.rng.choice(_ALNUM) for _ in range(length))

    def new_uuid(self) -> str:
        return str(uuid.UUID(int=self.rng.getrandbits(128), version=4))

    def date_of_birth(self) -> str:
        # between 18 and 80 years ago
        years = self.rng.randint(18, 79)
        return (self.now() - timedelta(days=365 * years + self.rng.randrange(365))).date().isoformat()

    # ── Fields & parameters ───────────────────────────────────────────────────

    def synthesize_field(
        self,
        name: str,
        tables: list[TableMetadata],
        sample_record: Optional[dict] = None,
        prefer_sample: bool = False,
    ) -> Any:
        """
        Value for a named placeholder. Raises UnresolvedColumnError when no
        column matches and no ``unknown_field`` hook is configured.
        """
        col = find_column(tables, name)
        if col is None:
            if self.unknown_field is None:
                raise UnresolvedColumnError(f"No column matches '{name}' in {[t.name for t in tables]}")
            return self.unknown_field(name)
        if prefer_sample and sample_record and sample_record.get(col.name) is not None:
            return sample_record[col.name]
        return self.synthesize_scalar(col)

    def _safe_field(self, name: str, tables: list[TableMetadata], sample: dict, prefer_sample: bool = False) -> Any:
        try:
            return self.synthesize_field(name, tables, sample, prefer_sample)
        except SynthesisError as e:
            self.warn(f"Skipped field '{name}': {e}")
            return None

    def synthesize_params(
        self,
        params: dict[str, Any],
        tables: list[TableMetadata],
        sample_record: Optional[dict] = None,
        prefer_sample: bool = False,
    ) -> dict[str, Any]:
        """Fill the null entries of a path/query parameter map in place."""
        for key, value in params.items():
            if value is None:
                params[key] = self._safe_field(key, tables, sample_record or {}, prefer_sample)
        return params

    def warn(self, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)

    # ── Templates ─────────────────────────────────────────────────────────────

    def synthesize_record(self, table_meta: TableMetadata, sample_record: Optional[dict] = None) -> dict[str, Any]:
        """
        A write payload for ``table_meta``: one key per column (restricted to
        the sample record's columns when one is given), auto-increment keys
        left out, null draws omitted.
        """
        sample = sample_record or {}
        record: dict[str, Any] = {}
        for col in table_meta.columns:
            if sample and col.name not in sample:
                continue
            if col.excluded_from_writes:
                continue
            try:
                value = self.synthesize_scalar(col)
            except SynthesisError as e:
                self.warn(f"Skipped field '{col.name}': {e}")
                continue
            if value is not None:
                record[col.name] = value
        return record

    def synthesize_template(
        self,
        template: Any,
        sample_record: Optional[dict],
        table_meta: TableMetadata,
        related: Iterable[TableMetadata] = (),
    ) -> Any:
        """
        Fill a request body template. ``None`` becomes a full record, objects
        are filled key by key, arrays follow their first element.
        """
        tables = [table_meta, *related]
        return self._fill(template, sample_record or {}, tables)

    def _fill(self, node: Any, sample: dict, tables: list[TableMetadata]) -> Any:
        if node is None:
            return self.synthesize_record(tables[0], sample)
        if isinstance(node, dict):
            return self._fill_object(node, sample, tables)
        if isinstance(node, list):
            return self._fill_array(node, sample, tables)
        return node

    def _fill_object(self, node: dict, sample: dict, tables: list[TableMetadata]) -> dict:
        result: dict[str, Any] = {}
        for key, value in node.items():
            if value is None:
                col = find_column(tables, key)
                if col is not None and col.excluded_from_writes:
                    continue
                result[key] = self._safe_field(key, tables, sample)
            elif isinstance(value, (dict, list)):
                result[key] = self._fill(value, sample, tables)
            else:
                result[key] = value
        return result

    def _fill_array(self, node: list, sample: dict, tables: list[TableMetadata]) -> list:
        if not node:
            return [self.synthesize_record(tables[0], sample)]
        stencil = node[0]
        if not has_placeholder(stencil):
            return node
        count = self.rng.randint(1, 3)
        return [self._fill(stencil, sample, tables) for _ in range(count)]
