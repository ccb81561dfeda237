"""
Disambiguation protocol — one suggestion-service round trip followed by one
blocking operator choice. Used when an endpoint path names no table, or a
template field names no column.
"""
import json
import logging
import re
import sys
from difflib import SequenceMatcher
from typing import Any, Optional, Protocol, TextIO, TYPE_CHECKING

from core.db_connector import SchemaIntrospector
from core.errors import DisambiguationError, InvalidSelectionError, SuggestionServiceError
from integrations.base import SuggestionService
from models.resolution import ColumnSuggestion, DisambiguationSuggestion
from models.table import TableMetadata
from prompts.disambiguation import column_suggestion_prompt, table_suggestion_prompt

if TYPE_CHECKING:
    from core.synthesizer import ValueSynthesizer

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\s*(.*?)```", re.DOTALL | re.IGNORECASE)


def extract_json(text: str) -> dict:
    """First JSON object in ``text``, looking inside Markdown code fences first."""
    fenced = _FENCE_RE.search(text or "")
    body = fenced.group(1) if fenced else (text or "")
    start = body.find("{")
    if start < 0:
        raise DisambiguationError(f"No JSON object in suggestion response: {text[:200]!r}")
    try:
        obj, _ = json.JSONDecoder().raw_decode(body[start:])
    except json.JSONDecodeError as e:
        raise DisambiguationError(f"Unparseable suggestion response: {e}") from e
    if not isinstance(obj, dict):
        raise DisambiguationError("Suggestion response is not a JSON object")
    return obj


# ── Operator channels ─────────────────────────────────────────────────────────

class OperatorChannel(Protocol):
    def show(self, text: str) -> None:
        ...

    def choose(self, prompt: str) -> Optional[str]:
        """One line of input for a menu choice; None on end of input."""
        ...

    def read_text(self, prompt: str) -> Optional[str]:
        """One line of free text; None on end of input."""
        ...


class ConsoleOperator:
    """Line-oriented operator on stdin/stdout."""

    def __init__(self, stdin: Optional[TextIO] = None, stdout: Optional[TextIO] = None):
        self.stdin = stdin or sys.stdin
        self.stdout = stdout or sys.stdout

    def show(self, text: str) -> None:
        self.stdout.write(text + "\n")
        self.stdout.flush()

    def _read(self, prompt: str) -> Optional[str]:
        self.stdout.write(prompt)
        self.stdout.flush()
        line = self.stdin.readline()
        if not line:
            return None
        return line.strip()

    def choose(self, prompt: str) -> Optional[str]:
        return self._read(prompt)

    def read_text(self, prompt: str) -> Optional[str]:
        return self._read(prompt)


class AutoSelectOperator:
    """Batch policy: always picks the same menu entry (default: the first suggestion)."""

    def __init__(self, choice: int = 1, custom_value: Optional[str] = None):
        self.choice = choice
        self.custom_value = custom_value

    def show(self, text: str) -> None:
        logger.debug("Operator menu:\n%s", text)

    def choose(self, prompt: str) -> Optional[str]:
        return str(self.choice)

    def read_text(self, prompt: str) -> Optional[str]:
        return self.custom_value


def _read_choice(operator: OperatorChannel, upper: int) -> int:
    raw = operator.choose(f"Enter your choice (0-{upper}): ")
    if raw is None:
        raise InvalidSelectionError("No selection (end of input)")
    try:
        choice = int(raw.strip())
    except ValueError:
        raise InvalidSelectionError(f"Invalid selection: {raw!r}")
    if choice < 0 or choice > upper:
        raise InvalidSelectionError(f"Selection out of range: {choice}")
    return choice


# ── Coordinator ───────────────────────────────────────────────────────────────

class DisambiguationCoordinator:

    def __init__(
        self,
        introspector: SchemaIntrospector,
        service: SuggestionService,
        operator: OperatorChannel,
        context_limit: int = 10,
    ):
        self.introspector = introspector
        self.service = service
        self.operator = operator
        self.context_limit = context_limit

    def _ask_service(self, prompt: str) -> dict:
        try:
            raw = self.service.complete(prompt)
        except SuggestionServiceError as e:
            raise DisambiguationError(f"Suggestion service failed: {e}") from e
        return extract_json(raw)

    def _closest_tables(self, candidate: str) -> list[str]:
        """At most ``context_limit`` table names, most similar to ``candidate`` first."""
        wanted = candidate.lower()
        ranked = sorted(
            self.introspector.list_tables(),
            key=lambda t: SequenceMatcher(None, wanted, t).ratio(),
            reverse=True,
        )
        return ranked[:self.context_limit]

    def suggest_tables(self, candidate: str, method: str = "", path: str = "") -> list[DisambiguationSuggestion]:
        closest = self._closest_tables(candidate)
        context = self.introspector.schema_context(self.context_limit, closest)
        schema_text = "\n".join(
            f"- {t}: " + ", ".join(f"{c['name']} ({c['type']})" for c in cols)
            for t, cols in context.items()
        )
        prompt = table_suggestion_prompt.format(
            method=method or "?",
            path=path or candidate,
            candidate=candidate,
            table_list=", ".join(closest),
            context_limit=self.context_limit,
            schema_context=schema_text or "(none)",
        )
        data = self._ask_service(prompt)

        fks = [fk for fk in data.get("foreign_keys") or [] if isinstance(fk, dict)]
        suggestions = []
        for item in data.get("suggestions") or []:
            if not isinstance(item, dict) or not item.get("table"):
                continue
            name = str(item["table"])
            chain = [
                f"{fk.get('table')}.{fk.get('column')} -> {fk.get('references_table')}.{fk.get('references_column')}"
                for fk in fks
                if name.lower() in (str(fk.get("table", "")).lower(), str(fk.get("references_table", "")).lower())
            ]
            similarity = item.get("similarity")
            suggestions.append(DisambiguationSuggestion(
                name=name,
                reasoning=str(item.get("reasoning") or ""),
                similarity=float(similarity) if isinstance(similarity, (int, float)) else None,
                foreign_key_chain=chain,
            ))
        return suggestions

    def resolve_table(self, candidate: str, method: str = "", path: str = "") -> DisambiguationSuggestion:
        """
        Ask the operator which table ``candidate`` means. Returns the chosen
        suggestion; a custom entry comes back with reasoning "entered by operator".
        """
        suggestions = self.suggest_tables(candidate, method, path)

        lines = [f"\nNo table matches '{candidate}'. Suggested tables:"]
        for i, s in enumerate(suggestions, 1):
            score = f" (similarity {s.similarity:.2f})" if s.similarity is not None else ""
            lines.append(f"{i}. {s.name}{score}")
            if s.reasoning:
                lines.append(f"   Reasoning: {s.reasoning}")
            for link in s.foreign_key_chain:
                lines.append(f"   FK: {link}")
        lines.append("0. Enter custom table name")
        self.operator.show("\n".join(lines))

        choice = _read_choice(self.operator, len(suggestions))
        if choice == 0:
            custom = self.operator.read_text("Enter custom table name: ")
            if not custom or not custom.strip():
                raise InvalidSelectionError("Empty custom table name")
            return DisambiguationSuggestion(name=custom.strip(), reasoning="entered by operator")
        picked = suggestions[choice - 1]
        logger.info("Operator mapped '%s' to table '%s'", candidate, picked.name)
        return picked

    def suggest_column(self, field: str, tables: list[TableMetadata]) -> ColumnSuggestion:
        columns = "\n".join(
            f"- {t.name}.{c.name}: {c.data_type}" for t in tables for c in t.columns
        )
        prompt = column_suggestion_prompt.format(
            field=field,
            tables=", ".join(t.name for t in tables) or "(none)",
            columns=columns or "(none)",
        )
        data = self._ask_service(prompt)
        value_range = data.get("value_range") or []
        if not isinstance(value_range, list):
            value_range = [value_range]
        return ColumnSuggestion(
            data_type=str(data.get("data_type") or "string"),
            value_range=value_range,
            reasoning=str(data.get("reasoning") or ""),
        )

    def resolve_column(self, field: str, tables: list[TableMetadata], synthesizer: "ValueSynthesizer") -> Any:
        """Value for a template field that matches no column."""
        suggestion = self.suggest_column(field, tables)

        lines = [
            f"\nNo column matches field '{field}'.",
            f"Suggested type: {suggestion.data_type}",
        ]
        if suggestion.reasoning:
            lines.append(f"Reasoning: {suggestion.reasoning}")
        lines.append(f"1. Generate a {suggestion.data_type} value")
        upper = 1
        if suggestion.value_range:
            lines.append(f"2. Use one of these values: {suggestion.value_range}")
            upper = 2
        lines.append("0. Enter custom value")
        self.operator.show("\n".join(lines))

        choice = _read_choice(self.operator, upper)
        if choice == 1:
            return synthesizer.synthesize_for_type(suggestion.data_type, field)
        if choice == 2:
            return synthesizer.rng.choice(suggestion.value_range)
        custom = self.operator.read_text("Enter custom value: ")
        if custom is None or not custom.strip():
            raise InvalidSelectionError("Empty custom value")
        return custom.strip()
