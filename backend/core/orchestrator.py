"""
Template orchestrator — loads a test-data template, fills every endpoint in
order against the live schema and writes the result back.
"""
import json
import logging
import random
import time
from pathlib import Path
from typing import Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError

from core.db_connector import SchemaIntrospector
from core.disambiguation import DisambiguationCoordinator, OperatorChannel
from core.errors import SynthesisEngineError, TemplateError
from core.resolver import RelationalResolver
from core.synthesizer import ValueSynthesizer
from integrations.base import SuggestionService
from models.synthesis import EndpointResult, SynthesisSummary
from models.table import TableMetadata
from models.template import EndpointTemplate, TestDataTemplate, parse_endpoint_key

logger = logging.getLogger(__name__)

SUPPORTED_METHODS = ("GET", "DELETE", "POST", "PUT")


def load_template(path: str | Path) -> TestDataTemplate:
    try:
        raw = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise TemplateError(f"Cannot read template {path}: {e}") from e
    return parse_template(raw, str(path))


def parse_template(raw: str, source: str = "<template>") -> TestDataTemplate:
    try:
        return TestDataTemplate.model_validate_json(raw)
    except ValidationError as e:
        raise TemplateError(f"Invalid template {source}: {e}") from e


def save_template(template: TestDataTemplate, path: str | Path) -> None:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_text(json.dumps(template.to_json_dict(), indent=2) + "\n", encoding="utf-8")
    logger.info("Template written to %s", out)


class TemplateOrchestrator:
    """
    Drives one synthesis run. Endpoints are processed one at a time; each is
    filled on a copy that replaces the template entry only when it succeeds.
    """

    def __init__(
        self,
        introspector: SchemaIntrospector,
        service: Optional[SuggestionService] = None,
        operator: Optional[OperatorChannel] = None,
        seed: Optional[int] = None,
        null_probability: float = 0.10,
        context_limit: int = 10,
    ):
        self.introspector = introspector
        rng = random.Random(seed)
        self.coordinator = None
        if service is not None and operator is not None:
            self.coordinator = DisambiguationCoordinator(introspector, service, operator, context_limit)
        self.resolver = RelationalResolver(introspector, self.coordinator, rng)
        self.synthesizer = ValueSynthesizer(
            rng=rng,
            null_probability=null_probability,
            foreign_value=self.resolver.foreign_value,
        )

    load_template = staticmethod(load_template)
    save_template = staticmethod(save_template)

    def generate(self, template_path: str | Path, output_path: Optional[str | Path] = None) -> SynthesisSummary:
        """Load, fill and write back. The template is overwritten when no output path is given."""
        template = self.load_template(template_path)
        summary = self.run(template)
        self.save_template(template, output_path or template_path)
        return summary

    def run(self, template: TestDataTemplate) -> SynthesisSummary:
        start = time.perf_counter()
        results = []
        for key in list(template.endpoints):
            result, filled = self.fill_endpoint(key, template.endpoints[key])
            if filled is not None:
                template.endpoints[key] = filled
            results.append(result)

        filled_count = sum(1 for r in results if r.status == "success")
        duration = round(time.perf_counter() - start, 3)
        logger.info("Filled %d/%d endpoints in %.2fs", filled_count, len(results), duration)
        return SynthesisSummary(
            endpoints_total=len(results),
            endpoints_filled=filled_count,
            duration_seconds=duration,
            results=results,
        )

    # ── Single endpoint ───────────────────────────────────────────────────────

    def _skip(self, result: EndpointResult, error: str) -> tuple[EndpointResult, None]:
        logger.warning("Skipping %s: %s", result.endpoint, error)
        result.error = error
        result.warnings = self.resolver.warnings + self.synthesizer.warnings
        return result, None

    def _sample(self, meta: TableMetadata) -> dict:
        try:
            sample = self.introspector.fetch_random_row(meta.name)
        except SQLAlchemyError as e:
            self.synthesizer.warn(f"Could not sample {meta.name}: {e}")
            return {}
        if not sample:
            self.synthesizer.warn(f"Table {meta.name} is empty; synthesizing without a sample record")
        return sample

    def _unknown_field_hook(self, metas: list[TableMetadata]):
        if self.coordinator is None:
            return None
        return lambda name: self.coordinator.resolve_column(name, metas, self.synthesizer)

    def fill_endpoint(self, key: str, endpoint: EndpointTemplate) -> tuple[EndpointResult, Optional[EndpointTemplate]]:
        """Returns the result and the filled copy, or None when the endpoint was skipped."""
        method, path = parse_endpoint_key(key)
        result = EndpointResult(endpoint=key, status="skipped")
        self.resolver.warnings = []
        self.synthesizer.warnings = []

        if method not in SUPPORTED_METHODS:
            return self._skip(result, f"Unsupported method '{method or key}'")

        try:
            tables = self.resolver.resolve_tables_for_endpoint(method, path)
            metas = [self.introspector.describe_table(t) for t in tables]
            sample = self._sample(metas[0])
            self.synthesizer.unknown_field = self._unknown_field_hook(metas)

            work = endpoint.model_copy(deep=True)
            if method in ("GET", "DELETE", "PUT") and work.path_params:
                self.synthesizer.synthesize_params(work.path_params, metas, sample, prefer_sample=True)
            if method in ("GET", "DELETE") and work.query_params:
                self.synthesizer.synthesize_params(work.query_params, metas, sample)
            if method in ("POST", "PUT") and work.has("body"):
                work.body = self.synthesizer.synthesize_template(work.body, sample, metas[0], metas[1:])
        except (SynthesisEngineError, SQLAlchemyError) as e:
            return self._skip(result, str(e))

        result.status = "success"
        result.tables = tables
        result.warnings = self.resolver.warnings + self.synthesizer.warnings
        return result, work
