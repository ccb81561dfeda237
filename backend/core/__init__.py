from core.db_connector import create_engine_from_request, SchemaIntrospector  # noqa: F401
from core.synthesizer import ValueSynthesizer  # noqa: F401
from core.resolver import RelationalResolver  # noqa: F401
from core.disambiguation import DisambiguationCoordinator, ConsoleOperator, AutoSelectOperator  # noqa: F401
from core.orchestrator import TemplateOrchestrator  # noqa: F401
