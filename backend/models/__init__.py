from models.connection import ConnectionRequest  # noqa: F401
from models.table import TableMetadata, ColumnMetadata, ForeignKeyEdge  # noqa: F401
from models.template import EndpointTemplate, TestDataTemplate  # noqa: F401
from models.resolution import ResolutionState, TableResolution, DisambiguationSuggestion, ColumnSuggestion  # noqa: F401
from models.synthesis import EndpointResult, SynthesisSummary  # noqa: F401
