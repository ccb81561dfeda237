"""Exception hierarchy for the synthesis engine."""


class SynthesisEngineError(Exception):
    """Base class for engine errors."""


class TemplateError(SynthesisEngineError):
    """Template file could not be read or parsed. Fatal for the run."""


class ResolutionError(SynthesisEngineError):
    """A path or field could not be mapped onto the schema."""


class UnresolvedTableError(ResolutionError):
    pass


class SynthesisError(SynthesisEngineError):
    """A single field could not be generated. The field is skipped."""


class UnresolvedColumnError(ResolutionError, SynthesisError):
    pass


class DisambiguationError(SynthesisEngineError):
    """The disambiguation protocol could not produce an answer."""


class InvalidSelectionError(DisambiguationError):
    """Operator input did not map to a menu entry. Never re-prompted."""


class SuggestionServiceError(SynthesisEngineError):
    """The suggestion service failed or returned an unusable answer."""
