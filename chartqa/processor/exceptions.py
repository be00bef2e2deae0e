class ProcessorError(Exception):
    """Base exception for all processor-related errors."""


class DocumentNotFoundError(ProcessorError):
    """Raised when a document cannot be found in the database."""


class DocumentBusyError(ProcessorError):
    """Raised when a document already has a pipeline in flight."""


class ChartNotFoundError(ProcessorError):
    """Raised when a chart or patient has no documents."""


class DocumentExtractionFailedError(ProcessorError):
    """Raised when extraction yields no usable content for a document."""
