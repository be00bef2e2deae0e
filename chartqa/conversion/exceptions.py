class ConversionError(Exception):
    """Raised when a document conversion operation fails."""


class ConversionServiceError(ConversionError):
    """Raised on transport failures, timeouts or non-2xx answers from the service."""


class ConversionUnavailableError(ConversionError):
    """Raised when the configured backend does not offer an operation."""


class ConversionResponseError(ConversionError):
    """Raised when a response matches none of the known payload shapes."""
