class ExtractionError(Exception):
    """Base exception for content extraction failures.

    ``str(exc)`` is the caller-visible diagnostic.
    """


class FileFetchError(ExtractionError):
    """Raised when the source file cannot be read or downloaded."""


class InsufficientContentError(ExtractionError):
    """Raised when every method ran but none produced enough text."""


class ExtractionCancelledError(ExtractionError):
    """Raised when the caller's cancellation signal fires mid-chain."""
