class InferenceError(Exception):
    """Raised when an inference call fails."""


class InferenceNetworkError(InferenceError):
    """Raised when the provider call fails due to network/infrastructure issues."""


class InferenceResponseError(InferenceError):
    """Raised when the provider answers but the answer carries no usable content."""


class InferenceParseError(InferenceError):
    """Raised when no JSON object can be recovered from model output."""


class InferenceCancelledError(InferenceError):
    """Raised when the caller's cancellation signal fires between attempts."""
