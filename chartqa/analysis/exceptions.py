from chartqa.inference.exceptions import InferenceParseError


class AnalysisError(Exception):
    """Raised when the quality analysis engine cannot be set up."""


class AnalysisValidationError(InferenceParseError):
    """Raised when decoded model output is not a usable analysis object."""
