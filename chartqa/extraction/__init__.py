from chartqa.extraction.factory import ContentExtractorFactory
from chartqa.extraction.models import (
    ClientFrame,
    ExtractionRequest,
    ExtractionResult,
    FileKind,
    SourceBreakdown,
)
from chartqa.extraction.orchestrator import ContentExtractor

__all__ = [
    "ClientFrame",
    "ContentExtractor",
    "ContentExtractorFactory",
    "ExtractionRequest",
    "ExtractionResult",
    "FileKind",
    "SourceBreakdown",
]
