from chartqa.analysis.analyzer import QualityAnalyzer
from chartqa.analysis.base import BaseQualityAnalyzer
from chartqa.analysis.document_kinds import DocumentKind, normalize_document_kind
from chartqa.analysis.factory import QualityAnalyzerFactory
from chartqa.analysis.models import AnalysisResult, DocumentMeta

__all__ = [
    "AnalysisResult",
    "BaseQualityAnalyzer",
    "DocumentKind",
    "DocumentMeta",
    "QualityAnalyzer",
    "QualityAnalyzerFactory",
    "normalize_document_kind",
]
