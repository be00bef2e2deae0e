import threading
from abc import ABC, abstractmethod

from chartqa.analysis.models import AnalysisResult, DocumentMeta


class BaseQualityAnalyzer(ABC):
    """Contract for document quality analyzers."""

    @abstractmethod
    def analyze(
        self,
        extracted_text: str,
        meta: DocumentMeta,
        cancel: threading.Event | None = None,
    ) -> AnalysisResult:
        """Score extracted document text.

        Args:
            extracted_text: Text produced by the extraction step.
            meta: Document metadata embedded in the scoring request.
            cancel: Set by the caller to abandon the analysis.

        Returns:
            AnalysisResult, from the AI provider or the heuristic fallback.

        Raises:
            InferenceCancelledError: if ``cancel`` was set.
            ConfigurationError: if the provider rejects our credentials.
        """
