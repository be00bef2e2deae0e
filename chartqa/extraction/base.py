import threading
from abc import ABC, abstractmethod

from chartqa.extraction.exceptions import ExtractionCancelledError
from chartqa.extraction.models import ExtractionRequest, ExtractionResult
from chartqa.extraction.source_loader import SourceHandle


class BaseExtractionChain(ABC):
    """Contract for a per-format chain of fallback extraction methods."""

    @abstractmethod
    def extract(
        self,
        source: SourceHandle,
        request: ExtractionRequest,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        """Extract usable text from ``source``.

        Raises:
            ExtractionError: when the chain is exhausted without enough content.
        """


def ensure_not_cancelled(cancel: threading.Event | None, step: str) -> None:
    if cancel is not None and cancel.is_set():
        raise ExtractionCancelledError(f"Extraction cancelled before {step}")
