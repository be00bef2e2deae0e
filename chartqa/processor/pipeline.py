import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass

from chartqa.analysis.models import AnalysisResult
from chartqa.database.models import ClinicalDocumentRecord
from chartqa.extraction.models import ExtractionResult


@dataclass(slots=True)
class PipelineContext:
    document: ClinicalDocumentRecord
    cancel: threading.Event
    extracted_text: str = ""
    extraction: ExtractionResult | None = None
    analysis: AnalysisResult | None = None


class PipelineStep(ABC):
    @abstractmethod
    def run(self, context: PipelineContext) -> PipelineContext:
        raise NotImplementedError
