import threading

from chartqa.aggregation.models import DocumentOutcome
from chartqa.analysis.base import BaseQualityAnalyzer
from chartqa.analysis.document_kinds import normalize_document_kind
from chartqa.config.exceptions import ConfigurationError
from chartqa.config.settings import Settings
from chartqa.database.models import ClinicalDocumentRecord
from chartqa.database.repositories.document_repository import DocumentRepository
from chartqa.extraction.exceptions import ExtractionCancelledError
from chartqa.extraction.orchestrator import ContentExtractor
from chartqa.inference.exceptions import InferenceCancelledError
from chartqa.logging.logger import Log
from chartqa.processor.locks import DocumentLockRegistry
from chartqa.processor.pipeline import PipelineContext, PipelineStep
from chartqa.processor.steps import AnalyzeStep, ExtractContentStep, PersistResultStep

CANCELLATION_ERRORS = (InferenceCancelledError, ExtractionCancelledError)


class DocumentProcessor:
    """Runs extract -> analyze -> persist for one document as a unit.

    Failures are isolated into the returned DocumentOutcome. Configuration
    errors and cancellation propagate to the chart runner.
    """

    def __init__(
        self,
        steps: list[PipelineStep],
        doc_repo: DocumentRepository,
        locks: DocumentLockRegistry,
    ) -> None:
        self._steps = steps
        self._doc_repo = doc_repo
        self._locks = locks

    def process(
        self,
        document: ClinicalDocumentRecord,
        cancel: threading.Event,
        reuse_text: bool = False,
    ) -> DocumentOutcome:
        kind = normalize_document_kind(document.document_type).value
        context = PipelineContext(document=document, cancel=cancel)
        if reuse_text and document.extracted_text:
            context.extracted_text = document.extracted_text

        Log.info(f"Processing {document.file_name or 'document'}", document_id=document.id)
        try:
            with self._locks.hold(document.id):
                self._doc_repo.mark_status(document.id, "processing")
                try:
                    for step in self._steps:
                        context = step.run(context)
                except (ConfigurationError, *CANCELLATION_ERRORS):
                    self._doc_repo.mark_status(document.id, document.status)
                    raise
                except Exception:
                    self._doc_repo.mark_status(document.id, "failed")
                    raise
        except (ConfigurationError, *CANCELLATION_ERRORS):
            raise
        except Exception as exc:
            Log.error(f"Document processing failed: {exc}", document_id=document.id)
            return DocumentOutcome(
                document_id=document.id,
                document_kind=kind,
                file_name=document.file_name,
                extracted=bool(context.extracted_text),
                diagnostic=context.extraction.diagnostic_message if context.extraction else "",
                error=str(exc),
            )

        return DocumentOutcome(
            document_id=document.id,
            document_kind=kind,
            file_name=document.file_name,
            analysis=context.analysis,
            extracted=True,
            diagnostic=context.extraction.diagnostic_message if context.extraction else "",
        )


_LOCKS = DocumentLockRegistry()


def build_document_processor(
    settings: Settings,
    *,
    extractor: ContentExtractor,
    analyzer: BaseQualityAnalyzer,
    doc_repo: DocumentRepository,
    locks: DocumentLockRegistry | None = None,
) -> DocumentProcessor:
    """Build a DocumentProcessor; documents share the process-wide lock registry."""
    steps: list[PipelineStep] = [
        ExtractContentStep(extractor),
        AnalyzeStep(analyzer),
        PersistResultStep(doc_repo, settings.thresholds()),
    ]
    return DocumentProcessor(steps, doc_repo, locks or _LOCKS)
