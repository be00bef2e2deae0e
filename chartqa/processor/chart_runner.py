"""Chart-level QA: fan documents out to a bounded pool, then aggregate."""

import threading
import time
from concurrent.futures import FIRST_EXCEPTION, Future, ThreadPoolExecutor, wait

from chartqa.aggregation.aggregator import ChartAggregator
from chartqa.aggregation.models import ChartReport, DocumentOutcome
from chartqa.analysis.document_kinds import normalize_document_kind
from chartqa.analysis.factory import QualityAnalyzerFactory
from chartqa.analysis.models import AnalysisResult
from chartqa.config.exceptions import ConfigurationError
from chartqa.config.settings import Settings
from chartqa.database.models import ClinicalDocumentRecord, QAAnalysisRecord
from chartqa.database.repositories.document_repository import DocumentRepository
from chartqa.extraction.factory import ContentExtractorFactory
from chartqa.inference.factory import InferenceClientFactory
from chartqa.inference.retry import RetryingInvoker
from chartqa.logging.logger import Log
from chartqa.processor.exceptions import ChartNotFoundError
from chartqa.processor.models import ChartRequest
from chartqa.processor.processor import (
    CANCELLATION_ERRORS,
    DocumentProcessor,
    build_document_processor,
)


class ChartQARunner:
    """Produces a fresh ChartReport for one chart or patient."""

    def __init__(
        self,
        doc_repo: DocumentRepository,
        processor: DocumentProcessor,
        aggregator: ChartAggregator,
        *,
        max_concurrency: int = 1,
        deadline_seconds: float | None = None,
    ) -> None:
        self._doc_repo = doc_repo
        self._processor = processor
        self._aggregator = aggregator
        self._max_concurrency = max(1, max_concurrency)
        self._deadline_seconds = deadline_seconds

    def run(self, request: ChartRequest) -> ChartReport:
        """Build the chart report.

        Raises:
            ChartNotFoundError: if the chart or patient has no documents.
            ConfigurationError: fatal adapter misconfiguration.
        """
        documents = self._load_documents(request)
        Log.info(
            f"Chart QA started for {len(documents)} documents",
            chart_id=request.chart_id,
            patient_id=request.patient_id,
        )
        stored = self._doc_repo.get_analyses([d.id for d in documents])

        outcomes: dict[int, DocumentOutcome] = {}
        pending: list[ClinicalDocumentRecord] = []
        for document in documents:
            reused = self._reuse_outcome(document, stored.get(document.id), request)
            if reused is not None:
                outcomes[document.id] = reused
            else:
                pending.append(document)

        if pending:
            outcomes.update(self._process_all(pending, reuse_text=not request.force_re_extract))

        report = self._aggregator.aggregate(
            [outcomes[d.id] for d in documents],
            chart_id=request.chart_id,
            patient_id=request.patient_id,
        )
        Log.info(
            f"Chart QA complete: score={report.overall_qa_score} risk={report.risk_level.value}",
            chart_id=request.chart_id,
            patient_id=request.patient_id,
        )
        return report

    def _load_documents(self, request: ChartRequest) -> list[ClinicalDocumentRecord]:
        if request.chart_id:
            documents = self._doc_repo.get_documents_by_chart(request.chart_id)
            target = f"chart {request.chart_id}"
        else:
            documents = self._doc_repo.get_documents_by_patient(request.patient_id or "")
            target = f"patient {request.patient_id}"
        if not documents:
            raise ChartNotFoundError(f"No documents found for {target}")
        return documents

    @staticmethod
    def _reuse_outcome(
        document: ClinicalDocumentRecord,
        stored: QAAnalysisRecord | None,
        request: ChartRequest,
    ) -> DocumentOutcome | None:
        """Outcome built from persisted state, or None if the pipeline must run."""
        kind = normalize_document_kind(document.document_type).value
        if request.include_ai_analysis:
            if request.force_re_extract or not document.is_completed or stored is None:
                return None
        if stored is None:
            return DocumentOutcome(
                document_id=document.id,
                document_kind=kind,
                file_name=document.file_name,
                extracted=bool(document.extracted_text),
                diagnostic="no stored analysis; AI analysis not requested",
            )
        return DocumentOutcome(
            document_id=document.id,
            document_kind=kind,
            file_name=document.file_name,
            analysis=AnalysisResult.from_payload(stored.findings),
            extracted=bool(document.extracted_text),
            reused=True,
        )

    def _process_all(
        self, documents: list[ClinicalDocumentRecord], *, reuse_text: bool
    ) -> dict[int, DocumentOutcome]:
        cancel = threading.Event()
        executor = ThreadPoolExecutor(
            max_workers=self._max_concurrency, thread_name_prefix="chartqa-doc"
        )
        futures: dict[Future[DocumentOutcome], ClinicalDocumentRecord] = {
            executor.submit(self._processor.process, document, cancel, reuse_text): document
            for document in documents
        }
        deadline = None
        if self._deadline_seconds is not None:
            deadline = time.monotonic() + self._deadline_seconds
        remaining = set(futures)
        fatal: BaseException | None = None
        try:
            while remaining:
                timeout = None if deadline is None else max(0.0, deadline - time.monotonic())
                done, remaining = wait(remaining, timeout=timeout, return_when=FIRST_EXCEPTION)
                fatal = self._first_fatal(done)
                if fatal is not None or not done:
                    break
            if remaining and fatal is None:
                Log.warning(f"Chart deadline reached, cancelling {len(remaining)} documents")
            if fatal is not None or remaining:
                for future in remaining:
                    future.cancel()
                cancel.set()
            if fatal is not None:
                raise fatal
        finally:
            executor.shutdown(wait=True, cancel_futures=True)

        return {
            futures[future].id: self._outcome_of(future, futures[future])
            for future in futures
        }

    @staticmethod
    def _first_fatal(done: set[Future[DocumentOutcome]]) -> BaseException | None:
        for future in done:
            exc = future.exception()
            if isinstance(exc, ConfigurationError):
                return exc
        return None

    @staticmethod
    def _outcome_of(
        future: Future[DocumentOutcome], document: ClinicalDocumentRecord
    ) -> DocumentOutcome:
        kind = normalize_document_kind(document.document_type).value
        if future.cancelled():
            error = "cancelled: chart deadline exceeded before processing started"
        else:
            exc = future.exception()
            if exc is None:
                return future.result()
            if isinstance(exc, CANCELLATION_ERRORS):
                error = f"cancelled: chart deadline exceeded ({exc})"
            else:
                error = str(exc)
        Log.warning(error, document_id=document.id)
        return DocumentOutcome(
            document_id=document.id,
            document_kind=kind,
            file_name=document.file_name,
            error=error,
        )


def build_chart_runner(settings: Settings) -> ChartQARunner:
    """Build a ChartQARunner with all required adapters.

    Raises:
        ConfigurationError: if an adapter is misconfigured.
    """
    client = InferenceClientFactory.create(settings)
    invoker = RetryingInvoker(InferenceClientFactory.retry_policy(settings))
    doc_repo = DocumentRepository()
    extractor = ContentExtractorFactory.create(settings, client=client, invoker=invoker)
    analyzer = QualityAnalyzerFactory.create(settings, client=client, invoker=invoker)
    processor = build_document_processor(
        settings, extractor=extractor, analyzer=analyzer, doc_repo=doc_repo
    )
    return ChartQARunner(
        doc_repo,
        processor,
        ChartAggregator(settings.thresholds()),
        max_concurrency=settings.chart_max_concurrency,
        deadline_seconds=float(settings.chart_deadline_seconds),
    )
