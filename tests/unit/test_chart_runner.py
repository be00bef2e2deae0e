import threading
from unittest.mock import MagicMock

import pytest

from chartqa.aggregation.aggregator import ChartAggregator
from chartqa.aggregation.models import DocumentOutcome
from chartqa.analysis.models import AnalysisResult
from chartqa.config.exceptions import ConfigurationError
from chartqa.config.thresholds import PipelineThresholds
from chartqa.database.models import ClinicalDocumentRecord, QAAnalysisRecord
from chartqa.database.repositories.document_repository import DocumentRepository
from chartqa.inference.exceptions import InferenceCancelledError
from chartqa.processor.chart_runner import ChartQARunner
from chartqa.processor.exceptions import ChartNotFoundError
from chartqa.processor.models import ChartRequest
from chartqa.processor.processor import DocumentProcessor


def _document(
    doc_id: int, status: str = "pending", kind: str = "clinical_note"
) -> ClinicalDocumentRecord:
    return ClinicalDocumentRecord(
        id=doc_id,
        document_type=kind,
        status=status,
        chart_id="C-1",
        file_name=f"doc{doc_id}.pdf",
        source_ref=f"uploads/doc{doc_id}.pdf",
        extracted_text="stored text" if status == "completed" else None,
    )


def _analysis(quality: int) -> AnalysisResult:
    return AnalysisResult(
        document_kind="clinical_note",
        quality_score=quality,
        completeness_score=quality,
        confidence_score=quality,
    )


def _stored(doc_id: int, quality: int) -> QAAnalysisRecord:
    return QAAnalysisRecord(
        document_id=doc_id,
        document_type="clinical_note",
        chart_id="C-1",
        quality_score=quality,
        findings=_analysis(quality).to_payload(),
    )


def _processed(
    document: ClinicalDocumentRecord, cancel: threading.Event, reuse_text: bool
) -> DocumentOutcome:
    return DocumentOutcome(
        document_id=document.id,
        document_kind="clinical_note",
        file_name=document.file_name,
        analysis=_analysis(90),
        extracted=True,
    )


def _make_runner(
    documents: list[ClinicalDocumentRecord],
    stored: dict[int, QAAnalysisRecord] | None = None,
    *,
    max_concurrency: int = 2,
    deadline_seconds: float | None = None,
) -> tuple[ChartQARunner, MagicMock, MagicMock]:
    doc_repo = MagicMock(spec=DocumentRepository)
    doc_repo.get_documents_by_chart.return_value = documents
    doc_repo.get_documents_by_patient.return_value = documents
    doc_repo.get_analyses.return_value = stored or {}
    processor = MagicMock(spec=DocumentProcessor)
    processor.process.side_effect = _processed
    runner = ChartQARunner(
        doc_repo,
        processor,
        ChartAggregator(PipelineThresholds()),
        max_concurrency=max_concurrency,
        deadline_seconds=deadline_seconds,
    )
    return runner, doc_repo, processor


class TestChartQARunner:
    def test_processes_all_documents_and_aggregates(self) -> None:
        runner, doc_repo, processor = _make_runner([_document(1), _document(2)])

        report = runner.run(ChartRequest(chart_id="C-1"))

        assert processor.process.call_count == 2
        assert report.overall_qa_score == 90
        assert [d.document_id for d in report.documents] == [1, 2]
        doc_repo.get_analyses.assert_called_once_with([1, 2])

    def test_patient_request_loads_by_patient(self) -> None:
        runner, doc_repo, _processor = _make_runner([_document(1)])
        report = runner.run(ChartRequest(patient_id="P-1"))
        doc_repo.get_documents_by_patient.assert_called_once_with("P-1")
        assert report.patient_id == "P-1"

    def test_no_documents_raises(self) -> None:
        runner, _doc_repo, _processor = _make_runner([])
        with pytest.raises(ChartNotFoundError, match="No documents found for chart C-404"):
            runner.run(ChartRequest(chart_id="C-404"))

    def test_completed_documents_with_stored_analysis_are_reused(self) -> None:
        documents = [_document(1, status="completed"), _document(2)]
        runner, _doc_repo, processor = _make_runner(documents, {1: _stored(1, 70)})

        report = runner.run(ChartRequest(chart_id="C-1"))

        assert processor.process.call_count == 1
        assert processor.process.call_args[0][0].id == 2
        assert report.documents[0].reused is True
        assert report.overall_qa_score == 80

    def test_force_re_extract_runs_everything_fresh(self) -> None:
        documents = [_document(1, status="completed")]
        runner, _doc_repo, processor = _make_runner(documents, {1: _stored(1, 70)})

        runner.run(ChartRequest(chart_id="C-1", force_re_extract=True))

        assert processor.process.call_count == 1
        assert processor.process.call_args[0][2] is False

    def test_stored_text_is_offered_for_reuse(self) -> None:
        runner, _doc_repo, processor = _make_runner([_document(1, status="completed")])
        runner.run(ChartRequest(chart_id="C-1"))
        assert processor.process.call_args[0][2] is True

    def test_without_ai_only_stored_results_are_used(self) -> None:
        documents = [_document(1, status="completed"), _document(2)]
        runner, _doc_repo, processor = _make_runner(documents, {1: _stored(1, 95)})

        report = runner.run(ChartRequest(chart_id="C-1", include_ai_analysis=False))

        processor.process.assert_not_called()
        assert report.overall_qa_score == 95
        assert report.documents[1].analysis is None
        assert "AI analysis not requested" in report.documents[1].diagnostic
        assert report.total_issues == 1

    def test_configuration_error_aborts_chart(self) -> None:
        runner, _doc_repo, processor = _make_runner([_document(1), _document(2)])
        processor.process.side_effect = ConfigurationError("INFERENCE_API_KEY is not set")

        with pytest.raises(ConfigurationError):
            runner.run(ChartRequest(chart_id="C-1"))

    def test_deadline_cancels_outstanding_documents(self) -> None:
        started = threading.Event()

        def slow(
            document: ClinicalDocumentRecord, cancel: threading.Event, reuse_text: bool
        ) -> DocumentOutcome:
            started.set()
            cancel.wait(5)
            raise InferenceCancelledError(f"Analysis of document {document.id} cancelled")

        runner, _doc_repo, processor = _make_runner(
            [_document(1), _document(2)], max_concurrency=1, deadline_seconds=0.05
        )
        processor.process.side_effect = slow

        report = runner.run(ChartRequest(chart_id="C-1"))

        assert started.is_set()
        assert processor.process.call_count == 1
        errors = [d.error or "" for d in report.documents]
        assert all(e.startswith("cancelled: chart deadline exceeded") for e in errors)
        assert report.overall_qa_score == 0
        assert report.total_issues == 2
