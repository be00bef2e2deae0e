from chartqa.analysis.base import BaseQualityAnalyzer
from chartqa.analysis.models import DocumentMeta
from chartqa.config.thresholds import PipelineThresholds
from chartqa.database.repositories.document_repository import DocumentRepository
from chartqa.extraction.models import ExtractionRequest
from chartqa.extraction.orchestrator import ContentExtractor
from chartqa.logging.logger import Log
from chartqa.processor.exceptions import DocumentExtractionFailedError
from chartqa.processor.pipeline import PipelineContext, PipelineStep


class ExtractContentStep(PipelineStep):
    """Runs extraction unless the context already carries reusable text."""

    def __init__(self, extractor: ContentExtractor) -> None:
        self._extractor = extractor

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        if context.extracted_text:
            Log.info("Reusing stored extracted text", document_id=document.id)
            return context
        if not document.source_ref:
            raise DocumentExtractionFailedError(f"Document {document.id} has no source reference")

        request = ExtractionRequest(file_ref=document.source_ref, file_name=document.file_name)
        result = self._extractor.extract(request, context.cancel)
        context.extraction = result
        if not result.succeeded:
            raise DocumentExtractionFailedError(result.diagnostic_message)
        context.extracted_text = result.text
        Log.info(f"Extracted {len(result.text)} chars", document_id=document.id)
        return context


class AnalyzeStep(PipelineStep):
    def __init__(self, analyzer: BaseQualityAnalyzer) -> None:
        self._analyzer = analyzer

    def run(self, context: PipelineContext) -> PipelineContext:
        document = context.document
        meta = DocumentMeta(
            document_id=document.id,
            kind=document.document_type,
            file_name=document.file_name,
            chart_id=document.chart_id,
            patient_id=document.patient_id,
            patient_name=document.patient_name,
        )
        context.analysis = self._analyzer.analyze(context.extracted_text, meta, context.cancel)
        return context


class PersistResultStep(PipelineStep):
    """Writes text and scores together; stored text is capped."""

    def __init__(self, doc_repo: DocumentRepository, thresholds: PipelineThresholds) -> None:
        self._doc_repo = doc_repo
        self._thresholds = thresholds

    def run(self, context: PipelineContext) -> PipelineContext:
        if context.analysis is None:
            raise ValueError("PipelineContext.analysis must be set before persist")
        self._doc_repo.save_document_result(
            context.document,
            context.extracted_text[: self._thresholds.stored_text_limit],
            context.analysis,
        )
        Log.info(
            f"Saved analysis: quality={context.analysis.quality_score}",
            document_id=context.document.id,
        )
        return context
