import threading

from chartqa.config.thresholds import PipelineThresholds
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.exceptions import ConversionError
from chartqa.extraction.base import BaseExtractionChain, ensure_not_cancelled
from chartqa.extraction.exceptions import (
    ExtractionCancelledError,
    ExtractionError,
    FileFetchError,
    InsufficientContentError,
)
from chartqa.extraction.models import (
    ExtractionRequest,
    ExtractionResult,
    FileKind,
    SourceBreakdown,
)
from chartqa.extraction.pdf_chain import PdfExtractionChain
from chartqa.extraction.source_loader import SourceHandle, SourceLoader
from chartqa.logging.logger import Log


class SlideDeckExtractionChain(BaseExtractionChain):
    """Office -> PDF -> PDF chain, with direct text conversion as last resort."""

    def __init__(
        self,
        conversion: BaseConversionService,
        pdf_chain: PdfExtractionChain,
        loader: SourceLoader,
        thresholds: PipelineThresholds,
    ) -> None:
        self._conversion = conversion
        self._loader = loader
        self._pdf_chain = pdf_chain
        self._thresholds = thresholds

    def extract(
        self,
        source: SourceHandle,
        request: ExtractionRequest,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        file_name = request.display_name
        failures: list[str] = []

        text = self._via_pdf(source, file_name, failures, cancel)
        if text is None:
            text = self._direct(source, file_name, failures, cancel)

        return ExtractionResult(
            text=text,
            succeeded=True,
            source_breakdown=SourceBreakdown(document_chars=len(text)),
            file_kind=FileKind.POWERPOINT,
        )

    def _via_pdf(
        self,
        source: SourceHandle,
        file_name: str,
        failures: list[str],
        cancel: threading.Event | None,
    ) -> str | None:
        ensure_not_cancelled(cancel, "office-to-pdf conversion")
        try:
            original = source.reference if not source.is_inline else source.data()
            pdf_ref = self._conversion.convert_office_to_pdf(original, file_name=file_name)
            pdf_source = self._loader.open(pdf_ref)
            return self._pdf_chain.extract_text(
                pdf_source, file_name=f"{file_name}.pdf", cancel=cancel
            )
        except ExtractionCancelledError:
            raise
        except (ConversionError, ExtractionError) as exc:
            Log.warning(f"Office-to-PDF route failed for {file_name}: {exc}")
            failures.append(f"office-to-pdf: {exc}")
            return None

    def _direct(
        self,
        source: SourceHandle,
        file_name: str,
        failures: list[str],
        cancel: threading.Event | None,
    ) -> str:
        ensure_not_cancelled(cancel, "direct text conversion")
        source_format = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "pptx"
        try:
            original = source.reference if not source.is_inline else source.data()
            text = self._conversion.convert_to_text(
                original, file_name=file_name, source_format=source_format
            ).strip()
        except (ConversionError, FileFetchError) as exc:
            failures.append(f"direct convert-to-text: {exc}")
            raise ExtractionError(
                f"Slide deck conversion failed for {file_name} ({'; '.join(failures)})"
            ) from exc
        if len(text) <= self._thresholds.min_content_chars:
            failures.append(f"direct convert-to-text: only {len(text)} characters")
            raise InsufficientContentError(
                f"No content extracted from {file_name}: the deck may contain only images "
                f"or be password-protected ({'; '.join(failures)})"
            )
        Log.info(f"Extracted {len(text)} chars from {file_name} via direct conversion")
        return text
