import threading
from collections.abc import Callable

from chartqa.config.thresholds import PipelineThresholds
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.exceptions import ConversionError
from chartqa.extraction.base import BaseExtractionChain, ensure_not_cancelled
from chartqa.extraction.exceptions import (
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
from chartqa.extraction.source_loader import SourceHandle
from chartqa.logging.logger import Log

_LIKELY_CAUSES = (
    "the file may be a scanned image without a text layer, password-protected, "
    "corrupted, or empty"
)


class PdfExtractionChain(BaseExtractionChain):
    """Upload (if inline) -> convert-to-text -> multipart convert-to-text.

    Never substitutes placeholder text: an exhausted chain raises.
    """

    def __init__(self, conversion: BaseConversionService, thresholds: PipelineThresholds) -> None:
        self._conversion = conversion
        self._thresholds = thresholds

    def extract(
        self,
        source: SourceHandle,
        request: ExtractionRequest,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        text = self.extract_text(source, file_name=request.display_name, cancel=cancel)
        return ExtractionResult(
            text=text,
            succeeded=True,
            source_breakdown=SourceBreakdown(document_chars=len(text)),
            file_kind=FileKind.PDF,
        )

    def extract_text(
        self,
        source: SourceHandle,
        *,
        file_name: str,
        source_format: str = "pdf",
        cancel: threading.Event | None = None,
    ) -> str:
        """Run the method chain and return text longer than the acceptance threshold.

        Raises:
            InsufficientContentError: a method answered but with too little text.
            ExtractionError: every method failed at the transport level.
        """
        failures: list[str] = []
        reference = self._upload_if_inline(source, file_name, failures, cancel)

        methods: list[tuple[str, Callable[[], str]]] = [
            (
                "convert-to-text",
                lambda: self._conversion.convert_to_text(
                    reference if reference is not None else source.data(),
                    file_name=file_name,
                    source_format=source_format,
                ),
            ),
            (
                "multipart convert-to-text",
                lambda: self._conversion.convert_to_text_multipart(
                    source.data(), file_name=file_name, source_format=source_format
                ),
            ),
        ]

        too_short = False
        for name, method in methods:
            ensure_not_cancelled(cancel, name)
            try:
                text = method().strip()
            except (ConversionError, FileFetchError) as exc:
                Log.warning(f"{name} failed for {file_name}: {exc}")
                failures.append(f"{name}: {exc}")
                continue
            if len(text) > self._thresholds.min_content_chars:
                Log.info(f"Extracted {len(text)} chars from {file_name} via {name}")
                return text
            too_short = True
            failures.append(f"{name}: only {len(text)} characters")
            Log.warning(f"{name} returned only {len(text)} chars for {file_name}")

        detail = "; ".join(failures)
        if too_short:
            raise InsufficientContentError(
                f"No content extracted from {file_name}: {_LIKELY_CAUSES} ({detail})"
            )
        raise ExtractionError(f"Text conversion failed for {file_name} ({detail})")

    def _upload_if_inline(
        self,
        source: SourceHandle,
        file_name: str,
        failures: list[str],
        cancel: threading.Event | None,
    ) -> str | None:
        if not source.is_inline:
            return source.reference
        ensure_not_cancelled(cancel, "upload")
        try:
            return self._conversion.upload_file(source.data(), file_name=file_name)
        except ConversionError as exc:
            # Best effort; conversion falls back to the inline bytes.
            Log.warning(f"Upload failed for {file_name}, converting inline bytes: {exc}")
            failures.append(f"upload: {exc}")
            return None
