import threading

from chartqa.extraction.base import BaseExtractionChain
from chartqa.extraction.exceptions import ExtractionCancelledError, ExtractionError
from chartqa.extraction.models import ExtractionRequest, ExtractionResult, FileKind
from chartqa.extraction.sniffing import (
    kind_from_declared,
    kind_from_magic,
    kind_from_mime,
    kind_from_name,
)
from chartqa.extraction.source_loader import SourceHandle, SourceLoader
from chartqa.logging.logger import Log


class ContentExtractor:
    """Dispatches a file reference to the chain for its kind.

    Chain failures are turned into ``ExtractionResult(succeeded=False)`` with
    the chain's diagnostic; the text is never padded or replaced.
    """

    def __init__(self, loader: SourceLoader, chains: dict[FileKind, BaseExtractionChain]) -> None:
        self._loader = loader
        self._chains = chains

    def extract(
        self,
        request: ExtractionRequest,
        cancel: threading.Event | None = None,
    ) -> ExtractionResult:
        Log.info(
            f"Extracting content from {request.declared_kind or 'file'}: {request.display_name}"
        )
        try:
            source = self._loader.open(request.file_ref)
            kind = self.detect_kind(request, source)
        except ExtractionError as exc:
            return ExtractionResult.failure(str(exc))

        chain = self._chains.get(kind) if kind is not None else None
        if kind is None or chain is None:
            label = request.declared_kind or "this file type"
            return ExtractionResult.failure(f"Content extraction not supported for {label}", kind)

        try:
            result = chain.extract(source, request, cancel)
        except ExtractionCancelledError:
            raise
        except ExtractionError as exc:
            Log.warning(f"No content extracted from {request.display_name}: {exc}")
            return ExtractionResult.failure(str(exc), kind)

        Log.info(
            f"Extraction result for {request.display_name}: {len(result.text)} chars",
            kind=kind.value,
        )
        return result

    @staticmethod
    def detect_kind(request: ExtractionRequest, source: SourceHandle) -> FileKind | None:
        """Declared kind, then file name, URL path, data-URL MIME, then magic bytes."""
        kind = (
            kind_from_declared(request.declared_kind)
            or kind_from_name(request.file_name)
            or kind_from_name(source.url_path)
            or kind_from_mime(source.mime_type)
        )
        if kind is not None:
            return kind
        return kind_from_magic(source.data()[:2048])
