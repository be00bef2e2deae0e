import threading
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from chartqa.config.thresholds import PipelineThresholds
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.exceptions import ConversionServiceError
from chartqa.extraction.exceptions import (
    ExtractionCancelledError,
    ExtractionError,
    InsufficientContentError,
)
from chartqa.extraction.models import ExtractionRequest, FileKind
from chartqa.extraction.pdf_chain import PdfExtractionChain
from chartqa.extraction.source_loader import SourceLoader

LONG_TEXT = "Skilled nursing visit, vitals stable, wound care performed. " * 5


@pytest.fixture()
def conversion() -> MagicMock:
    return MagicMock(spec=BaseConversionService)


@pytest.fixture()
def loader(tmp_path: Path) -> SourceLoader:
    return SourceLoader(files_root=tmp_path, http_client=MagicMock())


class TestPdfExtractionChain:
    def test_uploads_inline_bytes_then_converts_reference(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.upload_file.return_value = "https://convert/d/1"
        conversion.convert_to_text.return_value = LONG_TEXT
        chain = PdfExtractionChain(conversion, thresholds)

        request = ExtractionRequest(file_ref=b"%PDF", file_name="a.pdf")
        result = chain.extract(loader.open(b"%PDF"), request)

        assert result.succeeded
        assert result.text == LONG_TEXT.strip()
        assert result.file_kind is FileKind.PDF
        assert result.source_breakdown.document_chars == len(result.text)
        assert conversion.convert_to_text.call_args.args[0] == "https://convert/d/1"
        conversion.convert_to_text_multipart.assert_not_called()

    def test_upload_failure_falls_back_to_inline_bytes(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.upload_file.side_effect = ConversionServiceError("upload down")
        conversion.convert_to_text.return_value = LONG_TEXT
        chain = PdfExtractionChain(conversion, thresholds)

        text = chain.extract_text(loader.open(b"%PDF-bytes"), file_name="a.pdf")

        assert text == LONG_TEXT.strip()
        assert conversion.convert_to_text.call_args.args[0] == b"%PDF-bytes"

    def test_reference_source_skips_upload(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.convert_to_text.return_value = LONG_TEXT
        chain = PdfExtractionChain(conversion, thresholds)

        chain.extract_text(loader.open("https://files/a.pdf"), file_name="a.pdf")

        conversion.upload_file.assert_not_called()
        assert conversion.convert_to_text.call_args.args[0] == "https://files/a.pdf"

    def test_short_text_falls_through_to_multipart(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.upload_file.return_value = "ref"
        conversion.convert_to_text.return_value = "too short"
        conversion.convert_to_text_multipart.return_value = LONG_TEXT
        chain = PdfExtractionChain(conversion, thresholds)

        assert chain.extract_text(loader.open(b"%PDF"), file_name="a.pdf") == LONG_TEXT.strip()

    def test_exactly_threshold_is_rejected(
        self, conversion: MagicMock, loader: SourceLoader
    ) -> None:
        conversion.upload_file.return_value = "ref"
        conversion.convert_to_text.return_value = "a" * 100
        conversion.convert_to_text_multipart.return_value = "b" * 101
        chain = PdfExtractionChain(conversion, PipelineThresholds(min_content_chars=100))

        assert chain.extract_text(loader.open(b"%PDF"), file_name="a.pdf") == "b" * 101

    def test_failing_chain_raises_instead_of_placeholder(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.upload_file.return_value = "ref"
        conversion.convert_to_text.return_value = "tiny"
        conversion.convert_to_text_multipart.return_value = ""
        chain = PdfExtractionChain(conversion, thresholds)

        with pytest.raises(InsufficientContentError, match="No content extracted from a.pdf"):
            chain.extract(
                loader.open(b"%PDF"), ExtractionRequest(file_ref=b"%PDF", file_name="a.pdf")
            )

    def test_transport_failures_raise_extraction_error(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        conversion.convert_to_text.side_effect = ConversionServiceError("503")
        conversion.convert_to_text_multipart.side_effect = ConversionServiceError("503")
        chain = PdfExtractionChain(conversion, thresholds)

        with pytest.raises(ExtractionError, match="Text conversion failed") as exc_info:
            chain.extract_text(loader.open("https://files/a.pdf"), file_name="a.pdf")
        assert not isinstance(exc_info.value, InsufficientContentError)

    def test_cancelled_before_conversion(
        self, conversion: MagicMock, loader: SourceLoader, thresholds: PipelineThresholds
    ) -> None:
        cancel = threading.Event()
        cancel.set()
        chain = PdfExtractionChain(conversion, thresholds)

        with pytest.raises(ExtractionCancelledError):
            chain.extract_text(loader.open("https://files/a.pdf"), file_name="a.pdf", cancel=cancel)
        conversion.convert_to_text.assert_not_called()
