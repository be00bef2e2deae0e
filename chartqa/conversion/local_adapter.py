"""Offline conversion backend: PDF text extraction with pdfplumber or PyMuPDF."""

import io
from collections.abc import Callable

import pdfplumber
import pymupdf

from chartqa.conversion.base import BaseConversionService, FileSource
from chartqa.conversion.exceptions import ConversionServiceError, ConversionUnavailableError


def pdfplumber_text(pdf_bytes: bytes) -> str:
    with pdfplumber.open(io.BytesIO(pdf_bytes)) as pdf:
        pages = [page.extract_text() or "" for page in pdf.pages]
    return "\n".join(pages).strip()


def pymupdf_text(pdf_bytes: bytes) -> str:
    with pymupdf.open(stream=pdf_bytes, filetype="pdf") as doc:  # type: ignore[no-untyped-call]
        pages = [page.get_text() for page in doc]
    return "\n".join(pages).strip()


class LocalPdfConversionService(BaseConversionService):
    """Implements only text conversion of inline PDF bytes; everything else is unavailable."""

    ENGINES: dict[str, Callable[[bytes], str]] = {
        "pdfplumber": pdfplumber_text,
        "pymupdf": pymupdf_text,
    }

    def __init__(self, engine: str = "pdfplumber") -> None:
        extractor = self.ENGINES.get(engine)
        if extractor is None:
            raise ValueError(f"Unknown PDF engine '{engine}'. Choose from: {list(self.ENGINES)}")
        self._engine = engine
        self._extract = extractor

    def upload_file(self, data: bytes, *, file_name: str) -> str:
        raise ConversionUnavailableError(f"{self._engine} backend has no file upload")

    def convert_to_text(self, source: FileSource, *, file_name: str, source_format: str) -> str:
        if not isinstance(source, bytes):
            raise ConversionUnavailableError(f"{self._engine} backend only converts inline bytes")
        return self.convert_to_text_multipart(
            source, file_name=file_name, source_format=source_format
        )

    def convert_to_text_multipart(self, data: bytes, *, file_name: str, source_format: str) -> str:
        if source_format != "pdf":
            raise ConversionUnavailableError(
                f"{self._engine} backend cannot convert '{source_format}' files"
            )
        try:
            return self._extract(data)
        except Exception as exc:
            raise ConversionServiceError(
                f"{self._engine} extraction failed for {file_name}: {exc}"
            ) from exc

    def convert_office_to_pdf(self, source: FileSource, *, file_name: str) -> str:
        raise ConversionUnavailableError(f"{self._engine} backend has no office conversion")

    def video_to_frames(self, source: FileSource, *, file_name: str, frame_count: int) -> list[str]:
        raise ConversionUnavailableError(f"{self._engine} backend has no video frame extraction")
