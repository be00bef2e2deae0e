from abc import ABC, abstractmethod

FileSource = str | bytes
"""Either a reference URL understood by the service or inline file bytes."""


class BaseConversionService(ABC):
    """Contract for OCR / document-conversion backends."""

    @abstractmethod
    def upload_file(self, data: bytes, *, file_name: str) -> str:
        """Upload inline bytes and return a reference URL for later conversions."""

    @abstractmethod
    def convert_to_text(self, source: FileSource, *, file_name: str, source_format: str) -> str:
        """Convert a document (by reference or inline bytes) to plain text."""

    @abstractmethod
    def convert_to_text_multipart(self, data: bytes, *, file_name: str, source_format: str) -> str:
        """Same conversion as ``convert_to_text``, sent as a direct multipart upload."""

    @abstractmethod
    def convert_office_to_pdf(self, source: FileSource, *, file_name: str) -> str:
        """Convert an office document to PDF and return the PDF reference URL."""

    @abstractmethod
    def video_to_frames(self, source: FileSource, *, file_name: str, frame_count: int) -> list[str]:
        """Render still frames of a video and return their image URLs."""
