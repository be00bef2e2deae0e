from dataclasses import dataclass, field
from enum import Enum


class FileKind(str, Enum):
    """Physical file format; selects the extraction chain."""

    PDF = "pdf"
    VIDEO = "video"
    POWERPOINT = "powerpoint"


@dataclass(frozen=True)
class ClientFrame:
    """A video frame already rendered by the caller."""

    data: str  # base64 image, data: URL, or https URL
    timestamp: str = ""

    @property
    def image_url(self) -> str:
        if self.data.startswith(("data:", "http://", "https://")):
            return self.data
        return f"data:image/jpeg;base64,{self.data}"


@dataclass(frozen=True)
class ExtractionRequest:
    """Input of the content-extraction entry point."""

    file_ref: str | bytes
    declared_kind: str | None = None
    file_name: str | None = None
    client_frames: list[ClientFrame] = field(default_factory=list)

    @property
    def display_name(self) -> str:
        return self.file_name or "document"


@dataclass(frozen=True)
class SourceBreakdown:
    """Character counts per content source."""

    audio_chars: int = 0
    visual_chars: int = 0
    document_chars: int = 0


@dataclass(frozen=True)
class ExtractionResult:
    """Outcome of one extraction; only ``text`` outlives the pipeline invocation."""

    text: str
    succeeded: bool
    diagnostic_message: str = ""
    source_breakdown: SourceBreakdown = field(default_factory=SourceBreakdown)
    file_kind: FileKind | None = None

    @classmethod
    def failure(cls, diagnostic: str, file_kind: FileKind | None = None) -> "ExtractionResult":
        return cls(text="", succeeded=False, diagnostic_message=diagnostic, file_kind=file_kind)

    def to_response(self) -> dict[str, object]:
        """Caller-facing shape: ``{content, extracted, diagnostic?}``."""
        response: dict[str, object] = {
            "content": self.text,
            "extracted": self.succeeded,
            "fileKind": self.file_kind.value if self.file_kind else None,
            "sourceBreakdown": {
                "audioChars": self.source_breakdown.audio_chars,
                "visualChars": self.source_breakdown.visual_chars,
                "documentChars": self.source_breakdown.document_chars,
            },
        }
        if self.diagnostic_message:
            response["diagnostic"] = self.diagnostic_message
        return response
