"""Decide which extraction chain handles a file."""

from chartqa.extraction.models import FileKind

VIDEO_EXTENSIONS = (".mp4", ".webm", ".ogg", ".mov", ".avi", ".mkv")
SLIDE_EXTENSIONS = (".ppt", ".pptx")

_DECLARED_KINDS = {
    "pdf": FileKind.PDF,
    "video": FileKind.VIDEO,
    "powerpoint": FileKind.POWERPOINT,
    "ppt": FileKind.POWERPOINT,
    "pptx": FileKind.POWERPOINT,
    "slides": FileKind.POWERPOINT,
}

_SLIDE_MIME_TYPES = frozenset({
    "application/vnd.ms-powerpoint",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation",
})


def kind_from_declared(declared_kind: str | None) -> FileKind | None:
    if not declared_kind:
        return None
    return _DECLARED_KINDS.get(declared_kind.strip().lower())


def kind_from_name(name: str | None) -> FileKind | None:
    if not name:
        return None
    lowered = name.lower()
    if lowered.endswith(".pdf"):
        return FileKind.PDF
    if lowered.endswith(VIDEO_EXTENSIONS):
        return FileKind.VIDEO
    if lowered.endswith(SLIDE_EXTENSIONS):
        return FileKind.POWERPOINT
    return None


def kind_from_mime(mime_type: str | None) -> FileKind | None:
    if not mime_type:
        return None
    if mime_type == "application/pdf":
        return FileKind.PDF
    if mime_type.startswith("video/"):
        return FileKind.VIDEO
    if mime_type in _SLIDE_MIME_TYPES:
        return FileKind.POWERPOINT
    return None


def kind_from_magic(head: bytes) -> FileKind | None:
    """Recognise common container signatures in the first bytes of a file."""
    if head.startswith(b"%PDF"):
        return FileKind.PDF
    if head[4:8] == b"ftyp" or head.startswith((b"\x1a\x45\xdf\xa3", b"OggS")):
        return FileKind.VIDEO
    if head.startswith(b"RIFF") and head[8:12] == b"AVI ":
        return FileKind.VIDEO
    if head.startswith(b"PK\x03\x04") and b"ppt/" in head:
        return FileKind.POWERPOINT
    return None
