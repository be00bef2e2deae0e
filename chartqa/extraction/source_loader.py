import base64
import binascii
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import unquote_to_bytes, urlparse

import httpx

from chartqa.extraction.exceptions import FileFetchError


def parse_data_url(data_url: str) -> tuple[str, bytes]:
    """Split a ``data:`` URL into (mime type, decoded bytes)."""
    header, sep, body = data_url.partition(",")
    if not sep:
        raise FileFetchError("Malformed data URL: missing ',' separator")
    meta = header[len("data:") :]
    mime_type = meta.split(";", 1)[0] or "application/octet-stream"
    if ";base64" in meta:
        try:
            return mime_type, base64.b64decode(body, validate=False)
        except (binascii.Error, ValueError) as exc:
            raise FileFetchError(f"Malformed base64 data URL: {exc}") from exc
    return mime_type, unquote_to_bytes(body)


@dataclass
class SourceHandle:
    """A file reference whose bytes are fetched at most once, on first use."""

    reference: str | None
    is_inline: bool
    mime_type: str | None
    _loader: "SourceLoader" = field(repr=False)
    _data: bytes | None = field(default=None, repr=False)

    def data(self) -> bytes:
        if self._data is None:
            if self.reference is None:
                raise FileFetchError("Source has neither bytes nor a reference")
            self._data = self._loader.load(self.reference)
        return self._data

    @property
    def url_path(self) -> str:
        if self.reference is None or self.reference.startswith("data:"):
            return ""
        return urlparse(self.reference).path


class SourceLoader:
    """Resolves a document source reference (data URL, http(s) URL or stored path) to bytes."""

    FILES_ROOT = Path("/app/files")

    def __init__(
        self,
        files_root: Path | None = None,
        http_client: httpx.Client | None = None,
        timeout_seconds: int = 60,
    ) -> None:
        self._files_root = files_root if files_root is not None else self.FILES_ROOT
        self._http = http_client or httpx.Client(timeout=timeout_seconds, follow_redirects=True)

    def open(self, source_ref: str | bytes) -> SourceHandle:
        if isinstance(source_ref, bytes):
            return SourceHandle(
                reference=None, is_inline=True, mime_type=None, _loader=self, _data=source_ref
            )
        if source_ref.startswith("data:"):
            mime_type, data = parse_data_url(source_ref)
            return SourceHandle(
                reference=source_ref, is_inline=True, mime_type=mime_type, _loader=self, _data=data
            )
        remote = source_ref.startswith(("http://", "https://"))
        return SourceHandle(
            reference=source_ref, is_inline=not remote, mime_type=None, _loader=self
        )

    def load(self, source_ref: str) -> bytes:
        """Read the referenced bytes.

        Raises:
            FileFetchError: if the URL cannot be downloaded or the file does not exist.
        """
        if source_ref.startswith("data:"):
            return parse_data_url(source_ref)[1]
        if source_ref.startswith(("http://", "https://")):
            return self._download(source_ref)
        path = self._resolve_path(source_ref)
        if not path.exists():
            raise FileFetchError(f"File not found: {path}")
        return path.read_bytes()

    def _download(self, url: str) -> bytes:
        try:
            response = self._http.get(url)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise FileFetchError(
                f"Failed to fetch file: HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FileFetchError(f"Failed to fetch file: {exc}") from exc
        return response.content

    def _resolve_path(self, source_ref: str) -> Path:
        path = Path(source_ref.removeprefix("file://"))
        if not path.is_absolute():
            path = self._files_root / path
        root = self._files_root.resolve()
        resolved = path.resolve()
        if not resolved.is_relative_to(root):
            raise FileFetchError(f"File reference escapes the files root: {source_ref}")
        return resolved
