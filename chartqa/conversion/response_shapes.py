"""Ordered lookup of text inside loosely-specified conversion responses.

The conversion service answers in several shapes depending on endpoint and
options. Each extractor below recognises one shape; they are tried in
priority order and the first non-empty text wins. Add a new shape by
appending an extractor to ``TEXT_EXTRACTORS``.
"""

import base64
import binascii
from collections.abc import Callable
from typing import Any

from chartqa.conversion.exceptions import ConversionResponseError

TextFetcher = Callable[[str], str]
ResponseExtractor = Callable[[Any, TextFetcher], str | None]


def _field(name: str) -> ResponseExtractor:
    def extract(payload: Any, fetch: TextFetcher) -> str | None:
        _ = fetch
        if not isinstance(payload, dict):
            return None
        value = payload.get(name)
        if isinstance(value, str) and value.strip():
            return value
        return None

    extract.__name__ = f"extract_{name}"
    return extract


def _first_file(payload: Any) -> dict[str, Any] | None:
    if not isinstance(payload, dict):
        return None
    files = payload.get("Files") or payload.get("files")
    if isinstance(files, list) and files and isinstance(files[0], dict):
        return files[0]
    return None


def extract_inline_file_data(payload: Any, fetch: TextFetcher) -> str | None:
    _ = fetch
    first = _first_file(payload)
    if first is None or not isinstance(first.get("FileData"), str):
        return None
    try:
        decoded = base64.b64decode(first["FileData"], validate=True)
    except (binascii.Error, ValueError):
        return None
    text = decoded.decode("utf-8", errors="replace")
    return text if text.strip() else None


def extract_download_url(payload: Any, fetch: TextFetcher) -> str | None:
    url: object = None
    if isinstance(payload, dict):
        url = payload.get("url") or payload.get("Url")
    if not url:
        first = _first_file(payload)
        url = first.get("Url") if first else None
    if not isinstance(url, str) or not url:
        return None
    text = fetch(url)
    return text if text.strip() else None


TEXT_EXTRACTORS: list[ResponseExtractor] = [
    _field("body"),
    _field("text"),
    _field("content"),
    _field("result"),
    extract_inline_file_data,
    extract_download_url,
]


def extract_text(
    payload: Any,
    fetch: TextFetcher,
    extractors: list[ResponseExtractor] | None = None,
) -> str:
    """Return the first non-empty text any extractor finds in ``payload``.

    Raises:
        ConversionResponseError: if no extractor recognises the payload.
    """
    if isinstance(payload, str):
        if payload.strip():
            return payload
        raise ConversionResponseError("Conversion service returned an empty body")
    for extractor in extractors or TEXT_EXTRACTORS:
        text = extractor(payload, fetch)
        if text:
            return text
    keys = sorted(payload) if isinstance(payload, dict) else type(payload).__name__
    raise ConversionResponseError(f"No text found in conversion response (keys: {keys})")


def extract_file_urls(payload: Any) -> list[str]:
    """Collect every stored-file URL from a conversion response."""
    if not isinstance(payload, dict):
        return []
    files = payload.get("Files") or payload.get("files") or []
    urls = [f.get("Url") for f in files if isinstance(f, dict)]
    return [u for u in urls if isinstance(u, str) and u]
