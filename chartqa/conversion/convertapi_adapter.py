"""Conversion backend speaking the ConvertAPI v2 REST protocol over httpx."""

import base64
from typing import Any

import httpx

from chartqa.conversion.base import BaseConversionService, FileSource
from chartqa.conversion.exceptions import (
    ConversionResponseError,
    ConversionServiceError,
    ConversionUnavailableError,
)
from chartqa.conversion.response_shapes import extract_file_urls, extract_text
from chartqa.logging.logger import Log


class ConvertApiAdapter(BaseConversionService):
    """OCR/conversion via ConvertAPI-compatible endpoints."""

    def __init__(
        self,
        *,
        base_url: str,
        secret: str,
        timeout_seconds: int,
        video_frames_path: str = "",
        client: httpx.Client | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._video_frames_path = video_frames_path
        self._client = client or httpx.Client(
            timeout=timeout_seconds,
            headers={"Authorization": f"Bearer {secret}"},
        )

    def upload_file(self, data: bytes, *, file_name: str) -> str:
        payload = self._post(
            "/upload",
            content=data,
            headers={"Content-Disposition": f'inline; filename="{file_name}"'},
        )
        if isinstance(payload, dict):
            if isinstance(payload.get("Url"), str):
                return payload["Url"]
            if payload.get("FileId"):
                return f"{self._base_url}/d/{payload['FileId']}"
        raise ConversionResponseError("Upload response carried no file reference")

    def convert_to_text(self, source: FileSource, *, file_name: str, source_format: str) -> str:
        payload = self._post(
            f"/convert/{source_format}/to/txt",
            json={"Parameters": [self._file_parameter(source, file_name)]},
        )
        return extract_text(payload, self._download_text)

    def convert_to_text_multipart(self, data: bytes, *, file_name: str, source_format: str) -> str:
        payload = self._post(
            f"/convert/{source_format}/to/txt",
            files={"File": (file_name, data)},
        )
        return extract_text(payload, self._download_text)

    def convert_office_to_pdf(self, source: FileSource, *, file_name: str) -> str:
        source_format = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "pptx"
        payload = self._post(
            f"/convert/{source_format}/to/pdf",
            json={
                "Parameters": [
                    self._file_parameter(source, file_name),
                    {"Name": "StoreFile", "Value": True},
                ]
            },
        )
        urls = extract_file_urls(payload)
        if not urls:
            raise ConversionResponseError("Office conversion returned no PDF reference")
        return urls[0]

    def video_to_frames(self, source: FileSource, *, file_name: str, frame_count: int) -> list[str]:
        if not self._video_frames_path:
            raise ConversionUnavailableError(
                "server-side video frame extraction is not configured"
            )
        payload = self._post(
            self._video_frames_path,
            json={
                "Parameters": [
                    self._file_parameter(source, file_name),
                    {"Name": "FrameCount", "Value": frame_count},
                    {"Name": "StoreFile", "Value": True},
                ]
            },
        )
        return extract_file_urls(payload)

    def _post(self, path: str, **kwargs: Any) -> Any:
        url = f"{self._base_url}{path}"
        try:
            response = self._client.post(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise ConversionServiceError(
                f"Conversion service returned {exc.response.status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            raise ConversionServiceError(f"Conversion service network error: {exc}") from exc
        Log.debug(f"Conversion {path} answered {response.status_code}")
        if "json" in response.headers.get("content-type", ""):
            return response.json()
        return response.text

    def _download_text(self, url: str) -> str:
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise ConversionServiceError(f"Failed to download converted text: {exc}") from exc
        return response.text

    @staticmethod
    def _file_parameter(source: FileSource, file_name: str) -> dict[str, Any]:
        if isinstance(source, bytes):
            return {
                "Name": "File",
                "FileValue": {
                    "Name": file_name,
                    "Data": base64.b64encode(source).decode("ascii"),
                },
            }
        return {"Name": "File", "FileValue": {"Url": source}}
