from collections.abc import Callable
from typing import Any, TypeVar

import httpx
import openai

from chartqa.config.exceptions import ConfigurationError
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.exceptions import InferenceNetworkError, InferenceResponseError

T = TypeVar("T")

_OCR_SYSTEM_PROMPT = (
    "You are an OCR specialist. Extract ALL text content from images, including "
    "slides, visual aids, diagrams and labels. Return only the extracted text. "
    "If there is no text, return an empty string."
)


class OpenAIClientAdapter(BaseInferenceClient):
    """Inference client built on the OpenAI-compatible chat, vision and audio APIs."""

    def __init__(
        self,
        *,
        api_key: str,
        timeout_seconds: int,
        base_url: str | None = None,
    ) -> None:
        # Retries are owned by RetryingInvoker, not the SDK.
        self._client = openai.OpenAI(
            api_key=api_key,
            timeout=timeout_seconds,
            base_url=base_url,
            max_retries=0,
        )

    def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> str:
        kwargs: dict[str, object] = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = self._call(
            lambda: self._client.chat.completions.create(
                model=model,
                temperature=temperature,
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
                **kwargs,
            )
        )
        return self._first_choice_content(response)

    def describe_image(
        self,
        *,
        model: str,
        image_url: str,
        instructions: str,
    ) -> str:
        response = self._call(
            lambda: self._client.chat.completions.create(
                model=model,
                max_tokens=1000,
                messages=[
                    {"role": "system", "content": _OCR_SYSTEM_PROMPT},
                    {
                        "role": "user",
                        "content": [
                            {"type": "text", "text": instructions},
                            {
                                "type": "image_url",
                                "image_url": {"url": image_url, "detail": "high"},
                            },
                        ],
                    },
                ],
            )
        )
        return self._first_choice_content(response, allow_empty=True)

    def transcribe(
        self,
        *,
        model: str,
        audio_bytes: bytes,
        file_name: str,
        language: str,
    ) -> str:
        response = self._call(
            lambda: self._client.audio.transcriptions.create(
                model=model,
                file=(file_name, audio_bytes),
                language=language,
                response_format="text",
            )
        )
        if isinstance(response, str):
            return response.strip()
        return (getattr(response, "text", "") or "").strip()

    @staticmethod
    def _call(request: Callable[[], T]) -> T:
        try:
            return request()
        except (openai.AuthenticationError, openai.PermissionDeniedError) as exc:
            raise ConfigurationError(f"AI provider rejected credentials: {exc}") from exc
        except (openai.APIConnectionError, httpx.ConnectError, httpx.TimeoutException) as exc:
            raise InferenceNetworkError(f"AI provider network error: {exc}") from exc
        except openai.APIError as exc:
            raise InferenceNetworkError(f"AI provider API error: {exc}") from exc

    @staticmethod
    def _first_choice_content(response: Any, allow_empty: bool = False) -> str:
        if not response.choices:
            raise InferenceResponseError("AI returned no choices")
        content = response.choices[0].message.content or ""
        if not content.strip() and not allow_empty:
            raise InferenceResponseError("AI returned empty response")
        return content
