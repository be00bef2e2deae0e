from abc import ABC, abstractmethod


class BaseInferenceClient(ABC):
    """Contract for provider-specific text, vision and speech clients."""

    @abstractmethod
    def complete(
        self,
        *,
        model: str,
        temperature: float,
        system_prompt: str,
        user_prompt: str,
        json_mode: bool = True,
    ) -> str:
        """Return the model's free-form text answer to a chat prompt."""

    @abstractmethod
    def describe_image(
        self,
        *,
        model: str,
        image_url: str,
        instructions: str,
    ) -> str:
        """Return text read from an image (``https://`` or ``data:`` URL)."""

    @abstractmethod
    def transcribe(
        self,
        *,
        model: str,
        audio_bytes: bytes,
        file_name: str,
        language: str,
    ) -> str:
        """Return a plain-text transcript of the audio track."""
