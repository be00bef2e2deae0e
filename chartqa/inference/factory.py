from typing import ClassVar

from chartqa.config.exceptions import ConfigurationError
from chartqa.config.settings import Settings
from chartqa.inference.client_base import BaseInferenceClient
from chartqa.inference.example_client_adapter import ExampleClientAdapter
from chartqa.inference.openai_client_adapter import OpenAIClientAdapter
from chartqa.inference.retry import RetryPolicy


class InferenceClientFactory:
    """Creates the configured inference client and its retry policy."""

    OPENAI_COMPATIBLE_BASE_URLS: ClassVar[dict[str, str]] = {
        "openrouter": "https://openrouter.ai/api/v1",
        "groq": "https://api.groq.com/openai/v1",
        "together": "https://api.together.xyz/v1",
        "deepseek": "https://api.deepseek.com/v1",
        "ollama": "http://localhost:11434/v1",
    }

    KEYLESS_PROVIDERS: ClassVar[frozenset[str]] = frozenset({"ollama"})

    @classmethod
    def create(cls, settings: Settings) -> BaseInferenceClient:
        """Create a configured inference client from application settings.

        Raises:
            ConfigurationError: unknown provider, missing key or endpoint.
        """
        provider = settings.inference_provider.lower()
        if provider == "example":
            return ExampleClientAdapter()
        base_url = cls._resolve_base_url(provider, settings)
        return OpenAIClientAdapter(
            api_key=cls._resolve_api_key(provider, settings),
            timeout_seconds=settings.inference_timeout_seconds,
            base_url=base_url,
        )

    @classmethod
    def retry_policy(cls, settings: Settings) -> RetryPolicy:
        """Build the shared retry policy.

        The elapsed budget fits every attempt running into the call timeout
        plus the backoff between attempts.
        """
        attempts = settings.inference_max_attempts
        backoff = settings.inference_backoff_base_seconds
        budget = attempts * settings.inference_timeout_seconds + sum(
            backoff * 2**attempt for attempt in range(attempts - 1)
        )
        return RetryPolicy(
            max_attempts=attempts,
            backoff_base_seconds=backoff,
            max_elapsed_seconds=float(budget),
        )

    @classmethod
    def _resolve_base_url(cls, provider: str, settings: Settings) -> str | None:
        if provider == "openai":
            return None
        if provider == "openai_compatible":
            url = settings.inference_base_url.strip()
            if not url:
                raise ConfigurationError(
                    "inference_base_url is required for inference_provider=openai_compatible"
                )
            return url
        default_base_url = cls.OPENAI_COMPATIBLE_BASE_URLS.get(provider)
        if default_base_url is not None:
            return settings.inference_base_url.strip() or default_base_url
        supported = [
            "example",
            "openai",
            "openai_compatible",
            *sorted(cls.OPENAI_COMPATIBLE_BASE_URLS),
        ]
        raise ConfigurationError(
            f"Unknown inference provider '{provider}'. Choose from: {supported}"
        )

    @classmethod
    def _resolve_api_key(cls, provider: str, settings: Settings) -> str:
        key = settings.inference_api_key.strip()
        if key:
            return key
        if provider in cls.KEYLESS_PROVIDERS:
            return "ollama"
        raise ConfigurationError(f"inference_api_key is required for provider '{provider}'")
