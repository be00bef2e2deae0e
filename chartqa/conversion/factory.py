from chartqa.config.exceptions import ConfigurationError
from chartqa.config.settings import Settings
from chartqa.conversion.base import BaseConversionService
from chartqa.conversion.convertapi_adapter import ConvertApiAdapter
from chartqa.conversion.local_adapter import LocalPdfConversionService


class ConversionServiceFactory:
    """Creates the configured conversion backend."""

    @classmethod
    def create(cls, settings: Settings) -> BaseConversionService:
        """Raises ConfigurationError for unknown engines or a missing API secret."""
        engine = settings.conversion_engine.lower()
        if engine in LocalPdfConversionService.ENGINES:
            return LocalPdfConversionService(engine)
        if engine != "convertapi":
            supported = ["convertapi", *LocalPdfConversionService.ENGINES]
            raise ConfigurationError(
                f"Unknown conversion engine '{engine}'. Choose from: {supported}"
            )
        if not settings.conversion_api_secret.strip():
            raise ConfigurationError(
                "conversion_api_secret is required for conversion_engine=convertapi"
            )
        return ConvertApiAdapter(
            base_url=settings.conversion_api_base_url,
            secret=settings.conversion_api_secret,
            timeout_seconds=settings.conversion_timeout_seconds,
            video_frames_path=settings.conversion_video_frames_path,
        )
