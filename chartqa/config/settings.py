from pydantic_settings import BaseSettings, SettingsConfigDict

from chartqa.config.thresholds import PipelineThresholds


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    db_host: str = "host.docker.internal"
    db_port: int = 5432
    db_database: str = "chartqa"
    db_username: str = "chartqa"
    db_password: str = "secret"
    db_pool_max_size: int = 10

    inference_provider: str = "openai"
    inference_api_key: str = ""
    inference_base_url: str = ""
    inference_text_model: str = "gpt-4o"
    inference_vision_model: str = "gpt-4o"
    inference_transcription_model: str = "whisper-1"
    inference_temperature: float = 0.1
    inference_timeout_seconds: int = 120
    inference_max_attempts: int = 3
    inference_backoff_base_seconds: float = 2.0
    transcription_language: str = "en"

    conversion_engine: str = "convertapi"
    conversion_api_base_url: str = "https://v2.convertapi.com"
    conversion_api_secret: str = ""
    conversion_timeout_seconds: int = 90
    conversion_video_frames_path: str = ""
    video_frame_count: int = 8

    chart_max_concurrency: int = 1
    chart_deadline_seconds: int = 600
    files_root: str = "/app/files"

    threshold_min_content_chars: int = 100
    threshold_audio_size_limit_bytes: int = 25 * 1024 * 1024
    threshold_analysis_text_limit: int = 15_000
    threshold_stored_text_limit: int = 50_000
    threshold_heuristic_base_score: int = 60

    def thresholds(self) -> PipelineThresholds:
        """Build the pipeline threshold struct, applying env overrides."""
        return PipelineThresholds(
            min_content_chars=self.threshold_min_content_chars,
            audio_size_limit_bytes=self.threshold_audio_size_limit_bytes,
            analysis_text_limit=self.threshold_analysis_text_limit,
            stored_text_limit=self.threshold_stored_text_limit,
            heuristic_base_score=self.threshold_heuristic_base_score,
        )
