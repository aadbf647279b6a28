from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # Environment variables win; .env is only read for local runs
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # AI gateway (OpenAI-compatible chat completions)
    ai_gateway_api_key: str | None = Field(default=None, alias="AI_GATEWAY_API_KEY")
    ai_gateway_url: str = Field(default="https://ai.gateway.lovable.dev/v1", alias="AI_GATEWAY_URL")
    ai_vision_model: str = Field(default="google/gemini-2.5-flash", alias="AI_VISION_MODEL")
    ai_request_timeout_seconds: float = Field(default=60, alias="AI_REQUEST_TIMEOUT_SECONDS")

    # Pipeline stages after classification
    enable_quality_stage: bool = Field(default=True, alias="ENABLE_QUALITY_STAGE")
    enable_analysis_stage: bool = Field(default=True, alias="ENABLE_ANALYSIS_STAGE")

    max_image_bytes: int = Field(default=20 * 1024 * 1024, alias="MAX_IMAGE_BYTES")

    port: int = Field(default=8000, alias="PORT")
    cors_origins: str = Field(default="*", alias="CORS_ORIGINS")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    @field_validator("ai_gateway_url")
    @classmethod
    def validate_gateway_url(cls, v: str) -> str:
        """Validate gateway URL format."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("AI_GATEWAY_URL must be an http(s) URL")
        return v.rstrip("/")

    @field_validator("ai_gateway_api_key")
    @classmethod
    def blank_key_is_missing(cls, v: str | None) -> str | None:
        if v is not None and not v.strip():
            return None
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(f"Unsupported LOG_LEVEL: {v}")
        return level

    def allowed_origins(self) -> list[str]:
        """Split CORS_ORIGINS into a list; empty means fully open."""
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        if not origins or "*" in origins:
            return ["*"]
        return origins


_settings_instance: Settings | None = None


def get_settings() -> Settings:
    """Get settings singleton instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
