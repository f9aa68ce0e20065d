from typing import Literal, Optional
from urllib.parse import quote_plus

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseConfig(BaseSettings):
    """Database configuration"""

    host: str = "localhost"
    port: int = 5432
    username: str = "postgres"
    password: SecretStr = Field(default=SecretStr("postgres"))
    database: str = "callscope"
    schema_name: Optional[str] = None
    serverless: bool = Field(
        default=True,
        description="If true, disable connection pooling so serverless DBs can pause.",
    )

    @property
    def url(self) -> str:
        """Get database URL"""
        username = quote_plus(self.username)
        password = quote_plus(self.password.get_secret_value())
        return (
            "postgresql+asyncpg://"
            f"{username}:{password}"
            f"@{self.host}:{self.port}/{self.database}"
        )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class S3Config(BaseSettings):
    """S3 configuration for stored call recordings."""

    access_key: Optional[str] = None
    secret_key: Optional[str] = None
    region: str = "us-east-1"
    bucket_name: str = "callscope-recordings"

    model_config = SettingsConfigDict(
        env_prefix="S3_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class GeminiConfig(BaseSettings):
    """Generative-model backend configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "GOOGLE_GEMINI_API_KEY",
            "GEMINI_API_KEY",
            "GOOGLE_API_KEY",
        ),
    )
    candidate_models: list[str] = Field(
        default_factory=lambda: [
            "gemini-1.5-flash",
            "gemini-1.5-flash-001",
            "gemini-1.5-pro",
            "gemini-1.5-pro-001",
            "gemini-pro-vision",
        ],
        validation_alias="GEMINI_CANDIDATE_MODELS",
        min_length=1,
    )
    timeout_seconds: float = Field(
        default=120.0,
        validation_alias="GEMINI_TIMEOUT_SECONDS",
        gt=0,
    )
    temperature: float = Field(
        default=0.0,
        validation_alias="GEMINI_TEMPERATURE",
        ge=0.0,
        le=1.0,
    )
    top_k: int = Field(
        default=1,
        validation_alias="GEMINI_TOP_K",
        ge=1,
    )
    response_mime_type: str = "application/json"

    model_config = SettingsConfigDict(
        env_file=".env",
        secrets_dir=".secrets",
        case_sensitive=False,
        extra="ignore",
    )


class AnalysisConfig(BaseSettings):
    """Call analysis pipeline limits and defaults."""

    max_audio_bytes: int = Field(default=20 * 1024 * 1024, ge=1)
    default_strictness: Literal["lenient", "moderate", "strict"] = "strict"
    max_terminology: int = Field(default=30, ge=1)
    store_recordings: bool = True
    endpoint_name: str = "analysis"

    model_config = SettingsConfigDict(
        env_prefix="ANALYSIS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class RateLimitConfig(BaseSettings):
    """Sliding-window admission limits per actor."""

    window_seconds: float = Field(default=60.0, gt=0)
    max_requests: int = Field(default=20, ge=1)
    backend: Literal["database", "memory"] = "database"

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class SecurityConfig(BaseSettings):
    """JWT verification settings used to identify the calling actor."""

    jwt_secret_key: SecretStr = Field(
        default=SecretStr("change-me"),
        validation_alias="JWT_SECRET",
    )
    jwt_algorithm: str = Field(default="HS256", validation_alias="JWT_ALGORITHM")
    access_token_expires_minutes: int = Field(
        default=60, validation_alias="ACCESS_TOKEN_EXPIRES_MINUTES"
    )

    model_config = SettingsConfigDict(
        env_prefix="",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


class Settings(BaseSettings):
    """Application settings"""

    app_name: str = "CallScope Analysis Backend"
    app_version: str = "1.0.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000
    log_file: str = "logs/app.log"
    analysis_log_file: str = "logs/analysis_pipeline.log"

    # Database
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)

    # S3
    s3: S3Config = Field(default_factory=S3Config)

    # Gemini
    gemini: GeminiConfig = Field(default_factory=GeminiConfig)

    # Pipeline
    analysis: AnalysisConfig = Field(default_factory=AnalysisConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)

    # Security
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    # CORS
    cors_origins: list[str] = ["*"]
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = ["*"]
    cors_allow_headers: list[str] = ["*"]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )


# Global settings instance
settings = Settings()
