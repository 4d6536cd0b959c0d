# src/dealflow/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # persistence
    DB_URI: str = Field(default="sqlite:///dealflow.db")

    # -----------------------------
    # Auth (JWT)
    # -----------------------------
    JWT_SECRET: str = Field(default="dev-secret-change-me")
    JWT_ALGORITHM: str = Field(default="HS256")
    JWT_EXPIRES_MINUTES: int = Field(default=60 * 24 * 7)

    # -----------------------------
    # AI insights (Anthropic)
    # -----------------------------
    ANTHROPIC_API_KEY: str | None = Field(default=None)
    AI_MODEL: str = Field(default="claude-sonnet-4-5-20250929")
    AI_TIMEOUT_S: float = Field(default=60.0)
    AI_MAX_RETRIES: int = Field(default=2)
    AI_MAX_WORKERS: int = Field(default=4)

    # comma separated, "*" allows everything
    CORS_ORIGINS: str = Field(default="*")

    model_config = SettingsConfigDict(
        env_prefix="DEALFLOW_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator("JWT_EXPIRES_MINUTES", "AI_MAX_WORKERS", mode="before")
    @classmethod
    def _positive_int(cls, v: Any) -> Any:
        try:
            i = int(float(v))
        except Exception as err:
            raise ValueError("must be a positive integer") from err
        if i <= 0:
            raise ValueError("must be a positive integer")
        return i

    @field_validator("AI_TIMEOUT_S", mode="before")
    @classmethod
    def _timeout_positive(cls, v: Any) -> Any:
        f = float(v)
        if f <= 0:
            raise ValueError("AI_TIMEOUT_S must be > 0")
        return f

    @property
    def cors_origins(self) -> list[str]:
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def ai_enabled(self) -> bool:
        return bool(self.ANTHROPIC_API_KEY and self.ANTHROPIC_API_KEY.strip())


config = AppConfig()
