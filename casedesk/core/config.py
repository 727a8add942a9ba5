from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", env_prefix="CASEDESK_", extra="ignore")

    app_name: str = "casedesk"
    environment: str = Field(default="development")  # development | production

    # Single origin serving both the REST API and uploaded images.
    api_base_url: str = Field(default="http://localhost:3000")
    api_prefix: str = Field(default="/api")
    request_timeout_seconds: float = Field(default=15.0, gt=0)

    # Cookie issued by the backend on login; the client only carries it.
    session_cookie_name: str = Field(default="token")
    session_token: str | None = Field(default=None)

    page_size: int = Field(default=10, ge=1)
    activity_feed_limit: int = Field(default=4, ge=1)

    default_avatar: str = Field(default="assets/default-avatar.png")
    currency_code: str = Field(default="PHP")
    currency_symbol: str = Field(default="₱")

    @field_validator("api_base_url", mode="before")
    @classmethod
    def _strip_trailing_slash(cls, v: str | None) -> str | None:
        # Image paths are server-relative ("/uploads/..."), so the origin must not end in "/".
        if isinstance(v, str):
            return v.strip().rstrip("/")
        return v

    @field_validator("api_prefix", mode="before")
    @classmethod
    def _normalize_prefix(cls, v: str | None) -> str | None:
        if v is None:
            return v
        s = str(v).strip().strip("/")
        return f"/{s}" if s else ""


settings = Settings()
