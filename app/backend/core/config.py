# app/backend/core/config.py
from __future__ import annotations

from functools import lru_cache
from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ALLOWED_ENVS = {"dev", "prod", "test"}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        populate_by_name=True,
    )

    # 앱 기본
    app_name: str = Field("Task Manager API", alias="APP_NAME")
    app_version: str = Field("1.0.0", alias="APP_VERSION")
    environment: str = Field("dev", alias="ENV")
    host: str = Field("0.0.0.0", alias="HOST")
    port: int = Field(3000, alias="PORT")

    # 보안
    cors_origins: str = Field("", alias="CORS_ORIGINS")
    rate_limit_window_seconds: int = Field(900, alias="RATE_LIMIT_WINDOW_SECONDS")
    rate_limit_max: int = Field(100, alias="RATE_LIMIT_MAX")
    auth_rate_limit_max: int = Field(5, alias="AUTH_RATE_LIMIT_MAX")
    max_request_bytes: int = Field(10 * 1024 * 1024, alias="MAX_REQUEST_BYTES")

    # JWT / 비밀번호
    jwt_secret_key: str = Field("task-manager-secret-key", alias="JWT_SECRET_KEY")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(60 * 24, alias="ACCESS_TOKEN_EXPIRE_MINUTES")
    bcrypt_rounds: int = Field(12, alias="BCRYPT_ROUNDS")

    # 성능 / 로깅
    compression_enabled: bool = Field(True, alias="COMPRESSION_ENABLED")
    request_logging: bool = Field(True, alias="REQUEST_LOGGING")
    log_level: str = Field("INFO", alias="LOG_LEVEL")
    static_dir: str = Field("", alias="STATIC_DIR")
    static_cache_max_age: int = Field(3600, alias="STATIC_CACHE_MAX_AGE")
    shutdown_grace_seconds: float = Field(10.0, alias="SHUTDOWN_GRACE_SECONDS")

    # 조회
    strict_query_filters: bool = Field(False, alias="STRICT_QUERY_FILTERS")
    due_soon_days: int = Field(3, alias="DUE_SOON_DAYS")

    @field_validator("environment")
    @classmethod
    def _check_env(cls, value: str) -> str:
        env = (value or "dev").strip().lower()
        if env not in _ALLOWED_ENVS:
            allowed = "|".join(sorted(_ALLOWED_ENVS))
            raise ValueError(f"ENV must be one of {allowed}")
        return env

    @field_validator("bcrypt_rounds")
    @classmethod
    def _check_rounds(cls, value: int) -> int:
        # bcrypt only accepts 4..31
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31")
        return value

    @property
    def cors_origin_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def is_production(self) -> bool:
        return self.environment == "prod"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
