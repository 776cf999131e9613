"""Application configuration."""
from functools import lru_cache
from typing import Any, List, Optional
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import field_validator


def clean_int_value(v: Any) -> int:
    """Clean integer values from environment variables."""
    if isinstance(v, str):
        # Remove any comments and whitespace
        v = v.split('#')[0].strip()
    return int(v)


def _split_csv(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    # Application settings
    PROJECT_NAME: str = "Mirsui API"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"
    HOST: str = "0.0.0.0"
    PORT: int = 3000
    RELOAD: bool = False

    # Supabase settings
    SUPABASE_URL: str = ""
    SUPABASE_KEY: str = ""
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None

    # CORS settings
    ALLOWED_ORIGINS: str = "http://localhost:3000,http://localhost:5173"
    ALLOWED_METHODS: str = "GET,POST,PUT,DELETE,OPTIONS"
    ALLOWED_HEADERS: str = "*"

    # Rate limiting (per client address, in-process counters)
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_REQUESTS: int = 100
    RATE_LIMIT_WINDOW_SECONDS: int = 15 * 60
    SIGNUP_RATE_LIMIT: int = 5
    SIGNUP_RATE_WINDOW_SECONDS: int = 60 * 60
    LOGIN_RATE_LIMIT: int = 5
    LOGIN_RATE_WINDOW_SECONDS: int = 60
    PASSWORD_RESET_RATE_LIMIT: int = 3
    PASSWORD_RESET_RATE_WINDOW_SECONDS: int = 60 * 60

    # Auth redirects
    EMAIL_REDIRECT_URL: Optional[str] = None
    PASSWORD_RESET_REDIRECT_URL: Optional[str] = None

    # Feed settings
    FEED_DEFAULT_LIMIT: int = 5
    RECENT_CLAIMS_DEFAULT_LIMIT: int = 4
    RECENT_CLAIMS_OVERFETCH: int = 5

    # Claim settings
    ATOMIC_CLAIM_POSITION: bool = False
    CLAIM_POSITION_RPC: str = "next_claim_position"

    # Logging settings
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = None

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"  # Allow extra fields in the environment
    )

    # Validators for integer fields
    _clean_ints = field_validator(
        'PORT', 'RATE_LIMIT_REQUESTS', 'RATE_LIMIT_WINDOW_SECONDS',
        'SIGNUP_RATE_LIMIT', 'SIGNUP_RATE_WINDOW_SECONDS',
        'LOGIN_RATE_LIMIT', 'LOGIN_RATE_WINDOW_SECONDS',
        'PASSWORD_RESET_RATE_LIMIT', 'PASSWORD_RESET_RATE_WINDOW_SECONDS',
        'FEED_DEFAULT_LIMIT', 'RECENT_CLAIMS_DEFAULT_LIMIT', 'RECENT_CLAIMS_OVERFETCH',
        mode='before'
    )(clean_int_value)

    @property
    def cors_origins(self) -> List[str]:
        return _split_csv(self.ALLOWED_ORIGINS)

    @property
    def cors_methods(self) -> List[str]:
        return [method.upper() for method in _split_csv(self.ALLOWED_METHODS)]

    @property
    def cors_headers(self) -> List[str]:
        return _split_csv(self.ALLOWED_HEADERS)


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
