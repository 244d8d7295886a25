"""
List Scanner Backend — Application Configuration
=================================================

What:  Centralized configuration management using Pydantic Settings.
How:   Pydantic Settings reads from environment variables (or a .env file),
       validates types/ranges, and provides a singleton `settings` object.
Who:   Imported by every module that needs configuration values.
When:  Loaded once at module import time; validated before the app starts.
"""

from typing import List

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have development defaults. Production deployments override
    DATABASE_URL, GEMINI_API_KEY and CORS_ORIGINS.
    """

    # ── Database ──────────────────────────────────────────────────────────
    # Format: <dialect>+<async driver>://... (aiosqlite locally, asyncpg in prod)
    database_url: str = Field(
        default="sqlite+aiosqlite:///./listscanner.db",
        description="Async SQLAlchemy connection URL",
    )

    # Pool options are only passed to non-SQLite engines
    db_pool_size: int = Field(default=20, ge=5, le=100)
    db_max_overflow: int = Field(default=10, ge=0, le=50)
    db_pool_pre_ping: bool = Field(default=True)

    # Create the photos/lists/items/preferences tables at startup when they are missing.
    # Deployments that run `alembic upgrade head` can turn this off.
    auto_create_schema: bool = Field(default=True)

    # ── Google Gemini (OCR engine) ────────────────────────────────────────
    gemini_api_key: str = Field(
        default="",
        description="Google Gemini API key used for shopping list text recognition",
    )
    gemini_model: str = Field(default="gemini-1.5-flash")

    # ── Photo Storage ─────────────────────────────────────────────────────
    storage_root: str = Field(default="./storage")

    # 10MB; valid range 1MB to 50MB
    max_file_size: int = Field(default=10_485_760, ge=1_048_576, le=52_428_800)

    # ── Lists ─────────────────────────────────────────────────────────────
    # strftime pattern for the name of a list created from OCR text,
    # rendered in local time (e.g. "2024-03-15 09:30")
    list_name_format: str = Field(default="%Y-%m-%d %H:%M")

    # ── OCR Usage ─────────────────────────────────────────────────────────
    # Weekly scan count at which the cost warning is raised
    # (~$1 at $1.50 per 1000 OCR requests)
    ocr_cost_warning_threshold: int = Field(default=667, ge=1)

    # ── CORS ──────────────────────────────────────────────────────────────
    cors_origins: str = Field(default="http://localhost:3000")

    @property
    def cors_origins_list(self) -> List[str]:
        """Splits comma-separated CORS origins into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    # ── Server ────────────────────────────────────────────────────────────
    backend_host: str = Field(default="0.0.0.0")
    backend_port: int = Field(default=8000, ge=1024, le=65535)

    # Valid: DEBUG, INFO, WARNING, ERROR, CRITICAL
    log_level: str = Field(default="INFO")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensures log level is a valid Python logging level name."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log_level '{v}'. Must be one of: {valid_levels}")
        return upper

    # ── Retry Configuration (OCR calls) ───────────────────────────────────
    retry_max_attempts: int = Field(default=3, ge=1, le=10)
    retry_min_wait: int = Field(default=2, ge=1, le=30)
    retry_max_wait: int = Field(default=10, ge=5, le=120)

    # ── Circuit Breaker (OCR calls) ───────────────────────────────────────
    cb_failure_threshold: int = Field(default=5, ge=2, le=20)
    cb_recovery_timeout: int = Field(default=60, ge=10, le=300)

    model_config = {
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "case_sensitive": False,
    }

    @property
    def is_sqlite(self) -> bool:
        return self.database_url.startswith("sqlite")

    def validate_required_for_production(self) -> None:
        """
        Checks that critical settings are configured.

        Called from the application lifespan; raises ValueError listing
        every missing setting.
        """
        errors = []
        if not self.gemini_api_key or self.gemini_api_key == "your_gemini_api_key_here":
            errors.append(
                "GEMINI_API_KEY is not set. Photo scanning will fail until it is. "
                "Get a key at https://aistudio.google.com/app/apikey"
            )
        if errors:
            raise ValueError(
                "Configuration validation failed:\n" + "\n".join(f"  - {e}" for e in errors)
            )


settings = Settings()
