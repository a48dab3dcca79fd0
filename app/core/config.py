# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Core configuration: all env-driven, zero hardcode.
Single source of truth for every tunable parameter.
"""

import os


class Settings:
    """Application settings loaded from environment variables."""

    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "service-scheduling")
    SERVICE_VERSION: str = os.getenv("SERVICE_VERSION", "1.0.0")
    SERVICE_PORT: int = int(os.getenv("SERVICE_PORT", "8005"))

    # "rest" talks to a hosted PostgREST endpoint, "sql" to a database directly
    SCHEDULING_BACKEND: str = os.getenv("SCHEDULING_BACKEND", "rest").lower()

    SUPABASE_URL: str = os.getenv("SUPABASE_URL", "http://supabase:8000")
    SUPABASE_KEY: str = os.getenv("SUPABASE_KEY", "")
    BACKEND_TIMEOUT: float = float(os.getenv("BACKEND_TIMEOUT", "5.0"))

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite://")
    POOL_SIZE: int = int(os.getenv("DB_POOL_SIZE", "10"))
    MAX_OVERFLOW: int = int(os.getenv("DB_MAX_OVERFLOW", "5"))
    POOL_RECYCLE: int = int(os.getenv("DB_POOL_RECYCLE", "300"))
    DB_AUTO_CREATE: bool = os.getenv("DB_AUTO_CREATE", "false").lower() == "true"

    DEFAULT_ASSIGNMENT_STATUS: str = os.getenv("DEFAULT_ASSIGNMENT_STATUS", "scheduled")
    UNKNOWN_MEMBER_LABEL: str = os.getenv("UNKNOWN_MEMBER_LABEL", "Unknown")
    CALENDAR_MONTH_OPTIONS: tuple[int, ...] = (3, 6)

    DEFAULT_HISTORY_LIMIT: int = int(os.getenv("DEFAULT_HISTORY_LIMIT", "100"))
    MAX_HISTORY_SIZE: int = int(os.getenv("MAX_HISTORY_SIZE", "5000"))

    CORS_ORIGINS: list[str] = os.getenv("CORS_ORIGINS", "*").split(",")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()


settings = Settings()
