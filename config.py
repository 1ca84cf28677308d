"""
Configuration management for DoseCadence
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseCadence"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./dosecadence.db"
    DATABASE_ECHO: bool = False

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

    # Optimistic entries
    OPTIMISTIC_ID_PREFIX: str = "optimistic"

    # Default user settings
    DEFAULT_TIMEZONE: str = "UTC"
    DEFAULT_FOCUS_ACTIVE_ONLY: bool = True

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class EngineConfig:
    """Constants for the schedule and adherence engine"""

    # Calendar grid
    GRID_CELLS: int = 42

    # Intervals
    MIN_INTERVAL_DAYS: float = 0.5
    INTERVAL_STEP_DAYS: float = 0.5
    INTERVAL_MAX_DENOMINATOR: int = 1000

    # Streaks
    STREAK_MAX_GAP_DAYS: int = 7
    STREAK_RECENT_WINDOW: int = 10

    # Trend series
    DAILY_TREND_DAYS: int = 30
    WEEKLY_TREND_WEEKS: int = 4
    MONTHLY_TREND_MONTHS: int = 6
    HEATMAP_DAYS: int = 42

    # Schedule preview
    PREVIEW_COUNT: int = 10
    PREVIEW_MAX_COUNT: int = 100

    # Notifications
    NOTIFY_UPCOMING_DAYS: int = 3
    NOTIFY_STREAK_MILESTONE: int = 4


class TableNames:
    PROTOCOLS = "protocols"
    INJECTIONS = "injections"
    USER_SETTINGS = "user_settings"


settings = get_settings()
engine_config = EngineConfig()
