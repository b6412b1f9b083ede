"""
Configuration management for DoseTrack
"""

from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    # Application
    APP_NAME: str = "DoseTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"

    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000

    # Database
    DATABASE_URL: str = "sqlite:///./dosetrack.db"
    DATABASE_ECHO: bool = False

    # Patients without an explicit zone are scheduled in this one
    DEFAULT_TIMEZONE: str = "UTC"

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]

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


class ScheduleConfig:
    """Service-level knobs around the dose scheduler"""

    # Reminders look this many days ahead, starting today
    REMINDER_WINDOW_DAYS: int = 7

    # A recorded dose within this many minutes of its slot is "on time"
    ON_TIME_WINDOW_MINUTES: int = 30

    # Upper bound accepted by the API for frequency_per_day
    MAX_FREQUENCY_PER_DAY: int = 24


# Database table names
class TableNames:
    PATIENTS = "patients"
    CATEGORIES = "categories"
    MEDICATIONS = "medications"
    DOSE_LOGS = "dose_logs"


settings = get_settings()
schedule_config = ScheduleConfig()
