"""Application configuration using Pydantic Settings."""
from pathlib import Path
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    """Application settings."""

    # Application
    APP_NAME: str = "Pinpointer Website Auditor"
    APP_VERSION: str = "6.0.0"
    APP_ENV: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "./logs"

    # API
    API_PREFIX: str = "/api"
    CORS_ORIGINS: List[str] = ["*"]

    # Gemini
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    AI_MIN_CALL_GAP: float = 4.5  # seconds between any two outbound AI requests
    AI_MAX_ATTEMPTS: int = 5
    AI_RATE_LIMIT_COOLDOWN: float = 8.0
    AI_RATE_LIMIT_STEP: float = 5.0
    AI_BACKOFF_BASE: float = 5.0
    AI_BACKOFF_MAX: float = 45.0
    AI_TIMEOUT: float = 120.0
    AI_MAX_OUTPUT_TOKENS: int = 8192
    AI_TEMPERATURE: float = 0.2

    # PageSpeed Insights
    PSI_KEY: Optional[str] = None
    PSI_BASE_URL: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"
    PSI_TIMEOUT: float = 90.0
    PSI_MAX_ATTEMPTS: int = 2

    # Crawler
    CRAWLER_TIMEOUT: float = 15.0
    CRAWLER_AUX_TIMEOUT: float = 5.0
    CRAWLER_MAX_ATTEMPTS: int = 2
    CRAWLER_USER_AGENT: str = "Mozilla/5.0 (compatible; Pinpointer/6.0; Website Auditor)"
    CRAWLER_VERIFY_SSL: bool = False
    CRAWLER_MAX_BODY_CHARS: int = 500_000

    # Visual capture
    VISUAL_CAPTURE_ENABLED: bool = True
    BROWSER_HEADLESS: bool = True
    BROWSER_EXECUTABLE_PATH: Optional[str] = None
    SCREENSHOT_DIR: str = "./storage/screenshots"

    # Skill prompts
    SKILLS_DIR: str = str(Path(__file__).resolve().parent.parent / "skills" / "prompts")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )


settings = Settings()
