"""
EduCalc settings

- Reads environment variables (and an optional .env file) into one settings object.
- pydantic v2 / pydantic-settings v2.
- Every external collaborator (Gemini, Firebase, local data dir) is configured here;
  nothing else in the package reads os.environ directly.
"""

from functools import lru_cache
from pathlib import Path
from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

BUNDLED_CATALOG = Path(__file__).parent / "data" / "subjects.json"


class Settings(BaseSettings):
    # =========================
    # Curriculum
    # =========================
    CATALOG_PATH: Optional[Path] = None
    DEFAULT_STREAM: str = "CSE"
    # Comma separated; these streams run for EXTENDED_PERIODS semesters
    EXTENDED_STREAMS: str = "MBA"
    STANDARD_PERIODS: int = 8
    EXTENDED_PERIODS: int = 10

    # =========================
    # AI extraction (Gemini)
    # =========================
    GEMINI_API_KEY: str = ""
    GEMINI_MODEL: str = "gemini-3-flash-preview"
    GEMINI_API_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"
    EXTRACTION_TIMEOUT: float = 30.0
    IMAGE_MAX_DIMENSION: int = 1200
    IMAGE_JPEG_QUALITY: int = 85

    # =========================
    # Identity / profile store (Firebase)
    # =========================
    FIREBASE_API_KEY: str = ""
    FIREBASE_PROJECT_ID: str = ""
    LOGIN_EMAIL_DOMAIN: str = "educalc.com"
    PROFILE_COLLECTION: str = "students"
    REQUEST_TIMEOUT: float = 15.0

    # =========================
    # Local persistence / logging
    # =========================
    DATA_DIR: Path = Path.home() / ".educalc"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    @property
    def catalog_path(self) -> Path:
        """Configured catalog file, or the one bundled with the package"""
        return self.CATALOG_PATH or BUNDLED_CATALOG

    @property
    def extended_streams(self) -> List[str]:
        return [s.strip().upper() for s in self.EXTENDED_STREAMS.split(",") if s.strip()]

    def max_periods(self, stream: str) -> int:
        """Number of semesters a stream runs for"""
        if stream.upper() in self.extended_streams:
            return self.EXTENDED_PERIODS
        return self.STANDARD_PERIODS


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()
