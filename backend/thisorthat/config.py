from pathlib import Path
from typing import Optional, List
from pydantic_settings import BaseSettings

PACKAGE_DIR = Path(__file__).resolve().parent

class Settings(BaseSettings):
    """Application configuration with environment variable support"""

    # Server settings
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    DEBUG: bool = False
    RELOAD: bool = False
    LOG_LEVEL: str = "INFO"

    # Quiz settings
    MIN_CHOICES_REQUIRED: int = 20
    MAX_ROUNDS_PER_SESSION: int = 20
    MAX_SESSIONS: int = 3
    SESSION_MAX_AGE_HOURS: int = 24
    RANDOM_SEED: Optional[int] = None

    # Preference strength policy (top tag percentage)
    STRONG_THRESHOLD: int = 50
    MODERATE_THRESHOLD: int = 30
    MAX_RECOMMENDATIONS: int = 5

    # Data paths
    DESIGNS_FILE: str = str(PACKAGE_DIR / "data" / "designs.json")
    FALLBACK_DESIGNS_FILE: str = str(PACKAGE_DIR / "data" / "sample-designs.json")

    # CORS settings
    ALLOWED_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
        "http://localhost:8080",
        "*"  # Allow all origins in development
    ]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def max_choices(self) -> int:
        return self.MAX_ROUNDS_PER_SESSION * self.MAX_SESSIONS

settings = Settings()
