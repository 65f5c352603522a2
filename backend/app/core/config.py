from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List
import json
from pathlib import Path


DEFAULT_JWT_SECRET = "change-me-in-production"


def split_csv(value: str) -> List[str]:
    """``"a, b"`` or ``'["a", "b"]'`` -> ``["a", "b"]``"""
    value = (value or "").strip()
    if value.startswith("["):
        try:
            return [str(item).strip() for item in json.loads(value) if str(item).strip()]
        except json.JSONDecodeError:
            pass
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",
    )

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Campus Connect"
    APP_VERSION: str = "1.0.0"
    ENVIRONMENT: str = "development"  # development | testing | production
    DEBUG: bool = False
    API_PREFIX: str = "/api"
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./campus_connect.db"
    DB_ECHO: bool = False

    # ==========================================
    # Tokens & passwords
    # ==========================================
    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30 * 24 * 60
    BCRYPT_ROUNDS: int = 10

    # ==========================================
    # OTP registration
    # ==========================================
    OTP_EXPIRE_SECONDS: int = 600
    OTP_LENGTH: int = 6

    # ==========================================
    # Email (console mode unless SMTP_USER and SMTP_PASSWORD are set)
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@campusconnect.com"
    EMAIL_FROM_NAME: str = "Campus Connect"
    FRONTEND_URL: str = "http://localhost:3000"

    # ==========================================
    # HTTP
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173"
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120
    MAX_REQUEST_SIZE: int = 10 * 1024 * 1024

    # ==========================================
    # Issue photos
    # ==========================================
    UPLOAD_DIR: str = "uploads"
    ISSUE_IMAGE_SUBDIR: str = "issue-images"
    MAX_IMAGE_SIZE: int = 5 * 1024 * 1024
    ALLOWED_IMAGE_EXTENSIONS_STR: str = "jpeg,jpg,png,gif"

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = ""

    @field_validator("ENVIRONMENT")
    @classmethod
    def normalize_environment(cls, value: str) -> str:
        return value.strip().lower()

    @field_validator("LOG_LEVEL")
    @classmethod
    def normalize_log_level(cls, value: str) -> str:
        return value.strip().upper() or "INFO"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        return split_csv(self.CORS_ORIGINS_STR)

    @property
    def ALLOWED_IMAGE_EXTENSIONS(self) -> List[str]:
        """Lower-case, without the leading dot"""
        return [ext.lower().lstrip(".") for ext in split_csv(self.ALLOWED_IMAGE_EXTENSIONS_STR)]

    @property
    def UPLOAD_PATH(self) -> Path:
        return Path(self.UPLOAD_DIR)

    @property
    def ISSUE_IMAGE_PATH(self) -> Path:
        return self.UPLOAD_PATH / self.ISSUE_IMAGE_SUBDIR

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


settings = Settings()
