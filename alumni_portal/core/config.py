from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_extensions(v: Any) -> List[str]:
    """Parse allowed extensions from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        return [ext.strip().lower().lstrip('.') for ext in v.split(',') if ext.strip()]
    return []


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Alumni Portal API"
    INSTITUTE_NAME: str = "IIIT Naya Raipur"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    SECRET_KEY: str
    API_PREFIX: str = "/api"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 5001

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 1800  # 30 minutes
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 10080  # 7 days
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    EMAIL_VERIFICATION_EXPIRE_HOURS: int = 24
    PASSWORD_RESET_EXPIRE_MINUTES: int = 60
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod

    # ==========================================
    # Institute
    # ==========================================
    INSTITUTE_EMAIL_DOMAIN: str = "iiitnr.edu.in"
    DEFAULT_ADMIN_EMAIL: str = "admin@iiitnr.edu.in"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"

    # ==========================================
    # Frontend URL (links in emails)
    # ==========================================
    FRONTEND_URL: str = "http://localhost:3000"

    # ==========================================
    # Email
    # ==========================================
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASSWORD: str = ""
    EMAIL_FROM: str = "noreply@iiitnr.edu.in"
    EMAIL_FROM_NAME: str = "IIIT Naya Raipur Alumni Portal"

    # SendGrid Configuration (preferred when a key is present)
    SENDGRID_API_KEY: str = ""
    USE_SENDGRID: bool = True

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://127.0.0.1:3000"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 100
    AUTH_RATE_LIMIT_PER_MINUTE: int = 10
    REDIS_URL: str = ""  # Empty means in-memory limiter storage

    # ==========================================
    # File Upload
    # ==========================================
    MAX_REQUEST_SIZE: int = 10485760  # 10MB
    MAX_PROFILE_PICTURE_SIZE: int = 2097152  # 2MB
    MAX_IMPORT_FILE_SIZE: int = 10485760  # 10MB
    ALLOWED_IMAGE_EXTENSIONS_STR: str = "jpeg,jpg,png,webp"
    UPLOAD_PATH: str = "uploads"

    @property
    def ALLOWED_IMAGE_EXTENSIONS(self) -> List[str]:
        """Parse allowed image extensions from comma-separated string"""
        return parse_extensions(self.ALLOWED_IMAGE_EXTENSIONS_STR)

    # ==========================================
    # Logging
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        # Initialize paths after pydantic validation
        self._upload_dir = Path(self.UPLOAD_PATH).resolve()
        self._profile_pics_dir = self._upload_dir / "profile_pics"

        # Create directories if they don't exist
        self._profile_pics_dir.mkdir(exist_ok=True, parents=True)
        if self.LOG_FILE:
            Path(self.LOG_FILE).parent.mkdir(exist_ok=True, parents=True)

    @property
    def UPLOAD_DIR(self) -> Path:
        return self._upload_dir

    @property
    def PROFILE_PICS_DIR(self) -> Path:
        return self._profile_pics_dir

    def is_dev_mode(self) -> bool:
        """Check if running in development mode"""
        return self.ENVIRONMENT == "development" or self.DEBUG

    def is_institute_email(self, email: str) -> bool:
        """Check whether an address belongs to the institute mail domain"""
        return bool(email) and email.lower().endswith(f"@{self.INSTITUTE_EMAIL_DOMAIN.lower()}")


# Create settings instance
settings = Settings()
