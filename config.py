import os
from typing import Optional

from pydantic_settings import BaseSettings

# Reserved current_locations identity for GPS points not attributed to an animal
UNATTRIBUTED_ANIMAL_ID = 0

# device_controls row holding the global on/off toggle
SYSTEM_ENABLED_KEY = "system_enabled"
DEFAULT_CONTROL_STATE = "on"


class Settings(BaseSettings):
    DATABASE_URL: str = ""
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600

    PORT: int = 3000
    # Comma-separated; "*" allows every origin
    ALLOWED_ORIGINS: str = "*"

    SECRET_KEY: str = "dev-jwt-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_SECONDS: int = 86400

    ENVIRONMENT: str = "development"

    # Single-farm deployments
    DEFAULT_FARM_ID: int = 1

    # Command queue expiry
    CONTROL_COMMAND_TTL_HOURS: float = 1
    WIFI_COMMAND_TTL_HOURS: float = 24

    # Development switches (ignored in production)
    DEV_AUTH_BYPASS: bool = False
    DEV_ALLOW_TRUNCATE: bool = False

    # Alert e-mail (skipped unless SMTP_USER, SMTP_PASS and ALERT_EMAIL_TO are set)
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 465
    SMTP_SECURE: bool = True
    SMTP_USER: Optional[str] = None
    SMTP_PASS: Optional[str] = None
    SMTP_FROM: Optional[str] = None
    ALERT_EMAIL_TO: Optional[str] = None
    SMTP_TIMEOUT_SECONDS: float = 5

    # Per live-update subscriber buffer
    EVENT_QUEUE_SIZE: int = 100

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        # Use absolute path to make sure .env is found
        env_file = os.path.join(os.path.dirname(__file__), ".env")
        env_file_encoding = "utf-8"
        extra = "ignore"


# Create the settings instance
settings = Settings()
