# File: common/config/settings.py

from pathlib import Path
from typing import List, Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings

# Calculate base directory for consistent file paths
BASE_DIR = Path(__file__).resolve().parent.parent.parent.parent
ENV_PATH = BASE_DIR / ".env"


class Settings(BaseSettings):
    ENVIRONMENT: str = "development"  # "production" or "development"

    BASE_DIR: Path = Field(default=BASE_DIR, description="Base directory of the project")

    # Identity provider tokens
    ACCESS_SECRET: str = Field(..., description="Secret used to verify access tokens")
    ALGORITHM: str = Field("HS256", description="JWT signing algorithm")
    ACCESS_TOKEN_EXPIRE_MINUTES: int = Field(60, description="Access token expiry in minutes")
    TOKEN_AUDIENCE: str = Field("api", description="Expected audience of access tokens")
    TOKEN_ISSUER: str = Field("travelshare-auth", description="Issuer written into development tokens")

    # Document store
    DOCUMENT_STORE_BACKEND: Literal["mongodb", "memory"] = Field("mongodb", description="Document store backend")
    MONGO_URI: str = Field("mongodb://localhost:27017/?replicaSet=rs0", description="MongoDB connection URI (replica set required for transactions)")
    MONGO_DB: str = Field("travelshare_db", description="MongoDB database name")
    MONGO_TIMEOUT: int = Field(5000, description="MongoDB connection timeout in milliseconds")

    # Transactions
    TRANSACTION_MAX_ATTEMPTS: int = Field(5, ge=1, description="Attempts before a conflicting transaction gives up")
    TRANSACTION_RETRY_BASE_DELAY: float = Field(0.01, ge=0, description="Base backoff between transaction attempts in seconds")
    FOLLOW_STATUS_TIMEOUT: float = Field(10.0, gt=0, description="Timeout for follow status reads in seconds")

    # Sentry
    SENTRY_DSN: str = Field("", description="Sentry DSN, empty disables reporting")
    SENTRY_TRACES_SAMPLE_RATE: float = Field(0.0, description="Sentry traces sample rate")
    SENTRY_SEND_PII: bool = Field(False, description="Send personally identifiable information to Sentry")

    # HTTP
    CORS_ORIGINS: List[str] = Field(default_factory=lambda: ["http://localhost:3000"], description="Allowed CORS origins")

    # Logging
    LOG_LEVEL: Optional[str] = Field(None, description="DEBUG, INFO, ...; defaults to DEBUG in development, INFO otherwise")
    LOG_TO_FILE: bool = Field(True, description="Write logs to a daily file under logs/")

    class Config:
        env_file = ENV_PATH
        env_file_encoding = "utf-8"
        case_sensitive = True


# Singleton settings instance
settings = Settings()
