"""Application configuration and settings management."""
from functools import lru_cache
from pathlib import Path
from typing import Annotated, List

from pydantic import field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

DEFAULT_JWT_SECRET = "change-me"


class Settings(BaseSettings):
    """Global application settings loaded from environment variables or .env."""

    model_config = SettingsConfigDict(
        env_file=(Path(__file__).resolve().parent.parent / ".." / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    app_name: str = "Profile API"
    host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    # Database
    database_url: str | None = None
    database_user: str = "postgres"
    database_password: str | None = None
    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "profile_api"

    # Security
    jwt_secret: str = DEFAULT_JWT_SECRET
    access_token_expire_seconds: int = 60 * 60
    bcrypt_rounds: int = 10
    allowed_origins: Annotated[List[str], NoDecode] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    # Uploads
    upload_dir: Path = Path("uploads")
    max_upload_bytes: int = 5 * 1024 * 1024
    allowed_image_types: Annotated[List[str], NoDecode] = ["image/jpeg", "image/png", "image/gif"]

    @field_validator("allowed_origins", "allowed_image_types", mode="before")
    @classmethod
    def _split_csv(cls, value: List[str] | str) -> List[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @property
    def sqlalchemy_url(self) -> str | URL:
        """Explicit DATABASE_URL, or a PostgreSQL URL assembled from the DATABASE_* parts."""

        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+asyncpg",
            username=self.database_user,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        )


@lru_cache
def get_settings() -> Settings:
    """Return memoized settings instance."""

    return Settings()
