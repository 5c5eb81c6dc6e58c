"""Application configuration using pydantic-settings."""
from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="FACEUNLOCK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Database - the desktop client keeps everything in a local SQLite file
    database_url: str = "sqlite+aiosqlite:///faceunlock.db"

    # Runtime data: preference file and the faces/ asset directory live here
    data_dir: Path = Path(".")
    preferences_file: str = "preferences.json"

    # bcrypt work factor for the app login password
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    log_level: str = "INFO"

    @field_validator("log_level")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Upper-case the level name and reject unknown levels."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Invalid log level: {v}"
            raise ValueError(msg)
        return level

    @property
    def faces_dir(self) -> Path:
        """Directory holding face feature (.face) and image (.faceimg) files."""
        return self.data_dir / "faces"

    @property
    def preferences_path(self) -> Path:
        """Location of the durable auth preference file."""
        return self.data_dir / self.preferences_file


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
