"""
Runtime configuration for the compression service.

Values are loaded from environment variables (BASISU_PATH, PUBLIC_DIR,
UPLOAD_DIR, PREVIEW_DIR, FILE_AGE_LIMIT, MAX_FILE_SIZE, ALLOWED_ORIGINS)
or from a .env file at the project root.
"""
from functools import lru_cache
from pathlib import Path
from typing import List, Optional

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

PROJECT_ROOT = Path(__file__).resolve().parent.parent

# Uploads older than this are swept (5 minutes)
DEFAULT_FILE_AGE_LIMIT = 5 * 60
DEFAULT_MAX_FILE_SIZE = 50 * 1000 * 1000


class Settings(BaseSettings):
    """Service settings"""

    model_config = SettingsConfigDict(
        env_file=PROJECT_ROOT / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    basisu_path: Path = Field(
        PROJECT_ROOT / "basisu" / "basisu", description="Path to the basisu executable"
    )
    public_dir: Path = Field(PROJECT_ROOT / "public", description="Web client bundle directory")
    upload_dir: Optional[Path] = Field(None, description="Upload scratch directory")
    preview_dir: Optional[Path] = Field(None, description="Compressed output directory")
    file_age_limit: float = Field(
        DEFAULT_FILE_AGE_LIMIT, ge=0, description="Retention window for scratch files in seconds"
    )
    max_file_size: int = Field(DEFAULT_MAX_FILE_SIZE, gt=0, description="Maximum upload size in bytes")
    # JSON list in the environment, e.g. ALLOWED_ORIGINS='["https://example.com"]'
    allowed_origins: List[str] = Field(default_factory=lambda: ["*"])

    @model_validator(mode="after")
    def _default_scratch_dirs(self) -> "Settings":
        # Scratch directories follow public_dir unless set explicitly
        if self.upload_dir is None:
            self.upload_dir = self.public_dir / "uploads"
        if self.preview_dir is None:
            self.preview_dir = self.public_dir / "preview"
        return self

    def ensure_directories(self) -> None:
        for directory in (self.public_dir, self.upload_dir, self.preview_dir):
            directory.mkdir(parents=True, exist_ok=True)


@lru_cache()
def get_settings() -> Settings:
    return Settings()
