from pathlib import Path
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict

_MB = 1024 * 1024


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    api_host: str = "0.0.0.0"
    api_port: int = 3001
    cors_allow_origins: list[str] = ["*"]

    data_dir: Path = Path("data")
    store_filename: str = "registered guests.xlsx"
    store_sheet_name: str = "RSVP"
    passport_dir_name: str = "passport pictures - guests"

    max_upload_mb: int = 100
    allowed_mime_prefix: str = "image/"

    store_write_retries: int = 5
    store_write_retry_delay_seconds: float = 0.5
    image_collision_policy: Literal["suffix", "overwrite"] = "suffix"

    intake_compress_threshold_mb: float = 100
    intake_compress_target_mb: float = 4
    intake_preview_timeout_seconds: float = 1.5
    intake_preview_max_edge_px: int = 320

    submit_base_url: str = "http://localhost:3001"
    submit_timeout_seconds: int = 30
    submit_transport_retries: int = 0

    @property
    def store_path(self) -> Path:
        return self.data_dir / self.store_filename

    @property
    def passport_dir(self) -> Path:
        return self.data_dir / self.passport_dir_name

    @property
    def max_upload_bytes(self) -> int:
        return self.max_upload_mb * _MB

    @property
    def intake_compress_threshold_bytes(self) -> int:
        return int(self.intake_compress_threshold_mb * _MB)

    @property
    def intake_compress_target_bytes(self) -> int:
        return int(self.intake_compress_target_mb * _MB)
