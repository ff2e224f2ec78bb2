from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, HttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        populate_by_name=True,
    )

    env: Literal["local", "prod", "test"] = Field(default="local", alias="ENV")
    debug: bool = Field(default=True, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    port: int = Field(default=8091, alias="PORT")
    assets_root: Path = Field(default=Path("./assets"), alias="ASSETS_ROOT")

    s3_bucket: str = Field(default="tubely-videos", alias="S3_BUCKET")
    s3_region: str = Field(default="us-east-1", alias="S3_REGION")
    s3_endpoint: HttpUrl | None = Field(default=None, alias="S3_ENDPOINT_URL")
    s3_access_key: str | None = Field(default=None, alias="S3_ACCESS_KEY")
    s3_secret_key: str | None = Field(default=None, alias="S3_SECRET_KEY")

    ffprobe_path: str = Field(default="ffprobe", alias="FFPROBE_PATH")
    ffmpeg_path: str = Field(default="ffmpeg", alias="FFMPEG_PATH")
    process_timeout_seconds: float | None = Field(default=None, alias="PROCESS_TIMEOUT_SECONDS")

    upload_tmp_dir: Path | None = Field(default=None, alias="UPLOAD_TMP_DIR")
    max_video_upload_bytes: int = Field(default=1 << 30, alias="MAX_VIDEO_UPLOAD_BYTES")
    max_thumbnail_upload_bytes: int = Field(default=10 << 20, alias="MAX_THUMBNAIL_UPLOAD_BYTES")


@lru_cache
def get_settings() -> Settings:
    return Settings()
