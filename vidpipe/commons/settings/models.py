"""Pydantic settings models for application configuration."""

from typing import Literal

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppSettings(BaseModel):
    """Application-level settings."""

    name: str = "vidpipe"
    version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"


class BucketSettings(BaseModel):
    """Bucket name configuration."""

    chunks: str = "upload-chunks"
    uploads: str = "uploads"
    renditions: str = "renditions"
    thumbnails: str = "thumbnails"


class BlobStorageSettings(BaseModel):
    """Blob storage settings (MinIO/S3)."""

    provider: Literal["minio", "memory"] = "minio"
    endpoint: str = "localhost:9000"
    access_key: str = ""
    secret_key: str = ""
    use_ssl: bool = False
    region: str = "us-east-1"
    buckets: BucketSettings = Field(default_factory=BucketSettings)
    presigned_url_expiry_seconds: int = 3600


class DocumentCollectionSettings(BaseModel):
    """Document DB collection names."""

    upload_sessions: str = "upload_sessions"
    encoding_profiles: str = "encoding_profiles"
    transcoding_jobs: str = "transcoding_jobs"
    renditions: str = "video_renditions"
    thumbnails: str = "thumbnails"


class DocumentDBSettings(BaseModel):
    """Document database settings (MongoDB)."""

    provider: Literal["mongodb", "memory"] = "mongodb"
    host: str = "localhost"
    port: int = 27017
    username: str = ""
    password: str = ""
    database: str = "vidpipe"
    auth_source: str = "admin"
    collections: DocumentCollectionSettings = Field(
        default_factory=DocumentCollectionSettings
    )

    @property
    def connection_string(self) -> str:
        """Build the MongoDB connection URI."""
        if self.username and self.password:
            return (
                f"mongodb://{self.username}:{self.password}"
                f"@{self.host}:{self.port}/?authSource={self.auth_source}"
            )
        return f"mongodb://{self.host}:{self.port}"


class UploadSettings(BaseModel):
    """Chunked upload settings."""

    # A merge claim older than this is considered abandoned and can be retaken
    merge_lease_seconds: float = Field(default=600.0, gt=0)


class QueueSettings(BaseModel):
    """Transcoding work queue settings."""

    provider: Literal["mongodb", "memory"] = "mongodb"
    collection: str = "transcoding_queue"
    dead_letter_collection: str = "transcoding_queue_dead_letters"
    visibility_timeout_seconds: float = Field(default=300.0, gt=0)
    dead_letter_field_limit: int = Field(default=4096, ge=1)


class WorkerSettings(BaseModel):
    """Transcoding worker loop settings."""

    ffmpeg_path: str = "ffmpeg"
    ffprobe_path: str = "ffprobe"
    temp_dir: str | None = None
    idle_wait_seconds: float = Field(default=1.0, gt=0)
    failure_backoff_seconds: float = Field(default=5.0, ge=0)
    thumbnail_count: int = Field(default=5, ge=0, le=20)
    thumbnail_width: int = 320
    thumbnail_height: int = 180
    status_message_limit: int = Field(default=1000, ge=1)


class SigningSettings(BaseModel):
    """Signed playback URL settings."""

    provider: Literal["hmac", "presigned"] = "hmac"
    base_url: str = "http://localhost:8080/media"
    # Base64-encoded HMAC key
    security_key: str = ""
    default_ttl_seconds: int = Field(default=3600, gt=0)


class TelemetrySettings(BaseModel):
    """Telemetry and observability settings."""

    enabled: bool = True
    log_format: Literal["json", "text"] = "json"
    log_level: str = "INFO"


class Settings(BaseSettings):
    """Root settings container with environment loading."""

    app: AppSettings = Field(default_factory=AppSettings)
    blob_storage: BlobStorageSettings = Field(default_factory=BlobStorageSettings)
    document_db: DocumentDBSettings = Field(default_factory=DocumentDBSettings)
    upload: UploadSettings = Field(default_factory=UploadSettings)
    queue: QueueSettings = Field(default_factory=QueueSettings)
    worker: WorkerSettings = Field(default_factory=WorkerSettings)
    signing: SigningSettings = Field(default_factory=SigningSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="VIDPIPE__",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )
