"""Infrastructure factory for creating service instances from configuration."""

from typing import Any, cast

from vidpipe.application.dtos.transcoding import TranscodingJobMessage
from vidpipe.commons.infrastructure.blob import (
    BlobStorageBase,
    InMemoryBlobStorage,
    MinioBlobStorage,
)
from vidpipe.commons.infrastructure.documentdb import (
    DocumentDBBase,
    InMemoryDocumentDB,
    MongoDBDocumentDB,
)
from vidpipe.commons.infrastructure.queue import (
    InMemoryMessageQueue,
    MessageQueueBase,
    MongoMessageQueue,
)
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import get_logger
from vidpipe.infrastructure.media import FFmpegMediaTool, MediaToolBase
from vidpipe.infrastructure.repositories import (
    EncodingProfileRepository,
    JobRepository,
    ThumbnailRepository,
    UploadSessionRepository,
)
from vidpipe.infrastructure.signing import (
    HmacUrlSigner,
    PresignedBlobUrlSigner,
    SignedUrlIssuerBase,
)

logger = get_logger(__name__)


class InfrastructureFactory:
    """Factory for creating infrastructure service instances.

    Creates concrete implementations based on configuration settings and
    caches one instance of each per factory.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize factory with settings.

        Args:
            settings: Application settings.
        """
        self._settings = settings
        self._instances: dict[str, Any] = {}

    @property
    def settings(self) -> Settings:
        return self._settings

    def get_blob_storage(self) -> BlobStorageBase:
        """Get blob storage instance.

        Returns:
            Configured blob storage provider.
        """
        if "blob_storage" not in self._instances:
            blob_settings = self._settings.blob_storage
            if blob_settings.provider == "memory":
                self._instances["blob_storage"] = InMemoryBlobStorage()
            else:
                self._instances["blob_storage"] = MinioBlobStorage(
                    endpoint=blob_settings.endpoint,
                    access_key=blob_settings.access_key,
                    secret_key=blob_settings.secret_key,
                    secure=blob_settings.use_ssl,
                    region=blob_settings.region,
                )
        return cast("BlobStorageBase", self._instances["blob_storage"])

    def get_document_db(self) -> DocumentDBBase:
        """Get document database instance.

        Returns:
            Configured document database provider.
        """
        if "document_db" not in self._instances:
            doc_settings = self._settings.document_db
            if doc_settings.provider == "memory":
                self._instances["document_db"] = InMemoryDocumentDB()
            else:
                self._instances["document_db"] = MongoDBDocumentDB(
                    connection_string=doc_settings.connection_string,
                    database_name=doc_settings.database,
                )
        return cast("DocumentDBBase", self._instances["document_db"])

    def get_job_queue(self) -> MessageQueueBase[TranscodingJobMessage]:
        """Get the transcoding work queue.

        Returns:
            Configured queue provider carrying job messages.
        """
        if "job_queue" not in self._instances:
            queue_settings = self._settings.queue
            if queue_settings.provider == "memory":
                self._instances["job_queue"] = InMemoryMessageQueue(
                    TranscodingJobMessage,
                    visibility_timeout_seconds=queue_settings.visibility_timeout_seconds,
                    field_limit=queue_settings.dead_letter_field_limit,
                )
            else:
                doc_settings = self._settings.document_db
                self._instances["job_queue"] = MongoMessageQueue(
                    TranscodingJobMessage,
                    connection_string=doc_settings.connection_string,
                    database_name=doc_settings.database,
                    collection=queue_settings.collection,
                    dead_letter_collection=queue_settings.dead_letter_collection,
                    visibility_timeout_seconds=queue_settings.visibility_timeout_seconds,
                    field_limit=queue_settings.dead_letter_field_limit,
                )
        return cast("MessageQueueBase[TranscodingJobMessage]", self._instances["job_queue"])

    def get_media_tool(self) -> MediaToolBase:
        """Get the ffmpeg-backed media tool."""
        if "media_tool" not in self._instances:
            worker_settings = self._settings.worker
            self._instances["media_tool"] = FFmpegMediaTool(
                ffmpeg_path=worker_settings.ffmpeg_path,
                ffprobe_path=worker_settings.ffprobe_path,
            )
        return cast("MediaToolBase", self._instances["media_tool"])

    def get_url_signer(self) -> SignedUrlIssuerBase:
        """Get the playback URL signer.

        Raises:
            ValueError: If the HMAC key is missing or malformed.
        """
        if "url_signer" not in self._instances:
            signing = self._settings.signing
            if signing.provider == "presigned":
                self._instances["url_signer"] = PresignedBlobUrlSigner(
                    self.get_blob_storage()
                )
            else:
                self._instances["url_signer"] = HmacUrlSigner(
                    base_url=signing.base_url,
                    security_key=signing.security_key,
                )
        return cast("SignedUrlIssuerBase", self._instances["url_signer"])

    # =========================================================================
    # Repositories
    # =========================================================================

    def get_upload_session_repository(self) -> UploadSessionRepository:
        collections = self._settings.document_db.collections
        return UploadSessionRepository(self.get_document_db(), collections.upload_sessions)

    def get_profile_repository(self) -> EncodingProfileRepository:
        collections = self._settings.document_db.collections
        return EncodingProfileRepository(self.get_document_db(), collections.encoding_profiles)

    def get_job_repository(self) -> JobRepository:
        collections = self._settings.document_db.collections
        return JobRepository(
            self.get_document_db(),
            collections.transcoding_jobs,
            collections.renditions,
            status_message_limit=self._settings.worker.status_message_limit,
        )

    def get_thumbnail_repository(self) -> ThumbnailRepository:
        collections = self._settings.document_db.collections
        return ThumbnailRepository(self.get_document_db(), collections.thumbnails)

    async def ensure_buckets(self) -> None:
        """Create every configured bucket that is missing."""
        blob = self.get_blob_storage()
        buckets = self._settings.blob_storage.buckets
        for name in (buckets.chunks, buckets.uploads, buckets.renditions, buckets.thumbnails):
            if await blob.ensure_bucket(name):
                logger.info("Created bucket", extra={"bucket": name})

    async def ensure_indexes(self) -> None:
        """Create the lookup indexes repositories and the queue query by."""
        db = self.get_document_db()
        collections = self._settings.document_db.collections
        await db.create_index(collections.upload_sessions, [("owner_id", 1)])
        await db.create_index(collections.transcoding_jobs, [("owner_id", 1)])
        await db.create_index(
            collections.transcoding_jobs, [("session_id", 1), ("created_at", -1)]
        )
        await db.create_index(collections.renditions, [("job_id", 1)])
        await db.create_index(
            collections.thumbnails, [("session_id", 1), ("display_order", 1)]
        )

        queue = self.get_job_queue()
        if isinstance(queue, MongoMessageQueue):
            await queue.ensure_indexes()

    async def close_all(self) -> None:
        """Close all service connections."""
        for name, instance in self._instances.items():
            close = getattr(instance, "close", None)
            if close is None:
                continue
            try:
                result = close()
                if hasattr(result, "__await__"):
                    await result
            except Exception as e:
                logger.warning("Failed to close", extra={"instance": name, "error": str(e)})

        self._instances.clear()


class _FactoryHolder:
    """Holder for the factory singleton to avoid global statements."""

    instance: InfrastructureFactory | None = None


def get_factory(settings: Settings | None = None) -> InfrastructureFactory:
    """Get or create the infrastructure factory singleton.

    Args:
        settings: Settings to use. Required on first call.

    Returns:
        Infrastructure factory instance.

    Raises:
        ValueError: If settings not provided on first call.
    """
    if _FactoryHolder.instance is None:
        if settings is None:
            raise ValueError("Settings required to initialize factory")
        _FactoryHolder.instance = InfrastructureFactory(settings)

    return _FactoryHolder.instance


def reset_factory() -> None:
    """Reset the factory singleton (for testing)."""
    _FactoryHolder.instance = None
