"""Thumbnail storage and default selection."""

from vidpipe.commons.infrastructure.blob.base import BlobStorageBase
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import get_logger
from vidpipe.domain.exceptions import NotFoundException
from vidpipe.domain.models.thumbnail import Thumbnail
from vidpipe.domain.models.upload import UploadSession
from vidpipe.domain.value_objects.storage_paths import thumbnail_path
from vidpipe.infrastructure.repositories.thumbnails import (
    ThumbnailRepository,
    thumbnail_id_for,
)
from vidpipe.infrastructure.repositories.upload_sessions import UploadSessionRepository


def _flag_default(thumbnails: list[Thumbnail], default_id: str | None) -> list[Thumbnail]:
    return [t.model_copy(update={"is_default": t.id == default_id}) for t in thumbnails]


class ThumbnailService:
    """Stores captured frames and tracks the default one per upload.

    The default is a single pointer on the upload session, so switching it
    is one write and two thumbnails can never both be the default.
    """

    def __init__(
        self,
        thumbnails: ThumbnailRepository,
        sessions: UploadSessionRepository,
        blob_storage: BlobStorageBase,
        settings: Settings,
    ) -> None:
        self._thumbnails = thumbnails
        self._sessions = sessions
        self._blob = blob_storage
        self._bucket = settings.blob_storage.buckets.thumbnails
        self._logger = get_logger(__name__)

    async def add_thumbnail(
        self,
        session_id: str,
        data: bytes,
        capture_seconds: float,
        display_order: int,
        is_default: bool = False,
        content_type: str = "image/jpeg",
    ) -> Thumbnail:
        """Store an image and its thumbnail row.

        Args:
            session_id: Upload the frame was captured from.
            data: Encoded image.
            capture_seconds: Offset into the source.
            display_order: Position among the upload's thumbnails.
            is_default: Make this the upload's default thumbnail.
            content_type: MIME type of ``data``.

        Returns:
            The stored thumbnail.
        """
        path = thumbnail_path(session_id, display_order)
        await self._blob.upload(self._bucket, path, data, content_type=content_type)

        thumbnail = Thumbnail(
            id=thumbnail_id_for(session_id, display_order),
            session_id=session_id,
            storage_path=path,
            capture_seconds=capture_seconds,
            display_order=display_order,
        )
        await self._thumbnails.save(thumbnail)

        if is_default:
            await self._sessions.set_default_thumbnail(session_id, thumbnail.id, path)
            thumbnail = thumbnail.model_copy(update={"is_default": True})
        return thumbnail

    async def list_thumbnails(self, session_id: str) -> list[Thumbnail]:
        """Thumbnails of an upload in display order, default flagged."""
        session = await self._require_session(session_id)
        thumbnails = await self._thumbnails.list_for_session(session_id)
        return _flag_default(thumbnails, session.default_thumbnail_id)

    async def get_default_thumbnail(self, session_id: str) -> Thumbnail | None:
        session = await self._require_session(session_id)
        if session.default_thumbnail_id is None:
            return None
        thumbnail = await self._thumbnails.get(session.default_thumbnail_id)
        if thumbnail is None:
            return None
        return thumbnail.model_copy(update={"is_default": True})

    async def set_default_thumbnail(self, session_id: str, thumbnail_id: str) -> Thumbnail:
        """Make one thumbnail the default, replacing the previous default.

        Raises:
            NotFoundException: If the thumbnail does not exist for this upload.
        """
        thumbnail = await self._thumbnails.get(thumbnail_id)
        if thumbnail is None or thumbnail.session_id != session_id:
            raise NotFoundException("Thumbnail", thumbnail_id, f"upload {session_id}")

        updated = await self._sessions.set_default_thumbnail(
            session_id, thumbnail.id, thumbnail.storage_path
        )
        if updated is None:
            raise NotFoundException("Upload session", session_id)

        self._logger.info(
            "Default thumbnail set",
            extra={"session_id": session_id, "thumbnail_id": thumbnail_id},
        )
        return thumbnail.model_copy(update={"is_default": True})

    async def _require_session(self, session_id: str) -> UploadSession:
        session = await self._sessions.get(session_id)
        if session is None:
            raise NotFoundException("Upload session", session_id)
        return session
