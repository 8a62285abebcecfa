"""Playback URL issuance and video detail views."""

from vidpipe.application.dtos.playback import SignedUrlResponse, VideoDetailsResponse
from vidpipe.application.dtos.transcoding import RenditionView, TranscodingJobResponse
from vidpipe.application.services.thumbnails import ThumbnailService
from vidpipe.commons.settings.models import Settings
from vidpipe.commons.telemetry import LogContext, get_logger
from vidpipe.domain.exceptions import NotFoundException
from vidpipe.domain.models.rendition import VideoRendition
from vidpipe.infrastructure.repositories.jobs import JobRepository
from vidpipe.infrastructure.repositories.upload_sessions import UploadSessionRepository
from vidpipe.infrastructure.signing.base import SignedUrlIssuerBase

NO_RENDITIONS_MESSAGE = "No completed renditions found for this video."
SIGNED_MESSAGE = "Signed URL generated successfully."


def order_for_playback(renditions: list[VideoRendition]) -> list[VideoRendition]:
    """Highest bitrate first, then largest frame size."""
    return sorted(renditions, key=lambda r: r.quality_key, reverse=True)


def select_rendition(
    renditions: list[VideoRendition],
    requested_type: str | None,
) -> tuple[VideoRendition | None, bool]:
    """Pick the rendition to play.

    Args:
        renditions: Candidates, already in playback order.
        requested_type: Label such as "HLS_720p", matched case-insensitively.

    Returns:
        The chosen rendition (None only when there are no candidates) and
        whether it is a fallback rather than the requested label.
    """
    if not renditions:
        return None, False
    if requested_type:
        wanted = requested_type.casefold()
        for rendition in renditions:
            if rendition.rendition_type.casefold() == wanted:
                return rendition, False
    return renditions[0], bool(requested_type)


class PlaybackService:
    """Issues time-limited URLs for the best matching completed rendition."""

    def __init__(
        self,
        sessions: UploadSessionRepository,
        jobs: JobRepository,
        thumbnails: ThumbnailService,
        signer: SignedUrlIssuerBase,
        settings: Settings,
    ) -> None:
        self._sessions = sessions
        self._jobs = jobs
        self._thumbnails = thumbnails
        self._signer = signer
        self._logger = get_logger(__name__)

        self._renditions_bucket = settings.blob_storage.buckets.renditions
        self._default_ttl = settings.signing.default_ttl_seconds

    async def get_signed_url(
        self,
        session_id: str,
        requested_type: str | None,
        owner_id: str | None = None,
        ttl_seconds: int | None = None,
    ) -> SignedUrlResponse:
        """Sign a URL for the requested rendition of a video.

        Falls back to the highest quality rendition when the requested
        label does not exist. Having no completed rendition at all is a
        normal outcome, reported with ``success=False``.

        Args:
            session_id: Source upload (video) id.
            requested_type: Rendition label, e.g. "HLS_720p".
            owner_id: Caller, recorded in logs.
            ttl_seconds: URL validity, defaults to the configured TTL.

        Returns:
            The signed URL with every available rendition.

        Raises:
            ValidationException: If ``ttl_seconds`` is not positive.
        """
        with LogContext(session_id=session_id):
            renditions = order_for_playback(
                await self._jobs.completed_renditions_for_session(session_id)
            )
            if not renditions:
                self._logger.warning("No completed renditions", extra={"owner_id": owner_id})
                return SignedUrlResponse(success=False, message=NO_RENDITIONS_MESSAGE)

            target, fell_back = select_rendition(renditions, requested_type)
            assert target is not None

            message = SIGNED_MESSAGE
            if fell_back:
                self._logger.info(
                    "Requested rendition missing, using highest quality",
                    extra={"requested": requested_type, "selected": target.rendition_type},
                )
                message = (
                    f"Requested rendition '{requested_type}' is not available; "
                    f"using '{target.rendition_type}'. {SIGNED_MESSAGE}"
                )

            signed = await self._signer.sign(
                self._renditions_bucket,
                target.storage_path,
                ttl_seconds if ttl_seconds is not None else self._default_ttl,
            )

            self._logger.info(
                "Signed URL issued",
                extra={
                    "rendition_type": target.rendition_type,
                    "owner_id": owner_id,
                    "expires_at": signed.expires_at.isoformat(),
                },
            )
            return SignedUrlResponse(
                success=True,
                url=signed.url,
                message=message,
                rendition_type=target.rendition_type,
                expires_at=signed.expires_at,
                available_renditions=[RenditionView.from_rendition(r) for r in renditions],
            )

    async def get_video_details(self, session_id: str) -> VideoDetailsResponse:
        """Upload summary with thumbnails, playable renditions and latest job.

        Raises:
            NotFoundException: If the upload does not exist.
        """
        session = await self._sessions.get(session_id)
        if session is None:
            raise NotFoundException("Upload session", session_id)

        thumbnails = await self._thumbnails.list_thumbnails(session_id)
        renditions = order_for_playback(
            await self._jobs.completed_renditions_for_session(session_id)
        )
        jobs = await self._jobs.list_for_session(session_id, limit=1)

        return VideoDetailsResponse(
            video_id=session.id,
            owner_id=session.owner_id,
            filename=session.filename,
            size_bytes=session.size_bytes,
            mime_type=session.mime_type,
            upload_status=session.status,
            created_at=session.created_at,
            updated_at=session.updated_at,
            selected_thumbnail=next((t for t in thumbnails if t.is_default), None),
            thumbnails=thumbnails,
            available_renditions=[RenditionView.from_rendition(r) for r in renditions],
            latest_job=TranscodingJobResponse.from_job(jobs[0]) if jobs else None,
        )
