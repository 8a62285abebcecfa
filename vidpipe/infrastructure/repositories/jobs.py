"""Transcoding job and rendition persistence with one-way status transitions."""

from vidpipe.commons.infrastructure.documentdb.base import DocumentDBBase
from vidpipe.commons.infrastructure.queue.base import truncate
from vidpipe.domain.models.job import ALLOWED_PREDECESSORS, JobStatus, TranscodingJob
from vidpipe.domain.models.rendition import VideoRendition
from vidpipe.infrastructure.repositories.base import DocumentRepository, utc_now_iso

COMPLETED_MESSAGE = "Transcoding completed successfully."


def _predecessors(status: JobStatus) -> dict[str, list[str]]:
    return {"$in": [s.value for s in ALLOWED_PREDECESSORS[status]]}


class JobRepository(DocumentRepository):
    """Jobs plus their renditions.

    Status writes are conditional on the current status being an allowed
    predecessor, so COMPLETED and FAILED are absorbing. Progress writes are
    additionally conditional on not lowering the stored progress.
    """

    def __init__(
        self,
        document_db: DocumentDBBase,
        collection: str,
        renditions_collection: str,
        status_message_limit: int = 1000,
    ) -> None:
        super().__init__(document_db, collection)
        self._renditions = renditions_collection
        self._message_limit = status_message_limit

    async def add(self, job: TranscodingJob) -> None:
        async with self._guard("add"):
            await self._db.insert(self._collection, job.model_dump(mode="json"))

    async def get(self, job_id: str) -> TranscodingJob | None:
        async with self._guard("get"):
            doc = await self._db.find_by_id(self._collection, job_id)
        return TranscodingJob.model_validate(doc) if doc else None

    async def list_for_owner(self, owner_id: str, limit: int = 100) -> list[TranscodingJob]:
        """Jobs of one owner, newest first."""
        async with self._guard("list_for_owner"):
            docs = await self._db.find(
                self._collection,
                {"owner_id": owner_id},
                limit=limit,
                sort=[("created_at", -1)],
            )
        return [TranscodingJob.model_validate(d) for d in docs]

    async def list_for_session(
        self,
        session_id: str,
        status: JobStatus | None = None,
        limit: int = 100,
    ) -> list[TranscodingJob]:
        """Jobs created from one upload, newest first."""
        filters: dict[str, object] = {"session_id": session_id}
        if status is not None:
            filters["status"] = status.value
        async with self._guard("list_for_session"):
            docs = await self._db.find(
                self._collection, filters, limit=limit, sort=[("created_at", -1)]
            )
        return [TranscodingJob.model_validate(d) for d in docs]

    async def report_progress(
        self,
        job_id: str,
        progress: int,
        status_message: str,
    ) -> TranscodingJob | None:
        """Record an IN_PROGRESS checkpoint.

        Returns:
            The updated job, or None if the job is terminal or the write
            would lower its progress.
        """
        async with self._guard("report_progress"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {
                    "id": job_id,
                    "status": _predecessors(JobStatus.IN_PROGRESS),
                    "progress": {"$lte": progress},
                },
                set_fields={
                    "status": JobStatus.IN_PROGRESS.value,
                    "progress": progress,
                    "status_message": truncate(status_message, self._message_limit),
                    "updated_at": utc_now_iso(),
                },
            )
        return TranscodingJob.model_validate(doc) if doc else None

    async def complete(
        self,
        job_id: str,
        renditions: list[VideoRendition],
        status_message: str = COMPLETED_MESSAGE,
    ) -> TranscodingJob | None:
        """Store renditions and mark the job COMPLETED.

        Renditions are upserted by deterministic id first, so a repeated
        completion neither duplicates rows nor leaves a COMPLETED job
        without them. Completing an already-completed job is a no-op.

        Returns:
            The job after the call, or None if it does not exist or FAILED.
        """
        current = await self.get(job_id)
        if current is None or current.status == JobStatus.FAILED:
            return None
        if current.status == JobStatus.COMPLETED:
            return current

        async with self._guard("complete"):
            for rendition in renditions:
                await self._db.upsert(self._renditions, rendition.model_dump(mode="json"))

            now = utc_now_iso()
            doc = await self._db.find_one_and_update(
                self._collection,
                {"id": job_id, "status": _predecessors(JobStatus.COMPLETED)},
                set_fields={
                    "status": JobStatus.COMPLETED.value,
                    "progress": 100,
                    "status_message": truncate(status_message, self._message_limit),
                    "updated_at": now,
                    "completed_at": now,
                },
            )
        if doc:
            return TranscodingJob.model_validate(doc)

        current = await self.get(job_id)
        if current is not None and current.status == JobStatus.COMPLETED:
            return current
        return None

    async def fail(self, job_id: str, error_message: str) -> TranscodingJob | None:
        """Mark the job FAILED with a truncated error.

        Returns:
            The failed job, or None if it was already terminal or missing.
        """
        async with self._guard("fail"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {"id": job_id, "status": _predecessors(JobStatus.FAILED)},
                set_fields={
                    "status": JobStatus.FAILED.value,
                    "status_message": truncate(error_message, self._message_limit),
                    "updated_at": utc_now_iso(),
                },
            )
        return TranscodingJob.model_validate(doc) if doc else None

    async def renditions_for_job(self, job_id: str) -> list[VideoRendition]:
        async with self._guard("renditions_for_job"):
            docs = await self._db.find(
                self._renditions, {"job_id": job_id}, sort=[("rendition_type", 1)]
            )
        return [VideoRendition.model_validate(d) for d in docs]

    async def completed_renditions_for_session(
        self, session_id: str
    ) -> list[VideoRendition]:
        """Renditions of every COMPLETED job created from one upload."""
        jobs = await self.list_for_session(session_id, status=JobStatus.COMPLETED)
        if not jobs:
            return []
        async with self._guard("completed_renditions_for_session"):
            docs = await self._db.find(
                self._renditions,
                {"job_id": {"$in": [job.id for job in jobs]}},
                limit=1000,
            )
        return [VideoRendition.model_validate(d) for d in docs]
