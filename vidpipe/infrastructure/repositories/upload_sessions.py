"""Upload session persistence with atomic chunk bookkeeping."""

import time

from vidpipe.domain.models.upload import UploadSession, UploadStatus
from vidpipe.infrastructure.repositories.base import DocumentRepository, utc_now_iso

_IN_PROGRESS = UploadStatus.IN_PROGRESS.value


class UploadSessionRepository(DocumentRepository):
    """Narrow operations over upload sessions.

    Each mutation is a single conditional ``find_one_and_update`` so
    concurrent chunk writers for one session never lose updates and never
    act on a session that is already completed.
    """

    async def add(self, session: UploadSession) -> None:
        async with self._guard("add"):
            await self._db.insert(self._collection, session.model_dump(mode="json"))

    async def get(self, session_id: str) -> UploadSession | None:
        async with self._guard("get"):
            doc = await self._db.find_by_id(self._collection, session_id)
        return UploadSession.model_validate(doc) if doc else None

    async def list_for_owner(
        self,
        owner_id: str,
        status: UploadStatus | None = None,
        limit: int = 100,
    ) -> list[UploadSession]:
        """Uploads of one owner, newest first."""
        filters: dict[str, object] = {"owner_id": owner_id}
        if status is not None:
            filters["status"] = status.value
        async with self._guard("list_for_owner"):
            docs = await self._db.find(
                self._collection, filters, limit=limit, sort=[("created_at", -1)]
            )
        return [UploadSession.model_validate(d) for d in docs]

    async def add_chunk(self, session_id: str, index: int) -> UploadSession | None:
        """Record a received chunk index; duplicates are absorbed.

        Returns:
            The session after the update, or None if it is not in progress.
        """
        async with self._guard("add_chunk"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {"id": session_id, "status": _IN_PROGRESS},
                set_fields={"updated_at": utc_now_iso()},
                add_to_set={"completed_chunks": index},
            )
        return UploadSession.model_validate(doc) if doc else None

    async def claim_merge(
        self, session_id: str, lease_seconds: float
    ) -> UploadSession | None:
        """Take the exclusive right to merge.

        Succeeds only if no other caller holds an unexpired claim.

        Returns:
            The claimed session, or None if someone else holds the claim or
            the session is no longer in progress.
        """
        now = time.time()
        async with self._guard("claim_merge"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {
                    "id": session_id,
                    "status": _IN_PROGRESS,
                    "merge_lease_expires": {"$lt": now},
                },
                set_fields={"merge_lease_expires": now + lease_seconds},
            )
        return UploadSession.model_validate(doc) if doc else None

    async def release_merge(self, session_id: str) -> None:
        """Drop a merge claim after a failed merge so a later chunk can retry."""
        async with self._guard("release_merge"):
            await self._db.find_one_and_update(
                self._collection,
                {"id": session_id, "status": _IN_PROGRESS},
                set_fields={"merge_lease_expires": 0.0, "updated_at": utc_now_iso()},
            )

    async def complete(
        self, session_id: str, final_asset_path: str
    ) -> UploadSession | None:
        """Move an in-progress session to COMPLETED with its merged path.

        Returns:
            The completed session, or None if it was not in progress.
        """
        now = utc_now_iso()
        async with self._guard("complete"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {"id": session_id, "status": _IN_PROGRESS},
                set_fields={
                    "status": UploadStatus.COMPLETED.value,
                    "final_asset_path": final_asset_path,
                    "merge_lease_expires": 0.0,
                    "updated_at": now,
                    "completed_at": now,
                },
            )
        return UploadSession.model_validate(doc) if doc else None

    async def set_default_thumbnail(
        self,
        session_id: str,
        thumbnail_id: str,
        storage_path: str,
    ) -> UploadSession | None:
        """Point the session at its default thumbnail in one write."""
        async with self._guard("set_default_thumbnail"):
            doc = await self._db.find_one_and_update(
                self._collection,
                {"id": session_id},
                set_fields={
                    "default_thumbnail_id": thumbnail_id,
                    "selected_thumbnail_path": storage_path,
                    "updated_at": utc_now_iso(),
                },
            )
        return UploadSession.model_validate(doc) if doc else None
