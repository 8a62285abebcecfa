"""Thumbnail persistence."""

from uuid import NAMESPACE_URL, uuid5

from vidpipe.domain.models.thumbnail import Thumbnail
from vidpipe.infrastructure.repositories.base import DocumentRepository


def thumbnail_id_for(session_id: str, display_order: int) -> str:
    """Deterministic id so re-extraction replaces rather than duplicates."""
    return str(uuid5(NAMESPACE_URL, f"vidpipe:thumbnail:{session_id}:{display_order}"))


class ThumbnailRepository(DocumentRepository):
    """Thumbnail rows. The default flag lives on the upload session."""

    async def save(self, thumbnail: Thumbnail) -> None:
        doc = thumbnail.model_dump(mode="json", exclude={"is_default"})
        async with self._guard("save"):
            await self._db.upsert(self._collection, doc)

    async def get(self, thumbnail_id: str) -> Thumbnail | None:
        async with self._guard("get"):
            doc = await self._db.find_by_id(self._collection, thumbnail_id)
        return Thumbnail.model_validate(doc) if doc else None

    async def list_for_session(self, session_id: str) -> list[Thumbnail]:
        """Thumbnails of one upload in display order."""
        async with self._guard("list_for_session"):
            docs = await self._db.find(
                self._collection,
                {"session_id": session_id},
                sort=[("display_order", 1)],
            )
        return [Thumbnail.model_validate(d) for d in docs]
