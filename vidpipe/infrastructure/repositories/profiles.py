"""Read access to encoding profiles."""

from vidpipe.domain.models.profile import EncodingProfile
from vidpipe.infrastructure.repositories.base import DocumentRepository


class EncodingProfileRepository(DocumentRepository):
    """Encoding profiles are administered elsewhere; this side reads them."""

    async def add(self, profile: EncodingProfile) -> None:
        """Store a profile. Used for seeding."""
        async with self._guard("add"):
            await self._db.upsert(self._collection, profile.model_dump(mode="json"))

    async def get(self, profile_id: str) -> EncodingProfile | None:
        async with self._guard("get"):
            doc = await self._db.find_by_id(self._collection, profile_id)
        return EncodingProfile.model_validate(doc) if doc else None

    async def list_active(self) -> list[EncodingProfile]:
        async with self._guard("list_active"):
            docs = await self._db.find(
                self._collection, {"is_active": True}, sort=[("name", 1)]
            )
        return [EncodingProfile.model_validate(d) for d in docs]
