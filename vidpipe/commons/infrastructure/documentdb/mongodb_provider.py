"""MongoDB implementation of document database."""

import time
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ReturnDocument

from vidpipe.commons.infrastructure.blob.base import HealthStatus
from vidpipe.commons.infrastructure.documentdb.base import DocumentDBBase


def _to_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Store the domain ``id`` as MongoDB's ``_id``."""
    doc = document.copy()
    if "id" in doc:
        doc["_id"] = doc.pop("id")
    return doc


def _from_mongo(document: dict[str, Any]) -> dict[str, Any]:
    """Restore the domain ``id`` from ``_id``."""
    doc = dict(document)
    doc["id"] = str(doc.pop("_id"))
    return doc


class MongoDBDocumentDB(DocumentDBBase):
    """MongoDB implementation of document database.

    Uses Motor for async operations. The client is timezone-aware so
    datetimes round-trip as UTC-aware values.
    """

    def __init__(
        self,
        connection_string: str,
        database_name: str,
    ) -> None:
        """Initialize MongoDB client.

        Args:
            connection_string: MongoDB connection URI.
            database_name: Name of the database to use.
        """
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._database_name = database_name

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document, using its 'id' as '_id'."""
        result = await self._db[collection].insert_one(_to_mongo(document))
        return str(result.inserted_id)

    async def upsert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Replace the document with the same id, inserting if absent."""
        doc = _to_mongo(document)
        await self._db[collection].replace_one({"_id": doc["_id"]}, doc, upsert=True)
        return str(doc["_id"])

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID."""
        doc = await self._db[collection].find_one({"_id": document_id})
        return _from_mongo(doc) if doc else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters."""
        cursor = self._db[collection].find(_to_mongo(filters))
        if sort:
            cursor = cursor.sort(sort)
        cursor = cursor.skip(skip).limit(limit)
        return [_from_mongo(doc) async for doc in cursor]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""
        doc = await self._db[collection].find_one(_to_mongo(filters))
        return _from_mongo(doc) if doc else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document."""
        result = await self._db[collection].update_one(
            {"_id": document_id},
            {"$set": _to_mongo(updates)},
        )
        return bool(result.matched_count > 0)

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        set_fields: dict[str, Any] | None = None,
        add_to_set: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Atomically update one document and return it."""
        operations: dict[str, Any] = {}
        if set_fields:
            operations["$set"] = set_fields
        if add_to_set:
            operations["$addToSet"] = add_to_set
        if not operations:
            return await self.find_one(collection, filters)

        doc = await self._db[collection].find_one_and_update(
            _to_mongo(filters),
            operations,
            return_document=ReturnDocument.AFTER,
        )
        return _from_mongo(doc) if doc else None

    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        """Set fields on every matching document."""
        result = await self._db[collection].update_many(
            _to_mongo(filters),
            {"$set": updates},
        )
        return int(result.modified_count)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document."""
        result = await self._db[collection].delete_one({"_id": document_id})
        return bool(result.deleted_count > 0)

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""
        if filters:
            return int(await self._db[collection].count_documents(_to_mongo(filters)))
        return int(await self._db[collection].estimated_document_count())

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection."""
        index_name = await self._db[collection].create_index(
            fields,
            unique=unique,
            name=name,
        )
        return str(index_name)

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"MongoDB health check failed: {e}",
                details={"database": self._database_name, "error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="MongoDB is healthy",
            details={"database": self._database_name},
        )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
