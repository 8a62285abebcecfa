"""Abstract base class for document database operations."""

from abc import ABC, abstractmethod
from typing import Any

from vidpipe.commons.infrastructure.blob.base import HealthStatus


class DocumentDBBase(ABC):
    """Abstract base class for document database operations.

    Documents are plain dicts whose ``id`` key is the primary key. Filters
    use the MongoDB query subset: equality plus ``$in``, ``$nin``, ``$ne``,
    ``$lt``, ``$lte``, ``$gt`` and ``$gte``.

    Conditional single-document mutation goes through
    :meth:`find_one_and_update`, which is atomic in every implementation and
    is the building block for compare-and-set style state transitions.
    """

    @abstractmethod
    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert a document.

        Args:
            collection: Collection name.
            document: Document to insert.

        Returns:
            ID of the inserted document.
        """

    @abstractmethod
    async def upsert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        """Insert or fully replace a document keyed by its ``id``.

        Args:
            collection: Collection name.
            document: Document with an ``id`` field.

        Returns:
            ID of the stored document.
        """

    @abstractmethod
    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        """Find a document by ID.

        Returns:
            Document if found, None otherwise.
        """

    @abstractmethod
    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        """Find documents matching filters.

        Args:
            collection: Collection name.
            filters: Query filters.
            skip: Number of documents to skip.
            limit: Maximum documents to return.
            sort: Sort specification [(field, direction)], 1 ascending, -1 descending.

        Returns:
            List of matching documents.
        """

    @abstractmethod
    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        """Find a single document matching filters."""

    @abstractmethod
    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        """Set fields on a document.

        Returns:
            True if a document matched.
        """

    @abstractmethod
    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        set_fields: dict[str, Any] | None = None,
        add_to_set: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        """Atomically update the first document matching filters.

        Args:
            collection: Collection name.
            filters: Match condition, evaluated atomically with the update.
            set_fields: Fields to overwrite.
            add_to_set: Array fields to extend with a value if absent.

        Returns:
            The document after the update, or None if nothing matched.
        """

    @abstractmethod
    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        """Set fields on every matching document.

        Returns:
            Number of documents modified.
        """

    @abstractmethod
    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        """Delete a document.

        Returns:
            True if deleted, False if not found.
        """

    @abstractmethod
    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        """Count documents matching filters."""

    @abstractmethod
    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        """Create an index on the collection.

        Returns:
            Name of the created index.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check service health."""

    async def close(self) -> None:  # noqa: B027
        """Release client resources. No-op by default."""
