"""Shared plumbing for document-backed repositories."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import UTC, datetime

from pymongo.errors import PyMongoError

from vidpipe.commons.infrastructure.documentdb.base import DocumentDBBase
from vidpipe.domain.exceptions import TransientInfraException


def utc_now_iso() -> str:
    """Timestamp in the same JSON form model_dump(mode="json") produces."""
    return datetime.now(UTC).isoformat().replace("+00:00", "Z")


class DocumentRepository:
    """Base for repositories bound to one document collection."""

    def __init__(self, document_db: DocumentDBBase, collection: str) -> None:
        self._db = document_db
        self._collection = collection

    @asynccontextmanager
    async def _guard(self, operation: str) -> AsyncIterator[None]:
        """Surface driver failures as transient infrastructure errors."""
        try:
            yield
        except PyMongoError as e:
            raise TransientInfraException(
                f"{self._collection}.{operation}", str(e)
            ) from e
