"""In-process document database with MongoDB-like filter semantics."""

import asyncio
import copy
import uuid
from collections.abc import Callable
from typing import Any

from vidpipe.commons.infrastructure.blob.base import HealthStatus
from vidpipe.commons.infrastructure.documentdb.base import DocumentDBBase

_MISSING = object()

_OPERATORS: dict[str, Callable[[Any, Any], bool]] = {
    "$in": lambda value, arg: value in arg,
    "$nin": lambda value, arg: value not in arg,
    "$ne": lambda value, arg: value != arg,
    "$lt": lambda value, arg: value is not _MISSING and value < arg,
    "$lte": lambda value, arg: value is not _MISSING and value <= arg,
    "$gt": lambda value, arg: value is not _MISSING and value > arg,
    "$gte": lambda value, arg: value is not _MISSING and value >= arg,
}


def matches(document: dict[str, Any], filters: dict[str, Any]) -> bool:
    """Evaluate a MongoDB-style filter against a document."""
    for field, condition in filters.items():
        value = document.get(field, _MISSING)
        if isinstance(condition, dict) and condition and all(
            key.startswith("$") for key in condition
        ):
            for operator, argument in condition.items():
                try:
                    check = _OPERATORS[operator]
                except KeyError:
                    raise ValueError(f"Unsupported filter operator: {operator}") from None
                if not check(value, argument):
                    return False
        elif value is _MISSING:
            if condition is not None:
                return False
        elif value != condition:
            return False
    return True


class InMemoryDocumentDB(DocumentDBBase):
    """Dictionary-backed document database.

    Every mutation runs under one asyncio lock, which makes
    ``find_one_and_update`` atomic with respect to other coroutines in the
    same event loop. Returned documents are deep copies.
    """

    def __init__(self) -> None:
        self._collections: dict[str, dict[str, dict[str, Any]]] = {}
        self._lock = asyncio.Lock()

    def _collection(self, name: str) -> dict[str, dict[str, Any]]:
        return self._collections.setdefault(name, {})

    def _select(
        self,
        collection: str,
        filters: dict[str, Any],
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = [d for d in self._collection(collection).values() if matches(d, filters)]
        for field, direction in reversed(sort or []):
            docs.sort(
                key=lambda d, f=field: (d.get(f) is not None, d.get(f)),
                reverse=direction < 0,
            )
        return docs

    async def insert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        doc = copy.deepcopy(document)
        doc_id = str(doc.setdefault("id", str(uuid.uuid4())))
        async with self._lock:
            docs = self._collection(collection)
            if doc_id in docs:
                raise ValueError(f"Duplicate id {doc_id} in {collection}")
            docs[doc_id] = doc
        return doc_id

    async def upsert(
        self,
        collection: str,
        document: dict[str, Any],
    ) -> str:
        doc = copy.deepcopy(document)
        doc_id = str(doc["id"])
        async with self._lock:
            self._collection(collection)[doc_id] = doc
        return doc_id

    async def find_by_id(
        self,
        collection: str,
        document_id: str,
    ) -> dict[str, Any] | None:
        doc = self._collection(collection).get(document_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def find(
        self,
        collection: str,
        filters: dict[str, Any],
        skip: int = 0,
        limit: int = 100,
        sort: list[tuple[str, int]] | None = None,
    ) -> list[dict[str, Any]]:
        docs = self._select(collection, filters, sort)
        return [copy.deepcopy(d) for d in docs[skip : skip + limit]]

    async def find_one(
        self,
        collection: str,
        filters: dict[str, Any],
    ) -> dict[str, Any] | None:
        docs = self._select(collection, filters)
        return copy.deepcopy(docs[0]) if docs else None

    async def update(
        self,
        collection: str,
        document_id: str,
        updates: dict[str, Any],
    ) -> bool:
        async with self._lock:
            doc = self._collection(collection).get(document_id)
            if doc is None:
                return False
            doc.update(copy.deepcopy(updates))
            return True

    async def find_one_and_update(
        self,
        collection: str,
        filters: dict[str, Any],
        set_fields: dict[str, Any] | None = None,
        add_to_set: dict[str, Any] | None = None,
    ) -> dict[str, Any] | None:
        async with self._lock:
            docs = self._select(collection, filters)
            if not docs:
                return None
            doc = docs[0]
            doc.update(copy.deepcopy(set_fields or {}))
            for field, value in (add_to_set or {}).items():
                values = doc.setdefault(field, [])
                if value not in values:
                    values.append(value)
            return copy.deepcopy(doc)

    async def update_many(
        self,
        collection: str,
        filters: dict[str, Any],
        updates: dict[str, Any],
    ) -> int:
        async with self._lock:
            docs = self._select(collection, filters)
            for doc in docs:
                doc.update(copy.deepcopy(updates))
            return len(docs)

    async def delete(
        self,
        collection: str,
        document_id: str,
    ) -> bool:
        async with self._lock:
            return self._collection(collection).pop(document_id, None) is not None

    async def count(
        self,
        collection: str,
        filters: dict[str, Any] | None = None,
    ) -> int:
        return len(self._select(collection, filters or {}))

    async def create_index(
        self,
        collection: str,
        fields: list[tuple[str, int]],
        unique: bool = False,
        name: str | None = None,
    ) -> str:
        return name or "_".join(f"{field}_{direction}" for field, direction in fields)

    async def health_check(self) -> HealthStatus:
        return HealthStatus(
            healthy=True,
            latency_ms=0.0,
            message="In-memory document DB is healthy",
            details={"collections": str(len(self._collections))},
        )
