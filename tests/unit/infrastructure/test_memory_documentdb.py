"""Unit tests for the in-memory document database."""

import asyncio

import pytest

from vidpipe.commons.infrastructure.documentdb.memory_provider import matches


class TestMatches:
    """Tests for filter evaluation."""

    def test_equality(self):
        assert matches({"status": "queued"}, {"status": "queued"})
        assert not matches({"status": "queued"}, {"status": "failed"})

    def test_operators(self):
        doc = {"progress": 40, "status": "in_progress"}

        assert matches(doc, {"progress": {"$lte": 40}})
        assert not matches(doc, {"progress": {"$gt": 40}})
        assert matches(doc, {"status": {"$in": ["queued", "in_progress"]}})
        assert matches(doc, {"status": {"$nin": ["failed"]}})
        assert matches(doc, {"status": {"$ne": "completed"}})

    def test_missing_field(self):
        assert matches({}, {"default_thumbnail_id": None})
        assert not matches({}, {"progress": {"$lt": 10}})

    def test_unknown_operator(self):
        with pytest.raises(ValueError):
            matches({"a": 1}, {"a": {"$regex": "x"}})


class TestInMemoryDocumentDB:
    """Tests for InMemoryDocumentDB operations."""

    async def test_insert_and_find_by_id(self, document_db):
        doc_id = await document_db.insert("jobs", {"id": "j-1", "status": "queued"})

        assert doc_id == "j-1"
        assert await document_db.find_by_id("jobs", "j-1") == {"id": "j-1", "status": "queued"}

    async def test_duplicate_insert(self, document_db):
        await document_db.insert("jobs", {"id": "j-1"})

        with pytest.raises(ValueError):
            await document_db.insert("jobs", {"id": "j-1"})

    async def test_returned_documents_are_copies(self, document_db):
        await document_db.insert("jobs", {"id": "j-1", "tags": []})

        found = await document_db.find_by_id("jobs", "j-1")
        found["tags"].append("x")

        assert (await document_db.find_by_id("jobs", "j-1"))["tags"] == []

    async def test_find_sort_and_limit(self, document_db):
        for i, order in enumerate([3, 1, 2]):
            await document_db.insert("thumbs", {"id": f"t-{i}", "order": order})

        docs = await document_db.find("thumbs", {}, limit=2, sort=[("order", 1)])

        assert [d["order"] for d in docs] == [1, 2]

    async def test_find_one_and_update_is_conditional(self, document_db):
        await document_db.insert("jobs", {"id": "j-1", "progress": 50})

        assert (
            await document_db.find_one_and_update(
                "jobs", {"id": "j-1", "progress": {"$lte": 40}}, {"progress": 40}
            )
            is None
        )
        updated = await document_db.find_one_and_update(
            "jobs", {"id": "j-1", "progress": {"$lte": 70}}, {"progress": 70}
        )
        assert updated["progress"] == 70

    async def test_add_to_set(self, document_db):
        await document_db.insert("sessions", {"id": "s-1", "chunks": []})

        await document_db.find_one_and_update("sessions", {"id": "s-1"}, add_to_set={"chunks": 1})
        doc = await document_db.find_one_and_update(
            "sessions", {"id": "s-1"}, add_to_set={"chunks": 1}
        )

        assert doc["chunks"] == [1]

    async def test_concurrent_claims_single_winner(self, document_db):
        await document_db.insert("sessions", {"id": "s-1", "claimed": False})

        results = await asyncio.gather(
            *[
                document_db.find_one_and_update(
                    "sessions", {"id": "s-1", "claimed": False}, {"claimed": True}
                )
                for _ in range(5)
            ]
        )

        assert sum(r is not None for r in results) == 1

    async def test_update_many_and_count(self, document_db):
        await document_db.insert("r", {"id": "a", "job": "j"})
        await document_db.insert("r", {"id": "b", "job": "j"})
        await document_db.insert("r", {"id": "c", "job": "k"})

        assert await document_db.update_many("r", {"job": "j"}, {"seen": True}) == 2
        assert await document_db.count("r", {"seen": True}) == 2

    async def test_delete(self, document_db):
        await document_db.insert("r", {"id": "a"})

        assert await document_db.delete("r", "a") is True
        assert await document_db.delete("r", "a") is False
