"""MongoDB-backed work queue using leased documents."""

import time
import uuid
from datetime import UTC, datetime, timedelta
from typing import Any

from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from vidpipe.commons.infrastructure.blob.base import HealthStatus
from vidpipe.commons.infrastructure.queue.base import (
    DESERIALIZATION_FAILED,
    M,
    MessageHandle,
    MessageQueueBase,
    QueuedMessage,
    QueueUnavailableError,
    truncate,
)
from vidpipe.commons.telemetry import get_logger

logger = get_logger(__name__)


class MongoMessageQueue(MessageQueueBase[M]):
    """Queue stored as one document per message.

    A consume atomically claims the oldest document whose ``visible_at`` has
    passed, pushing ``visible_at`` forward by the visibility timeout and
    stamping a fresh ``lock_token``. Ack and dead-letter only succeed while
    the caller's token is still current, so a consumer whose lease expired
    cannot settle a message that was redelivered to someone else.
    """

    def __init__(
        self,
        message_type: type[M],
        connection_string: str,
        database_name: str,
        collection: str = "transcoding_queue",
        dead_letter_collection: str = "transcoding_queue_dead_letters",
        visibility_timeout_seconds: float = 300.0,
        field_limit: int = 4096,
    ) -> None:
        """Initialize the queue.

        Args:
            message_type: Pydantic model payloads decode into.
            connection_string: MongoDB connection URI.
            database_name: Database holding the queue collections.
            collection: Live message collection.
            dead_letter_collection: Terminal collection for dead letters.
            visibility_timeout_seconds: Lease length for a consumed message.
            field_limit: Maximum length of dead-letter reason and description.
        """
        super().__init__(message_type, field_limit)
        self._client: AsyncIOMotorClient[dict[str, Any]] = AsyncIOMotorClient(
            connection_string, tz_aware=True
        )
        self._db: AsyncIOMotorDatabase[dict[str, Any]] = self._client[database_name]
        self._messages = self._db[collection]
        self._dead_letters = self._db[dead_letter_collection]
        self._visibility_timeout = timedelta(seconds=visibility_timeout_seconds)

    async def ensure_indexes(self) -> None:
        """Create the index consume relies on."""
        await self._messages.create_index(
            [("visible_at", ASCENDING), ("enqueued_at", ASCENDING)],
            name="visible_enqueued",
        )

    async def publish(self, message: M, message_id: str) -> None:
        """Insert a message, visible immediately."""
        now = datetime.now(UTC)
        try:
            await self._messages.insert_one(
                {
                    "_id": str(uuid.uuid4()),
                    "message_id": message_id,
                    "body": self._encode(message),
                    "enqueued_at": now,
                    "visible_at": now,
                    "lock_token": None,
                    "delivery_count": 0,
                }
            )
        except PyMongoError as e:
            raise QueueUnavailableError("publish", str(e)) from e

    async def consume(self) -> QueuedMessage[M] | None:
        """Lease the oldest visible message."""
        while True:
            now = datetime.now(UTC)
            token = str(uuid.uuid4())
            try:
                doc = await self._messages.find_one_and_update(
                    {"visible_at": {"$lte": now}},
                    {
                        "$set": {
                            "visible_at": now + self._visibility_timeout,
                            "lock_token": token,
                        },
                        "$inc": {"delivery_count": 1},
                    },
                    sort=[("enqueued_at", ASCENDING)],
                    return_document=ReturnDocument.AFTER,
                )
            except PyMongoError as e:
                raise QueueUnavailableError("consume", str(e)) from e

            if doc is None:
                return None

            handle = MessageHandle(
                key=str(doc["_id"]),
                message_id=doc["message_id"],
                lock_token=token,
                delivery_count=int(doc["delivery_count"]),
            )
            message, error = self._try_decode(doc["body"])
            if message is not None:
                return QueuedMessage(message=message, handle=handle)

            logger.error(
                "Dead-lettering undecodable message",
                extra={"message_id": handle.message_id, "error": error},
            )
            await self.dead_letter(handle, DESERIALIZATION_FAILED, error or "")

    async def ack(self, handle: MessageHandle) -> bool:
        """Delete the message if the lease is still ours."""
        try:
            result = await self._messages.delete_one(
                {"_id": handle.key, "lock_token": handle.lock_token}
            )
        except PyMongoError as e:
            raise QueueUnavailableError("ack", str(e)) from e

        if result.deleted_count == 0:
            logger.warning(
                "Ack ignored, lease lost", extra={"message_id": handle.message_id}
            )
            return False
        return True

    async def dead_letter(
        self,
        handle: MessageHandle,
        reason: str,
        description: str,
    ) -> bool:
        """Move the message to the dead-letter collection.

        The dead-letter copy is written before the live document is
        removed, so a failure in between leaves the message leased rather
        than lost.
        """
        lease = {"_id": handle.key, "lock_token": handle.lock_token}
        try:
            doc = await self._messages.find_one(lease)
            if doc is None:
                logger.warning(
                    "Dead-letter ignored, lease lost",
                    extra={"message_id": handle.message_id},
                )
                return False

            await self._dead_letters.replace_one(
                {"_id": doc["_id"]},
                {
                    "message_id": doc["message_id"],
                    "body": doc["body"],
                    "reason": truncate(reason, self._field_limit),
                    "description": truncate(description, self._field_limit),
                    "delivery_count": doc["delivery_count"],
                    "dead_lettered_at": datetime.now(UTC),
                },
                upsert=True,
            )

            result = await self._messages.delete_one(lease)
            if result.deleted_count == 0:
                # Redelivered to another consumer between the two writes
                await self._dead_letters.delete_one({"_id": doc["_id"]})
                logger.warning(
                    "Dead-letter withdrawn, lease lost",
                    extra={"message_id": handle.message_id},
                )
                return False
        except PyMongoError as e:
            raise QueueUnavailableError("dead_letter", str(e)) from e
        return True

    async def health_check(self) -> HealthStatus:
        """Check service health."""
        start = time.perf_counter()
        try:
            await self._client.admin.command("ping")
        except Exception as e:
            return HealthStatus(
                healthy=False,
                latency_ms=(time.perf_counter() - start) * 1000,
                message=f"Queue health check failed: {e}",
                details={"error": str(e)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=(time.perf_counter() - start) * 1000,
            message="Queue is healthy",
        )

    async def close(self) -> None:
        """Close the client connection."""
        self._client.close()
