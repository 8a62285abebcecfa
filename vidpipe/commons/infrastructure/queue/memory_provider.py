"""In-process queue with the same lease semantics as the broker-backed one."""

import asyncio
import time
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from vidpipe.commons.infrastructure.blob.base import HealthStatus
from vidpipe.commons.infrastructure.queue.base import (
    DESERIALIZATION_FAILED,
    DeadLetter,
    M,
    MessageHandle,
    MessageQueueBase,
    QueuedMessage,
    truncate,
)
from vidpipe.commons.telemetry import get_logger

logger = get_logger(__name__)


@dataclass
class _Envelope:
    key: str
    message_id: str
    body: str
    visible_at: float
    lock_token: str | None = None
    delivery_count: int = 0


class InMemoryMessageQueue(MessageQueueBase[M]):
    """FIFO queue kept in process memory.

    ``clock`` returns seconds on a monotonic scale and can be replaced in
    tests to move past the visibility timeout without sleeping.
    """

    def __init__(
        self,
        message_type: type[M],
        visibility_timeout_seconds: float = 300.0,
        field_limit: int = 4096,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(message_type, field_limit)
        self._visibility_timeout = visibility_timeout_seconds
        self._clock = clock
        self._messages: dict[str, _Envelope] = {}
        self._lock = asyncio.Lock()
        self.dead_letters: list[DeadLetter] = []

    async def publish(self, message: M, message_id: str) -> None:
        self.publish_raw(self._encode(message), message_id)

    def publish_raw(self, body: str, message_id: str) -> None:
        """Enqueue an already-encoded payload."""
        key = str(uuid.uuid4())
        self._messages[key] = _Envelope(
            key=key,
            message_id=message_id,
            body=body,
            visible_at=self._clock(),
        )

    async def consume(self) -> QueuedMessage[M] | None:
        async with self._lock:
            while True:
                now = self._clock()
                envelope = next(
                    (e for e in self._messages.values() if e.visible_at <= now),
                    None,
                )
                if envelope is None:
                    return None

                envelope.lock_token = str(uuid.uuid4())
                envelope.visible_at = now + self._visibility_timeout
                envelope.delivery_count += 1

                message, error = self._try_decode(envelope.body)
                if message is not None:
                    return QueuedMessage(
                        message=message,
                        handle=MessageHandle(
                            key=envelope.key,
                            message_id=envelope.message_id,
                            lock_token=envelope.lock_token,
                            delivery_count=envelope.delivery_count,
                        ),
                    )

                logger.error(
                    "Dead-lettering undecodable message",
                    extra={"message_id": envelope.message_id, "error": error},
                )
                self._move_to_dead_letters(
                    envelope, DESERIALIZATION_FAILED, error or ""
                )

    def _owned(self, handle: MessageHandle) -> _Envelope | None:
        envelope = self._messages.get(handle.key)
        if envelope is None or envelope.lock_token != handle.lock_token:
            return None
        return envelope

    def _move_to_dead_letters(
        self, envelope: _Envelope, reason: str, description: str
    ) -> None:
        del self._messages[envelope.key]
        self.dead_letters.append(
            DeadLetter(
                message_id=envelope.message_id,
                body=envelope.body,
                reason=truncate(reason, self._field_limit),
                description=truncate(description, self._field_limit),
                delivery_count=envelope.delivery_count,
                dead_lettered_at=datetime.now(UTC),
            )
        )

    async def ack(self, handle: MessageHandle) -> bool:
        async with self._lock:
            envelope = self._owned(handle)
            if envelope is None:
                logger.warning(
                    "Ack ignored, lease lost", extra={"message_id": handle.message_id}
                )
                return False
            del self._messages[envelope.key]
            return True

    async def dead_letter(
        self,
        handle: MessageHandle,
        reason: str,
        description: str,
    ) -> bool:
        async with self._lock:
            envelope = self._owned(handle)
            if envelope is None:
                logger.warning(
                    "Dead-letter ignored, lease lost",
                    extra={"message_id": handle.message_id},
                )
                return False
            self._move_to_dead_letters(envelope, reason, description)
            return True

    @property
    def pending_count(self) -> int:
        """Messages still in circulation, leased or not."""
        return len(self._messages)

    async def health_check(self) -> HealthStatus:
        return HealthStatus(
            healthy=True,
            latency_ms=0.0,
            message="In-memory queue is healthy",
            details={"pending": str(self.pending_count)},
        )
