"""Abstract work queue with lease-based delivery and a dead-letter channel."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, ValidationError

from vidpipe.commons.infrastructure.blob.base import HealthStatus

M = TypeVar("M", bound=BaseModel)

DESERIALIZATION_FAILED = "Deserialization Failed"


class QueueUnavailableError(Exception):
    """Raised when the broker cannot be reached or rejects an operation."""

    def __init__(self, operation: str, reason: str) -> None:
        self.operation = operation
        self.reason = reason
        super().__init__(f"Queue {operation} failed: {reason}")


@dataclass(frozen=True)
class MessageHandle:
    """Opaque broker handle for one delivery of one message.

    Only meaningful to the queue that issued it. A handle whose lease has
    expired and been re-issued to another consumer no longer settles the
    message.
    """

    key: str
    message_id: str
    lock_token: str
    delivery_count: int


@dataclass(frozen=True)
class QueuedMessage(Generic[M]):
    """A decoded message plus the handle used to settle it."""

    message: M
    handle: MessageHandle


@dataclass(frozen=True)
class DeadLetter:
    """A message moved out of circulation."""

    message_id: str
    body: str
    reason: str
    description: str
    delivery_count: int
    dead_lettered_at: datetime


def truncate(text: str, limit: int) -> str:
    """Clip text to a broker field limit."""
    return text if len(text) <= limit else text[:limit]


class MessageQueueBase(ABC, Generic[M]):
    """Publish / consume / acknowledge / dead-letter channel.

    Delivery is at-least-once. A consumed message stays hidden from other
    consumers until its visibility timeout elapses; if it is neither
    acknowledged nor dead-lettered by then it becomes visible again and is
    redelivered. At most one delivery of a message is in flight at a time.

    Payloads that fail to decode into ``message_type`` are dead-lettered
    with reason ``"Deserialization Failed"`` and never returned by
    :meth:`consume`.
    """

    def __init__(self, message_type: type[M], field_limit: int = 4096) -> None:
        self._message_type = message_type
        self._field_limit = field_limit

    def _encode(self, message: M) -> str:
        return message.model_dump_json()

    def _decode(self, body: str) -> M:
        return self._message_type.model_validate_json(body)

    def _try_decode(self, body: str) -> tuple[M | None, str | None]:
        try:
            return self._decode(body), None
        except ValidationError as e:
            return None, str(e)

    @abstractmethod
    async def publish(self, message: M, message_id: str) -> None:
        """Enqueue a message.

        Args:
            message: Payload to send.
            message_id: Broker message id, used for tracing.

        Raises:
            QueueUnavailableError: If the broker rejects the publish.
        """

    @abstractmethod
    async def consume(self) -> QueuedMessage[M] | None:
        """Lease the next visible message.

        Returns:
            The decoded message with its handle, or None if nothing is visible.

        Raises:
            QueueUnavailableError: If the broker cannot be reached.
        """

    @abstractmethod
    async def ack(self, handle: MessageHandle) -> bool:
        """Remove a leased message permanently.

        Returns:
            False if the lease was lost (expired and re-delivered, or already
            settled), True otherwise.
        """

    @abstractmethod
    async def dead_letter(
        self,
        handle: MessageHandle,
        reason: str,
        description: str,
    ) -> bool:
        """Move a leased message to the dead-letter channel.

        Reason and description are truncated to the broker field limit.

        Returns:
            False if the lease was lost, True otherwise.
        """

    @abstractmethod
    async def health_check(self) -> HealthStatus:
        """Check broker health."""

    async def close(self) -> None:  # noqa: B027
        """Release broker resources. No-op by default."""
