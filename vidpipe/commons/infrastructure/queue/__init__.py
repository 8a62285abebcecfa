"""Work queue abstractions and implementations."""

from vidpipe.commons.infrastructure.queue.base import (
    DESERIALIZATION_FAILED,
    DeadLetter,
    MessageHandle,
    MessageQueueBase,
    QueuedMessage,
    QueueUnavailableError,
    truncate,
)
from vidpipe.commons.infrastructure.queue.memory_provider import InMemoryMessageQueue
from vidpipe.commons.infrastructure.queue.mongodb_provider import MongoMessageQueue

__all__ = [
    # Base classes
    "MessageQueueBase",
    "MessageHandle",
    "QueuedMessage",
    "DeadLetter",
    "truncate",
    "DESERIALIZATION_FAILED",
    # Implementations
    "InMemoryMessageQueue",
    "MongoMessageQueue",
    # Exceptions
    "QueueUnavailableError",
]
