"""Document database abstractions and implementations."""

from vidpipe.commons.infrastructure.documentdb.base import DocumentDBBase
from vidpipe.commons.infrastructure.documentdb.memory_provider import (
    InMemoryDocumentDB,
)
from vidpipe.commons.infrastructure.documentdb.mongodb_provider import (
    MongoDBDocumentDB,
)

__all__ = [
    "DocumentDBBase",
    "MongoDBDocumentDB",
    "InMemoryDocumentDB",
]
