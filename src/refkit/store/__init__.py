"""Conversation reference stores."""

from refkit.store.base import ConversationReferenceStore
from refkit.store.keys import normalize_blob_key, normalize_document_key, reference_key
from refkit.store.memory import InMemoryConversationReferenceStore

__all__ = [
    "BlobConversationReferenceStore",
    "ConversationReferenceStore",
    "CosmosConversationReferenceStore",
    "InMemoryConversationReferenceStore",
    "normalize_blob_key",
    "normalize_document_key",
    "reference_key",
]


def __getattr__(name: str) -> object:
    if name == "BlobConversationReferenceStore":
        from refkit.store.blob import BlobConversationReferenceStore

        return BlobConversationReferenceStore
    if name == "CosmosConversationReferenceStore":
        from refkit.store.cosmos import CosmosConversationReferenceStore

        return CosmosConversationReferenceStore
    raise AttributeError(f"module 'refkit.store' has no attribute {name}")
