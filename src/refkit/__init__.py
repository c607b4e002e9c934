"""refkit - Pure async Python library for persisting bot conversation references."""

from refkit._version import __version__
from refkit.activity import (
    build_conversation_reference,
    is_bot_added,
    is_bot_removed,
    track_activity,
)
from refkit.config import BlobStoreConfig, CosmosStoreConfig
from refkit.errors import BackendError, RefKitError, UserIdResolutionNotImplementedError
from refkit.identity import MockUserIdResolver, UnconfiguredUserIdResolver, UserIdResolver
from refkit.models import ActivityType, AddOptions, ConversationReference, ConversationType, Page
from refkit.notify import BroadcastResult, broadcast, find_reference
from refkit.store.base import ConversationReferenceStore
from refkit.store.keys import normalize_blob_key, normalize_document_key, reference_key
from refkit.store.memory import InMemoryConversationReferenceStore
from refkit.telemetry import (
    Attr,
    ConsoleTelemetryProvider,
    MockTelemetryProvider,
    NoopTelemetryProvider,
    SpanKind,
    TelemetryProvider,
)

__all__ = [
    "__version__",
    # Store
    "BlobConversationReferenceStore",
    "ConversationReferenceStore",
    "CosmosConversationReferenceStore",
    "InMemoryConversationReferenceStore",
    # Models
    "ActivityType",
    "AddOptions",
    "ConversationReference",
    "ConversationType",
    "Page",
    # Config
    "BlobStoreConfig",
    "CosmosStoreConfig",
    # Errors
    "BackendError",
    "RefKitError",
    "UserIdResolutionNotImplementedError",
    # Keys
    "normalize_blob_key",
    "normalize_document_key",
    "reference_key",
    # Identity
    "MockUserIdResolver",
    "UnconfiguredUserIdResolver",
    "UserIdResolver",
    # Activity
    "build_conversation_reference",
    "is_bot_added",
    "is_bot_removed",
    "track_activity",
    # Notify
    "BroadcastResult",
    "broadcast",
    "find_reference",
    # Telemetry
    "Attr",
    "ConsoleTelemetryProvider",
    "MockTelemetryProvider",
    "NoopTelemetryProvider",
    "SpanKind",
    "TelemetryProvider",
]


def __getattr__(name: str) -> object:
    if name == "BlobConversationReferenceStore":
        from refkit.store.blob import BlobConversationReferenceStore

        return BlobConversationReferenceStore
    if name == "CosmosConversationReferenceStore":
        from refkit.store.cosmos import CosmosConversationReferenceStore

        return CosmosConversationReferenceStore
    raise AttributeError(f"module 'refkit' has no attribute {name}")
