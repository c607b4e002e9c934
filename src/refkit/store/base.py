"""Abstract base class for conversation reference storage."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Generator
from contextlib import contextmanager
from typing import Any, ClassVar

from refkit.models.reference import AddOptions, ConversationReference, Page
from refkit.telemetry.base import Attr, SpanKind, TelemetryProvider
from refkit.telemetry.noop import NoopTelemetryProvider


def resolve_overwrite(options: AddOptions | None, overwrite: bool | None) -> bool:
    """Combine the ``options`` object and ``overwrite=`` keyword of ``add``."""
    if overwrite is not None:
        return overwrite
    if options is not None:
        return options.overwrite
    return False


def check_page_size(page_size: int | None) -> None:
    """Reject a ``page_size`` that could not advance a scan."""
    if page_size is not None and page_size < 1:
        raise ValueError(f"page_size must be a positive integer, got {page_size!r}")


class ConversationReferenceStore(ABC):
    """Persistent storage for Bot Framework conversation references.

    Implement this ABC to plug in any storage backend. The library ships
    with ``InMemoryConversationReferenceStore`` for development and testing,
    ``BlobConversationReferenceStore`` for Azure Blob Storage and
    ``CosmosConversationReferenceStore`` for Azure Cosmos DB.

    Stores are a flat map from logical key to reference. Calls may
    interleave freely; the store does no locking across or within keys.
    """

    backend: ClassVar[str] = "abstract"

    @abstractmethod
    async def add(
        self,
        key: str,
        reference: ConversationReference,
        options: AddOptions | None = None,
        *,
        overwrite: bool | None = None,
    ) -> bool:
        """Add a conversation reference under *key*.

        With ``overwrite`` the reference is written unconditionally and
        ``True`` is returned. Without it the reference is written only if
        *key* is absent; returns ``True`` if inserted, ``False`` if a
        reference already existed. The conditional insert is a read followed
        by a write and is not atomic against concurrent writers.

        Raises:
            BackendError: On any storage failure.
        """
        ...

    @abstractmethod
    async def remove(self, key: str, reference: ConversationReference | None = None) -> bool:
        """Remove the reference at *key*. Returns ``True`` if it existed."""
        ...

    @abstractmethod
    async def list(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> Page:
        """Return one page of stored references.

        Pass the returned ``continuation_token`` back to continue the scan;
        ``None`` means there are no more pages. ``page_size`` is advisory but
        must be positive when given; anything else raises ``ValueError``.
        Records written during a scan may or may not be seen.
        """
        ...

    async def iter_references(
        self, page_size: int | None = None
    ) -> AsyncIterator[ConversationReference]:
        """Yield every stored reference, following continuation tokens."""
        token: str | None = None
        while True:
            page = await self.list(page_size, token)
            for reference in page.data:
                yield reference
            token = page.continuation_token
            if not token:
                return

    async def close(self) -> None:  # noqa: B027
        """Release any client owned by the store."""

    # Telemetry helpers

    @property
    def _tel(self) -> TelemetryProvider:
        return getattr(self, "_telemetry", None) or NoopTelemetryProvider()

    @contextmanager
    def _span(
        self, operation: str, attributes: dict[str, Any] | None = None
    ) -> Generator[str, None, None]:
        attrs: dict[str, Any] = {
            Attr.STORE_OPERATION: operation,
            Attr.STORE_BACKEND: self.backend,
        }
        if attributes:
            attrs.update(attributes)
        name = f"{self.backend}.{operation}"
        with self._tel.span(SpanKind.STORE_QUERY, name, attributes=attrs) as span_id:
            yield span_id
