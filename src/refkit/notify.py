"""Fan notifications out to every stored conversation reference."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field

from refkit.models.reference import ConversationReference
from refkit.store.base import ConversationReferenceStore
from refkit.telemetry.base import Attr, SpanKind, TelemetryProvider
from refkit.telemetry.noop import NoopTelemetryProvider

logger = logging.getLogger("refkit.notify")

SendFn = Callable[[ConversationReference], Awaitable[Any]]


class BroadcastResult(BaseModel):
    """Outcome of a :func:`broadcast`."""

    sent: int = 0
    failed: int = 0
    errors: list[str] = Field(default_factory=list)


def _describe(reference: ConversationReference) -> str:
    conversation = reference.get("conversation") or {}
    return str(conversation.get("id") or reference.get("id") or "<unknown>")


async def broadcast(
    store: ConversationReferenceStore,
    send: SendFn,
    *,
    page_size: int = 10,
    telemetry: TelemetryProvider | None = None,
) -> BroadcastResult:
    """Await ``send(reference)`` for every reference in *store*.

    A failing send is logged and counted; the broadcast goes on. A
    :class:`~refkit.errors.BackendError` from the store stops it and
    propagates.
    """
    tel = telemetry or NoopTelemetryProvider()
    result = BroadcastResult()
    attrs = {Attr.STORE_BACKEND: store.backend, Attr.STORE_PAGE_SIZE: page_size}
    with tel.span(SpanKind.NOTIFY_BROADCAST, "notify.broadcast", attributes=attrs) as span_id:
        async for reference in store.iter_references(page_size):
            try:
                await send(reference)
            except Exception as exc:
                target = _describe(reference)
                logger.warning("Notification to %s failed: %s", target, exc)
                result.failed += 1
                result.errors.append(f"{target}: {exc}")
            else:
                result.sent += 1
        tel.set_attribute(span_id, Attr.NOTIFY_SENT, result.sent)
        tel.set_attribute(span_id, Attr.NOTIFY_FAILED, result.failed)
    return result


async def find_reference(
    store: ConversationReferenceStore,
    predicate: Callable[[ConversationReference], bool],
    *,
    page_size: int | None = None,
) -> ConversationReference | None:
    """Return the first stored reference matching *predicate*, scanning page by page."""
    async for reference in store.iter_references(page_size):
        if predicate(reference):
            return reference
    return None
