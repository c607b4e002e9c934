"""In-memory implementation of ConversationReferenceStore."""

from __future__ import annotations

import copy

from refkit.models.reference import AddOptions, ConversationReference, Page
from refkit.store.base import ConversationReferenceStore, check_page_size, resolve_overwrite
from refkit.telemetry.base import Attr, TelemetryProvider

_DEFAULT_PAGE_SIZE = 100


class InMemoryConversationReferenceStore(ConversationReferenceStore):
    """Dict-backed store for development and testing.

    Continuation tokens are stringified offsets into the insertion order,
    so removing records mid-scan can shift later records past the cursor.
    """

    backend = "memory"

    def __init__(self, *, telemetry: TelemetryProvider | None = None) -> None:
        self._refs: dict[str, ConversationReference] = {}
        self._telemetry = telemetry

    async def get(self, key: str) -> ConversationReference | None:
        ref = self._refs.get(key)
        return copy.deepcopy(ref) if ref is not None else None

    async def add(
        self,
        key: str,
        reference: ConversationReference,
        options: AddOptions | None = None,
        *,
        overwrite: bool | None = None,
    ) -> bool:
        overwrite = resolve_overwrite(options, overwrite)
        with self._span("add", {Attr.STORE_OVERWRITE: overwrite}) as span_id:
            changed = overwrite or key not in self._refs
            if changed:
                self._refs[key] = copy.deepcopy(reference)
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, changed)
        return changed

    async def remove(self, key: str, reference: ConversationReference | None = None) -> bool:
        with self._span("remove") as span_id:
            removed = self._refs.pop(key, None) is not None
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, removed)
        return removed

    async def list(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> Page:
        check_page_size(page_size)
        offset = _parse_offset(continuation_token)
        limit = page_size or _DEFAULT_PAGE_SIZE
        with self._span("list", {Attr.STORE_PAGE_SIZE: limit}) as span_id:
            refs = list(self._refs.values())
            batch = [copy.deepcopy(r) for r in refs[offset : offset + limit]]
            end = offset + len(batch)
            token = str(end) if end < len(refs) else None
            self._tel.set_attribute(span_id, Attr.STORE_RESULT_COUNT, len(batch))
        return Page(data=batch, continuation_token=token)

    def __len__(self) -> int:
        return len(self._refs)


def _parse_offset(token: str | None) -> int:
    if not token:
        return 0
    try:
        offset = int(token)
    except ValueError:
        raise ValueError(f"Invalid continuation token: {token!r}") from None
    if offset < 0:
        raise ValueError(f"Invalid continuation token: {token!r}")
    return offset
