"""Conversation reference and paging models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

ConversationReference = dict[str, Any]
"""A Bot Framework conversation reference, stored as an opaque JSON object."""


class AddOptions(BaseModel):
    """Options for :meth:`ConversationReferenceStore.add`."""

    overwrite: bool = False


class Page(BaseModel):
    """One batch of a paginated scan.

    ``continuation_token`` is opaque and only meaningful to the store that
    issued it. ``None`` means there are no further pages.
    """

    data: list[ConversationReference] = Field(default_factory=list)
    continuation_token: str | None = None

    @property
    def has_more(self) -> bool:
        return bool(self.continuation_token)
