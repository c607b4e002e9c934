"""Data models for refkit."""

from refkit.models.enums import ActivityType, ConversationType
from refkit.models.reference import AddOptions, ConversationReference, Page

__all__ = [
    "ActivityType",
    "AddOptions",
    "ConversationReference",
    "ConversationType",
    "Page",
]
