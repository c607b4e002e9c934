"""String enums for refkit."""

from __future__ import annotations

from enum import StrEnum, unique


@unique
class ConversationType(StrEnum):
    PERSONAL = "personal"
    GROUP_CHAT = "groupChat"
    CHANNEL = "channel"


@unique
class ActivityType(StrEnum):
    MESSAGE = "message"
    CONVERSATION_UPDATE = "conversationUpdate"
    INSTALLATION_UPDATE = "installationUpdate"
