"""Keep a store in sync with the bot's installations from inbound activities."""

from __future__ import annotations

import logging
from typing import Any

from refkit.models.enums import ActivityType
from refkit.models.reference import ConversationReference
from refkit.store.base import ConversationReferenceStore
from refkit.store.keys import reference_key

logger = logging.getLogger("refkit.activity")


def build_conversation_reference(activity: dict[str, Any]) -> ConversationReference:
    """Extract a ConversationReference dict from a Bot Framework Activity dict.

    The tenant id from ``channelData.tenant.id`` is copied onto the
    conversation when the conversation does not carry one itself.
    """
    conversation = dict(activity.get("conversation") or {})
    tenant_id = (activity.get("channelData") or {}).get("tenant", {}).get("id")
    if tenant_id and not conversation.get("tenantId"):
        conversation["tenantId"] = tenant_id

    reference = {
        "activityId": activity.get("id"),
        "user": activity.get("from"),
        "bot": activity.get("recipient"),
        "conversation": conversation,
        "channelId": activity.get("channelId"),
        "locale": activity.get("locale"),
        "serviceUrl": activity.get("serviceUrl"),
    }
    return {k: v for k, v in reference.items() if v is not None}


def _bot_id(activity: dict[str, Any], bot_id: str | None) -> str:
    return bot_id or (activity.get("recipient") or {}).get("id", "")


def _team_event(activity: dict[str, Any]) -> str:
    return str((activity.get("channelData") or {}).get("eventType", ""))


def is_bot_added(activity: dict[str, Any], bot_id: str | None = None) -> bool:
    """Check if an Activity reports that the bot was installed.

    True for an ``installationUpdate`` with action ``add``, a
    ``conversationUpdate`` with the bot in ``membersAdded``, or a
    ``teamRestored`` event.
    """
    activity_type = activity.get("type")
    if activity_type == ActivityType.INSTALLATION_UPDATE:
        return str(activity.get("action", "")).startswith("add")
    if activity_type != ActivityType.CONVERSATION_UPDATE:
        return False
    if _team_event(activity) == "teamRestored":
        return True
    bid = _bot_id(activity, bot_id)
    if not bid:
        return False
    return any(m.get("id") == bid for m in activity.get("membersAdded") or [])


def is_bot_removed(activity: dict[str, Any], bot_id: str | None = None) -> bool:
    """Check if an Activity reports that the bot was uninstalled.

    True for an ``installationUpdate`` with action ``remove``, a
    ``conversationUpdate`` with the bot in ``membersRemoved``, or a
    ``teamDeleted`` event.
    """
    activity_type = activity.get("type")
    if activity_type == ActivityType.INSTALLATION_UPDATE:
        return str(activity.get("action", "")).startswith("remove")
    if activity_type != ActivityType.CONVERSATION_UPDATE:
        return False
    if _team_event(activity) == "teamDeleted":
        return True
    bid = _bot_id(activity, bot_id)
    if not bid:
        return False
    return any(m.get("id") == bid for m in activity.get("membersRemoved") or [])


async def track_activity(
    store: ConversationReferenceStore,
    activity: dict[str, Any],
    bot_id: str | None = None,
) -> bool | None:
    """Record or forget the conversation an Activity came from.

    Installs overwrite the stored reference, uninstalls remove it, and
    messages add it only if it is not stored yet.

    Returns:
        The store's result for the write, or ``None`` if the Activity does
        not affect the store.
    """
    reference = build_conversation_reference(activity)
    if is_bot_removed(activity, bot_id):
        key = reference_key(reference)
        removed = await store.remove(key, reference)
        logger.info("Bot uninstalled from %s (removed=%s)", key, removed)
        return removed
    if is_bot_added(activity, bot_id):
        key = reference_key(reference)
        await store.add(key, reference, overwrite=True)
        logger.info("Bot installed in %s", key)
        return True
    if activity.get("type") == ActivityType.MESSAGE:
        key = reference_key(reference)
        return await store.add(key, reference, overwrite=False)
    return None
