"""Track bot installations and broadcast a notification.

Demonstrates the full notification flow against the in-memory store:
inbound Activities keep the store in sync with where the bot is
installed, then a broadcast sends one message to every stored
conversation.

Key mechanism:
    1. ``track_activity`` adds a reference on install or first message
       and removes it on uninstall.
    2. ``broadcast`` pages through the store and calls ``send`` for each
       reference, counting failures instead of aborting.

Run with:
    uv run python examples/track_and_broadcast.py
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from refkit import (
    ConsoleTelemetryProvider,
    InMemoryConversationReferenceStore,
    broadcast,
    track_activity,
)

logging.basicConfig(level=logging.INFO)

BOT = {"id": "28:notify-bot", "name": "NotifyBot"}


def _activity(activity_type: str, conversation_id: str, **extra: Any) -> dict[str, Any]:
    return {
        "type": activity_type,
        "id": f"act-{conversation_id}",
        "from": {"id": "29:user", "aadObjectId": f"aad-{conversation_id}"},
        "recipient": BOT,
        "conversation": {"id": conversation_id, "conversationType": "personal"},
        "channelId": "msteams",
        "serviceUrl": "https://smba.trafficmanager.net/teams/",
        "channelData": {"tenant": {"id": "contoso"}},
        **extra,
    }


async def main() -> None:
    store = InMemoryConversationReferenceStore(telemetry=ConsoleTelemetryProvider())

    # -- Installation lifecycle --------------------------------------------

    await track_activity(store, _activity("installationUpdate", "a:alice", action="add"))
    await track_activity(store, _activity("installationUpdate", "a:bob", action="add"))
    await track_activity(store, _activity("message", "a:carol"))
    await track_activity(store, _activity("installationUpdate", "a:bob", action="remove"))
    print(f"Stored references: {len(store)}")

    # -- Broadcast ---------------------------------------------------------

    async def send(reference: dict[str, Any]) -> None:
        conversation = reference["conversation"]["id"]
        if conversation == "a:carol":
            raise RuntimeError("403 bot blocked by user")
        print(f"  -> sent to {conversation} via {reference['serviceUrl']}")

    result = await broadcast(store, send, page_size=10)
    print(f"Sent: {result.sent}, failed: {result.failed}")
    for error in result.errors:
        print(f"  !! {error}")


if __name__ == "__main__":
    asyncio.run(main())
