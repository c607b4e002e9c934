"""Persist conversation references in Azure Blob Storage or Cosmos DB.

Both stores read their settings from the environment:

    BLOB_CONNECTION_STRING, BLOB_CONTAINER_NAME
    COSMOS_CONNECTION_STRING, COSMOS_DATABASE_NAME, COSMOS_CONTAINER_NAME

The Azurite emulator works for the blob store
(``BLOB_CONNECTION_STRING=UseDevelopmentStorage=true``).

Run with:
    uv run python examples/azure_stores.py blob
    uv run python examples/azure_stores.py cosmos
"""

from __future__ import annotations

import asyncio
import logging
import sys

from refkit import (
    BackendError,
    BlobStoreConfig,
    ConversationReferenceStore,
    CosmosStoreConfig,
    reference_key,
)

logging.basicConfig(level=logging.INFO)


def make_store(backend: str) -> ConversationReferenceStore:
    if backend == "cosmos":
        from refkit import CosmosConversationReferenceStore

        return CosmosConversationReferenceStore(CosmosStoreConfig.from_env())
    from refkit import BlobConversationReferenceStore

    return BlobConversationReferenceStore(BlobStoreConfig.from_env())


async def main(backend: str) -> None:
    store = make_store(backend)
    reference = {
        "user": {"id": "29:user", "aadObjectId": "aad-alice"},
        "bot": {"id": "28:notify-bot"},
        "conversation": {
            "id": "a:alice",
            "conversationType": "personal",
            "tenantId": "contoso",
        },
        "channelId": "msteams",
        "serviceUrl": "https://smba.trafficmanager.net/teams/",
    }
    key = reference_key(reference)

    try:
        print(f"add {key}: {await store.add(key, reference)}")
        print(f"add again: {await store.add(key, reference)}")

        async for stored in store.iter_references(page_size=50):
            print(f"  {stored['conversation']['id']}")

        print(f"remove: {await store.remove(key)}")
    except BackendError as exc:
        print(f"{exc.backend} failed (status={exc.status_code}, retryable={exc.retryable})")
        raise
    finally:
        await store.close()


if __name__ == "__main__":
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else "blob"))
