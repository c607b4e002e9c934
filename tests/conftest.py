"""Shared test fixtures and helpers."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator, Callable, Coroutine
from typing import Any

import pytest

from refkit.config import BlobStoreConfig, CosmosStoreConfig
from refkit.store.base import ConversationReferenceStore
from refkit.store.memory import InMemoryConversationReferenceStore
from tests.azure_fakes import FakeContainerClient, FakeCosmosClient

COSMOS_CONFIG = CosmosStoreConfig(
    connection_string="AccountEndpoint=https://fake.documents.azure.com:443/;AccountKey=a2V5;",
    database_name="refkit",
    container_name="refs",
)

BLOB_CONFIG = BlobStoreConfig(
    connection_string="UseDevelopmentStorage=true",
    container_name="refs",
)


@pytest.fixture
def advance() -> Callable[[int], Coroutine[Any, Any, None]]:
    """Yield control to let pending tasks run without real delay."""

    async def _advance(n: int = 5) -> None:
        for _ in range(n):
            await asyncio.sleep(0)

    return _advance


@pytest.fixture
def blob_client() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture
def cosmos_client() -> FakeCosmosClient:
    return FakeCosmosClient()


@pytest.fixture
def blob_store(blob_client: FakeContainerClient) -> ConversationReferenceStore:
    from refkit.store.blob import BlobConversationReferenceStore

    return BlobConversationReferenceStore(container_client=blob_client)


@pytest.fixture
def cosmos_store(cosmos_client: FakeCosmosClient) -> ConversationReferenceStore:
    from refkit.store.cosmos import CosmosConversationReferenceStore

    return CosmosConversationReferenceStore(COSMOS_CONFIG, client=cosmos_client)


@pytest.fixture(params=["memory", "blob", "cosmos"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[ConversationReferenceStore]:
    """Every bundled store, each backed by an in-process engine."""
    if request.param == "memory":
        s: ConversationReferenceStore = InMemoryConversationReferenceStore()
    elif request.param == "blob":
        s = request.getfixturevalue("blob_store")
    else:
        s = request.getfixturevalue("cosmos_store")
    yield s
    await s.close()


def make_reference(
    conversation_id: str = "conv-1",
    conversation_type: str = "personal",
    tenant_id: str = "tenant-abc",
    user_id: str = "user-aad-1",
    **overrides: Any,
) -> dict[str, Any]:
    reference: dict[str, Any] = {
        "activityId": "act-1",
        "user": {"id": "29:user", "name": "Alice", "aadObjectId": user_id},
        "bot": {"id": "28:bot", "name": "TestBot"},
        "conversation": {
            "id": conversation_id,
            "conversationType": conversation_type,
            "tenantId": tenant_id,
        },
        "channelId": "msteams",
        "serviceUrl": "https://smba.trafficmanager.net/teams/",
    }
    reference.update(overrides)
    return reference


def strip_id(reference: dict[str, Any]) -> dict[str, Any]:
    """Drop the synthetic ``id`` the document store adds."""
    return {k: v for k, v in reference.items() if k != "id"}
