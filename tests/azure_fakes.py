"""In-process fakes of the Azure Blob and Cosmos async clients.

They raise the real ``azure.core`` / ``azure.cosmos`` exception types so the
stores' error translation is exercised as it would be against the service.
"""

from __future__ import annotations

import asyncio
import copy
import json
from collections.abc import AsyncIterator
from types import SimpleNamespace
from typing import Any

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.cosmos.exceptions import CosmosResourceExistsError, CosmosResourceNotFoundError

# ---------------------------------------------------------------------------
# Shared paging
# ---------------------------------------------------------------------------


class _FakePage:
    def __init__(self, items: list[Any]) -> None:
        self._items = items

    def __aiter__(self) -> AsyncIterator[Any]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[Any]:
        for item in self._items:
            yield item


class _FakePageIterator:
    """Mimics ``AsyncPageIterator``: async iterator of pages with a token."""

    def __init__(self, items: list[Any], page_size: int, start: int) -> None:
        self._items = items
        self._page_size = page_size
        self._offset = start
        self._started = False
        self.continuation_token: str | None = str(start) if start else None

    def __aiter__(self) -> _FakePageIterator:
        return self

    async def __anext__(self) -> _FakePage:
        if self._started and self.continuation_token is None:
            raise StopAsyncIteration
        self._started = True
        batch = self._items[self._offset : self._offset + self._page_size]
        self._offset += len(batch)
        self.continuation_token = str(self._offset) if self._offset < len(self._items) else None
        return _FakePage(batch)


# ---------------------------------------------------------------------------
# Blob
# ---------------------------------------------------------------------------


class _FakeDownloader:
    def __init__(self, content: bytes) -> None:
        self._content = content

    async def readall(self) -> bytes:
        return self._content


class _FakeBlobClient:
    def __init__(self, container: FakeContainerClient, name: str) -> None:
        self._container = container
        self._name = name

    async def download_blob(self) -> _FakeDownloader:
        container = self._container
        container.calls.append(("download_blob", self._name))
        container._maybe_fail("download_blob")
        content = container.blobs.get(self._name)
        if container.download_barrier is not None:
            await container.download_barrier.wait()
        if content is None:
            raise ResourceNotFoundError("The specified blob does not exist.")
        return _FakeDownloader(content)


class _FakeBlobPaged:
    def __init__(self, container: FakeContainerClient, results_per_page: int | None) -> None:
        self._container = container
        self._results_per_page = results_per_page

    def by_page(self, continuation_token: str | None = None) -> _FakePageIterator:
        container = self._container
        container._maybe_fail("list_blobs")
        names = [SimpleNamespace(name=n) for n in sorted(container.blobs)]
        if container.on_list is not None:
            container.on_list()
        start = int(continuation_token) if continuation_token else 0
        return _FakePageIterator(names, self._results_per_page or 5000, start)


class FakeContainerClient:
    """Subset of ``azure.storage.blob.aio.ContainerClient`` over a dict.

    Attributes:
        fail: Map of method name to exception raised on the next call.
        download_barrier: If set, every download waits on it after reading
            the blob, so concurrent callers observe the same snapshot.
        on_list: Called after blob names are listed, before bodies are read.
    """

    def __init__(self, container_name: str = "refs", *, exists: bool = False) -> None:
        self.container_name = container_name
        self.exists = exists
        self.blobs: dict[str, bytes] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[str, Exception] = {}
        self.download_barrier: asyncio.Barrier | None = None
        self.on_list: Any = None
        self.create_calls = 0
        self.closed = False

    def _maybe_fail(self, method: str) -> None:
        exc = self.fail.pop(method, None)
        if exc is not None:
            raise exc

    async def create_container(self) -> None:
        self.create_calls += 1
        await asyncio.sleep(0)
        self._maybe_fail("create_container")
        if self.exists:
            raise ResourceExistsError("The specified container already exists.")
        self.exists = True

    def get_blob_client(self, blob: str) -> _FakeBlobClient:
        return _FakeBlobClient(self, blob)

    async def upload_blob(self, name: str, data: bytes, *, overwrite: bool = False) -> None:
        self.calls.append(("upload_blob", name))
        self._maybe_fail("upload_blob")
        if not overwrite and name in self.blobs:
            raise ResourceExistsError("The specified blob already exists.")
        self.blobs[name] = bytes(data)

    async def delete_blob(self, blob: str) -> None:
        self.calls.append(("delete_blob", blob))
        self._maybe_fail("delete_blob")
        if blob not in self.blobs:
            raise ResourceNotFoundError("The specified blob does not exist.")
        del self.blobs[blob]

    def list_blobs(self, *, results_per_page: int | None = None) -> _FakeBlobPaged:
        self.calls.append(("list_blobs", ""))
        return _FakeBlobPaged(self, results_per_page)

    def stored(self, blob_name: str) -> dict[str, Any]:
        return json.loads(self.blobs[blob_name])

    async def close(self) -> None:
        self.closed = True


# ---------------------------------------------------------------------------
# Cosmos
# ---------------------------------------------------------------------------


_SYSTEM = {"_rid": "rid==", "_self": "dbs/x/colls/y/docs/z/", "_etag": '"0"', "_ts": 1700000000}


class _FakeQueryPaged:
    def __init__(self, documents: list[dict[str, Any]], page_size: int) -> None:
        self._documents = documents
        self._page_size = page_size

    def __aiter__(self) -> AsyncIterator[dict[str, Any]]:
        return _FakePage(self._documents).__aiter__()

    def by_page(self, continuation_token: str | None = None) -> _FakePageIterator:
        start = int(continuation_token) if continuation_token else 0
        return _FakePageIterator(self._documents, self._page_size, start)


class FakeCosmosContainer:
    """Subset of ``azure.cosmos.aio.ContainerProxy`` over a dict.

    Attributes:
        page_cap: Upper bound the fake engine applies to every query page,
            regardless of the requested ``max_item_count``.
    """

    def __init__(self, container_id: str = "refs") -> None:
        self.id = container_id
        self.partition_key: Any = None
        self.items: dict[str, dict[str, Any]] = {}
        self.calls: list[tuple[str, str]] = []
        self.fail: dict[str, Exception] = {}
        self.read_barrier: asyncio.Barrier | None = None
        self.page_cap: int | None = None
        self.queries: list[tuple[str, list[dict[str, Any]] | None]] = []

    def _maybe_fail(self, method: str) -> None:
        exc = self.fail.pop(method, None)
        if exc is not None:
            raise exc

    def _with_system(self, body: dict[str, Any]) -> dict[str, Any]:
        return {**copy.deepcopy(body), **_SYSTEM}

    async def read_item(self, item: str, partition_key: str) -> dict[str, Any]:
        self.calls.append(("read_item", item))
        self._maybe_fail("read_item")
        body = self.items.get(item)
        if self.read_barrier is not None:
            await self.read_barrier.wait()
        if body is None or partition_key != item:
            raise CosmosResourceNotFoundError(status_code=404, message="Entity not found")
        return self._with_system(body)

    async def upsert_item(self, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("upsert_item", body["id"]))
        self._maybe_fail("upsert_item")
        self.items[body["id"]] = copy.deepcopy(body)
        return self._with_system(body)

    async def create_item(self, body: dict[str, Any]) -> dict[str, Any]:
        self.calls.append(("create_item", body["id"]))
        self._maybe_fail("create_item")
        if body["id"] in self.items:
            raise CosmosResourceExistsError(status_code=409, message="Conflict")
        self.items[body["id"]] = copy.deepcopy(body)
        return self._with_system(body)

    async def delete_item(self, item: str, partition_key: str) -> None:
        self.calls.append(("delete_item", item))
        self._maybe_fail("delete_item")
        if item not in self.items or partition_key != item:
            raise CosmosResourceNotFoundError(status_code=404, message="Entity not found")
        del self.items[item]

    def query_items(
        self,
        query: str,
        parameters: list[dict[str, Any]] | None = None,
        max_item_count: int | None = None,
    ) -> _FakeQueryPaged:
        self.calls.append(("query_items", query))
        self.queries.append((query, parameters))
        self._maybe_fail("query_items")
        documents = [self._with_system(b) for b in self.items.values()]
        if "WHERE" in query:
            params = {p["name"]: p["value"] for p in parameters or []}
            documents = [
                d
                for d in documents
                if (d.get("user") or {}).get("aadObjectId") == params["@userId"]
                and (d.get("conversation") or {}).get("conversationType")
                == params["@conversationType"]
            ]
        page_size = max_item_count or len(documents) or 1
        if self.page_cap is not None:
            page_size = min(page_size, self.page_cap)
        return _FakeQueryPaged(documents, page_size)


class FakeCosmosDatabase:
    def __init__(self, client: FakeCosmosClient, database_id: str) -> None:
        self.id = database_id
        self._client = client

    async def create_container_if_not_exists(
        self, id: str, partition_key: Any  # noqa: A002
    ) -> Any:
        self._client.container_calls += 1
        await asyncio.sleep(0)
        self._client._maybe_fail("create_container_if_not_exists")
        container = self._client.container
        container.id = id
        container.partition_key = partition_key
        return container


class FakeCosmosClient:
    """Subset of ``azure.cosmos.aio.CosmosClient`` with a single container."""

    def __init__(self) -> None:
        self.container = FakeCosmosContainer()
        self.database_calls = 0
        self.container_calls = 0
        self.fail: dict[str, Exception] = {}
        self.closed = False

    def _maybe_fail(self, method: str) -> None:
        exc = self.fail.pop(method, None)
        if exc is not None:
            raise exc

    async def create_database_if_not_exists(self, id: str) -> FakeCosmosDatabase:  # noqa: A002
        self.database_calls += 1
        await asyncio.sleep(0)
        self._maybe_fail("create_database_if_not_exists")
        return FakeCosmosDatabase(self, id)

    async def close(self) -> None:
        self.closed = True
