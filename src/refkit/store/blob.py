"""Azure Blob Storage implementation of ConversationReferenceStore."""

from __future__ import annotations

import logging
from typing import Any

from refkit.config import BlobStoreConfig
from refkit.errors import BackendError
from refkit.models.reference import AddOptions, ConversationReference, Page
from refkit.store._lazy import LazyInit
from refkit.store.base import ConversationReferenceStore, check_page_size, resolve_overwrite
from refkit.store.codec import decode, encode
from refkit.store.keys import normalize_blob_key
from refkit.telemetry.base import Attr, SpanKind, TelemetryProvider

logger = logging.getLogger("refkit.store.blob")


class BlobConversationReferenceStore(ConversationReferenceStore):
    """Stores each conversation reference as a JSON blob in one container.

    Blob names are the percent-encoded logical keys. The container is
    created on first use.

    The default conditional insert downloads the blob and uploads only if
    it was absent. Two concurrent inserts of the same fresh key can both
    see it absent and both return ``True``; the later upload wins. Pass
    ``atomic_insert=True`` to use a single ``If-None-Match: *`` upload
    instead.

    Listing reads each blob body individually after the page of names is
    fetched. Blobs deleted in between are left out of the page.
    """

    backend = "blob"

    def __init__(
        self,
        config: BlobStoreConfig | None = None,
        *,
        container_client: Any = None,
        atomic_insert: bool = False,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        try:
            from azure.core.exceptions import (
                AzureError,
                ResourceExistsError,
                ResourceNotFoundError,
            )
        except ImportError as exc:
            raise ImportError(
                "azure-storage-blob is required for BlobConversationReferenceStore. "
                "Install it with: pip install refkit[blob]"
            ) from exc
        self._azure_error = AzureError
        self._exists_error = ResourceExistsError
        self._not_found_error = ResourceNotFoundError

        if container_client is None:
            if config is None:
                raise ValueError("Either config or container_client must be provided")
            try:
                from azure.storage.blob.aio import ContainerClient
            except ImportError as exc:
                raise ImportError(
                    "azure-storage-blob is required for BlobConversationReferenceStore. "
                    "Install it with: pip install refkit[blob]"
                ) from exc
            container_client = ContainerClient.from_connection_string(
                config.connection_string.get_secret_value(),
                config.container_name,
            )
            self._owns_client = True
        else:
            self._owns_client = False

        self._client = container_client
        self._atomic_insert = atomic_insert
        self._telemetry = telemetry
        self._init: LazyInit[Any] = LazyInit(self._create_container)

    @property
    def container_name(self) -> str:
        return str(getattr(self._client, "container_name", ""))

    # Initialization

    async def _create_container(self) -> Any:
        attrs = {Attr.STORE_BACKEND: self.backend, Attr.STORE_CONTAINER: self.container_name}
        with self._tel.span(SpanKind.BACKEND_CONNECT, "blob.create_container", attributes=attrs):
            try:
                await self._client.create_container()
            except self._exists_error:
                logger.debug("Blob container %s already exists", self.container_name)
            except self._azure_error as exc:
                raise self._wrap(exc, "create container") from exc
            else:
                logger.info("Created blob container %s", self.container_name)
        return self._client

    async def _container(self) -> Any:
        return await self._init.get()

    # Store operations

    async def get(self, key: str) -> ConversationReference | None:
        """Return the reference stored under *key*, or ``None``."""
        blob_name = normalize_blob_key(key)
        container = await self._container()
        with self._span("get"):
            return await self._download(container, blob_name)

    async def add(
        self,
        key: str,
        reference: ConversationReference,
        options: AddOptions | None = None,
        *,
        overwrite: bool | None = None,
    ) -> bool:
        overwrite = resolve_overwrite(options, overwrite)
        blob_name = normalize_blob_key(key)
        content = encode(reference)
        container = await self._container()

        with self._span("add", {Attr.STORE_OVERWRITE: overwrite}) as span_id:
            if overwrite:
                changed = await self._upload(container, blob_name, content, overwrite=True)
            elif self._atomic_insert:
                changed = await self._upload(container, blob_name, content, overwrite=False)
            elif await self._download(container, blob_name) is None:
                # Not atomic: another writer may upload between the read and this write.
                changed = await self._upload(container, blob_name, content, overwrite=True)
            else:
                changed = False
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, changed)

        logger.debug("add %s overwrite=%s changed=%s", blob_name, overwrite, changed)
        return changed

    async def remove(self, key: str, reference: ConversationReference | None = None) -> bool:
        blob_name = normalize_blob_key(key)
        container = await self._container()

        with self._span("remove") as span_id:
            try:
                await container.delete_blob(blob_name)
            except self._not_found_error:
                removed = False
            except self._azure_error as exc:
                raise self._wrap(exc, f"delete {blob_name}") from exc
            else:
                removed = True
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, removed)

        logger.debug("remove %s removed=%s", blob_name, removed)
        return removed

    async def list(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> Page:
        check_page_size(page_size)
        container = await self._container()

        with self._span("list", {Attr.STORE_PAGE_SIZE: page_size}) as span_id:
            try:
                pages = container.list_blobs(results_per_page=page_size).by_page(
                    continuation_token=continuation_token
                )
                page = await anext(pages)
                names = [blob.name async for blob in page]
            except StopAsyncIteration:
                names = []
            except self._azure_error as exc:
                raise self._wrap(exc, "list") from exc

            data: list[ConversationReference] = []
            for name in names:
                reference = await self._download(container, name)
                if reference is None:
                    logger.warning("Blob %s was deleted during listing; skipping", name)
                    continue
                data.append(reference)

            token = pages.continuation_token or None
            self._tel.set_attribute(span_id, Attr.STORE_RESULT_COUNT, len(data))

        return Page(data=data, continuation_token=token)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()

    # Helpers

    async def _download(self, container: Any, blob_name: str) -> ConversationReference | None:
        try:
            downloader = await container.get_blob_client(blob_name).download_blob()
            content = await downloader.readall()
        except self._not_found_error:
            return None
        except self._azure_error as exc:
            raise self._wrap(exc, f"download {blob_name}") from exc
        return decode(content, backend=self.backend)

    async def _upload(
        self, container: Any, blob_name: str, content: bytes, *, overwrite: bool
    ) -> bool:
        try:
            await container.upload_blob(blob_name, content, overwrite=overwrite)
        except self._exists_error:
            return False
        except self._azure_error as exc:
            raise self._wrap(exc, f"upload {blob_name}") from exc
        return True

    def _wrap(self, exc: Exception, action: str) -> BackendError:
        return BackendError.from_exception(exc, backend=self.backend, action=action)
