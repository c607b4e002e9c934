"""Azure Cosmos DB implementation of ConversationReferenceStore."""

from __future__ import annotations

import logging
from typing import Any

from refkit.config import CosmosStoreConfig
from refkit.errors import BackendError
from refkit.identity.base import UnconfiguredUserIdResolver, UserIdResolver
from refkit.models.enums import ConversationType
from refkit.models.reference import AddOptions, ConversationReference, Page
from refkit.store._lazy import LazyInit
from refkit.store.base import ConversationReferenceStore, check_page_size, resolve_overwrite
from refkit.store.codec import DOCUMENT_ID_FIELD, from_document, to_document
from refkit.store.keys import normalize_document_key
from refkit.telemetry.base import Attr, SpanKind, TelemetryProvider

logger = logging.getLogger("refkit.store.cosmos")

_LIST_QUERY = "SELECT * FROM c"
_USER_QUERY = (
    "SELECT * FROM c WHERE c.user.aadObjectId = @userId "
    "AND c.conversation.conversationType = @conversationType"
)


class CosmosConversationReferenceStore(ConversationReferenceStore):
    """Stores conversation references as documents in a Cosmos DB container.

    Each document is the reference plus an ``id`` field holding the logical
    key, which is also the partition key. A top-level ``id`` the caller put
    in the reference is overwritten by the key. The database and container
    are created on first use.

    The default conditional insert is a point read followed by an upsert,
    so two concurrent inserts of the same fresh key can both return
    ``True``. Pass ``atomic_insert=True`` to use ``create_item``, which the
    engine rejects with a conflict when the id already exists.
    """

    backend = "cosmos"

    def __init__(
        self,
        config: CosmosStoreConfig,
        *,
        client: Any = None,
        atomic_insert: bool = False,
        user_id_resolver: UserIdResolver | None = None,
        telemetry: TelemetryProvider | None = None,
    ) -> None:
        try:
            from azure.core.exceptions import AzureError
            from azure.cosmos import PartitionKey
            from azure.cosmos.exceptions import (
                CosmosResourceExistsError,
                CosmosResourceNotFoundError,
            )
        except ImportError as exc:
            raise ImportError(
                "azure-cosmos is required for CosmosConversationReferenceStore. "
                "Install it with: pip install refkit[cosmos]"
            ) from exc
        self._azure_error = AzureError
        self._exists_error = CosmosResourceExistsError
        self._not_found_error = CosmosResourceNotFoundError
        self._partition_key = PartitionKey(path=f"/{DOCUMENT_ID_FIELD}")

        if client is None:
            from azure.cosmos.aio import CosmosClient

            client = CosmosClient.from_connection_string(
                config.connection_string.get_secret_value()
            )
            self._owns_client = True
        else:
            self._owns_client = False

        self._client = client
        self._database_name = config.database_name
        self._container_name = config.container_name
        self._atomic_insert = atomic_insert
        self._user_id_resolver = user_id_resolver or UnconfiguredUserIdResolver()
        self._telemetry = telemetry
        self._init: LazyInit[Any] = LazyInit(self._create_container)

    # Initialization

    async def _create_container(self) -> Any:
        attrs = {Attr.STORE_BACKEND: self.backend, Attr.STORE_CONTAINER: self._container_name}
        with self._tel.span(SpanKind.BACKEND_CONNECT, "cosmos.create_container", attributes=attrs):
            try:
                database = await self._client.create_database_if_not_exists(
                    id=self._database_name
                )
                container = await database.create_container_if_not_exists(
                    id=self._container_name,
                    partition_key=self._partition_key,
                )
            except self._azure_error as exc:
                raise self._wrap(exc, "create container") from exc
        logger.info(
            "Using Cosmos container %s/%s", self._database_name, self._container_name
        )
        return container

    async def _container(self) -> Any:
        return await self._init.get()

    # Store operations

    async def exists(self, key: str) -> bool:
        """Return whether a document is stored under *key*."""
        doc_id = normalize_document_key(key)
        container = await self._container()
        with self._span("exists"):
            return await self._exists(container, doc_id)

    async def add(
        self,
        key: str,
        reference: ConversationReference,
        options: AddOptions | None = None,
        *,
        overwrite: bool | None = None,
    ) -> bool:
        overwrite = resolve_overwrite(options, overwrite)
        doc_id = normalize_document_key(key)
        document = to_document(doc_id, reference)
        container = await self._container()

        with self._span("add", {Attr.STORE_OVERWRITE: overwrite}) as span_id:
            if overwrite:
                await self._upsert(container, document)
                changed = True
            elif self._atomic_insert:
                changed = await self._create(container, document)
            elif await self._exists(container, doc_id):
                changed = False
            else:
                # Not atomic: another writer may insert between the read and this upsert.
                await self._upsert(container, document)
                changed = True
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, changed)

        logger.debug("add %s overwrite=%s changed=%s", doc_id, overwrite, changed)
        return changed

    async def remove(self, key: str, reference: ConversationReference | None = None) -> bool:
        doc_id = normalize_document_key(key)
        container = await self._container()

        with self._span("remove") as span_id:
            if not await self._exists(container, doc_id):
                removed = False
            else:
                try:
                    await container.delete_item(item=doc_id, partition_key=doc_id)
                except self._not_found_error:
                    removed = False
                except self._azure_error as exc:
                    raise self._wrap(exc, f"delete {doc_id}") from exc
                else:
                    removed = True
            self._tel.set_attribute(span_id, Attr.STORE_CHANGED, removed)

        logger.debug("remove %s removed=%s", doc_id, removed)
        return removed

    async def list(
        self,
        page_size: int | None = None,
        continuation_token: str | None = None,
    ) -> Page:
        """Return up to *page_size* documents, or all remaining ones if unset.

        The engine may return short pages; several underlying pages are
        concatenated until *page_size* documents have been collected.
        """
        check_page_size(page_size)
        container = await self._container()

        with self._span("list", {Attr.STORE_PAGE_SIZE: page_size}) as span_id:
            data: list[ConversationReference] = []
            token: str | None = None
            try:
                pages = container.query_items(
                    query=_LIST_QUERY, max_item_count=page_size
                ).by_page(continuation_token)
                async for page in pages:
                    async for document in page:
                        data.append(from_document(document))
                    token = pages.continuation_token or None
                    if page_size is not None and len(data) >= page_size:
                        break
            except self._azure_error as exc:
                raise self._wrap(exc, "query") from exc
            self._tel.set_attribute(span_id, Attr.STORE_RESULT_COUNT, len(data))

        return Page(data=data, continuation_token=token)

    async def get_user_by_user_id(self, user_id: str) -> ConversationReference | None:
        """Find the personal conversation reference of the user with AAD object id *user_id*."""
        container = await self._container()
        parameters = [
            {"name": "@userId", "value": user_id},
            {"name": "@conversationType", "value": ConversationType.PERSONAL.value},
        ]
        with self._span("get_user_by_user_id") as span_id:
            try:
                async for document in container.query_items(
                    query=_USER_QUERY, parameters=parameters
                ):
                    self._tel.set_attribute(span_id, Attr.STORE_RESULT_COUNT, 1)
                    return from_document(document)
            except self._azure_error as exc:
                raise self._wrap(exc, "query") from exc
            self._tel.set_attribute(span_id, Attr.STORE_RESULT_COUNT, 0)
        return None

    async def get_user_by_user_email(self, email: str) -> ConversationReference | None:
        """Find a user's personal conversation reference by email.

        Raises:
            UserIdResolutionNotImplementedError: If no ``user_id_resolver``
                was configured.
        """
        user_id = await self._user_id_resolver.resolve_user_id(email)
        if not user_id:
            return None
        return await self.get_user_by_user_id(user_id)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.close()

    # Helpers

    async def _exists(self, container: Any, doc_id: str) -> bool:
        try:
            item = await container.read_item(item=doc_id, partition_key=doc_id)
        except self._not_found_error:
            return False
        except self._azure_error as exc:
            raise self._wrap(exc, f"read {doc_id}") from exc
        return item is not None

    async def _upsert(self, container: Any, document: dict[str, Any]) -> None:
        try:
            await container.upsert_item(document)
        except self._azure_error as exc:
            raise self._wrap(exc, f"upsert {document[DOCUMENT_ID_FIELD]}") from exc

    async def _create(self, container: Any, document: dict[str, Any]) -> bool:
        try:
            await container.create_item(document)
        except self._exists_error:
            return False
        except self._azure_error as exc:
            raise self._wrap(exc, f"create {document[DOCUMENT_ID_FIELD]}") from exc
        return True

    def _wrap(self, exc: Exception, action: str) -> BackendError:
        return BackendError.from_exception(exc, backend=self.backend, action=action)
