"""Serialization of conversation references to engine-native forms."""

from __future__ import annotations

import json
import logging
from typing import Any

from refkit.errors import BackendError
from refkit.models.reference import ConversationReference

logger = logging.getLogger("refkit.store.codec")

DOCUMENT_ID_FIELD = "id"

# Properties the document engine adds to every item it returns.
_SYSTEM_PROPERTIES = frozenset({"_rid", "_self", "_etag", "_attachments", "_ts"})


def encode(reference: ConversationReference) -> bytes:
    """Serialize a reference to compact UTF-8 JSON."""
    return json.dumps(reference, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def decode(data: bytes | str, *, backend: str = "") -> ConversationReference:
    """Parse a stored body back into a reference.

    Raises:
        BackendError: If the body is not a JSON object.
    """
    try:
        value = json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise BackendError(f"Stored reference is not valid JSON: {exc}", backend=backend) from exc
    if not isinstance(value, dict):
        msg = f"Stored reference must be a JSON object, got {type(value).__name__}"
        raise BackendError(msg, backend=backend)
    return value


def to_document(key: str, reference: ConversationReference) -> dict[str, Any]:
    """Build the document stored for *reference*, keyed by its normalized key.

    A top-level ``id`` in *reference* is replaced by *key* and is not
    recoverable on read.
    """
    document = dict(reference)
    previous = document.get(DOCUMENT_ID_FIELD)
    if previous is not None and previous != key:
        logger.debug("Replacing reference id %r with document key %r", previous, key)
    document[DOCUMENT_ID_FIELD] = key
    return document


def from_document(document: dict[str, Any]) -> ConversationReference:
    """Strip engine system properties from a stored document."""
    return {k: v for k, v in document.items() if k not in _SYSTEM_PROPERTIES}
