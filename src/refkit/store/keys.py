"""Key normalization for conversation reference stores.

Logical keys are caller-chosen strings. Each backend needs them in a form it
accepts as an object name or document id; the mappings here are pure,
deterministic and injective.
"""

from __future__ import annotations

from urllib.parse import quote

from refkit.models.reference import ConversationReference

# Characters JavaScript's encodeURIComponent leaves untouched.
_BLOB_SAFE = "-_.!~*'()"
_BLOB_NAME_MAX = 1024

_DOCUMENT_FORBIDDEN = frozenset("/\\?#")
_DOCUMENT_ID_MAX = 255


def normalize_blob_key(key: str) -> str:
    """Percent-encode *key* into a legal blob name.

    Every byte outside the unreserved set is escaped, so ``/`` never creates
    a virtual directory and two distinct keys never share a blob name. A key
    made only of dots has every dot escaped so it survives URL path handling.
    """
    if not key:
        raise ValueError("Conversation reference key must be a non-empty string")
    blob_name = quote(key, safe=_BLOB_SAFE)
    if not blob_name.strip("."):
        # "." and ".." are URL dot segments; a literal "%" is always "%25".
        blob_name = "%2E" * len(blob_name)
    if len(blob_name) > _BLOB_NAME_MAX:
        msg = f"Encoded key is {len(blob_name)} characters; blob names allow {_BLOB_NAME_MAX}"
        raise ValueError(msg)
    return blob_name


def normalize_document_key(key: str) -> str:
    """Return *key* unchanged for use as a document id.

    Raises:
        ValueError: If *key* is empty, too long, or contains a character
            the document engine rejects in ids.
    """
    if not key:
        raise ValueError("Conversation reference key must be a non-empty string")
    if len(key) > _DOCUMENT_ID_MAX:
        msg = f"Key is {len(key)} characters; document ids allow {_DOCUMENT_ID_MAX}"
        raise ValueError(msg)
    bad = sorted(_DOCUMENT_FORBIDDEN.intersection(key))
    if bad:
        msg = f"Key {key!r} contains characters not allowed in document ids: {''.join(bad)}"
        raise ValueError(msg)
    return key


def reference_key(reference: ConversationReference) -> str:
    """Derive the logical key the notification runtime uses for *reference*.

    The key combines tenant and conversation id: ``_<tenantId>_<conversationId>``.
    """
    conversation = reference.get("conversation") or {}
    conversation_id = conversation.get("id")
    if not conversation_id:
        raise ValueError("Conversation reference has no conversation id")
    tenant_id = conversation.get("tenantId") or ""
    return f"_{tenant_id}_{conversation_id}"
