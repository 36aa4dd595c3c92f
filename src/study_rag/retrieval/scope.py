"""
Query scope validation and authorization.

A query is always scoped to one owner, and optionally narrowed to a
document allow-list (chunk ids picked in the UI). The allow-list is checked
here before anything is ranked:

    - malformed input (empty list, non-integer ids)  → ValidationError
    - any id the owner does not own                  → AuthorizationError

A scope is never silently narrowed: one foreign id rejects the whole query.
The chunk store re-applies the same filter inside its ranking query, so an
authorization bug here still cannot leak foreign chunks.
"""

import logging
from typing import Iterable, Optional

from study_rag.base.store import BaseChunkStore
from study_rag.errors import AuthorizationError, RetrievalError, StudyRAGError, ValidationError

logger = logging.getLogger(__name__)


def validate_owner(owner_id) -> str:
    """Reject missing or blank owner ids."""
    if not isinstance(owner_id, str) or not owner_id.strip():
        raise ValidationError("owner_id must be a non-empty string")
    return owner_id


def normalize_allow_list(document_ids: Optional[Iterable[int]]) -> Optional[list[int]]:
    """
    Validate an allow-list and deduplicate it, keeping first-seen order.

    None means "all of the owner's chunks". An explicitly empty list is an
    error rather than "nothing", so a UI bug cannot turn into an unscoped query.
    """
    if document_ids is None:
        return None
    if isinstance(document_ids, (str, bytes)):
        raise ValidationError("document_ids must be a list of integer chunk ids")

    ids = list(document_ids)
    if not ids:
        raise ValidationError("document_ids must not be empty when provided")

    normalized: list[int] = []
    seen: set[int] = set()
    for chunk_id in ids:
        # bool is an int subclass; True is not a chunk id
        if not isinstance(chunk_id, int) or isinstance(chunk_id, bool):
            raise ValidationError(f"Invalid chunk id in document_ids: {chunk_id!r}")
        if chunk_id not in seen:
            seen.add(chunk_id)
            normalized.append(chunk_id)
    return normalized


def authorize_scope(
    store: BaseChunkStore,
    owner_id: str,
    document_ids: Optional[Iterable[int]] = None,
) -> Optional[list[int]]:
    """
    Validate and authorize a query scope.

    Args:
        store: Chunk store used to verify ownership.
        owner_id: The requesting identity.
        document_ids: Optional allow-list of chunk ids.

    Returns:
        The normalized allow-list, or None for an owner-wide query.

    Raises:
        ValidationError: Malformed owner id or allow-list.
        AuthorizationError: The allow-list contains ids not owned by owner_id.
        RetrievalError: The store could not be asked.
    """
    validate_owner(owner_id)
    allow_list = normalize_allow_list(document_ids)
    if allow_list is None:
        return None

    try:
        owned = store.count_owned(owner_id, allow_list)
    except StudyRAGError:
        raise
    except Exception as exc:
        raise RetrievalError(f"Could not verify document scope: {exc}") from exc

    if owned != len(allow_list):
        logger.warning(
            "Rejected scope: %d of %d requested chunks are not owned by the requester",
            len(allow_list) - owned,
            len(allow_list),
        )
        raise AuthorizationError("Document scope includes chunks you do not own")

    return allow_list
