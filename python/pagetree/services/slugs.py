"""Slug derivation and per-collection uniqueness checks."""

import re
import unicodedata
from uuid import UUID

from pagetree.db.node_store import NodeStore
from pagetree.errors import ApiErrorCode, InvalidRequestError, SlugConflictError

MAX_SLUG_LENGTH = 200

_NON_SLUG_RE = re.compile(r"[^a-z0-9]+")


def slugify(title: str) -> str:
    """Derive a URL-safe, lower-cased slug from a title.

    Accented letters are folded to ASCII; every other run of characters
    outside [a-z0-9] collapses to a single hyphen.

    Raises:
        InvalidRequestError: If nothing slug-worthy remains.
    """
    folded = unicodedata.normalize("NFKD", title).encode("ascii", "ignore").decode("ascii")
    slug = _NON_SLUG_RE.sub("-", folded.lower()).strip("-")
    slug = slug[:MAX_SLUG_LENGTH].rstrip("-")
    if not slug:
        raise InvalidRequestError(
            ApiErrorCode.E_SLUG_INVALID, "Title must contain at least one letter or digit"
        )
    return slug


def reserve_slug(
    store: NodeStore,
    collection_id: str,
    candidate: str,
    exclude_id: UUID | None = None,
) -> str:
    """Confirm no other node in the collection holds candidate.

    This is a read only; the slug is persisted by the caller's write.

    Args:
        store: Node store (inside the caller's write transaction).
        collection_id: Collection the slug must be unique in.
        candidate: Slug to check.
        exclude_id: Node being updated, which may already hold the slug.

    Returns:
        The candidate slug.

    Raises:
        SlugConflictError: If another node holds the slug.
    """
    holder = store.find_by_slug(collection_id, candidate, exclude_id=exclude_id)
    if holder is not None:
        raise SlugConflictError(candidate)
    return candidate
