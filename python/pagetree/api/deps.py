"""FastAPI dependencies for route handlers.

Common dependencies like database sessions and the publication filter.
"""

from pagetree.db.session import get_db, get_session_factory
from pagetree.services.publication import PUBLISHED_ONLY, PublicationFilter

__all__ = ["get_db", "get_publication_filter", "get_session_factory"]


def get_publication_filter() -> PublicationFilter:
    """Visibility predicate for public tree reads.

    Defaults to published nodes only. Override with
    app.dependency_overrides[get_publication_filter] to widen the view.
    """
    return PUBLISHED_ONLY
