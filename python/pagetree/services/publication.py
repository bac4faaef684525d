"""Publication filter: which statuses are visible to a reader.

The filter is injected into tree reads rather than hard-coded, so routes
(or tests) can swap in a wider view without touching the assembly code.
It is both a predicate over nodes and a status set the store can push down
into its queries.
"""

from dataclasses import dataclass

from pagetree.db.models import ContentNode, ContentStatus


@dataclass(frozen=True)
class PublicationFilter:
    """Visibility predicate over content nodes.

    Attributes:
        statuses: Statuses that pass the filter. None lets every node through.
    """

    statuses: frozenset[ContentStatus] | None

    def __call__(self, node: ContentNode) -> bool:
        return self.statuses is None or node.status in self.statuses


PUBLISHED_ONLY = PublicationFilter(frozenset({ContentStatus.published}))
ALL_STATUSES = PublicationFilter(None)
