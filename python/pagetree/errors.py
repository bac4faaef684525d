"""API error definitions.

All API errors are defined here with their corresponding HTTP status codes.
Hierarchy failures are typed subclasses so callers can catch a specific kind
without inspecting codes.
"""

from enum import Enum


class ApiErrorCode(str, Enum):
    """Standardized error codes for the API.

    Format: E_CATEGORY_NAME
    """

    # Not found errors (404)
    E_NOT_FOUND = "E_NOT_FOUND"
    E_NODE_NOT_FOUND = "E_NODE_NOT_FOUND"

    # Validation errors (400)
    E_INVALID_REQUEST = "E_INVALID_REQUEST"
    E_SLUG_INVALID = "E_SLUG_INVALID"
    E_INVALID_PARENT = "E_INVALID_PARENT"
    E_SELF_PARENT = "E_SELF_PARENT"
    E_CIRCULAR_REFERENCE = "E_CIRCULAR_REFERENCE"

    # Conflict errors (409)
    E_SLUG_CONFLICT = "E_SLUG_CONFLICT"
    E_HAS_CHILDREN = "E_HAS_CHILDREN"

    # Server errors
    E_STORE_UNAVAILABLE = "E_STORE_UNAVAILABLE"  # 503
    E_HIERARCHY_CORRUPT = "E_HIERARCHY_CORRUPT"  # 500
    E_INTERNAL = "E_INTERNAL"  # 500


# Error code to HTTP status mapping
ERROR_CODE_TO_STATUS: dict[ApiErrorCode, int] = {
    ApiErrorCode.E_NOT_FOUND: 404,
    ApiErrorCode.E_NODE_NOT_FOUND: 404,
    ApiErrorCode.E_INVALID_REQUEST: 400,
    ApiErrorCode.E_SLUG_INVALID: 400,
    ApiErrorCode.E_INVALID_PARENT: 400,
    ApiErrorCode.E_SELF_PARENT: 400,
    ApiErrorCode.E_CIRCULAR_REFERENCE: 400,
    ApiErrorCode.E_SLUG_CONFLICT: 409,
    ApiErrorCode.E_HAS_CHILDREN: 409,
    ApiErrorCode.E_STORE_UNAVAILABLE: 503,
    ApiErrorCode.E_HIERARCHY_CORRUPT: 500,
    ApiErrorCode.E_INTERNAL: 500,
}


class ApiError(Exception):
    """Base exception for API errors.

    Attributes:
        code: The error code enum value
        message: Human-readable error message
        status_code: HTTP status code (derived from code)
    """

    def __init__(self, code: ApiErrorCode, message: str):
        self.code = code
        self.message = message
        self.status_code = ERROR_CODE_TO_STATUS.get(code, 500)
        super().__init__(message)


class NotFoundError(ApiError):
    """Resource not found error."""

    def __init__(self, code: ApiErrorCode = ApiErrorCode.E_NOT_FOUND, message: str = "Not found"):
        super().__init__(code, message)


class InvalidRequestError(ApiError):
    """Invalid request error."""

    def __init__(
        self, code: ApiErrorCode = ApiErrorCode.E_INVALID_REQUEST, message: str = "Invalid request"
    ):
        super().__init__(code, message)


class ConflictError(ApiError):
    """Request conflicts with the current state of a resource."""

    def __init__(self, code: ApiErrorCode, message: str = "Conflict"):
        super().__init__(code, message)


# =============================================================================
# Hierarchy errors
# =============================================================================


class NodeNotFoundError(NotFoundError):
    """Referenced content node does not exist."""

    def __init__(self, node_ref: object):
        self.node_ref = node_ref
        super().__init__(ApiErrorCode.E_NODE_NOT_FOUND, f'Content node "{node_ref}" not found')


class InvalidParentError(InvalidRequestError):
    """Candidate parent does not exist in the node's collection."""

    def __init__(self, parent_id: object):
        self.parent_id = parent_id
        super().__init__(
            ApiErrorCode.E_INVALID_PARENT, f'Parent content node "{parent_id}" not found'
        )


class SelfParentError(InvalidRequestError):
    """A node was asked to become its own parent."""

    def __init__(self, node_id: object):
        self.node_id = node_id
        super().__init__(ApiErrorCode.E_SELF_PARENT, "Content node cannot be its own parent")


class CircularReferenceError(InvalidRequestError):
    """Re-parenting would make a node its own ancestor."""

    def __init__(self, node_id: object, parent_id: object):
        self.node_id = node_id
        self.parent_id = parent_id
        super().__init__(
            ApiErrorCode.E_CIRCULAR_REFERENCE,
            "Cannot set parent: would create circular reference",
        )


class SlugConflictError(ConflictError):
    """Derived slug is already held by another node in the collection."""

    def __init__(self, slug: str):
        self.slug = slug
        super().__init__(
            ApiErrorCode.E_SLUG_CONFLICT, f'Content node with slug "{slug}" already exists'
        )


class HasChildrenError(ConflictError):
    """Deletion attempted on a node that still has children."""

    def __init__(self, node_id: object, child_count: int):
        self.node_id = node_id
        self.child_count = child_count
        super().__init__(
            ApiErrorCode.E_HAS_CHILDREN,
            "Cannot delete content node with children. Delete or move children first.",
        )


class StoreUnavailableError(ApiError):
    """The node store failed or timed out. Callers may retry with backoff."""

    def __init__(self, message: str = "Content store unavailable"):
        super().__init__(ApiErrorCode.E_STORE_UNAVAILABLE, message)


class HierarchyCorruptError(ApiError):
    """An ancestor walk revisited a node or exceeded its step ceiling."""

    def __init__(self, start_id: object, message: str):
        self.start_id = start_id
        super().__init__(ApiErrorCode.E_HIERARCHY_CORRUPT, message)
