"""Test helpers for route-level tests.

Provides:
- Node creation through the HTTP API
- Envelope unwrapping with status assertions
"""

from typing import Any

from fastapi.testclient import TestClient
from httpx import Response


def data_of(response: Response, status_code: int = 200) -> Any:
    """Assert the status code and return the success envelope's data."""
    assert response.status_code == status_code, response.text
    return response.json()["data"]


def error_of(response: Response, status_code: int) -> dict[str, Any]:
    """Assert the status code and return the error envelope's error object."""
    assert response.status_code == status_code, response.text
    return response.json()["error"]


def create_node_via_api(
    client: TestClient,
    title: str,
    *,
    collection_id: str = "docs",
    parent_id: str | None = None,
    status: str = "published",
    **extra: Any,
) -> dict[str, Any]:
    """Create a node through POST and return the created node."""
    body: dict[str, Any] = {"title": title, "status": status, **extra}
    if parent_id is not None:
        body["parent_id"] = parent_id
    response = client.post(f"/collections/{collection_id}/nodes", json=body)
    return data_of(response, 201)
