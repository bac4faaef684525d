"""Route tests for the content node API.

Tests cover:
- Success envelopes and status codes for every node route
- Hierarchy failures mapped to distinguishable client errors
- Request validation mapped to 400 E_INVALID_REQUEST
- Publication filter injection on tree reads
"""

from uuid import uuid4

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from pagetree.api.deps import get_publication_filter
from pagetree.services.publication import ALL_STATUSES
from tests.helpers import create_node_via_api, data_of, error_of


class TestCreateRoute:
    """Tests for POST /collections/{collection_id}/nodes."""

    def test_create_returns_201_with_slug(self, client: TestClient):
        node = create_node_via_api(client, "Getting Started")

        assert node["slug"] == "getting-started"
        assert node["parent_id"] is None
        assert node["status"] == "published"
        assert node["published_at"] is not None

    def test_default_status_is_draft(self, client: TestClient):
        response = client.post("/collections/docs/nodes", json={"title": "Notes"})

        node = data_of(response, 201)
        assert node["status"] == "draft"
        assert node["published_at"] is None

    def test_duplicate_slug_is_409(self, client: TestClient):
        create_node_via_api(client, "Setup Guide")

        response = client.post("/collections/docs/nodes", json={"title": "Setup Guide"})

        assert error_of(response, 409)["code"] == "E_SLUG_CONFLICT"

    def test_missing_parent_is_400(self, client: TestClient):
        response = client.post(
            "/collections/docs/nodes", json={"title": "Orphan", "parent_id": str(uuid4())}
        )

        assert error_of(response, 400)["code"] == "E_INVALID_PARENT"

    @pytest.mark.parametrize(
        "body",
        [
            {},
            {"title": ""},
            {"title": "   "},
            {"title": "x" * 201},
            {"title": "Bad", "status": "live"},
            {"title": "Bad", "parent_id": "not-a-uuid"},
        ],
    )
    def test_invalid_body_is_400(self, client: TestClient, body: dict):
        response = client.post("/collections/docs/nodes", json=body)

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"

    def test_unsluggable_title_is_400(self, client: TestClient):
        response = client.post("/collections/docs/nodes", json={"title": "???"})

        assert error_of(response, 400)["code"] == "E_SLUG_INVALID"

    def test_malformed_json_is_400(self, client: TestClient):
        response = client.post(
            "/collections/docs/nodes",
            content="{not json",
            headers={"content-type": "application/json"},
        )

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"


class TestNodeRoutes:
    """Tests for /nodes/{node_id} routes."""

    def test_get_node(self, client: TestClient):
        parent = create_node_via_api(client, "Parent")
        create_node_via_api(client, "Child", parent_id=parent["id"])

        node = data_of(client.get(f"/nodes/{parent['id']}"))

        assert node["id"] == parent["id"]
        assert node["children_count"] == 1

    def test_get_unknown_node_is_404(self, client: TestClient):
        response = client.get(f"/nodes/{uuid4()}")

        assert error_of(response, 404)["code"] == "E_NODE_NOT_FOUND"

    def test_malformed_node_id_is_400(self, client: TestClient):
        response = client.get("/nodes/not-a-uuid")

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"

    def test_patch_title(self, client: TestClient):
        node = create_node_via_api(client, "Old")

        updated = data_of(client.patch(f"/nodes/{node['id']}", json={"title": "New"}))

        assert updated["title"] == "New"
        assert updated["slug"] == "new"

    def test_patch_null_parent_moves_to_root(self, client: TestClient):
        parent = create_node_via_api(client, "Parent")
        child = create_node_via_api(client, "Child", parent_id=parent["id"])

        updated = data_of(client.patch(f"/nodes/{child['id']}", json={"parent_id": None}))

        assert updated["parent_id"] is None

    def test_patch_null_status_is_400(self, client: TestClient):
        node = create_node_via_api(client, "Page")

        response = client.patch(f"/nodes/{node['id']}", json={"status": None})

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"

    def test_patch_self_parent_is_400(self, client: TestClient):
        node = create_node_via_api(client, "Page")

        response = client.patch(f"/nodes/{node['id']}", json={"parent_id": node["id"]})

        assert error_of(response, 400)["code"] == "E_SELF_PARENT"

    def test_move_under_descendant_is_400(self, client: TestClient):
        a = create_node_via_api(client, "A")
        b = create_node_via_api(client, "B", parent_id=a["id"])

        response = client.post(f"/nodes/{a['id']}/move", json={"parent_id": b["id"]})

        assert error_of(response, 400)["code"] == "E_CIRCULAR_REFERENCE"
        assert data_of(client.get(f"/nodes/{a['id']}"))["parent_id"] is None

    def test_move_requires_parent_id_key(self, client: TestClient):
        node = create_node_via_api(client, "Page")

        response = client.post(f"/nodes/{node['id']}/move", json={})

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"

    def test_move(self, client: TestClient):
        a = create_node_via_api(client, "A")
        b = create_node_via_api(client, "B")

        moved = data_of(client.post(f"/nodes/{b['id']}/move", json={"parent_id": a["id"]}))

        assert moved["parent_id"] == a["id"]

    def test_delete_with_children_is_409(self, client: TestClient):
        a = create_node_via_api(client, "A")
        b = create_node_via_api(client, "B", parent_id=a["id"])

        assert error_of(client.delete(f"/nodes/{a['id']}"), 409)["code"] == "E_HAS_CHILDREN"

        assert client.delete(f"/nodes/{b['id']}").status_code == 204
        response = client.delete(f"/nodes/{a['id']}")
        assert response.status_code == 204
        assert response.content == b""

    def test_delete_unknown_is_404(self, client: TestClient):
        assert error_of(client.delete(f"/nodes/{uuid4()}"), 404)["code"] == "E_NODE_NOT_FOUND"

    def test_children_and_breadcrumbs(self, client: TestClient):
        a = create_node_via_api(client, "A")
        b = create_node_via_api(client, "B", parent_id=a["id"])
        c = create_node_via_api(client, "C", parent_id=b["id"])

        children = data_of(client.get(f"/nodes/{a['id']}/children"))
        crumbs = data_of(client.get(f"/nodes/{c['id']}/breadcrumbs"))

        assert [n["id"] for n in children] == [b["id"]]
        assert crumbs == [
            {"id": a["id"], "title": "A", "slug": "a"},
            {"id": b["id"], "title": "B", "slug": "b"},
            {"id": c["id"], "title": "C", "slug": "c"},
        ]


class TestCollectionRoutes:
    """Tests for collection-scoped reads."""

    def test_get_by_slug(self, client: TestClient):
        node = create_node_via_api(client, "Install Guide")

        found = data_of(client.get("/collections/docs/nodes/by-slug/install-guide"))

        assert found["id"] == node["id"]

    def test_get_by_unknown_slug_is_404(self, client: TestClient):
        response = client.get("/collections/docs/nodes/by-slug/missing")

        assert error_of(response, 404)["code"] == "E_NODE_NOT_FOUND"

    def test_tree_depth_one(self, client: TestClient):
        a = create_node_via_api(client, "A")
        b = create_node_via_api(client, "B", parent_id=a["id"])
        create_node_via_api(client, "C", parent_id=b["id"])

        tree = data_of(client.get("/collections/docs/tree", params={"max_depth": 1}))

        assert tree["max_depth"] == 1
        assert tree["collection_id"] == "docs"
        (root,) = tree["nodes"]
        assert root["id"] == a["id"]
        assert [n["id"] for n in root["children"]] == [b["id"]]
        assert root["children"][0]["has_more_children"] is True
        assert root["children"][0]["children"] == []

    def test_tree_hides_drafts(self, client: TestClient):
        create_node_via_api(client, "Draft", status="draft")

        tree = data_of(client.get("/collections/docs/tree"))

        assert tree["nodes"] == []
        assert tree["max_depth"] == 5

    def test_tree_filter_can_be_overridden(self, app: FastAPI, client: TestClient):
        create_node_via_api(client, "Draft", status="draft")
        app.dependency_overrides[get_publication_filter] = lambda: ALL_STATUSES

        tree = data_of(client.get("/collections/docs/tree"))

        assert [n["title"] for n in tree["nodes"]] == ["Draft"]

    @pytest.mark.parametrize("max_depth", [-1, 21, "deep"])
    def test_tree_depth_out_of_range_is_400(self, client: TestClient, max_depth):
        response = client.get("/collections/docs/tree", params={"max_depth": max_depth})

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"

    def test_list_nodes(self, client: TestClient):
        for title in ["C", "A", "B"]:
            create_node_via_api(client, title)

        result = data_of(
            client.get(
                "/collections/docs/nodes",
                params={"sort_by": "title", "sort_order": "asc", "limit": 2},
            )
        )

        assert [n["title"] for n in result["nodes"]] == ["A", "B"]
        assert result["page"] == {"total": 3, "page": 1, "limit": 2, "total_pages": 2}

    def test_list_nodes_filters(self, client: TestClient):
        root = create_node_via_api(client, "Root")
        create_node_via_api(client, "Child", parent_id=root["id"], status="draft")

        result = data_of(
            client.get("/collections/docs/nodes", params={"status": "draft", "search": "chi"})
        )

        assert [n["title"] for n in result["nodes"]] == ["Child"]

    @pytest.mark.parametrize(
        "params",
        [{"sort_by": "slug"}, {"sort_order": "up"}, {"page": 0}, {"limit": 0}],
    )
    def test_list_invalid_params_is_400(self, client: TestClient, params: dict):
        response = client.get("/collections/docs/nodes", params=params)

        assert error_of(response, 400)["code"] == "E_INVALID_REQUEST"
