"""
Tests for the Admin Redirects API.
"""

from __future__ import annotations

import json

from fastapi.testclient import TestClient

from src.app_shell.context import ServiceContext

BASE = "/api/admin/redirects"


# --- Helper Functions ---


def add(client: TestClient, source: str, target: str, status: int | None = None) -> dict:
    body: dict = {"from": source, "to": target}
    if status is not None:
        body["type"] = status
    response = client.post(BASE, json=body)
    assert response.status_code == 201, response.text
    return response.json()


# --- Routes ---


class TestCreate:
    def test_create(self, client: TestClient) -> None:
        data = add(client, "/old", "/new", 302)

        assert data == {"from": "/old", "to": "/new", "type": 302, "hits": 0}

    def test_default_type(self, client: TestClient) -> None:
        assert add(client, "/old", "/new")["type"] == 301

    def test_invalid(self, client: TestClient) -> None:
        response = client.post(BASE, json={"from": "~(", "to": "javascript:void(0)"})

        assert response.status_code == 400
        codes = {e["code"] for e in response.json()["detail"]["errors"]}
        assert codes == {"invalid_pattern", "invalid_target"}

    def test_missing_field_is_422(self, client: TestClient) -> None:
        assert client.post(BASE, json={"to": "/x"}).status_code == 422


class TestList:
    def test_in_match_order(self, client: TestClient) -> None:
        add(client, "/a", "/1")
        add(client, "/b", "/2")
        add(client, "/a", "/3")

        data = client.get(BASE).json()

        assert data["count"] == 2
        assert [(r["from"], r["to"]) for r in data["redirects"]] == [("/b", "/2"), ("/a", "/3")]


class TestDelete:
    def test_delete(self, client: TestClient, ctx: ServiceContext) -> None:
        add(client, "/a", "/b")

        response = client.delete(BASE, params={"from": "/a"})

        assert response.status_code == 200
        assert response.json() == {"deleted": True}
        assert ctx.redirects.rules() == []

    def test_delete_missing(self, client: TestClient) -> None:
        assert client.delete(BASE, params={"from": "/nope"}).status_code == 404


class TestExportImport:
    def test_export(self, client: TestClient, ctx: ServiceContext) -> None:
        add(client, "/a", "/b")
        ctx.redirects.handle("/a")

        response = client.get(f"{BASE}/export")

        assert response.status_code == 200
        assert "attachment" in response.headers["content-disposition"]
        assert response.json() == [{"from": "/a", "to": "/b", "type": 301, "hits": 1}]

    def test_import_list(self, client: TestClient, ctx: ServiceContext) -> None:
        add(client, "/gone", "/x")
        payload = [
            {"from": "/a", "to": "/b", "type": 302, "hits": 3},
            {"from": "", "to": "/skipped"},
        ]

        response = client.post(f"{BASE}/import", json=payload)

        assert response.json() == {"imported": 1}
        assert [r.to_dict() for r in ctx.redirects.rules()] == [payload[0]]

    def test_import_uploaded_file_text(self, client: TestClient) -> None:
        text = json.dumps([{"from": "/a", "to": "/b"}])

        response = client.post(f"{BASE}/import", json={"data": text})

        assert response.json() == {"imported": 1}

    def test_import_rejects_non_array(self, client: TestClient, ctx: ServiceContext) -> None:
        add(client, "/keep", "/me")

        response = client.post(f"{BASE}/import", json={"data": {"from": "/a"}})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "invalid_type"
        assert len(ctx.redirects.rules()) == 1

    def test_import_rejects_bad_json(self, client: TestClient) -> None:
        response = client.post(f"{BASE}/import", json={"data": "[{"})

        assert response.status_code == 400
        assert response.json()["detail"]["errors"][0]["code"] == "invalid_json"


class TestMatch:
    def test_match_does_not_count(self, client: TestClient, ctx: ServiceContext) -> None:
        add(client, "~^/p/(\\d+)", "/post/$1", 302)

        data = client.get(f"{BASE}/match", params={"path": "/p/7"}).json()

        assert data["matched"] is True
        assert data["target"] == "/post/7"
        assert data["status_code"] == 302
        assert data["rule"]["from"] == "~^/p/(\\d+)"
        assert ctx.redirects.rules()[0].hits == 0

    def test_no_match(self, client: TestClient) -> None:
        data = client.get(f"{BASE}/match", params={"path": "/"}).json()

        assert data == {
            "path": "/",
            "matched": False,
            "target": None,
            "status_code": None,
            "rule": None,
        }
