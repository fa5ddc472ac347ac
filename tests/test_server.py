"""
Tests for the read-only JSON API.
"""

import pytest

pytest.importorskip("fastapi")
pytest.importorskip("httpx")

from fastapi.testclient import TestClient  # noqa: E402

from airsdlc.ui.server import create_app  # noqa: E402


@pytest.fixture
def client(store, chain):
    return TestClient(create_app(store.root))


class TestApi:

    def test_status(self, client):
        data = client.get("/api/status").json()
        assert data["total"] == 5
        assert data["open"] == ["BOLT-001 [todo] Cancel endpoint"]

    def test_list_and_filter(self, client):
        assert len(client.get("/api/artifacts").json()) == 5
        data = client.get("/api/artifacts", params={"type": "rfc"}).json()
        assert [a["id"] for a in data] == ["RFC-001"]
        data = client.get("/api/artifacts", params={"status": "todo"}).json()
        assert [a["id"] for a in data] == ["BOLT-001"]

    def test_bad_type(self, client):
        response = client.get("/api/artifacts", params={"type": "epic"})
        assert response.status_code == 400

    def test_artifact(self, client):
        data = client.get("/api/artifacts/adr-1").json()
        assert data["id"] == "ADR-001"
        assert data["status"] == "accepted"
        assert data["next_steps"][0].startswith("Break it into Bolts")

    def test_missing_artifact(self, client):
        assert client.get("/api/artifacts/ADR-404").status_code == 404
        assert client.get("/api/artifacts/ADR-404/trace").status_code == 404

    def test_trace(self, client):
        data = client.get("/api/artifacts/RFC-001/trace").json()
        assert data["parents"] == ["DAA-001"]
        assert data["children"] == ["ADR-001"]
        assert data["lineage"] == [["PRD-001", "DAA-001", "RFC-001"]]

    def test_impact(self, client):
        data = client.get("/api/artifacts/PRD-001/impact").json()
        assert data["total_affected"] == 4
        assert data["risk"] == "MEDIUM"
        data = client.get("/api/artifacts/PRD-001/impact", params={"depth": 1}).json()
        assert data["direct_dependents"] == ["DAA-001"]
        assert data["total_affected"] == 1

    def test_audit(self, client):
        data = client.get("/api/audit").json()
        assert data["ok"] is True
        assert data["checked"] == 5

    def test_playbook_empty(self, client):
        assert client.get("/api/playbook").json() == []

    def test_malformed_playbook(self, client, store):
        (store.workspace / "playbook.yaml").write_text("- a\n- b\n")
        response = client.get("/api/playbook")
        assert response.status_code == 500
        assert "playbook.yaml" in response.json()["detail"]
