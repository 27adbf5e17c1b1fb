"""
Tests: Diagram API.

Covers:
    - default and explicit type selection
    - per-type failure isolation and the all-failed 503
    - Mermaid code edits, history, revert, regenerate
"""

import pytest

from ideaforge.models import db
from ideaforge.models.diagram import Diagram, DiagramVersion

ERD_REPLY = {"title": "Marketplace Entities", "mermaidCode": "erDiagram\n    PHOTOGRAPHER ||--o{ PRINT : sells"}


def _generate(client, idea_id, types=None):
    payload = {"types": types} if types is not None else None
    if payload is None:
        return client.post(f"/api/v1/diagrams/generate/{idea_id}")
    return client.post(f"/api/v1/diagrams/generate/{idea_id}", json=payload)


def _versions(client, diagram_id):
    return client.get(f"/api/v1/diagrams/{diagram_id}/versions").get_json()["data"]["versions"]


@pytest.fixture()
def erd(client, confirmed_idea, fake_llm):
    fake_llm.queue(ERD_REPLY)
    res = _generate(client, confirmed_idea["id"], ["ERD"])
    assert res.status_code == 201
    return res.get_json()["data"]["diagrams"][0]


# ═════════════════════════════════════════════════════════════════════════════
# GENERATION
# ═════════════════════════════════════════════════════════════════════════════


class TestGenerate:
    def test_default_types(self, client, confirmed_idea):
        res = _generate(client, confirmed_idea["id"])
        assert res.status_code == 201
        diagrams = res.get_json()["data"]["diagrams"]
        assert [d["type"] for d in diagrams] == ["ERD", "SEQUENCE", "SCHEMA"]
        assert diagrams[0]["mermaid_code"].startswith("erDiagram")
        assert diagrams[1]["mermaid_code"].startswith("sequenceDiagram")
        assert diagrams[2]["mermaid_code"].startswith("graph TB")

    def test_explicit_types(self, client, confirmed_idea):
        res = _generate(client, confirmed_idea["id"], ["FLOWCHART"])
        diagrams = res.get_json()["data"]["diagrams"]
        assert [d["type"] for d in diagrams] == ["FLOWCHART"]
        assert diagrams[0]["mermaid_code"].startswith("flowchart TD")

    def test_duplicate_types_collapsed(self, client, confirmed_idea):
        res = _generate(client, confirmed_idea["id"], ["ERD", "ERD"])
        assert len(res.get_json()["data"]["diagrams"]) == 1

    def test_initial_version(self, client, erd):
        versions = _versions(client, erd["id"])
        assert len(versions) == 1
        assert versions[0]["changelog"] == "Initial generation"
        assert versions[0]["mermaid_code"] == ERD_REPLY["mermaidCode"]

    @pytest.mark.parametrize("types", [["GANTT"], [], "ERD"])
    def test_invalid_types(self, client, confirmed_idea, types):
        res = _generate(client, confirmed_idea["id"], types)
        assert res.status_code == 400
        assert db.session.query(Diagram).count() == 0

    def test_unconfirmed_idea_refused(self, client, idea):
        res = _generate(client, idea["id"])
        assert res.status_code == 409
        assert res.get_json()["message"] == "Cannot generate diagrams for unconfirmed idea"
        assert db.session.query(Diagram).count() == 0

    def test_failed_type_is_skipped(self, client, confirmed_idea, fake_llm):
        fake_llm.queue(ConnectionError("a"), ConnectionError("b"))
        res = _generate(client, confirmed_idea["id"], ["ERD", "SEQUENCE"])
        assert res.status_code == 201
        diagrams = res.get_json()["data"]["diagrams"]
        assert [d["type"] for d in diagrams] == ["SEQUENCE"]

    def test_all_types_failed_is_503(self, client, confirmed_idea, fake_llm):
        fake_llm.queue(*[ConnectionError("down")] * 4)
        res = _generate(client, confirmed_idea["id"], ["ERD", "SCHEMA"])
        assert res.status_code == 503
        assert db.session.query(Diagram).count() == 0
        assert db.session.query(DiagramVersion).count() == 0

    def test_invalid_output_uses_placeholder(self, client, confirmed_idea, fake_llm):
        fake_llm.queue("bad", '{"title": "no code"}')
        res = _generate(client, confirmed_idea["id"], ["SEQUENCE"])
        diagram = res.get_json()["data"]["diagrams"][0]
        assert diagram["title"] == "Sequence: Placeholder"


# ═════════════════════════════════════════════════════════════════════════════
# READ / EDIT / VERSIONS
# ═════════════════════════════════════════════════════════════════════════════


class TestDiagramVersions:
    def test_list_for_idea(self, client, erd, confirmed_idea):
        res = client.get(f"/api/v1/diagrams/idea/{confirmed_idea['id']}")
        assert [d["id"] for d in res.get_json()["data"]["diagrams"]] == [erd["id"]]

    def test_get_full(self, client, erd):
        res = client.get(f"/api/v1/diagrams/{erd['id']}/full")
        assert res.get_json()["data"]["diagram"]["versions"][0]["version"] == 1

    def test_update_code_snapshots(self, client, erd):
        new_code = "erDiagram\n    BUYER ||--o{ ORDER : places"
        res = client.put(f"/api/v1/diagrams/{erd['id']}", json={"mermaid_code": new_code})
        assert res.status_code == 200
        assert res.get_json()["data"]["diagram"]["mermaid_code"] == new_code

        versions = _versions(client, erd["id"])
        assert versions[0]["version"] == 2
        assert versions[0]["changelog"] == "Previous version"
        assert versions[0]["mermaid_code"] == ERD_REPLY["mermaidCode"]

    def test_title_only_no_version(self, client, erd):
        client.put(f"/api/v1/diagrams/{erd['id']}", json={"title": "Entities v2"})
        assert len(_versions(client, erd["id"])) == 1

    def test_invalid_status(self, client, erd):
        res = client.put(f"/api/v1/diagrams/{erd['id']}", json={"status": "final"})
        assert res.status_code == 400

    @pytest.mark.parametrize("payload", [
        {"status": ["draft"]},
        {"status": {"value": "published"}},
        {"mermaid_code": "erDiagram\n    A", "changelog": {"a": 1}},
        {"mermaid_code": "erDiagram\n    A", "changelog": 7},
    ])
    def test_malformed_fields_rejected(self, client, erd, payload):
        res = client.put(f"/api/v1/diagrams/{erd['id']}", json=payload)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"
        assert len(_versions(client, erd["id"])) == 1

    def test_revert(self, client, erd):
        client.put(f"/api/v1/diagrams/{erd['id']}", json={"mermaid_code": "erDiagram\n    A"})
        res = client.post(f"/api/v1/diagrams/{erd['id']}/revert/1")
        assert res.get_json()["data"]["diagram"]["mermaid_code"] == ERD_REPLY["mermaidCode"]
        versions = _versions(client, erd["id"])
        assert versions[0]["changelog"] == "Reverted to version 1"
        assert versions[0]["mermaid_code"] == "erDiagram\n    A"

    def test_revert_unknown_version(self, client, erd):
        assert client.post(f"/api/v1/diagrams/{erd['id']}/revert/5").status_code == 404

    def test_regenerate(self, client, erd, fake_llm):
        fake_llm.queue({"title": "Entities again", "mermaidCode": "erDiagram\n    NEW"})
        res = client.post(f"/api/v1/diagrams/{erd['id']}/regenerate")
        assert res.get_json()["data"]["diagram"]["mermaid_code"] == "erDiagram\n    NEW"
        versions = _versions(client, erd["id"])
        assert versions[0]["changelog"] == "Before regeneration"
        assert versions[0]["mermaid_code"] == ERD_REPLY["mermaidCode"]

    def test_missing_diagram(self, client):
        assert client.get("/api/v1/diagrams/missing").status_code == 404
