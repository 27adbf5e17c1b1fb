"""
Tests: Document (PRD/BRD) API.

Covers:
    - generation gating (confirmed idea, no duplicates) and version 1 rows
    - fallback and 503 behaviour during generation
    - content edits, version history, revert, regenerate
    - export to Markdown / HTML
"""

import pytest

from ideaforge.models import db
from ideaforge.models.document import Document, DocumentVersion
from tests.conftest import IDEA_TEXT

PRD_REPLY = {"title": "PRD: Print Marketplace", "content": "<h2>Overview</h2><p>Sell prints.</p>"}
BRD_REPLY = {"title": "BRD: Print Marketplace", "content": "<h2>Summary</h2><p>Revenue share.</p>"}


def _versions(client, document_id):
    res = client.get(f"/api/v1/documents/{document_id}/versions")
    assert res.status_code == 200
    return res.get_json()["data"]["versions"]


def _update(client, document_id, **payload):
    return client.put(f"/api/v1/documents/{document_id}", json=payload)


# ═════════════════════════════════════════════════════════════════════════════
# GENERATION
# ═════════════════════════════════════════════════════════════════════════════


class TestGenerate:
    def test_generates_prd_and_brd(self, client, confirmed_idea, fake_llm):
        fake_llm.queue(PRD_REPLY, BRD_REPLY)
        res = client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
        assert res.status_code == 201
        docs = res.get_json()["data"]["documents"]
        assert [d["type"] for d in docs] == ["PRD", "BRD"]
        assert docs[0]["title"] == "PRD: Print Marketplace"
        assert docs[1]["content"] == BRD_REPLY["content"]
        assert all(d["status"] == "draft" for d in docs)

    def test_initial_versions(self, client, documents):
        for doc in documents.values():
            versions = _versions(client, doc["id"])
            assert len(versions) == 1
            assert versions[0]["version"] == 1
            assert versions[0]["changelog"] == "Initial generation"
            assert versions[0]["content"] == doc["content"]

    def test_prompt_includes_idea_and_analysis(self, client, confirmed_idea, fake_llm):
        client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
        prd_prompt = fake_llm.prompts[-2]
        assert IDEA_TEXT in prd_prompt
        assert "Do photographers ship prints themselves?" in prd_prompt

    def test_unconfirmed_idea_refused(self, client, idea):
        res = client.post(f"/api/v1/documents/generate/{idea['id']}")
        assert res.status_code == 409
        assert res.get_json()["message"] == "Only confirmed ideas can generate documents"
        assert db.session.query(Document).count() == 0

    def test_second_generation_refused(self, client, documents, confirmed_idea):
        res = client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
        assert res.status_code == 409
        assert res.get_json()["message"] == (
            "Documents already exist for this idea. Please edit the existing documents."
        )
        assert db.session.query(Document).count() == 2

    def test_missing_idea(self, client):
        assert client.post("/api/v1/documents/generate/missing").status_code == 404

    def test_invalid_output_uses_fallback(self, client, confirmed_idea, fake_llm):
        fake_llm.queue("nope", "still nope", BRD_REPLY)
        res = client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
        assert res.status_code == 201
        prd = res.get_json()["data"]["documents"][0]
        assert prd["title"] == "PRD: Product Requirements Document"
        assert IDEA_TEXT in prd["content"]

    def test_upstream_failure_creates_nothing(self, client, confirmed_idea, fake_llm):
        fake_llm.queue(PRD_REPLY, TimeoutError("slow"), TimeoutError("slow"))
        res = client.post(f"/api/v1/documents/generate/{confirmed_idea['id']}")
        assert res.status_code == 503
        assert db.session.query(Document).count() == 0
        assert db.session.query(DocumentVersion).count() == 0


# ═════════════════════════════════════════════════════════════════════════════
# READ
# ═════════════════════════════════════════════════════════════════════════════


class TestRead:
    def test_list_for_idea(self, client, documents, confirmed_idea):
        res = client.get(f"/api/v1/documents/idea/{confirmed_idea['id']}")
        assert res.status_code == 200
        assert {d["type"] for d in res.get_json()["data"]["documents"]} == {"PRD", "BRD"}

    def test_get_document(self, client, documents):
        doc_id = documents["PRD"]["id"]
        res = client.get(f"/api/v1/documents/{doc_id}")
        assert res.get_json()["data"]["document"]["id"] == doc_id

    def test_get_full_includes_versions(self, client, documents):
        res = client.get(f"/api/v1/documents/{documents['BRD']['id']}/full")
        assert len(res.get_json()["data"]["document"]["versions"]) == 1

    def test_missing_document(self, client):
        res = client.get("/api/v1/documents/missing")
        assert res.status_code == 404
        assert res.get_json()["message"] == "Document not found"


# ═════════════════════════════════════════════════════════════════════════════
# EDIT / VERSIONS
# ═════════════════════════════════════════════════════════════════════════════


class TestVersioning:
    def test_content_update_snapshots_previous(self, client, documents):
        doc = documents["PRD"]
        res = _update(client, doc["id"], content="<p>Edited</p>", changelog="Tightened scope")
        assert res.status_code == 200
        assert res.get_json()["data"]["document"]["content"] == "<p>Edited</p>"

        versions = _versions(client, doc["id"])
        assert [v["version"] for v in versions] == [2, 1]
        assert versions[0]["content"] == doc["content"]
        assert versions[0]["changelog"] == "Tightened scope"

    def test_default_changelog(self, client, documents):
        doc = documents["PRD"]
        _update(client, doc["id"], content="<p>Edited</p>")
        assert _versions(client, doc["id"])[0]["changelog"] == "Content updated"

    def test_unchanged_content_no_version(self, client, documents):
        doc = documents["PRD"]
        _update(client, doc["id"], content=doc["content"], title="Renamed PRD")
        assert len(_versions(client, doc["id"])) == 1

    def test_title_and_status_update(self, client, documents):
        doc = documents["BRD"]
        res = _update(client, doc["id"], title="  BRD v2  ", status="published")
        updated = res.get_json()["data"]["document"]
        assert updated["title"] == "BRD v2"
        assert updated["status"] == "published"

    @pytest.mark.parametrize("payload", [
        {"status": "archived"},
        {"title": ""},
        {"content": 42},
        {"status": ["draft"]},
        {"title": ["PRD"]},
        {"content": "<p>x</p>", "changelog": {"a": 1}},
        {"content": "<p>x</p>", "changelog": "x" * 501},
    ])
    def test_invalid_update(self, client, documents, payload):
        res = _update(client, documents["PRD"]["id"], **payload)
        assert res.status_code == 400
        assert len(_versions(client, documents["PRD"]["id"])) == 1

    def test_non_string_status_names_the_choices(self, client, documents):
        res = _update(client, documents["PRD"]["id"], status=["draft"])
        assert res.status_code == 400
        assert res.get_json()["message"] == "status must be one of: draft, published"

    def test_blank_changelog_uses_default(self, client, documents):
        doc = documents["PRD"]
        _update(client, doc["id"], content="<p>Edited</p>", changelog="   ")
        assert _versions(client, doc["id"])[0]["changelog"] == "Content updated"

    def test_versions_strictly_increase(self, client, documents):
        doc_id = documents["PRD"]["id"]
        for i in range(3):
            _update(client, doc_id, content=f"<p>Edit {i}</p>")
        numbers = [v["version"] for v in _versions(client, doc_id)]
        assert numbers == [4, 3, 2, 1]

    def test_revert(self, client, documents):
        doc = documents["PRD"]
        original = doc["content"]
        _update(client, doc["id"], content="<p>Edit A</p>")

        res = client.post(f"/api/v1/documents/{doc['id']}/revert/1")
        assert res.status_code == 200
        assert res.get_json()["data"]["document"]["content"] == original

        versions = _versions(client, doc["id"])
        assert [v["version"] for v in versions] == [3, 2, 1]
        assert versions[0]["changelog"] == "Reverted to version 1"
        assert versions[0]["content"] == "<p>Edit A</p>"

    def test_revert_unknown_version(self, client, documents):
        res = client.post(f"/api/v1/documents/{documents['PRD']['id']}/revert/9")
        assert res.status_code == 404
        assert res.get_json()["message"] == "Version not found"

    def test_regenerate(self, client, documents, fake_llm):
        doc = documents["PRD"]
        fake_llm.queue(PRD_REPLY)
        res = client.post(f"/api/v1/documents/{doc['id']}/regenerate")
        assert res.status_code == 200
        regenerated = res.get_json()["data"]["document"]
        assert regenerated["title"] == PRD_REPLY["title"]
        assert regenerated["content"] == PRD_REPLY["content"]

        versions = _versions(client, doc["id"])
        assert versions[0]["changelog"] == "Regenerated by AI"
        assert versions[0]["content"] == doc["content"]

    def test_regenerate_upstream_failure_keeps_content(self, client, documents, fake_llm):
        doc = documents["PRD"]
        fake_llm.queue(ConnectionError("x"), ConnectionError("y"))
        res = client.post(f"/api/v1/documents/{doc['id']}/regenerate")
        assert res.status_code == 503
        assert db.session.get(Document, doc["id"]).content == doc["content"]
        assert len(_versions(client, doc["id"])) == 1


# ═════════════════════════════════════════════════════════════════════════════
# EXPORT
# ═════════════════════════════════════════════════════════════════════════════


class TestExport:
    def test_markdown(self, client, documents):
        doc = documents["PRD"]
        res = client.get(f"/api/v1/documents/{doc['id']}/export/markdown")
        assert res.status_code == 200
        data = res.get_json()["data"]
        assert data["mime_type"] == "text/markdown"
        assert data["filename"].endswith(".md")
        assert data["content"].startswith(f"# {doc['title']}")

    def test_html(self, client, documents):
        res = client.get(f"/api/v1/documents/{documents['BRD']['id']}/export/html")
        data = res.get_json()["data"]
        assert data["mime_type"] == "text/html"
        assert "<!DOCTYPE html>" in data["content"]

    def test_unsupported_format(self, client, documents):
        res = client.get(f"/api/v1/documents/{documents['PRD']['id']}/export/pdf")
        assert res.status_code == 400
        assert res.get_json()["message"] == "Unsupported export format"
