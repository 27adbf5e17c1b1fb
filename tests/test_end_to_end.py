"""
Tests: full pipeline: idea → analysis → confirmation → PRD/BRD →
diagrams → features → tasks, all through the HTTP API with the local stub
provider.
"""

from ideaforge.models import db
from ideaforge.models.document import Document, DocumentVersion
from tests.conftest import IDEA_TEXT


def _data(res, status=200):
    assert res.status_code == status, res.get_json()
    return res.get_json()["data"]


class TestMarketplacePipeline:
    def test_short_idea_is_rejected(self, client):
        res = client.post("/api/v1/ideas", json={"raw_text": "Photo marketplace"})
        assert res.status_code == 400
        assert res.get_json()["message"] == "Idea must be at least 20 characters"

    def test_full_pipeline(self, client, fake_llm):
        idea = _data(client.post("/api/v1/ideas", json={"raw_text": IDEA_TEXT}), 201)["idea"]

        analyzed = _data(client.post(f"/api/v1/ideas/{idea['id']}/analyze"))["idea"]
        assert analyzed["analysis_result"]["clarifyingQuestions"] == ["Who are the primary buyers?"]

        refined = _data(client.post(
            f"/api/v1/ideas/{idea['id']}/refine",
            json={"answers": [{"question": "Who are the primary buyers?",
                               "answer": "Interior designers and collectors."}]},
        ))["idea"]
        assert refined["analysis_result"] is not None

        confirmed = _data(client.post(f"/api/v1/ideas/{idea['id']}/confirm"))["idea"]
        assert confirmed["status"] == "confirmed"

        # documents: exactly one PRD and one BRD, each at version 1
        docs = _data(client.post(f"/api/v1/documents/generate/{idea['id']}"), 201)["documents"]
        assert sorted(d["type"] for d in docs) == ["BRD", "PRD"]
        assert db.session.query(Document).count() == 2
        for doc in docs:
            versions = _data(client.get(f"/api/v1/documents/{doc['id']}/versions"))["versions"]
            assert [(v["version"], v["changelog"]) for v in versions] == [(1, "Initial generation")]
        assert db.session.query(DocumentVersion).count() == 2

        diagrams = _data(client.post(f"/api/v1/diagrams/generate/{idea['id']}"), 201)["diagrams"]
        assert len(diagrams) == 3

        features = _data(client.post(f"/api/v1/features/extract/{idea['id']}"), 201)["features"]
        assert len(features) == 2
        feature = features[0]

        _data(client.post(
            f"/api/v1/features/{feature['id']}/diagrams/{diagrams[0]['id']}"), 201)

        tasks = _data(client.post(f"/api/v1/tasks/suggest/{feature['id']}"), 201)["tasks"]
        schema_task, api_task = tasks
        _data(client.post(
            f"/api/v1/tasks/{api_task['id']}/dependencies/{schema_task['id']}"), 201)
        _data(client.patch(
            f"/api/v1/tasks/{schema_task['id']}/status", json={"status": "completed"}))

        full = _data(client.get(f"/api/v1/features/{feature['id']}/full"))["feature"]
        assert full["diagram_ids"] == [diagrams[0]["id"]]
        assert [t["title"] for t in full["tasks"]] == ["Design schema", "Build API endpoints"]
        assert full["tasks"][0]["status"] == "completed"

        api_full = _data(client.get(f"/api/v1/tasks/{api_task['id']}/full"))["task"]
        assert api_full["depends_on"] == [schema_task["id"]]

        export = _data(client.get(f"/api/v1/documents/{docs[0]['id']}/export/markdown"))
        assert export["content"].startswith("# ")

        # deleting the idea removes the whole tree
        res = client.delete(f"/api/v1/ideas/{idea['id']}")
        assert res.status_code == 200
        assert res.get_json()["status"] == "success"
        assert db.session.query(Document).count() == 0
