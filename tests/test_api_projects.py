"""
Project API tests.

Tests cover:
  - create / list / get, sidebar order and lone-project auto-selection
  - name validation
  - ownership: foreign projects are reported as 404
  - delete cascades to every collection and to uploaded files
"""

import os

from casebook.models import db as _db
from casebook.models.project import Project
from casebook.models.records import Decision, Entry, JournalEntry, ProblemSolution
from casebook.services import project_service


def _create(client, headers, name):
    return client.post("/api/v1/projects", json={"name": name}, headers=headers)


class TestCreateAndList:
    def test_lone_project_is_selected(self, client, auth_headers):
        res = _create(client, auth_headers, "  Client Redesign  ")
        assert res.status_code == 201
        project = res.get_json()
        assert project["name"] == "Client Redesign"

        listing = client.get("/api/v1/projects", headers=auth_headers).get_json()
        assert listing["total"] == 1
        assert listing["items"][0]["name"] == "Client Redesign"
        assert listing["selected_project_id"] == project["id"]

    def test_no_selection_with_several_projects(self, client, auth_headers):
        _create(client, auth_headers, "First")
        _create(client, auth_headers, "Second")
        listing = client.get("/api/v1/projects", headers=auth_headers).get_json()
        assert [p["name"] for p in listing["items"]] == ["First", "Second"]
        assert listing["selected_project_id"] is None

    def test_empty_list(self, client, auth_headers):
        listing = client.get("/api/v1/projects", headers=auth_headers).get_json()
        assert listing == {"items": [], "total": 0, "selected_project_id": None}

    def test_blank_name(self, client, auth_headers):
        res = _create(client, auth_headers, "   ")
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_REQUIRED"
        assert body["details"] == {"name": "required"}
        assert Project.query.count() == 0

    def test_name_too_long(self, client, auth_headers):
        res = _create(client, auth_headers, "x" * 201)
        assert res.status_code == 422
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"

    def test_duplicate_names_allowed(self, client, auth_headers):
        assert _create(client, auth_headers, "Same").status_code == 201
        assert _create(client, auth_headers, "Same").status_code == 201


class TestOwnership:
    def test_lists_only_own_projects(self, client, project, other_headers):
        listing = client.get("/api/v1/projects", headers=other_headers).get_json()
        assert listing["total"] == 0

    def test_foreign_project_get_is_404(self, client, project, other_headers):
        res = client.get(f"/api/v1/projects/{project['id']}", headers=other_headers)
        assert res.status_code == 404
        assert res.get_json()["code"] == "ERR_NOT_FOUND"

    def test_foreign_project_delete_is_404(self, client, project, other_headers):
        res = client.delete(f"/api/v1/projects/{project['id']}", headers=other_headers)
        assert res.status_code == 404
        assert _db.session.get(Project, project["id"]) is not None

    def test_missing_project(self, client, auth_headers):
        assert client.get("/api/v1/projects/999", headers=auth_headers).status_code == 404


class TestDelete:
    def test_delete_cascades_rows_and_files(self, client, auth_headers, project, png_upload, upload_dir):
        pid = project["id"]
        for collection, body in (
            ("entries", {"content": "note"}),
            ("decisions", {"title": "Pick a font"}),
            ("journal_entries", {"content": "Good day"}),
            ("problem_solutions", {"title": "Slow build"}),
        ):
            res = client.post(f"/api/v1/projects/{pid}/{collection}", json=body, headers=auth_headers)
            assert res.status_code == 201

        shot = client.post(
            f"/api/v1/projects/{pid}/screenshots",
            data={"file": png_upload(), "caption": "Home"},
            headers=auth_headers,
            content_type="multipart/form-data",
        ).get_json()
        bucket_dir = os.path.join(upload_dir, "project_files")
        path = shot["file_url"].split("/project_files/", 1)[1]
        assert os.path.isfile(os.path.join(bucket_dir, path))

        res = client.delete(f"/api/v1/projects/{pid}", headers=auth_headers)
        assert res.status_code == 200
        assert res.get_json()["deleted"] == {
            "entries": 2,
            "decisions": 1,
            "journal_entries": 1,
            "problem_solutions": 1,
        }

        assert not os.path.exists(os.path.join(bucket_dir, path))
        assert _db.session.get(Project, pid) is None
        for model in (Entry, Decision, JournalEntry, ProblemSolution):
            assert model.query.filter_by(project_id=pid).count() == 0
        assert client.get(f"/api/v1/projects/{pid}", headers=auth_headers).status_code == 404

    def test_delete_leaves_other_projects_alone(self, client, auth_headers, auth):
        keep = _create(client, auth_headers, "Keep").get_json()
        drop = _create(client, auth_headers, "Drop").get_json()
        client.post(f"/api/v1/projects/{keep['id']}/decisions", json={"title": "Stay"},
                    headers=auth_headers)

        client.delete(f"/api/v1/projects/{drop['id']}", headers=auth_headers)

        assert [p.name for p in project_service.list_projects(auth)] == ["Keep"]
        assert Decision.query.filter_by(project_id=keep["id"]).count() == 1
