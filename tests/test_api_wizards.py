"""
Wizard API tests — the stateless JSON surface over the stepped-form engine.

Tests cover:
  - schema listing and initial create/edit states
  - transitions, including the 422 required-field block
  - submit: create (201), edit without duplicates (200), review-step only
  - screenshot wizard: multipart state + file
"""

import json

import pytest

from casebook.models.records import Decision, Entry, JournalEntry


def _transition(client, headers, kind, state, action, field=None, value=None):
    body = {"state": state, "action": action}
    if field is not None:
        body["field"] = field
        body["value"] = value
    return client.post(f"/api/v1/wizards/{kind}/transition", json=body, headers=headers)


def _submit(client, headers, project, kind, state):
    return client.post(f"/api/v1/projects/{project['id']}/wizards/{kind}/submit",
                       json={"state": state}, headers=headers)


def _initial(client, headers, kind):
    return client.get(f"/api/v1/wizards/{kind}", headers=headers).get_json()["state"]


class TestSchemas:
    def test_list(self, client, auth_headers):
        data = client.get("/api/v1/wizards", headers=auth_headers).get_json()
        assert [s["kind"] for s in data["items"]] == [
            "note", "screenshot", "decision", "journal", "problem_solution",
        ]

    def test_initial_state(self, client, auth_headers):
        data = client.get("/api/v1/wizards/decision", headers=auth_headers).get_json()
        assert data["schema"]["total_steps"] == 4
        assert data["state"]["step"] == 1
        assert data["state"]["values"]["status"] == "Proposed"
        assert data["state"]["record_id"] is None

    def test_unknown_kind(self, client, auth_headers):
        res = client.get("/api/v1/wizards/memo", headers=auth_headers)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


class TestTransitions:
    def test_walk_to_review(self, client, auth_headers):
        state = _initial(client, auth_headers, "journal")
        state = _transition(client, auth_headers, "journal", state,
                            "set", "content", "Paired on the API").get_json()["state"]
        state = _transition(client, auth_headers, "journal", state,
                            "toggle", "mood").get_json()["state"]
        state = _transition(client, auth_headers, "journal", state,
                            "set", "mood", "happy").get_json()["state"]
        state = _transition(client, auth_headers, "journal", state, "advance").get_json()["state"]
        assert state["step"] == 2
        state = _transition(client, auth_headers, "journal", state, "advance").get_json()["state"]
        assert state["is_review"] is True
        assert state["toggles"]["mood"] is True
        assert state["values"]["mood"] == "happy"

    def test_advance_blocked(self, client, auth_headers):
        state = _initial(client, auth_headers, "note")
        res = _transition(client, auth_headers, "note", state, "advance")
        assert res.status_code == 422
        body = res.get_json()
        assert body["code"] == "ERR_VALIDATION_REQUIRED"
        assert body["details"] == {"content": "required"}

    @pytest.mark.parametrize("action,field,value", [
        ("jump", None, None),
        ("toggle", "content", None),
        ("set", "mood", "ecstatic"),
    ])
    def test_invalid_transition(self, client, auth_headers, action, field, value):
        state = _initial(client, auth_headers, "journal")
        res = _transition(client, auth_headers, "journal", state, action, field, value)
        assert res.status_code == 400

    def test_state_of_another_wizard(self, client, auth_headers):
        state = _initial(client, auth_headers, "note")
        res = _transition(client, auth_headers, "journal", state, "back")
        assert res.status_code == 400

    @pytest.mark.parametrize("action", ["reset", "cancel"])
    def test_edit_target_must_be_a_record(self, client, auth_headers, action):
        state = _initial(client, auth_headers, "note")
        state["record"] = "oops"
        state["record_id"] = 1
        res = _transition(client, auth_headers, "note", state, action)
        assert res.status_code == 400
        assert res.get_json()["code"] == "ERR_VALIDATION_INVALID"


class TestSubmit:
    def test_create_note(self, client, auth_headers, project):
        state = _initial(client, auth_headers, "note")
        state["values"]["content"] = "Fix nav spacing"
        state["step"] = 3

        res = _submit(client, auth_headers, project, "note", state)
        assert res.status_code == 201
        body = res.get_json()
        assert body["record"]["content"] == "Fix nav spacing"
        assert body["record"]["type"] == "note"
        assert body["record"]["tags"] == []
        assert body["state"]["step"] == 1
        assert body["state"]["values"]["content"] is None
        assert Entry.query.count() == 1

    def test_submit_off_review_step(self, client, auth_headers, project):
        state = _initial(client, auth_headers, "journal")
        state["values"]["content"] = "Too early"
        res = _submit(client, auth_headers, project, "journal", state)
        assert res.status_code == 400
        assert JournalEntry.query.count() == 0

    def test_submit_blank_required(self, client, auth_headers, project):
        state = _initial(client, auth_headers, "decision")
        state["step"] = 4
        res = _submit(client, auth_headers, project, "decision", state)
        assert res.status_code == 422
        assert Decision.query.count() == 0

    def test_edit_decision_without_duplicate(self, client, auth_headers, project):
        created = client.post(f"/api/v1/projects/{project['id']}/decisions",
                              json={"title": "A", "rationale": "Cheap"},
                              headers=auth_headers).get_json()

        data = client.get(f"/api/v1/wizards/decision/records/{created['id']}",
                          headers=auth_headers).get_json()
        state = data["state"]
        assert state["values"]["title"] == "A"
        assert state["toggles"]["rationale"] is True
        assert state["toggles"]["summary"] is False

        state["values"]["title"] = "B"
        state["step"] = 4
        res = _submit(client, auth_headers, project, "decision", state)
        assert res.status_code == 200
        assert res.get_json()["record"]["id"] == created["id"]

        rows = Decision.query.all()
        assert [d.title for d in rows] == ["B"]
        assert rows[0].rationale == "Cheap"

        body = res.get_json()
        assert body["state"]["step"] == 1
        assert body["state"]["record_id"] == created["id"]
        assert body["state"]["values"]["title"] == body["record"]["title"] == "B"
        assert body["state"]["record"]["title"] == "B"

    def test_record_id_without_record(self, client, auth_headers, project):
        created = client.post(f"/api/v1/projects/{project['id']}/decisions",
                              json={"title": "A"}, headers=auth_headers).get_json()
        state = _initial(client, auth_headers, "decision")
        state["values"]["title"] = "B"
        state["step"] = 4
        state["record_id"] = created["id"]
        res = _submit(client, auth_headers, project, "decision", state)
        assert res.status_code == 400
        assert [d.title for d in Decision.query.all()] == ["A"]

    def test_edit_foreign_record(self, client, auth_headers, other_headers, project):
        created = client.post(f"/api/v1/projects/{project['id']}/decisions",
                              json={"title": "A"}, headers=auth_headers).get_json()
        res = client.get(f"/api/v1/wizards/decision/records/{created['id']}",
                         headers=other_headers)
        assert res.status_code == 404

    def test_edit_wizard_kind_mismatch(self, client, auth_headers, project):
        note = client.post(f"/api/v1/projects/{project['id']}/entries",
                           json={"content": "x"}, headers=auth_headers).get_json()
        res = client.get(f"/api/v1/wizards/screenshot/records/{note['id']}", headers=auth_headers)
        assert res.status_code == 400


class TestScreenshotWizard:
    def test_multipart_submit(self, client, auth_headers, project, png_upload, upload_dir):
        state = _initial(client, auth_headers, "screenshot")
        state["values"]["image"] = "shot.png"
        state["values"]["caption"] = "Checkout flow"
        state["values"]["tags"] = ["ux"]
        state["step"] = 3

        res = client.post(
            f"/api/v1/projects/{project['id']}/wizards/screenshot/submit",
            data={"state": json.dumps(state), "file": png_upload()},
            headers=auth_headers,
            content_type="multipart/form-data",
        )
        assert res.status_code == 201
        record = res.get_json()["record"]
        assert record["type"] == "screenshot"
        assert record["content"] == "Checkout flow"
        assert record["tags"] == ["ux"]
        assert "/storage/project_files/" in record["file_url"]
        assert Entry.query.count() == 1

    def test_missing_file(self, client, auth_headers, project):
        state = _initial(client, auth_headers, "screenshot")
        state["values"]["image"] = "shot.png"
        state["step"] = 3
        res = client.post(
            f"/api/v1/projects/{project['id']}/wizards/screenshot/submit",
            data={"state": json.dumps(state)},
            headers=auth_headers,
            content_type="multipart/form-data",
        )
        assert res.status_code == 422
        assert Entry.query.count() == 0

    def test_bad_state_json(self, client, auth_headers, project):
        res = client.post(
            f"/api/v1/projects/{project['id']}/wizards/screenshot/submit",
            data={"state": "{not json"},
            headers=auth_headers,
            content_type="multipart/form-data",
        )
        assert res.status_code == 400
