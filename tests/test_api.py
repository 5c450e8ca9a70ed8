"""
End-to-end tests through the HTTP API.
"""

import json

import pytest
from fastapi.testclient import TestClient

from app.main import create_app
from core import state
from core.config import Settings

ADMIN = {"X-Admin-Password": "secret"}
ZONES_URL = "/admin/lessons/Epithelium/views/0/zones"


@pytest.fixture
def client(lessons_path):
    settings = Settings(LESSONS_PATH=lessons_path, ADMIN_PASSWORD="secret", LOG_LEVEL="DEBUG")
    with TestClient(create_app(settings)) as c:
        yield c


class TestViewer:
    def test_health(self, client):
        body = client.get("/health").json()

        assert body["ok"] is True
        assert body["admin_enabled"] is True

    def test_store_diagnostic(self, client):
        body = client.get("/health/store").json()

        assert body["ok"] is True
        assert body["message"].startswith("DIAGNOSTIC PASSED")

    def test_list_lessons(self, client):
        names = [l["name"] for l in client.get("/lessons").json()]

        assert names == ["Epithelium", "Gaps"]

    def test_get_lesson_when_unknown_then_404(self, client):
        assert client.get("/lessons/Bone").status_code == 404

    def test_click_when_banner_and_target_then_banner(self, client):
        body = client.post("/lessons/Epithelium/views/1/click", json={"x": 50, "y": 50}).json()

        assert body["action"] == "banner"
        assert body["banner"]["text"] == "Hi"
        assert body["view_index"] is None

    def test_click_when_target_missing_then_advance_with_error(self, client):
        body = client.post("/lessons/Epithelium/views/0/click", json={"x": 75, "y": 75}).json()

        assert body["action"] == "advance"
        assert body["view_index"] == 1
        assert body["error"]

    def test_click_when_no_zone_then_miss(self, client):
        body = client.post("/lessons/Epithelium/views/2/click", json={"x": 10, "y": 10}).json()

        assert body["action"] == "miss"

    def test_click_when_view_out_of_range_then_404(self, client):
        assert client.post("/lessons/Epithelium/views/9/click", json={"x": 1, "y": 1}).status_code == 404

    def test_viewer_reads_when_served_then_taken_under_store_lock(self, client, monkeypatch):
        """Reads must not interleave with an admin save of the same file."""
        entered = []

        class RecordingLock:
            def __enter__(self):
                entered.append(True)

            def __exit__(self, *exc):
                return False

        monkeypatch.setattr(state, "store_lock", RecordingLock())

        client.get("/lessons")
        client.get("/lessons/Epithelium")
        client.post("/lessons/Epithelium/views/2/click", json={"x": 10, "y": 10})

        assert len(entered) == 3


class TestQuizFlow:
    def _start(self, client):
        body = client.post("/lessons/Epithelium/views/0/click", json={"x": 25, "y": 25}).json()
        assert body["action"] == "quiz"
        return body["quiz"]

    def test_quiz_when_wrong_answer_then_rationale(self, client):
        quiz = self._start(client)
        sid = quiz["session_id"]
        assert quiz["state"] == "presented"

        client.post(f"/quiz-sessions/{sid}/select", json={"index": 1})
        body = client.post(f"/quiz-sessions/{sid}/submit").json()

        assert body["state"] == "answered"
        assert body["feedback"]["headline"] == "Incorrect"
        assert body["feedback"]["rationale"] == "wrong"
        assert [o["marker"] for o in body["options"]] == ["correct", "incorrect"]

    def test_quiz_when_correct_answer_then_no_rationale(self, client):
        sid = self._start(client)["session_id"]

        client.post(f"/quiz-sessions/{sid}/select", json={"index": 0})
        body = client.post(f"/quiz-sessions/{sid}/submit").json()

        assert body["feedback"]["correct"] is True
        assert body["feedback"]["rationale"] is None

    def test_quiz_when_submit_without_selection_then_notice(self, client):
        sid = self._start(client)["session_id"]

        body = client.post(f"/quiz-sessions/{sid}/submit").json()

        assert body["state"] == "presented"
        assert body["notice"]

    def test_quiz_when_select_after_submit_then_conflict(self, client):
        sid = self._start(client)["session_id"]
        client.post(f"/quiz-sessions/{sid}/select", json={"index": 1})
        client.post(f"/quiz-sessions/{sid}/submit")

        assert client.post(f"/quiz-sessions/{sid}/select", json={"index": 0}).status_code == 409

    def test_quiz_when_dismissed_then_gone_and_next_click_fresh(self, client):
        sid = self._start(client)["session_id"]
        client.post(f"/quiz-sessions/{sid}/select", json={"index": 1})
        client.post(f"/quiz-sessions/{sid}/submit")

        assert client.post(f"/quiz-sessions/{sid}/dismiss").json()["state"] == "closed"
        assert client.get(f"/quiz-sessions/{sid}").status_code == 404

        again = self._start(client)
        assert again["session_id"] != sid
        assert again["state"] == "presented"
        assert all(o["marker"] == "none" for o in again["options"])

    def test_quiz_when_dismiss_before_answer_then_conflict(self, client):
        sid = self._start(client)["session_id"]

        assert client.post(f"/quiz-sessions/{sid}/dismiss").status_code == 409

    def test_quiz_when_sessions_over_limit_then_oldest_dropped(self, lessons_path):
        settings = Settings(LESSONS_PATH=lessons_path, QUIZ_SESSIONS_MAX=3)
        with TestClient(create_app(settings)) as client:
            sids = [self._start(client)["session_id"] for _ in range(5)]

            assert list(state.quiz_sessions) == sids[2:]
            assert client.get(f"/quiz-sessions/{sids[0]}").status_code == 404
            assert client.get(f"/quiz-sessions/{sids[1]}").status_code == 404
            assert client.get(f"/quiz-sessions/{sids[4]}").json()["state"] == "presented"


class TestAdmin:
    def test_admin_when_bad_password_then_401(self, client):
        assert client.post("/admin/login", headers={"X-Admin-Password": "nope"}).status_code == 401
        assert client.get(ZONES_URL).status_code == 401

    def test_admin_login(self, client):
        assert client.post("/admin/login", headers=ADMIN).json() == {"ok": True}

    def test_switch_quiz_to_target_then_stored_without_quiz_keys(self, client, lessons_path):
        response = client.put(
            f"{ZONES_URL}/0/action",
            headers=ADMIN,
            json={"kind": "targeted", "forms": {"target": {"view_index": 2}}},
        )

        assert response.status_code == 200
        assert response.json()["action"] == {"kind": "targeted", "view_index": 2}
        stored = json.loads(json.loads(lessons_path.read_text(encoding="utf-8"))[1][3])[0]
        assert stored["targetView"] == 2
        assert not [k for k in stored if k.startswith("quiz") or k == "actionType"]

    def test_edit_quiz_with_rationales(self, client):
        forms = {
            "quiz": {"question": "Layer?", "answer_1": "Basal", "answer_2": "Apical", "correct_index": 0, "show_rationale": True},
            "rationales": {"rationale_2": "Apical faces the lumen"},
        }

        body = client.put(f"{ZONES_URL}/1/action", headers=ADMIN, json={"kind": "quiz", "forms": forms}).json()

        assert body["action"]["answers"] == [
            {"text": "Basal", "rationale": None},
            {"text": "Apical", "rationale": "Apical faces the lumen"},
        ]

    def test_edit_when_invalid_then_422_and_store_unchanged(self, client, lessons_path):
        before = lessons_path.read_text(encoding="utf-8")

        response = client.put(
            f"{ZONES_URL}/0/action",
            headers=ADMIN,
            json={"kind": "quiz", "forms": {"quiz": {"question": "", "answer_1": "a", "answer_2": "b", "correct_index": 0}}},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "EmptyQuestion"
        assert lessons_path.read_text(encoding="utf-8") == before

    @pytest.mark.parametrize("value", ["--1", "²"])
    def test_edit_when_target_not_an_integer_then_422(self, client, lessons_path, value):
        before = lessons_path.read_text(encoding="utf-8")

        response = client.put(
            f"{ZONES_URL}/0/action",
            headers=ADMIN,
            json={"kind": "targeted", "forms": {"target": {"view_index": value}}},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "InvalidTargetView"
        assert lessons_path.read_text(encoding="utf-8") == before

    @pytest.mark.parametrize("value", ["--1", "²"])
    def test_edit_when_correct_index_not_an_integer_then_422(self, client, value):
        forms = {"quiz": {"question": "Q", "answer_1": "a", "answer_2": "b", "correct_index": value}}

        response = client.put(f"{ZONES_URL}/0/action", headers=ADMIN, json={"kind": "quiz", "forms": forms})

        assert response.status_code == 422
        assert response.json()["detail"]["kind"] == "InvalidCorrectIndex"

    def test_put_zones_when_extra_carries_target_then_zone_still_sequential(self, client, lessons_path):
        zone = {
            "shape": {"type": "rect", "x": 0, "y": 0, "width": 50, "height": 50},
            "action": {"kind": "none"},
            "extra": {"targetView": 2, "actionType": "banner", "bannerText": "Hi", "color": "red"},
        }

        response = client.put(ZONES_URL, headers=ADMIN, json=[zone])

        assert response.status_code == 200
        assert response.json()[0]["extra"] == {"color": "red"}
        stored = json.loads(json.loads(lessons_path.read_text(encoding="utf-8"))[1][3])[0]
        assert "targetView" not in stored
        assert "actionType" not in stored
        body = client.post("/lessons/Epithelium/views/0/click", json={"x": 25, "y": 25}).json()
        assert body["action"] == "advance"
        assert body["view_index"] == 1

    def test_edit_when_rationales_missing_then_400_and_unchanged(self, client, lessons_path):
        before = lessons_path.read_text(encoding="utf-8")
        forms = {"quiz": {"question": "Q", "answer_1": "a", "answer_2": "b", "correct_index": 0, "show_rationale": True}}

        response = client.put(f"{ZONES_URL}/0/action", headers=ADMIN, json={"kind": "quiz", "forms": forms})

        assert response.status_code == 400
        assert lessons_path.read_text(encoding="utf-8") == before

    def test_create_and_delete_zone(self, client):
        shape = {"type": "poly", "points": [{"x": 1, "y": 1}, {"x": 5, "y": 1}, {"x": 3, "y": 4}]}

        zones = client.post(ZONES_URL, headers=ADMIN, json={"shape": shape, "label": "new"}).json()
        assert len(zones) == 3
        assert zones[2]["action"] == {"kind": "none"}

        zones = client.delete(f"{ZONES_URL}/0", headers=ADMIN).json()
        assert [z["label"] for z in zones] == [None, "new"]

    def test_delete_when_bad_index_then_404(self, client):
        assert client.delete(f"{ZONES_URL}/7", headers=ADMIN).status_code == 404

    def test_create_zone_when_coordinates_not_percent_then_422(self, client):
        shape = {"type": "rect", "x": 10, "y": 10, "width": 200, "height": 5}

        assert client.post(ZONES_URL, headers=ADMIN, json={"shape": shape}).status_code == 422
