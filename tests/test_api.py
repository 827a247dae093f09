"""Tests for ui/app.py: the JSON API over a temporary workspace."""

import pytest
from fastapi.testclient import TestClient

from ui.app import app


@pytest.fixture
def client(workspace):
    return TestClient(app)


def test_healthz(client):
    assert client.get("/healthz").json() == {"ok": "true"}


def test_habit_crud(client):
    resp = client.post("/api/habits", json={
        "name": "Reading",
        "tracking_values": ["Read", "Skipped"],
        "yearly_goal": {"count": 100, "contributingValues": ["Read"]},
    })
    assert resp.status_code == 200
    habit_id = resp.json()["habit"]["id"]

    names = [h["name"] for h in client.get("/api/habits").json()["habits"]]
    assert "Reading" in names

    resp = client.put(f"/api/habits/{habit_id}", json={"fine_amount": 3})
    assert resp.json()["habit"]["fine_amount"] == 3

    assert client.delete(f"/api/habits/{habit_id}").status_code == 200
    assert client.get(f"/api/habits/{habit_id}").status_code == 404


def test_create_invalid_habit(client):
    resp = client.post("/api/habits", json={"name": ""})
    assert resp.status_code == 400


def test_update_missing_habit(client):
    assert client.put("/api/habits/nope", json={"name": "X"}).status_code == 404


def test_tracking_flow(client):
    resp = client.put("/api/tracking/2025-05-01/exercise", json={"value": "Done"})
    assert resp.status_code == 200
    assert resp.json()["status"]["progressCount"] == 1

    resp = client.put("/api/tracking/2025-05-01/exercise", json={"value": "Maybe"})
    assert resp.status_code == 400

    resp = client.put("/api/tracking/2025-05-01/gratitude", json={"text": "Rain"})
    assert resp.json()["status"]["textValue"] == "Rain"

    day = client.get("/api/tracking/2025-05-01").json()
    assert {line["text"] for line in day["summary"]} == {"Done", "Rain"}
    assert len(day["habits"]) == 3


def test_miss_endpoint(client):
    resp = client.put("/api/tracking/2025-05-02/exercise/miss", json={"on": True})
    assert resp.json()["status"]["remainingMisses"] == 0
    resp = client.put("/api/tracking/2025-05-03/exercise/miss", json={"on": True})
    assert resp.status_code == 409
    resp = client.put("/api/tracking/2025-05-03/exercise/miss", json={"on": "yes"})
    assert resp.status_code == 400


def test_unknown_habit_is_404(client):
    assert client.put("/api/tracking/2025-05-01/nope", json={"value": "x"}).status_code == 404


def test_bad_date_is_400(client):
    assert client.get("/api/tracking/not-a-date").status_code == 400


def test_fines_and_status(client):
    for day in ("2025-03-10", "2025-03-11", "2025-03-12"):
        client.put(f"/api/tracking/{day}/smoking", json={"value": "Smoked"})
    data = client.get("/api/fines/2025", params={"frequency": "weekly"}).json()
    fined = [p for p in data["periods"] if p["fines"]]
    assert [p["period"]["periodKey"] for p in fined] == ["2025-W11"]
    assert data["totals"] == {"total": 10, "paid": 0, "unpaid": 10}

    resp = client.put("/api/fines/2025-W11/smoking", json={"trackingValue": "Smoked", "status": "paid"})
    assert resp.json()["fine"]["status"] == "paid"
    data = client.get("/api/fines/2025").json()
    assert data["totals"]["paid"] == 10

    assert client.get("/api/fines/2025", params={"frequency": "daily"}).status_code == 400


def test_week_off(client):
    resp = client.post("/api/week_off", json={"date": "2025-03-12"})
    assert resp.status_code == 200
    assert resp.json()["periodKey"] == "2025-W11"
    client.post("/api/week_off", json={"date": "2025-04-02"})
    assert client.post("/api/week_off", json={"date": "2025-05-07"}).status_code == 409


def test_entries(client):
    resp = client.put("/api/entries/2025-05-01", json={"text": "Good day", "mood": "😊"})
    assert resp.status_code == 200
    resp = client.put("/api/entries/2025-05-01", json={"text": "Better day"})
    assert resp.status_code == 409
    assert resp.json()["needsOverwrite"] is True
    resp = client.put("/api/entries/2025-05-01", json={"text": "Better day", "overwrite": True})
    assert resp.json()["entry"]["text"] == "Better day"

    assert [e["date"] for e in client.get("/api/entries").json()["entries"]] == ["2025-05-01"]
    assert client.get("/api/entries/2025-05-01").json()["entry"]["text"] == "Better day"
    assert client.delete("/api/entries/2025-05-01").status_code == 200
    assert client.get("/api/entries/2025-05-01").status_code == 404


def test_settings(client):
    data = client.get("/api/settings").json()["settings"]
    assert data["yearly_week_offs_allowed"] == 2
    assert "app_password" not in data
    resp = client.put("/api/settings", json={"yearly_week_offs_allowed": 5})
    assert resp.json()["settings"]["yearly_week_offs_allowed"] == 5
    assert client.put("/api/settings", json={"yearly_week_offs_allowed": -2}).status_code == 400


def test_analytics_and_reconcile(client):
    client.put("/api/tracking/2025-05-01/exercise", json={"value": "Done"})
    data = client.get("/api/analytics/2025").json()
    assert data["hasData"] is True
    exercise = next(h for h in data["habits"] if h["habitId"] == "exercise")
    assert exercise["valueCounts"] == {"Done": 1}
    assert client.post("/api/reconcile/2025").json() == {"ok": True, "changed": []}


def test_storage_error_is_503(client, workspace):
    (workspace / "habits.yaml").write_text("habits: [unclosed", encoding="utf-8")
    resp = client.get("/api/habits")
    assert resp.status_code == 503


def test_non_text_tracking_value_is_400(client, workspace):
    resp = client.put("/api/tracking/2025-03-03/exercise", json={"value": 5})
    assert resp.status_code == 400
    assert not (workspace / "tracking" / "2025.json").exists()


def test_fine_periods_carry_date_range(client):
    data = client.get("/api/fines/2025?frequency=weekly").json()
    assert data["periods"][0]["period"]["dateRange"] == "Dec 30 - Jan 05, 2025"
