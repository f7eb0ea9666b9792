# tests/test_events.py
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_event_crud_and_soft_delete(admin):
    r = client.post(
        "/api/events",
        json={"name": "Bible Study", "event_type": "bible_study", "start_time": "19:00", "end_time": "20:30"},
        headers=admin,
    )
    assert r.status_code == 201, r.text
    ev = r.json()

    r = client.put(f"/api/events/{ev['id']}", json={"location": "Room 2"}, headers=admin)
    assert r.json()["location"] == "Room 2"

    assert client.delete(f"/api/events/{ev['id']}", headers=admin).status_code == 204
    assert client.get("/api/events/active", headers=admin).json() == []
    all_events = client.get("/api/events", headers=admin).json()
    assert all_events[0]["is_active"] is False


def test_event_validation(admin):
    r = client.post("/api/events", json={"name": "Bad", "start_time": "25:00"}, headers=admin)
    assert r.status_code == 400
    r = client.post(
        "/api/events",
        json={"name": "Bad", "start_date": "2026-05-02", "end_date": "2026-05-01"},
        headers=admin,
    )
    assert r.status_code == 400


def test_event_attendance_stats(admin, make_member):
    ev = client.post("/api/events", json={"name": "Youth Night", "event_type": "youth_group"}, headers=admin).json()
    m = make_member("Teen", "Doe", age_group="adolescent", phone=None)
    client.post("/api/attendance", json={"member_id": m["id"], "event_id": ev["id"]}, headers=admin)
    client.post("/api/visitor-checkin", json={"name": "Guest", "gender": "female", "event_id": ev["id"]}, headers=admin)

    stats = client.get(f"/api/events/{ev['id']}/attendance-stats", headers=admin).json()
    assert stats["total"] == 2
    assert stats["members"] == 1
    assert stats["visitors"] == 1
    assert stats["adolescent"] == 1
    assert stats["female"] == 1

    counts = client.get("/api/events/attendance-counts", headers=admin).json()
    assert counts[0]["event_name"] == "Youth Night"
    assert counts[0]["total"] == 2
