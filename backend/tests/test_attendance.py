# tests/test_attendance.py
import threading
from datetime import date, timedelta

import pytest
from fastapi.testclient import TestClient

from app.config import today
from app.db import SessionLocal
from app.main import app
from app.models.attendance import AttendanceRecord
from app.services.attendance import check_in_member, save_check_in
from app.services.errors import DuplicateCheckIn

client = TestClient(app)


def test_member_check_in_once_per_day(admin, make_member):
    m = make_member()
    r = client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    assert r.status_code == 201, r.text
    first = r.json()
    assert first["attendance_date"] == today().isoformat()
    assert first["check_in_method"] == "manual"

    r = client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    assert r.status_code == 409
    body = r.json()
    assert body["is_duplicate"] is True
    assert body["existing_id"] == first["id"]
    assert "already been checked in" in body["detail"]


def test_other_day_is_a_separate_check_in(admin, make_member):
    m = make_member()
    yesterday = (today() - timedelta(days=1)).isoformat()
    assert client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin).status_code == 201
    r = client.post("/api/attendance", json={"member_id": m["id"], "attendance_date": yesterday}, headers=admin)
    assert r.status_code == 201


def test_unique_constraint_backs_the_precheck(church, make_member, db):
    church_id, _ = church
    m = make_member()
    day = date(2026, 1, 4)
    save_check_in(db, AttendanceRecord(church_id=church_id, member_id=m["id"], attendance_date=day), "John Doe")
    with pytest.raises(DuplicateCheckIn):
        save_check_in(db, AttendanceRecord(church_id=church_id, member_id=m["id"], attendance_date=day), "John Doe")
    assert db.query(AttendanceRecord).count() == 1


def test_concurrent_check_ins_record_once(church, make_member, db):
    church_id, _ = church
    m = make_member()
    day = date(2026, 1, 11)
    barrier = threading.Barrier(2)
    outcomes = []

    def worker():
        session = SessionLocal()
        try:
            barrier.wait()
            check_in_member(session, church_id, m["id"], on_date=day)
            outcomes.append("created")
        except DuplicateCheckIn:
            outcomes.append("duplicate")
        finally:
            session.close()

    threads = [threading.Thread(target=worker) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(timeout=30)

    # SQLite serialises the writers; either the pre-check or the constraint rejects the loser
    assert sorted(outcomes) == ["created", "duplicate"]
    assert db.query(AttendanceRecord).filter_by(member_id=m["id"], attendance_date=day).count() == 1


def test_exactly_one_person_required(admin):
    r = client.post("/api/attendance", json={"member_id": 1, "visitor_id": 1}, headers=admin)
    assert r.status_code == 400
    r = client.post("/api/attendance", json={}, headers=admin)
    assert r.status_code == 400


def test_unknown_member_or_event(admin, make_member):
    assert client.post("/api/attendance", json={"member_id": 999999}, headers=admin).status_code == 404
    m = make_member()
    r = client.post("/api/attendance", json={"member_id": m["id"], "event_id": 999999}, headers=admin)
    assert r.status_code == 404


def test_cannot_check_in_member_of_another_church(admin, other_church, make_member):
    _, other_admin = other_church
    outsider = make_member("Out", "Sider", headers=other_admin)
    r = client.post("/api/attendance", json={"member_id": outsider["id"]}, headers=admin)
    assert r.status_code == 404


def test_today_lists_members_and_visitors(admin, make_member):
    m = make_member("Jane", "Doe", gender="female")
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    client.post("/api/visitor-checkin", json={"name": "Guest Person", "gender": "male"}, headers=admin)

    rows = client.get("/api/attendance/today", headers=admin).json()
    kinds = sorted((r["kind"], r["name"]) for r in rows)
    assert kinds == [("member", "Jane Doe"), ("visitor", "Guest Person")]


def test_delete_allows_new_check_in(admin, make_member):
    m = make_member()
    rec = client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin).json()
    assert client.delete(f"/api/attendance/{rec['id']}", headers=admin).status_code == 204
    assert client.delete(f"/api/attendance/{rec['id']}", headers=admin).status_code == 404
    assert client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin).status_code == 201


def test_stats_mix_members_and_visitor_snapshots(admin, make_member):
    man = make_member("John", "Doe")
    girl = make_member("Eve", "Doe", gender="female", age_group="child", phone=None)
    client.post("/api/attendance", json={"member_id": man["id"]}, headers=admin)
    client.post("/api/attendance", json={"member_id": girl["id"]}, headers=admin)
    client.post(
        "/api/visitor-checkin",
        json={"name": "Teen Guest", "gender": "female", "age_group": "adolescent"},
        headers=admin,
    )

    stats = client.get("/api/attendance/stats", params={"date": today().isoformat()}, headers=admin).json()
    assert stats["total"] == 3
    assert stats["male"] == 1
    assert stats["female"] == 2
    assert stats["child"] == 1
    assert stats["adolescent"] == 1
    assert stats["adult"] == 1


def test_stats_range(admin, make_member):
    m = make_member()
    d1 = today() - timedelta(days=7)
    client.post("/api/attendance", json={"member_id": m["id"], "attendance_date": d1.isoformat()}, headers=admin)
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    client.post("/api/visitor-checkin", json={"name": "Guest"}, headers=admin)

    r = client.get(
        "/api/attendance/stats-range",
        params={"start_date": d1.isoformat(), "end_date": today().isoformat()},
        headers=admin,
    )
    body = r.json()
    assert body["total_days"] == 2
    assert body["total_attendance"] == 3
    assert body["average_per_day"] == 1.5
    assert body["member_attendance"] == 2
    assert body["visitor_attendance"] == 1

    bad = client.get(
        "/api/attendance/stats-range",
        params={"start_date": today().isoformat(), "end_date": d1.isoformat()},
        headers=admin,
    )
    assert bad.status_code == 400


def test_history_filters(admin, make_member):
    john = make_member("John", "Doe")
    jane = make_member("Jane", "Doe", gender="female")
    client.post("/api/attendance", json={"member_id": john["id"]}, headers=admin)
    client.post("/api/attendance", json={"member_id": jane["id"]}, headers=admin)

    rows = client.get("/api/attendance/history", params={"gender": "female"}, headers=admin).json()
    assert [r["member_id"] for r in rows] == [jane["id"]]

    rows = client.get("/api/attendance/history", params={"member_id": john["id"]}, headers=admin).json()
    assert [r["name"] for r in rows] == ["John Doe"]


def test_date_range(admin, make_member):
    m = make_member()
    d1 = today() - timedelta(days=14)
    client.post("/api/attendance", json={"member_id": m["id"], "attendance_date": d1.isoformat()}, headers=admin)
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    body = client.get("/api/attendance/date-range", headers=admin).json()
    assert body == {"earliest": d1.isoformat(), "latest": today().isoformat()}


def test_member_attendance_log(admin, make_member):
    m = make_member()
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    rows = client.get(f"/api/members/{m['id']}/attendance", headers=admin).json()
    assert len(rows) == 1
    assert rows[0]["check_in_method"] == "manual"
