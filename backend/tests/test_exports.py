# tests/test_exports.py
from fastapi.testclient import TestClient

from app.config import today
from app.main import app

client = TestClient(app)


def _lines(r):
    return r.content.decode("utf-8").splitlines()


def test_members_export(admin, make_member):
    make_member("Jane", "Doe", gender="female", email="jane@example.org")
    r = client.get("/api/export/members", headers=admin)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert r.headers["content-disposition"].startswith('attachment; filename="members-')
    lines = _lines(r)
    assert lines[0].startswith("Member Name,Title,First Name,Surname")
    assert lines[1].startswith("Jane Doe,,Jane,Doe,female,adult")
    assert "jane@example.org" in lines[1]


def test_visitors_export_quotes_commas(admin):
    client.post("/api/visitors", json={"name": "Guest One", "address": "1 Main St, Springfield"}, headers=admin)
    lines = _lines(client.get("/api/export/visitors", headers=admin))
    assert lines[0].startswith("ID,Member ID,Name")
    assert '"1 Main St, Springfield"' in lines[1]


def test_attendance_export(admin, make_member):
    m = make_member("Jane", "Doe", gender="female")
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    client.post("/api/visitor-checkin", json={"name": "Guest"}, headers=admin)
    day = today().isoformat()
    r = client.get("/api/export/attendance", params={"start_date": day, "end_date": day}, headers=admin)
    lines = _lines(r)
    assert len(lines) == 3
    types = sorted(line.split(",")[7] for line in lines[1:])
    assert types == ["Member", "Visitor"]


def test_monthly_report(admin, make_member):
    m = make_member()
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)
    now = today()
    r = client.get("/api/export/monthly-report", params={"month": now.month, "year": now.year}, headers=admin)
    assert r.status_code == 200
    text = r.content.decode("utf-8")
    assert text.startswith("Monthly Report - ")
    assert "Total Attendance,1" in text
    assert "New Members,1" in text
    assert "Week 1," in text


def test_exports_need_permission(admin):
    r = client.post("/api/churches/users", json={"email": "vol@grace.local", "role": "volunteer"}, headers=admin)
    volunteer = {"X-API-Key": r.json()["api_key"]}
    assert client.get("/api/export/members", headers=volunteer).status_code == 403
