# tests/test_reports.py
from datetime import timedelta

from fastapi.testclient import TestClient

from app.config import today
from app.main import app

client = TestClient(app)


def _check_in(admin, member_id, day):
    r = client.post("/api/attendance", json={"member_id": member_id, "attendance_date": day.isoformat()}, headers=admin)
    assert r.status_code == 201, r.text


def _user(admin, role, email):
    r = client.post("/api/churches/users", json={"email": email, "role": role}, headers=admin)
    assert r.status_code == 201, r.text
    return {"X-API-Key": r.json()["api_key"]}


def test_member_attendance_matrix(admin, make_member):
    d2 = today()
    d1 = d2 - timedelta(days=7)
    amy = make_member("Amy", "Able", gender="female")
    bob = make_member("Bob", "Baker")
    _check_in(admin, amy["id"], d1)
    _check_in(admin, amy["id"], d2)
    _check_in(admin, bob["id"], d1)

    r = client.get(
        "/api/reports/member-attendance-log",
        params={"start_date": d1.isoformat(), "end_date": d2.isoformat()},
        headers=admin,
    )
    assert r.status_code == 200, r.text
    report = r.json()
    assert report["type"] == "matrix"
    assert report["attendance_dates"] == [d1.isoformat(), d2.isoformat()]

    rows = {row["member_name"]: row for row in report["data"]}
    assert rows["Amy Able"]["total_present"] == 2
    assert rows["Amy Able"]["attendance_percentage"] == 100.0
    assert rows["Bob Baker"]["total_absent"] == 1
    assert rows["Bob Baker"]["attendance_percentage"] == 50.0
    assert rows["Bob Baker"]["attendance"][d2.isoformat()]["status"] == "NO"
    assert rows["Bob Baker"]["attendance"][d1.isoformat()]["check_in_method"] == "manual"
    assert report["summary"]["total_members"] == 2
    assert report["summary"]["average_attendance_percentage"] == 75.0


def test_matrix_includes_dates_only_visitors_attended(admin, make_member):
    m = make_member()
    client.post("/api/visitor-checkin", json={"name": "Guest"}, headers=admin)
    report = client.get("/api/reports/member-attendance-log", headers=admin).json()
    assert report["attendance_dates"] == [today().isoformat()]
    row = report["data"][0]
    assert row["member_id"] == m["id"]
    assert row["total_absent"] == 1


def test_matrix_csv_download(admin, make_member):
    m = make_member("Amy", "Able", gender="female")
    _check_in(admin, m["id"], today())
    r = client.get("/api/reports/member-attendance-log.csv", headers=admin)
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "attachment" in r.headers["content-disposition"]
    text = r.content.decode("utf-8")
    assert text.startswith("\ufeff")
    header, row = text.lstrip("\ufeff").splitlines()[:2]
    assert today().isoformat() in header
    assert row.startswith("1,Amy Able,Amy,Able,female,adult")
    assert ",YES," in row
    assert row.endswith("100.0%")

    r = client.post(
        "/api/reports/download-csv",
        json={"start_date": today().isoformat(), "end_date": today().isoformat()},
        headers=admin,
    )
    assert r.status_code == 200


def test_matrix_rejects_reversed_range(admin):
    r = client.get(
        "/api/reports/member-attendance-log",
        params={"start_date": "2026-05-10", "end_date": "2026-05-01"},
        headers=admin,
    )
    assert r.status_code == 400


def test_missed_services(admin, make_member):
    never = make_member("Nora", "Never", gender="female")
    lapsed = make_member("Liam", "Lapsed")
    regular = make_member("Rita", "Regular", gender="female")
    _check_in(admin, lapsed["id"], today() - timedelta(days=35))
    _check_in(admin, regular["id"], today())

    rows = client.get("/api/reports/missed-services", params={"weeks": 3}, headers=admin).json()
    by_id = {r["member_id"]: r for r in rows}
    assert set(by_id) == {never["id"], lapsed["id"]}
    assert by_id[never["id"]]["last_attendance"] is None
    assert by_id[lapsed["id"]]["weeks_absent"] == 5


def test_inactive_members_only_current(admin, make_member):
    make_member("Old", "Timer", is_current_member=False)
    current = make_member("Cur", "Rent")
    rows = client.get("/api/reports/inactive-members", headers=admin).json()
    assert [r["member_id"] for r in rows] == [current["id"]]


def test_weekly_and_group_trend(admin, make_member):
    kid = make_member("Kid", "Doe", age_group="child", phone=None)
    adult = make_member("Dad", "Doe")
    _check_in(admin, kid["id"], today())
    _check_in(admin, adult["id"], today())

    weekly = client.get("/api/reports/weekly-attendance", headers=admin).json()
    assert sum(r["count"] for r in weekly) == 2

    trend = client.get("/api/reports/group-attendance-trend", headers=admin).json()
    assert {r["age_group"]: r["count"] for r in trend} == {"adult": 1, "child": 1}


def test_new_members_and_family_summary(admin, make_member):
    parent = make_member("Mark", "Hill")
    make_member("Amy", "Hill", age_group="child", phone=None, parent_id=parent["id"])
    client.post("/api/attendance/family-checkin", json={"parent_id": parent["id"]}, headers=admin)

    new = client.get("/api/reports/new-members", headers=admin).json()
    assert len(new) == 2

    summary = client.get("/api/reports/family-checkin-summary", headers=admin).json()
    assert summary == [
        {
            "attendance_date": today().isoformat(),
            "parent_id": parent["id"],
            "parent_name": "Mark Hill",
            "members_checked_in": 2,
        }
    ]


def test_saved_configs_and_runs(admin):
    r = client.post(
        "/api/reports/configs",
        json={"report_type": "matrix", "title": "Monthly matrix", "frequency": "monthly"},
        headers=admin,
    )
    assert r.status_code == 201, r.text
    cfg = r.json()
    assert cfg["created_by_id"] is not None

    r = client.post(
        "/api/reports/runs",
        json={"report_config_id": cfg["id"], "parameters": {"start_date": "2026-09-01"}},
        headers=admin,
    )
    assert r.status_code == 201
    runs = client.get("/api/reports/runs", params={"config_id": cfg["id"]}, headers=admin).json()
    assert runs[0]["parameters"] == {"start_date": "2026-09-01"}

    assert client.post("/api/reports/runs", json={"report_config_id": 999999}, headers=admin).status_code == 404


def test_report_permissions(admin):
    viewer = _user(admin, "data_viewer", "viewer@grace.local")
    volunteer = _user(admin, "volunteer", "helper@grace.local")
    assert client.get("/api/reports/missed-services", headers=viewer).status_code == 200
    assert client.get("/api/reports/missed-services", headers=volunteer).status_code == 403
    assert client.post("/api/members", json={}, headers=viewer).status_code == 403
