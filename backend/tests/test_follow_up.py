# tests/test_follow_up.py
from datetime import timedelta

from fastapi.testclient import TestClient

from app.config import today
from app.main import app

client = TestClient(app)


def test_absence_scan_flags_members(admin, make_member):
    never = make_member("Nora", "Never", gender="female")
    lapsed = make_member("Liam", "Lapsed")
    regular = make_member("Rita", "Regular", gender="female")
    client.post(
        "/api/attendance",
        json={"member_id": lapsed["id"], "attendance_date": (today() - timedelta(days=35)).isoformat()},
        headers=admin,
    )
    client.post("/api/attendance", json={"member_id": regular["id"]}, headers=admin)

    r = client.post("/api/follow-up/update-absences", headers=admin)
    assert r.status_code == 200
    assert r.json()["flagged"] == 2

    rows = client.get("/api/follow-up", headers=admin).json()
    absences = {row["member_id"]: row["consecutive_absences"] for row in rows}
    assert absences == {never["id"]: 3, lapsed["id"]: 5}

    # running twice keeps one row per member
    client.post("/api/follow-up/update-absences", headers=admin)
    assert len(client.get("/api/follow-up", headers=admin).json()) == 2


def test_contact_clears_flag_and_notifies(admin, make_member, notifier):
    m = make_member("Jane", "Doe", gender="female", email="jane@example.org")
    client.post("/api/follow-up/update-absences", headers=admin)

    r = client.post(f"/api/follow-up/{m['id']}", json={"method": "email"}, headers=admin)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["notified"] is True
    assert body["follow_up"]["needs_follow_up"] is False
    assert body["follow_up"]["consecutive_absences"] == 0
    assert body["follow_up"]["contact_method"] == "email"

    assert notifier.emails[0][0] == ["jane@example.org"]
    assert "Jane" in notifier.emails[0][1]
    assert client.get("/api/follow-up", headers=admin).json() == []


def test_sms_goes_through_sms_channel(admin, make_member, notifier):
    m = make_member("John", "Doe", phone="+1 555 0199")
    body = client.post(
        f"/api/follow-up/{m['id']}", json={"method": "sms", "message": "See you Sunday"}, headers=admin
    ).json()
    assert body["notified"] is True
    assert notifier.sms == [("+1 555 0199", "See you Sunday")]


def test_notification_failure_does_not_fail_request(admin, make_member, notifier):
    notifier.fail = True
    m = make_member("Jane", "Doe", gender="female", email="jane@example.org")
    r = client.post(f"/api/follow-up/{m['id']}", json={"method": "email"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["notified"] is False

    tracker = client.get("/api/reports/followup-action-tracker", headers=admin).json()
    assert tracker[0]["member_id"] == m["id"]
    assert tracker[0]["contact_method"] == "email"


def test_missing_recipient_is_not_an_error(admin, make_member, notifier):
    m = make_member()
    r = client.post(f"/api/follow-up/{m['id']}", json={"method": "email"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["notified"] is False
    assert notifier.emails == []


def test_contact_unknown_member(admin, notifier):
    r = client.post("/api/follow-up/999999", json={"method": "phone"}, headers=admin)
    assert r.status_code == 404


def test_volunteer_can_follow_up(admin, make_member, notifier):
    r = client.post("/api/churches/users", json={"email": "vol@grace.local", "role": "volunteer"}, headers=admin)
    volunteer = {"X-API-Key": r.json()["api_key"]}
    m = make_member()
    assert client.post(f"/api/follow-up/{m['id']}", json={"method": "visit"}, headers=volunteer).status_code == 200
