# tests/test_visitors.py
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _members_named(admin, name):
    return client.get("/api/members", params={"search": name}, headers=admin).json()


def test_visitor_check_in_registers_and_records(admin):
    r = client.post(
        "/api/visitor-checkin",
        json={"name": "  Mary   Jones ", "gender": "female", "age_group": "adult", "phone": "555-0199"},
        headers=admin,
    )
    assert r.status_code == 201, r.text
    body = r.json()
    assert body["visitor"]["name"] == "Mary Jones"
    assert body["visitor"]["follow_up_status"] == "pending"
    assert body["attendance_id"]

    visitors = client.get("/api/visitors", headers=admin).json()
    assert [v["name"] for v in visitors] == ["Mary Jones"]

    # same visitor again today
    r = client.post("/api/attendance", json={"visitor_id": body["visitor"]["id"]}, headers=admin)
    assert r.status_code == 409
    assert r.json()["is_duplicate"] is True


def test_visitor_row_keeps_snapshot(admin):
    v = client.post("/api/visitor-checkin", json={"name": "Guest One", "gender": "male"}, headers=admin).json()
    client.patch(f"/api/visitors/{v['visitor']['id']}", json={"name": "Renamed Guest", "gender": "female"}, headers=admin)
    row = client.get("/api/attendance/today", headers=admin).json()[0]
    assert row["name"] == "Guest One"
    assert row["gender"] == "male"


def test_status_member_promotes_visitor(admin):
    v = client.post("/api/visitors", json={"name": "Paul Adams", "gender": "male"}, headers=admin).json()
    r = client.patch(f"/api/visitors/{v['id']}", json={"follow_up_status": "member"}, headers=admin)
    assert r.status_code == 200
    assert r.json()["follow_up_status"] == "member"

    members = _members_named(admin, "paul adams")
    assert len(members) == 1
    assert members[0]["first_name"] == "Paul"
    assert members[0]["surname"] == "Adams"
    assert members[0]["age_group"] == "adult"

    # a second promotion of the same name does not duplicate the member
    v2 = client.post("/api/visitors", json={"name": "paul adams"}, headers=admin).json()
    client.patch(f"/api/visitors/{v2['id']}", json={"follow_up_status": "member"}, headers=admin)
    assert len(_members_named(admin, "paul adams")) == 1


def test_promoted_adult_without_phone_stays_editable(admin):
    v = client.post("/api/visitors", json={"name": "Silas Reed"}, headers=admin).json()
    client.patch(f"/api/visitors/{v['id']}", json={"follow_up_status": "member"}, headers=admin)
    member = _members_named(admin, "silas reed")[0]
    assert member["age_group"] == "adult"
    assert member["phone"] is None

    r = client.put(f"/api/members/{member['id']}", json={"email": "silas@grace.local"}, headers=admin)
    assert r.status_code == 200, r.text
    assert r.json()["email"] == "silas@grace.local"

    # touching the phone or age group still enforces the rule
    r = client.put(f"/api/members/{member['id']}", json={"phone": None}, headers=admin)
    assert r.status_code == 400
    r = client.put(f"/api/members/{member['id']}", json={"phone": "+1 555 0142"}, headers=admin)
    assert r.status_code == 200


def test_create_with_member_status_promotes(admin):
    client.post("/api/visitors", json={"name": "Lydia Grace Purple", "follow_up_status": "member"}, headers=admin)
    members = _members_named(admin, "lydia")
    assert members[0]["surname"] == "Grace Purple"


def test_status_filter_and_lookup(admin):
    a = client.post("/api/visitors", json={"name": "A Visitor"}, headers=admin).json()
    client.post("/api/visitors", json={"name": "B Visitor", "follow_up_status": "contacted"}, headers=admin)
    contacted = client.get("/api/visitors", params={"status": "contacted"}, headers=admin).json()
    assert [v["name"] for v in contacted] == ["B Visitor"]
    assert client.get(f"/api/visitors/{a['id']}", headers=admin).status_code == 200
    assert client.get("/api/visitors/999999", headers=admin).status_code == 404


def test_reconcile_moves_visitor_rows_to_member(admin):
    v = client.post("/api/visitor-checkin", json={"name": "Mary Jones", "gender": "female"}, headers=admin).json()
    client.patch(f"/api/visitors/{v['visitor']['id']}", json={"follow_up_status": "member"}, headers=admin)
    member = _members_named(admin, "mary jones")[0]

    r = client.post("/api/attendance/fix-visitor-member-records", headers=admin)
    assert r.status_code == 200
    body = r.json()
    assert body["visitors_matched"] == 1
    assert body["records_updated"] == 1
    assert body["conflicts"] == 0

    row = client.get("/api/attendance/today", headers=admin).json()[0]
    assert row["kind"] == "member"
    assert row["member_id"] == member["id"]
    assert client.get(f"/api/visitors/{v['visitor']['id']}", headers=admin).json()["member_id"] == member["id"]


def test_reconcile_skips_days_member_already_has(admin, make_member):
    m = make_member("Paul", "Adams")
    client.post("/api/visitor-checkin", json={"name": "Paul Adams"}, headers=admin)
    client.post("/api/attendance", json={"member_id": m["id"]}, headers=admin)

    body = client.post("/api/attendance/fix-visitor-member-records", headers=admin).json()
    assert body["visitors_matched"] == 1
    assert body["records_updated"] == 0
    assert body["conflicts"] == 1
    assert len(client.get("/api/attendance/today", headers=admin).json()) == 2


def test_visitor_check_in_with_unknown_event_leaves_no_visitor(admin):
    r = client.post("/api/visitor-checkin", json={"name": "Ghost", "event_id": 999999}, headers=admin)
    assert r.status_code == 404
    assert client.get("/api/visitors", headers=admin).json() == []
