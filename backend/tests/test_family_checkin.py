# tests/test_family_checkin.py
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _family(make_member):
    parent = make_member("Mark", "Hill")
    amy = make_member("Amy", "Hill", age_group="child", phone=None, parent_id=parent["id"])
    zoe = make_member("Zoe", "Hill", age_group="child", phone=None, parent_id=parent["id"])
    return parent, amy, zoe


def test_selective_family_check_in(admin, make_member):
    parent, amy, zoe = _family(make_member)
    r = client.post(
        "/api/attendance/selective-family-checkin",
        json={"parent_id": parent["id"], "children_ids": [amy["id"]]},
        headers=admin,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["checked_in"] == 2
    assert body["skipped"] == 0
    assert [(x["member_id"], x["role"], x["status"]) for x in body["results"]] == [
        (parent["id"], "parent", "checked_in"),
        (amy["id"], "child", "checked_in"),
    ]

    methods = {row["check_in_method"] for row in client.get("/api/attendance/today", headers=admin).json()}
    assert methods == {"family"}


def test_already_checked_in_people_are_skipped_not_fatal(admin, make_member):
    parent, amy, zoe = _family(make_member)
    client.post("/api/attendance", json={"member_id": amy["id"]}, headers=admin)

    r = client.post("/api/attendance/family-checkin", json={"parent_id": parent["id"]}, headers=admin)
    assert r.status_code == 200
    body = r.json()
    statuses = {x["member_id"]: x["status"] for x in body["results"]}
    assert statuses == {parent["id"]: "checked_in", amy["id"]: "duplicate", zoe["id"]: "checked_in"}
    assert body["checked_in"] == 2
    assert body["skipped"] == 1

    again = client.post("/api/attendance/family-checkin", json={"parent_id": parent["id"]}, headers=admin).json()
    assert again["checked_in"] == 0
    assert again["skipped"] == 3
    assert len(client.get("/api/attendance/today", headers=admin).json()) == 3


def test_unlinked_and_missing_children(admin, make_member):
    parent, amy, _ = _family(make_member)
    stranger = make_member("Kid", "Other", age_group="child", phone=None)
    r = client.post(
        "/api/attendance/selective-family-checkin",
        json={"parent_id": parent["id"], "children_ids": [stranger["id"], 999999]},
        headers=admin,
    )
    statuses = {x["member_id"]: x["status"] for x in r.json()["results"]}
    assert statuses[stranger["id"]] == "not_linked"
    assert statuses[999999] == "not_found"


def test_parent_only(admin, make_member):
    parent, _, _ = _family(make_member)
    body = client.post(
        "/api/attendance/selective-family-checkin",
        json={"parent_id": parent["id"], "children_ids": []},
        headers=admin,
    ).json()
    assert body["checked_in"] == 1


def test_family_group_members_count_as_linked(admin, make_member):
    head = make_member("Ruth", "Stone", gender="female", is_family_head=True)
    sam = make_member("Sam", "Stone", age_group="child", phone=None, family_group_id=head["family_group_id"])
    body = client.post(
        "/api/attendance/selective-family-checkin",
        json={"parent_id": head["id"], "children_ids": [sam["id"]]},
        headers=admin,
    ).json()
    assert body["checked_in"] == 2


def test_unknown_parent(admin):
    r = client.post("/api/attendance/family-checkin", json={"parent_id": 999999}, headers=admin)
    assert r.status_code == 404
