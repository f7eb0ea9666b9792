# tests/test_external_checkin.py
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def _event(admin, **fields):
    payload = {"name": "Sunday Service", "event_type": "sunday_service", "location": "Main Hall"}
    payload.update(fields)
    r = client.post("/api/events", json=payload, headers=admin)
    assert r.status_code == 201, r.text
    return r.json()


def _enable(admin, event_id):
    r = client.post(f"/api/external-checkin/events/{event_id}/toggle", json={"enabled": True}, headers=admin)
    assert r.status_code == 200, r.text
    return r.json()


def _wrong(pin):
    return "111111" if pin != "111111" else "222222"


def test_enable_issues_slug_and_pin(admin):
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])
    assert cfg["enabled"] is True
    assert len(cfg["url"]) == 16
    assert len(cfg["pin"]) == 6 and cfg["pin"].isdigit()
    assert cfg["full_url"].endswith(f"/external-checkin/{cfg['url']}")

    again = _enable(admin, ev["id"])
    assert again["url"] != cfg["url"]


def test_public_flow(admin, make_member):
    m = make_member("Jane", "Doe", gender="female")
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])

    info = client.get(f"/api/external-checkin/event/{cfg['url']}")
    assert info.status_code == 200
    assert info.json()["event_name"] == "Sunday Service"
    assert info.json()["church_name"] == "Grace Chapel"

    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": _wrong(cfg["pin"]), "member_id": m["id"]})
    assert r.status_code == 401

    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": cfg["pin"], "member_id": m["id"]})
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["success"] is True
    assert body["member_name"] == "Jane Doe"

    rows = client.get("/api/attendance/today", headers=admin).json()
    assert rows[0]["check_in_method"] == "external"
    assert rows[0]["event_id"] == ev["id"]

    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": cfg["pin"], "member_id": m["id"]})
    assert r.status_code == 409
    assert r.json()["is_duplicate"] is True


def test_disable_revokes_link_and_pin(admin, make_member):
    m = make_member()
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])

    r = client.post(f"/api/external-checkin/events/{ev['id']}/toggle", json={"enabled": False}, headers=admin)
    off = r.json()
    assert off["enabled"] is False
    assert off["url"] is None and off["pin"] is None

    assert client.get(f"/api/external-checkin/event/{cfg['url']}").status_code == 404
    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": cfg["pin"], "member_id": m["id"]})
    assert r.status_code == 404


def test_member_from_other_church_rejected(admin, other_church, make_member):
    _, other_admin = other_church
    outsider = make_member("Out", "Sider", headers=other_admin)
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])
    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": cfg["pin"], "member_id": outsider["id"]})
    assert r.status_code == 404


def test_pin_format_validated(admin):
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])
    r = client.post(f"/api/external-checkin/check-in/{cfg['url']}", json={"pin": "12ab56", "member_id": 1})
    assert r.status_code == 400
    # Arabic-Indic digits pass str.isdigit() but are not a PIN
    r = client.post(
        f"/api/external-checkin/check-in/{cfg['url']}",
        json={"pin": "١٢٣٤٥٦", "member_id": 1},
    )
    assert r.status_code == 400


def test_inactive_event_cannot_be_enabled(admin):
    ev = _event(admin)
    cfg = _enable(admin, ev["id"])
    assert client.delete(f"/api/events/{ev['id']}", headers=admin).status_code == 204

    # soft delete also switches the public link off
    assert client.get(f"/api/external-checkin/event/{cfg['url']}").status_code == 404
    r = client.post(f"/api/external-checkin/events/{ev['id']}/toggle", json={"enabled": True}, headers=admin)
    assert r.status_code == 400


def test_settings_view_requires_admin_scope(admin, other_church):
    ev = _event(admin)
    _, other_admin = other_church
    assert client.get(f"/api/external-checkin/events/{ev['id']}", headers=admin).status_code == 200
    assert client.get(f"/api/external-checkin/events/{ev['id']}", headers=other_admin).status_code == 404
    assert client.get(f"/api/external-checkin/events/{ev['id']}").status_code == 401
