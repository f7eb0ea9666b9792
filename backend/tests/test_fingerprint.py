# tests/test_fingerprint.py
from fastapi.testclient import TestClient

from app.main import app

client = TestClient(app)


def test_unknown_print_is_echoed_for_enrollment(admin):
    r = client.post("/api/fingerprint/scan", json={}, headers=admin)
    assert r.status_code == 200
    body = r.json()
    assert body["check_in_success"] is False
    assert body["member"] is None
    assert body["scanned_fingerprint_id"] == "fp_mock_default"


def test_enroll_then_scan(admin, make_member):
    m = make_member()
    r = client.post(
        "/api/fingerprint/enroll",
        json={"member_id": m["id"], "fingerprint_id": "fp-001"},
        headers=admin,
    )
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["fingerprint_id"] == "fp-001"
    assert body["check_in_success"] is True

    # already checked in by the enrollment
    r = client.post("/api/fingerprint/scan", json={"fingerprint_id": "fp-001"}, headers=admin)
    body = r.json()
    assert body["member"]["id"] == m["id"]
    assert body["check_in_success"] is False
    assert body["is_duplicate"] is True


def test_scan_checks_in_with_fingerprint_method(admin, make_member):
    m = make_member(fingerprint_id="fp-xyz")
    body = client.post("/api/fingerprint/scan", json={"fingerprint_id": "fp-xyz"}, headers=admin).json()
    assert body["check_in_success"] is True
    rows = client.get("/api/attendance/today", headers=admin).json()
    assert rows[0]["member_id"] == m["id"]
    assert rows[0]["check_in_method"] == "fingerprint"


def test_enroll_generates_id_without_check_in(admin, make_member):
    m = make_member()
    r = client.post("/api/fingerprint/enroll", json={"member_id": m["id"], "check_in": False}, headers=admin)
    body = r.json()
    assert body["fingerprint_id"].startswith(f"fp_{m['id']}_")
    assert body["check_in_success"] is False
    assert client.get("/api/attendance/today", headers=admin).json() == []


def test_fingerprint_cannot_be_shared(admin, make_member):
    make_member("A", "One", fingerprint_id="fp-dup")
    b = make_member("B", "Two")
    r = client.post("/api/fingerprint/enroll", json={"member_id": b["id"], "fingerprint_id": "fp-dup"}, headers=admin)
    assert r.status_code == 409


def test_same_print_id_in_another_church_is_independent(admin, other_church, make_member):
    _, other_admin = other_church
    make_member("Out", "Sider", headers=other_admin, fingerprint_id="fp-shared")
    body = client.post("/api/fingerprint/scan", json={"fingerprint_id": "fp-shared"}, headers=admin).json()
    assert body["member"] is None
