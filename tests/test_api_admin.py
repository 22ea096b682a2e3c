import pytest

from app.models.audit_log import AuditLog
from app.services.audit_log import CATEGORY_FAILED_ATTEMPT
from app.services.auth import create_access_token


@pytest.fixture
def registered(client, payload):
    def _make(**overrides):
        r = client.post("/api/register", json=payload(**overrides))
        assert r.status_code == 201, r.text
        return r.json()["registration"]

    return _make


def test_login_success(client):
    r = client.post("/api/admin/login", json={"username": "admin", "password": "s3cret-pass"})
    assert r.status_code == 200
    body = r.json()
    assert body["token_type"] == "bearer"
    assert body["expires_in"] == 480 * 60
    assert client.get("/api/admin/stats", headers={"Authorization": f"Bearer {body['access_token']}"}).status_code == 200


def test_login_failure_is_audited(client, db_session):
    r = client.post("/api/admin/login", json={"username": "admin", "password": "wrong"})
    assert r.status_code == 401
    assert db_session.query(AuditLog).filter(AuditLog.category == CATEGORY_FAILED_ATTEMPT).count() == 1


def test_login_blank_fields(client):
    assert client.post("/api/admin/login", json={"username": "admin"}).status_code == 400


def test_missing_token_401_invalid_token_403(client):
    assert client.get("/api/admin/registrations").status_code == 401
    r = client.get("/api/admin/registrations", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 403


def test_non_admin_role_forbidden(client):
    token = create_access_token("someone", role="viewer")
    r = client.get("/api/admin/stats", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 403


def test_list_filters_and_pagination(client, admin_headers, registered):
    registered(full_name="Meera Iyer", institution="Engineering", total_amount=450, ambassador_code="CAMPUS9")
    for _ in range(3):
        registered()

    r = client.get("/api/admin/registrations", headers=admin_headers, params={"limit": 2, "page": 2})
    body = r.json()
    assert body["total"] == 4
    assert body["total_pages"] == 2
    assert len(body["items"]) == 2

    r = client.get("/api/admin/registrations", headers=admin_headers, params={"institution": "Engineering"})
    assert [i["full_name"] for i in r.json()["items"]] == ["Meera Iyer"]

    r = client.get("/api/admin/registrations", headers=admin_headers, params={"search": "campus9"})
    assert r.json()["total"] == 1

    assert client.get("/api/admin/registrations", headers=admin_headers, params={"limit": 500}).status_code == 400


def test_get_registration(client, admin_headers, registered):
    reg = registered()
    r = client.get(f"/api/registration/{reg['id']}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["phone"] == "98765 43210"
    assert client.get("/api/registration/missing", headers=admin_headers).status_code == 404
    assert client.get(f"/api/registration/{reg['id']}").status_code == 401


def test_approve_defaults_approver_and_notifies(client, admin_headers, notifier, registered):
    reg = registered()
    r = client.put(f"/api/admin/registration/{reg['id']}/approve", headers=admin_headers)
    assert r.status_code == 200, r.text
    body = r.json()
    assert body["email_sent"] is True
    assert body["registration"]["status"] == "approved"
    assert body["registration"]["approved_by"] == "admin"
    assert (reg["email"], "approved") in notifier.status_for


def test_approve_with_explicit_approver(client, admin_headers, registered):
    reg = registered()
    r = client.put(
        f"/api/admin/registration/{reg['id']}/approve", headers=admin_headers, json={"approved_by": "Desk 2"}
    )
    assert r.json()["registration"]["approved_by"] == "Desk 2"


def test_reject_reason_rules(client, admin_headers, registered):
    reg = registered()
    url = f"/api/admin/registration/{reg['id']}/reject"
    r = client.put(url, headers=admin_headers, json={"reason": "no"})
    assert r.status_code == 400
    r = client.put(url, headers=admin_headers, json={"reason": "Amount not received"})
    assert r.status_code == 200
    reg_body = r.json()["registration"]
    assert reg_body["status"] == "rejected"
    assert reg_body["rejection_reason"] == "Amount not received"
    assert reg_body["rejection_email_sent"] is True


def test_email_failure_reported_not_raised(client, admin_headers, notifier, registered):
    reg = registered()
    notifier.result = False
    r = client.put(f"/api/admin/registration/{reg['id']}/approve", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["email_sent"] is False
    assert r.json()["registration"]["status"] == "approved"


def test_approve_unknown_is_404(client, admin_headers):
    assert client.put("/api/admin/registration/nope/approve", headers=admin_headers).status_code == 404


def test_stats(client, admin_headers, registered, stay_payload):
    a = registered(ambassador_code="AMB1")
    registered(ambassador_code="AMB1")
    client.post("/api/register", json=stay_payload(ambassador_code="AMB2"))
    b = registered()
    client.put(f"/api/admin/registration/{a['id']}/approve", headers=admin_headers)
    client.put(f"/api/admin/registration/{b['id']}/reject", headers=admin_headers, json={"reason": "Fake receipt"})

    body = client.get("/api/admin/stats", headers=admin_headers).json()
    assert body["total_registrations"] == 4
    assert body["approved_registrations"] == 1
    assert body["rejected_registrations"] == 1
    assert body["pending_registrations"] == 2
    assert body["total_revenue"] == 250
    assert body["stay_stats"]["used"] == 1
    assert body["stay_stats"]["remaining"] == 349
    assert body["ambassador_stats"]["total_with_code"] == 3
    assert body["ambassador_stats"]["top_codes"][0] == {"key": "AMB1", "count": 2}
    by_pref = {b["key"]: b["count"] for b in body["by_stay_preference"]}
    assert by_pref == {"Without Stay": 3, "With Stay": 1}


def test_auth_errors_carry_code(client):
    r = client.get("/api/admin/stats")
    assert r.status_code == 401
    assert r.json() == {"detail": "Access token required", "code": "auth_error"}

    r = client.get("/api/admin/stats", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 403
    assert r.json()["code"] == "auth_error"

    r = client.post("/api/admin/login", json={"username": "admin", "password": "wrong"})
    assert r.json()["code"] == "auth_error"


def test_search_treats_wildcards_literally(client, admin_headers, registered):
    registered(ambassador_code="A_1")
    registered(ambassador_code="AB1")
    r = client.get("/api/admin/registrations", headers=admin_headers, params={"search": "A_1"})
    assert [i["ambassador_code"] for i in r.json()["items"]] == ["A_1"]
    r = client.get("/api/admin/registrations", headers=admin_headers, params={"search": "%"})
    assert r.json()["total"] == 0
