# tests/api/test_auth.py


def test_healthz_is_public(client):
    r = client.get("/api/v0/healthz")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}
    assert r.headers["X-Request-Id"].startswith("req_")


def test_request_id_is_echoed(client):
    r = client.get("/api/v0/healthz", headers={"X-Request-Id": "abc-123"})
    assert r.headers["X-Request-Id"] == "abc-123"


def test_missing_token_is_401(client):
    r = client.get("/api/v0/workflows")
    assert r.status_code == 401
    assert r.json()["detail"] == "Unauthorized"


def test_bad_signature_is_401(client):
    from jose import jwt

    token = jwt.encode({"sub": "idp|x"}, "not-the-secret", algorithm="HS256")
    r = client.get("/api/v0/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_token_without_subject_is_401(client, make_token):
    token = make_token(sub="")
    r = client.get("/api/v0/users/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 401


def test_user_is_synced_from_token(client, auth_headers, make_token):
    first = client.get("/api/v0/users/me", headers=auth_headers)
    assert first.status_code == 200, first.text
    me = first.json()
    assert me["id"].startswith("usr_")
    assert me["external_id"] == "idp|tech-1"
    assert me["email"] == "tech1@example.com"
    assert me["name"] == "Tech One"

    again = client.get("/api/v0/users/me", headers=auth_headers).json()
    assert again["id"] == me["id"]

    renamed = make_token(name="Tech Renamed", email="new@example.com")
    r = client.get("/api/v0/users/me", headers={"Authorization": f"Bearer {renamed}"})
    assert r.json()["id"] == me["id"]
    assert r.json()["name"] == "Tech Renamed"
    assert r.json()["email"] == "new@example.com"


def test_different_subjects_get_different_users(client, auth_headers, other_auth_headers):
    a = client.get("/api/v0/users/me", headers=auth_headers).json()
    b = client.get("/api/v0/users/me", headers=other_auth_headers).json()
    assert a["id"] != b["id"]
