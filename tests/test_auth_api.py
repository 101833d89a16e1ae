from __future__ import annotations

from taskboard.auth import COOKIE_NAME

SIGNUP = {"name": "Alice", "email": "alice@example.com", "password": "s3cret!"}


def _signup(client, **overrides):
    return client.post("/api/auth/signup", json={**SIGNUP, **overrides})


def test_signup_creates_user_and_session(client):
    res = _signup(client)

    assert res.status_code == 201
    body = res.json()
    assert body["success"] is True
    assert body["user"]["name"] == "Alice"
    assert body["user"]["email"] == "alice@example.com"
    assert "password" not in str(body)
    assert client.cookies.get(COOKIE_NAME)

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == body["user"]["id"]


def test_signup_rejects_duplicate_email(client):
    assert _signup(client).status_code == 201
    res = _signup(client, name="Another Alice")

    assert res.status_code == 400
    assert res.json()["error"]["formErrors"] == ["Email already in use"]


def test_signup_reports_field_errors(client):
    res = client.post("/api/auth/signup", json={"name": "A", "email": "nope", "password": "123"})

    assert res.status_code == 400
    fields = res.json()["error"]["fieldErrors"]
    assert set(fields) == {"name", "email", "password"}


def test_login_with_valid_credentials(client):
    _signup(client)
    client.post("/api/auth/logout")

    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": "s3cret!"})
    assert res.status_code == 200
    assert res.json()["user"]["email"] == "alice@example.com"
    assert client.get("/api/auth/me").status_code == 200


def test_login_failures_do_not_reveal_which_field_was_wrong(client):
    _signup(client)
    client.post("/api/auth/logout")

    wrong_password = client.post(
        "/api/auth/login", json={"email": "alice@example.com", "password": "wrong-one"}
    )
    unknown_email = client.post(
        "/api/auth/login", json={"email": "bob@example.com", "password": "s3cret!"}
    )

    assert wrong_password.status_code == 401
    assert unknown_email.status_code == 401
    assert wrong_password.json() == unknown_email.json()
    assert wrong_password.json()["error"]["formErrors"] == ["Invalid email or password"]


def test_login_validates_payload(client):
    res = client.post("/api/auth/login", json={"email": "alice@example.com", "password": ""})
    assert res.status_code == 400
    assert "password" in res.json()["error"]["fieldErrors"]


def test_me_without_session(client):
    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json() == {"user": None}


def test_me_for_deleted_user_is_unauthenticated(client, make_user, login, db):
    user = make_user()
    login(user)
    db.delete(user)
    db.commit()

    res = client.get("/api/auth/me")
    assert res.status_code == 401
    assert res.json() == {"user": None}


def test_logout_clears_session(client):
    _signup(client)
    res = client.post("/api/auth/logout")

    assert res.status_code == 200
    assert res.json() == {"success": True}
    assert not client.cookies.get(COOKIE_NAME)
    assert client.get("/api/auth/me").status_code == 401


def test_login_with_corrupt_stored_hash_is_a_generic_500(client, make_user):
    user = make_user(email="broken@example.com")
    assert user.password_hash == "!"

    res = client.post("/api/auth/login", json={"email": "broken@example.com", "password": "whatever"})

    assert res.status_code == 500
    assert res.json() == {"error": "Failed to authenticate"}
    assert not client.cookies.get(COOKIE_NAME)
