from conftest import PASSWORD


def test_login_sets_cookie_and_me_reads_it(client, make_user):
    user = make_user(role="manager", email="manager@restaurant.com", name="Morgan")

    r = client.post("/api/auth/login", json={"email": "Manager@Restaurant.com", "password": PASSWORD})
    assert r.status_code == 200
    body = r.json()
    assert body["success"] is True
    assert body["user"] == {"id": user["id"], "email": "manager@restaurant.com", "role": "manager", "name": "Morgan"}
    assert body["token"]

    set_cookie = r.headers["set-cookie"]
    assert set_cookie.startswith("auth_token=")
    assert "HttpOnly" in set_cookie
    assert "samesite=lax" in set_cookie.lower()

    me = client.get("/api/auth/me")
    assert me.status_code == 200
    assert me.json()["user"]["id"] == user["id"]


def test_bearer_header_is_accepted(client, make_user):
    make_user(role="server")
    token = client.post("/api/auth/login", json={"email": "server@restaurant.com", "password": PASSWORD}).json()["token"]
    client.cookies.clear()

    r = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["user"]["role"] == "server"


def test_wrong_password_and_unknown_email(client, make_user):
    make_user(role="server")
    for payload in (
        {"email": "server@restaurant.com", "password": "nope"},
        {"email": "ghost@restaurant.com", "password": PASSWORD},
    ):
        r = client.post("/api/auth/login", json=payload)
        assert r.status_code == 401
        assert r.json() == {"success": False, "message": "Invalid email or password"}
    assert "auth_token" not in client.cookies


def test_deactivated_user_cannot_login(client, make_user):
    make_user(role="server", active=False)
    r = client.post("/api/auth/login", json={"email": "server@restaurant.com", "password": PASSWORD})
    assert r.status_code == 401
    assert r.json()["message"] == "Your account has been deactivated"


def test_login_requires_both_fields(client):
    r = client.post("/api/auth/login", json={"email": "server@restaurant.com"})
    assert r.status_code == 400
    assert r.json()["success"] is False
    assert "password" in r.json()["message"]


def test_logout_clears_cookie(client, make_user):
    make_user(role="server")
    client.post("/api/auth/login", json={"email": "server@restaurant.com", "password": PASSWORD})

    r = client.post("/api/auth/logout")
    assert r.status_code == 200
    assert r.json() == {"success": True, "message": "Logged out successfully"}
    assert client.get("/api/auth/me").status_code == 401


def test_protected_routes_need_a_session(client):
    for path in ("/api/auth/me", "/api/tables", "/api/categories", "/api/menu-items", "/api/orders"):
        r = client.get(path)
        assert r.status_code == 401, path
        assert r.json() == {"success": False, "message": "Authentication required"}


def test_garbage_cookie_is_rejected(client):
    client.cookies.set("auth_token", "definitely.not.valid")
    r = client.get("/api/auth/me")
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid token"


def test_auth_runs_before_body_validation(client, make_user, login_as):
    r = client.post("/api/tables", json={})
    assert r.status_code == 401

    login_as(make_user(role="server"))
    r = client.post("/api/tables", json={})
    assert r.status_code == 403
    assert r.json()["message"] == "Insufficient permissions"


def test_health(client):
    assert client.get("/health").json() == {"ok": True}
