from __future__ import annotations

import threading
from datetime import date

from fastapi.testclient import TestClient

from planfit.app import app
from planfit.auth.users import authenticate, compute_age, create_user, get_user, reset_users

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"email": "user@planfit.kr", "password": "user1234"})


def _login_admin(c):
    c.post("/auth/login", json={"email": "admin@planfit.kr", "password": "admin1234"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"email": "user@planfit.kr", "password": "user1234"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["nickname"] == "demo"
    assert body["user"]["role"] == "user"
    assert "password_hash" not in body["user"]


def test_login_success_admin():
    resp = client.post("/auth/login", json={"email": "admin@planfit.kr", "password": "admin1234"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_email_is_case_insensitive():
    resp = client.post("/auth/login", json={"email": " User@PlanFit.kr ", "password": "user1234"})
    assert resp.status_code == 200


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"email": "user@planfit.kr", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"email": "nobody@planfit.kr", "password": "x"})
    assert resp.status_code == 401


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    assert resp.json()["email"] == "user@planfit.kr"
    assert resp.json()["birth_year"] == 1998


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


# ── Registration ─────────────────────────────────────────────────────────


def _registration(**overrides) -> dict:
    body = {
        "nickname": "새사용자",
        "email": "new@planfit.kr",
        "password": "secret123",
        "birth_year": 2001,
    }
    body.update(overrides)
    return body


def test_register_then_login():
    reset_users()
    resp = client.post("/auth/register", json=_registration())
    assert resp.status_code == 201
    body = resp.json()
    assert body["nickname"] == "새사용자"
    assert body["role"] == "user"
    assert "password_hash" not in body

    login = client.post("/auth/login", json={"email": "new@planfit.kr", "password": "secret123"})
    assert login.status_code == 200


def test_register_duplicate_email():
    reset_users()
    resp = client.post("/auth/register", json=_registration(email="user@planfit.kr"))
    assert resp.status_code == 409


def test_register_duplicate_nickname():
    reset_users()
    resp = client.post("/auth/register", json=_registration(nickname="demo"))
    assert resp.status_code == 409


def test_register_validation():
    reset_users()
    invalid = [
        _registration(nickname="a"),
        _registration(nickname="공백 있음"),
        _registration(email="not-an-email"),
        _registration(password="short1"),
        _registration(password="lettersonly"),
        _registration(birth_year=1800),
        _registration(birth_year=date.today().year + 1),
    ]
    for body in invalid:
        assert client.post("/auth/register", json=body).status_code == 422, body


def test_reset_users_restores_demo_accounts():
    reset_users()
    assert authenticate("user@planfit.kr", "user1234") is not None
    assert authenticate("admin@planfit.kr", "admin1234")["role"] == "admin"


def test_compute_age():
    assert compute_age(None) is None
    assert compute_age(2000, today=date(2025, 3, 1)) == 25


# ── Route protection ─────────────────────────────────────────────────────


def test_history_requires_login():
    c = TestClient(app)
    assert c.get("/diagnosis/history").status_code == 401


def test_bookmarks_require_login():
    c = TestClient(app)
    assert c.post("/bookmarks", json={"plan_id": "plan-001"}).status_code == 401


def test_cache_stats_requires_login():
    c = TestClient(app)
    assert c.get("/cache/stats").status_code == 401


def test_cache_stats_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/cache/stats")
    assert resp.status_code == 403


def test_cache_stats_allowed_for_admin():
    c = TestClient(app)
    _login_admin(c)
    assert c.get("/cache/stats").status_code == 200


# ── Public endpoints stay public ─────────────────────────────────────────


def test_health_is_public():
    c = TestClient(app)
    assert c.get("/health").status_code == 200


def test_diagnosis_is_public():
    c = TestClient(app)
    assert c.get("/diagnosis/questions").status_code == 200
    resp = c.post("/diagnosis", json={"answers": [{"question_id": "q-data", "answer": "5GB 미만"}]})
    assert resp.status_code == 200


# ── Profile & account ────────────────────────────────────────────────────


def _register_and_login(c, nickname="프로필", email="profile@planfit.kr", password="secret123"):
    c.post("/auth/register", json=_registration(nickname=nickname, email=email, password=password))
    c.post("/auth/login", json={"email": email, "password": password})


def test_public_profile_by_nickname():
    reset_users()
    resp = client.get("/users/demo")
    assert resp.status_code == 200
    body = resp.json()
    assert body["nickname"] == "demo"
    assert body["email"] == "user@planfit.kr"
    assert body["created_at"] is not None
    assert "password_hash" not in body
    assert "id" not in body


def test_public_profile_unknown_nickname():
    assert client.get("/users/nobody").status_code == 404


def test_update_requires_login():
    c = TestClient(app)
    assert c.put("/users/update", json={"nickname": "새이름"}).status_code == 401


def test_update_nickname():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    resp = c.put("/users/update", json={"nickname": "새이름"})
    assert resp.status_code == 200
    assert resp.json()["nickname"] == "새이름"
    assert c.get("/auth/me").json()["nickname"] == "새이름"
    assert client.get("/users/프로필").status_code == 404


def test_update_password():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    assert c.put("/users/update", json={"password": "changed456"}).status_code == 200
    assert authenticate("profile@planfit.kr", "secret123") is None
    assert authenticate("profile@planfit.kr", "changed456") is not None


def test_update_duplicate_nickname():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    resp = c.put("/users/update", json={"nickname": "demo"})
    assert resp.status_code == 409


def test_update_keeping_own_nickname_is_allowed():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    assert c.put("/users/update", json={"nickname": "프로필"}).status_code == 200


def test_update_validation():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    for body in [{}, {"nickname": "a"}, {"password": "short1"}, {"password": "lettersonly"}]:
        assert c.put("/users/update", json=body).status_code == 422, body


def test_delete_account():
    reset_users()
    c = TestClient(app)
    _register_and_login(c)
    user_id = c.get("/auth/me").json()["id"]

    resp = c.delete("/auth/delete-account")
    assert resp.status_code == 200
    assert resp.json()["status"] == "deleted"
    assert get_user(user_id) is None
    assert c.get("/auth/me").status_code == 401
    assert authenticate("profile@planfit.kr", "secret123") is None


def test_deleted_account_session_elsewhere_is_rejected():
    reset_users()
    c1 = TestClient(app)
    c2 = TestClient(app)
    _register_and_login(c1)
    c2.post("/auth/login", json={"email": "profile@planfit.kr", "password": "secret123"})

    c1.delete("/auth/delete-account")
    assert c2.get("/auth/me").status_code == 401


def test_delete_account_requires_login():
    c = TestClient(app)
    assert c.delete("/auth/delete-account").status_code == 401


# ── Concurrency ──────────────────────────────────────────────────────────


def test_login_while_users_register():
    reset_users()
    errors = []

    def register_many():
        try:
            for i in range(10):
                create_user(f"동시{i}", f"concurrent{i}@planfit.kr", "secret123")
        except Exception as exc:
            errors.append(exc)

    thread = threading.Thread(target=register_many)
    thread.start()
    try:
        for _ in range(5):
            assert authenticate("user@planfit.kr", "wrong-pass1") is None
    except Exception as exc:
        errors.append(exc)
    thread.join()

    assert errors == []
    reset_users()
