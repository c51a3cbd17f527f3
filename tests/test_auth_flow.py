def _register(client, **overrides):
    body = {
        "username": "alice",
        "email": "alice@example.com",
        "password": "Testpass123!",
        "firstName": "Alice",
        "lastName": "Smith",
        "skills": ["Python", " python ", "", "SQL"],
    }
    body.update(overrides)
    return client.post("/auth/register", json=body)


def _login(client, *, email: str, password: str):
    return client.post("/auth/login", json={"email": email, "password": password})


def _auth_headers(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


def test_register_returns_token_and_public_user(client):
    r = _register(client)
    assert r.status_code == 201, r.text
    data = r.json()
    assert isinstance(data.get("access_token"), str) and len(data["access_token"]) > 10
    assert data["token_type"] == "bearer"
    user = data["user"]
    assert user["username"] == "alice"
    assert user["firstName"] == "Alice"
    # Blank and case-duplicate skills are dropped.
    assert user["skills"] == ["Python", "SQL"]
    assert user["profileStrength"] == 20 + 8
    assert "password" not in user


def test_credential_hash_never_serialized(client, db_session):
    from backend.app.models import User

    r = _register(client)
    stored = db_session.query(User).filter(User.username == "alice").one()
    assert stored.password.startswith("$2")
    assert stored.password not in r.text
    assert "password" not in r.text

    token = r.json()["access_token"]
    me = client.get("/auth/me", headers=_auth_headers(token))
    assert me.status_code == 200, me.text
    assert stored.password not in me.text
    assert "password" not in me.json()["user"]


def test_duplicate_email_or_username_conflicts(client):
    assert _register(client).status_code == 201
    r = _register(client, username="alice2", email="ALICE@example.com")
    assert r.status_code == 409, r.text
    assert r.json()["success"] is False

    r = _register(client, email="other@example.com")
    assert r.status_code == 409, r.text


def test_register_validation_errors(client):
    r = _register(client, email="not-an-email")
    assert r.status_code == 400, r.text
    r = _register(client, password="123")
    assert r.status_code == 400, r.text
    r = _register(client, confirmPassword="different")
    assert r.status_code == 400, r.text
    r = _register(client, walletType="ledger")
    assert r.status_code == 400, r.text
    r = _register(client, username="a b")
    assert r.status_code == 400, r.text


def test_login_success_and_invalid_credentials(client):
    _register(client)
    r = _login(client, email="Alice@Example.com", password="Testpass123!")
    assert r.status_code == 200, r.text
    assert r.json()["user"]["email"] == "alice@example.com"

    r = _login(client, email="alice@example.com", password="wrong")
    assert r.status_code == 401, r.text
    r = _login(client, email="nobody@example.com", password="Testpass123!")
    assert r.status_code == 401, r.text


def test_protected_route_requires_valid_bearer_token(client):
    r = client.get("/auth/me")
    assert r.status_code == 401
    assert r.json()["error"] == "No token provided"

    r = client.get("/auth/me", headers=_auth_headers("garbage"))
    assert r.status_code == 401
    assert r.json()["error"] == "Invalid token"


def test_expired_token_is_rejected(client):
    from datetime import datetime, timedelta, timezone

    from jose import jwt

    from backend.app.utils.security import ALGORITHM, SECRET_KEY

    r = _register(client)
    user_id = r.json()["user"]["id"]
    expired = jwt.encode(
        {"sub": user_id, "exp": datetime.now(timezone.utc) - timedelta(minutes=1)},
        SECRET_KEY,
        algorithm=ALGORITHM,
    )
    r = client.get("/auth/me", headers=_auth_headers(expired))
    assert r.status_code == 401


def test_profile_update_and_search(client, register):
    headers, _ = register("bob")
    register("carol", title="Data Scientist")

    r = client.put(
        "/users/profile",
        headers=headers,
        json={
            "title": "Backend Engineer",
            "bio": "Builds APIs",
            "walletAddress": "0x742d35Cc6665C90532d8EcEc5D0E8eC41c1E8B96",
            "walletType": "MetaMask",
            "skills": ["Python", "FastAPI"],
            "profileStrength": 100,
        },
    )
    assert r.status_code == 200, r.text
    user = r.json()["user"]
    assert user["walletType"] == "metamask"
    # names 20 + title 15 + bio 15 + wallet 10 + two of five skills 8
    assert user["profileStrength"] == 68

    r = client.get("/users/search", params={"q": "scien"}, headers=headers)
    assert r.status_code == 200, r.text
    assert [u["username"] for u in r.json()["users"]] == ["carol"]

    r = client.get("/users/search", params={"q": " "}, headers=headers)
    assert r.status_code == 400

    r = client.get(f"/users/{user['id']}", headers=headers)
    assert r.status_code == 200
    assert r.json()["user"]["title"] == "Backend Engineer"
    assert client.get("/users/missing", headers=headers).status_code == 404
