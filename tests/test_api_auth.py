from tests.conftest import PASSWORD, signup


async def test_signup_returns_token_and_user(client):
    body = await signup(client)

    assert body["token_type"] == "bearer"
    assert body["access_token"]
    assert body["expires_in"] > 0
    assert body["user"]["email"] == "owner@acme.in"
    assert body["user"]["company_name"] == "Acme Supplies"
    assert "password_hash" not in body["user"]


async def test_signup_duplicate_email(client):
    await signup(client)

    response = await client.post("/api/v1/auth/signup", json={
        "name": "Someone Else",
        "email": "OWNER@acme.in",
        "password": PASSWORD,
        "password_confirm": PASSWORD,
    })

    assert response.status_code == 400
    assert response.json()["error"]["field"] == "email"


async def test_signup_password_mismatch(client):
    response = await client.post("/api/v1/auth/signup", json={
        "name": "Asha Rao",
        "email": "owner@acme.in",
        "password": PASSWORD,
        "password_confirm": PASSWORD + "x",
    })

    assert response.status_code == 422


async def test_login(client):
    await signup(client)

    response = await client.post("/api/v1/auth/login", json={
        "email": "owner@acme.in",
        "password": PASSWORD,
    })

    assert response.status_code == 200
    body = response.json()
    assert body["access_token"]
    assert body["user"]["last_login_at"] is not None


async def test_login_with_wrong_password(client):
    await signup(client)

    response = await client.post("/api/v1/auth/login", json={
        "email": "owner@acme.in",
        "password": "wrong-password",
    })

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTHENTICATION_FAILED"
    assert response.headers["www-authenticate"] == "Bearer"


async def test_login_with_unknown_email(client):
    response = await client.post("/api/v1/auth/login", json={
        "email": "nobody@acme.in",
        "password": PASSWORD,
    })

    assert response.status_code == 401


async def test_me(client, headers):
    response = await client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 200
    assert response.json()["name"] == "Asha Rao"


async def test_logout_revokes_token(client, headers):
    response = await client.post("/api/v1/auth/logout", headers=headers)
    assert response.status_code == 200

    response = await client.get("/api/v1/auth/me", headers=headers)

    assert response.status_code == 401
    assert response.json()["detail"] == "Token has been revoked"


async def test_garbage_token_is_rejected(client):
    response = await client.get("/api/v1/auth/me", headers={"Authorization": "Bearer not-a-jwt"})

    assert response.status_code == 401


async def test_documents_require_authentication(client):
    response = await client.get("/api/v1/invoices")

    assert response.status_code in (401, 403)
