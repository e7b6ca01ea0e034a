import pytest

from taskshare.services.auth import decode_token, issue_token


@pytest.mark.anyio("asyncio")
async def test_register_then_login(client):
    payload = {
        "name": "Lena",
        "surname": "Weber",
        "email": "Lena.Weber@example.com",
        "password": "hunter22",
    }
    response = await client.post("/api/auth/register", json=payload)
    assert response.status_code == 201
    body = response.json()
    assert body["token"]
    assert body["isTasker"] is False
    assert body["user"]["email"] == "lena.weber@example.com"
    assert body["user"]["wallet_amount"] == 0

    login = await client.post(
        "/api/auth/login", json={"email": "lena.weber@example.com", "password": "hunter22"}
    )
    assert login.status_code == 200
    assert login.json()["token"]


@pytest.mark.anyio("asyncio")
async def test_register_duplicate_email_rejected(client, make_user):
    user = make_user("Dup")
    response = await client.post(
        "/api/auth/register",
        json={"name": "Other", "surname": "User", "email": user.email.upper(), "password": "hunter22"},
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "EMAIL_TAKEN"


@pytest.mark.anyio("asyncio")
async def test_login_wrong_password(client, make_user):
    user = make_user("Wrong")
    response = await client.post("/api/auth/login", json={"email": user.email, "password": "nope-nope"})
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"


@pytest.mark.anyio("asyncio")
async def test_new_login_invalidates_previous_token(auth_headers, client, make_user):
    user = make_user("Single")
    old_headers = auth_headers(user)

    login = await client.post("/api/auth/login", json={"email": user.email, "password": "secret123"})
    assert login.status_code == 200
    new_token = login.json()["token"]

    stale = await client.get("/api/user/profile", headers=old_headers)
    assert stale.status_code == 401
    assert stale.json()["error"]["code"] == "INVALID_TOKEN"

    fresh = await client.get("/api/user/profile", headers={"Authorization": f"Bearer {new_token}"})
    assert fresh.status_code == 200


def test_tokens_issued_in_the_same_second_differ(make_user):
    user = make_user("Twice")
    first, second = issue_token(user), issue_token(user)

    assert first != second
    assert decode_token(first)["jti"] != decode_token(second)["jti"]
    assert decode_token(second)["id"] == user.id


@pytest.mark.anyio("asyncio")
async def test_missing_token_rejected(client):
    response = await client.get("/api/user/profile")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "NO_TOKEN"


@pytest.mark.anyio("asyncio")
async def test_validation_errors_use_standard_payload(client):
    response = await client.post("/api/auth/register", json={"email": "not-an-email"})
    assert response.status_code == 422
    body = response.json()
    assert body["error"]["code"] == "VALIDATION_ERROR"
    assert body["error"]["details"]["errors"]
