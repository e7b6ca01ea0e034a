import pytest

from taskshare.models import AuditLog, TaskRequestStatus, User, UserDevice


@pytest.mark.anyio("asyncio")
async def test_profile_masks_iban(auth_headers, client, make_user):
    user = make_user("Iban", iban="DE89370400440532013000")
    response = await client.get("/api/user/profile", headers=auth_headers(user))
    assert response.status_code == 200
    body = response.json()
    assert body["wallet_bank_iban"].endswith("3000")
    assert body["wallet_bank_iban"].startswith("*")
    assert body["is_tasker"] is False


@pytest.mark.anyio("asyncio")
async def test_update_profile_records_iban_audit(auth_headers, client, make_user, db_session):
    user = make_user("Edit")
    response = await client.put(
        "/api/user/profile",
        headers=auth_headers(user),
        data={"city": "Berlin", "wallet_bank_iban": "DE44500105175407324931"},
    )
    assert response.status_code == 200
    assert response.json()["city"] == "Berlin"

    audit = db_session.query(AuditLog).filter_by(action="BANK_IBAN_UPDATED", entity_id=user.id).one()
    assert audit.data_json["wallet_bank_iban"] == "***4931"


@pytest.mark.anyio("asyncio")
async def test_wallet_balance(auth_headers, client, make_user):
    user = make_user("Rich", wallet=12345)
    response = await client.get("/api/user/wallet/balance", headers=auth_headers(user))
    assert response.status_code == 200
    assert response.json() == {"wallet_amount": 12345, "balance": "123.45", "currency": "EUR"}


@pytest.mark.anyio("asyncio")
async def test_change_password(auth_headers, client, make_user):
    user = make_user("Pw")
    bad = await client.post(
        "/api/user/change-password",
        headers=auth_headers(user),
        json={"current_password": "wrong", "new_password": "brandnew1"},
    )
    assert bad.status_code == 400

    ok = await client.post(
        "/api/user/change-password",
        headers=auth_headers(user),
        json={"current_password": "secret123", "new_password": "brandnew1"},
    )
    assert ok.status_code == 200

    login = await client.post("/api/auth/login", json={"email": user.email, "password": "brandnew1"})
    assert login.status_code == 200


@pytest.mark.anyio("asyncio")
async def test_public_profile_hides_private_fields(auth_headers, client, make_user):
    viewer = make_user("Viewer")
    other = make_user("Other", wallet=500)
    response = await client.get(f"/api/user/{other.id}", headers=auth_headers(viewer))
    assert response.status_code == 200
    body = response.json()
    assert body["name"] == "Other"
    assert "email" not in body
    assert "wallet_amount" not in body


@pytest.mark.anyio("asyncio")
async def test_delete_account_blocked_by_active_task(auth_headers, client, make_user, make_task_request):
    sender = make_user("Busy")
    tasker = make_user("Helper", tasker=True)
    make_task_request(sender, tasker, status=TaskRequestStatus.PAID)

    response = await client.delete("/api/user/account", headers=auth_headers(sender))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "ACTIVE_TASKS"


@pytest.mark.anyio("asyncio")
async def test_delete_account_deactivates_user(auth_headers, client, make_user, db_session):
    user = make_user("Leaving")
    db_session.add(UserDevice(user_id=user.id, device_token="token-leaving", platform="android"))
    db_session.commit()

    response = await client.delete("/api/user/account", headers=auth_headers(user))
    assert response.status_code == 200

    db_session.expire_all()
    stored = db_session.get(User, user.id)
    assert stored.is_active is False
    assert stored.current_token is None
    assert db_session.query(UserDevice).filter_by(user_id=user.id).count() == 0

    again = await client.get("/api/user/profile", headers=auth_headers(user))
    assert again.status_code == 401
