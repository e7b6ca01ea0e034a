import pytest

from taskshare.models import UserDevice
from taskshare.services import notifications


@pytest.mark.anyio("asyncio")
async def test_register_token_upserts_and_reassigns(auth_headers, client, make_user, db_session):
    first = make_user("First")
    second = make_user("Second")
    token = "fcm-token-0123456789"

    response = await client.post(
        "/api/devices/token", headers=auth_headers(first), json={"token": token, "platform": "ios"}
    )
    assert response.status_code == 200
    again = await client.post("/api/devices/token", headers=auth_headers(first), json={"token": token})
    assert again.json()["device_id"] == response.json()["device_id"]

    moved = await client.post("/api/devices/token", headers=auth_headers(second), json={"token": token})
    assert moved.status_code == 200

    devices = db_session.query(UserDevice).filter_by(device_token=token).all()
    assert len(devices) == 1
    assert devices[0].user_id == second.id
    assert devices[0].platform == "ios"


@pytest.mark.anyio("asyncio")
async def test_remove_token(auth_headers, client, make_user):
    user = make_user("Remover")
    token = "fcm-token-remove-me"
    await client.post("/api/devices/token", headers=auth_headers(user), json={"token": token})

    removed = await client.request("DELETE", "/api/devices/token", headers=auth_headers(user), json={"token": token})
    assert removed.status_code == 200

    missing = await client.request("DELETE", "/api/devices/token", headers=auth_headers(user), json={"token": token})
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "DEVICE_NOT_FOUND"


def test_outbox_drain_stringifies_data():
    outbox = notifications.NotificationOutbox()
    outbox.add(1, "Title", "Body", task_request_id=7, skipped=None)
    assert len(outbox) == 1

    messages = outbox.drain()
    assert messages[0].data == {"task_request_id": "7"}
    assert len(outbox) == 0


def test_deliver_prunes_invalid_tokens(make_user, db_session, push_sender):
    user = make_user("Pushy")
    db_session.add_all(
        [
            UserDevice(user_id=user.id, device_token="good-token-123456"),
            UserDevice(user_id=user.id, device_token="dead-token-123456"),
        ]
    )
    db_session.commit()
    push_sender.invalid_tokens.add("dead-token-123456")

    pruned = notifications.deliver(
        db_session, [notifications.PushMessage(user_id=user.id, title="Hi", body="There")]
    )

    assert pruned == 1
    assert [token for token, _ in push_sender.sent] == ["good-token-123456"]
    remaining = [device.device_token for device in db_session.query(UserDevice).filter_by(user_id=user.id)]
    assert remaining == ["good-token-123456"]


def test_deliver_logs_and_continues_on_provider_error(make_user, db_session):
    user = make_user("Flaky")
    db_session.add(UserDevice(user_id=user.id, device_token="flaky-token-123456"))
    db_session.commit()

    class ExplodingSender:
        def send(self, token, message):
            raise RuntimeError("provider down")

    pruned = notifications.deliver(
        db_session,
        [notifications.PushMessage(user_id=user.id, title="Hi", body="There")],
        sender=ExplodingSender(),
    )

    assert pruned == 0
    assert db_session.query(UserDevice).filter_by(user_id=user.id).count() == 1
