import pytest

from taskshare.models import Message


@pytest.mark.anyio("asyncio")
async def test_send_and_read_conversation(auth_headers, client, make_user, db_session):
    alice = make_user("Alice")
    bob = make_user("Bob")

    for content in ("Hi Bob", "Are you free tomorrow?"):
        sent = await client.post(
            "/api/messages/send", headers=auth_headers(alice), json={"receiver_id": bob.id, "content": content}
        )
        assert sent.status_code == 201
        assert sent.json()["seen"] is False

    conversations = await client.get("/api/messages/conversations", headers=auth_headers(bob))
    body = conversations.json()
    assert len(body) == 1
    assert body[0]["user"]["id"] == alice.id
    assert body[0]["unread_count"] == 2
    assert body[0]["last_message"]["content"] == "Are you free tomorrow?"

    thread = await client.get(f"/api/messages/messages/{alice.id}", headers=auth_headers(bob))
    assert [item["content"] for item in thread.json()] == ["Hi Bob", "Are you free tomorrow?"]

    assert db_session.query(Message).filter_by(receiver_id=bob.id, seen=False).count() == 0
    refreshed = await client.get("/api/messages/conversations", headers=auth_headers(bob))
    assert refreshed.json()[0]["unread_count"] == 0


@pytest.mark.anyio("asyncio")
async def test_cannot_message_self_or_unknown(auth_headers, client, make_user):
    alice = make_user("Alice")

    to_self = await client.post(
        "/api/messages/send", headers=auth_headers(alice), json={"receiver_id": alice.id, "content": "Note"}
    )
    assert to_self.status_code == 400
    assert to_self.json()["error"]["code"] == "SELF_MESSAGE"

    unknown = await client.post(
        "/api/messages/send", headers=auth_headers(alice), json={"receiver_id": 999999, "content": "Hello"}
    )
    assert unknown.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_support_ticket_copies_sender_details(auth_headers, client, make_user):
    user = make_user("Helpme")
    created = await client.post(
        "/api/support-tickets",
        headers=auth_headers(user),
        json={"type": "payment", "content": "My card payment did not show up."},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["status"] == "open"
    assert body["sender_name"] == "Helpme"
    assert body["sender_email"] == user.email

    listed = await client.get("/api/support-tickets", headers=auth_headers(user))
    assert [item["id"] for item in listed.json()] == [body["id"]]

    other = make_user("Other")
    foreign = await client.get("/api/support-tickets", headers=auth_headers(other))
    assert foreign.json() == []
