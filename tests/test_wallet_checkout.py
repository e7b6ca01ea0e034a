from decimal import Decimal

import pytest

from taskshare.models import AuditLog, Payment, PaymentStatus, TaskRequest, TaskRequestStatus, User, UserDevice


def _checkout(task_id: int, amount: str, kind: str = "Wallet") -> dict[str, object]:
    return {"amount": amount, "task_id": task_id, "type": kind}


@pytest.mark.anyio("asyncio")
async def test_wallet_checkout_moves_funds_and_books_rows(auth_headers, client, make_user, make_task_request, db_session, push_sender):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    db_session.add(UserDevice(user_id=tasker.id, device_token="tasker-device-token"))
    db_session.commit()
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT, task_id=42)

    response = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(42, "20.00")
    )
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["remaining_balance"] == 3000

    db_session.expire_all()
    assert db_session.get(User, sender.id).wallet_amount == 3000
    assert db_session.get(User, tasker.id).wallet_amount == 2000
    assert db_session.get(TaskRequest, task.id).status == TaskRequestStatus.PAID

    rows = db_session.query(Payment).filter_by(task_request_id=task.id).order_by(Payment.amount).all()
    assert [(row.amount, row.is_payment, row.status) for row in rows] == [
        (Decimal("-20.00"), True, PaymentStatus.COMPLETED),
        (Decimal("20.00"), False, PaymentStatus.COMPLETED),
    ]
    assert db_session.query(AuditLog).filter_by(action="WALLET_PAYMENT_DEBIT", entity_id=task.id).count() == 1
    assert [message.title for _, message in push_sender.sent] == ["Payment received"]


@pytest.mark.anyio("asyncio")
async def test_wallet_checkout_insufficient_funds_leaves_no_trace(auth_headers, client, make_user, make_task_request, db_session):
    sender = make_user("Poor", wallet=1000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT)

    response = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(task.id, "20.00")
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"

    db_session.expire_all()
    assert db_session.get(User, sender.id).wallet_amount == 1000
    assert db_session.get(User, tasker.id).wallet_amount == 0
    assert db_session.get(TaskRequest, task.id).status == TaskRequestStatus.WAITING_FOR_PAYMENT
    assert db_session.query(Payment).filter_by(task_request_id=task.id).count() == 0


@pytest.mark.anyio("asyncio")
async def test_wallet_checkout_rejects_amount_mismatch(auth_headers, client, make_user, make_task_request):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT)

    response = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(task.id, "5.00")
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "AMOUNT_MISMATCH"


@pytest.mark.anyio("asyncio")
async def test_only_sender_can_pay(auth_headers, client, make_user, make_task_request):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT)

    response = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(tasker), json=_checkout(task.id, "20.00")
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_TASK_SENDER"


@pytest.mark.anyio("asyncio")
async def test_cannot_pay_pending_or_paid_task(auth_headers, client, make_user, make_task_request):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    pending = make_task_request(sender, tasker, status=TaskRequestStatus.PENDING)

    response = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(pending.id, "20.00")
    )
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "TASK_NOT_PAYABLE"


@pytest.mark.anyio("asyncio")
async def test_second_wallet_payment_is_rejected(auth_headers, client, make_user, make_task_request, db_session):
    sender = make_user("Sender", wallet=10000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT)

    first = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(task.id, "20.00")
    )
    assert first.status_code == 200
    second = await client.post(
        "/api/payments/create-checkout-session", headers=auth_headers(sender), json=_checkout(task.id, "20.00")
    )
    assert second.status_code == 409

    db_session.expire_all()
    assert db_session.get(User, sender.id).wallet_amount == 8000
    assert db_session.query(Payment).filter_by(task_request_id=task.id).count() == 2


@pytest.mark.anyio("asyncio")
async def test_card_checkout_unavailable_without_stripe(auth_headers, client, make_user, make_task_request):
    sender = make_user("Sender")
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=TaskRequestStatus.WAITING_FOR_PAYMENT)

    response = await client.post(
        "/api/payments/create-checkout-session",
        headers=auth_headers(sender),
        json=_checkout(task.id, "20.00", kind="Card"),
    )
    assert response.status_code == 503
    assert response.json()["error"]["code"] == "STRIPE_NOT_CONFIGURED"
