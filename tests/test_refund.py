from decimal import Decimal

import pytest

from taskshare.models import Payment, PaymentStatus, TaskRequest, TaskRequestStatus, User

S = TaskRequestStatus


async def _pay_from_wallet(client, headers, task_id: int) -> None:
    response = await client.post(
        "/api/payments/create-checkout-session",
        headers=headers,
        json={"amount": "20.00", "task_id": task_id, "type": "Wallet"},
    )
    assert response.status_code == 200


@pytest.mark.anyio("asyncio")
async def test_cancel_paid_task_restores_balances(auth_headers, client, make_user, make_task_request, db_session, push_sender):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=S.WAITING_FOR_PAYMENT)
    await _pay_from_wallet(client, auth_headers(sender), task.id)

    response = await client.put(
        f"/api/tasker/tasks/received/{task.id}/status",
        headers=auth_headers(sender),
        json={"status": "Canceled by sender"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "refunded"
    assert body["refunded"] is True

    db_session.expire_all()
    assert db_session.get(User, sender.id).wallet_amount == 5000
    assert db_session.get(User, tasker.id).wallet_amount == 0
    assert db_session.get(TaskRequest, task.id).status == S.REFUNDED
    rows = {row.is_payment: row.status for row in db_session.query(Payment).filter_by(task_request_id=task.id)}
    assert rows == {True: PaymentStatus.REFUNDED, False: PaymentStatus.CANCELED}


@pytest.mark.anyio("asyncio")
async def test_cancel_card_paid_task_refunds_to_wallet(auth_headers, client, make_user, make_task_request, db_session):
    sender = make_user("Sender")
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=S.PAID)
    db_session.add_all(
        [
            Payment(
                task_request_id=task.id,
                user_id=sender.id,
                amount=Decimal("-20.00"),
                stripe_session_id="cs_test_refund",
                status=PaymentStatus.ON_HOLD,
                is_payment=True,
            ),
            Payment(
                task_request_id=task.id,
                user_id=tasker.id,
                amount=Decimal("15.00"),
                stripe_session_id="cs_test_refund",
                status=PaymentStatus.PENDING,
                is_payment=False,
            ),
        ]
    )
    db_session.commit()

    response = await client.put(
        f"/api/tasker/tasks/received/{task.id}/status",
        headers=auth_headers(tasker),
        json={"status": "Canceled"},
    )
    assert response.status_code == 200

    db_session.expire_all()
    assert db_session.get(User, sender.id).wallet_amount == 2000
    assert db_session.get(User, tasker.id).wallet_amount == 0


@pytest.mark.anyio("asyncio")
async def test_refund_fails_when_tasker_spent_the_credit(auth_headers, client, make_user, make_task_request, db_session):
    sender = make_user("Sender", wallet=5000)
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=S.WAITING_FOR_PAYMENT)
    await _pay_from_wallet(client, auth_headers(sender), task.id)

    db_session.expire_all()
    spender = db_session.get(User, tasker.id)
    spender.wallet_amount = 500
    db_session.commit()

    response = await client.put(
        f"/api/tasker/tasks/received/{task.id}/status",
        headers=auth_headers(sender),
        json={"status": "Canceled"},
    )
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "INSUFFICIENT_FUNDS"

    db_session.expire_all()
    assert db_session.get(TaskRequest, task.id).status == S.PAID
    assert db_session.get(User, sender.id).wallet_amount == 3000


@pytest.mark.anyio("asyncio")
async def test_tasker_cannot_use_sender_cancellation(auth_headers, client, make_user, make_task_request):
    sender = make_user("Sender")
    tasker = make_user("Tasker", tasker=True)
    task = make_task_request(sender, tasker, status=S.PAID)

    response = await client.put(
        f"/api/tasker/tasks/received/{task.id}/status",
        headers=auth_headers(tasker),
        json={"status": "Canceled by sender"},
    )
    assert response.status_code == 403
