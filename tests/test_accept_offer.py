import datetime as dt
from decimal import Decimal

import pytest

from taskshare.models import (
    OfferStatus,
    OpenTask,
    OpenTaskDate,
    OpenTaskOffer,
    OpenTaskPhoto,
    OpenTaskStatus,
    TaskRequest,
    TaskRequestGalleryImage,
    TaskRequestStatus,
    User,
)
from taskshare.utils.time import today

PHOTO = "images/tasks/0f3c-balcony.png"


@pytest.fixture
def open_task_with_offers(db_session, make_user, city, category):
    """An open task with a photo and pending offers from two taskers."""

    creator = make_user("Creator", wallet=10000)
    tasker = make_user("Tasker", tasker=True)
    rival = make_user("Rival", tasker=True)

    task = OpenTask(
        description="Clean the balcony",
        budget=Decimal("60.00"),
        duration=3,
        location_id=city.id,
        creator_id=creator.id,
        category_id=category.id,
        status=OpenTaskStatus.OPEN,
    )
    task.dates = [OpenTaskDate(date=today() + dt.timedelta(days=5), time="morning")]
    task.photos = [OpenTaskPhoto(photo_url=PHOTO)]
    db_session.add(task)
    db_session.flush()

    offers = []
    for bidder, rate in ((tasker, "15.00"), (rival, "12.00")):
        offer = OpenTaskOffer(
            task_id=task.id,
            tasker_id=bidder.id,
            description="Happy to help with this.",
            hourly_rate=Decimal(rate),
            duration=2,
            preferred_date=today() + dt.timedelta(days=5),
            preferred_time="morning",
        )
        db_session.add(offer)
        offers.append(offer)
    db_session.commit()
    return {"creator": creator, "tasker": tasker, "rival": rival, "task": task, "offers": offers}


async def _accept(client, auth_headers, ctx, offer_index=0):
    offer = ctx["offers"][offer_index]
    return await client.post(f"/api/open-tasks/offers/{offer.id}/accept", headers=auth_headers(ctx["creator"]))


@pytest.mark.anyio("asyncio")
async def test_accept_offer_creates_task_request(auth_headers, client, open_task_with_offers, db_session, category):
    ctx = open_task_with_offers

    response = await _accept(client, auth_headers, ctx)
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Waiting for Payment"
    assert body["is_open_task"] is True
    assert body["open_task_id"] == ctx["task"].id
    assert body["tasker"]["id"] == ctx["tasker"].id
    assert body["sender"]["id"] == ctx["creator"].id
    assert Decimal(body["hourly_rate"]) == Decimal("15.00")
    assert Decimal(body["total_amount"]) == Decimal("30.00")
    assert [item["id"] for item in body["categories"]] == [category.id]
    assert body["availability"] == [
        {"date": (today() + dt.timedelta(days=5)).isoformat(), "time_slot": "morning"}
    ]
    assert body["gallery"] == [PHOTO]

    db_session.expire_all()
    task = db_session.get(OpenTask, ctx["task"].id)
    assert task.status == OpenTaskStatus.ASSIGNED
    assert task.photos == []
    assert db_session.get(OpenTaskOffer, ctx["offers"][0].id).status == OfferStatus.ACCEPTED
    assert db_session.get(OpenTaskOffer, ctx["offers"][1].id).status == OfferStatus.REJECTED
    assert db_session.query(TaskRequest).filter_by(open_task_id=task.id).count() == 1


@pytest.mark.anyio("asyncio")
async def test_second_accept_is_rejected(auth_headers, client, open_task_with_offers, db_session):
    ctx = open_task_with_offers
    first = await _accept(client, auth_headers, ctx)
    assert first.status_code == 200

    second = await _accept(client, auth_headers, ctx, offer_index=1)
    assert second.status_code == 409
    assert second.json()["error"]["code"] == "OPEN_TASK_NOT_OPEN"
    assert db_session.query(TaskRequest).filter_by(open_task_id=ctx["task"].id).count() == 1


@pytest.mark.anyio("asyncio")
async def test_only_creator_can_accept(auth_headers, client, open_task_with_offers):
    ctx = open_task_with_offers
    offer = ctx["offers"][0]
    response = await client.post(f"/api/open-tasks/offers/{offer.id}/accept", headers=auth_headers(ctx["tasker"]))
    assert response.status_code == 403


@pytest.mark.anyio("asyncio")
async def test_decline_reverts_open_task(auth_headers, client, open_task_with_offers, db_session):
    ctx = open_task_with_offers
    accepted_offer_id, rival_offer_id = (offer.id for offer in ctx["offers"])
    task_id = ctx["task"].id
    accepted = await _accept(client, auth_headers, ctx)
    task_request_id = accepted.json()["id"]

    response = await client.put(
        f"/api/tasker/tasks/received/{task_request_id}/status",
        headers=auth_headers(ctx["tasker"]),
        json={"status": "Declined"},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["deleted"] is True
    assert body["open_task_id"] == task_id

    db_session.expunge_all()
    assert db_session.get(TaskRequest, task_request_id) is None
    assert db_session.query(TaskRequestGalleryImage).filter_by(task_request_id=task_request_id).count() == 0
    task = db_session.get(OpenTask, task_id)
    assert task.status == OpenTaskStatus.OPEN
    assert [photo.photo_url for photo in task.photos] == [PHOTO]
    assert db_session.get(OpenTaskOffer, accepted_offer_id) is None
    assert db_session.get(OpenTaskOffer, rival_offer_id).status == OfferStatus.PENDING


@pytest.mark.anyio("asyncio")
async def test_paid_cancel_refunds_and_reopens(auth_headers, client, open_task_with_offers, db_session):
    ctx = open_task_with_offers
    rival_offer_id = ctx["offers"][1].id
    accepted = await _accept(client, auth_headers, ctx)
    task_request_id = accepted.json()["id"]

    paid = await client.post(
        "/api/payments/create-checkout-session",
        headers=auth_headers(ctx["creator"]),
        json={"amount": "30.00", "task_id": task_request_id, "type": "Wallet"},
    )
    assert paid.status_code == 200

    response = await client.put(
        f"/api/tasker/tasks/received/{task_request_id}/status",
        headers=auth_headers(ctx["creator"]),
        json={"status": "Canceled by sender"},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "refunded"

    db_session.expire_all()
    assert db_session.get(TaskRequest, task_request_id).status == TaskRequestStatus.REFUNDED
    assert db_session.get(OpenTask, ctx["task"].id).status == OpenTaskStatus.OPEN
    assert db_session.get(User, ctx["creator"].id).wallet_amount == 10000
    assert db_session.get(OpenTaskOffer, rival_offer_id).status == OfferStatus.PENDING


@pytest.mark.anyio("asyncio")
async def test_completion_closes_open_task(auth_headers, client, open_task_with_offers, db_session):
    ctx = open_task_with_offers
    accepted = await _accept(client, auth_headers, ctx)
    task_request_id = accepted.json()["id"]
    await client.post(
        "/api/payments/create-checkout-session",
        headers=auth_headers(ctx["creator"]),
        json={"amount": "30.00", "task_id": task_request_id, "type": "Wallet"},
    )

    response = await client.put(
        f"/api/tasker/tasks/received/{task_request_id}/status",
        headers=auth_headers(ctx["creator"]),
        json={"status": "Completed"},
    )
    assert response.status_code == 200

    db_session.expire_all()
    assert db_session.get(OpenTask, ctx["task"].id).status == OpenTaskStatus.COMPLETED
    assert db_session.query(OpenTaskOffer).filter_by(task_id=ctx["task"].id).count() == 0
