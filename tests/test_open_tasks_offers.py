import datetime as dt
import json
from decimal import Decimal

import pytest

from taskshare.models import OpenTask, OpenTaskDate, OpenTaskOffer, OpenTaskStatus
from taskshare.utils.time import today

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def make_open_task(db_session, city, category):
    def _factory(creator, *, budget="50.00", duration=3, dates=None, status=OpenTaskStatus.OPEN):
        task = OpenTask(
            description="Paint the living room",
            budget=Decimal(budget),
            duration=duration,
            location_id=city.id,
            creator_id=creator.id,
            category_id=category.id,
            status=status,
        )
        task.dates = [OpenTaskDate(date=day, time="morning") for day in (dates or [today()])]
        db_session.add(task)
        db_session.commit()
        db_session.refresh(task)
        return task

    return _factory


def _offer_payload(**overrides):
    payload = {
        "description": "I have painted many rooms.",
        "hourly_rate": "18.50",
        "duration": 3,
        "preferred_date": (today() + dt.timedelta(days=2)).isoformat(),
        "preferred_time": "afternoon",
    }
    payload.update(overrides)
    return payload


@pytest.mark.anyio("asyncio")
async def test_create_open_task_with_dates_and_photos(auth_headers, client, make_user, city, category):
    creator = make_user("Creator")
    dates = [{"date": (today() + dt.timedelta(days=1)).isoformat(), "time": "evening"}]

    response = await client.post(
        "/api/open-tasks",
        headers=auth_headers(creator),
        data={
            "description": "Assemble two shelves",
            "budget": "40.00",
            "duration": "2",
            "location": str(city.id),
            "category": str(category.id),
            "dates": json.dumps(dates),
        },
        files=[("photos", ("shelf.png", PNG_BYTES, "image/png"))],
    )
    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "open"
    assert body["location"]["id"] == city.id
    assert body["category"]["id"] == category.id
    assert [item["time"] for item in body["dates"]] == ["evening"]
    assert len(body["photos"]) == 1
    assert body["photos"][0].startswith("images/tasks/")


@pytest.mark.anyio("asyncio")
async def test_create_open_task_rejects_malformed_dates(auth_headers, client, make_user, city, category):
    creator = make_user("Creator")
    response = await client.post(
        "/api/open-tasks",
        headers=auth_headers(creator),
        data={
            "description": "Assemble two shelves",
            "budget": "40.00",
            "duration": "2",
            "location": str(city.id),
            "category": str(category.id),
            "dates": "not json",
        },
    )
    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.anyio("asyncio")
async def test_list_open_tasks_filters(client, make_user, make_open_task):
    creator = make_user("Creator")
    other = make_user("Other")
    cheap = make_open_task(creator, budget="20.00", duration=1)
    pricey = make_open_task(creator, budget="90.00", duration=4)
    mine = make_open_task(other, budget="50.00")
    make_open_task(creator, status=OpenTaskStatus.ASSIGNED)

    everything = await client.get("/api/open-tasks")
    assert [item["id"] for item in everything.json()] == [mine.id, pricey.id, cheap.id]

    by_budget = await client.get("/api/open-tasks", params={"minBudget": "30", "maxBudget": "60"})
    assert [item["id"] for item in by_budget.json()] == [mine.id]

    excluded = await client.get("/api/open-tasks", params={"excludeUserId": other.id, "duration": 4})
    assert [item["id"] for item in excluded.json()] == [pricey.id]

    by_date = await client.get(
        "/api/open-tasks", params={"date": (today() + dt.timedelta(days=9)).isoformat()}
    )
    assert by_date.json() == []


@pytest.mark.anyio("asyncio")
async def test_get_and_delete_open_task(auth_headers, client, make_user, make_open_task):
    creator = make_user("Creator")
    stranger = make_user("Stranger")
    task = make_open_task(creator)

    fetched = await client.get(f"/api/open-tasks/{task.id}")
    assert fetched.status_code == 200
    dates = await client.get(f"/api/open-tasks/{task.id}/dates")
    assert len(dates.json()) == 1

    forbidden = await client.delete(f"/api/open-tasks/{task.id}", headers=auth_headers(stranger))
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/open-tasks/{task.id}", headers=auth_headers(creator))
    assert deleted.status_code == 200
    missing = await client.get(f"/api/open-tasks/{task.id}")
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "OPEN_TASK_NOT_FOUND"


@pytest.mark.anyio("asyncio")
async def test_tasker_makes_single_offer(auth_headers, client, make_user, make_open_task, db_session):
    creator = make_user("Creator")
    tasker = make_user("Tasker", tasker=True)
    task = make_open_task(creator)

    created = await client.post(f"/api/open-tasks/{task.id}/offers", headers=auth_headers(tasker), json=_offer_payload())
    assert created.status_code == 201
    assert created.json()["status"] == "pending"

    duplicate = await client.post(
        f"/api/open-tasks/{task.id}/offers", headers=auth_headers(tasker), json=_offer_payload()
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "OFFER_EXISTS"
    assert db_session.query(OpenTaskOffer).filter_by(task_id=task.id).count() == 1


@pytest.mark.anyio("asyncio")
async def test_offer_requires_tasker_profile(auth_headers, client, make_user, make_open_task):
    creator = make_user("Creator")
    customer = make_user("Customer")
    task = make_open_task(creator)

    response = await client.post(
        f"/api/open-tasks/{task.id}/offers", headers=auth_headers(customer), json=_offer_payload()
    )
    assert response.status_code == 403
    assert response.json()["error"]["code"] == "TASKER_PROFILE_REQUIRED"


@pytest.mark.anyio("asyncio")
async def test_creator_cannot_bid_on_own_task(auth_headers, client, make_user, make_open_task):
    creator = make_user("Creator", tasker=True)
    task = make_open_task(creator)

    response = await client.post(f"/api/open-tasks/{task.id}/offers", headers=auth_headers(creator), json=_offer_payload())
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "OWN_TASK"


@pytest.mark.anyio("asyncio")
async def test_offer_visibility(auth_headers, client, make_user, make_open_task):
    creator = make_user("Creator")
    tasker = make_user("Tasker", tasker=True)
    rival = make_user("Rival", tasker=True)
    task = make_open_task(creator)
    offer = await client.post(f"/api/open-tasks/{task.id}/offers", headers=auth_headers(tasker), json=_offer_payload())
    offer_id = offer.json()["id"]

    listed = await client.get(f"/api/open-tasks/{task.id}/offers", headers=auth_headers(creator))
    assert [item["id"] for item in listed.json()] == [offer_id]
    not_creator = await client.get(f"/api/open-tasks/{task.id}/offers", headers=auth_headers(tasker))
    assert not_creator.status_code == 403

    own = await client.get(f"/api/open-tasks/offers/{offer_id}", headers=auth_headers(tasker))
    assert own.status_code == 200
    other = await client.get(f"/api/open-tasks/offers/{offer_id}", headers=auth_headers(rival))
    assert other.status_code == 403
    assert other.json()["error"]["code"] == "OFFER_FORBIDDEN"


@pytest.mark.anyio("asyncio")
async def test_expired_dates_sweep_requires_admin(auth_headers, client, make_user, make_open_task, db_session):
    creator = make_user("Creator")
    admin = make_user("Admin", admin=True)
    task = make_open_task(creator, dates=[today() - dt.timedelta(days=3), today() + dt.timedelta(days=3)])

    denied = await client.delete("/api/open-tasks/dates/expired", headers=auth_headers(creator))
    assert denied.status_code == 403

    swept = await client.delete("/api/open-tasks/dates/expired", headers=auth_headers(admin))
    assert swept.status_code == 200
    assert swept.json() == {"removed": 1}
    assert db_session.query(OpenTaskDate).filter_by(open_task_id=task.id).count() == 1
