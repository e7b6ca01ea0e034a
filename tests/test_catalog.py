from decimal import Decimal

import pytest

from taskshare.models import City, OpenTask
from taskshare.services.catalog import DEFAULT_CATEGORIES, DEFAULT_CITIES, seed_categories


@pytest.mark.anyio("asyncio")
async def test_admin_manages_categories(auth_headers, client, make_user):
    admin = make_user("Admin", admin=True)

    created = await client.post(
        "/api/categories", headers=auth_headers(admin), json={"name": "Plumbing", "description": "Pipes and taps"}
    )
    assert created.status_code == 201
    category_id = created.json()["id"]

    duplicate = await client.post("/api/categories", headers=auth_headers(admin), json={"name": "Plumbing"})
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["code"] == "CATEGORY_EXISTS"

    updated = await client.put(
        f"/api/categories/{category_id}", headers=auth_headers(admin), json={"description": "Leaks fixed"}
    )
    assert updated.json()["description"] == "Leaks fixed"

    fetched = await client.get(f"/api/categories/{category_id}")
    assert fetched.json()["name"] == "Plumbing"

    deleted = await client.delete(f"/api/categories/{category_id}", headers=auth_headers(admin))
    assert deleted.status_code == 200
    missing = await client.get(f"/api/categories/{category_id}")
    assert missing.status_code == 404


@pytest.mark.anyio("asyncio")
async def test_category_changes_require_admin(auth_headers, client, make_user):
    user = make_user("Plain")
    response = await client.post("/api/categories", headers=auth_headers(user), json={"name": "Hacking"})
    assert response.status_code == 403


@pytest.mark.anyio("asyncio")
async def test_category_in_use_cannot_be_deleted(auth_headers, client, make_user, db_session, city, category):
    admin = make_user("Admin", admin=True)
    db_session.add(
        OpenTask(
            description="Fix the sink",
            budget=Decimal("30.00"),
            duration=1,
            location_id=city.id,
            creator_id=admin.id,
            category_id=category.id,
        )
    )
    db_session.commit()

    response = await client.delete(f"/api/categories/{category.id}", headers=auth_headers(admin))
    assert response.status_code == 409
    assert response.json()["error"]["code"] == "CATEGORY_IN_USE"


@pytest.mark.anyio("asyncio")
async def test_reset_cities_restores_default_list(auth_headers, client, make_user, db_session):
    admin = make_user("Admin", admin=True)
    db_session.add_all([City(name="Berlin"), City(name="Atlantis")])
    db_session.commit()
    berlin_id = db_session.query(City).filter_by(name="Berlin").one().id

    response = await client.post("/api/cities/reset", headers=auth_headers(admin))
    assert response.status_code == 200
    names = [item["name"] for item in response.json()]
    assert sorted(names) == sorted(DEFAULT_CITIES)
    assert "Atlantis" not in names
    assert next(item["id"] for item in response.json() if item["name"] == "Berlin") == berlin_id

    listed = await client.get("/api/cities")
    assert len(listed.json()) == len(DEFAULT_CITIES)


def test_seed_categories_is_idempotent(db_session):
    assert seed_categories(db_session) == len(DEFAULT_CATEGORIES)
    assert seed_categories(db_session) == 0
