"""API tests for restaurant listing, management and reviews"""

import pytest
from httpx import AsyncClient


NEW_RESTAURANT = {
    "name": "Noodle Bar",
    "cuisine_type": "Japanese",
    "city": "Osaka",
    "zip_code": "530-0001",
    "cost_rating": 1,
    "operating_hours": [
        {"day_of_week": "Monday", "opening_time": "11:00", "closing_time": "15:00"},
        {"day_of_week": "Friday", "opening_time": "17:00", "closing_time": "23:00"},
    ],
}


@pytest.mark.asyncio
async def test_create_approve_and_list(client: AsyncClient, bistro, manager_headers, admin_headers, notifier):
    created = await client.post("/api/restaurants", json=NEW_RESTAURANT, headers=manager_headers)
    assert created.status_code == 201
    restaurant = created.json()
    assert restaurant["is_approved"] is False

    # Hidden until approved
    listing = await client.get("/api/restaurants")
    assert [r["name"] for r in listing.json()] == ["Bistro"]

    pending = await client.get("/api/restaurants/pending", headers=admin_headers)
    assert [r["id"] for r in pending.json()] == [restaurant["id"]]

    approved = await client.put(f"/api/restaurants/{restaurant['id']}/approve", headers=admin_headers)
    assert approved.status_code == 200
    assert approved.json()["is_approved"] is True
    assert notifier.approvals == [restaurant["id"]]

    listing = await client.get("/api/restaurants")
    assert [r["name"] for r in listing.json()] == ["Bistro", "Noodle Bar"]


@pytest.mark.asyncio
async def test_only_admin_approves(client: AsyncClient, bistro, manager_headers):
    response = await client.put(f"/api/restaurants/{bistro.id}/approve", headers=manager_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_customers_cannot_create_restaurants(client: AsyncClient, customer_headers):
    response = await client.post("/api/restaurants", json=NEW_RESTAURANT, headers=customer_headers)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_operating_hours_are_validated(client: AsyncClient, manager_headers):
    duplicate_day = {
        **NEW_RESTAURANT,
        "operating_hours": [
            {"day_of_week": "Monday", "opening_time": "11:00", "closing_time": "15:00"},
            {"day_of_week": "Monday", "opening_time": "17:00", "closing_time": "23:00"},
        ],
    }
    inverted = {
        **NEW_RESTAURANT,
        "operating_hours": [
            {"day_of_week": "Monday", "opening_time": "23:00", "closing_time": "01:00"},
        ],
    }

    assert (await client.post("/api/restaurants", json=duplicate_day, headers=manager_headers)).status_code == 422
    assert (await client.post("/api/restaurants", json=inverted, headers=manager_headers)).status_code == 422


@pytest.mark.asyncio
async def test_restaurant_detail(client: AsyncClient, bistro, customer_headers):
    restaurant_id = bistro.id
    await client.post(
        f"/api/restaurants/{restaurant_id}/reviews",
        json={"rating": 4, "comment": "Lovely"},
        headers=customer_headers,
    )

    response = await client.get(f"/api/restaurants/{restaurant_id}")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "Bistro"
    assert data["operating_hours"] == [
        {"day_of_week": "Monday", "opening_time": "09:00:00", "closing_time": "22:00:00"}
    ]
    assert [t["table_number"] for t in data["tables"]] == ["T1"]
    assert data["reviews_count"] == 1
    assert data["average_rating"] == 4.0
    assert data["reviews"][0]["comment"] == "Lovely"


@pytest.mark.asyncio
async def test_unknown_restaurant(client: AsyncClient):
    response = await client.get("/api/restaurants/404")

    assert response.status_code == 404
    assert response.json() == {"error": "not_found", "message": "Restaurant not found"}


@pytest.mark.asyncio
async def test_update_replaces_operating_hours(client: AsyncClient, bistro, manager_headers, other_manager_headers):
    restaurant_id = bistro.id
    update = {
        "description": "Now serving brunch",
        "operating_hours": [
            {"day_of_week": "Saturday", "opening_time": "10:00", "closing_time": "16:00"},
        ],
    }

    forbidden = await client.put(f"/api/restaurants/{restaurant_id}", json=update, headers=other_manager_headers)
    assert forbidden.status_code == 403

    response = await client.put(f"/api/restaurants/{restaurant_id}", json=update, headers=manager_headers)
    assert response.status_code == 200
    assert response.json()["description"] == "Now serving brunch"
    assert response.json()["name"] == "Bistro"

    detail = await client.get(f"/api/restaurants/{restaurant_id}")
    assert [h["day_of_week"] for h in detail.json()["operating_hours"]] == ["Saturday"]


@pytest.mark.asyncio
async def test_update_rejects_null_name(client: AsyncClient, bistro, manager_headers):
    restaurant_id = bistro.id

    response = await client.put(
        f"/api/restaurants/{restaurant_id}", json={"name": None}, headers=manager_headers
    )
    assert response.status_code == 422

    detail = await client.get(f"/api/restaurants/{restaurant_id}")
    assert detail.json()["name"] == "Bistro"


@pytest.mark.asyncio
async def test_search_endpoint(client: AsyncClient, bistro):
    available = await client.get(
        "/api/restaurants/search",
        params={"date": "2025-06-02", "time": "19:00", "party_size": 4, "location": "LYON"},
    )
    too_big = await client.get(
        "/api/restaurants/search",
        params={"date": "2025-06-02", "time": "19:00", "party_size": 5},
    )

    assert [r["name"] for r in available.json()] == ["Bistro"]
    assert available.json()[0]["available_times"] == ["09:00"]
    assert too_big.json() == []


@pytest.mark.asyncio
async def test_manager_lists_own_restaurants_and_tables(client: AsyncClient, bistro, manager_headers, other_manager_headers):
    restaurant_id = bistro.id

    mine = await client.get("/api/restaurants/manager/list", headers=manager_headers)
    theirs = await client.get("/api/restaurants/manager/list", headers=other_manager_headers)
    tables = await client.get(f"/api/restaurants/{restaurant_id}/tables", headers=manager_headers)
    foreign_tables = await client.get(f"/api/restaurants/{restaurant_id}/tables", headers=other_manager_headers)

    assert [r["id"] for r in mine.json()] == [restaurant_id]
    assert theirs.json() == []
    assert [t["capacity"] for t in tables.json()] == [4]
    assert foreign_tables.status_code == 403


@pytest.mark.asyncio
async def test_reviews(client: AsyncClient, bistro, customer_headers, manager_headers):
    restaurant_id = bistro.id

    created = await client.post(
        f"/api/restaurants/{restaurant_id}/reviews", json={"rating": 5}, headers=customer_headers
    )
    out_of_range = await client.post(
        f"/api/restaurants/{restaurant_id}/reviews", json={"rating": 6}, headers=customer_headers
    )
    by_manager = await client.post(
        f"/api/restaurants/{restaurant_id}/reviews", json={"rating": 1}, headers=manager_headers
    )
    listing = await client.get(f"/api/restaurants/{restaurant_id}/reviews")

    assert created.status_code == 201
    assert out_of_range.status_code == 422
    assert by_manager.status_code == 403
    assert [r["rating"] for r in listing.json()] == [5]


@pytest.mark.asyncio
async def test_admin_deletes_restaurant(client: AsyncClient, bistro, customer_headers, manager_headers, admin_headers):
    restaurant_id = bistro.id
    await client.post(
        "/api/reservations",
        json={
            "restaurant_id": restaurant_id,
            "reservation_date": "2025-06-02",
            "reservation_time": "19:00",
            "party_size": 2,
        },
        headers=customer_headers,
    )

    forbidden = await client.delete(f"/api/restaurants/{restaurant_id}", headers=manager_headers)
    assert forbidden.status_code == 403

    deleted = await client.delete(f"/api/restaurants/{restaurant_id}", headers=admin_headers)
    assert deleted.status_code == 200

    assert (await client.get(f"/api/restaurants/{restaurant_id}")).status_code == 404
    assert (await client.get("/api/reservations/me", headers=customer_headers)).json() == []
