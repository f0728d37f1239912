"""API tests for dining table management"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_manager_adds_updates_and_removes_table(client: AsyncClient, bistro, manager_headers):
    restaurant_id = bistro.id

    created = await client.post(
        "/api/tables",
        json={"restaurant_id": restaurant_id, "table_number": "T2", "capacity": 6},
        headers=manager_headers,
    )
    assert created.status_code == 201
    table = created.json()
    assert table["restaurant_id"] == restaurant_id

    updated = await client.put(
        f"/api/tables/{table['id']}",
        json={"table_number": "Terrace", "capacity": 8},
        headers=manager_headers,
    )
    assert updated.status_code == 200
    assert updated.json()["table_number"] == "Terrace"
    assert updated.json()["capacity"] == 8

    deleted = await client.delete(f"/api/tables/{table['id']}", headers=manager_headers)
    assert deleted.status_code == 200

    tables = await client.get(f"/api/restaurants/{restaurant_id}/tables", headers=manager_headers)
    assert [t["table_number"] for t in tables.json()] == ["T1"]


@pytest.mark.asyncio
async def test_duplicate_table_number_is_rejected(client: AsyncClient, bistro, manager_headers):
    response = await client.post(
        "/api/tables",
        json={"restaurant_id": bistro.id, "table_number": "T1", "capacity": 2},
        headers=manager_headers,
    )

    assert response.status_code == 400
    assert response.json()["error"] == "validation_error"


@pytest.mark.asyncio
async def test_other_manager_cannot_change_tables(client: AsyncClient, bistro, bistro_table, other_manager_headers):
    table_id = bistro_table.id

    create = await client.post(
        "/api/tables",
        json={"restaurant_id": bistro.id, "table_number": "X", "capacity": 2},
        headers=other_manager_headers,
    )
    update = await client.put(
        f"/api/tables/{table_id}",
        json={"table_number": "X", "capacity": 2},
        headers=other_manager_headers,
    )
    delete = await client.delete(f"/api/tables/{table_id}", headers=other_manager_headers)

    assert create.status_code == 403
    assert update.status_code == 403
    assert delete.status_code == 403


@pytest.mark.asyncio
async def test_capacity_bounds(client: AsyncClient, bistro, manager_headers):
    response = await client.post(
        "/api/tables",
        json={"restaurant_id": bistro.id, "table_number": "Huge", "capacity": 0},
        headers=manager_headers,
    )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_missing_table(client: AsyncClient, manager_headers):
    response = await client.delete("/api/tables/12345", headers=manager_headers)

    assert response.status_code == 404
