"""Dining table management API endpoints"""

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from tablebook.database import get_db
from tablebook.errors import NotFoundError, ValidationError
from tablebook.models.restaurant import RestaurantTable
from tablebook.models.user import UserRole
from tablebook.schemas.table import TableCreate, TableUpdate, TableResponse
from tablebook.services.lifecycle import Identity
from tablebook.api.auth import require_role
from tablebook.api.restaurants import get_restaurant_or_404, verify_restaurant_access

router = APIRouter()
logger = structlog.get_logger()


async def get_table_or_404(db: AsyncSession, table_id: int) -> RestaurantTable:
    table = await db.scalar(select(RestaurantTable).where(RestaurantTable.id == table_id))
    if table is None:
        raise NotFoundError("Table not found")
    return table


async def _commit_table(db: AsyncSession, table: RestaurantTable) -> None:
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ValidationError("Table number already exists for this restaurant")
    await db.refresh(table)


@router.post("", response_model=TableResponse, status_code=status.HTTP_201_CREATED)
async def create_table(
    table_data: TableCreate,
    actor: Identity = Depends(require_role(UserRole.RESTAURANT_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Add a table to a restaurant"""
    restaurant = await get_restaurant_or_404(db, table_data.restaurant_id)
    verify_restaurant_access(restaurant, actor)

    table = RestaurantTable(
        restaurant_id=table_data.restaurant_id,
        table_number=table_data.table_number,
        capacity=table_data.capacity,
    )
    db.add(table)
    await _commit_table(db, table)

    logger.info("Table created", table_id=table.id, restaurant_id=table.restaurant_id)
    return table


@router.put("/{table_id}", response_model=TableResponse)
async def update_table(
    table_id: int,
    table_data: TableUpdate,
    actor: Identity = Depends(require_role(UserRole.RESTAURANT_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Rename or resize a table"""
    table = await get_table_or_404(db, table_id)
    restaurant = await get_restaurant_or_404(db, table.restaurant_id)
    verify_restaurant_access(restaurant, actor)

    table.table_number = table_data.table_number
    table.capacity = table_data.capacity
    await _commit_table(db, table)

    return table


@router.delete("/{table_id}")
async def delete_table(
    table_id: int,
    actor: Identity = Depends(require_role(UserRole.RESTAURANT_MANAGER)),
    db: AsyncSession = Depends(get_db),
):
    """Remove a table together with its reservations"""
    table = await get_table_or_404(db, table_id)
    restaurant = await get_restaurant_or_404(db, table.restaurant_id)
    verify_restaurant_access(restaurant, actor)

    await db.delete(table)
    await db.commit()

    logger.info("Table deleted", table_id=table_id, restaurant_id=restaurant.id)
    return {"message": "Table deleted successfully"}
