#!/usr/bin/env python3
"""
Seed script to create demo users, an approved restaurant, its hours and tables
"""

import asyncio
from datetime import time


async def seed_demo_data():
    """Seed demo data for development"""
    from sqlalchemy import select

    from tablebook.api.auth import hash_password
    from tablebook.database import SessionLocal, engine, Base
    from tablebook.models import DAY_NAMES, OperatingHours, Restaurant, RestaurantTable, User, UserRole

    # Create tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with SessionLocal() as db:
        # Check if demo restaurant already exists
        existing = await db.scalar(
            select(Restaurant).where(Restaurant.name == "Mario's Italian Kitchen")
        )

        if existing:
            print("Demo data already exists. Skipping...")
            return

        print("Creating demo users...")

        admin_user = User(
            email="admin@tablebook.local",
            hashed_password=hash_password("admin123"),
            first_name="System",
            last_name="Admin",
            role=UserRole.ADMIN,
        )
        manager = User(
            email="mario@marios-kitchen.com",
            hashed_password=hash_password("mario123"),
            first_name="Mario",
            last_name="Rossi",
            phone="+15559876543",
            role=UserRole.RESTAURANT_MANAGER,
        )
        customer = User(
            email="guest@example.com",
            hashed_password=hash_password("guest123"),
            first_name="Grace",
            last_name="Guest",
            phone="+15551234567",
            role=UserRole.CUSTOMER,
        )
        db.add_all([admin_user, manager, customer])
        await db.flush()

        print("Creating demo restaurant...")

        restaurant = Restaurant(
            manager_id=manager.id,
            name="Mario's Italian Kitchen",
            description="Wood-fired pizza and fresh pasta",
            cuisine_type="Italian",
            address_line1="123 Main Street",
            city="New York",
            state="NY",
            zip_code="10001",
            phone="+15559876543",
            email="mario@marios-kitchen.com",
            cost_rating=2,
            is_approved=True,
        )
        db.add(restaurant)
        await db.flush()

        hours = {
            "Friday": (time(11, 0), time(23, 0)),
            "Saturday": (time(12, 0), time(23, 0)),
            "Sunday": (time(12, 0), time(21, 0)),
        }
        for day in DAY_NAMES:
            opening, closing = hours.get(day, (time(11, 0), time(22, 0)))
            db.add(
                OperatingHours(
                    restaurant_id=restaurant.id,
                    day_of_week=day,
                    opening_time=opening,
                    closing_time=closing,
                )
            )

        tables = [("1", 2), ("2", 2), ("3", 4), ("4", 4), ("5", 6), ("6", 8)]
        for table_number, capacity in tables:
            db.add(
                RestaurantTable(
                    restaurant_id=restaurant.id,
                    table_number=table_number,
                    capacity=capacity,
                )
            )

        await db.commit()

        print(f"""
Demo data created successfully!

Restaurant: Mario's Italian Kitchen
  ID: {restaurant.id}
  Tables: {len(tables)}

Users:
  Admin:
    Email: admin@tablebook.local
    Password: admin123

  Restaurant Manager:
    Email: mario@marios-kitchen.com
    Password: mario123

  Customer:
    Email: guest@example.com
    Password: guest123
""")


if __name__ == "__main__":
    asyncio.run(seed_demo_data())
