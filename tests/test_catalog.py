"""
Tests for menu management and sales analytics.
"""
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import func, select

from bakery_api.core.exceptions import ProductNotFound
from bakery_api.models import Order, OrderStatus, Product, UserRole
from bakery_api.services.analytics import SalesAnalytics
from bakery_api.services.catalog import CatalogService

NOW = datetime(2026, 1, 15, 12, 0, tzinfo=timezone.utc)

PUFF = {"name": "Veg Puff", "price": 25.0, "category": "Snacks", "image": "🥟"}
CAKE = {"name": "Black Forest", "price": 450.0, "category": "Cake", "image": "🎂",
        "description": "Half kg"}


@pytest.fixture
def catalog(db):
    return CatalogService(db)


class TestCatalog:

    async def test_add_and_list(self, catalog):
        puff = await catalog.add_item(PUFF)
        cake = await catalog.add_item(CAKE)

        items = await catalog.list_items()

        # Grouped by category
        assert [p.id for p in items] == [cake.id, puff.id]
        assert puff.is_available
        assert cake.description == "Half kg"

    async def test_bulk_add(self, db, catalog):
        added = await catalog.add_items([PUFF, CAKE])

        assert len(added) == 2
        assert all(p.id is not None for p in added)
        assert (await db.execute(select(func.count(Product.id)))).scalar_one() == 2

    async def test_toggle_flips_availability(self, catalog):
        puff = await catalog.add_item(PUFF)

        assert not (await catalog.toggle_availability(puff.id)).is_available
        assert (await catalog.toggle_availability(puff.id)).is_available

    async def test_out_of_stock_items_stay_listed(self, catalog):
        puff = await catalog.add_item(PUFF)
        await catalog.toggle_availability(puff.id)

        items = await catalog.list_items()
        assert len(items) == 1
        assert not items[0].is_available

    async def test_remove(self, catalog):
        puff = await catalog.add_item(PUFF)
        await catalog.remove_item(puff.id)
        assert await catalog.list_items() == []

    async def test_missing_product(self, catalog):
        with pytest.raises(ProductNotFound):
            await catalog.remove_item(404)
        with pytest.raises(ProductNotFound):
            await catalog.toggle_availability(404)


async def add_order(db, user_id, total, status, created_at):
    order = Order(
        user_id=user_id,
        items=[{"name": "Item", "price": total, "quantity": 1}],
        total_amount=total,
        address="Default Address",
        table_no="",
        status=status,
        created_at=created_at,
    )
    db.add(order)
    await db.commit()
    await db.refresh(order)
    return order


class TestSalesAnalytics:

    @pytest.fixture
    async def seeded(self, db, create_user):
        user = await create_user(email="c@x.com", role=UserRole.CUSTOMER, name="Ravi")
        return {
            "today_delivered": await add_order(
                db, user.id, 100.0, OrderStatus.DELIVERED, NOW - timedelta(hours=2)),
            "today_placed": await add_order(
                db, user.id, 50.0, OrderStatus.PLACED, NOW - timedelta(hours=4)),
            "recent_delivered": await add_order(
                db, user.id, 200.0, OrderStatus.DELIVERED, NOW - timedelta(days=3)),
            "old_cancelled": await add_order(
                db, user.id, 400.0, OrderStatus.CANCELLED, NOW - timedelta(days=10)),
        }

    async def test_lifetime_totals(self, session_maker, seeded):
        async with session_maker() as session:
            summary = await SalesAnalytics(session).summary(now=NOW)

        assert summary.total.revenue == 750.0
        assert summary.total.orders == 4

    async def test_today_starts_at_utc_midnight(self, session_maker, seeded):
        async with session_maker() as session:
            summary = await SalesAnalytics(session).summary(now=NOW)

        assert summary.today.revenue == 150.0
        assert summary.today.orders == 2

    async def test_trend_covers_last_seven_days(self, session_maker, seeded):
        async with session_maker() as session:
            summary = await SalesAnalytics(session).summary(now=NOW)

        assert [(p.day, p.revenue) for p in summary.trend] == [
            ("2026-01-12", 200.0),
            ("2026-01-15", 150.0),
        ]

    async def test_history_is_delivered_only(self, session_maker, seeded):
        async with session_maker() as session:
            summary = await SalesAnalytics(session).summary(now=NOW)

        assert [o.id for o in summary.history] == [
            seeded["today_delivered"].id,
            seeded["recent_delivered"].id,
        ]
        assert summary.history[0].user.name == "Ravi"

    async def test_history_limit(self, session_maker, seeded):
        async with session_maker() as session:
            summary = await SalesAnalytics(session, history_limit=1).summary(now=NOW)
        assert len(summary.history) == 1

    async def test_empty_store(self, db):
        summary = await SalesAnalytics(db).summary(now=NOW)

        assert summary.total.revenue == 0.0
        assert summary.total.orders == 0
        assert summary.today.orders == 0
        assert summary.trend == []
        assert summary.history == []
