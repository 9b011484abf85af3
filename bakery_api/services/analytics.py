"""
Sales analytics for the admin dashboard.

Revenue totals are plain SUM/COUNT aggregates. The 7-day trend is bucketed
in Python so the same code runs on PostgreSQL and SQLite.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bakery_api.core.clock import as_utc, utcnow
from bakery_api.models import Order, OrderStatus

TREND_DAYS = 7


@dataclass
class RevenueWindow:
    revenue: float = 0.0
    orders: int = 0


@dataclass
class DailyRevenue:
    day: str  # YYYY-MM-DD
    revenue: float


@dataclass
class AnalyticsSummary:
    total: RevenueWindow
    today: RevenueWindow
    trend: list[DailyRevenue] = field(default_factory=list)
    history: list[Order] = field(default_factory=list)


class SalesAnalytics:

    def __init__(self, db: AsyncSession, history_limit: int = 50):
        self.db = db
        self.history_limit = history_limit

    async def _window(self, since: Optional[datetime] = None) -> RevenueWindow:
        query = select(func.coalesce(func.sum(Order.total_amount), 0.0), func.count(Order.id))
        if since is not None:
            query = query.where(Order.created_at >= since)
        revenue, count = (await self.db.execute(query)).one()
        return RevenueWindow(revenue=round(float(revenue), 2), orders=int(count))

    async def _trend(self, since: datetime) -> list[DailyRevenue]:
        result = await self.db.execute(
            select(Order.created_at, Order.total_amount).where(Order.created_at >= since)
        )
        buckets: dict[str, float] = defaultdict(float)
        for created_at, amount in result.all():
            buckets[as_utc(created_at).date().isoformat()] += amount
        return [DailyRevenue(day=day, revenue=round(buckets[day], 2)) for day in sorted(buckets)]

    async def _delivered_history(self) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .options(selectinload(Order.user))
            .where(Order.status == OrderStatus.DELIVERED)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(self.history_limit)
        )
        return list(result.scalars().all())

    async def summary(self, now: Optional[datetime] = None) -> AnalyticsSummary:
        """Lifetime, same-day (UTC) and last-7-days figures plus recent deliveries."""
        now = (now or utcnow()).astimezone(timezone.utc)
        start_of_day = now.replace(hour=0, minute=0, second=0, microsecond=0)

        return AnalyticsSummary(
            total=await self._window(),
            today=await self._window(since=start_of_day),
            trend=await self._trend(since=start_of_day - timedelta(days=TREND_DAYS - 1)),
            history=await self._delivered_history(),
        )
