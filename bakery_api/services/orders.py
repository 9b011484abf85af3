"""
Order Ledger and Status Machine

Orders are created once by the customer in ``Order Placed`` and only admins
move them afterwards. Transitions are deliberately unconstrained: any of
the five statuses may be set from any other, so the kitchen can correct a
mis-click (e.g. reopen a ``Delivered`` order back to ``Preparing``). Only
existence and membership in ``OrderStatus`` are checked.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from bakery_api.core.exceptions import InvalidOrder, InvalidStatus, OrderNotFound
from bakery_api.models import Order, OrderStatus, TERMINAL_STATUSES

logger = logging.getLogger(__name__)

# Rounding slack when comparing the client's total with the item sum
TOTAL_TOLERANCE = 0.01


@dataclass(frozen=True)
class LineItem:
    """One cart line, snapshotted into the order."""
    name: str
    price: float
    quantity: int
    product_id: Optional[int] = None
    image: Optional[str] = None

    @property
    def subtotal(self) -> float:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            "product_id": self.product_id,
            "name": self.name,
            "price": self.price,
            "quantity": self.quantity,
            "image": self.image,
        }


def parse_status(value: str) -> OrderStatus:
    """Map a wire value (``"Out for Delivery"``) to ``OrderStatus``."""
    try:
        return OrderStatus(value)
    except ValueError:
        valid = [s.value for s in OrderStatus]
        raise InvalidStatus(f"Invalid Status Value. Options: {valid}")


def is_terminal(status: OrderStatus) -> bool:
    return status in TERMINAL_STATUSES


class OrderService:
    """Places orders and applies admin status changes."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def place(
        self,
        user_id: Optional[int],
        items: Sequence[LineItem],
        total_amount: float,
        address: str,
        table_no: str = "",
    ) -> Order:
        """
        Create an order in ``Order Placed``.

        Availability is not re-checked here: it only affects browsing.

        Raises:
            InvalidOrder: empty cart, non-positive quantity/price/total, or a
                total that does not match the items
        """
        if not items:
            raise InvalidOrder("Cart is empty")
        for item in items:
            if item.quantity < 1:
                raise InvalidOrder(f"Quantity for {item.name} must be at least 1")
            if item.price <= 0:
                raise InvalidOrder(f"Price for {item.name} must be positive")
        if total_amount <= 0:
            raise InvalidOrder("Total amount must be positive")

        expected = sum(item.subtotal for item in items)
        if abs(expected - total_amount) > TOTAL_TOLERANCE:
            raise InvalidOrder(
                f"Total amount {total_amount:.2f} does not match items ({expected:.2f})"
            )

        order = Order(
            user_id=user_id,
            items=[item.to_dict() for item in items],
            total_amount=round(total_amount, 2),
            address=address,
            table_no=table_no or "",
            status=OrderStatus.PLACED,
        )
        self.db.add(order)
        await self.db.commit()
        await self.db.refresh(order)

        logger.info(f"Order #{order.id} placed by user #{user_id} ({order.total_amount:.2f})")
        return order

    async def transition(self, order_id: int, new_status: str) -> Order:
        """
        Set an order's status.

        Raises:
            OrderNotFound: no such order (checked before the status value)
            InvalidStatus: ``new_status`` is not one of the five statuses
        """
        order = await self.db.get(Order, order_id)
        if order is None:
            raise OrderNotFound(f"Order #{order_id} not found")

        status = parse_status(new_status)
        previous = order.status
        order.status = status
        await self.db.commit()
        await self.db.refresh(order)

        logger.info(f"Order #{order.id}: {previous.value} -> {status.value}")
        return order

    async def list_for_user(self, user_id: int) -> list[Order]:
        """A customer's orders, newest first."""
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == user_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        return list(result.scalars().all())

    async def list_all(self, statuses: Optional[Iterable[OrderStatus]] = None) -> list[Order]:
        """Every order (optionally filtered), newest first, with the placing user loaded."""
        query = (
            select(Order)
            .options(selectinload(Order.user))
            .order_by(Order.created_at.desc(), Order.id.desc())
        )
        if statuses is not None:
            query = query.where(Order.status.in_(list(statuses)))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def active_orders(self) -> list[Order]:
        """Orders still on the kitchen board."""
        return await self.list_all(
            statuses=[s for s in OrderStatus if not is_terminal(s)]
        )
