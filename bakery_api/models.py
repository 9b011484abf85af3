"""
SQLAlchemy Database Models

Three tables back the platform:
- users: credential records, including the pending signup OTP
- products: the menu catalog
- orders: the order ledger with kitchen status
"""

import enum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from bakery_api.core.clock import utcnow
from bakery_api.database import Base


class UserRole(str, enum.Enum):
    """Who is signing in: a hungry customer or the store owner."""
    CUSTOMER = "customer"
    ADMIN = "admin"


class OrderStatus(str, enum.Enum):
    """
    Kitchen status of an order.

    The happy path is PLACED -> PREPARING -> OUT_FOR_DELIVERY -> DELIVERED,
    with CANCELLED reachable from anywhere. Admins may set any value
    directly (to undo mis-clicks on the kitchen board).
    """
    PLACED = "Order Placed"
    PREPARING = "Preparing"
    OUT_FOR_DELIVERY = "Out for Delivery"
    DELIVERED = "Delivered"
    CANCELLED = "Cancelled"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})


class User(Base):
    """
    Credential record.

    A row is created unverified on signup and carries the pending OTP until
    the code is consumed. ``otp_code`` and ``otp_expires_at`` are always set
    or cleared together.
    """
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # =========================================================================
    # IDENTITY
    # =========================================================================
    name = Column(String(50), nullable=False)
    email = Column(String(100), nullable=False, unique=True, index=True)
    phone = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    role = Column(
        Enum(UserRole, values_callable=lambda e: [m.value for m in e]),
        default=UserRole.CUSTOMER,
        nullable=False,
    )

    # =========================================================================
    # VERIFICATION
    # =========================================================================
    is_verified = Column(Boolean, default=False, nullable=False)
    otp_code = Column(String(6), nullable=True)
    otp_expires_at = Column(DateTime(timezone=True), nullable=True)

    # =========================================================================
    # TIMESTAMPS
    # =========================================================================
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    def __repr__(self):
        state = "verified" if self.is_verified else "pending"
        return f"<User #{self.id} - {self.email} - {state}>"


class Product(Base):
    """Menu item. Availability is advisory and only affects browsing."""
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("price > 0", name="ck_products_price_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    price = Column(Float, nullable=False)
    category = Column(String(50), nullable=False, index=True)
    image = Column(String(500), nullable=False)  # URL or emoji
    description = Column(Text, nullable=True)
    is_available = Column(Boolean, default=True, nullable=False)

    def __repr__(self):
        return f"<Product #{self.id} - {self.name} - {self.price}>"


class Order(Base):
    """
    Order ledger entry.

    ``items`` is a JSON snapshot of the cart (name and price are copied so
    the order survives menu edits). The user reference is lookup only:
    deleting a user nulls it instead of deleting orders.
    """
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("total_amount > 0", name="ck_orders_total_positive"),
    )

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    user_id = Column(
        Integer,
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    items = Column(JSON, nullable=False)
    total_amount = Column(Float, nullable=False)
    address = Column(String(255), nullable=False)
    table_no = Column(String(20), nullable=False, default="")

    status = Column(
        Enum(OrderStatus, values_callable=lambda e: [m.value for m in e]),
        default=OrderStatus.PLACED,
        nullable=False,
        index=True,
    )

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    user = relationship("User", lazy="raise")

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    def __repr__(self):
        return f"<Order #{self.id} - {self.status.value} - {self.total_amount}>"
