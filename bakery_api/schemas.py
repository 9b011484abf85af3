"""
Pydantic Schemas for Request/Response Validation

JSON on the wire is camelCase (``totalAmount``, ``tableNo``, ``isAvailable``)
to match the React frontend; snake_case field names are accepted on input
too.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from pydantic.alias_generators import to_camel

from bakery_api.models import OrderStatus, UserRole


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# =============================================================================
# AUTH REQUEST SCHEMAS
# =============================================================================

class SignupRequest(CamelModel):
    """Signup form. Phone numbers are Indian mobiles (start with 6-9, 10 digits)."""
    name: str = Field(..., min_length=2, max_length=50, examples=["Asha Verma"])
    email: EmailStr = Field(..., examples=["asha@example.com"])
    password: str = Field(..., min_length=6, max_length=30)
    phone: str = Field(..., pattern=r"^[6-9]\d{9}$", examples=["9876543210"])

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name too short")
        return v

    @field_validator("email")
    @classmethod
    def limit_email(cls, v: str) -> str:
        if len(v) > 100:
            raise ValueError("Email too long")
        return v


class VerifyOtpRequest(CamelModel):
    email: EmailStr
    otp: str = Field(..., pattern=r"^\d{6}$", examples=["482913"])


class SigninRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=30)


# =============================================================================
# AUTH RESPONSE SCHEMAS
# =============================================================================

class MessageResponse(CamelModel):
    message: str


class SignupResponse(CamelModel):
    message: str
    email: str
    expires_at: datetime


class UserPublic(CamelModel):
    id: int
    name: str
    email: str
    phone: str
    role: UserRole


class SigninResponse(CamelModel):
    token: str
    user: UserPublic


# =============================================================================
# CATALOG SCHEMAS
# =============================================================================

class ProductCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100, examples=["Black Forest Cake"])
    price: float = Field(..., gt=0, examples=[450.0])
    category: str = Field(..., min_length=1, max_length=50, examples=["Cake"])
    image: str = Field(..., min_length=1, max_length=500, examples=["🎂"])
    description: Optional[str] = Field(None, max_length=1000)
    is_available: bool = True


class ProductResponse(CamelModel):
    id: int
    name: str
    price: float
    category: str
    image: str
    description: Optional[str]
    is_available: bool


class ProductListResponse(CamelModel):
    products: List[ProductResponse]


class ProductMutationResponse(CamelModel):
    message: str
    product: ProductResponse


class BulkProductsResponse(CamelModel):
    message: str
    count: int
    items: List[ProductResponse]


# =============================================================================
# ORDER SCHEMAS
# =============================================================================

class OrderItemIn(CamelModel):
    """Single cart line as sent by the checkout page."""
    product_id: Optional[int] = None
    name: str = Field(..., min_length=1, max_length=100)
    price: float = Field(..., gt=0)
    quantity: int = Field(..., ge=1, le=99)
    image: Optional[str] = Field(None, max_length=500)


class PlaceOrderRequest(CamelModel):
    items: List[OrderItemIn] = Field(..., min_length=1)
    total_amount: float = Field(..., gt=0, examples=[250.0])
    address: str = Field(..., min_length=1, max_length=255, examples=["Dine-In"])
    table_no: str = Field(default="", max_length=20)


class OrderStatusUpdate(CamelModel):
    # Membership is checked by the service so a missing order reports 404 first
    status: str = Field(..., examples=["Preparing"])


class OrderItemOut(CamelModel):
    product_id: Optional[int] = None
    name: str
    price: float
    quantity: int
    image: Optional[str] = None


class OrderResponse(CamelModel):
    id: int
    user_id: Optional[int]
    items: List[OrderItemOut]
    total_amount: float
    address: str
    table_no: str
    status: OrderStatus
    created_at: datetime
    updated_at: Optional[datetime]


class OrderCustomer(CamelModel):
    name: str
    phone: str
    email: str


class AdminOrderResponse(OrderResponse):
    """Order joined with the placing user's display fields."""
    user: Optional[OrderCustomer] = None


class OrderListResponse(CamelModel):
    orders: List[OrderResponse]


class AdminOrderListResponse(CamelModel):
    orders: List[AdminOrderResponse]


class PlaceOrderResponse(CamelModel):
    message: str
    order_id: int
    status: OrderStatus


class OrderStatusResponse(CamelModel):
    message: str
    order: OrderResponse


# =============================================================================
# ANALYTICS SCHEMAS
# =============================================================================

class RevenueTotals(CamelModel):
    total_revenue: float
    total_orders: int


class RevenueToday(CamelModel):
    today_revenue: float
    today_orders: int


class DailyRevenuePoint(CamelModel):
    date: str
    daily_revenue: float


class AnalyticsResponse(CamelModel):
    total: RevenueTotals
    today: RevenueToday
    trend: List[DailyRevenuePoint]
    history: List[AdminOrderResponse]


# =============================================================================
# SYSTEM SCHEMAS
# =============================================================================

class ErrorResponse(BaseModel):
    """Standard error response. ``msg`` repeats ``detail`` for the web frontend."""
    success: bool = False
    error: str
    detail: Optional[str] = None
    msg: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    database: str
    notification_service: str
    timestamp: datetime
