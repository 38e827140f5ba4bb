from typing import List, Literal
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from storefront.models.order import OrderStatus


class OrderItemCreate(BaseModel):
    product_id: int = Field(..., gt=0)
    quantity: int = Field(..., gt=0, le=1000)


class OrderCreate(BaseModel):
    items: List[OrderItemCreate] = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    status: Literal["pending", "completed", "canceled"]

    @property
    def target_status(self) -> OrderStatus:
        return OrderStatus(self.status)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Decimal
    line_total: Decimal

    class Config:
        from_attributes = True


class OrderResponse(BaseModel):
    id: int
    user_id: int
    order_date: datetime
    total_amount: Decimal
    status: OrderStatus
    items: List[OrderItemResponse]

    class Config:
        from_attributes = True
