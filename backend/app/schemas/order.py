"""
Pydantic schemas for order request/response validation.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.services.interfaces.reservation import LockingStrategy


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class OrderCreate(CamelModel):
    product_id: int
    quantity: int = Field(..., gt=0)
    user_id: Optional[int] = None


class OrderResponse(CamelModel):
    order_id: int
    product_id: int
    quantity_ordered: int
    stock_remaining: int
    strategy: LockingStrategy
    attempts: int = 1


class OptimisticOrderResponse(OrderResponse):
    new_version: int


class OrderErrorResponse(BaseModel):
    error: str
    kind: str


class OrderStatsResponse(CamelModel):
    total_orders: int
    successful_orders: int
    failed_out_of_stock: int
    failed_conflict: int
