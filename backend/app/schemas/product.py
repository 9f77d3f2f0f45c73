"""
Pydantic schemas for product responses.
"""

from typing import Optional

from pydantic import BaseModel, Field

from app.schemas.order import CamelModel


class ProductResponse(BaseModel):
    id: int
    name: str
    stock: int
    version: int

    model_config = {"from_attributes": True}


class InventoryReset(CamelModel):
    stock: Optional[int] = Field(default=None, ge=0)


class InventoryResetResponse(CamelModel):
    message: str
    products_reset: int
    stock: int
