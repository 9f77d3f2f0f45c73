"""
Order audit model: one row per terminal outcome of an order request.

Key design decisions:
- No foreign key on product_id; requests for unknown products are audited too
- Rows are insert-only, status never changes after the write
- `attempts` records how many transactions the request burned
"""

import enum

from sqlalchemy import Column, Integer, String, DateTime, CheckConstraint, Index, func

from app.db.base import Base


class OrderStatus(str, enum.Enum):
    SUCCESS = "SUCCESS"
    FAILED_OUT_OF_STOCK = "FAILED_OUT_OF_STOCK"
    FAILED_CONFLICT = "FAILED_CONFLICT"


class Order(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    product_id = Column(Integer, nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    user_id = Column(Integer, nullable=True)
    status = Column(String(32), nullable=False)
    strategy = Column(String(16), nullable=False)
    attempts = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    __table_args__ = (
        CheckConstraint("quantity > 0", name="check_order_quantity_positive"),
        CheckConstraint(
            "status IN ('SUCCESS', 'FAILED_OUT_OF_STOCK', 'FAILED_CONFLICT')",
            name="check_order_status",
        ),
        # Stats query groups by status
        Index("ix_orders_status", "status"),
    )

    def __repr__(self) -> str:
        return f"<Order(id={self.id}, product={self.product_id}, status={self.status})>"
