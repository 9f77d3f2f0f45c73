"""
Product model with stock tracking.

Key design decisions:
- `stock` is mutated only inside a reservation transaction
- `version` is bumped by the optimistic path only; the pessimistic path
  serializes through the row lock and leaves it alone
- CHECK constraint is the last line of defence against negative stock
"""

from sqlalchemy import Column, Integer, String, CheckConstraint

from app.db.base import Base, TimestampMixin


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    stock = Column(Integer, nullable=False, default=0)

    # Optimistic locking version counter
    version = Column(Integer, nullable=False, default=1, server_default="1")

    __table_args__ = (
        CheckConstraint("stock >= 0", name="check_product_stock_non_negative"),
        CheckConstraint("version >= 1", name="check_product_version_positive"),
    )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, stock={self.stock}, version={self.version})>"
