from app.models.product import Product
from app.models.order import Order, OrderStatus

__all__ = ["Product", "Order", "OrderStatus"]
