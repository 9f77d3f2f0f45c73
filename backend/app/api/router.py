"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from app.api.routes import orders, products

api_router = APIRouter(prefix="/api")
api_router.include_router(orders.router)
api_router.include_router(products.router)
