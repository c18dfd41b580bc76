"""API route modules."""

from stockledger.api.routes.health import router as health_router
from stockledger.api.routes.stock import router as stock_router

__all__ = [
    "health_router",
    "stock_router",
]
