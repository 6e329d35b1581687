"""
Товары: модель, схемы, CRUD и роутеры.
"""

from .model.database import Base
from .router.products import router as products_router
from .router.health import router as health_router

__all__ = ["Base", "products_router", "health_router"]
__version__ = "1.0.0"
