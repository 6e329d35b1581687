from .products import router as products_router
from .health import router as health_router

__all__ = [
    "products_router",
    "health_router"
]
__version__ = "1.0.0"
