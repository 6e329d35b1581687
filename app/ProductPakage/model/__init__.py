from .database import Base, Database, get_database, get_db
from .product import Product

__all__ = [
    'Base', 'Database', 'get_database', 'get_db', 'Product'
]
