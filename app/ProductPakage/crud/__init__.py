from .products import ProductRepository, get_product_repository

__all__ = ["ProductRepository", "get_product_repository"]
