# app/exceptions.py


class CatalogError(Exception):
    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class ProductNotFoundError(CatalogError):
    def __init__(self, product_id: int | None = None):
        self.product_id = product_id
        super().__init__("Product not found", status_code=404)


class SchemaInitError(CatalogError):
    """Схема БД не приведена к нужному виду: сервис не должен стартовать."""

    def __init__(self, step: str, cause: Exception | None = None):
        self.step = step
        self.cause = cause
        message = f"Schema initialization failed at step '{step}'"
        if cause is not None:
            message = f"{message}: {type(cause).__name__}"
        super().__init__(message, status_code=500)
