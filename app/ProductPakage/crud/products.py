# app/ProductPakage/crud/products.py
import logging
from typing import List

from fastapi import Depends
from sqlalchemy import delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import ProductNotFoundError
from ..model.database import get_db
from ..model.product import MUTABLE_FIELDS, Product
from ..schema.product import ProductCreate, ProductUpdate

logger = logging.getLogger(__name__)

# products.id: SERIAL (int4),: за этими границами строки быть не может
MAX_PRODUCT_ID = 2**31 - 1


def _id_in_range(product_id: int) -> bool:
    return 1 <= product_id <= MAX_PRODUCT_ID


def _values(data: ProductCreate | ProductUpdate) -> dict:
    # Отсутствующие поля пишем как NULL, а не оставляем старые значения
    payload = data.model_dump()
    return {field: payload.get(field) for field in MUTABLE_FIELDS}


class ProductRepository:
    """
    Доступ к таблице products в рамках одной сессии (одного запроса).
    Незакоммиченные изменения откатываются при закрытии сессии в get_db.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(self) -> List[Product]:
        # id DESC: стабильный порядок при одинаковом created_at
        result = await self.db.execute(
            select(Product).order_by(Product.created_at.desc(), Product.id.desc())
        )
        return list(result.scalars().all())

    async def create_product(self, data: ProductCreate) -> Product:
        product = Product(**_values(data))
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info("Создан товар id=%s", product.id)
        return product

    async def update_product(self, product_id: int, data: ProductUpdate) -> Product:
        if not _id_in_range(product_id):
            raise ProductNotFoundError(product_id)

        result = await self.db.execute(
            update(Product)
            .where(Product.id == product_id)
            .values(**_values(data), updated_at=func.now())
            .returning(Product)
            .execution_options(synchronize_session=False, populate_existing=True)
        )
        product = result.scalar_one_or_none()
        if product is None:
            raise ProductNotFoundError(product_id)

        await self.db.commit()
        logger.info("Изменён товар id=%s", product_id)
        return product

    async def delete_product(self, product_id: int) -> int:
        if not _id_in_range(product_id):
            raise ProductNotFoundError(product_id)

        result = await self.db.execute(
            delete(Product).where(Product.id == product_id).returning(Product.id)
        )
        deleted_id = result.scalar_one_or_none()
        if deleted_id is None:
            raise ProductNotFoundError(product_id)

        await self.db.commit()
        logger.info("Удалён товар id=%s", deleted_id)
        return deleted_id


def get_product_repository(db: AsyncSession = Depends(get_db)) -> ProductRepository:
    return ProductRepository(db)
