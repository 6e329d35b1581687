# app/ProductPakage/model/product.py
from sqlalchemy import CheckConstraint, Column, DateTime, Integer, Numeric, String, Text, func
from .database import Base

# DDL таблицы (индексы, триггер) ведёт utils/db_utils.py, модель нужна для запросов
class Product(Base):
    __tablename__ = "products"
    __table_args__ = (
        CheckConstraint("condition IN ('new', 'used')", name="products_condition_check"),
        CheckConstraint("btrim(name) <> ''", name="products_name_not_blank"),
    )

    id = Column(Integer, primary_key=True)
    name = Column(String(255), nullable=False)
    condition = Column(String(50))  # "new" или "used"
    link = Column(Text)

    price_usd = Column(Numeric(10, 2))
    price_ars = Column(Numeric(15, 2))
    price_clp = Column(Numeric(15, 2))
    price_wholesale = Column(Numeric(15, 2))
    price_retail = Column(Numeric(15, 2))

    created_at = Column(DateTime, nullable=False, server_default=func.now())
    # Обновляется триггером update_products_updated_at
    updated_at = Column(DateTime, nullable=False, server_default=func.now())


# Поля, которые клиент может задавать при создании/изменении
MUTABLE_FIELDS = (
    "name",
    "condition",
    "link",
    "price_usd",
    "price_ars",
    "price_clp",
    "price_wholesale",
    "price_retail",
)
