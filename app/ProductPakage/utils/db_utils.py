# app/ProductPakage/utils/db_utils.py
import logging
import re
from dataclasses import dataclass, field
from typing import List, Tuple

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from app.exceptions import SchemaInitError

logger = logging.getLogger(__name__)

TABLE_NAME = "products"

# Ключ advisory-lock, чтобы два процесса не мигрировали схему одновременно
SCHEMA_LOCK_KEY = 730_104_001

# Колонки, которых может не быть в старых версиях таблицы
OPTIONAL_COLUMNS: List[Tuple[str, str]] = [
    ("condition", "VARCHAR(50)"),
    ("link", "TEXT"),
    ("price_usd", "DECIMAL(10,2)"),
    ("price_ars", "DECIMAL(15,2)"),
    ("price_clp", "DECIMAL(15,2)"),
    ("price_wholesale", "DECIMAL(15,2)"),
    ("price_retail", "DECIMAL(15,2)"),
]

CONSTRAINTS: List[Tuple[str, str]] = [
    ("products_condition_check", "CHECK (condition IN ('new', 'used'))"),
    ("products_name_not_blank", "CHECK (btrim(name) <> '')"),
]

INDEXES: List[Tuple[str, str]] = [
    ("idx_products_name", "name"),
    ("idx_products_condition", "condition"),
    ("idx_products_created_at", "created_at DESC"),
    ("idx_products_price_usd", "price_usd"),
    ("idx_products_price_wholesale", "price_wholesale"),
    ("idx_products_price_retail", "price_retail"),
]

TRIGGER_FUNCTION = "update_updated_at_column"
TRIGGER_NAME = "update_products_updated_at"


@dataclass
class SchemaReport:
    added_columns: List[str] = field(default_factory=list)
    added_constraints: List[str] = field(default_factory=list)
    row_count: int = 0


# Проверка корректности имени таблицы/колонки
def is_valid_identifier(name: str) -> bool:
    return re.match(r"^[a-zA-Z_][a-zA-Z0-9_]*$", name) is not None


async def column_exists(conn: AsyncConnection, table_name: str, column_name: str) -> bool:
    result = await conn.execute(text("""
        SELECT EXISTS (
            SELECT 1
            FROM information_schema.columns
            WHERE table_schema = current_schema()
              AND table_name = :table_name
              AND column_name = :column_name
        )
    """), {"table_name": table_name, "column_name": column_name})
    return bool(result.scalar())


async def constraint_exists(conn: AsyncConnection, table_name: str, constraint_name: str) -> bool:
    result = await conn.execute(text("""
        SELECT EXISTS (
            SELECT 1
            FROM pg_constraint c
            JOIN pg_class t ON t.oid = c.conrelid
            WHERE t.relname = :table_name
              AND t.relnamespace = current_schema()::regnamespace
              AND c.conname = :constraint_name
        )
    """), {"table_name": table_name, "constraint_name": constraint_name})
    return bool(result.scalar())


async def create_core_table(conn: AsyncConnection) -> None:
    await conn.execute(text(f"""
        CREATE TABLE IF NOT EXISTS {TABLE_NAME} (
            id SERIAL PRIMARY KEY,
            name VARCHAR(255) NOT NULL,
            created_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP NOT NULL DEFAULT CURRENT_TIMESTAMP
        )
    """))


async def add_missing_columns(conn: AsyncConnection) -> List[str]:
    added = []
    for column_name, column_type in OPTIONAL_COLUMNS:
        if not is_valid_identifier(column_name):
            raise ValueError(f"Invalid column name: {column_name}")
        if await column_exists(conn, TABLE_NAME, column_name):
            continue
        await conn.execute(text(f"ALTER TABLE {TABLE_NAME} ADD COLUMN {column_name} {column_type}"))
        logger.info("Колонка %s добавлена", column_name)
        added.append(column_name)
    return added


async def add_missing_constraints(conn: AsyncConnection) -> List[str]:
    added = []
    for constraint_name, definition in CONSTRAINTS:
        if await constraint_exists(conn, TABLE_NAME, constraint_name):
            continue
        await conn.execute(text(
            f"ALTER TABLE {TABLE_NAME} ADD CONSTRAINT {constraint_name} {definition} NOT VALID"
        ))
        logger.info("Ограничение %s добавлено", constraint_name)
        added.append(constraint_name)
    return added


async def create_indexes(conn: AsyncConnection) -> None:
    # asyncpg не выполняет несколько команд в одном execute
    for index_name, expression in INDEXES:
        await conn.execute(text(
            f"CREATE INDEX IF NOT EXISTS {index_name} ON {TABLE_NAME} ({expression})"
        ))


async def create_updated_at_trigger(conn: AsyncConnection) -> None:
    await conn.execute(text(f"""
        CREATE OR REPLACE FUNCTION {TRIGGER_FUNCTION}()
        RETURNS TRIGGER AS $$
        BEGIN
            NEW.updated_at = CURRENT_TIMESTAMP;
            RETURN NEW;
        END;
        $$ LANGUAGE plpgsql
    """))
    await conn.execute(text(f"DROP TRIGGER IF EXISTS {TRIGGER_NAME} ON {TABLE_NAME}"))
    await conn.execute(text(f"""
        CREATE TRIGGER {TRIGGER_NAME}
            BEFORE UPDATE ON {TABLE_NAME}
            FOR EACH ROW
            EXECUTE FUNCTION {TRIGGER_FUNCTION}()
    """))


async def log_table_summary(conn: AsyncConnection) -> int:
    result = await conn.execute(text(f"SELECT COUNT(*) FROM {TABLE_NAME}"))
    row_count = int(result.scalar() or 0)
    logger.info("Всего товаров в БД: %s", row_count)

    columns = await conn.execute(text("""
        SELECT column_name, data_type, is_nullable
        FROM information_schema.columns
        WHERE table_schema = current_schema()
          AND table_name = :table_name
        ORDER BY ordinal_position
    """), {"table_name": TABLE_NAME})
    for column_name, data_type, is_nullable in columns.fetchall():
        logger.debug(
            "  - %s: %s%s", column_name, data_type, " (NOT NULL)" if is_nullable == "NO" else ""
        )
    return row_count


async def ensure_schema(conn: AsyncConnection) -> SchemaReport:
    """
    Приводит таблицу products к текущему виду. Безопасно вызывать
    при каждом старте: повторный запуск ничего не меняет.
    Любая ошибка превращается в SchemaInitError.
    """
    report = SchemaReport()
    step = "lock"
    try:
        await conn.execute(text("SELECT pg_advisory_xact_lock(:key)"), {"key": SCHEMA_LOCK_KEY})

        step = "create_table"
        await create_core_table(conn)

        step = "add_columns"
        report.added_columns = await add_missing_columns(conn)

        step = "add_constraints"
        report.added_constraints = await add_missing_constraints(conn)

        step = "create_indexes"
        await create_indexes(conn)

        step = "create_trigger"
        await create_updated_at_trigger(conn)

        step = "summary"
        report.row_count = await log_table_summary(conn)
    except Exception as e:
        logger.error("Ошибка инициализации БД на шаге %s: %s", step, e)
        raise SchemaInitError(step, e) from e

    return report


async def init_database(engine: AsyncEngine) -> SchemaReport:
    logger.info("Инициализация базы данных...")
    try:
        # Одна транзакция: DDL в Postgres откатывается целиком
        async with engine.begin() as conn:
            report = await ensure_schema(conn)
    except SchemaInitError:
        raise
    except Exception as e:
        logger.error("Не удалось подключиться к БД: %s", type(e).__name__)
        raise SchemaInitError("connect", e) from e

    logger.info(
        "База данных инициализирована (новые колонки: %s, новые ограничения: %s)",
        report.added_columns or "нет",
        report.added_constraints or "нет",
    )
    return report
