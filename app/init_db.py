# app/init_db.py
# Разовая инициализация схемы без запуска сервера: python -m app.init_db
import asyncio
import logging
import sys

from pydantic import ValidationError

from app.config import get_settings
from app.exceptions import SchemaInitError
from app.logging_config import setup_logging
from app.ProductPakage.model.database import Database
from app.ProductPakage.utils.db_utils import init_database

logger = logging.getLogger(__name__)


async def main() -> int:
    try:
        settings = get_settings()
    except ValidationError:
        setup_logging()
        logger.critical("Переменная окружения DATABASE_URL не задана")
        return 1

    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    database = Database.from_settings(settings)
    try:
        report = await init_database(database.engine)
    except SchemaInitError as e:
        logger.critical("Ошибка при инициализации базы данных: %s", e.message)
        return 1
    finally:
        await database.dispose()

    logger.info("Готово. Товаров в таблице: %s", report.row_count)
    return 0


def run() -> None:
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
