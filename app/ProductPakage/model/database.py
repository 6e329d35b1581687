# app/ProductPakage/model/database.py
import logging
import ssl
from typing import Any, AsyncIterator, Dict, Tuple

from fastapi import Depends, Request
from sqlalchemy import text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from app.config import Settings

logger = logging.getLogger(__name__)

Base = declarative_base()

ASYNC_DRIVER = "postgresql+asyncpg"

# Параметры libpq, которых asyncpg не понимает
_LIBPQ_ONLY_PARAMS = ("sslmode", "channel_binding")


def build_ssl_context(sslmode: str | None) -> ssl.SSLContext | None:
    if sslmode in (None, "disable"):
        return None

    context = ssl.create_default_context()
    if sslmode in ("verify-ca", "verify-full"):
        context.check_hostname = sslmode == "verify-full"
        return context

    # require / prefer / allow: шифруем, но сертификат не проверяем
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context


def normalize_database_url(raw_url: str) -> Tuple[URL, Dict[str, Any]]:
    """
    Приводит строку подключения к виду postgresql+asyncpg://...
    и переносит sslmode в connect_args.
    """
    url = make_url(raw_url)

    if url.drivername in ("postgres", "postgresql", "postgresql+psycopg2"):
        url = url.set(drivername=ASYNC_DRIVER)

    query = dict(url.query)
    sslmode = query.get("sslmode")
    if isinstance(sslmode, tuple):
        sslmode = sslmode[-1]

    url = url.difference_update_query(_LIBPQ_ONLY_PARAMS)

    connect_args: Dict[str, Any] = {}
    ssl_context = build_ssl_context(sslmode)
    if ssl_context is not None:
        connect_args["ssl"] = ssl_context

    return url, connect_args


class Database:
    """Пул соединений с БД. Создаётся один раз на процесс и передаётся явно."""

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory = async_sessionmaker(
            engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        url, connect_args = normalize_database_url(settings.DATABASE_URL)
        engine = create_async_engine(
            url,
            echo=settings.DB_ECHO,
            pool_size=settings.DB_POOL_SIZE,
            max_overflow=settings.DB_MAX_OVERFLOW,
            pool_pre_ping=True,
            connect_args=connect_args,
        )
        logger.info("Пул соединений создан: %s", url.render_as_string(hide_password=True))
        return cls(engine)

    async def ping(self) -> None:
        async with self.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))

    async def dispose(self) -> None:
        await self.engine.dispose()
        logger.info("Пул соединений закрыт")


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db(database: Database = Depends(get_database)) -> AsyncIterator[AsyncSession]:
    async with database.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
