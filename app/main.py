import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse, JSONResponse
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.config import Settings, get_settings
from app.exceptions import CatalogError
from app.logging_config import setup_logging
from .ProductPakage.model.database import Database
from .ProductPakage.router import health_router, products_router
from .ProductPakage.utils.db_utils import init_database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings or get_settings()
    app.state.settings = settings
    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    database = Database.from_settings(settings)
    try:
        # Без приведённой схемы запросы не принимаем: ошибка здесь роняет старт
        await init_database(database.engine)
    except Exception:
        await database.dispose()
        raise

    app.state.database = database
    logger.info("Сервер запущен на порту %s (окружение: %s)", settings.PORT, settings.ENVIRONMENT)
    try:
        yield
    finally:
        logger.info("Остановка сервера, закрываем соединения...")
        await database.dispose()


def _validation_message(exc: RequestValidationError) -> str:
    messages = []
    for error in exc.errors():
        loc = [str(part) for part in error.get("loc", ()) if part not in ("body", "path", "query")]
        msg = str(error.get("msg", "invalid value")).removeprefix("Value error, ")
        messages.append(f"{'.'.join(loc)}: {msg}" if loc else msg)
    return "; ".join(messages) or "Invalid request"


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, ex: CatalogError):
        return JSONResponse(status_code=ex.status_code, content={"error": ex.message})

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, ex: StarletteHTTPException):
        return JSONResponse(
            status_code=ex.status_code,
            content={"error": ex.detail},
            headers=getattr(ex, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, ex: RequestValidationError):
        details = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in ex.errors()
        ]
        return JSONResponse(
            status_code=400,
            content={"error": _validation_message(ex), "details": details},
        )

    @app.exception_handler(SQLAlchemyError)
    async def storage_error_handler(request: Request, ex: SQLAlchemyError):
        logger.error("Ошибка БД при %s %s", request.method, request.url.path, exc_info=ex)
        if isinstance(ex, IntegrityError):
            status_code, content = 400, {"error": "Product data violates a storage constraint"}
        else:
            status_code, content = 500, {"error": "Database error"}

        settings: Optional[Settings] = request.app.state.settings
        if settings is not None and not settings.is_production:
            orig = getattr(ex, "orig", None)
            content["detail"] = type(orig if orig is not None else ex).__name__
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, ex: Exception):
        logger.error("Необработанная ошибка при %s %s", request.method, request.url.path, exc_info=ex)
        return JSONResponse(status_code=500, content={"error": "Something went wrong"})


def mount_frontend(app: FastAPI) -> None:

    # Любой GET, не попавший в API, отдаёт файл фронтенда или index.html
    @app.get("/{full_path:path}", include_in_schema=False)
    async def serve_frontend(full_path: str, request: Request):
        settings: Optional[Settings] = request.app.state.settings
        root = Path(settings.STATIC_DIR if settings is not None else "public").resolve()

        if full_path == "api" or full_path.startswith("api/"):
            return JSONResponse(status_code=404, content={"error": "Not found"})

        candidate = (root / full_path).resolve()
        if full_path and candidate.is_file() and candidate.is_relative_to(root):
            return FileResponse(candidate)

        index = root / "index.html"
        if index.is_file():
            return FileResponse(index)
        return JSONResponse(status_code=404, content={"error": "Not found"})


def _resolve_settings() -> Optional[Settings]:
    # Без DATABASE_URL приложение всё равно не стартует: lifespan упадёт с той же ошибкой
    try:
        return get_settings()
    except ValidationError:
        return None


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    if settings is None:
        settings = _resolve_settings()

    app = FastAPI(title="Products API", version="1.0.0", lifespan=lifespan)
    app.state.settings = settings

    cors_origins = settings.CORS_ORIGINS if settings is not None else ["*"]
    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    # Подключаем роутеры
    app.include_router(health_router)
    app.include_router(products_router, prefix="/api")

    mount_frontend(app)
    return app


app = create_app()


def run() -> None:
    import uvicorn

    try:
        settings = get_settings()
    except ValidationError as e:
        setup_logging()
        missing = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        logger.critical("Некорректная конфигурация (%s), сервер не запущен", missing)
        raise SystemExit(1)

    setup_logging(settings.LOG_LEVEL, settings.LOG_DIR)
    uvicorn.run(
        create_app(settings),
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )


if __name__ == "__main__":
    run()
