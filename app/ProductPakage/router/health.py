# app/ProductPakage/router/health.py
import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..model.database import Database, get_database

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])


@router.get("/health", description="Проверка живости сервиса и соединения с БД.")
async def health_check(database: Database = Depends(get_database)):
    timestamp = datetime.now(timezone.utc).isoformat()
    try:
        await database.ping()
    except Exception as e:
        logger.warning("Health check: БД недоступна - %s", type(e).__name__)
        return JSONResponse(
            status_code=503,
            content={
                "status": "ERROR",
                "database": "unreachable",
                "error": "Database unreachable",
                "timestamp": timestamp,
            },
        )

    return {"status": "OK", "database": "connected", "timestamp": timestamp}
