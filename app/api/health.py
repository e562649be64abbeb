"""Liveness and database health checks."""

import logging
from typing import Any, Dict

from litestar import Response, get
from litestar.status_codes import HTTP_503_SERVICE_UNAVAILABLE
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.db import table_counts
from app.utils.logging import error_log

logger = logging.getLogger("AISolutions.health")


@get("/health", tags=["health"])
async def health() -> Dict[str, Any]:
    return {"ok": True, "status": "ok"}


@get("/health/db", tags=["health"])
async def health_db(session: AsyncSession) -> Response:
    """Row counts per table; ``null`` means the table is missing."""
    try:
        conn = await session.connection()
        counts = await table_counts(conn)
    except SQLAlchemyError as e:
        error_log("Database health check failed", exc=e)
        return Response(
            content={"ok": False, "error": "Database unavailable"},
            status_code=HTTP_503_SERVICE_UNAVAILABLE,
        )
    return Response(content={"ok": True, "tables": counts})
