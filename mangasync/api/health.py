"""Liveness and sync readiness."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from mangasync import __version__
from mangasync.api.deps import get_session
from mangasync.services.batch_service import supports_upsert

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    status: str
    version: str
    database: str
    dialect: str
    sync: str


@router.get("/", response_model=HealthResponse)
async def health_check(
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HealthResponse:
    """Report whether the store answers and whether snapshot syncs can run on it.

    ``sync`` is "unsupported" when the store's dialect has no multi-row
    upsert; catalog browsing still works there but every sync would fail.
    """
    dialect = session.get_bind().dialect.name
    db_status = "ok"
    try:
        await session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.warning("Store did not answer the health query", exc_info=True)
        db_status = "error"

    sync_status = "ok" if supports_upsert(dialect) else "unsupported"
    if sync_status != "ok":
        logger.warning("Dialect %s cannot run snapshot syncs", dialect)

    return HealthResponse(
        status="ok" if db_status == sync_status == "ok" else "degraded",
        version=__version__,
        database=db_status,
        dialect=dialect,
        sync=sync_status,
    )
