import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel
from sqlalchemy import text

from vacation_engine.config import get_settings
from vacation_engine.db import SessionDep
from vacation_engine.services.clock import get_clock

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Service liveness plus database reachability."""

    status: Literal["ok", "degraded"]
    database: Literal["up", "down"]
    service: str
    version: str
    environment: str
    today: str


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Report whether the engine can reach its balance store."""
    settings = get_settings()
    database: Literal["up", "down"] = "up"

    try:
        await session.execute(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: balance store unreachable")
        database = "down"

    return HealthResponse(
        status="ok" if database == "up" else "degraded",
        database=database,
        service=settings.app_name,
        version=settings.app_version,
        environment=settings.environment,
        today=get_clock().today().isoformat(),
    )
