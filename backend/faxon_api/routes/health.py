"""
Faxon Portal API — Health Check Route
======================================

What:  GET /health for container probes and load balancers.
How:   Runs `SELECT 1` against the pool and reports which providers have
       credentials. Providers are not called: a probe every few seconds
       must not spend e-mail or storage API quota.

Status levels:
    - healthy:   database reachable (HTTP 200)
    - unhealthy: database unreachable (HTTP 503)
"""

import logging
import time

from fastapi import APIRouter, Response
from sqlalchemy import text

from faxon_api import __version__
from faxon_api.config import settings
from faxon_api.database import engine
from faxon_api.schemas.common import HealthResponse

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

_start_time = time.time()


def _configured(flag: bool) -> str:
    return "configured" if flag else "not_configured"


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Service health check",
)
async def health_check(response: Response) -> HealthResponse:
    db_status = "connected"
    overall = "healthy"

    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
    except Exception as e:
        db_status = "disconnected"
        overall = "unhealthy"
        response.status_code = 503
        logger.warning("Health check: database unreachable: %s", str(e))

    return HealthResponse(
        status=overall,
        version=__version__,
        database=db_status,
        asset_storage=_configured(settings.supabase_configured),
        document_storage=_configured(settings.zoho_configured),
        mailer=_configured(settings.brevo_configured),
        uptime_seconds=round(time.time() - _start_time, 2),
    )
