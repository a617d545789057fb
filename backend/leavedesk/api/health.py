import logging
from typing import Literal

from fastapi import APIRouter
from pydantic import BaseModel

from leavedesk.config import get_settings
from leavedesk.db import SessionDep
from leavedesk.schemas.employee import IntegrityReport
from leavedesk.services.balance import get_integrity_report

logger = logging.getLogger(__name__)

router = APIRouter(tags=["health"])


class HealthResponse(BaseModel):
    """Health check response."""

    status: Literal["ok", "degraded", "error"]
    version: str
    environment: str
    data_integrity: IntegrityReport | None = None


@router.get("/health", response_model=HealthResponse)
async def health(session: SessionDep) -> HealthResponse:
    """Return service health and the balance integrity report."""
    settings = get_settings()
    status: Literal["ok", "degraded", "error"] = "ok"
    report: IntegrityReport | None = None

    try:
        report = await get_integrity_report(session)
    except Exception:
        logger.exception("Health check: database connectivity failed")
        status = "degraded"

    if report is not None and report.needs_attention:
        logger.warning(
            "Health check: %d negative and %d over-cap balances",
            report.negative_balances,
            report.over_cap_balances,
        )

    return HealthResponse(
        status=status,
        version=settings.app_version,
        environment=settings.environment,
        data_integrity=report,
    )
