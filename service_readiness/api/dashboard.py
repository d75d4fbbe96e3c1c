"""FastAPI dashboard endpoints.

POST /v1/dashboard        -- full dashboard result for a record set
POST /v1/data-readiness   -- KPIs, quality dimensions and readiness only

Callers apply any date/division/ward/result filtering before posting.
"""

import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from service_readiness.config.settings import Settings, get_settings
from service_readiness.engine.pipeline import DashboardService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["dashboard"])


# ---------------------------------------------------------------------------
# Request schema
# ---------------------------------------------------------------------------


class RecordSetRequest(BaseModel):
    """Record set to analyze; records keep their raw, possibly imperfect fields."""

    model_config = {"populate_by_name": True}

    records: list[dict[str, Any]] = Field(default_factory=list)
    as_of: date | None = Field(default=None, alias="asOf")


def get_dashboard_service() -> DashboardService:
    return DashboardService()


def _check_size(body: RecordSetRequest, settings: Settings) -> None:
    if len(body.records) > settings.MAX_RECORDS_PER_REQUEST:
        raise HTTPException(
            status_code=413,
            detail=(
                f"{len(body.records)} records exceeds the limit of "
                f"{settings.MAX_RECORDS_PER_REQUEST} per request."
            ),
        )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/dashboard")
async def build_dashboard(
    body: RecordSetRequest,
    settings: Settings = Depends(get_settings),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Compute the full dashboard result object."""
    _check_size(body, settings)
    try:
        result = service.build(body.records, as_of=body.as_of)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return result.model_dump(mode="json", by_alias=True)


@router.post("/data-readiness")
async def build_data_readiness(
    body: RecordSetRequest,
    settings: Settings = Depends(get_settings),
    service: DashboardService = Depends(get_dashboard_service),
) -> dict:
    """Compute the data-readiness view."""
    _check_size(body, settings)
    try:
        result = service.build_readiness(body.records, as_of=body.as_of)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return result.model_dump(mode="json", by_alias=True)
