# api/routes/activity.py
from __future__ import annotations

from fastapi import APIRouter, Depends

from api.deps import get_activity_service
from models.activity import ActivityResponse, ErrorResponse
from services.activity_service import ActivityService

router = APIRouter(prefix="/api", tags=["activity"])


@router.get(
    "/{address}/activity/{granularity}/days/{range_days}",
    response_model=ActivityResponse,
    summary="Bucketed trading activity for a wallet or token",
    responses={
        400: {"model": ErrorResponse},
        502: {"model": ErrorResponse},
        504: {"model": ErrorResponse},
    },
)
async def get_activity(
    address: str,
    granularity: str,
    range_days: str,
    service: ActivityService = Depends(get_activity_service),
) -> ActivityResponse:
    """
    ``granularity`` is one of seconds, minutes, hours, days, weeks, months, ALL.
    ``range_days`` is a signed day count: ``7`` is the first week after the
    address's first activity, ``-7`` is the last week.

    Parsing happens in the service so bad input maps onto the same
    InvalidRange / EmptyRange / InvalidGranularity errors as everything else.
    """
    return await service.get_activity(address, granularity, range_days)
