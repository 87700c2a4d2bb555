"""Ingestion endpoint for the call monitor."""

from fastapi import APIRouter, Depends, HTTPException

from callrelay.core.app_state import AppState
from callrelay.routers.utils.dependencies import get_app_state
from callrelay.schemas.call import CallEvent, CallEventAccepted

router = APIRouter(
    prefix="/calls",
    tags=["calls"],
)


@router.post("/missed", response_model=CallEventAccepted, status_code=202)
async def report_missed_call(
    event: CallEvent,
    app_state: AppState = Depends(get_app_state),
) -> CallEventAccepted:
    """Queue a missed call for processing. Redeliveries are deduplicated downstream."""
    if not app_state.runtime.running:
        raise HTTPException(status_code=503, detail="Call runtime is not running")
    await app_state.runtime.submit(event)
    return CallEventAccepted(call_id=event.call_id)
