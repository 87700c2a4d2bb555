"""Automation settings API: status, toggles, template and chat link management."""

from typing import Optional

from fastapi import APIRouter, Body, Depends

from callrelay.core.app_state import AppState
from callrelay.routers.utils.dependencies import get_app_state
from callrelay.schemas.automation import (
    AutomationStatus,
    HistoryCleared,
    LinkResponse,
    TemplateUpdate,
    ToggleRequest,
    ToggleResponse,
)

router = APIRouter(
    prefix="/automation",
    tags=["automation"],
    responses={404: {"description": "Not found"}},
)


def _status(app_state: AppState) -> AutomationStatus:
    config = app_state.config.snapshot()
    current = app_state.tokens.current_token(app_state.identity.resolve())
    return AutomationStatus(
        is_enabled=config.is_enabled,
        sent_count=config.sent_count,
        last_sent_time=config.last_sent_time,
        processed_calls_count=app_state.ledger.processed_count(),
        filter_known_contacts=config.filter_known_contacts,
        message=config.message,
        current_link=current.conversation_url if current else None,
        sms_permission_denied=app_state.dispatcher.permission_denial_surfaced,
    )


@router.get("/status", response_model=AutomationStatus)
def get_status(app_state: AppState = Depends(get_app_state)) -> AutomationStatus:
    """Return the cached automation settings and counters. Does not hit the backend."""
    return _status(app_state)


@router.post("/toggle", response_model=ToggleResponse)
def toggle_automation(
    data: Optional[ToggleRequest] = Body(default=None),
    app_state: AppState = Depends(get_app_state),
) -> ToggleResponse:
    """Enable or disable the automation; flips when no target is given."""
    snapshot = app_state.config.toggle(data.enabled if data else None)
    return ToggleResponse(enabled=snapshot.is_enabled)


@router.put("/template", response_model=AutomationStatus)
def update_template(
    data: TemplateUpdate,
    app_state: AppState = Depends(get_app_state),
) -> AutomationStatus:
    """Replace the message template."""
    app_state.config.update_template(data.message)
    return _status(app_state)


@router.post("/contact-filtering/toggle", response_model=ToggleResponse)
def toggle_contact_filtering(
    data: Optional[ToggleRequest] = Body(default=None),
    app_state: AppState = Depends(get_app_state),
) -> ToggleResponse:
    snapshot = app_state.config.toggle_contact_filtering(data.enabled if data else None)
    return ToggleResponse(enabled=snapshot.filter_known_contacts)


@router.post("/link/regenerate", response_model=LinkResponse)
def regenerate_link(app_state: AppState = Depends(get_app_state)) -> LinkResponse:
    """Issue a new chat token. Links already sent keep working until they expire."""
    url = app_state.tokens.regenerate(app_state.identity.resolve())
    return LinkResponse(conversation_url=url)


@router.delete("/history", response_model=HistoryCleared)
def clear_history(app_state: AppState = Depends(get_app_state)) -> HistoryCleared:
    """Forget processed calls so they become eligible again."""
    return HistoryCleared(deleted=app_state.ledger.clear_history())


@router.post("/reset-template", response_model=AutomationStatus)
def reset_template(app_state: AppState = Depends(get_app_state)) -> AutomationStatus:
    app_state.config.reset_template()
    return _status(app_state)


@router.post("/reset-stats", response_model=AutomationStatus)
def reset_stats(app_state: AppState = Depends(get_app_state)) -> AutomationStatus:
    app_state.config.reset_stats()
    return _status(app_state)
