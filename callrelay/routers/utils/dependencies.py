from fastapi import HTTPException, Request

from callrelay.core.app_state import AppState


def get_app_state(request: Request) -> AppState:
    """FastAPI dependency returning the wired services for this app."""
    app_state = getattr(request.app.state, "callrelay", None)
    if app_state is None or not app_state.configured:
        raise HTTPException(status_code=503, detail="Automation services not ready")
    return app_state
