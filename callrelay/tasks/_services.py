from callrelay.core.app_state import AppState, state


def get_worker_state() -> AppState:
    """Services for a Celery worker; pushes and registrations run inline there."""
    if not state.configured:
        state.configure(queue_tasks=False)
    return state
