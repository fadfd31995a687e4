"""
Routes API pour le health check.
"""
from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """Health check avec la configuration effective et les sessions actives."""
    settings = request.app.state.settings
    registry = request.app.state.sessions

    return {
        "status": "ok",
        "workspace_root": settings.workspace_root,
        "ws_path": settings.ws_path,
        "backend": {
            "path": settings.backend_path,
            "args": list(settings.backend_args),
        },
        "active_sessions": registry.get_session_count(),
        "total_sessions": registry.total_sessions,
        "sessions": registry.snapshot(),
    }
