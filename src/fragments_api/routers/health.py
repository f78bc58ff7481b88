from fastapi import APIRouter, Request

from fragments_api import __version__

router = APIRouter()


@router.get("/health")
async def health_check(request: Request):
    """
    Health check endpoint for monitoring API status.

    Returns the configured storage backend along with the service version.
    """
    settings = request.app.state.settings
    service = request.app.state.fragment_service
    return {
        "status": "ok",
        "app_name": settings.app_name,
        "version": __version__,
        "storage_backend": service.storage.name,
    }
