"""Health check endpoint."""

from litestar import Router, get
from litestar.status_codes import HTTP_200_OK

from bitrix24_placement_server import __version__
from bitrix24_placement_server.services.settings_store import SettingsStore


@get("/health", status_code=HTTP_200_OK)
async def health_check(settings_store: SettingsStore) -> dict[str, str]:
    """Health check endpoint.

    Returns:
        Status, version and settings backend
    """
    return {
        "status": "ok",
        "version": __version__,
        "settings_backend": settings_store.backend_name,
    }


health_router = Router(path="/", route_handlers=[health_check])
