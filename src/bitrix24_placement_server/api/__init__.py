"""HTTP routes."""

from bitrix24_placement_server.api.health import health_router
from bitrix24_placement_server.api.install import install_router
from bitrix24_placement_server.api.placement import placement_router

# - health_router: /health - JSON status, no auth
# - install_router: /install - opened by Bitrix24 on app install
# - placement_router: /placement - contact card placement
api_routers = [health_router, install_router, placement_router]

__all__ = ["api_routers"]
