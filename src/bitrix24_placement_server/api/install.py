"""Install endpoint.

Bitrix24 opens this URL when the application is installed on a portal,
sending parameters either as a POST form or in the query string.
"""

import json
from typing import Any

import structlog
from litestar import MediaType, Request, Response, Router, route
from litestar.response import Template
from litestar.status_codes import (
    HTTP_200_OK,
    HTTP_400_BAD_REQUEST,
    HTTP_500_INTERNAL_SERVER_ERROR,
)

from bitrix24_placement_server.api.params import first_param, request_params
from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.exceptions import Bitrix24Error
from bitrix24_placement_server.services.install import (
    InstallParametersError,
    InstallRequest,
    InstallService,
)

logger = structlog.get_logger()


@route("/install", http_method=["GET", "POST"], status_code=HTTP_200_OK)
async def install(
    request: Request[Any, Any, Any],
    install_service: InstallService,
    app_config: Settings,
) -> Template | Response[str]:
    """Install the application on a Bitrix24 portal."""
    params = await request_params(request)
    install_request = InstallRequest(
        code=first_param(params, "code", "CODE"),
        domain=first_param(params, "domain", "DOMAIN"),
        member_id=first_param(params, "member_id", "MEMBER_ID"),
    )

    try:
        await install_service.install(install_request)
    except InstallParametersError as e:
        debug = None
        if app_config.debug_context_enabled():
            debug = json.dumps(
                {"method": request.method, **e.requirements}, indent=2, ensure_ascii=False
            )
        return Template(
            template_name="install_missing.html",
            context={"requirements": e.requirements, "debug": debug},
            status_code=HTTP_400_BAD_REQUEST,
        )
    except Bitrix24Error as e:
        logger.error("Installation failed", error=str(e))
        return _installation_failed(e)
    except Exception as e:
        # Storage and other unexpected failures still get the install error page
        logger.exception("Installation failed")
        return _installation_failed(e)

    return Template(template_name="install_success.html", context={})


def _installation_failed(exc: Exception) -> Response[str]:
    return Response(
        content=f"Installation failed: {exc}",
        media_type=MediaType.TEXT,
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


install_router = Router(path="/", route_handlers=[install])
