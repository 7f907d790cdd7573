"""Contact placement endpoint.

Bitrix24 renders this page inside the CRM contact card. The contact ID
arrives in ``PLACEMENT_OPTIONS``; ``AUTH_ID`` / ``APP_SID`` carry the user's
session for local applications.
"""

import json
from typing import Any

import structlog
from litestar import Request, Router, route
from litestar.response import Template
from litestar.status_codes import HTTP_200_OK

from bitrix24_placement_server.api.params import first_param, request_params
from bitrix24_placement_server.core.config import Settings
from bitrix24_placement_server.core.security import redact
from bitrix24_placement_server.services.placement import (
    PlacementRequest,
    PlacementService,
    display_value,
    parse_placement_options,
)

logger = structlog.get_logger()


def _debug_json(app_config: Settings, data: dict[str, Any]) -> str | None:
    if not app_config.debug_context_enabled():
        return None
    return json.dumps(redact(data), indent=2, ensure_ascii=False, default=str)


@route("/placement", http_method=["GET", "POST"], status_code=HTTP_200_OK)
async def placement(
    request: Request[Any, Any, Any],
    placement_service: PlacementService,
    app_config: Settings,
) -> Template:
    """Show the details of the contact the placement was opened for."""
    params = await request_params(request)

    try:
        options = parse_placement_options(params.get("PLACEMENT_OPTIONS"))
    except ValueError as e:
        logger.warning("Invalid PLACEMENT_OPTIONS", error=str(e))
        return Template(
            template_name="placement.html",
            context={
                "level": "danger",
                "message": f"Invalid PLACEMENT_OPTIONS: {e}",
                "debug": _debug_json(app_config, {"params": params}),
            },
        )

    placement_request = PlacementRequest(
        options=options,
        session_id=first_param(params, "AUTH_ID", "APP_SID"),
        domain=first_param(params, "DOMAIN"),
        protocol=first_param(params, "PROTOCOL"),
        lang=first_param(params, "LANG"),
    )
    result = await placement_service.fetch_contact(placement_request)

    if result.contact_id is None:
        return Template(
            template_name="placement.html",
            context={
                "level": "warning",
                "message": result.error,
                "debug": _debug_json(
                    app_config, {"placement_options": options, "params": params}
                ),
            },
        )

    if result.error:
        return Template(
            template_name="placement.html",
            context={
                "level": "danger",
                "message": f"API Error: {result.error}",
                "debug": _debug_json(
                    app_config, {**result.debug, "received_fields": sorted(params)}
                ),
            },
        )

    if not result.found:
        return Template(
            template_name="placement.html",
            context={"level": "info", "message": "No contact data found."},
        )

    rows = [(name, display_value(value)) for name, value in result.fields.items()]
    return Template(template_name="placement.html", context={"rows": rows})


placement_router = Router(path="/", route_handlers=[placement])
