"""Request parameter helpers shared by the Bitrix24-facing handlers."""

from typing import Any

import structlog
from litestar import Request

logger = structlog.get_logger()


async def request_params(request: Request[Any, Any, Any]) -> dict[str, Any]:
    """Merge POST form fields over query parameters.

    Bitrix24 sends install and placement data as a form POST, but the same
    handlers are opened with a plain GET during development.
    """
    params: dict[str, Any] = dict(request.query_params.items())
    if request.method == "POST":
        try:
            form = await request.form()
        except Exception as e:
            logger.warning("Could not parse form body, using query parameters", error=str(e))
        else:
            params.update({key: value for key, value in form.items() if value not in (None, "")})
    return params


def first_param(params: dict[str, Any], *names: str) -> str | None:
    """First non-empty value among ``names``."""
    for name in names:
        value = params.get(name)
        if value:
            return str(value)
    return None
