"""Form-encoded POST to Bitrix24 with transport error classification."""

from typing import Any

import httpx
import structlog

from bitrix24_placement_server.core.exceptions import ApiTimeoutError, TransportError

logger = structlog.get_logger()


async def post_form(client: httpx.AsyncClient, url: str, data: dict[str, Any]) -> dict[str, Any]:
    """POST ``data`` as a form and return the JSON object in the response.

    Bitrix24 reports API errors inside a JSON body (often with a 4xx status),
    so the HTTP status is not treated as a failure on its own.

    Raises:
        ApiTimeoutError: Request timed out
        TransportError: Connection failed or body is not a JSON object
    """
    try:
        response = await client.post(url, data=_form_fields(data))
    except httpx.TimeoutException as e:
        logger.warning("Bitrix24 request timed out", url=url)
        raise ApiTimeoutError(f"Request to {url} timed out") from e
    except httpx.HTTPError as e:
        logger.warning("Bitrix24 request failed", url=url, error=str(e))
        raise TransportError(f"Request to {url} failed: {e}") from e

    try:
        payload = response.json()
    except ValueError as e:
        raise TransportError(
            f"Invalid JSON from {url} (HTTP {response.status_code})"
        ) from e

    if not isinstance(payload, dict):
        raise TransportError(f"Unexpected response shape from {url} (HTTP {response.status_code})")

    return payload


def _form_fields(data: dict[str, Any]) -> dict[str, str]:
    # httpx would render None as an empty string; drop such keys instead
    return {key: str(value) for key, value in data.items() if value is not None}
