"""Contact placement: resolve the contact from placement options and fetch it."""

import json
from dataclasses import dataclass, field
from typing import Any

import structlog

from bitrix24_placement_server.core.exceptions import Bitrix24Error
from bitrix24_placement_server.services.bitrix24_client import Bitrix24Client

logger = structlog.get_logger()

CONTACT_GET_METHOD = "crm.contact.get"

# Placement option keys that may carry the contact ID, in lookup order
CONTACT_ID_KEYS = ("ID", "ENTITY_ID", "entityId", "id")


@dataclass
class PlacementRequest:
    """Data Bitrix24 posts to a placement handler."""

    options: dict[str, Any] = field(default_factory=dict)
    session_id: str | None = None  # AUTH_ID or APP_SID
    domain: str | None = None
    protocol: str | None = None
    lang: str | None = None


@dataclass
class ContactResult:
    """Outcome of a placement contact lookup."""

    contact_id: Any = None
    fields: dict[str, Any] | None = None
    error: str | None = None
    debug: dict[str, Any] = field(default_factory=dict)

    @property
    def found(self) -> bool:
        return bool(self.fields)


def parse_placement_options(raw: str | None) -> dict[str, Any]:
    """Parse the PLACEMENT_OPTIONS JSON string.

    Raises:
        ValueError: Value is not a JSON object
    """
    if not raw:
        return {}
    options = json.loads(raw)
    if not isinstance(options, dict):
        raise ValueError("PLACEMENT_OPTIONS must be a JSON object")
    return options


def extract_contact_id(options: dict[str, Any]) -> Any:
    """Return the first present contact identifier, or None."""
    for key in CONTACT_ID_KEYS:
        value = options.get(key)
        if value not in (None, ""):
            return value
    return None


def display_value(value: Any) -> str:
    """Format a contact field value for the details table."""
    if isinstance(value, list):
        return ", ".join(
            json.dumps(item, ensure_ascii=False) if isinstance(item, dict) else str(item)
            for item in value
        )
    if isinstance(value, dict):
        return json.dumps(value, ensure_ascii=False)
    if value is None:
        return ""
    return str(value)


class PlacementService:
    """Fetches the contact shown in the CRM contact placement."""

    def __init__(self, client: Bitrix24Client) -> None:
        self.client = client
        self.logger = logger.bind(service="placement")

    async def fetch_contact(self, request: PlacementRequest) -> ContactResult:
        """Look up the placement's contact.

        Provider and transport errors are captured in the result, not raised.
        """
        contact_id = extract_contact_id(request.options)
        if contact_id is None:
            return ContactResult(error="Contact ID not found in PLACEMENT_OPTIONS.")

        params: dict[str, Any] = {"ID": contact_id}
        if request.session_id:
            params["auth"] = request.session_id

        debug = {
            "contact_id": contact_id,
            "domain": request.domain,
            "protocol": request.protocol,
            "lang": request.lang,
            "api_params": params,
        }

        try:
            response = await self.client.call(
                CONTACT_GET_METHOD, params, override_domain=request.domain
            )
        except Bitrix24Error as e:
            self.logger.warning("Contact lookup failed", contact_id=contact_id, error=str(e))
            return ContactResult(contact_id=contact_id, error=str(e), debug=debug)

        result = response.get("result")
        if not isinstance(result, dict):
            result = None
        return ContactResult(contact_id=contact_id, fields=result, debug=debug)
