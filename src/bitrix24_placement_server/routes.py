"""Root application routes."""

from litestar import MediaType, get


@get("/", media_type=MediaType.TEXT, sync_to_thread=False, include_in_schema=False)
def welcome() -> str:
    """Plain-text landing response."""
    return "Welcome to the Bitrix24 placement server! Try /install or /placement"
