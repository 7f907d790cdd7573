"""Litestar application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from pathlib import Path

import httpx
import structlog
from litestar import Litestar, MediaType, Request, Response
from litestar.contrib.jinja import JinjaTemplateEngine
from litestar.datastructures import State
from litestar.di import Provide
from litestar.status_codes import HTTP_500_INTERNAL_SERVER_ERROR
from litestar.template.config import TemplateConfig

from bitrix24_placement_server import __version__
from bitrix24_placement_server.api import api_routers
from bitrix24_placement_server.api.dependencies import (
    provide_bitrix24_client,
    provide_config,
    provide_install_service,
    provide_placement_service,
    provide_settings_store,
)
from bitrix24_placement_server.core.config import Settings, SettingsBackend
from bitrix24_placement_server.core.config import settings as default_config
from bitrix24_placement_server.core.database import (
    create_engine,
    create_session_maker,
    init_database,
)
from bitrix24_placement_server.routes import welcome
from bitrix24_placement_server.services.settings_store import (
    SettingsStore,
    create_settings_store,
)

# Configure structured logging
logging.basicConfig(format="%(message)s", level=default_config.log_level)
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.JSONRenderer(),
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)

logger = structlog.get_logger()


def internal_error_handler(request: Request, exc: Exception) -> Response[str]:
    """Render unhandled errors as plain text."""
    logger.exception("Unhandled error", path=request.url.path)
    return Response(
        content=f"Error: {exc}",
        media_type=MediaType.TEXT,
        status_code=HTTP_500_INTERNAL_SERVER_ERROR,
    )


def create_app(
    config: Settings = default_config,
    settings_store: SettingsStore | None = None,
    http_transport: httpx.AsyncBaseTransport | None = None,
) -> Litestar:
    """Create Litestar application.

    Args:
        config: Application settings
        settings_store: Settings store (selected from config when omitted; an
            injected store keeps ownership of its own database engine)
        http_transport: Transport for outbound Bitrix24 calls (tests inject a mock)

    Returns:
        Configured Litestar app instance
    """
    db_engine = None
    store = settings_store
    if store is None:
        if config.settings_backend == SettingsBackend.DATABASE:
            db_engine = create_engine(config.database_url)
            store = create_settings_store(config, create_session_maker(db_engine))
        else:
            store = create_settings_store(config)
    templates_dir = Path(__file__).parent / "templates"

    @asynccontextmanager
    async def lifespan(app: Litestar) -> AsyncIterator[None]:
        """Application lifespan manager.

        - Create the settings table when the database store is in use
        - Open the shared HTTP client for Bitrix24 calls, close it on shutdown
        """
        logger.info(
            "Starting bitrix24-placement-server",
            version=__version__,
            mode=config.deployment_mode.value,
            settings_backend=store.backend_name,
        )

        if db_engine is not None:
            await init_database(db_engine)

        async with httpx.AsyncClient(
            timeout=config.http_timeout_seconds,
            transport=http_transport,
        ) as http_client:
            app.state.http_client = http_client
            yield

        if db_engine is not None:
            await db_engine.dispose()
        logger.info("Shutdown complete")

    return Litestar(
        route_handlers=[welcome, *api_routers],
        lifespan=[lifespan],
        state=State({"config": config, "settings_store": store}),
        dependencies={
            "app_config": Provide(provide_config, sync_to_thread=False),
            "settings_store": Provide(provide_settings_store, sync_to_thread=False),
            "bitrix24_client": Provide(provide_bitrix24_client, sync_to_thread=False),
            "install_service": Provide(provide_install_service, sync_to_thread=False),
            "placement_service": Provide(provide_placement_service, sync_to_thread=False),
        },
        template_config=TemplateConfig(
            directory=templates_dir,
            engine=JinjaTemplateEngine,
        ),
        exception_handlers={HTTP_500_INTERNAL_SERVER_ERROR: internal_error_handler},
        debug=config.log_level == "DEBUG",
    )
