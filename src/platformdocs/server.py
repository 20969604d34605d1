"""HTTP server entrypoint.

Responsibilities (and nothing more):
- Configure structlog
- Load installed modules and collect their routes
- Create AppState and register document routes
- Start uvicorn
"""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import structlog
import uvicorn
from starlette.applications import Starlette

from platformdocs import __version__
from platformdocs.config import Settings
from platformdocs.lifecycle import ExportImportHooks
from platformdocs.registration import register_document_routes
from platformdocs.registry import ModuleRegistry, collect_module_routes, load_module_manifest
from platformdocs.settings_store import ConfigSettingsStore
from platformdocs.state import AppState

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator, Sequence

    from starlette.routing import BaseRoute

    from platformdocs.protocols import ModuleRegistryProtocol

log = structlog.get_logger()


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------


def _setup_logging(settings: Settings) -> None:
    """Configure structlog. Called once at startup before any log statements."""
    log_level = logging.getLevelNamesMapping()[settings.logging.level]

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.logging.format == "json":
        processors = [
            *shared_processors,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [*shared_processors, structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stderr),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: Starlette) -> AsyncGenerator[None, None]:
    state: AppState = app.state.platformdocs
    log.info(
        "server_started",
        version=__version__,
        modules=sum(1 for m in state.registry.get_modules() if m.is_loaded),
        scopes=len(state.generators),
    )
    try:
        yield
    finally:
        await state.document_cache.aclose()
        log.info("server_stopping")


def create_app(
    settings: Settings | None = None,
    *,
    registry: ModuleRegistryProtocol | None = None,
    api_routes: Sequence[BaseRoute] | None = None,
) -> Starlette:
    """Build the host application: module routes plus document routes.

    ``registry`` defaults to the modules listed in the configured manifest and
    ``api_routes`` to the routes those modules (and the platform) export.
    """
    settings = settings or Settings()

    if registry is None:
        manifest_path = Path(settings.modules.manifest_path).expanduser()
        registry = ModuleRegistry(load_module_manifest(manifest_path))
    if api_routes is None:
        api_routes = collect_module_routes(
            registry, platform_package=settings.documents.platform_package
        )

    settings_store = ConfigSettingsStore(settings.values)
    state = AppState(
        settings=settings,
        registry=registry,
        settings_store=settings_store,
        export_hooks=ExportImportHooks(settings_store),
    )
    document_routes = register_document_routes(state, api_routes)

    app = Starlette(routes=[*api_routes, *document_routes], lifespan=lifespan)
    app.state.platformdocs = state
    return app


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def main() -> None:
    settings = Settings()
    _setup_logging(settings)
    log.info("server_starting", version=__version__, host=settings.server.host, port=settings.server.port)

    uvicorn.run(
        create_app(settings),
        host=settings.server.host,
        port=settings.server.port,
        log_config=None,  # Disable uvicorn's default logging; structlog handles it
    )


if __name__ == "__main__":
    main()
