"""Document route registration.

One route for the whole platform and one per loaded module. Each route's
generator is draft builder → annotator → normaliser, and the cache wraps it
under the route's fixed scope key.
"""

from __future__ import annotations

import json
from functools import partial
from typing import TYPE_CHECKING, Any

import structlog
from starlette.responses import JSONResponse
from starlette.routing import Route

import platformdocs.handlers.get_document as t_get_document
from platformdocs.annotator import DocumentAnnotator
from platformdocs.cache import PLATFORM_SCOPE
from platformdocs.errors import ErrorCode, PlatformDocsError
from platformdocs.extraction import RouteDraftBuilder
from platformdocs.generator import DocumentGenerator
from platformdocs.models.document import SecurityScheme

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Sequence
    from types import ModuleType

    from starlette.requests import Request
    from starlette.responses import Response
    from starlette.routing import BaseRoute

    from platformdocs.config import DocumentSettings
    from platformdocs.models.document import OperationDescriptor
    from platformdocs.state import AppState

log = structlog.get_logger()

_STATUS_BY_CODE: dict[ErrorCode, int] = {
    ErrorCode.DOCUMENT_NOT_FOUND: 404,
    ErrorCode.DOCUMENT_BUILD_FAILED: 500,
    ErrorCode.INVALID_MANIFEST: 500,
}


class PrettyJSONResponse(JSONResponse):
    def render(self, content: Any) -> bytes:
        return json.dumps(content, ensure_ascii=False, allow_nan=False, indent=2).encode("utf-8")


def _serialise_error(error: PlatformDocsError) -> JSONResponse:
    """Convert a PlatformDocsError to the JSON error envelope."""
    return JSONResponse(error.to_dict(), status_code=_STATUS_BY_CODE.get(error.code, 500))


def _security_schemes(documents: DocumentSettings) -> dict[str, SecurityScheme]:
    api_key = documents.api_key
    return {
        api_key.scheme: SecurityScheme(
            name=api_key.name,
            location=api_key.location,
            description=api_key.description,
        )
    }


def _owned_by(code_unit: ModuleType, descriptor: OperationDescriptor) -> bool:
    return descriptor.code_unit is code_unit


def _document_endpoint(scope: str, state: AppState) -> Callable[[Request], Awaitable[Response]]:
    async def endpoint(request: Request) -> Response:
        try:
            payload = await t_get_document.handle(
                scope,
                request.path_params["api_version"],
                str(request.base_url),
                state,
            )
        except PlatformDocsError as exc:
            log.warning(
                "handler_error",
                handler="get_document",
                scope=scope,
                code=exc.code,
                message=exc.message,
                recoverable=exc.recoverable,
            )
            return _serialise_error(exc)
        except Exception:
            log.error("handler_unexpected_error", handler="get_document", scope=scope, exc_info=True)
            raise

        if state.settings.documents.pretty_print:
            return PrettyJSONResponse(payload)
        return JSONResponse(payload)

    return endpoint


def register_document_routes(state: AppState, api_routes: Sequence[BaseRoute]) -> list[Route]:
    """Create the platform and per-module document routes and their generators."""
    documents = state.settings.documents
    prefix_path = state.settings.server.route_prefix.strip("/")
    prefix = f"/{prefix_path}" if prefix_path else ""
    annotator = DocumentAnnotator(state.registry, state.settings_store, documents)
    security_schemes = _security_schemes(documents)

    platform_builder = RouteDraftBuilder(
        api_routes,
        title=documents.title,
        version=documents.api_version,
        security_schemes=security_schemes,
    )
    state.generators[PLATFORM_SCOPE] = DocumentGenerator(PLATFORM_SCOPE, platform_builder, annotator)
    routes = [
        Route(
            f"{prefix}/docs/{{api_version}}",
            _document_endpoint(PLATFORM_SCOPE, state),
            methods=["GET"],
            name="docs",
            include_in_schema=False,
        )
    ]

    for module in state.registry.get_modules():
        if not module.is_loaded:
            log.debug("document_route_skipped", module=module.name, state=module.state)
            continue

        # Include only endpoints defined in this module's package
        module_builder = RouteDraftBuilder(
            api_routes,
            title=documents.module_title_template.format(module=module.name),
            version=documents.api_version,
            include=partial(_owned_by, module.code_unit),
            security_schemes=security_schemes,
        )
        state.generators[module.name] = DocumentGenerator(module.name, module_builder, annotator)
        routes.append(
            Route(
                f"{prefix}/docs/{module.name}/{{api_version}}",
                _document_endpoint(module.name, state),
                methods=["GET"],
                name=f"docs_{module.name}",
                include_in_schema=False,
            )
        )

    log.info("document_routes_registered", scopes=len(routes), prefix=prefix)
    return routes
