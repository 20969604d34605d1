"""Request handler for document routes.

Receives AppState, resolves the scope's generator, and returns the serialised
document. No Starlette imports; registration.py handles the HTTP wiring.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from platformdocs.errors import ErrorCode, PlatformDocsError

if TYPE_CHECKING:
    from platformdocs.state import AppState


async def handle(scope: str, api_version: str, root_url: str, state: AppState) -> dict:
    """Handle a request for the document of ``scope`` at ``api_version``."""
    log = structlog.get_logger().bind(handler="get_document", scope=scope, api_version=api_version)
    log.info("handler_called")

    expected_version = state.settings.documents.api_version
    generator = state.generators.get(scope)
    if generator is None or api_version != expected_version:
        raise PlatformDocsError(
            code=ErrorCode.DOCUMENT_NOT_FOUND,
            message=f"No API document for scope {scope!r} at version {api_version!r}.",
            suggestion=f"Request version {expected_version!r} of a loaded module or the platform.",
            recoverable=False,
        )

    document = await state.document_cache.get_or_build(scope, generator)

    # Serialised copy: the cached document itself stays untouched
    payload = document.to_openapi()
    payload["servers"] = [{"url": root_url}]
    log.info("document_served", operations=len(document.operations))
    return payload
