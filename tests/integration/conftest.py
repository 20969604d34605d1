"""Integration test fixtures.

Provides the full Starlette application wired with the sample registry and
routes from tests/conftest.py, and an httpx client over ASGI transport so no
real server is started.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
import pytest

from platformdocs.server import create_app

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

    from starlette.applications import Starlette
    from starlette.routing import Route

    from platformdocs.config import Settings
    from platformdocs.registry import ModuleRegistry
    from platformdocs.state import AppState


@pytest.fixture()
def app(settings: Settings, registry: ModuleRegistry, api_routes: list[Route]) -> Starlette:
    return create_app(settings, registry=registry, api_routes=api_routes)


@pytest.fixture()
def app_state(app: Starlette) -> AppState:
    return app.state.platformdocs


@pytest.fixture()
async def client(app: Starlette) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with httpx.AsyncClient(
        transport=httpx.ASGITransport(app=app),
        base_url="http://testserver",
    ) as client:
        yield client
