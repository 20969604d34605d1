"""Shared test fixtures for the platformdocs test suite."""

from __future__ import annotations

import sys
import types
from collections.abc import Callable

import pytest
from starlette.responses import JSONResponse
from starlette.routing import Route

from platformdocs.annotator import DocumentAnnotator
from platformdocs.config import Settings
from platformdocs.extraction import optional_parameters
from platformdocs.models.modules import ModuleDescriptor, ModuleState
from platformdocs.registry import ModuleRegistry
from platformdocs.settings_store import ConfigSettingsStore


def make_endpoint(
    module_name: str,
    name: str,
    docstring: str | None,
    *,
    optional: tuple[str, ...] = (),
) -> Callable:
    """Endpoint function that appears to be defined in ``module_name``."""

    async def endpoint(request):
        return JSONResponse({})

    endpoint.__module__ = module_name
    endpoint.__name__ = name
    endpoint.__qualname__ = name
    endpoint.__doc__ = docstring
    if optional:
        optional_parameters(*optional)(endpoint)
    return endpoint


LIST_ITEMS_DOC = """List items.
---
parameters:
  - name: filter
    in: query
    required: true
    schema:
      type: string
  - name: Filter
    in: header
    required: true
responses:
  200:
    description: The items.
"""

GET_ORDER_DOC = """
summary: Get one order
parameters:
  - name: order_id
    in: path
    required: true
responses:
  200:
    description: The order.
"""


@pytest.fixture()
def code_units(monkeypatch: pytest.MonkeyPatch) -> dict[str, types.ModuleType]:
    """Fake top-level packages registered in sys.modules for the test's duration."""
    units = {
        name: types.ModuleType(name)
        for name in ("alpha_pkg", "beta_pkg", "platform_web", "thirdparty_pkg")
    }
    for name, unit in units.items():
        monkeypatch.setitem(sys.modules, name, unit)
    return units


@pytest.fixture()
def sample_modules(code_units: dict[str, types.ModuleType]) -> list[ModuleDescriptor]:
    return [
        ModuleDescriptor(
            name="alpha",
            title="Alpha",
            description="Alpha catalog module",
            code_unit=code_units["alpha_pkg"],
            state=ModuleState.LOADED,
        ),
        ModuleDescriptor(
            name="beta",
            title="Beta",
            description="Beta orders module",
            code_unit=code_units["beta_pkg"],
            state=ModuleState.LOADED,
        ),
    ]


@pytest.fixture()
def registry(sample_modules: list[ModuleDescriptor]) -> ModuleRegistry:
    return ModuleRegistry(sample_modules)


@pytest.fixture()
def settings() -> Settings:
    return Settings(values={"PlatformDocs.Description": "Platform API"})


@pytest.fixture()
def annotator(registry: ModuleRegistry, settings: Settings) -> DocumentAnnotator:
    return DocumentAnnotator(registry, ConfigSettingsStore(settings.values), settings.documents)


@pytest.fixture()
def api_routes(code_units: dict[str, types.ModuleType]) -> list[Route]:
    """One route per owner: alpha, beta, the platform, and an unowned package."""
    return [
        Route(
            "/alpha/items",
            make_endpoint("alpha_pkg.web", "list_items", LIST_ITEMS_DOC, optional=("filter",)),
            methods=["GET"],
        ),
        Route(
            "/beta/orders/{order_id:int}",
            make_endpoint("beta_pkg.web.orders", "get_order", GET_ORDER_DOC),
            methods=["GET"],
        ),
        Route(
            "/health",
            make_endpoint("platform_web", "health", "Platform liveness check."),
            methods=["GET"],
        ),
        Route(
            "/misc/ping",
            make_endpoint("thirdparty_pkg", "ping", None),
            methods=["GET"],
        ),
    ]


@pytest.fixture()
def endpoint_factory() -> Callable:
    """Factory for endpoints that appear to live in a given package."""
    return make_endpoint
