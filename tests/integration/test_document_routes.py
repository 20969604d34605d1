"""End-to-end tests for the document routes over HTTP."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

from platformdocs.config import Settings
from platformdocs.extraction import RouteDraftBuilder
from platformdocs.models.modules import ModuleDescriptor
from platformdocs.registry import ModuleRegistry
from platformdocs.server import create_app

if TYPE_CHECKING:
    import pytest
    from starlette.applications import Starlette

    from platformdocs.state import AppState


def _count_builds(monkeypatch: pytest.MonkeyPatch, *, failures: int = 0) -> list[int]:
    """Wrap RouteDraftBuilder.build to count calls and optionally fail first."""
    calls: list[int] = []
    original = RouteDraftBuilder.build

    def build(self: RouteDraftBuilder):
        calls.append(1)
        if len(calls) <= failures:
            raise ValueError("malformed endpoint metadata")
        return original(self)

    monkeypatch.setattr(RouteDraftBuilder, "build", build)
    return calls


class TestPlatformDocument:
    async def test_serves_whole_platform(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/docs/v1")
        assert response.status_code == 200
        document = response.json()

        assert document["info"]["title"] == "Platform REST API documentation"
        assert document["info"]["description"] == "Platform API"
        assert [t["name"] for t in document["tags"]] == ["Alpha", "Beta", "Platform"]
        assert set(document["paths"]) == {
            "/alpha/items",
            "/beta/orders/{order_id}",
            "/health",
            "/misc/ping",
        }
        assert "/docs/{api_version}" not in document["paths"]

    async def test_operation_tags(self, client: httpx.AsyncClient) -> None:
        paths = (await client.get("/docs/v1")).json()["paths"]
        assert paths["/alpha/items"]["get"]["tags"] == ["Alpha"]
        assert paths["/beta/orders/{order_id}"]["get"]["tags"] == ["Beta"]
        assert paths["/health"]["get"]["tags"] == ["Platform"]
        assert paths["/misc/ping"]["get"]["tags"] == []

    async def test_optional_parameter_not_required(self, client: httpx.AsyncClient) -> None:
        paths = (await client.get("/docs/v1")).json()["paths"]
        parameters = {p["name"]: p for p in paths["/alpha/items"]["get"]["parameters"]}
        assert parameters["filter"]["required"] is False
        assert parameters["Filter"]["required"] is True

    async def test_servers_reflect_request_root(self, client: httpx.AsyncClient) -> None:
        document = (await client.get("/docs/v1")).json()
        assert document["servers"] == [{"url": "http://testserver/"}]

    async def test_api_key_scheme_advertised(self, client: httpx.AsyncClient) -> None:
        document = (await client.get("/docs/v1")).json()
        scheme = document["components"]["securitySchemes"]["apiKey"]
        assert scheme["in"] == "header"
        assert scheme["name"] == "api_key"

    async def test_pretty_printed(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/docs/v1")
        assert response.text.startswith('{\n  "openapi"')

    async def test_unknown_version_returns_404_envelope(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/docs/v2")
        assert response.status_code == 404
        error = response.json()["error"]
        assert error["code"] == "DOCUMENT_NOT_FOUND"
        assert error["recoverable"] is False


class TestModuleDocuments:
    async def test_module_document_contains_only_its_operations(
        self, client: httpx.AsyncClient
    ) -> None:
        document = (await client.get("/docs/alpha/v1")).json()
        assert document["info"]["title"] == "alpha REST API documentation"
        assert list(document["paths"]) == ["/alpha/items"]
        assert document["paths"]["/alpha/items"]["get"]["tags"] == ["Alpha"]

    async def test_other_module_document(self, client: httpx.AsyncClient) -> None:
        document = (await client.get("/docs/beta/v1")).json()
        assert list(document["paths"]) == ["/beta/orders/{order_id}"]

    async def test_unknown_module_has_no_route(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/docs/gamma/v1")
        assert response.status_code == 404

    async def test_not_loaded_module_gets_no_route(
        self, settings: Settings, sample_modules, api_routes
    ) -> None:
        registry = ModuleRegistry([*sample_modules, ModuleDescriptor(name="gamma", title="Gamma")])
        app = create_app(settings, registry=registry, api_routes=api_routes)
        assert "gamma" not in app.state.platformdocs.generators

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            assert (await client.get("/docs/gamma/v1")).status_code == 404

    async def test_module_api_routes_still_served(self, client: httpx.AsyncClient) -> None:
        response = await client.get("/alpha/items")
        assert response.status_code == 200


class TestCaching:
    async def test_documents_built_once_per_scope(
        self,
        client: httpx.AsyncClient,
        app_state: AppState,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        calls = _count_builds(monkeypatch)

        first = (await client.get("/docs/v1")).json()
        second = (await client.get("/docs/v1")).json()
        await client.get("/docs/alpha/v1")

        assert first == second
        assert len(calls) == 2
        assert sorted(app_state.document_cache.scopes()) == ["", "alpha"]

    async def test_concurrent_requests_share_one_build(
        self, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = _count_builds(monkeypatch)

        responses = await asyncio.gather(*(client.get("/docs/beta/v1") for _ in range(5)))

        assert {r.status_code for r in responses} == {200}
        assert len(calls) == 1

    async def test_build_failure_is_not_cached(
        self, client: httpx.AsyncClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        calls = _count_builds(monkeypatch, failures=1)

        failed = await client.get("/docs/v1")
        assert failed.status_code == 500
        error = failed.json()["error"]
        assert error["code"] == "DOCUMENT_BUILD_FAILED"
        assert error["recoverable"] is True

        retried = await client.get("/docs/v1")
        assert retried.status_code == 200
        assert len(calls) == 2

    async def test_invalidate_regenerates(
        self,
        client: httpx.AsyncClient,
        app_state: AppState,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        calls = _count_builds(monkeypatch)

        await client.get("/docs/alpha/v1")
        app_state.document_cache.invalidate("alpha")
        await client.get("/docs/alpha/v1")

        assert len(calls) == 2


class TestRoutePrefix:
    async def test_prefix_applied(self, registry, api_routes) -> None:
        settings = Settings(server={"route_prefix": "api/"}, documents={"pretty_print": False})
        app: Starlette = create_app(settings, registry=registry, api_routes=api_routes)

        async with httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://testserver"
        ) as client:
            assert (await client.get("/api/docs/v1")).status_code == 200
            assert (await client.get("/api/docs/alpha/v1")).status_code == 200
            assert (await client.get("/docs/v1")).status_code == 404
