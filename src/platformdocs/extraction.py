"""Draft-document builder over Starlette routes.

Endpoint discovery and docstring-YAML parsing are delegated to Starlette's
SchemaGenerator. This module only turns its output into a DraftDocument and
attaches the extraction-side facts annotation needs: the endpoint's code
unit and its declared-optional parameters.
"""

from __future__ import annotations

import functools
import importlib
import inspect
import sys
from typing import TYPE_CHECKING, Any, TypeVar

import structlog
from starlette.concurrency import run_in_threadpool
from starlette.routing import Route
from starlette.schemas import EndpointInfo, SchemaGenerator

from platformdocs.models.document import (
    OPENAPI_VERSION,
    DeclaredParameter,
    DraftDocument,
    Info,
    Operation,
    OperationDescriptor,
)

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping, Sequence
    from types import ModuleType

    from starlette.routing import BaseRoute

    from platformdocs.models.document import SecurityScheme

log = structlog.get_logger()

F = TypeVar("F", bound="Callable[..., Any]")

_OPTIONAL_PARAMETERS_ATTR = "__platformdocs_optional__"


def optional_parameters(*names: str) -> Callable[[F], F]:
    """Declare endpoint parameters optional regardless of what the schema says.

    The marker lives on the endpoint function, outside the generated schema;
    normalisation cross-references it by parameter name.
    """

    def decorator(func: F) -> F:
        existing = getattr(func, _OPTIONAL_PARAMETERS_ATTR, ())
        setattr(func, _OPTIONAL_PARAMETERS_ATTR, (*existing, *names))
        return func

    return decorator


def _wrapper_chain(func: Callable[..., Any]) -> list[Callable[..., Any]]:
    """Return ``func`` followed by every partial or decorator layer beneath it."""
    chain = [func]
    while True:
        if isinstance(func, functools.partial):
            func = func.func
        elif getattr(func, "__wrapped__", None) is not None:
            func = func.__wrapped__
        else:
            return chain
        if any(func is seen for seen in chain):
            return chain
        chain.append(func)


def endpoint_function(func: Callable[..., Any]) -> Callable[..., Any]:
    """The function that actually defines an endpoint, below partials and decorators."""
    return _wrapper_chain(func)[-1]


def declared_parameters(func: Callable[..., Any]) -> tuple[DeclaredParameter, ...]:
    # Markers may sit on any layer: the partial, a decorator wrapper or the function
    names: dict[str, None] = {}
    for layer in _wrapper_chain(func):
        names.update(dict.fromkeys(getattr(layer, _OPTIONAL_PARAMETERS_ATTR, ())))
    return tuple(DeclaredParameter(name=name, optional=True) for name in names)


def code_unit_of(func: Callable[..., Any]) -> ModuleType:
    """Return the top-level package object that defines ``func``."""
    func = endpoint_function(func)
    top_level = (getattr(func, "__module__", None) or "__main__").partition(".")[0]
    return sys.modules.get(top_level) or importlib.import_module(top_level)


class _RouteSchemas(SchemaGenerator):
    """SchemaGenerator that also lists endpoints wrapped in ``functools.partial``.

    Starlette routes unwrap partials when dispatching, but its schema
    discovery treats them as class endpoints and skips them.
    """

    def get_endpoints(self, routes: list[BaseRoute]) -> list[EndpointInfo]:
        endpoints: list[EndpointInfo] = []
        for route in routes:
            if (
                isinstance(route, Route)
                and route.include_in_schema
                and isinstance(route.endpoint, functools.partial)
            ):
                path = self._remove_converter(route.path)
                for method in sorted(route.methods or ["GET"]):
                    if method != "HEAD":
                        endpoints.append(EndpointInfo(path, method.lower(), route.endpoint))
                continue
            # Mounts recurse through this override
            endpoints.extend(super().get_endpoints([route]))
        return endpoints


class RouteDraftBuilder:
    """Builds the raw, unannotated document for a set of routes.

    ``include`` restricts the scope: only endpoints whose descriptor it
    accepts become operations. Calling the builder runs the (blocking)
    extraction in Starlette's threadpool.
    """

    def __init__(
        self,
        routes: Sequence[BaseRoute],
        *,
        title: str,
        version: str,
        include: Callable[[OperationDescriptor], bool] | None = None,
        security_schemes: Mapping[str, SecurityScheme] | None = None,
    ) -> None:
        self._routes = list(routes)
        self._title = title
        self._version = version
        self._include = include
        self._security_schemes = dict(security_schemes or {})
        self._schemas = _RouteSchemas(
            {"openapi": OPENAPI_VERSION, "info": {"title": title, "version": version}}
        )

    async def __call__(self) -> DraftDocument:
        return await run_in_threadpool(self.build)

    def build(self) -> DraftDocument:
        operations: list[Operation] = []
        seen: set[tuple[str, str]] = set()

        for endpoint in self._schemas.get_endpoints(self._routes):
            func = endpoint_function(endpoint.func)
            descriptor = OperationDescriptor(
                code_unit=code_unit_of(func),
                declared_parameters=declared_parameters(endpoint.func),
            )
            if self._include is not None and not self._include(descriptor):
                continue

            # Conflicting actions: the first registered endpoint wins
            key = (endpoint.path, endpoint.http_method)
            if key in seen:
                log.debug("operation_conflict_ignored", path=endpoint.path, method=endpoint.http_method)
                continue
            seen.add(key)
            operations.append(self._operation(endpoint, func, descriptor))

        return DraftDocument(
            info=Info(title=self._title, version=self._version),
            operations=operations,
            security_schemes=dict(self._security_schemes),
        )

    def _operation(
        self,
        endpoint: EndpointInfo,
        func: Callable[..., Any],
        descriptor: OperationDescriptor,
    ) -> Operation:
        metadata: dict[str, Any] = self._schemas.parse_docstring(func)

        # Prose before the YAML block (or a prose-only docstring) is the summary
        docstring = inspect.getdoc(func) or ""
        head, separator, _ = docstring.partition("---")
        if separator or not metadata:
            lines = head.strip().splitlines()
            if lines:
                metadata.setdefault("summary", lines[0])

        metadata.setdefault("operationId", func.__qualname__.replace(".", "_"))
        return Operation.model_validate(
            {
                **metadata,
                "path": endpoint.path,
                "method": endpoint.http_method,
                "descriptor": descriptor,
            }
        )
