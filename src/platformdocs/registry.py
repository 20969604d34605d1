"""Installed-module registry: manifest loading and route collection."""

from __future__ import annotations

import importlib
import json
from typing import TYPE_CHECKING

import structlog
from pydantic import ValidationError

from platformdocs.errors import ErrorCode, PlatformDocsError
from platformdocs.models.modules import ManifestEntry, ModuleDescriptor, ModuleState

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path
    from types import ModuleType

    from starlette.routing import BaseRoute

    from platformdocs.protocols import ModuleRegistryProtocol

log = structlog.get_logger()

# Attribute a module package exports to contribute HTTP routes to the host
ROUTES_ATTRIBUTE = "routes"


class ModuleRegistry:
    """In-memory module registry implementing ModuleRegistryProtocol.

    Keeps registration order, which drives tag order in generated documents.
    """

    def __init__(self, modules: Iterable[ModuleDescriptor] = ()) -> None:
        self._modules: list[ModuleDescriptor] = []
        for module in modules:
            self.add(module)

    def add(self, module: ModuleDescriptor) -> None:
        if any(m.name == module.name for m in self._modules):
            log.warning("module_duplicate_ignored", module=module.name)
            return
        self._modules.append(module)

    def get_modules(self) -> list[ModuleDescriptor]:
        return list(self._modules)


def _import_code_unit(package: str) -> ModuleType | None:
    try:
        return importlib.import_module(package)
    except Exception:
        log.warning("module_import_failed", package=package, exc_info=True)
        return None


def describe_module(entry: ManifestEntry) -> ModuleDescriptor:
    """Import the entry's package and build its descriptor.

    An import failure yields a not-loaded descriptor rather than an error, so
    one broken module never takes the host down.
    """
    code_unit = _import_code_unit(entry.package)
    return ModuleDescriptor(
        name=entry.name,
        title=entry.title,
        description=entry.description,
        code_unit=code_unit,
        state=ModuleState.LOADED if code_unit is not None else ModuleState.NOT_LOADED,
    )


def load_module_manifest(path: Path) -> list[ModuleDescriptor]:
    """Load module descriptors from a JSON manifest.

    A missing manifest means no modules are installed. A manifest that exists
    but cannot be parsed raises INVALID_MANIFEST.
    """
    if not path.is_file():
        log.info("module_manifest_missing", path=str(path))
        return []

    try:
        raw_entries = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(raw_entries, list):
            raise ValueError("manifest must be a JSON array of module entries")
        entries = [ManifestEntry(**raw) for raw in raw_entries]
    except (ValueError, TypeError, ValidationError) as exc:
        raise PlatformDocsError(
            code=ErrorCode.INVALID_MANIFEST,
            message=f"Module manifest {path} is invalid: {exc}",
            suggestion="Fix the manifest: a JSON array of {name, title, description, package}.",
            recoverable=False,
        ) from exc

    modules = [describe_module(entry) for entry in entries]
    log.info(
        "module_manifest_loaded",
        path=str(path),
        modules=len(modules),
        loaded=sum(1 for m in modules if m.is_loaded),
    )
    return modules


def collect_module_routes(
    registry: ModuleRegistryProtocol,
    *,
    platform_package: str,
) -> list[BaseRoute]:
    """Gather the routes exported by the platform package and each loaded module."""
    routes: list[BaseRoute] = []

    platform = _import_code_unit(platform_package)
    if platform is not None:
        routes.extend(getattr(platform, ROUTES_ATTRIBUTE, []))

    for module in registry.get_modules():
        if not module.is_loaded:
            continue
        module_routes = getattr(module.code_unit, ROUTES_ATTRIBUTE, None)
        if module_routes is None:
            log.debug("module_without_routes", module=module.name)
            continue
        routes.extend(module_routes)
    return routes
