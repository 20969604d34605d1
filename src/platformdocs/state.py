"""Application state container.

AppState is created once in create_app() and shared by every document route.
The document cache and the per-scope generators live here so hosts can reach
them, e.g. to invalidate a scope after hot-loading a module.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from platformdocs.cache import ScopedDocumentCache

if TYPE_CHECKING:
    from platformdocs.config import Settings
    from platformdocs.generator import DocumentGenerator
    from platformdocs.lifecycle import ExportImportHooks
    from platformdocs.protocols import ModuleRegistryProtocol, SettingsStoreProtocol


@dataclass
class AppState:
    """Holds all shared runtime state. Passed to every request handler."""

    settings: Settings
    registry: ModuleRegistryProtocol
    settings_store: SettingsStoreProtocol
    document_cache: ScopedDocumentCache = field(default_factory=ScopedDocumentCache)
    # scope key ("" = whole platform) → generator invoked on cache miss
    generators: dict[str, DocumentGenerator] = field(default_factory=dict)
    export_hooks: ExportImportHooks | None = None
