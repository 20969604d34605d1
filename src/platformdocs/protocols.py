"""Protocol interfaces for the collaborators the document layer consumes.

Annotation, caching and request handling reference these protocols, not the
concrete implementations. This allows:
- Tests to use lightweight in-memory implementations
- Hosts to plug in their own module registry or settings backend
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from platformdocs.models.document import DraftDocument
    from platformdocs.models.modules import ModuleDescriptor


# Zero-argument callable producing one scope's document. Used only on cache miss.
DocumentBuilder = Callable[[], Awaitable["DraftDocument"]]


class ModuleRegistryProtocol(Protocol):
    """Interface for the registry of installed modules."""

    def get_modules(self) -> list[ModuleDescriptor]: ...


class SettingsStoreProtocol(Protocol):
    """Interface for the key-value settings lookup."""

    def get_value(self, name: str, default: str = "") -> str: ...
