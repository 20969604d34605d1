"""Key-value settings lookup backed by the ``values`` section of Settings."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping

DESCRIPTION_KEY = "PlatformDocs.Description"
DEFAULT_API_KEY_KEY = "PlatformDocs.DefaultApiKey"
EXPORT_DESCRIPTION_KEY = "PlatformDocs.ExportImport.Description"


class ConfigSettingsStore:
    """In-memory settings store implementing SettingsStoreProtocol.

    A missing value is never an error: the caller's default is returned.
    """

    def __init__(self, values: Mapping[str, str]) -> None:
        self._values = dict(values)

    def get_value(self, name: str, default: str = "") -> str:
        return self._values.get(name, default)
