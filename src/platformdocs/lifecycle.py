"""Hooks the host's packaging subsystem calls during platform export and import.

The documentation module owns no exportable data, so both transfers are no-ops.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import IO, TYPE_CHECKING, Any

from platformdocs.settings_store import EXPORT_DESCRIPTION_KEY

if TYPE_CHECKING:
    from platformdocs.protocols import SettingsStoreProtocol

ProgressCallback = Callable[[dict[str, Any]], None]


class ExportImportHooks:
    def __init__(self, settings_store: SettingsStoreProtocol) -> None:
        self._settings_store = settings_store

    @property
    def export_description(self) -> str:
        return self._settings_store.get_value(EXPORT_DESCRIPTION_KEY, "")

    def do_export(
        self, out_stream: IO[bytes], manifest: dict[str, Any], progress: ProgressCallback
    ) -> None:
        pass

    def do_import(
        self, in_stream: IO[bytes], manifest: dict[str, Any], progress: ProgressCallback
    ) -> None:
        pass
