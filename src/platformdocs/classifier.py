"""Operation ownership: which module, if any, owns an endpoint.

Pure business logic with no logging, state or I/O.
"""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from platformdocs.models.document import OperationDescriptor
    from platformdocs.models.modules import ModuleDescriptor


class Owner(Enum):
    """Classification outcomes that are not a module."""

    PLATFORM = "platform"
    UNOWNED = "unowned"


def classify(
    descriptor: OperationDescriptor,
    modules: Sequence[ModuleDescriptor],
    *,
    platform_package: str,
) -> ModuleDescriptor | Owner:
    """Return the module owning ``descriptor``, or an ``Owner`` marker.

    Module ownership is an identity test on the code unit (the imported
    package object). If two modules share a code unit the first in registry
    order wins. Only then is the platform package matched, by name.
    """
    code_unit = descriptor.code_unit
    for module in modules:
        if module.is_loaded and module.code_unit is code_unit:
            return module

    if code_unit.__name__ == platform_package:
        return Owner.PLATFORM
    return Owner.UNOWNED
