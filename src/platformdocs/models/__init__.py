from __future__ import annotations

from platformdocs.models.document import (
    Contact,
    DeclaredParameter,
    DraftDocument,
    Info,
    License,
    Operation,
    OperationDescriptor,
    Parameter,
    SecurityScheme,
    Tag,
)
from platformdocs.models.modules import ManifestEntry, ModuleDescriptor, ModuleState

__all__ = [
    # modules
    "ManifestEntry",
    "ModuleDescriptor",
    "ModuleState",
    # document
    "Contact",
    "DeclaredParameter",
    "DraftDocument",
    "Info",
    "License",
    "Operation",
    "OperationDescriptor",
    "Parameter",
    "SecurityScheme",
    "Tag",
]
