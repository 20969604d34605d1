from __future__ import annotations

import re
from enum import StrEnum
from types import ModuleType

from pydantic import BaseModel, ConfigDict, field_validator


class ModuleState(StrEnum):
    LOADED = "loaded"
    NOT_LOADED = "not_loaded"


class ManifestEntry(BaseModel):
    """Single entry in the installed-modules manifest (modules.json)."""

    name: str
    title: str
    description: str = ""
    package: str  # Importable top-level package that owns the module's endpoints

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        # Module names become route segments: /docs/<name>/v1
        if not re.match(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$", v):
            raise ValueError(f"Invalid module name: {v!r}")
        return v

    @field_validator("package")
    @classmethod
    def validate_package(cls, v: str) -> str:
        # Ownership is decided per top-level package, so submodules are rejected
        if not v.isidentifier():
            raise ValueError(f"Package must be a top-level importable name: {v!r}")
        return v


class ModuleDescriptor(BaseModel):
    """Registry record describing one installed plugin module.

    ``code_unit`` is the imported top-level package object. Ownership checks
    compare it by identity, never by name.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    name: str
    title: str
    description: str = ""
    code_unit: ModuleType | None = None
    state: ModuleState = ModuleState.NOT_LOADED

    @property
    def is_loaded(self) -> bool:
        return self.state is ModuleState.LOADED and self.code_unit is not None
