"""In-progress OpenAPI document and the metadata the extraction step attaches to it."""

from __future__ import annotations

from types import ModuleType
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

OPENAPI_VERSION = "3.0.3"


class DeclaredParameter(BaseModel):
    """A parameter as declared on the endpoint, including markers the schema never sees."""

    name: str
    optional: bool = False


class OperationDescriptor(BaseModel):
    """Extraction-side facts about one endpoint. Read-only to annotation."""

    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    code_unit: ModuleType
    declared_parameters: tuple[DeclaredParameter, ...] = ()


class Contact(BaseModel):
    name: str
    email: str
    url: str


class License(BaseModel):
    name: str
    url: str


class Info(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    version: str
    description: str = ""
    terms_of_service: str | None = Field(default=None, alias="termsOfService")
    contact: Contact | None = None
    license: License | None = None


class Tag(BaseModel):
    name: str
    description: str = ""


class SecurityScheme(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: str = "apiKey"
    name: str
    location: str = Field(default="header", alias="in")
    description: str | None = None


class Parameter(BaseModel):
    # Unknown OpenAPI keys from endpoint metadata pass through untouched
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    name: str
    location: str = Field(default="query", alias="in")
    required: bool = False
    description: str | None = None
    schema_: dict[str, Any] | None = Field(default=None, alias="schema")


class Operation(BaseModel):
    """One documented endpoint (method + path) of a draft document."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    path: str = Field(exclude=True)
    method: str = Field(exclude=True)
    operation_id: str | None = Field(default=None, alias="operationId")
    summary: str | None = None
    description: str | None = None
    tags: list[str] = []
    parameters: list[Parameter] = []
    descriptor: OperationDescriptor | None = Field(default=None, exclude=True)


class DraftDocument(BaseModel):
    """Mutable API description for one scope.

    Annotation and normalisation rewrite it in place exactly once, before it
    is cached. After that it is treated as read-only.
    """

    openapi: str = OPENAPI_VERSION
    info: Info
    tags: list[Tag] = []
    operations: list[Operation] = []
    security_schemes: dict[str, SecurityScheme] = {}

    def to_openapi(self) -> dict[str, Any]:
        """Serialise to an OpenAPI mapping with operations grouped under ``paths``."""
        paths: dict[str, dict[str, Any]] = {}
        for operation in self.operations:
            paths.setdefault(operation.path, {})[operation.method] = operation.model_dump(
                mode="json", by_alias=True, exclude_none=True
            )

        document: dict[str, Any] = {
            "openapi": self.openapi,
            "info": self.info.model_dump(mode="json", by_alias=True, exclude_none=True),
        }
        if self.tags:
            document["tags"] = [tag.model_dump(mode="json") for tag in self.tags]
        document["paths"] = paths
        if self.security_schemes:
            document["components"] = {
                "securitySchemes": {
                    key: scheme.model_dump(mode="json", by_alias=True, exclude_none=True)
                    for key, scheme in self.security_schemes.items()
                }
            }
        return document
