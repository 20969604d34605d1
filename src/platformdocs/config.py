"""Configuration loading.

Settings are loaded in priority order (highest first):
  1. Environment variables  (PLATFORMDOCS__SERVER__PORT=9090)
  2. platformdocs.yaml      (searched in cwd, then platform config dir)
  3. Hardcoded defaults

The config file is optional: all fields have sensible defaults.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

_DEFAULT_DATA_DIR = platformdirs.user_data_dir("platformdocs")
_DEFAULT_MANIFEST_PATH = str(Path(_DEFAULT_DATA_DIR) / "modules.json")


def _find_config_file() -> str | None:
    """Return the path of the first platformdocs.yaml found, or None."""
    candidates = [
        Path("platformdocs.yaml"),
        Path(platformdirs.user_config_dir("platformdocs")) / "platformdocs.yaml",
    ]
    for path in candidates:
        if path.exists():
            return str(path)
    return None


class ServerSettings(BaseModel):
    host: str = "0.0.0.0"
    port: int = 8080
    # Prepended to every documentation route, e.g. "/api" → /api/docs/v1
    route_prefix: str = ""


class TagSettings(BaseModel):
    name: str = "Platform"
    description: str = "Platform functionality represent common resources and operations"


class ContactSettings(BaseModel):
    name: str = "Platform team"
    email: str = "support@example.com"
    url: str = "https://example.com"


class LicenseSettings(BaseModel):
    name: str = "Open Software License 3.0"
    url: str = "https://example.com/opensourcelicense"


class ApiKeySettings(BaseModel):
    scheme: str = "apiKey"
    name: str = "api_key"
    location: Literal["header", "query", "cookie"] = "header"
    description: str = "API Key Authentication"


class DocumentSettings(BaseModel):
    api_version: str = "v1"
    title: str = "Platform REST API documentation"
    module_title_template: str = "{module} REST API documentation"
    # Top-level package whose endpoints are tagged as platform core
    platform_package: str = "platform_web"
    platform_tag: TagSettings = TagSettings()
    contact: ContactSettings = ContactSettings()
    license: LicenseSettings = LicenseSettings()
    api_key: ApiKeySettings = ApiKeySettings()
    pretty_print: bool = True


class ModulesSettings(BaseModel):
    manifest_path: str = _DEFAULT_MANIFEST_PATH


class LoggingSettings(BaseModel):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["json", "text"] = "json"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        # Double-underscore separates nesting: PLATFORMDOCS__SERVER__PORT=9090
        env_prefix="PLATFORMDOCS__",
        env_nested_delimiter="__",
        yaml_file=_find_config_file(),
        yaml_file_encoding="utf-8",
    )

    server: ServerSettings = ServerSettings()
    documents: DocumentSettings = DocumentSettings()
    modules: ModulesSettings = ModulesSettings()
    logging: LoggingSettings = LoggingSettings()
    # Backing data for the settings store (see settings_store.py)
    values: dict[str, str] = {}

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
        **kwargs: Any,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,  # Constructor args (highest priority)
            env_settings,  # Environment variables
            YamlConfigSettingsSource(settings_cls),  # YAML file
            # dotenv and file secrets intentionally excluded
        )
