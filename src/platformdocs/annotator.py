"""Document- and operation-level metadata for generated documents.

Runs on every freshly built draft before it is cached. Every field written
here is a flat overwrite, so running it twice gives the same result as once.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from platformdocs.classifier import Owner, classify
from platformdocs.models.document import Contact, License, Tag
from platformdocs.settings_store import DEFAULT_API_KEY_KEY, DESCRIPTION_KEY

if TYPE_CHECKING:
    from platformdocs.config import DocumentSettings
    from platformdocs.models.document import DraftDocument, Operation, OperationDescriptor
    from platformdocs.models.modules import ModuleDescriptor
    from platformdocs.protocols import ModuleRegistryProtocol, SettingsStoreProtocol


class DocumentAnnotator:
    """Applies info metadata and module-derived tags to draft documents."""

    def __init__(
        self,
        registry: ModuleRegistryProtocol,
        settings_store: SettingsStoreProtocol,
        documents: DocumentSettings,
    ) -> None:
        self._registry = registry
        self._settings_store = settings_store
        self._documents = documents

    def _loaded_modules(self) -> list[ModuleDescriptor]:
        return [m for m in self._registry.get_modules() if m.is_loaded]

    def describe(self) -> str:
        """Document description from the settings store, empty by default."""
        description = self._settings_store.get_value(DESCRIPTION_KEY, "")
        api_key = self._settings_store.get_value(DEFAULT_API_KEY_KEY, "")
        if not api_key:
            return description

        hint = f"For this sample, you can use the `{api_key}` key to test the authorization filters."
        return f"{description}\n\n{hint}" if description else hint

    def annotate_document(self, draft: DraftDocument) -> None:
        """Set info metadata and replace the tag list: modules first, platform last."""
        draft.info.description = self.describe()
        draft.info.contact = Contact(**self._documents.contact.model_dump())
        draft.info.license = License(**self._documents.license.model_dump())
        draft.info.terms_of_service = ""

        tags = [Tag(name=m.title, description=m.description) for m in self._loaded_modules()]
        platform_tag = self._documents.platform_tag
        tags.append(Tag(name=platform_tag.name, description=platform_tag.description))
        draft.tags = tags

    def annotate_operation(
        self,
        operation: Operation,
        descriptor: OperationDescriptor | None = None,
    ) -> None:
        """Tag ``operation`` with its owner's title. Unowned operations keep their tags."""
        if descriptor is None:
            descriptor = operation.descriptor
        if descriptor is None:
            return

        owner = classify(
            descriptor,
            self._loaded_modules(),
            platform_package=self._documents.platform_package,
        )
        if owner is Owner.UNOWNED:
            return
        if owner is Owner.PLATFORM:
            operation.tags = [self._documents.platform_tag.name]
            return
        operation.tags = [owner.title]
