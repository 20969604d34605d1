"""Per-scope document generation: draft → annotate → normalise."""

from __future__ import annotations

from typing import TYPE_CHECKING

import structlog

from platformdocs.errors import ErrorCode, PlatformDocsError
from platformdocs.normalizer import normalize_optional_parameters

if TYPE_CHECKING:
    from platformdocs.annotator import DocumentAnnotator
    from platformdocs.models.document import DraftDocument
    from platformdocs.protocols import DocumentBuilder

log = structlog.get_logger()


class DocumentGenerator:
    """Zero-argument builder the cache invokes on a miss for one scope."""

    def __init__(
        self,
        scope: str,
        draft_builder: DocumentBuilder,
        annotator: DocumentAnnotator,
    ) -> None:
        self.scope = scope
        self._draft_builder = draft_builder
        self._annotator = annotator

    async def __call__(self) -> DraftDocument:
        try:
            draft = await self._draft_builder()
            self._annotate(draft)
        except Exception as exc:
            raise PlatformDocsError(
                code=ErrorCode.DOCUMENT_BUILD_FAILED,
                message=f"Failed to generate the API document for scope {self.scope!r}: {exc}",
                suggestion="Check the endpoint metadata and installed modules for this scope, then retry.",
                recoverable=True,
            ) from exc

        log.debug("document_annotated", scope=self.scope, tags=len(draft.tags))
        return draft

    def _annotate(self, draft: DraftDocument) -> None:
        self._annotator.annotate_document(draft)
        for operation in draft.operations:
            if operation.descriptor is None:
                continue
            self._annotator.annotate_operation(operation)
            normalize_optional_parameters(operation, operation.descriptor.declared_parameters)
