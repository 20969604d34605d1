"""In-memory per-scope document cache with single-flight builds.

Each scope key ("" for the whole platform, a module name otherwise) maps to
one build task. The first caller for a key starts the task; every concurrent
caller awaits that same task, so a document is built at most once at a time
per key. Finished tasks are kept and their result is returned directly.

Failures are never cached. The done-callback drops a failed task before the
callers awaiting it are woken, so the next request for that key starts a
fresh build while every waiter of the failed build still sees the error.
"""

from __future__ import annotations

import asyncio
import time
from functools import partial
from typing import TYPE_CHECKING

import structlog

if TYPE_CHECKING:
    from platformdocs.models.document import DraftDocument
    from platformdocs.protocols import DocumentBuilder

log = structlog.get_logger()

PLATFORM_SCOPE = ""


class ScopedDocumentCache:
    """Memoizes one finished document per scope key for the process lifetime."""

    def __init__(self) -> None:
        self._tasks: dict[str, asyncio.Task[DraftDocument]] = {}

    async def get_or_build(self, scope: str, builder: DocumentBuilder) -> DraftDocument:
        """Return the cached document for ``scope``, building it on first use."""
        task = self._tasks.get(scope)
        if task is None:
            log.info("document_build_started", scope=scope)
            task = asyncio.create_task(self._run_build(scope, builder))
            self._tasks[scope] = task
            # Registered before any waiter's callback, so it always runs first
            task.add_done_callback(partial(self._on_build_done, scope))
        elif task.done():
            log.debug("document_cache_hit", scope=scope)
        else:
            log.debug("document_build_joined", scope=scope)

        # Shield: a cancelled request must not cancel the shared build
        return await asyncio.shield(task)

    async def _run_build(self, scope: str, builder: DocumentBuilder) -> DraftDocument:
        started = time.perf_counter()
        document = await builder()
        log.info(
            "document_build_complete",
            scope=scope,
            operations=len(document.operations),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return document

    def _on_build_done(self, scope: str, task: asyncio.Task[DraftDocument]) -> None:
        if not task.cancelled() and task.exception() is None:
            return

        # Only drop our own task: the key may have been invalidated and rebuilt
        if self._tasks.get(scope) is task:
            del self._tasks[scope]
        if task.cancelled():
            log.warning("document_build_cancelled", scope=scope)
        else:
            log.warning("document_build_failed", scope=scope, exc_info=task.exception())

    def invalidate(self, scope: str) -> bool:
        """Forget the document for ``scope``. Returns True if an entry was dropped.

        A build already in flight keeps running and its current waiters still
        receive its result; the next call for the key starts a fresh build.
        """
        dropped = self._tasks.pop(scope, None) is not None
        if dropped:
            log.info("document_cache_invalidated", scope=scope)
        return dropped

    def clear(self) -> None:
        """Forget every scope's document."""
        count = len(self._tasks)
        self._tasks.clear()
        log.info("document_cache_cleared", scopes=count)

    async def aclose(self) -> None:
        """Cancel builds still in flight and forget every document. Called at shutdown."""
        pending = [task for task in self._tasks.values() if not task.done()]
        for task in pending:
            task.cancel()
        await asyncio.gather(*pending, return_exceptions=True)
        self.clear()

    def scopes(self) -> list[str]:
        """Scope keys with a finished or in-flight document."""
        return list(self._tasks)
