from __future__ import annotations

from typing import Optional, Protocol

from receipt.app.schemas.context import PdfRenderContext


class ContextObserver(Protocol):
    """
    Receives every fully assembled render context.

    Observers are diagnostic only. They never see a partial context and
    production logic must never read from them.
    """

    async def observe(self, context: PdfRenderContext) -> None:
        ...


class NullContextObserver:
    """Default no-op observer."""

    async def observe(self, context: PdfRenderContext) -> None:
        return


class LastContextRecorder:
    """
    Keeps the most recently assembled context (last write wins).

    Intended for tests. Not synchronized and not a cache.
    """

    def __init__(self) -> None:
        self.last: Optional[PdfRenderContext] = None
        self.count = 0

    async def observe(self, context: PdfRenderContext) -> None:
        self.last = context
        self.count += 1

