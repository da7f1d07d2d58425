"""
Structured concurrency helpers.

anyio task groups report child failures as exception groups. Callers of
the receipt engine expect the domain exception itself (e.g. an
ExternalServiceError from one of several concurrent lookups), so a
group holding exactly one failure is unwrapped.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterator

import anyio
from anyio.abc import TaskGroup


def _leaves(group: BaseExceptionGroup) -> Iterator[BaseException]:
    for exc in group.exceptions:
        if isinstance(exc, BaseExceptionGroup):
            yield from _leaves(exc)
        else:
            yield exc


@asynccontextmanager
async def task_group() -> AsyncIterator[TaskGroup]:
    """
    anyio task group that re-raises a single child failure unwrapped.

    Groups with several failures propagate unchanged.
    """
    try:
        async with anyio.create_task_group() as tg:
            yield tg
    except BaseExceptionGroup as group:
        leaves = list(_leaves(group))
        if len(leaves) == 1:
            raise leaves[0]
        raise
