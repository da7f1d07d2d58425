"""
Option dictionary aggregation.

For each distinct option list id referenced by a layout, queries the
option provider with the id's resolved mapping parameters and merges
the returned options into a label -> value dictionary.

Ordering guarantee:
Provider calls run concurrently (bounded), but each result is buffered
in the slot of its id and the dictionary is built afterwards in
discovery order. Completion order never influences the output.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

import anyio

from receipt.app.options.layout_parser import unique_in_order
from receipt.app.schemas.options import (
    AppOption,
    AppOptions,
    OptionMappingContext,
    OptionsDictionary,
)
from receipt.app.services.interfaces import OptionsProvider
from receipt.app.utils.concurrency import task_group

logger = logging.getLogger(__name__)


DEFAULT_MAX_CONCURRENCY = 8


def labels_to_values(options: Iterable[AppOption]) -> Dict[str, str]:
    """Map labels to values in provider order; the first label wins."""
    labelled: Dict[str, str] = {}
    for option in options:
        if option.label not in labelled:
            labelled[option.label] = option.value
    return labelled


async def build_options_dictionary(
    option_ids: Iterable[str],
    language: str,
    mapping_context: OptionMappingContext,
    provider: OptionsProvider,
    *,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> OptionsDictionary:
    """
    Resolve option lists and merge them into an OptionsDictionary.

    Ids for which the provider reports no list are omitted. Provider
    failures propagate; no partial dictionary is returned.
    """
    ids: List[str] = unique_in_order(option_ids)
    buffered: List[Optional[AppOptions]] = [None] * len(ids)
    limiter = anyio.CapacityLimiter(max_concurrency)

    async def _fetch(slot: int, options_id: str) -> None:
        parameters = dict(mapping_context.get(options_id, {}))
        async with limiter:
            buffered[slot] = await provider.get_options(
                options_id,
                language,
                parameters,
            )

    async with task_group() as tg:
        for slot, options_id in enumerate(ids):
            tg.start_soon(_fetch, slot, options_id)

    dictionary: OptionsDictionary = {}

    for options_id, app_options in zip(ids, buffered):
        if app_options is None or app_options.options is None:
            logger.debug(
                "options_not_found",
                extra={"options_id": options_id, "language": language},
            )
            continue
        dictionary[options_id] = labels_to_values(app_options.options)

    return dictionary
