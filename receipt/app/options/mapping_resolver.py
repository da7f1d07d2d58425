"""
Mapping resolution.

Evaluates the data paths of each mapping declaration against the
submitted form data and produces, per option list id, the parameters
passed to the option provider.

Gap policy (best effort):

- A data path that resolves to nothing is skipped. The parameter is
  omitted and resolution continues with the next pair.
- A data path with invalid syntax aborts its declaration only. The
  declaration contributes nothing; other declarations are unaffected.

A partially labelled PDF is preferred over no PDF at all.
"""

from __future__ import annotations

import json
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable

from pydantic import BaseModel

from receipt.app.errors import InvalidPathExpressionError
from receipt.app.options.path_expression import compile_path
from receipt.app.schemas.layout import MappingDeclaration
from receipt.app.schemas.options import OptionMappingContext

logger = logging.getLogger(__name__)


def as_data_tree(submitted_data: Any) -> Any:
    """Return the navigable tree form of submitted data."""
    if isinstance(submitted_data, BaseModel):
        return submitted_data.model_dump(mode="json", by_alias=True)
    return submitted_data


def canonical_string(value: Any) -> str:
    """
    Canonical string form of a resolved node.

    Strings are returned verbatim, null becomes the empty string,
    booleans are lowercase, numbers use their JSON text and containers
    are rendered as compact JSON with sorted keys.
    """
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, (int, float)):
        return json.dumps(value)
    return json.dumps(
        value,
        sort_keys=True,
        ensure_ascii=False,
        separators=(",", ":"),
        default=str,
    )


def resolve_declaration(
    declaration: MappingDeclaration,
    data_tree: Any,
) -> Dict[str, str]:
    """
    Resolve one declaration into its parameter map.

    Raises InvalidPathExpressionError if any of its data paths is
    syntactically invalid. Paths that resolve to nothing are skipped.
    """
    parameters: Dict[str, str] = {}

    for pair in declaration.pairs:
        expression = compile_path(pair.data_path)
        found, node = expression.select_one(data_tree)

        if not found:
            logger.debug(
                "mapping_path_unresolved",
                extra={
                    "component_id": declaration.component_id,
                    "options_id": declaration.options_id,
                    "data_path": pair.data_path,
                },
            )
            continue

        parameters[pair.param_name] = canonical_string(node)

    return parameters


def resolve_mappings(
    declarations: Iterable[MappingDeclaration],
    submitted_data: Any,
) -> OptionMappingContext:
    """
    Resolve all declarations against the submitted data.

    Several declarations may target the same option list id; their
    parameters are merged in declaration order, so the last declaration
    wins for a parameter name they share.
    """
    data_tree = as_data_tree(submitted_data)
    context: OptionMappingContext = {}

    for declaration in declarations:
        try:
            parameters = resolve_declaration(declaration, data_tree)
        except InvalidPathExpressionError as exc:
            logger.warning(
                "Skipping mapping of component '%s' for options '%s': %s",
                declaration.component_id,
                declaration.options_id,
                exc,
            )
            continue

        context.setdefault(declaration.options_id, {}).update(parameters)

    return context
