"""
Layout document parsing.

Two independent extractions run against the serialized form layouts:

- Mapping discovery: components of a single layout document (at a
  given component location) or of every page of a form layout set that
  declare a ``mapping`` object. Each becomes a typed
  MappingDeclaration, validated here so that nothing downstream
  dispatches over arbitrary object shapes.

- Option reference discovery: every literal ``optionsId`` string
  anywhere in the document. This is broader than mapping discovery;
  most option lists are referenced without a mapping.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Iterable, Iterator, List, Mapping, Optional

from receipt.app.errors import InvalidPathExpressionError, MalformedLayoutError
from receipt.app.options.path_expression import compile_path
from receipt.app.schemas.layout import MappingDeclaration, MappingPair

logger = logging.getLogger(__name__)


OPTIONS_ID_FIELD = "optionsId"
MAPPING_FIELD = "mapping"
DEFAULT_COMPONENTS_PATH = "FormLayout.data.layout"
PAGE_COMPONENTS_PATH = "data.layout"


def load_layout(layout_json: str) -> Any:
    """Parse layout text, raising MalformedLayoutError on invalid JSON."""
    if not isinstance(layout_json, (str, bytes, bytearray)):
        raise MalformedLayoutError(
            f"Layout document must be text, got {type(layout_json).__name__}"
        )
    try:
        return json.loads(layout_json)
    except ValueError as exc:
        raise MalformedLayoutError(
            f"Layout document is not valid JSON: {exc}"
        ) from exc


def parse_mapping_declarations(
    layout_json: str,
    *,
    components_path: str = DEFAULT_COMPONENTS_PATH,
) -> List[MappingDeclaration]:
    """
    Extract the mapping declarations of a layout document.

    Raises MalformedLayoutError if the document is not valid JSON, the
    component array is absent, or a mapped component lacks a string
    ``id`` or ``optionsId`` or binds a data path to a non-string
    parameter name. A document without mapped components yields an
    empty list.
    """
    document = load_layout(layout_json)

    declarations = _declarations_at(document, components_path)
    if declarations is None:
        raise MalformedLayoutError(
            f"Layout document has no component array at '{components_path}'"
        )

    logger.debug(
        "layout_mappings_parsed",
        extra={
            "components_path": components_path,
            "mapped_components": len(declarations),
        },
    )

    return declarations


def parse_page_mapping_declarations(
    form_layouts: Mapping[str, Any],
) -> List[MappingDeclaration]:
    """
    Extract the mapping declarations of every page of a form layout set.

    ``form_layouts`` maps page names to page documents, each holding its
    components at ``data.layout``. Pages are visited in order. A page
    without a component array has no mapped components; a component
    array that is not an array is malformed.
    """
    declarations: List[MappingDeclaration] = []

    for page_name, page in form_layouts.items():
        page_declarations = _declarations_at(page, PAGE_COMPONENTS_PATH)
        if page_declarations is None:
            logger.debug("Page '%s' has no component array", page_name)
            continue
        declarations.extend(page_declarations)

    logger.debug(
        "layout_mappings_parsed",
        extra={
            "pages": len(form_layouts),
            "mapped_components": len(declarations),
        },
    )

    return declarations


def _declarations_at(
    document: Any,
    components_path: str,
) -> Optional[List[MappingDeclaration]]:
    """Declarations of the component array at ``components_path``, None if absent."""
    try:
        location = compile_path(components_path)
        mapped = compile_path(f"{components_path}[?(@.{MAPPING_FIELD})]")
    except InvalidPathExpressionError as exc:
        raise MalformedLayoutError(
            f"Component location '{components_path}' is not a valid path"
        ) from exc

    found, components = location.select_one(document)
    if not found:
        return None
    if not isinstance(components, list):
        raise MalformedLayoutError(
            f"Components at '{components_path}' are a "
            f"{type(components).__name__}; expected an array"
        )

    declarations: List[MappingDeclaration] = []

    for component in mapped.select(document):
        mapping = component[MAPPING_FIELD]
        if mapping is None:
            continue
        if not isinstance(mapping, dict):
            raise MalformedLayoutError(
                f"Component '{component.get('id')}' declares a "
                f"{type(mapping).__name__} mapping; expected an object"
            )
        declarations.append(_declaration_from_component(component, mapping))

    return declarations


def _declaration_from_component(
    component: dict,
    mapping: dict,
) -> MappingDeclaration:
    component_id = component.get("id")
    if not isinstance(component_id, str) or not component_id:
        raise MalformedLayoutError("Mapped component has no string 'id'")

    options_id = component.get(OPTIONS_ID_FIELD)
    if not isinstance(options_id, str) or not options_id:
        raise MalformedLayoutError(
            f"Component '{component_id}' declares a mapping "
            f"but no '{OPTIONS_ID_FIELD}'"
        )

    pairs = []
    for data_path, param_name in mapping.items():
        if not isinstance(param_name, str) or not param_name:
            raise MalformedLayoutError(
                f"Component '{component_id}' maps '{data_path}' to a "
                "non-string parameter name"
            )
        if not data_path:
            raise MalformedLayoutError(
                f"Component '{component_id}' maps an empty data path"
            )
        pairs.append(MappingPair(data_path=data_path, param_name=param_name))

    return MappingDeclaration(
        component_id=component_id,
        options_id=options_id,
        pairs=tuple(pairs),
    )


def parse_option_references(layout_json: str) -> List[str]:
    """
    Collect every literal option list id referenced in a layout.

    Walks the entire document and returns, in document order, each
    string bound to the ``optionsId`` field. Duplicates are kept;
    callers deduplicate with ``unique_in_order``.
    """
    document = load_layout(layout_json)
    return list(_walk_option_ids(document))


def _walk_option_ids(node: Any) -> Iterator[str]:
    if isinstance(node, dict):
        for key, value in node.items():
            if key == OPTIONS_ID_FIELD and isinstance(value, str):
                yield value
            else:
                yield from _walk_option_ids(value)
    elif isinstance(node, list):
        for item in node:
            yield from _walk_option_ids(item)


def unique_in_order(values: Iterable[str]) -> List[str]:
    """Deduplicate, keeping the first occurrence of each value."""
    seen = set()
    unique: List[str] = []
    for value in values:
        if value not in seen:
            seen.add(value)
            unique.append(value)
    return unique
