from .aggregator import build_options_dictionary, labels_to_values
from .layout_parser import (
    parse_mapping_declarations,
    parse_option_references,
    parse_page_mapping_declarations,
    unique_in_order,
)
from .mapping_resolver import canonical_string, resolve_mappings
from .path_expression import PathExpression, compile_path

__all__ = [
    "PathExpression",
    "build_options_dictionary",
    "canonical_string",
    "compile_path",
    "labels_to_values",
    "parse_mapping_declarations",
    "parse_option_references",
    "parse_page_mapping_declarations",
    "resolve_mappings",
    "unique_in_order",
]
