import json

import pytest

from receipt.app.errors import MalformedLayoutError
from receipt.app.options.layout_parser import (
    parse_mapping_declarations,
    parse_page_mapping_declarations,
    parse_option_references,
    unique_in_order,
)
from receipt.app.schemas.layout import MappingPair


def _layout(*components, page="FormLayout"):
    return json.dumps({page: {"data": {"layout": list(components)}}})


# ----------------------------------------------------------------------
# Mapping declarations
# ----------------------------------------------------------------------

def test_extracts_only_components_with_mapping(layouts_json):
    declarations = parse_mapping_declarations(layouts_json)

    assert [d.component_id for d in declarations] == ["color", "municipality"]
    assert declarations[0].options_id == "colors"
    assert declarations[0].pairs == (MappingPair(data_path="a.b", param_name="p1"),)


def test_pairs_keep_mapping_object_order(layouts_json):
    municipality = parse_mapping_declarations(layouts_json)[1]

    assert [(p.data_path, p.param_name) for p in municipality.pairs] == [
        ("address.county", "county"),
        ("address.missing", "ignored"),
    ]


def test_no_mapped_components_is_not_an_error():
    layout = _layout({"id": "f", "type": "Dropdown", "optionsId": "fruits"})

    assert parse_mapping_declarations(layout) == []


def test_null_mapping_is_not_a_mapping():
    layout = _layout(
        {"id": "f", "type": "Dropdown", "optionsId": "fruits", "mapping": None}
    )

    assert parse_mapping_declarations(layout) == []


def test_custom_component_location():
    layout = json.dumps(
        {"Page2": {"data": {"layout": [
            {"id": "c", "type": "Dropdown", "optionsId": "x", "mapping": {"q": "p"}}
        ]}}}
    )

    declarations = parse_mapping_declarations(
        layout, components_path="Page2.data.layout"
    )

    assert [d.options_id for d in declarations] == ["x"]


@pytest.mark.parametrize(
    "layout",
    [
        "not json",
        "{\"FormLayout\": ",
        json.dumps({"Other": {"data": {"layout": []}}}),
        json.dumps({"FormLayout": {"data": {"layout": {"not": "a list"}}}}),
    ],
)
def test_malformed_documents_are_rejected(layout):
    with pytest.raises(MalformedLayoutError):
        parse_mapping_declarations(layout)


def test_mapping_without_options_id_is_a_structural_defect():
    layout = _layout({"id": "c", "type": "Dropdown", "mapping": {"a": "p"}})

    with pytest.raises(MalformedLayoutError, match="optionsId"):
        parse_mapping_declarations(layout)


def test_non_string_parameter_name_is_rejected():
    layout = _layout(
        {"id": "c", "type": "Dropdown", "optionsId": "x", "mapping": {"a": 1}}
    )

    with pytest.raises(MalformedLayoutError):
        parse_mapping_declarations(layout)


def test_non_object_mapping_is_rejected():
    layout = _layout(
        {"id": "c", "type": "Dropdown", "optionsId": "x", "mapping": ["a"]}
    )

    with pytest.raises(MalformedLayoutError):
        parse_mapping_declarations(layout)


# ----------------------------------------------------------------------
# Per-page mapping declarations
# ----------------------------------------------------------------------

def _page(*components):
    return {"data": {"layout": list(components)}}


def test_pages_are_scanned_in_order():
    form_layouts = {
        "page1": _page(
            {"id": "a", "type": "Dropdown", "optionsId": "x", "mapping": {"q": "p"}}
        ),
        "page2": _page(
            {"id": "b", "type": "Dropdown", "optionsId": "y", "mapping": {"r": "s"}}
        ),
    }

    declarations = parse_page_mapping_declarations(form_layouts)

    assert [d.component_id for d in declarations] == ["a", "b"]
    assert declarations[1].pairs == (MappingPair(data_path="r", param_name="s"),)


def test_page_without_component_array_is_skipped():
    form_layouts = {
        "summary": {"data": {}},
        "page1": _page(
            {"id": "a", "type": "Dropdown", "optionsId": "x", "mapping": {"q": "p"}}
        ),
    }

    declarations = parse_page_mapping_declarations(form_layouts)

    assert [d.options_id for d in declarations] == ["x"]


def test_no_pages_is_not_an_error():
    assert parse_page_mapping_declarations({}) == []


def test_page_component_array_must_be_an_array():
    form_layouts = {"page1": {"data": {"layout": {"not": "a list"}}}}

    with pytest.raises(MalformedLayoutError, match="expected an array"):
        parse_page_mapping_declarations(form_layouts)


def test_page_mapping_defects_are_rejected():
    form_layouts = {
        "page1": _page({"id": "c", "type": "Dropdown", "mapping": {"a": "p"}}),
    }

    with pytest.raises(MalformedLayoutError, match="optionsId"):
        parse_page_mapping_declarations(form_layouts)


# ----------------------------------------------------------------------
# Option references
# ----------------------------------------------------------------------

def test_collects_every_options_id_in_document_order(layouts_json):
    assert parse_option_references(layouts_json) == [
        "fruits",
        "colors",
        "municipalities",
        "fruits",
        "unknown-list",
    ]


def test_references_found_at_any_depth():
    layout = json.dumps(
        {
            "optionsId": "top",
            "nested": [{"deep": {"optionsId": "deep"}}, {"optionsId": 42}],
            "text": "\"optionsId\":\"not-a-reference\"",
        }
    )

    assert parse_option_references(layout) == ["top", "deep"]


def test_references_reject_invalid_json():
    with pytest.raises(MalformedLayoutError):
        parse_option_references("{")


def test_unique_in_order_keeps_first_occurrence():
    assert unique_in_order(["b", "a", "b", "c", "a"]) == ["b", "a", "c"]
