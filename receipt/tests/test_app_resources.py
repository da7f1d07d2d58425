import json

import pytest

from receipt.app.errors import ExternalServiceError, MalformedLayoutError
from receipt.app.services.app_resources import (
    FileSystemAppResources,
    is_safe_resource_name,
)

pytestmark = pytest.mark.anyio


def _write(path, content):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(
        content if isinstance(content, str) else json.dumps(content),
        encoding="utf-8",
    )


@pytest.fixture
def app_root(tmp_path):
    _write(tmp_path / "ui" / "layouts" / "B.json", {"data": {"layout": []}})
    _write(tmp_path / "ui" / "layouts" / "A.json", {"data": {"layout": [{"id": "x"}]}})
    _write(tmp_path / "ui" / "Settings.json", {"pages": {"order": ["A", "B"]}})
    _write(tmp_path / "ui" / "set-1" / "layouts" / "Receipt.json", {"data": {}})
    _write(
        tmp_path / "config" / "texts" / "resource.nb.json",
        {"resources": [{"id": "appName", "value": "Min App"}]},
    )
    _write(
        tmp_path / "options" / "fruits.json",
        [{"label": "Apple", "value": "1"}, {"label": "Pear", "value": 2}],
    )
    return tmp_path


# ----------------------------------------------------------------------
# Layouts
# ----------------------------------------------------------------------

async def test_layout_pages_keyed_by_file_name_in_order(app_root):
    layouts = json.loads(await FileSystemAppResources(app_root).get_layouts())

    assert list(layouts) == ["A", "B"]
    assert layouts["A"]["data"]["layout"] == [{"id": "x"}]


async def test_layout_set_pages(app_root):
    layouts = json.loads(await FileSystemAppResources(app_root).get_layouts("set-1"))

    assert list(layouts) == ["Receipt"]


async def test_legacy_single_page_layout(tmp_path):
    _write(tmp_path / "ui" / "FormLayout.json", {"data": {"layout": []}})

    layouts = json.loads(await FileSystemAppResources(tmp_path).get_layouts())

    assert list(layouts) == ["FormLayout"]


async def test_missing_layouts_are_malformed(tmp_path):
    with pytest.raises(MalformedLayoutError):
        await FileSystemAppResources(tmp_path).get_layouts()


async def test_invalid_layout_page_is_malformed(tmp_path):
    _write(tmp_path / "ui" / "layouts" / "Broken.json", "{not json")

    with pytest.raises(MalformedLayoutError, match="Broken.json"):
        await FileSystemAppResources(tmp_path).get_layouts()


async def test_layout_set_id_cannot_traverse(app_root):
    with pytest.raises(MalformedLayoutError):
        await FileSystemAppResources(app_root).get_layouts("../outside")


async def test_optional_documents(app_root):
    resources = FileSystemAppResources(app_root)

    assert await resources.get_layout_sets() is None
    assert json.loads(await resources.get_layout_settings()) == {
        "pages": {"order": ["A", "B"]}
    }
    assert await resources.get_layout_settings("set-1") is None


# ----------------------------------------------------------------------
# Texts
# ----------------------------------------------------------------------

async def test_texts_are_read_and_identified(app_root):
    texts = await FileSystemAppResources(app_root).get_texts("ttd", "app", "nb")

    assert texts.id == "ttd-app-nb"
    assert texts.org == "ttd"
    assert texts.language == "nb"
    assert texts.find("appName").value == "Min App"


async def test_missing_language_is_none(app_root):
    assert await FileSystemAppResources(app_root).get_texts("ttd", "app", "en") is None


async def test_unsafe_language_is_none(app_root):
    resources = FileSystemAppResources(app_root)

    assert await resources.get_texts("ttd", "app", "../nb") is None


async def test_corrupt_texts_are_a_service_error(tmp_path):
    _write(tmp_path / "config" / "texts" / "resource.nb.json", "[1, 2]")

    with pytest.raises(ExternalServiceError):
        await FileSystemAppResources(tmp_path).get_texts("ttd", "app", "nb")


# ----------------------------------------------------------------------
# Static options
# ----------------------------------------------------------------------

async def test_static_options(app_root):
    options = await FileSystemAppResources(app_root).get_static_options("fruits")

    assert options.found
    assert options.is_cacheable
    assert [(o.label, o.value) for o in options.options] == [
        ("Apple", "1"),
        ("Pear", "2"),
    ]


@pytest.mark.parametrize("options_id", ["missing", "../ui/Settings", ""])
async def test_unknown_static_options_not_found(app_root, options_id):
    options = await FileSystemAppResources(app_root).get_static_options(options_id)

    assert not options.found


@pytest.mark.parametrize(
    "name, safe",
    [
        ("nb", True),
        ("set-1", True),
        ("my.options", True),
        ("..", False),
        ("a/b", False),
        (".hidden", False),
        ("", False),
    ],
)
def test_is_safe_resource_name(name, safe):
    assert is_safe_resource_name(name) is safe
