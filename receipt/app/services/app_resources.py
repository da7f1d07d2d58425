"""
Filesystem-backed application resources.

Expected application layout under ``app_root``:

    ui/layout-sets.json                 optional layout set declarations
    ui/layouts/<page>.json              default layouts (one file per page)
    ui/FormLayout.json                  legacy single-page default layout
    ui/Settings.json                    default layout settings
    ui/<setId>/layouts/<page>.json      layouts of a layout set
    ui/<setId>/Settings.json            settings of a layout set
    config/texts/resource.<lang>.json   text resources
    options/<optionsId>.json            static option lists

Layouts are returned serialized as a single JSON object keyed by page
name, pages in file name order.
"""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Optional

import anyio
from pydantic import ValidationError

from receipt.app.errors import ExternalServiceError, MalformedLayoutError
from receipt.app.schemas.options import AppOptions
from receipt.app.schemas.platform import TextResource

logger = logging.getLogger(__name__)


# Resource names become path segments; nothing that could traverse.
_SAFE_NAME_RE = re.compile(r"^[A-Za-z0-9_-][A-Za-z0-9_.-]{0,127}$")

LEGACY_LAYOUT_PAGE = "FormLayout"


def is_safe_resource_name(name: str) -> bool:
    return bool(_SAFE_NAME_RE.match(name)) and ".." not in name


class FileSystemAppResources:
    """AppResources implementation reading from an application directory."""

    def __init__(self, app_root: Path) -> None:
        self.app_root = Path(app_root)

    # ------------------------------------------------------------------
    # Layouts
    # ------------------------------------------------------------------

    async def get_layout_sets(self) -> Optional[str]:
        return await self._read_optional(self.app_root / "ui" / "layout-sets.json")

    async def get_layouts(self, layout_set_id: Optional[str] = None) -> str:
        ui_dir = anyio.Path(self._ui_dir(layout_set_id))
        pages: Dict[str, Any] = {}

        layouts_dir = ui_dir / "layouts"
        if await layouts_dir.is_dir():
            page_files = [path async for path in layouts_dir.glob("*.json")]
            for page_file in sorted(page_files, key=lambda path: path.name):
                pages[page_file.stem] = await self._load_layout_page(page_file)

        if not pages:
            legacy = ui_dir / f"{LEGACY_LAYOUT_PAGE}.json"
            if await legacy.is_file():
                pages[LEGACY_LAYOUT_PAGE] = await self._load_layout_page(legacy)

        if not pages:
            raise MalformedLayoutError(
                f"No form layouts found under '{ui_dir}'"
            )

        return json.dumps(pages, ensure_ascii=False)

    async def get_layout_settings(
        self,
        layout_set_id: Optional[str] = None,
    ) -> Optional[str]:
        return await self._read_optional(
            self._ui_dir(layout_set_id) / "Settings.json"
        )

    # ------------------------------------------------------------------
    # Texts
    # ------------------------------------------------------------------

    async def get_texts(
        self,
        org: str,
        app: str,
        language: str,
    ) -> Optional[TextResource]:
        if not is_safe_resource_name(language):
            logger.warning("Rejected text resource language '%s'", language)
            return None

        path = anyio.Path(
            self.app_root / "config" / "texts" / f"resource.{language}.json"
        )
        if not await path.is_file():
            return None

        try:
            raw = json.loads(await path.read_text(encoding="utf-8"))
            texts = TextResource.model_validate(
                {
                    "id": f"{org}-{app}-{language}",
                    "org": org,
                    "language": language,
                    **raw,
                }
            )
        except (TypeError, ValueError, ValidationError) as exc:
            raise ExternalServiceError(
                "app-resources",
                f"Invalid text resource file '{path}': {exc}",
            ) from exc

        return texts

    # ------------------------------------------------------------------
    # Static options
    # ------------------------------------------------------------------

    async def get_static_options(self, options_id: str) -> AppOptions:
        """
        Read ``options/<optionsId>.json``.

        A missing file (or an id that cannot name a file) means the
        option list does not exist.
        """
        if not is_safe_resource_name(options_id):
            return AppOptions.not_found()

        path = anyio.Path(self.app_root / "options" / f"{options_id}.json")
        if not await path.is_file():
            return AppOptions.not_found()

        try:
            raw = json.loads(await path.read_text(encoding="utf-8"))
            return AppOptions.model_validate(
                {"options": raw, "isCacheable": True}
            )
        except (TypeError, ValueError, ValidationError) as exc:
            raise ExternalServiceError(
                "app-resources",
                f"Invalid options file '{path}': {exc}",
            ) from exc

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _ui_dir(self, layout_set_id: Optional[str]) -> Path:
        ui_dir = self.app_root / "ui"
        if layout_set_id is None:
            return ui_dir
        if not is_safe_resource_name(layout_set_id):
            raise MalformedLayoutError(
                f"Layout set id '{layout_set_id}' is not a valid name"
            )
        return ui_dir / layout_set_id

    @staticmethod
    async def _read_optional(path: Path) -> Optional[str]:
        path = anyio.Path(path)
        if not await path.is_file():
            return None
        return await path.read_text(encoding="utf-8")

    @staticmethod
    async def _load_layout_page(path: anyio.Path) -> Any:
        try:
            return json.loads(await path.read_text(encoding="utf-8"))
        except ValueError as exc:
            raise MalformedLayoutError(
                f"Layout page '{path.name}' is not valid JSON: {exc}"
            ) from exc
