"""
In-memory collaborator doubles for receipt tests.

IMPORTANT:
- Deterministic
- No network or filesystem access
- Every call is recorded for assertions
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional, Tuple

import anyio

from receipt.app.errors import ExternalServiceError
from receipt.app.schemas.context import PdfRenderContext
from receipt.app.schemas.layout import LayoutSettings
from receipt.app.schemas.options import AppOptions
from receipt.app.schemas.platform import (
    DataElement,
    Party,
    TextResource,
    UserProfile,
)


class FakeOptionsProvider:
    def __init__(
        self,
        lists: Optional[Dict[str, List[Dict[str, str]]]] = None,
        *,
        delays: Optional[Dict[str, float]] = None,
        failing: Tuple[str, ...] = (),
    ) -> None:
        self._lists = lists or {}
        self._delays = delays or {}
        self._failing = failing

        # Observability for tests
        self.calls: List[Tuple[str, str, Dict[str, str]]] = []
        self.completed: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def get_options(
        self,
        options_id: str,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        self.calls.append((options_id, language, dict(parameters)))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            delay = self._delays.get(options_id, 0)
            if delay:
                await anyio.sleep(delay)
            else:
                await anyio.sleep(0)

            if options_id in self._failing:
                raise ExternalServiceError("options", f"{options_id} failed")

            self.completed.append(options_id)

            if options_id not in self._lists:
                return AppOptions.not_found()
            return AppOptions.model_validate(
                {"options": self._lists[options_id]}
            )
        finally:
            self.in_flight -= 1


class FakeRegisterClient:
    def __init__(
        self,
        parties: Optional[Dict[int, Party]] = None,
        organizations: Optional[Dict[str, Party]] = None,
        *,
        delay: float = 0,
    ) -> None:
        self._parties = parties or {}
        self._organizations = organizations or {}
        self._delay = delay
        self.party_calls: List[int] = []
        self.lookup_calls: List[str] = []

    async def get_party(self, party_id: int) -> Optional[Party]:
        self.party_calls.append(party_id)
        if self._delay:
            await anyio.sleep(self._delay)
        return self._parties.get(party_id)

    async def lookup_party(self, org_number: str) -> Optional[Party]:
        self.lookup_calls.append(org_number)
        if self._delay:
            await anyio.sleep(self._delay)
        return self._organizations.get(org_number)


class FakeProfileClient:
    def __init__(self, profiles: Optional[Dict[int, UserProfile]] = None) -> None:
        self._profiles = profiles or {}
        self.calls: List[int] = []

    async def get_user_profile(self, user_id: int) -> Optional[UserProfile]:
        self.calls.append(user_id)
        return self._profiles.get(user_id)


class InMemoryAppResources:
    """
    AppResources double.

    ``layouts`` and ``settings`` are keyed by layout set id, with None
    for the application default.
    """

    def __init__(
        self,
        *,
        layouts: Dict[Optional[str], Dict[str, Any]],
        settings: Optional[Dict[Optional[str], Any]] = None,
        layout_sets: Optional[Dict[str, Any]] = None,
        texts: Optional[Dict[str, TextResource]] = None,
    ) -> None:
        self._layouts = layouts
        self._settings = settings or {}
        self._layout_sets = layout_sets
        self._texts = texts or {}
        self.text_calls: List[str] = []

    async def get_layout_sets(self) -> Optional[str]:
        if self._layout_sets is None:
            return None
        return json.dumps(self._layout_sets)

    async def get_layouts(self, layout_set_id: Optional[str] = None) -> str:
        return json.dumps(self._layouts[layout_set_id])

    async def get_layout_settings(
        self,
        layout_set_id: Optional[str] = None,
    ) -> Optional[str]:
        raw = self._settings.get(layout_set_id)
        if raw is None:
            return None
        return raw if isinstance(raw, str) else json.dumps(raw)

    async def get_texts(
        self,
        org: str,
        app: str,
        language: str,
    ) -> Optional[TextResource]:
        self.text_calls.append(language)
        return self._texts.get(language)


class RecordingPdfFormatter:
    """Excludes the configured pages and records the data it saw."""

    def __init__(self, exclude_pages: Tuple[str, ...] = ()) -> None:
        self._exclude_pages = exclude_pages
        self.seen_data: List[Any] = []

    async def format_pdf(
        self,
        layout_settings: LayoutSettings,
        data: Any,
    ) -> LayoutSettings:
        self.seen_data.append(data)
        pages = layout_settings.pages.model_copy(
            update={
                "exclude_from_pdf": (
                    layout_settings.pages.exclude_from_pdf + self._exclude_pages
                )
            }
        )
        return layout_settings.model_copy(update={"pages": pages})


class FakeDataClient:
    def __init__(self, form_data: Any) -> None:
        self._form_data = form_data
        self.form_data_calls: List[Dict[str, Any]] = []
        self.uploads: List[Dict[str, Any]] = []

    async def get_form_data(self, **kwargs: Any) -> Any:
        self.form_data_calls.append(kwargs)
        return self._form_data

    async def insert_binary_data(self, **kwargs: Any) -> DataElement:
        self.uploads.append(kwargs)
        return DataElement(
            id="6f2c8e3a-2a55-4d8e-9a0b-5a6a2d1f0c11",
            dataType=kwargs["element_type"],
            contentType=kwargs["content_type"],
            filename=kwargs["file_name"],
        )


class FakePdfRenderer:
    def __init__(self, pdf_bytes: bytes = b"%PDF-1.7 fake") -> None:
        self._pdf_bytes = pdf_bytes
        self.contexts: List[PdfRenderContext] = []

    async def generate_pdf(self, context: PdfRenderContext) -> bytes:
        self.contexts.append(context)
        return self._pdf_bytes


def make_texts(language: str, app_name: str = "Min App") -> TextResource:
    return TextResource(
        id=f"ttd-receipt-app-{language}",
        org="ttd",
        language=language,
        resources=[{"id": "appName", "value": app_name}],
    )
