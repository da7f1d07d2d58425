"""
Collaborator interfaces.

Every external dependency of the receipt engine is described here as a
structural Protocol. Production implementations live in
``platform_clients`` and ``app_resources``; tests supply in-memory
doubles.

Implementations MUST:
- be read-only, except DataClient.insert_binary_data
- raise ExternalServiceError when a call fails outright
- honour anyio cancellation (no blocking I/O on the event loop)
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Protocol
from uuid import UUID

from receipt.app.schemas.context import PdfRenderContext
from receipt.app.schemas.layout import LayoutSettings
from receipt.app.schemas.options import AppOptions
from receipt.app.schemas.platform import (
    DataElement,
    Party,
    TextResource,
    UserProfile,
)


class OptionsProvider(Protocol):
    """
    Resolves a named option list.

    A lookup is a pure function of its arguments. ``AppOptions.options``
    is None when no list exists for ``options_id``.
    """

    async def get_options(
        self,
        options_id: str,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        ...


class RegisterClient(Protocol):
    async def get_party(self, party_id: int) -> Optional[Party]:
        ...

    async def lookup_party(self, org_number: str) -> Optional[Party]:
        ...


class ProfileClient(Protocol):
    async def get_user_profile(self, user_id: int) -> Optional[UserProfile]:
        ...


class DataClient(Protocol):
    async def get_form_data(
        self,
        *,
        org: str,
        app: str,
        instance_owner_party_id: int,
        instance_guid: UUID,
        data_id: UUID,
    ) -> Any:
        ...

    async def insert_binary_data(
        self,
        *,
        instance_id: str,
        element_type: str,
        content_type: str,
        file_name: str,
        content: bytes,
    ) -> DataElement:
        ...


class AppResources(Protocol):
    """Application-local resources: layouts, settings and texts."""

    async def get_layout_sets(self) -> Optional[str]:
        ...

    async def get_layouts(self, layout_set_id: Optional[str] = None) -> str:
        ...

    async def get_layout_settings(
        self,
        layout_set_id: Optional[str] = None,
    ) -> Optional[str]:
        ...

    async def get_texts(
        self,
        org: str,
        app: str,
        language: str,
    ) -> Optional[TextResource]:
        ...


class PdfRenderer(Protocol):
    async def generate_pdf(self, context: PdfRenderContext) -> bytes:
        ...


class PdfFormatter(Protocol):
    """
    Application hook that adjusts layout settings before rendering
    (e.g. excluding pages depending on the submitted data).

    Layout settings are frozen; adjustments are returned as a copy.
    """

    async def format_pdf(
        self,
        layout_settings: LayoutSettings,
        data: Any,
    ) -> LayoutSettings:
        ...


class NullPdfFormatter:
    """Leaves layout settings unchanged."""

    async def format_pdf(
        self,
        layout_settings: LayoutSettings,
        data: Any,
    ) -> LayoutSettings:
        return layout_settings
