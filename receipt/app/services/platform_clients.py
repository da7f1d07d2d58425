"""
HTTP clients for the platform services.

All clients share one persistent ``httpx.AsyncClient`` (owned by the
application lifespan) and translate every failure into
ExternalServiceError:

- transport errors on idempotent reads are retried with exponential
  backoff before giving up
- writes (binary upload, PDF rendering) are never retried
- 404 on a lookup by id means "no such record" and returns None
"""

from __future__ import annotations

import logging
from typing import Any, Optional
from urllib.parse import quote
from uuid import UUID

import httpx
from pydantic import ValidationError
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from receipt.app.errors import ExternalServiceError
from receipt.app.schemas.context import PdfRenderContext
from receipt.app.schemas.platform import DataElement, Party, UserProfile

logger = logging.getLogger("receipt.platform")


class _PlatformClient:
    SERVICE = "platform"

    def __init__(
        self,
        *,
        base_url: str,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.base_url = str(base_url).rstrip("/")
        self.client = http_client

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True,
    )
    async def _send_idempotent(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        return await self.client.request(method, self._url(path), **kwargs)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        idempotent: bool = True,
        not_found_ok: bool = False,
        **kwargs: Any,
    ) -> Optional[httpx.Response]:
        try:
            if idempotent:
                response = await self._send_idempotent(method, path, **kwargs)
            else:
                response = await self.client.request(
                    method, self._url(path), **kwargs
                )
        except httpx.TransportError as exc:
            logger.error(
                "%s %s %s: connection error: %s",
                self.SERVICE,
                method,
                path,
                exc,
            )
            raise ExternalServiceError(
                self.SERVICE,
                f"{method} {path} failed: {exc}",
            ) from exc

        if not_found_ok and response.status_code == 404:
            return None

        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "platform_request_failed",
                extra={
                    "service": self.SERVICE,
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                },
            )
            raise ExternalServiceError(
                self.SERVICE,
                f"{method} {path} returned an error",
                status_code=response.status_code,
            ) from exc

        return response

    def _parse(self, model: Any, response: httpx.Response) -> Any:
        try:
            return model.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ExternalServiceError(
                self.SERVICE,
                f"Unexpected response body: {exc}",
            ) from exc


class HttpRegisterClient(_PlatformClient):
    SERVICE = "register"

    async def get_party(self, party_id: int) -> Optional[Party]:
        response = await self._request(
            "GET",
            f"parties/{party_id}",
            not_found_ok=True,
        )
        if response is None:
            return None
        return self._parse(Party, response)

    async def lookup_party(self, org_number: str) -> Optional[Party]:
        response = await self._request(
            "POST",
            "parties/lookup",
            json={"orgNo": org_number},
            not_found_ok=True,
        )
        if response is None:
            return None
        return self._parse(Party, response)


class HttpProfileClient(_PlatformClient):
    SERVICE = "profile"

    async def get_user_profile(self, user_id: int) -> Optional[UserProfile]:
        response = await self._request(
            "GET",
            f"users/{user_id}",
            not_found_ok=True,
        )
        if response is None:
            return None
        return self._parse(UserProfile, response)


class HttpDataClient(_PlatformClient):
    SERVICE = "storage"

    async def get_form_data(
        self,
        *,
        org: str,
        app: str,
        instance_owner_party_id: int,
        instance_guid: UUID,
        data_id: UUID,
    ) -> Any:
        response = await self._request(
            "GET",
            f"instances/{instance_owner_party_id}/{instance_guid}/data/{data_id}",
            headers={"Accept": "application/json"},
        )
        try:
            return response.json()
        except ValueError as exc:
            raise ExternalServiceError(
                self.SERVICE,
                f"Form data for {org}/{app} is not JSON: {exc}",
            ) from exc

    async def insert_binary_data(
        self,
        *,
        instance_id: str,
        element_type: str,
        content_type: str,
        file_name: str,
        content: bytes,
    ) -> DataElement:
        response = await self._request(
            "POST",
            f"instances/{instance_id}/data",
            idempotent=False,
            params={"dataType": element_type},
            headers={
                "Content-Type": content_type,
                "Content-Disposition": (
                    f"attachment; filename={quote(file_name, safe='%')}"
                ),
            },
            content=content,
        )
        return self._parse(DataElement, response)


class HttpPdfRenderer(_PlatformClient):
    SERVICE = "pdf"

    async def generate_pdf(self, context: PdfRenderContext) -> bytes:
        response = await self._request(
            "POST",
            "generate",
            idempotent=False,
            json=context.model_dump(mode="json", by_alias=True),
        )
        return response.content
