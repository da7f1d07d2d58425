"""
Application option providers.

Option lists are resolved through a registry of providers, keyed by
option list id (case-insensitive):

- AppOptionsProvider: app-wide lists, optionally parameterized.
- InstanceAppOptionsProvider: lists that depend on a specific instance.

Ids without a registered app-wide provider fall back to the static
option file ``options/<optionsId>.json``. Ids without a registered
instance provider are not found; there is no static fallback for
instance-scoped lists.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, Optional, Protocol

from receipt.app.schemas.options import AppOptions
from receipt.app.schemas.platform import InstanceReference

logger = logging.getLogger(__name__)


class AppOptionsProvider(Protocol):
    id: str

    async def get_app_options(
        self,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        ...


class InstanceAppOptionsProvider(Protocol):
    id: str

    async def get_instance_app_options(
        self,
        instance: InstanceReference,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        ...


class StaticOptionsSource(Protocol):
    async def get_static_options(self, options_id: str) -> AppOptions:
        ...


class AppOptionsService:
    """
    Provider registry.

    Satisfies the OptionsProvider interface consumed by the options
    aggregator.
    """

    def __init__(
        self,
        *,
        static_source: Optional[StaticOptionsSource] = None,
        providers: Iterable[AppOptionsProvider] = (),
        instance_providers: Iterable[InstanceAppOptionsProvider] = (),
    ) -> None:
        self._static_source = static_source
        self._providers = self._index(providers)
        self._instance_providers = self._index(instance_providers)

    @staticmethod
    def _index(providers: Iterable) -> Dict[str, object]:
        indexed: Dict[str, object] = {}
        for provider in providers:
            key = provider.id.lower()
            if key in indexed:
                raise ValueError(
                    f"Duplicate option provider registered for '{provider.id}'"
                )
            indexed[key] = provider
        return indexed

    async def get_options(
        self,
        options_id: str,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        provider = self._providers.get(options_id.lower())
        if provider is not None:
            return await provider.get_app_options(language, dict(parameters))

        if self._static_source is None:
            return AppOptions.not_found()

        return await self._static_source.get_static_options(options_id)

    async def get_instance_options(
        self,
        instance: InstanceReference,
        options_id: str,
        language: str,
        parameters: Dict[str, str],
    ) -> AppOptions:
        provider = self._instance_providers.get(options_id.lower())
        if provider is None:
            logger.debug(
                "instance_options_provider_missing",
                extra={"options_id": options_id},
            )
            return AppOptions.not_found()

        return await provider.get_instance_app_options(
            instance,
            language,
            dict(parameters),
        )
