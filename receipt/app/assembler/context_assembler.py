"""
Render context assembly.

Composes the immutable PdfRenderContext for one receipt:

    1. Instance identifier decomposition (fatal on failure, before any
       external call)
    2. Layout set selection and layout settings normalization
    3. Acting party and language resolution, concurrently with the
       instance owner's party lookup
    4. Text resources (one fallback hop to the baseline language) and
       option dictionary resolution, concurrently
    5. Data encoding and final construction

Every external call runs inside the caller's cancel scope. The context
is constructed only after all parts have completed, so cancellation or
failure never yields a partial context. The observer sees the context
after construction.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Tuple

import anyio

from receipt.app.assembler.encoding import encode_submitted_data
from receipt.app.assembler.observer import ContextObserver, NullContextObserver
from receipt.app.config import ReceiptSettings
from receipt.app.errors import ExternalServiceError, MalformedLayoutError
from receipt.app.options.aggregator import build_options_dictionary
from receipt.app.options.layout_parser import (
    load_layout,
    parse_mapping_declarations,
    parse_option_references,
    parse_page_mapping_declarations,
    unique_in_order,
)
from receipt.app.options.mapping_resolver import as_data_tree, resolve_mappings
from receipt.app.schemas.context import PdfRenderContext
from receipt.app.schemas.layout import LayoutSet, LayoutSets, LayoutSettings
from receipt.app.schemas.options import OptionsDictionary
from receipt.app.schemas.platform import (
    DataElement,
    Instance,
    InstanceReference,
    Party,
    Principal,
    TextResource,
)
from receipt.app.services.interfaces import (
    AppResources,
    NullPdfFormatter,
    OptionsProvider,
    PdfFormatter,
    ProfileClient,
    RegisterClient,
)
from receipt.app.utils.concurrency import task_group

logger = logging.getLogger(__name__)


class ContextAssembler:
    def __init__(
        self,
        *,
        settings: ReceiptSettings,
        app_resources: AppResources,
        options_provider: OptionsProvider,
        register_client: RegisterClient,
        profile_client: ProfileClient,
        pdf_formatter: Optional[PdfFormatter] = None,
        observer: Optional[ContextObserver] = None,
    ) -> None:
        self._settings = settings
        self._resources = app_resources
        self._options_provider = options_provider
        self._register = register_client
        self._profile = profile_client
        self._formatter = pdf_formatter or NullPdfFormatter()
        self._observer = observer or NullContextObserver()

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def assemble(
        self,
        *,
        instance: Instance,
        task_id: str,
        data_element: DataElement,
        submitted_data: Any,
        principal: Principal,
    ) -> PdfRenderContext:
        """
        Assemble the render context for one receipt.

        Raises InvalidInstanceReferenceError, MalformedLayoutError or
        ExternalServiceError. Raises TimeoutError when the configured
        assembly timeout elapses.
        """
        reference = InstanceReference.from_instance(instance)

        timeout = self._settings.assembly_timeout_seconds
        if timeout is None:
            context = await self._assemble(
                reference, instance, task_id, data_element,
                submitted_data, principal,
            )
        else:
            with anyio.fail_after(timeout):
                context = await self._assemble(
                    reference, instance, task_id, data_element,
                    submitted_data, principal,
                )

        await self._observer.observe(context)
        return context

    # ------------------------------------------------------------------
    # Assembly
    # ------------------------------------------------------------------

    async def _assemble(
        self,
        reference: InstanceReference,
        instance: Instance,
        task_id: str,
        data_element: DataElement,
        submitted_data: Any,
        principal: Principal,
    ) -> PdfRenderContext:
        data_tree = as_data_tree(submitted_data)

        layout_set = await self.select_layout_set(data_element.data_type, task_id)
        layout_set_id = layout_set.id if layout_set is not None else None

        layout_settings = await self.load_layout_settings(layout_set_id)
        layout_settings = await self._formatter.format_pdf(
            layout_settings, data_tree
        )

        layouts_json = await self._resources.get_layouts(layout_set_id)
        form_layouts = load_layout(layouts_json)
        if not isinstance(form_layouts, dict):
            raise MalformedLayoutError(
                "Form layouts must be a JSON object keyed by page name"
            )

        parties: Dict[str, Any] = {}

        async def _owner_party() -> None:
            parties["owner"] = await self._get_party(
                reference.instance_owner_party_id
            )

        async def _acting_party() -> None:
            parties["acting"], parties["language"] = (
                await self.resolve_acting_party(principal)
            )

        async with task_group() as tg:
            tg.start_soon(_owner_party)
            tg.start_soon(_acting_party)

        language: str = parties["language"]
        localized: Dict[str, Any] = {}

        async def _texts() -> None:
            localized["texts"] = await self.resolve_text_resources(
                reference.org, reference.app, language
            )

        async def _options() -> None:
            localized["options"] = await self.resolve_options(
                layouts_json, form_layouts, language, data_tree
            )

        async with task_group() as tg:
            tg.start_soon(_texts)
            tg.start_soon(_options)

        context = PdfRenderContext(
            data=encode_submitted_data(data_tree),
            form_layouts=form_layouts,
            layout_settings=layout_settings,
            text_resources=localized["texts"],
            options_dictionary=localized["options"],
            party=parties["owner"],
            user_party=parties["acting"],
            instance=instance,
            language=language,
        )

        logger.info(
            "receipt_context_assembled",
            extra={
                "instance_id": reference.instance_id,
                "layout_set": layout_set_id,
                "language": language,
                "option_lists": len(context.options_dictionary),
            },
        )

        return context

    # ------------------------------------------------------------------
    # Layout set selection
    # ------------------------------------------------------------------

    async def select_layout_set(
        self,
        data_type: str,
        task_id: str,
    ) -> Optional[LayoutSet]:
        raw = await self._resources.get_layout_sets()
        if not raw:
            return None

        try:
            layout_sets = LayoutSets.model_validate_json(raw)
        except ValueError as exc:
            raise MalformedLayoutError(
                f"Layout sets document is invalid: {exc}"
            ) from exc

        return layout_sets.find(data_type, task_id)

    async def load_layout_settings(
        self,
        layout_set_id: Optional[str],
    ) -> LayoutSettings:
        raw = await self._resources.get_layout_settings(layout_set_id)
        if not raw:
            return LayoutSettings()

        try:
            return LayoutSettings.model_validate_json(raw)
        except ValueError as exc:
            raise MalformedLayoutError(
                f"Layout settings are invalid: {exc}"
            ) from exc

    # ------------------------------------------------------------------
    # Parties and language
    # ------------------------------------------------------------------

    async def _get_party(self, party_id: int) -> Party:
        party = await self._register.get_party(party_id)
        if party is None:
            raise ExternalServiceError(
                "register", f"Party {party_id} does not exist"
            )
        return party

    async def resolve_acting_party(
        self,
        principal: Principal,
    ) -> Tuple[Party, str]:
        """
        Resolve the acting party and the language of the receipt.

        A person acts as the party of their profile and reads the
        receipt in their preferred language. An organization acts as the
        party registered under its organization number and reads the
        receipt in the baseline language.
        """
        baseline = self._settings.baseline_language

        if principal.is_person:
            profile = await self._profile.get_user_profile(principal.user_id)
            if profile is None or profile.party is None:
                raise ExternalServiceError(
                    "profile",
                    f"No profile party for user {principal.user_id}",
                )
            return profile.party, profile.preferred_language or baseline

        party = await self._register.lookup_party(principal.org_number)
        if party is None:
            raise ExternalServiceError(
                "register",
                f"No party registered for organization {principal.org_number}",
            )
        return party, baseline

    # ------------------------------------------------------------------
    # Localized content
    # ------------------------------------------------------------------

    async def resolve_text_resources(
        self,
        org: str,
        app: str,
        language: str,
    ) -> TextResource:
        """
        Texts in ``language``, else in the baseline language, else empty.

        Only one fallback hop is made.
        """
        texts = await self._resources.get_texts(org, app, language)

        baseline = self._settings.baseline_language
        if texts is None and language != baseline:
            logger.info(
                "Texts for '%s' missing in %s/%s, falling back to '%s'",
                language,
                org,
                app,
                baseline,
            )
            texts = await self._resources.get_texts(org, app, baseline)

        if texts is None:
            return TextResource(
                id=f"{org}-{app}-{language}",
                org=org,
                language=language,
                resources=[],
            )
        return texts

    async def resolve_options(
        self,
        layouts_json: str,
        form_layouts: Dict[str, Any],
        language: str,
        data_tree: Any,
    ) -> OptionsDictionary:
        """
        Resolve the option lists referenced by the form layouts.

        Mapped components are read from the configured component
        location when one is set, otherwise from every page.
        """
        components_path = self._settings.layout_components_path
        if components_path is None:
            declarations = parse_page_mapping_declarations(form_layouts)
        else:
            declarations = parse_mapping_declarations(
                layouts_json,
                components_path=components_path,
            )

        option_ids = unique_in_order(parse_option_references(layouts_json))
        mapping_context = resolve_mappings(declarations, data_tree)

        return await build_options_dictionary(
            option_ids,
            language,
            mapping_context,
            self._options_provider,
            max_concurrency=self._settings.options_max_concurrency,
        )
