"""
Receipt PDF generation.

Fetches the submitted form data of a data element, assembles the render
context, has the renderer produce the PDF and stores the result on the
instance as a ``ref-data-as-pdf`` data element.
"""

from __future__ import annotations

import logging
from uuid import UUID

from receipt.app.assembler.context_assembler import ContextAssembler
from receipt.app.errors import InvalidInstanceReferenceError
from receipt.app.schemas.platform import (
    DataElement,
    Instance,
    InstanceReference,
    Principal,
)
from receipt.app.services.interfaces import DataClient, PdfRenderer
from receipt.app.utils.filenames import derive_pdf_file_name

logger = logging.getLogger(__name__)


PDF_ELEMENT_TYPE = "ref-data-as-pdf"
PDF_CONTENT_TYPE = "application/pdf"


class PdfService:
    def __init__(
        self,
        *,
        assembler: ContextAssembler,
        data_client: DataClient,
        renderer: PdfRenderer,
    ) -> None:
        self._assembler = assembler
        self._data = data_client
        self._renderer = renderer

    async def generate_and_store_receipt_pdf(
        self,
        *,
        instance: Instance,
        task_id: str,
        data_element: DataElement,
        principal: Principal,
    ) -> DataElement:
        """
        Generate the receipt for ``data_element`` and store it.

        Returns the stored PDF data element.
        """
        reference = InstanceReference.from_instance(instance)

        try:
            data_id = UUID(data_element.id)
        except ValueError as exc:
            raise InvalidInstanceReferenceError(
                f"Data element id '{data_element.id}' is not a valid GUID"
            ) from exc

        submitted_data = await self._data.get_form_data(
            org=reference.org,
            app=reference.app,
            instance_owner_party_id=reference.instance_owner_party_id,
            instance_guid=reference.instance_guid,
            data_id=data_id,
        )

        context = await self._assembler.assemble(
            instance=instance,
            task_id=task_id,
            data_element=data_element,
            submitted_data=submitted_data,
            principal=principal,
        )

        pdf_bytes = await self._renderer.generate_pdf(context)

        file_name = derive_pdf_file_name(reference.app, context.text_resources)

        stored = await self._data.insert_binary_data(
            instance_id=instance.id,
            element_type=PDF_ELEMENT_TYPE,
            content_type=PDF_CONTENT_TYPE,
            file_name=file_name,
            content=pdf_bytes,
        )

        logger.info(
            "receipt_pdf_stored",
            extra={
                "instance_id": instance.id,
                "data_element_id": stored.id,
                "file_name": file_name,
                "size_bytes": len(pdf_bytes),
            },
        )

        return stored
