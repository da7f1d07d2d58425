"""
Receipt generation endpoint.

Generates the receipt PDF for one data element of an instance and
stores it on the instance. Returns the stored data element.
"""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from receipt.app.api.dependencies import get_pdf_service
from receipt.app.schemas.platform import (
    DataElement,
    Instance,
    InstanceReference,
    Principal,
)
from receipt.app.services.pdf_service import PdfService

logger = logging.getLogger("receipt.api")

router = APIRouter(tags=["Receipts"])


class GenerateReceiptRequest(BaseModel):
    instance: Instance
    task_id: str = Field(..., alias="taskId", min_length=1)
    data_element_id: str = Field(..., alias="dataElementId")
    principal: Principal

    model_config = ConfigDict(populate_by_name=True)


@router.post(
    "/{org}/{app}/instances/{instance_owner_party_id}/{instance_guid}/pdf",
    summary="Generate and store the receipt PDF of a data element",
    status_code=status.HTTP_201_CREATED,
    response_model=DataElement,
    response_model_by_alias=True,
)
async def generate_receipt(
    org: str,
    app: str,
    instance_owner_party_id: int,
    instance_guid: UUID,
    body: GenerateReceiptRequest,
    service: Annotated[PdfService, Depends(get_pdf_service)],
) -> DataElement:
    reference = InstanceReference.from_instance(body.instance)

    if (
        reference.org != org
        or reference.app != app
        or reference.instance_owner_party_id != instance_owner_party_id
        or reference.instance_guid != instance_guid
    ):
        raise HTTPException(
            status_code=422,
            detail="Instance in body does not match the request path.",
        )

    data_element = next(
        (e for e in body.instance.data if e.id == body.data_element_id),
        None,
    )
    if data_element is None:
        raise HTTPException(
            status_code=404,
            detail=f"Data element '{body.data_element_id}' not found.",
        )

    logger.info(
        "receipt: %s task=%s data_element=%s",
        reference.instance_id,
        body.task_id,
        data_element.id,
    )

    return await service.generate_and_store_receipt_pdf(
        instance=body.instance,
        task_id=body.task_id,
        data_element=data_element,
        principal=body.principal,
    )
