"""
Options API.

Exposes app-wide and instance-scoped option lists. Every query
parameter other than ``language`` is passed to the option provider as
a lookup parameter.

Only a missing provider yields 404. A provider that exists but returns
no values yields an empty list.
"""

import logging
from typing import Annotated, Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from receipt.app.api.dependencies import get_options_service
from receipt.app.options.app_options import AppOptionsService
from receipt.app.schemas.options import AppOption, AppOptions
from receipt.app.schemas.platform import InstanceReference

logger = logging.getLogger("receipt.api")

router = APIRouter(tags=["Options"])


def _lookup_parameters(request: Request) -> Dict[str, str]:
    return {
        key: value
        for key, value in request.query_params.items()
        if key != "language"
    }


def _options_or_404(options_id: str, app_options: AppOptions) -> List[AppOption]:
    if app_options.options is None:
        raise HTTPException(
            status_code=404,
            detail=f"Options '{options_id}' not found.",
        )
    return app_options.options


@router.get(
    "/{org}/{app}/api/options/{options_id}",
    summary="Get an app-wide option list",
    response_model=List[AppOption],
)
async def get_options(
    org: str,
    app: str,
    options_id: str,
    request: Request,
    service: Annotated[AppOptionsService, Depends(get_options_service)],
    language: Annotated[Optional[str], Query()] = None,
) -> List[AppOption]:
    logger.info("options: %s/%s options_id=%s", org, app, options_id)

    app_options = await service.get_options(
        options_id,
        language or "",
        _lookup_parameters(request),
    )
    return _options_or_404(options_id, app_options)


@router.get(
    "/{org}/{app}/instances/{instance_owner_party_id}/{instance_guid}"
    "/options/{options_id}",
    summary="Get an option list scoped to an instance",
    response_model=List[AppOption],
)
async def get_instance_options(
    org: str,
    app: str,
    instance_owner_party_id: int,
    instance_guid: UUID,
    options_id: str,
    request: Request,
    service: Annotated[AppOptionsService, Depends(get_options_service)],
    language: Annotated[Optional[str], Query()] = None,
) -> List[AppOption]:
    logger.info(
        "options: %s/%s instance=%s/%s options_id=%s",
        org,
        app,
        instance_owner_party_id,
        instance_guid,
        options_id,
    )

    reference = InstanceReference(
        org=org,
        app=app,
        instance_owner_party_id=instance_owner_party_id,
        instance_guid=instance_guid,
    )

    app_options = await service.get_instance_options(
        reference,
        options_id,
        language or "",
        _lookup_parameters(request),
    )
    return _options_or_404(options_id, app_options)
