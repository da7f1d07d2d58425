"""
Dependency providers.

Services are constructed once by the application lifespan and stored
on ``app.state``. Route handlers receive them through these providers,
which tests replace via ``app.dependency_overrides``.
"""

from fastapi import Request

from receipt.app.options.app_options import AppOptionsService
from receipt.app.services.pdf_service import PdfService


def get_options_service(request: Request) -> AppOptionsService:
    service = getattr(request.app.state, "options_service", None)
    if service is None:
        raise RuntimeError("options service not initialized")
    return service


def get_pdf_service(request: Request) -> PdfService:
    service = getattr(request.app.state, "pdf_service", None)
    if service is None:
        raise RuntimeError("pdf service not initialized")
    return service
