import logging
from contextlib import asynccontextmanager
from importlib.metadata import PackageNotFoundError, version
from typing import Iterable, Optional

import httpx
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from receipt.app.api.options import router as options_router
from receipt.app.api.receipts import router as receipts_router
from receipt.app.assembler.context_assembler import ContextAssembler
from receipt.app.config import ReceiptSettings, get_settings
from receipt.app.errors import (
    ExternalServiceError,
    InvalidInstanceReferenceError,
    ReceiptError,
)
from receipt.app.options.app_options import (
    AppOptionsProvider,
    AppOptionsService,
    InstanceAppOptionsProvider,
)
from receipt.app.services.app_resources import FileSystemAppResources
from receipt.app.services.interfaces import PdfFormatter
from receipt.app.services.pdf_service import PdfService
from receipt.app.services.platform_clients import (
    HttpDataClient,
    HttpPdfRenderer,
    HttpProfileClient,
    HttpRegisterClient,
)

logger = logging.getLogger("receipt.main")


def get_app_version() -> str:
    try:
        return version("receipt-pdf")
    except PackageNotFoundError:
        return "0.1.0"


def build_services(
    app: FastAPI,
    settings: ReceiptSettings,
    http_client: httpx.AsyncClient,
    *,
    option_providers: Iterable[AppOptionsProvider] = (),
    instance_option_providers: Iterable[InstanceAppOptionsProvider] = (),
    pdf_formatter: Optional[PdfFormatter] = None,
) -> None:
    """
    Wire every service onto ``app.state``.

    Option providers registered here take precedence over the static
    option files of the app; instance providers serve the
    instance-scoped options route.
    """
    resources = FileSystemAppResources(settings.app_root)
    options_service = AppOptionsService(
        static_source=resources,
        providers=option_providers,
        instance_providers=instance_option_providers,
    )

    assembler = ContextAssembler(
        settings=settings,
        app_resources=resources,
        options_provider=options_service,
        register_client=HttpRegisterClient(
            base_url=str(settings.register_endpoint),
            http_client=http_client,
        ),
        profile_client=HttpProfileClient(
            base_url=str(settings.profile_endpoint),
            http_client=http_client,
        ),
        pdf_formatter=pdf_formatter,
    )

    app.state.options_service = options_service
    app.state.pdf_service = PdfService(
        assembler=assembler,
        data_client=HttpDataClient(
            base_url=str(settings.storage_endpoint),
            http_client=http_client,
        ),
        renderer=HttpPdfRenderer(
            base_url=str(settings.pdf_endpoint),
            http_client=http_client,
        ),
    )


def create_app(
    settings: Optional[ReceiptSettings] = None,
    *,
    option_providers: Iterable[AppOptionsProvider] = (),
    instance_option_providers: Iterable[InstanceAppOptionsProvider] = (),
    pdf_formatter: Optional[PdfFormatter] = None,
) -> FastAPI:
    option_providers = list(option_providers)
    instance_option_providers = list(instance_option_providers)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan manager.

        Fails fast on invalid configuration and owns the shared HTTP
        transport used by every platform client.
        """
        logger.info(
            "receipt_startup_begin",
            extra={"service": "receipt", "version": get_app_version()},
        )

        try:
            resolved = settings or get_settings()
        except Exception:
            logger.exception("invalid_receipt_configuration")
            raise

        app.state.settings = resolved
        app.state.http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(resolved.http_timeout_seconds, connect=10.0),
            limits=httpx.Limits(
                max_keepalive_connections=20,
                max_connections=50,
            ),
            headers={"User-Agent": f"receipt-pdf/{get_app_version()}"},
        )

        build_services(
            app,
            resolved,
            app.state.http_client,
            option_providers=option_providers,
            instance_option_providers=instance_option_providers,
            pdf_formatter=pdf_formatter,
        )

        try:
            yield
        finally:
            await app.state.http_client.aclose()
            logger.info("receipt_shutdown_complete")

    app = FastAPI(
        title="receipt-pdf",
        description="Receipt PDF generation with resolved option labels",
        version=get_app_version(),
        lifespan=lifespan,
    )

    app.include_router(options_router)
    app.include_router(receipts_router)

    @app.exception_handler(ReceiptError)
    async def receipt_error_handler(
        request: Request,
        exc: ReceiptError,
    ) -> JSONResponse:
        if isinstance(exc, InvalidInstanceReferenceError):
            status_code = 400
        elif isinstance(exc, ExternalServiceError):
            status_code = 502
        else:
            status_code = 500

        logger.error(
            "receipt_request_failed",
            extra={
                "path": request.url.path,
                "error_type": type(exc).__name__,
                "status_code": status_code,
            },
        )
        return JSONResponse(
            status_code=status_code,
            content={"detail": str(exc), "error": type(exc).__name__},
        )

    return app


app = create_app()
