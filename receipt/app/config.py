"""
Centralized configuration for the receipt PDF service.

Pydantic v2 settings management. Values are read from the environment
(prefix RECEIPT_) once at startup and are immutable afterwards.
"""

from functools import lru_cache
from pathlib import Path
from typing import Annotated, Optional

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# -------------------------------------------------------------------------
# Reusable Type Aliases
# -------------------------------------------------------------------------

LanguageCode = Annotated[
    str,
    Field(
        pattern=r"^[a-z]{2,3}$",
        description="Two or three letter lowercase language code",
    ),
]


# -------------------------------------------------------------------------
# Settings Model
# -------------------------------------------------------------------------

class ReceiptSettings(BaseSettings):
    """
    Application settings parsed from the environment.

    Fails fast at startup if platform endpoints are malformed.
    """

    # ---------------------------------------------------------------------
    # Application identity
    # ---------------------------------------------------------------------

    app_root: Annotated[
        Path,
        Field(
            default=Path("App"),
            description=(
                "Root directory of the application resources "
                "(ui/, config/texts/, options/)"
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # Localization
    # ---------------------------------------------------------------------

    baseline_language: Annotated[
        LanguageCode,
        Field(
            default="nb",
            description=(
                "Fallback language used when a user has no language "
                "preference or the preferred texts are unavailable"
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # Layout parsing
    # ---------------------------------------------------------------------

    layout_components_path: Annotated[
        Optional[str],
        Field(
            default=None,
            min_length=1,
            description=(
                "Single location of the component array inside the "
                "serialized form layouts document. Unset means the "
                "components of every page (data.layout) are scanned."
            ),
        ),
    ]

    # ---------------------------------------------------------------------
    # Platform endpoints
    # ---------------------------------------------------------------------

    storage_endpoint: Annotated[
        AnyHttpUrl,
        Field(
            default="http://localhost:5101/storage/api/v1",
            description="Platform storage API (form data, binary data)",
        ),
    ]

    register_endpoint: Annotated[
        AnyHttpUrl,
        Field(
            default="http://localhost:5101/register/api/v1",
            description="Platform register API (parties)",
        ),
    ]

    profile_endpoint: Annotated[
        AnyHttpUrl,
        Field(
            default="http://localhost:5101/profile/api/v1",
            description="Platform profile API (user profiles)",
        ),
    ]

    pdf_endpoint: Annotated[
        AnyHttpUrl,
        Field(
            default="http://localhost:5070/pdf/api/v1",
            description="PDF rendering service",
        ),
    ]

    # ---------------------------------------------------------------------
    # Operational Boundaries
    # ---------------------------------------------------------------------

    options_max_concurrency: Annotated[
        int,
        Field(
            default=8,
            ge=1,
            le=64,
            description="Upper bound on concurrent option provider calls",
        ),
    ]

    http_timeout_seconds: Annotated[
        float,
        Field(
            default=30.0,
            gt=0,
            description="Timeout applied to every platform HTTP call",
        ),
    ]

    assembly_timeout_seconds: Annotated[
        Optional[float],
        Field(
            default=None,
            gt=0,
            description=(
                "Optional hard upper bound for one render context assembly. "
                "Unset means the caller's cancel scope alone applies."
            ),
        ),
    ]

    @field_validator("layout_components_path")
    @classmethod
    def components_path_is_navigable(cls, v: Optional[str]) -> Optional[str]:
        from receipt.app.options.path_expression import compile_path

        if v is not None:
            compile_path(v)
        return v

    model_config = SettingsConfigDict(
        env_prefix="RECEIPT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )


# -------------------------------------------------------------------------
# Settings Dependency Provider
# -------------------------------------------------------------------------

@lru_cache(maxsize=1)
def get_settings() -> ReceiptSettings:
    """
    Dependency injection provider for application settings.

    Uses an explicit singleton pattern within the FastAPI lifecycle.
    """
    return ReceiptSettings()
