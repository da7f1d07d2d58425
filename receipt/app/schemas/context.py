from __future__ import annotations

from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_serializer, field_validator

from receipt.app.schemas.layout import LayoutSettings
from receipt.app.schemas.platform import Instance, Party, TextResource
from receipt.app.utils.immutable import freeze, thaw


class PdfRenderContext(BaseModel):
    """
    Immutable render context handed to the PDF renderer.

    Built exactly once per generation request from fully resolved
    inputs. Nothing in this model is fetched lazily, and nothing in it
    can be changed after construction: nested models are frozen and the
    layout and option mappings are held as read-only copies.

    Serialized with ``by_alias=True`` to produce the renderer's wire
    names.
    """

    data: str = Field(
        ...,
        description=(
            "Deterministic, reversible encoding of the submitted form data"
        ),
    )

    form_layouts: Mapping[str, Any] = Field(
        ...,
        alias="formLayouts",
        description="Form layouts of the selected layout set, by page name",
    )

    layout_settings: LayoutSettings = Field(..., alias="layoutSettings")

    text_resources: TextResource = Field(
        ...,
        alias="textResources",
        description=(
            "Texts in the resolved language, the baseline language, "
            "or an empty bundle"
        ),
    )

    options_dictionary: Mapping[str, Mapping[str, str]] = Field(
        default_factory=dict,
        validate_default=True,
        alias="optionsDictionary",
        description="optionsId -> label -> value",
    )

    party: Optional[Party] = Field(
        None,
        description="Party owning the instance",
    )

    user_party: Optional[Party] = Field(
        None,
        alias="userParty",
        description="Acting party",
    )

    instance: Instance

    language: str

    model_config = ConfigDict(
        frozen=True,
        populate_by_name=True,
        extra="forbid",
    )

    @field_validator("form_layouts", "options_dictionary")
    @classmethod
    def read_only_copy(cls, v: Mapping[str, Any]) -> Mapping[str, Any]:
        return freeze(v)

    @field_serializer("form_layouts", "options_dictionary")
    def plain_mapping(self, v: Mapping[str, Any]) -> dict:
        return thaw(v)
