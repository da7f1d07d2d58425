"""
Layout schemas.

Layout sets, layout settings and the typed mapping declarations
extracted from form layout documents.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _none_as_empty_list(v: Any) -> Any:
    return [] if v is None else v


# ----------------------------------------------------------------------
# Mapping declarations
# ----------------------------------------------------------------------

class MappingPair(BaseModel):
    """One binding from a submitted-data location to a provider parameter."""

    data_path: str = Field(..., min_length=1)
    param_name: str = Field(..., min_length=1)

    model_config = ConfigDict(frozen=True, extra="forbid")


class MappingDeclaration(BaseModel):
    """
    Mapping declared by a single layout component.

    Pairs keep the order in which they appear in the component's
    mapping object.
    """

    component_id: str
    options_id: str = Field(..., min_length=1)
    pairs: Tuple[MappingPair, ...] = ()

    model_config = ConfigDict(frozen=True, extra="forbid")


# ----------------------------------------------------------------------
# Layout sets
# ----------------------------------------------------------------------

class LayoutSet(BaseModel):
    id: str
    data_type: str = Field(..., alias="dataType")
    tasks: List[str] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    @field_validator("tasks", mode="before")
    @classmethod
    def normalize_tasks(cls, v: Any) -> Any:
        return _none_as_empty_list(v)


class LayoutSets(BaseModel):
    sets: List[LayoutSet] = Field(default_factory=list)

    model_config = ConfigDict(extra="ignore")

    @field_validator("sets", mode="before")
    @classmethod
    def normalize_sets(cls, v: Any) -> Any:
        return _none_as_empty_list(v)

    def find(self, data_type: str, task_id: str) -> Optional[LayoutSet]:
        """Return the first set bound to both the data type and the task."""
        for layout_set in self.sets:
            if layout_set.data_type == data_type and task_id in layout_set.tasks:
                return layout_set
        return None


# ----------------------------------------------------------------------
# Layout settings
# ----------------------------------------------------------------------

class PageSettings(BaseModel):
    order: Tuple[str, ...] = ()
    exclude_from_pdf: Tuple[str, ...] = Field(
        (),
        alias="excludeFromPdf",
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    @field_validator("order", "exclude_from_pdf", mode="before")
    @classmethod
    def normalize_lists(cls, v: Any) -> Any:
        return _none_as_empty_list(v)


class ComponentSettings(BaseModel):
    exclude_from_pdf: Tuple[str, ...] = Field(
        (),
        alias="excludeFromPdf",
    )

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    @field_validator("exclude_from_pdf", mode="before")
    @classmethod
    def normalize_lists(cls, v: Any) -> Any:
        return _none_as_empty_list(v)


class LayoutSettings(BaseModel):
    """
    Layout settings as handed to the renderer.

    Page ordering, page exclusion and component exclusion collections
    are always present, even when the raw settings omit them or set
    them to null. Unknown settings are preserved. Settings are immutable;
    adjustments produce a copy (``model_copy(update=...)``).
    """

    pages: PageSettings = Field(default_factory=PageSettings)
    components: ComponentSettings = Field(default_factory=ComponentSettings)

    model_config = ConfigDict(populate_by_name=True, extra="allow", frozen=True)

    @field_validator("pages", mode="before")
    @classmethod
    def default_pages(cls, v: Any) -> Any:
        return {} if v is None else v

    @field_validator("components", mode="before")
    @classmethod
    def default_components(cls, v: Any) -> Any:
        return {} if v is None else v
