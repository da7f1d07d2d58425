from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


# optionsId -> paramName -> resolved value
OptionMappingContext = Dict[str, Dict[str, str]]

# optionsId -> label -> value
OptionsDictionary = Dict[str, Dict[str, str]]


class AppOption(BaseModel):
    label: str
    value: str

    model_config = ConfigDict(frozen=True, extra="ignore")

    @field_validator("value", mode="before")
    @classmethod
    def scalar_value_as_text(cls, v: Any) -> Any:
        if isinstance(v, bool):
            return "true" if v else "false"
        if isinstance(v, (int, float)):
            return str(v)
        return v


class AppOptions(BaseModel):
    """
    Result of one option provider lookup.

    ``options is None`` signals that no option list exists for the
    requested id. An empty list is a list that exists but has no values.
    """

    options: Optional[List[AppOption]] = None
    is_cacheable: bool = Field(False, alias="isCacheable")

    model_config = ConfigDict(populate_by_name=True)

    @classmethod
    def not_found(cls) -> "AppOptions":
        return cls(options=None)

    @property
    def found(self) -> bool:
        return self.options is not None
