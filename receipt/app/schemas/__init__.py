from .context import PdfRenderContext
from .layout import (
    ComponentSettings,
    LayoutSet,
    LayoutSets,
    LayoutSettings,
    MappingDeclaration,
    MappingPair,
    PageSettings,
)
from .options import (
    AppOption,
    AppOptions,
    OptionMappingContext,
    OptionsDictionary,
)
from .platform import (
    DataElement,
    Instance,
    InstanceOwner,
    InstanceReference,
    Party,
    Principal,
    TextResource,
    TextResourceElement,
    UserProfile,
)

__all__ = [
    "AppOption",
    "AppOptions",
    "ComponentSettings",
    "DataElement",
    "Instance",
    "InstanceOwner",
    "InstanceReference",
    "LayoutSet",
    "LayoutSets",
    "LayoutSettings",
    "MappingDeclaration",
    "MappingPair",
    "OptionMappingContext",
    "OptionsDictionary",
    "PageSettings",
    "Party",
    "PdfRenderContext",
    "Principal",
    "TextResource",
    "TextResourceElement",
    "UserProfile",
]
