from .overrides import (
    VIEWABLE_PERMISSION,
    OverrideRegistry,
    OverrideSets,
    default_registry,
)
from .resolver import PermissionResolver
from .values import PermissionValue, Subject

__all__ = [
    "VIEWABLE_PERMISSION",
    "OverrideRegistry",
    "OverrideSets",
    "PermissionResolver",
    "PermissionValue",
    "Subject",
    "default_registry",
]
