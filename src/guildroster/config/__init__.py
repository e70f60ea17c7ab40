"""Configuration helpers for the class catalogue and runtime settings."""

from .settings import RosterSettings, StoreMode
from .specs import (
    RAIDERIO_ROLE_MAP,
    ClassSpecs,
    SpecInfo,
    get_role_for_spec,
    get_specs,
    iter_classes,
)

__all__ = [
    "RAIDERIO_ROLE_MAP",
    "ClassSpecs",
    "RosterSettings",
    "SpecInfo",
    "StoreMode",
    "get_role_for_spec",
    "get_specs",
    "iter_classes",
]
