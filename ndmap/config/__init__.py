"""ndmap configuration module."""

from .defaults import (
    CONFIG,
    ENV_OVERRIDES,
    load_config,
    get_value,
)
from .traits import (
    TRAITS,
    TRAIT_LABELS,
    TRAIT_DEFS,
    trait_label,
    validate_trait,
)

__all__ = [
    # Defaults
    "CONFIG",
    "ENV_OVERRIDES",
    "load_config",
    "get_value",
    # Traits
    "TRAITS",
    "TRAIT_LABELS",
    "TRAIT_DEFS",
    "trait_label",
    "validate_trait",
]
