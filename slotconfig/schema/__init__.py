"""Slot configuration schema package — typed models for page layouts.

Provides the contract between the editor, the draft store, and the
storefront renderer:

- models.py: Core dataclasses (SlotConfiguration, SlotDefinition, SlotSpan, etc.)
- defaults.py: Built-in layouts for cart, header, category and product pages
- loader.py: YAML serialization/deserialization
"""

from .defaults import PAGE_TYPES, build_default_configuration
from .loader import (
    load_configuration_document,
    load_variants,
    save_configuration,
)
from .models import (
    GRID_COLUMNS,
    MAX_ROW_SPAN,
    WRAPPER_SUFFIX,
    ComponentSize,
    ConfigurationMetadata,
    DraftRecord,
    EditorState,
    PublishedRecord,
    PublishStatus,
    SlotConfiguration,
    SlotDefinition,
    SlotSpan,
    VariantOverride,
)

__all__ = [
    # Models
    "ComponentSize",
    "ConfigurationMetadata",
    "DraftRecord",
    "EditorState",
    "PublishedRecord",
    "PublishStatus",
    "SlotConfiguration",
    "SlotDefinition",
    "SlotSpan",
    "VariantOverride",
    # Constants
    "GRID_COLUMNS",
    "MAX_ROW_SPAN",
    "WRAPPER_SUFFIX",
    "PAGE_TYPES",
    # Defaults
    "build_default_configuration",
    # Loader
    "load_configuration_document",
    "load_variants",
    "save_configuration",
]
