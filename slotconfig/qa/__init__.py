"""QA validation package for slot configurations.

Checks persisted configuration documents for structural problems before
they are decoded — wrong types, missing sections, duplicate ids and
out-of-range spans.
"""

from .validator import (
    ConfigurationValidator,
    Issue,
    ValidationResult,
    require_valid,
    validate_configuration,
)

__all__ = [
    "ConfigurationValidator",
    "Issue",
    "ValidationResult",
    "require_valid",
    "validate_configuration",
]
