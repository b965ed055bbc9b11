"""Data processing - binding data maps into parsed templates."""

from .binder import (
    apply_template_data,
    convert_to_presentation,
    find_unresolved_variables,
    format_value,
    substitute,
)

__all__ = [
    "apply_template_data",
    "convert_to_presentation",
    "find_unresolved_variables",
    "format_value",
    "substitute",
]
