"""Input validation helpers for form data."""
from __future__ import annotations
from typing import Optional, Sequence


def is_blank(value: Optional[str]) -> bool:
    """True for None or the empty string; whitespace counts as a value."""
    return value is None or value == ""


def require_fields(**fields: Optional[str]) -> None:
    """Ensure every named form field has a value.

    Values are checked, not normalized: callers keep using what was submitted.

    Raises:
        ValueError: Listing the missing fields in submission order
    """
    missing = [name for name, value in fields.items() if is_blank(value)]
    if missing:
        raise ValueError(f"Missing required fields: {', '.join(missing)}")


def validate_choice(value: Optional[str], choices: Sequence[str], field: str) -> str:
    """Validate that a select-box value is one of the offered options.

    Args:
        value: Submitted value
        choices: Allowed values
        field: Field name for error messages (e.g., "Theme")

    Returns:
        The submitted value

    Raises:
        ValueError: If value is missing or not offered
    """
    if is_blank(value):
        raise ValueError(f"{field} is required")
    if value not in choices:
        raise ValueError(f"{field} '{value}' is not a valid option")
    return value
