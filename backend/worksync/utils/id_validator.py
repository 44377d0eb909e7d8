"""Identifier format validation.

Every id-addressed persistence call is guarded by these checks so a malformed
id never reaches the database.
"""

import re

CANONICAL_ID_PATTERN = re.compile(
    r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}",
    re.IGNORECASE,
)


class IdValidationError(ValueError):
    """Raised when an identifier is not in canonical format."""

    def __init__(self, value: object, field: str = "id"):
        self.value = value
        self.field = field
        super().__init__(f"Invalid {field}: {value!r} is not a canonical identifier")


def is_valid_id(value: object) -> bool:
    """Return True if value is a canonical identifier string."""
    return isinstance(value, str) and CANONICAL_ID_PATTERN.fullmatch(value) is not None


def validate_id(value: object, field: str = "id") -> str:
    """Validate an identifier and return it unchanged.

    Args:
        value: Candidate identifier
        field: Argument name used in the error message

    Returns:
        The identifier

    Raises:
        IdValidationError: If the identifier is malformed
    """
    if not is_valid_id(value):
        raise IdValidationError(value, field)
    return value  # type: ignore[return-value]
