"""Value Objects shared across the domain.

Value Objects are immutable and compared by value, not identity.
They encapsulate validation so invalid values can never exist.
"""

from __future__ import annotations

from dataclasses import dataclass

from stockdesk.domain.exceptions import ValidationError

MAX_NOTES_LENGTH = 250


@dataclass(frozen=True)
class Quantity:
    """A positive integer quantity.

    Enforces the invariant that you cannot reserve zero or negative items.
    """

    value: int

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise ValidationError(
                f"Quantity must be an integer, got {type(self.value).__name__}"
            )
        if self.value < 1:
            raise ValidationError("La quantité doit être au moins 1")

    def __str__(self) -> str:
        return str(self.value)


@dataclass(frozen=True)
class EntityRef:
    """A lightweight id/name pair embedded in reservation payloads."""

    id: str
    name: str = ""

    def __str__(self) -> str:
        return self.name or self.id


def validate_notes(notes: str | None) -> str | None:
    """Normalise free-text notes: blank becomes None, long text is rejected."""
    if notes is None:
        return None
    notes = notes.strip()
    if not notes:
        return None
    if len(notes) > MAX_NOTES_LENGTH:
        raise ValidationError(
            f"Notes cannot exceed {MAX_NOTES_LENGTH} characters (got {len(notes)})"
        )
    return notes
