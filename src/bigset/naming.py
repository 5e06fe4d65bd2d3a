"""Set name validation and identifier quoting.

Set names become SQLite table identifiers, which cannot be bound as statement
parameters. Every name is checked against this allow-list before it reaches a
statement, and is then wrapped in double quotes.
"""

from __future__ import annotations

from .errors import ValidationError

QUOTE = '"'
RESERVED_PREFIX = "sqlite_"


def validate_name(name: object) -> str:
    if not isinstance(name, str):
        raise ValidationError(f"{name!r} is not an allowable name as it is not a string.")
    if QUOTE in name:
        raise ValidationError(f"{name} is not an allowable name as it contains double quotes.")
    if "\x00" in name:
        raise ValidationError(f"{name!r} is not an allowable name as it contains a NUL character.")
    if name.lower().startswith(RESERVED_PREFIX):
        raise ValidationError(
            f"{name} is not an allowable name as the '{RESERVED_PREFIX}' prefix is reserved."
        )
    return name


def validate_names(name: object, *names: object) -> None:
    """Validate every name, raising on the first bad one before any work starts."""

    validate_name(name)
    for other in names:
        validate_name(other)


def quote_identifier(name: str) -> str:
    return f"{QUOTE}{validate_name(name)}{QUOTE}"
