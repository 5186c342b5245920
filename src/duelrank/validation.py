# src/duelrank/validation.py

"""Field validators for player data.

All validators are pure: they take a value and a ``ValidationRules``
instance and either return ``None`` or raise a ``ValidationError``
subclass. Nothing here touches storage.
"""

from __future__ import annotations

import re
from typing import Any, Callable

from duelrank.config import ValidationRules, get_settings
from duelrank.exceptions import (
    FormatError,
    ReservedNameError,
    ValidationError,
    WeakPasswordError,
)


def _rules(rules: ValidationRules | None) -> ValidationRules:
    return rules if rules is not None else get_settings().validation


def validate_username(value: Any, rules: ValidationRules | None = None) -> None:
    """Check length, allowed characters and the reserved-name list."""
    rules = _rules(rules)
    if not isinstance(value, str):
        raise FormatError("username", "must be a string")

    if not rules.username_min_length <= len(value) <= rules.username_max_length:
        raise FormatError(
            "username",
            f"must be between {rules.username_min_length} and "
            f"{rules.username_max_length} characters",
        )

    if not re.fullmatch(rules.username_pattern, value):
        raise FormatError(
            "username", "may only contain letters, digits, underscores and hyphens"
        )

    reserved = {name.lower() for name in rules.reserved_usernames}
    if value.lower() in reserved:
        raise ReservedNameError(value)


def validate_email(value: Any, rules: ValidationRules | None = None) -> None:
    rules = _rules(rules)
    if not isinstance(value, str):
        raise FormatError("email", "must be a string")
    if len(value) > rules.email_max_length:
        raise FormatError(
            "email", f"must be at most {rules.email_max_length} characters"
        )
    if not re.fullmatch(rules.email_pattern, value):
        raise FormatError("email", "is not a valid email address")


def validate_password(value: Any, rules: ValidationRules | None = None) -> None:
    """Check password length and required character classes.

    Raises:
        FormatError: If the length is out of bounds
        WeakPasswordError: Listing every missing character class
    """
    rules = _rules(rules)
    if not isinstance(value, str):
        raise FormatError("password", "must be a string")

    if not rules.password_min_length <= len(value) <= rules.password_max_length:
        raise FormatError(
            "password",
            f"must be between {rules.password_min_length} and "
            f"{rules.password_max_length} characters",
        )

    missing: list[str] = []
    if rules.password_require_uppercase and not any(c.isupper() for c in value):
        missing.append("uppercase")
    if rules.password_require_lowercase and not any(c.islower() for c in value):
        missing.append("lowercase")
    if rules.password_require_digit and not any(c.isdigit() for c in value):
        missing.append("digit")
    if rules.password_require_special and all(c.isalnum() for c in value):
        missing.append("special")

    if missing:
        raise WeakPasswordError(missing)


def validate_rating(value: Any, rules: ValidationRules | None = None) -> None:
    rules = _rules(rules)
    # bool is an int subclass but never a valid rating
    if isinstance(value, bool) or not isinstance(value, int):
        raise FormatError("rating", "must be an integer")
    if not rules.rating_min <= value <= rules.rating_max:
        raise FormatError(
            "rating", f"must be between {rules.rating_min} and {rules.rating_max}"
        )


def clamp_rating(value: int, rules: ValidationRules | None = None) -> int:
    """Clamp a computed rating into the configured range."""
    rules = _rules(rules)
    return max(rules.rating_min, min(rules.rating_max, value))


_VALIDATORS: dict[str, Callable[[Any, ValidationRules | None], None]] = {
    "username": validate_username,
    "email": validate_email,
    "password": validate_password,
    "rating": validate_rating,
}


def validate(field: str, value: Any, rules: ValidationRules | None = None) -> None:
    """Validate ``value`` as the named field.

    Args:
        field: One of ``username``, ``email``, ``password``, ``rating``
        value: The candidate value
        rules: Validation constants; defaults to the configured rules

    Raises:
        ValidationError: If the field is unknown or the value is invalid
    """
    validator = _VALIDATORS.get(field)
    if validator is None:
        raise ValidationError(
            f"Unknown field '{field}'", details={"field": field}
        )
    validator(value, rules)
