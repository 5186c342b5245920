# tests/test_validation.py

"""Tests for the field validators."""

import pytest
from duelrank.config import ValidationRules
from duelrank.exceptions import (
    FormatError,
    ReservedNameError,
    ValidationError,
    WeakPasswordError,
)
from duelrank.validation import (
    clamp_rating,
    validate,
    validate_email,
    validate_password,
    validate_rating,
    validate_username,
)

RULES = ValidationRules()

# =============================================================================
# Username
# =============================================================================


@pytest.mark.parametrize("username", ["abc", "Gun_Slinger-99", "a" * 50, "___"])
def test_valid_usernames_pass(username: str):
    """Test that well-formed usernames are accepted."""
    assert validate_username(username, RULES) is None


@pytest.mark.parametrize("username", ["ab", "a" * 51, ""])
def test_username_length_bounds(username: str):
    """Test that usernames outside 3-50 characters are rejected."""
    with pytest.raises(FormatError) as exc_info:
        validate_username(username, RULES)
    assert exc_info.value.field == "username"


@pytest.mark.parametrize("username", ["has space", "dot.name", "emoji🙂x", "semi;colon"])
def test_username_rejects_disallowed_characters(username: str):
    """Test that only letters, digits, underscores and hyphens are allowed."""
    with pytest.raises(FormatError):
        validate_username(username, RULES)


@pytest.mark.parametrize("username", ["admin", "ADMIN", "System", "guest", "Moderator"])
def test_reserved_usernames_are_rejected_case_insensitively(username: str):
    """Test that reserved names are rejected regardless of case."""
    with pytest.raises(ReservedNameError):
        validate_username(username, RULES)


def test_reserved_name_is_a_validation_error():
    """Test that callers can catch every validator failure with one type."""
    with pytest.raises(ValidationError):
        validate_username("anonymous", RULES)


def test_username_rejects_non_string():
    with pytest.raises(FormatError):
        validate_username(12345, RULES)


# =============================================================================
# Email
# =============================================================================


@pytest.mark.parametrize(
    "email", ["a@b.co", "first.last+tag@example.com", "x_y%z@sub.domain.org"]
)
def test_valid_emails_pass(email: str):
    assert validate_email(email, RULES) is None


@pytest.mark.parametrize(
    "email", ["plainaddress", "@no-local.com", "no-at.example.com", "a@b.c", "a@b"]
)
def test_malformed_emails_are_rejected(email: str):
    with pytest.raises(FormatError) as exc_info:
        validate_email(email, RULES)
    assert exc_info.value.field == "email"


def test_email_longer_than_limit_is_rejected():
    """Test that an otherwise valid email over 100 characters is rejected."""
    email = "a" * 95 + "@x.com"
    assert len(email) > 100
    with pytest.raises(FormatError):
        validate_email(email, RULES)


# =============================================================================
# Password
# =============================================================================


def test_strong_password_passes():
    """Test that special characters are not required."""
    assert validate_password("Password1", RULES) is None


@pytest.mark.parametrize("password", ["Sh0rt", "A1" + "a" * 127])
def test_password_length_bounds(password: str):
    with pytest.raises(FormatError):
        validate_password(password, RULES)


@pytest.mark.parametrize(
    "password, missing",
    [
        ("password1", ["uppercase"]),
        ("PASSWORD1", ["lowercase"]),
        ("Passwordx", ["digit"]),
        ("12345678", ["uppercase", "lowercase"]),
        ("        ", ["uppercase", "lowercase", "digit"]),
    ],
)
def test_weak_password_names_every_missing_class(password: str, missing: list[str]):
    """Test that WeakPasswordError lists all missing character classes."""
    with pytest.raises(WeakPasswordError) as exc_info:
        validate_password(password, RULES)
    assert exc_info.value.missing == missing
    assert exc_info.value.field == "password"


def test_special_character_requirement_is_configurable():
    rules = ValidationRules(password_require_special=True)
    with pytest.raises(WeakPasswordError) as exc_info:
        validate_password("Password1", rules)
    assert exc_info.value.missing == ["special"]
    assert validate_password("Password1!", rules) is None


# =============================================================================
# Rating
# =============================================================================


@pytest.mark.parametrize("rating", [0, 1000, 5000])
def test_ratings_in_range_pass(rating: int):
    assert validate_rating(rating, RULES) is None


@pytest.mark.parametrize("rating", [-1, 5001, 1000.5, "1000", True, None])
def test_invalid_ratings_are_rejected(rating):
    with pytest.raises(FormatError):
        validate_rating(rating, RULES)


@pytest.mark.parametrize(
    "value, expected", [(-50, 0), (0, 0), (2500, 2500), (5000, 5000), (7000, 5000)]
)
def test_clamp_rating(value: int, expected: int):
    assert clamp_rating(value, RULES) == expected


# =============================================================================
# Dispatcher
# =============================================================================


def test_dispatcher_routes_to_field_validator():
    """Test that validate() applies the named field's rules."""
    assert validate("username", "duelist", RULES) is None
    with pytest.raises(ReservedNameError):
        validate("username", "admin", RULES)
    with pytest.raises(FormatError):
        validate("rating", 9000, RULES)


def test_dispatcher_rejects_unknown_field():
    with pytest.raises(ValidationError) as exc_info:
        validate("nickname", "anything", RULES)
    assert exc_info.value.details == {"field": "nickname"}


def test_dispatcher_uses_configured_rules_by_default():
    """Test that omitting rules falls back to the default configuration."""
    assert validate("username", "abc") is None
    with pytest.raises(FormatError):
        validate("username", "ab")


def test_custom_rules_are_honored():
    rules = ValidationRules(username_min_length=5, reserved_usernames=frozenset({"bossman"}))
    with pytest.raises(FormatError):
        validate_username("abcd", rules)
    with pytest.raises(ReservedNameError):
        validate_username("BOSSMAN", rules)
    # No longer reserved under these rules
    assert validate_username("admin", rules) is None
