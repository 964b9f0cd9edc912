"""ABOUTME: Security utilities for password hashing and password strength validation
ABOUTME: Wraps werkzeug hashing and Django's password validation machinery"""

from collections.abc import Iterable
from typing import Protocol

from django.contrib.auth.password_validation import CommonPasswordValidator, validate_password
from django.core.exceptions import ValidationError
from werkzeug.security import check_password_hash, generate_password_hash

MIN_PASSWORD_LENGTH = 9


class PasswordValidator(Protocol):
    def validate(self, password: str, user: object | None = None) -> None: ...

    def get_help_text(self) -> str: ...


def hash_password(password: str) -> str:
    """Hash a password using werkzeug's secure method."""
    return generate_password_hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    """Verify a password against its hash."""
    if not password or not password_hash:
        return False
    return check_password_hash(password_hash, password)


# Django's own messages go through its translation machinery, which needs Django
# settings. These validators only use plain strings.


class MinimumLengthValidator:
    def __init__(self, min_length: int = MIN_PASSWORD_LENGTH) -> None:
        self.min_length = min_length

    def validate(self, password: str, user: object | None = None) -> None:
        if len(password) < self.min_length:
            raise ValidationError(
                f"This password is too short. It must contain at least {self.min_length} characters.",
                code="password_too_short",
            )

    def get_help_text(self) -> str:
        return f"Your password must contain at least {self.min_length} characters."


class NumericPasswordValidator:
    def validate(self, password: str, user: object | None = None) -> None:
        if password.isdigit():
            raise ValidationError("This password is entirely numeric.", code="password_entirely_numeric")

    def get_help_text(self) -> str:
        return "Your password cannot be entirely numeric."


class EmailSimilarityValidator:
    """Reject passwords that contain the local part of the user's email address."""

    def validate(self, password: str, user: object | None = None) -> None:
        email = getattr(user, "email", "") or ""
        local_part = email.split("@")[0].lower()
        if len(local_part) >= 3 and local_part in password.lower():
            raise ValidationError("The password is too similar to the email address.", code="password_too_similar")

    def get_help_text(self) -> str:
        return "Your password cannot contain your email address."


class SafeCommonPasswordValidator(CommonPasswordValidator):  # type: ignore[no-any-unimported]
    def get_error_message(self) -> str:
        return "This password is too common."

    def get_help_text(self) -> str:
        return "Your password cannot be a commonly used password."


def get_password_validators() -> Iterable[PasswordValidator]:
    return (
        SafeCommonPasswordValidator(),
        MinimumLengthValidator(),
        NumericPasswordValidator(),
        EmailSimilarityValidator(),
    )


def validate_password_strength(password: str, user: object | None = None) -> tuple[bool, str]:
    """
    Validate password strength requirements.

    Returns tuple of (is_valid, error_message)
    """
    try:
        validate_password(password, user=user, password_validators=get_password_validators())
    except ValidationError as error:
        return False, " ".join(error.messages)

    return True, ""


def password_validators_help_texts() -> list[str]:
    return [v.get_help_text() for v in get_password_validators()]
