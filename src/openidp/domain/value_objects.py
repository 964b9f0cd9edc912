"""ABOUTME: Value objects and validation helpers for OpenIDP domain models
ABOUTME: Defines shared constants and validation functions used across domain objects"""

from django.core.exceptions import ValidationError
from django.core.validators import EmailValidator

# Profile pictures are only accepted in these formats, mapped to the stored file extension
PICTURE_MIME_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
}


def validate_email(email: str) -> None:
    """Basic email validation."""
    # we use the well-tested and maintained Django EmailValidator
    # Note that passing in the message is important - if we don't do that then
    # the validator will try to use the default message, which will trigger the
    # auto localisation of the string which then blows up.
    validator = EmailValidator(message="Invalid email address")
    try:
        validator(email)
    except ValidationError as error:
        raise ValueError("Invalid email address") from error


def normalise_email(email: str) -> str:
    return email.strip().lower()


# Standard OIDC claims a user can edit on the profile page. Nested claims use dotted names.
PROFILE_CLAIMS = (
    "name",
    "given_name",
    "family_name",
    "middle_name",
    "nickname",
    "preferred_username",
    "website",
    "gender",
    "birthdate",
    "zoneinfo",
    "locale",
    "phone_number",
    "address.street_address",
    "address.locality",
    "address.region",
    "address.postal_code",
    "address.country",
)
