"""ABOUTME: Form definitions using Flask-WTF with CSRF protection
ABOUTME: One form per account page; field names match the names used in page templates"""

from typing import Any

from flask_wtf import FlaskForm
from flask_wtf.file import FileField
from wtforms import EmailField, PasswordField
from wtforms.validators import DataRequired, EqualTo, Length, Optional, ValidationError

from openidp.domain.value_objects import validate_email as domain_validate_email
from openidp.translations import gettext as _
from openidp.translations import lazy_gettext as _l


class DomainEmailValidator:
    """WTForms validator that uses our domain email validation."""

    def __init__(self, message: str | None = None) -> None:
        self.message = message

    def __call__(self, form: Any, field: Any) -> None:
        if not field.data:
            raise ValidationError(_("Empty email address"))
        try:
            domain_validate_email(field.data.strip())
        except ValueError as error:
            message = self.message or _("Invalid email address")
            raise ValidationError(message) from error


class LoginForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Form for password login."""

    email = EmailField(_l("Email"), validators=[DataRequired(), DomainEmailValidator()])
    password = PasswordField(_l("Password"), validators=[DataRequired()])


class RegistrationForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Form for creating an account."""

    email = EmailField(
        _l("Email"),
        validators=[DataRequired(), DomainEmailValidator(), Length(max=255)],
    )
    password = PasswordField(_l("Password"), validators=[DataRequired()])
    password_confirm = PasswordField(
        _l("Confirm password"),
        validators=[DataRequired(), EqualTo("password", message=_l("Passwords must match"))],
    )


class ChangePasswordForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Form for changing the password of the logged in user."""

    current = PasswordField(_l("Current password"), validators=[DataRequired()])
    password = PasswordField(_l("New password"), validators=[DataRequired()])


class ProfileForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Profile picture upload.

    The profile claims themselves use dotted names (address.locality) that cannot
    be form attributes, so the view reads them from the request form.
    """

    picture = FileField(_l("Picture"), validators=[Optional()])


class ForgotPasswordForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Form for requesting a password reset email."""

    email = EmailField(_l("Email"), validators=[DataRequired(), DomainEmailValidator()])


class ResetPasswordForm(FlaskForm):  # type: ignore[no-any-unimported]
    """Form for setting a new password from a reset link."""

    password = PasswordField(_l("New password"), validators=[DataRequired()])
    password_confirm = PasswordField(
        _l("Confirm new password"),
        validators=[DataRequired(), EqualTo("password", message=_l("Passwords must match"))],
    )
