"""ABOUTME: Password reset service layer for the forgot-password and reset-password pages
ABOUTME: Handles reset token creation, rate limiting, password updates and the reset email"""

import uuid
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from urllib.parse import urlencode

import structlog

from openidp.adapters.email import EmailAdapter
from openidp.adapters.template_renderer import TemplateRenderer
from openidp.adapters.url_generator import URLGenerator
from openidp.domain.password_reset import PasswordResetToken
from openidp.domain.users import User

from .exceptions import InvalidResetToken, PasswordTooWeak, RateLimitExceeded
from .security import hash_password, validate_password_strength
from .unit_of_work import AbstractUnitOfWork

logger = structlog.get_logger(__name__)

DEFAULT_TOKEN_EXPIRY_HOURS = 1
RATE_LIMIT_COUNT = 3
RATE_LIMIT_WINDOW_HOURS = 1


def request_password_reset(
    uow: AbstractUnitOfWork,
    email: str,
    expires_in_hours: int = DEFAULT_TOKEN_EXPIRY_HOURS,
) -> tuple[User, PasswordResetToken] | None:
    """
    Create a password reset token for the account with this email.

    Returns None when there is no active account with the email, so callers can
    show the same success page either way.

    Raises:
        RateLimitExceeded: If the user has requested too many resets recently
    """
    with uow:
        user = uow.users.get_by_email(email)
        if not user or not user.is_active:
            return None

        check_rate_limit(uow, user.id)

        token = PasswordResetToken(user_id=user.id, expires_in_hours=expires_in_hours)
        uow.password_reset_tokens.add(token)
        result = (user.create_detached_copy(), token.create_detached_copy())
        uow.commit()

    logger.info("password reset token created", user_id=str(user.id))
    return result


def check_rate_limit(uow: AbstractUnitOfWork, user_id: uuid.UUID) -> None:
    """
    Raises:
        RateLimitExceeded: If the user has exceeded rate limits

    Called from inside an open unit of work.
    """
    since = datetime.now(UTC) - timedelta(hours=RATE_LIMIT_WINDOW_HOURS)
    recent_count = uow.password_reset_tokens.count_recent_requests(user_id, since)

    if recent_count >= RATE_LIMIT_COUNT:
        raise RateLimitExceeded(
            operation="password reset",
            retry_after_seconds=int(RATE_LIMIT_WINDOW_HOURS * 3600),
        )


def reset_password_with_token(
    uow: AbstractUnitOfWork,
    token_string: str,
    new_password: str,
) -> User:
    """
    Reset a user's password using a valid token.

    Following the link in the email proves the user owns the address, so the
    profile is also marked email_verified. Any other outstanding tokens for the
    user are invalidated.

    Raises:
        InvalidResetToken: If token is missing, expired or used, or the user is gone
        PasswordTooWeak: If password doesn't meet requirements
    """
    with uow:
        token = uow.password_reset_tokens.get_by_token(token_string) if token_string else None
        if not token:
            raise InvalidResetToken("Token not found")
        if token.is_expired():
            raise InvalidResetToken("Token has expired")
        if token.is_used():
            raise InvalidResetToken("Token has already been used")

        user = uow.users.get(token.user_id)
        if not user or not user.is_active:
            raise InvalidResetToken("Associated user not found or inactive")

        is_valid, error_msg = validate_password_strength(new_password, user)
        if not is_valid:
            raise PasswordTooWeak(error_msg)

        user.set_password_hash(hash_password(new_password))
        user.mark_email_verified()
        token.use()
        invalidated = uow.password_reset_tokens.invalidate_user_tokens(user.id)

        detached_user = user.create_detached_copy()
        uow.commit()

    logger.info("password reset", user_id=str(detached_user.id), other_tokens_invalidated=invalidated)
    return detached_user


def get_valid_token(uow: AbstractUnitOfWork, token_string: str) -> PasswordResetToken | None:
    """Return the token if it can still be used, otherwise None."""
    if not token_string:
        return None
    with uow:
        token = uow.password_reset_tokens.get_by_token(token_string)
        if token is None or not token.is_valid():
            return None
        return token.create_detached_copy()


def send_password_reset_email(
    email_adapter: EmailAdapter,
    template_renderer: TemplateRenderer,
    url_generator: URLGenerator,
    user: User,
    reset_token: str,
    query: Mapping[str, str],
    client_name: str,
    expires_in_hours: int = DEFAULT_TOKEN_EXPIRY_HOURS,
) -> bool:
    """
    Email the user a link to the reset-password page.

    The link carries the original authorization query so the user ends up back
    at the client once they have set a new password.
    """
    base_url = url_generator.generate_url("user.reset_password", _external=True)
    reset_url = f"{base_url}?{urlencode({**query, 'token': reset_token})}"

    context = {
        "user_name": user.display_name,
        "email_address": user.email,
        "reset_url": reset_url,
        "expiry_hours": expires_in_hours,
        "client_name": client_name,
    }
    text_body = template_renderer.render_template("emails/password_reset.txt", **context)
    html_body = template_renderer.render_template("emails/password_reset.html", **context)

    success = email_adapter.send_email(
        to=[user.email],
        subject=f"Reset your {client_name} password",
        text_body=text_body,
        html_body=html_body,
    )
    if success:
        logger.info("password reset email sent", user_id=str(user.id))
    else:
        logger.error("failed to send password reset email", user_id=str(user.id))
    return success
