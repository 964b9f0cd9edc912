"""ABOUTME: Reset token emailed from the forgot-password page
ABOUTME: A token belongs to one user, expires after a number of hours and can be consumed once"""

import secrets
import uuid
from datetime import UTC, datetime, timedelta

# 32 random bytes, about 43 url-safe characters in the emailed link
TOKEN_BYTES = 32


def generate_reset_token(nbytes: int = TOKEN_BYTES) -> str:
    return secrets.token_urlsafe(nbytes)


class PasswordResetToken:
    """
    Links the reset-password page back to an account.

    `expires_in_hours` only matters for new tokens; tokens loaded from the
    database or copied carry their own `expires_at`.
    """

    def __init__(
        self,
        user_id: uuid.UUID,
        expires_in_hours: int = 1,
        token_id: uuid.UUID | None = None,
        token: str | None = None,
        created_at: datetime | None = None,
        expires_at: datetime | None = None,
        used_at: datetime | None = None,
    ):
        if expires_in_hours <= 0:
            raise ValueError("Expiry hours must be positive")

        self.id = token_id or uuid.uuid4()
        self.user_id = user_id
        self.token = token or generate_reset_token()
        self.created_at = created_at or datetime.now(UTC)
        self.expires_at = expires_at or self.created_at + timedelta(hours=expires_in_hours)
        self.used_at = used_at

    def is_expired(self, at: datetime | None = None) -> bool:
        return (at or datetime.now(UTC)) >= self.expires_at

    def is_used(self) -> bool:
        return self.used_at is not None

    def is_valid(self, at: datetime | None = None) -> bool:
        return not self.is_used() and not self.is_expired(at)

    def use(self) -> None:
        """Consume the token. Raises ValueError if it was already used or has expired."""
        now = datetime.now(UTC)
        if self.is_used():
            raise ValueError("Token has already been used")
        if self.is_expired(now):
            raise ValueError("Cannot use expired token")
        self.used_at = now

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PasswordResetToken):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def __repr__(self) -> str:
        return f"PasswordResetToken(id={self.id!s}, user_id={self.user_id!s}, used={self.is_used()})"

    def create_detached_copy(self) -> "PasswordResetToken":
        return PasswordResetToken(
            user_id=self.user_id,
            token_id=self.id,
            token=self.token,
            created_at=self.created_at,
            expires_at=self.expires_at,
            used_at=self.used_at,
        )
