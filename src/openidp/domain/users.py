"""ABOUTME: User domain model for OpenIDP accounts
ABOUTME: Plain Python object holding credentials and the OIDC profile claims"""

import copy
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from .value_objects import normalise_email, validate_email


class User:
    """An identity-provider account.

    The profile is a free-form mapping of OIDC standard claims (name, given_name,
    picture, email_verified, address, ...). It is always replaced rather than mutated
    in place so the JSON column notices the change.
    """

    def __init__(
        self,
        email: str,
        password_hash: str,
        profile: Mapping[str, Any] | None = None,
        user_id: uuid.UUID | None = None,
        created_at: datetime | None = None,
        is_active: bool = True,
    ):
        email = normalise_email(email)
        validate_email(email)

        if not password_hash:
            raise ValueError("User must have a password_hash")

        self.id = user_id or uuid.uuid4()
        self.email = email
        self.password_hash = password_hash
        self.profile: dict[str, Any] = dict(profile or {})
        self.created_at = created_at or datetime.now(UTC)
        self.is_active = is_active

    # couple of things required for flask_login
    @property
    def is_authenticated(self) -> bool:
        return self.is_active

    @property
    def is_anonymous(self) -> bool:
        return False

    def get_id(self) -> str:
        return str(self.id)

    @property
    def display_name(self) -> str:
        """Get user's display name, preferring the profile name over email."""
        name = self.profile.get("name") or " ".join(
            part for part in (self.profile.get("given_name"), self.profile.get("family_name")) if part
        )
        if name:
            return str(name)
        return self.email.split("@")[0]

    @property
    def picture(self) -> str | None:
        return self.profile.get("picture") or None

    @property
    def email_verified(self) -> bool:
        return bool(self.profile.get("email_verified", False))

    def update_profile(self, changes: Mapping[str, Any]) -> None:
        """Shallow-merge changes into the profile: top level keys are replaced wholesale."""
        self.profile = {**self.profile, **changes}

    def mark_email_verified(self) -> None:
        self.update_profile({"email_verified": True})

    def set_password_hash(self, password_hash: str) -> None:
        if not password_hash:
            raise ValueError("password_hash cannot be empty")
        self.password_hash = password_hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, User):  # pragma: no cover
            return False
        return self.id == other.id

    def __hash__(self) -> int:
        return hash(self.id)

    def create_detached_copy(self) -> "User":
        """Create a detached copy of this user for use outside SQLAlchemy sessions"""
        return User(
            email=self.email,
            password_hash=self.password_hash,
            profile=copy.deepcopy(self.profile),
            user_id=self.id,
            created_at=self.created_at,
            is_active=self.is_active,
        )
