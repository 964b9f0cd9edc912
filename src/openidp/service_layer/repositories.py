"""ABOUTME: Abstract repository interfaces for domain objects
ABOUTME: Defines repository contracts to abstract database operations from business logic"""

from __future__ import annotations

import abc
import uuid
from collections.abc import Iterable
from datetime import datetime
from typing import Any

from openidp.domain.clients import Client
from openidp.domain.password_reset import PasswordResetToken
from openidp.domain.themes import Layout, Template, Theme
from openidp.domain.users import User


class AbstractRepository(abc.ABC):
    """Base repository interface providing common operations."""

    @abc.abstractmethod
    def add(self, item: Any) -> None:
        """Add an item to the repository."""
        raise NotImplementedError

    @abc.abstractmethod
    def get(self, item_id: Any) -> Any | None:
        """Get an item by its ID."""
        raise NotImplementedError

    @abc.abstractmethod
    def all(self) -> Iterable[Any]:
        """List all items in the repository."""
        raise NotImplementedError


class UserRepository(AbstractRepository):
    """Repository interface for User domain objects."""

    @abc.abstractmethod
    def get_by_email(self, email: str) -> User | None:
        """Get a user by their email address."""
        raise NotImplementedError


class ClientRepository(AbstractRepository):
    """Repository interface for Client domain objects, keyed by client_id."""

    @abc.abstractmethod
    def get(self, item_id: str) -> Client | None:
        """Get a client by its client_id."""
        raise NotImplementedError


class ThemeRepository(AbstractRepository):
    """Repository interface for Theme domain objects."""

    @abc.abstractmethod
    def get_by_name(self, name: str) -> Theme | None:
        raise NotImplementedError


class LayoutRepository(AbstractRepository):
    """Repository interface for Layout domain objects."""

    @abc.abstractmethod
    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Layout | None:
        raise NotImplementedError


class TemplateRepository(AbstractRepository):
    """Repository interface for themed Template domain objects."""

    @abc.abstractmethod
    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Template | None:
        """Get the template for a page within a theme, with its layout loaded."""
        raise NotImplementedError

    @abc.abstractmethod
    def get_for_theme(self, theme_id: uuid.UUID) -> Iterable[Template]:
        raise NotImplementedError


class PasswordResetTokenRepository(AbstractRepository):
    """Repository interface for PasswordResetToken domain objects."""

    @abc.abstractmethod
    def get_by_token(self, token: str) -> PasswordResetToken | None:
        raise NotImplementedError

    @abc.abstractmethod
    def count_recent_requests(self, user_id: uuid.UUID, since: datetime) -> int:
        """Count tokens created for the user since the given time."""
        raise NotImplementedError

    @abc.abstractmethod
    def invalidate_user_tokens(self, user_id: uuid.UUID) -> int:
        """Mark every still valid token of the user as used. Returns how many were changed."""
        raise NotImplementedError
