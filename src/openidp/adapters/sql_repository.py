"""ABOUTME: SQLAlchemy implementations of repository interfaces
ABOUTME: Provides concrete database operations using SQLAlchemy sessions"""

from __future__ import annotations

import uuid
from collections.abc import Iterable
from datetime import UTC, datetime

from sqlalchemy.orm import Session, joinedload

from openidp.adapters import orm
from openidp.domain.clients import Client
from openidp.domain.password_reset import PasswordResetToken
from openidp.domain.themes import Layout, Template, Theme
from openidp.domain.users import User
from openidp.domain.value_objects import normalise_email
from openidp.service_layer.repositories import (
    ClientRepository,
    LayoutRepository,
    PasswordResetTokenRepository,
    TemplateRepository,
    ThemeRepository,
    UserRepository,
)


class SqlAlchemyRepository:
    """Base SQLAlchemy repository with common functionality."""

    def __init__(self, session: Session) -> None:
        self.session = session


class SqlAlchemyUserRepository(SqlAlchemyRepository, UserRepository):
    """SQLAlchemy implementation of UserRepository."""

    def add(self, item: User) -> None:
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> User | None:
        return self.session.query(User).filter_by(id=item_id).first()

    def all(self) -> Iterable[User]:
        return self.session.query(User).all()

    def get_by_email(self, email: str) -> User | None:
        return self.session.query(User).filter_by(email=normalise_email(email)).first()


class SqlAlchemyClientRepository(SqlAlchemyRepository, ClientRepository):
    """SQLAlchemy implementation of ClientRepository."""

    def add(self, item: Client) -> None:
        self.session.add(item)

    def get(self, item_id: str) -> Client | None:
        return self.session.query(Client).filter_by(client_id=item_id).first()

    def all(self) -> Iterable[Client]:
        return self.session.query(Client).order_by(orm.clients.c.client_id).all()


class SqlAlchemyThemeRepository(SqlAlchemyRepository, ThemeRepository):
    """SQLAlchemy implementation of ThemeRepository."""

    def add(self, item: Theme) -> None:
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> Theme | None:
        return self.session.query(Theme).filter_by(id=item_id).first()

    def all(self) -> Iterable[Theme]:
        return self.session.query(Theme).order_by(orm.themes.c.name).all()

    def get_by_name(self, name: str) -> Theme | None:
        return self.session.query(Theme).filter_by(name=name).first()


class SqlAlchemyLayoutRepository(SqlAlchemyRepository, LayoutRepository):
    """SQLAlchemy implementation of LayoutRepository."""

    def add(self, item: Layout) -> None:
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> Layout | None:
        return self.session.query(Layout).filter_by(id=item_id).first()

    def all(self) -> Iterable[Layout]:
        return self.session.query(Layout).all()

    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Layout | None:
        return self.session.query(Layout).filter_by(theme_id=theme_id, name=name).first()


class SqlAlchemyTemplateRepository(SqlAlchemyRepository, TemplateRepository):
    """SQLAlchemy implementation of TemplateRepository."""

    def add(self, item: Template) -> None:
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> Template | None:
        return self.session.query(Template).options(joinedload(Template.layout)).filter_by(id=item_id).first()

    def all(self) -> Iterable[Template]:
        return self.session.query(Template).options(joinedload(Template.layout)).all()

    def get_by_theme_and_name(self, theme_id: uuid.UUID, name: str) -> Template | None:
        return (
            self.session.query(Template)
            .options(joinedload(Template.layout))
            .filter_by(theme_id=theme_id, name=name)
            .first()
        )

    def get_for_theme(self, theme_id: uuid.UUID) -> Iterable[Template]:
        return (
            self.session.query(Template)
            .options(joinedload(Template.layout))
            .filter_by(theme_id=theme_id)
            .order_by(orm.templates.c.name)
            .all()
        )


class SqlAlchemyPasswordResetTokenRepository(SqlAlchemyRepository, PasswordResetTokenRepository):
    """SQLAlchemy implementation of PasswordResetTokenRepository."""

    def add(self, item: PasswordResetToken) -> None:
        self.session.add(item)

    def get(self, item_id: uuid.UUID) -> PasswordResetToken | None:
        return self.session.query(PasswordResetToken).filter_by(id=item_id).first()

    def all(self) -> Iterable[PasswordResetToken]:
        return self.session.query(PasswordResetToken).all()

    def get_by_token(self, token: str) -> PasswordResetToken | None:
        return self.session.query(PasswordResetToken).filter_by(token=token).first()

    def count_recent_requests(self, user_id: uuid.UUID, since: datetime) -> int:
        return (
            self.session.query(PasswordResetToken)
            .filter(
                orm.password_reset_tokens.c.user_id == user_id,
                orm.password_reset_tokens.c.created_at >= since,
            )
            .count()
        )

    def invalidate_user_tokens(self, user_id: uuid.UUID) -> int:
        now = datetime.now(UTC)
        tokens = (
            self.session.query(PasswordResetToken)
            .filter(
                orm.password_reset_tokens.c.user_id == user_id,
                orm.password_reset_tokens.c.used_at.is_(None),
                orm.password_reset_tokens.c.expires_at > now,
            )
            .all()
        )
        for token in tokens:
            token.used_at = now
        return len(tokens)
