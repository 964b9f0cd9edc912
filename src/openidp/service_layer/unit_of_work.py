"""ABOUTME: Unit of Work pattern implementation for transaction management
ABOUTME: Coordinates repository operations within database transactions"""

from __future__ import annotations

import abc
from types import TracebackType

from sqlalchemy.orm import Session, sessionmaker

from openidp.adapters.database import create_session_factory
from openidp.adapters.sql_repository import (
    SqlAlchemyClientRepository,
    SqlAlchemyLayoutRepository,
    SqlAlchemyPasswordResetTokenRepository,
    SqlAlchemyTemplateRepository,
    SqlAlchemyThemeRepository,
    SqlAlchemyUserRepository,
)
from openidp.service_layer.repositories import (
    ClientRepository,
    LayoutRepository,
    PasswordResetTokenRepository,
    TemplateRepository,
    ThemeRepository,
    UserRepository,
)


class AbstractUnitOfWork(abc.ABC):
    """Abstract Unit of Work interface."""

    users: UserRepository
    clients: ClientRepository
    themes: ThemeRepository
    layouts: LayoutRepository
    templates: TemplateRepository
    password_reset_tokens: PasswordResetTokenRepository

    def __enter__(self) -> AbstractUnitOfWork:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()

    @abc.abstractmethod
    def commit(self) -> None:
        """Commit the current transaction."""
        raise NotImplementedError

    @abc.abstractmethod
    def rollback(self) -> None:
        """Rollback the current transaction."""
        raise NotImplementedError


class SqlAlchemyUnitOfWork(AbstractUnitOfWork):
    """SQLAlchemy implementation of Unit of Work pattern."""

    def __init__(self, session_factory: sessionmaker | None = None) -> None:
        self.session_factory = session_factory or create_session_factory()
        self._session: Session | None = None

    @property
    def session(self) -> Session:
        if self._session is None:
            self._session = self.session_factory()
        assert isinstance(self._session, Session)
        return self._session

    def __enter__(self) -> SqlAlchemyUnitOfWork:
        self.users = SqlAlchemyUserRepository(self.session)
        self.clients = SqlAlchemyClientRepository(self.session)
        self.themes = SqlAlchemyThemeRepository(self.session)
        self.layouts = SqlAlchemyLayoutRepository(self.session)
        self.templates = SqlAlchemyTemplateRepository(self.session)
        self.password_reset_tokens = SqlAlchemyPasswordResetTokenRepository(self.session)

        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        if exc_type is not None:
            self.rollback()
        else:
            self.commit()

        self.session.close()
        self._session = None

    def commit(self) -> None:
        """Commit the current transaction."""
        self.session.commit()

    def rollback(self) -> None:
        """Rollback the current transaction."""
        self.session.rollback()

    def flush(self) -> None:
        """Flush pending changes to the database without committing."""
        self.session.flush()
