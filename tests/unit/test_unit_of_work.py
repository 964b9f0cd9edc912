"""ABOUTME: Unit tests for the Unit of Work pattern
ABOUTME: Tests transaction management and repository coordination"""

from unittest.mock import MagicMock

import pytest
from sqlalchemy.orm import Session, sessionmaker

from openidp.adapters.sql_repository import (
    SqlAlchemyClientRepository,
    SqlAlchemyLayoutRepository,
    SqlAlchemyPasswordResetTokenRepository,
    SqlAlchemyTemplateRepository,
    SqlAlchemyThemeRepository,
    SqlAlchemyUserRepository,
)
from openidp.service_layer.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture
def mock_session():
    return MagicMock(spec=Session)


@pytest.fixture
def mock_session_factory(mock_session):
    factory = MagicMock(spec=sessionmaker)
    factory.return_value = mock_session
    return factory


class TestSqlAlchemyUnitOfWork:
    def test_repositories_share_the_session(self, mock_session, mock_session_factory):
        with SqlAlchemyUnitOfWork(mock_session_factory) as uow:
            assert uow.session is mock_session
            mock_session_factory.assert_called_once()

            repos = [uow.users, uow.clients, uow.themes, uow.layouts, uow.templates, uow.password_reset_tokens]
            assert [type(repo) for repo in repos] == [
                SqlAlchemyUserRepository,
                SqlAlchemyClientRepository,
                SqlAlchemyThemeRepository,
                SqlAlchemyLayoutRepository,
                SqlAlchemyTemplateRepository,
                SqlAlchemyPasswordResetTokenRepository,
            ]
            assert all(repo.session is mock_session for repo in repos)

    def test_commits_and_closes_on_success(self, mock_session, mock_session_factory):
        with SqlAlchemyUnitOfWork(mock_session_factory):
            pass

        mock_session.commit.assert_called_once()
        mock_session.rollback.assert_not_called()
        mock_session.close.assert_called_once()

    def test_rolls_back_on_exception(self, mock_session, mock_session_factory):
        with pytest.raises(ValueError), SqlAlchemyUnitOfWork(mock_session_factory):
            raise ValueError("boom")

        mock_session.rollback.assert_called_once()
        mock_session.commit.assert_not_called()
        mock_session.close.assert_called_once()

    def test_new_session_each_time(self, mock_session_factory):
        uow = SqlAlchemyUnitOfWork(mock_session_factory)

        with uow:
            pass
        with uow:
            pass

        assert mock_session_factory.call_count == 2
