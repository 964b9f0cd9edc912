"""ABOUTME: Pytest configuration and fixtures for OpenIDP tests
ABOUTME: Provides environment, SQLite database, Flask app and CLI fixtures"""

import os

import pytest
from click.testing import CliRunner
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from openidp.adapters import database, orm
from openidp.domain.clients import Client
from openidp.domain.themes import Layout, Template, Theme
from openidp.domain.users import User
from openidp.service_layer.security import hash_password
from openidp.service_layer.unit_of_work import SqlAlchemyUnitOfWork

# passes the strength validators for the emails used in tests
STRONG_PASSWORD = "Tr1cky-Falcon-42"  # pragma: allowlist secret
OTHER_STRONG_PASSWORD = "Quiet-Harbour-77"  # pragma: allowlist secret


@pytest.fixture(autouse=True)
def set_test_env():
    """Automatically set test environment for all tests."""
    original_env = os.environ.get("FLASK_ENV")
    os.environ["FLASK_ENV"] = "testing"
    yield
    if original_env is not None:
        os.environ["FLASK_ENV"] = original_env
    else:
        os.environ.pop("FLASK_ENV", None)


@pytest.fixture
def clear_env_vars():
    """Fixture to temporarily remove environment variables for testing."""
    original_vars = {}

    def _clear_env_vars(*args):
        for key in args:
            original_vars[key] = os.environ.get(key)
            os.environ.pop(key, None)

    yield _clear_env_vars

    for key, value in original_vars.items():
        if value is not None:
            os.environ[key] = value


@pytest.fixture
def temp_env_vars():
    """Fixture to temporarily set environment variables for testing."""
    original_vars = {}

    def _set_env_vars(**kwargs):
        for key, value in kwargs.items():
            if key not in original_vars:
                original_vars[key] = os.environ.get(key)
            os.environ[key] = value

    yield _set_env_vars

    for key, value in original_vars.items():
        if value is not None:
            os.environ[key] = value
        else:
            os.environ.pop(key, None)


@pytest.fixture
def mappers():
    database.start_mappers()
    yield
    database.clear_mappers()


@pytest.fixture
def in_memory_sqlite_db():
    return create_engine("sqlite:///:memory:")


@pytest.fixture
def sqlite_session_factory(in_memory_sqlite_db):
    orm.metadata.create_all(in_memory_sqlite_db)
    database.start_mappers()

    yield sessionmaker(bind=in_memory_sqlite_db, expire_on_commit=False)

    database.clear_mappers()
    orm.metadata.drop_all(in_memory_sqlite_db)


@pytest.fixture
def cli_with_session_factory(sqlite_session_factory):
    """Fixture that provides a Click runner with test session factory in context."""

    def _invoke_cli_with_context(cli_command, args, **kwargs):
        runner = CliRunner()
        return runner.invoke(cli_command, args, obj={"session_factory": sqlite_session_factory}, **kwargs)

    return _invoke_cli_with_context


@pytest.fixture
def app(temp_env_vars, tmp_path):
    """Flask app on an in-memory SQLite database, with pictures stored under tmp_path."""
    from openidp.entrypoints.flask_app import create_app

    temp_env_vars(
        PICTURE_STORAGE_DIR=str(tmp_path / "pictures"),
        PICTURE_BASE_URL="http://localhost/media",
        EMAIL_BACKEND="console",
    )
    app = create_app("testing")
    orm.metadata.create_all(app.extensions["session_factory"].kw["bind"])

    yield app

    database.clear_mappers()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def app_uow(app):
    """Build a fresh unit of work on the app's database."""

    def _make_uow():
        return SqlAlchemyUnitOfWork(app.extensions["session_factory"])

    return _make_uow


@pytest.fixture
def registered_client(app_uow):
    """An unthemed client with one redirect and one post logout redirect registered."""
    with app_uow() as uow:
        client = Client(
            client_id="portal",
            client_name="Example Portal",
            redirect_uris=["https://portal.example.com/callback"],
            post_logout_redirect_uris=["https://portal.example.com/bye"],
        )
        uow.clients.add(client)
        uow.commit()
        return client.create_detached_copy()


@pytest.fixture
def themed_client(app_uow):
    """A client whose theme only overrides the login page."""
    with app_uow() as uow:
        theme = Theme(name="acme")
        layout = Layout(theme_id=theme.id, name="acme-layout", code="<div class='acme'>{{ content }}</div>")
        template = Template(
            theme_id=theme.id,
            name="login",
            code="<p>ACME sign in for {{ client_id }}</p>",
            layout=layout,
        )
        client = Client(client_id="acme", client_name="ACME", theme_id=theme.id)
        uow.themes.add(theme)
        uow.layouts.add(layout)
        uow.templates.add(template)
        uow.clients.add(client)
        uow.commit()
        return client.create_detached_copy()


@pytest.fixture
def existing_user(app_uow):
    with app_uow() as uow:
        user = User(
            email="ada@example.com",
            password_hash=hash_password(STRONG_PASSWORD),
            profile={"given_name": "Ada"},
        )
        uow.users.add(user)
        uow.commit()
        return user.create_detached_copy()
