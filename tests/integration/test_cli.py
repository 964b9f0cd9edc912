"""ABOUTME: Integration tests for CLI commands using a real database
ABOUTME: Tests client, theme, layout and template provisioning end to end"""

import pytest

from openidp.adapters.database import start_mappers
from openidp.adapters.default_templates import DefaultTemplateCatalog
from openidp.config import get_templates_path
from openidp.entrypoints.cli import cli
from openidp.service_layer.theme_service import ThemeService
from openidp.service_layer.unit_of_work import SqlAlchemyUnitOfWork


@pytest.fixture(autouse=True)
def setup_mappers():
    start_mappers()


@pytest.fixture
def layout_file(tmp_path):
    path = tmp_path / "layout.html"
    path.write_text("<section>{{ content }}</section>")
    return path


@pytest.fixture
def login_file(tmp_path):
    path = tmp_path / "login.html"
    path.write_text("<p>Welcome to {{ client_id }}</p>")
    return path


def assert_ok(result):
    assert result.exit_code == 0, f"exit code non-zero: {result.exit_code}. Output: {result.output}"


class TestCliThemesIntegration:
    def test_provision_theme_and_render(
        self, sqlite_session_factory, cli_with_session_factory, layout_file, login_file
    ):
        assert_ok(cli_with_session_factory(cli, ["themes", "create", "acme"]))
        assert_ok(cli_with_session_factory(cli, ["themes", "add-layout", "acme", "main", str(layout_file)]))
        result = cli_with_session_factory(
            cli, ["themes", "add-template", "acme", "login", str(login_file), "--layout", "main"]
        )
        assert_ok(result)
        assert "✓ Template for 'login' saved in theme 'acme'" in result.output
        assert_ok(cli_with_session_factory(cli, ["clients", "add", "--client-id", "acme-app", "--theme", "acme"]))

        defaults = DefaultTemplateCatalog(get_templates_path())
        service = ThemeService(SqlAlchemyUnitOfWork(sqlite_session_factory), defaults)
        html = service.render_themed_template("acme-app", "login", {"client_id": "acme-app"})

        assert html == "<section><p>Welcome to acme-app</p></section>"

    def test_list_theme_templates(self, cli_with_session_factory, layout_file, login_file):
        cli_with_session_factory(cli, ["themes", "create", "acme"])
        result = cli_with_session_factory(cli, ["themes", "templates", "acme"])
        assert_ok(result)
        assert "every page uses the defaults" in result.output

        cli_with_session_factory(cli, ["themes", "add-layout", "acme", "main", str(layout_file)])
        cli_with_session_factory(cli, ["themes", "add-template", "acme", "login", str(login_file), "--layout", "main"])
        result = cli_with_session_factory(cli, ["themes", "templates", "acme"])

        assert_ok(result)
        assert "Found 1 template(s) in theme 'acme':" in result.output
        assert "login" in result.output
        assert "layout=main" in result.output

    def test_list_templates_for_missing_theme(self, cli_with_session_factory):
        result = cli_with_session_factory(cli, ["themes", "templates", "nope"])

        assert result.exit_code != 0
        assert "✗ Error" in result.output

    def test_duplicate_theme(self, cli_with_session_factory):
        cli_with_session_factory(cli, ["themes", "create", "acme"])

        result = cli_with_session_factory(cli, ["themes", "create", "acme"])

        assert result.exit_code != 0
        assert "already exists" in result.output

    def test_layout_for_missing_theme(self, cli_with_session_factory, layout_file):
        result = cli_with_session_factory(cli, ["themes", "add-layout", "nope", "main", str(layout_file)])

        assert result.exit_code != 0
        assert "✗ Error" in result.output

    def test_unknown_page_rejected(self, cli_with_session_factory, login_file):
        cli_with_session_factory(cli, ["themes", "create", "acme"])

        result = cli_with_session_factory(
            cli, ["themes", "add-template", "acme", "dashboard", str(login_file), "--layout", "main"]
        )

        assert result.exit_code == 2


class TestCliClientsIntegration:
    def test_add_and_list(self, sqlite_session_factory, cli_with_session_factory):
        result = cli_with_session_factory(
            cli,
            [
                "clients",
                "add",
                "--client-id",
                "portal",
                "--name",
                "Example Portal",
                "--redirect-uri",
                "https://portal.example.com/cb",
                "--redirect-uri",
                "https://portal.example.com/cb2",
            ],
        )
        assert_ok(result)
        assert "✓ Client created successfully:" in result.output

        result = cli_with_session_factory(cli, ["clients", "list"])

        assert_ok(result)
        assert "Found 1 client(s):" in result.output
        assert "Example Portal" in result.output
        with SqlAlchemyUnitOfWork(sqlite_session_factory) as uow:
            client = uow.clients.get("portal")
            assert client.redirect_uris == ["https://portal.example.com/cb", "https://portal.example.com/cb2"]

    def test_list_empty(self, cli_with_session_factory):
        result = cli_with_session_factory(cli, ["clients", "list"])

        assert_ok(result)
        assert "No clients found." in result.output

    def test_unknown_theme(self, cli_with_session_factory):
        result = cli_with_session_factory(cli, ["clients", "add", "--client-id", "portal", "--theme", "missing"])

        assert result.exit_code != 0
        assert "✗ Error" in result.output


class TestCliDatabaseIntegration:
    def test_init_is_idempotent(self, cli_with_session_factory):
        result = cli_with_session_factory(cli, ["database", "init"])

        assert_ok(result)
        assert "✓ Database tables created." in result.output

    def test_reset_needs_env_var(self, cli_with_session_factory, clear_env_vars):
        clear_env_vars("ALLOW_RESET_DB")

        result = cli_with_session_factory(cli, ["database", "reset"])

        assert_ok(result)
        assert "ALLOW_RESET_DB" in result.output

    def test_reset(self, sqlite_session_factory, cli_with_session_factory, temp_env_vars):
        temp_env_vars(ALLOW_RESET_DB="DANGEROUS")
        cli_with_session_factory(cli, ["clients", "add", "--client-id", "portal"])

        result = cli_with_session_factory(cli, ["database", "reset"], input="delete everything\n")

        assert_ok(result)
        with SqlAlchemyUnitOfWork(sqlite_session_factory) as uow:
            assert list(uow.clients.all()) == []
