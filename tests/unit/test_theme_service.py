"""ABOUTME: Unit tests for themed page rendering
ABOUTME: Tests template lookup, fallback to default templates and client id handling"""

import pytest

from openidp.adapters.default_templates import DefaultTemplateCatalog
from openidp.domain.clients import Client
from openidp.domain.themes import Layout, Template, Theme
from openidp.service_layer.exceptions import ClientIdRequired, ClientNotFoundError
from openidp.service_layer.theme_service import ThemedTemplate, ThemeService
from tests.fakes import FakeUnitOfWork


@pytest.fixture
def default_templates(tmp_path):
    (tmp_path / "layout").mkdir()
    (tmp_path / "layout" / "default.html").write_text("<default>{{ content }}</default>")
    (tmp_path / "login.html").write_text("default login for {{ client_id }}")
    (tmp_path / "register.html").write_text("default register")
    return DefaultTemplateCatalog(tmp_path, layouts={"login": "default.html", "register": "default.html"})


@pytest.fixture
def uow():
    uow = FakeUnitOfWork()
    theme = Theme(name="acme")
    layout = Layout(theme_id=theme.id, name="main", code="<acme>{{ content }}</acme>")
    uow.themes.add(theme)
    uow.layouts.add(layout)
    uow.templates.add(Template(theme_id=theme.id, name="login", code="acme login for {{ client_id }}", layout=layout))
    uow.clients.add(Client(client_id="themed", theme_id=theme.id))
    uow.clients.add(Client(client_id="plain"))
    return uow


@pytest.fixture
def service(uow, default_templates):
    return ThemeService(uow=uow, default_templates=default_templates)


class TestFetchTemplate:
    def test_returns_template_for_themed_client(self, service):
        template = service.fetch_template("themed", "login")

        assert template is not None
        assert template.name == "login"
        assert template.layout.name == "main"

    def test_returns_detached_copy(self, service, uow):
        template = service.fetch_template("themed", "login")

        assert template is not None
        assert all(template is not stored for stored in uow.templates.all())

    def test_none_when_client_has_no_theme(self, service, uow):
        assert service.fetch_template("plain", "login") is None
        assert uow.templates.lookups == []

    def test_none_when_theme_lacks_page(self, service):
        assert service.fetch_template("themed", "register") is None

    def test_unknown_client(self, service):
        with pytest.raises(ClientNotFoundError) as excinfo:
            service.fetch_template("nobody", "login")

        assert excinfo.value.client_id == "nobody"

    @pytest.mark.parametrize("client_id", [None, ""])
    def test_client_id_required_before_any_lookup(self, service, uow, client_id):
        with pytest.raises(ClientIdRequired):
            service.fetch_template(client_id, "login")

        assert uow.entered == 0


class TestGetThemedTemplate:
    def test_themed_client_gets_themed_page(self, service):
        result = service.get_themed_template("themed", "login", {"client_id": "themed"})

        assert isinstance(result, ThemedTemplate)
        assert result.is_themed
        assert result.template.name == "login"
        assert result.rendered_template == "<acme>acme login for themed</acme>"

    def test_falls_back_to_default_when_theme_lacks_page(self, service):
        result = service.get_themed_template("themed", "register", {})

        assert not result.is_themed
        assert result.template is None
        assert result.rendered_template == "<default>default register</default>"

    def test_unthemed_client_gets_default_page(self, service):
        result = service.get_themed_template("plain", "login", {"client_id": "plain"})

        assert result.template is None
        assert result.rendered_template == "<default>default login for plain</default>"

    def test_context_is_escaped(self, service):
        result = service.get_themed_template("themed", "login", {"client_id": "<b>"})

        assert result.rendered_template == "<acme>acme login for &lt;b&gt;</acme>"

    def test_client_id_required(self, service):
        with pytest.raises(ClientIdRequired):
            service.get_themed_template("", "login", {})


class TestRenderThemedTemplate:
    def test_returns_only_html(self, service):
        html = service.render_themed_template("themed", "login", {"client_id": "themed"})

        assert html == "<acme>acme login for themed</acme>"

    def test_default_html(self, service):
        assert service.render_themed_template("plain", "register", {}) == "<default>default register</default>"
