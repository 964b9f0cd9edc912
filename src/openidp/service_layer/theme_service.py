"""ABOUTME: Themed page rendering for the account pages
ABOUTME: Resolves a client's themed template and falls back to the default templates on disk"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

import structlog

from openidp.adapters.default_templates import DefaultTemplateCatalog
from openidp.domain.themes import Template

from .exceptions import ClientIdRequired, ClientNotFoundError
from .unit_of_work import AbstractUnitOfWork

logger = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class ThemedTemplate:
    """Result of rendering a page: the themed template used, if any, and the HTML."""

    template: Template | None
    rendered_template: str

    @property
    def is_themed(self) -> bool:
        return self.template is not None


class ThemeService:
    """Renders account pages for a client.

    Each call is independent: it reads the client and its template, then renders.
    Clients, themes and templates are provisioned elsewhere and only read here.
    """

    def __init__(self, uow: AbstractUnitOfWork, default_templates: DefaultTemplateCatalog) -> None:
        self.uow = uow
        self.default_templates = default_templates

    def fetch_template(self, client_id: str | None, page: str) -> Template | None:
        """
        Look up the client's themed template for a page.

        Returns None when the client has no theme, or its theme has no template for
        the page. The returned template is detached and has its layout loaded.

        Raises:
            ClientIdRequired: client_id is empty
            ClientNotFoundError: no client with that id
        """
        if not client_id:
            raise ClientIdRequired("ThemeService.fetch_template")

        with self.uow:
            client = self.uow.clients.get(client_id)
            if client is None:
                raise ClientNotFoundError(client_id)

            if client.theme_id is None:
                return None

            template = self.uow.templates.get_by_theme_and_name(client.theme_id, page)
            if template is None:
                return None

            return template.create_detached_copy()

    def get_themed_template(self, client_id: str | None, page: str, context: Mapping[str, Any]) -> ThemedTemplate:
        if not client_id:
            raise ClientIdRequired("ThemeService.get_themed_template")

        template = self.fetch_template(client_id, page)

        if template is None:
            logger.debug("rendering default template", client_id=client_id, page=page)
            rendered = self.default_templates.render(page, context)
        else:
            logger.debug("rendering themed template", client_id=client_id, page=page, theme_id=str(template.theme_id))
            rendered = template.render(page, context)

        return ThemedTemplate(template=template, rendered_template=rendered)

    def render_themed_template(self, client_id: str | None, page: str, context: Mapping[str, Any]) -> str:
        return self.get_themed_template(client_id, page, context).rendered_template
