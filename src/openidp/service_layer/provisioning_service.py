"""ABOUTME: Provisioning of clients, themes, layouts and themed templates
ABOUTME: Used by the CLI; the account pages only ever read what is set up here"""

from collections.abc import Iterable

import structlog

from openidp.domain.clients import Client
from openidp.domain.themes import Layout, Template, Theme

from .exceptions import AlreadyProvisioned, ThemeNotFoundError
from .unit_of_work import AbstractUnitOfWork

logger = structlog.get_logger(__name__)


def create_theme(uow: AbstractUnitOfWork, name: str) -> Theme:
    with uow:
        if uow.themes.get_by_name(name):
            raise AlreadyProvisioned(f"Theme '{name}' already exists")
        theme = Theme(name=name)
        uow.themes.add(theme)
        uow.commit()

    logger.info("theme created", theme_id=str(theme.id), name=theme.name)
    return theme


def create_client(
    uow: AbstractUnitOfWork,
    client_id: str,
    client_name: str = "",
    theme_name: str = "",
    redirect_uris: Iterable[str] = (),
    post_logout_redirect_uris: Iterable[str] = (),
) -> Client:
    """
    Register a client, optionally attached to an existing theme.

    Raises:
        AlreadyProvisioned: If the client_id is taken
        ThemeNotFoundError: If theme_name doesn't match a theme
    """
    with uow:
        if uow.clients.get(client_id):
            raise AlreadyProvisioned(f"Client '{client_id}' already exists")

        theme_id = None
        if theme_name:
            theme = uow.themes.get_by_name(theme_name)
            if not theme:
                raise ThemeNotFoundError(f"Theme '{theme_name}' not found")
            theme_id = theme.id

        client = Client(
            client_id=client_id,
            client_name=client_name,
            theme_id=theme_id,
            redirect_uris=redirect_uris,
            post_logout_redirect_uris=post_logout_redirect_uris,
        )
        uow.clients.add(client)
        detached_client = client.create_detached_copy()
        uow.commit()

    logger.info("client created", client_id=client_id, theme_id=str(theme_id) if theme_id else None)
    return detached_client


def list_clients(uow: AbstractUnitOfWork) -> list[Client]:
    with uow:
        return [client.create_detached_copy() for client in uow.clients.all()]


def add_layout(uow: AbstractUnitOfWork, theme_name: str, name: str, code: str) -> Layout:
    """Add a layout to a theme, replacing the code of an existing layout with the same name."""
    with uow:
        theme = uow.themes.get_by_name(theme_name)
        if not theme:
            raise ThemeNotFoundError(f"Theme '{theme_name}' not found")

        layout = uow.layouts.get_by_theme_and_name(theme.id, name)
        if layout:
            layout.code = code
        else:
            layout = Layout(theme_id=theme.id, name=name, code=code)
            uow.layouts.add(layout)
        detached_layout = layout.create_detached_copy()
        uow.commit()

    logger.info("layout saved", theme=theme_name, layout=name)
    return detached_layout


def add_template(uow: AbstractUnitOfWork, theme_name: str, page: str, layout_name: str, code: str) -> Template:
    """
    Add a themed template for a page, replacing an existing one for the same page.

    Raises:
        ThemeNotFoundError: If the theme or the named layout doesn't exist
    """
    with uow:
        theme = uow.themes.get_by_name(theme_name)
        if not theme:
            raise ThemeNotFoundError(f"Theme '{theme_name}' not found")

        layout = uow.layouts.get_by_theme_and_name(theme.id, layout_name)
        if not layout:
            raise ThemeNotFoundError(f"Layout '{layout_name}' not found in theme '{theme_name}'")

        template = uow.templates.get_by_theme_and_name(theme.id, page)
        if template:
            template.code = code
            template.layout = layout
            template.layout_id = layout.id
            template.touch()
        else:
            template = Template(theme_id=theme.id, name=page, code=code, layout=layout)
            uow.templates.add(template)
        detached_template = template.create_detached_copy()
        uow.commit()

    logger.info("template saved", theme=theme_name, page=page, layout=layout_name)
    return detached_template


def list_theme_templates(uow: AbstractUnitOfWork, theme_name: str) -> list[Template]:
    """Detached copies of a theme's templates, each with its layout."""
    with uow:
        theme = uow.themes.get_by_name(theme_name)
        if not theme:
            raise ThemeNotFoundError(f"Theme '{theme_name}' not found")
        return [template.create_detached_copy() for template in uow.templates.get_for_theme(theme.id)]
