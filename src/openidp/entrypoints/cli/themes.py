"""ABOUTME: CLI commands for themes and their layouts and templates
ABOUTME: Layout and template code is read from Jinja2 files on disk"""

from pathlib import Path

import click

from openidp.adapters.default_templates import DEFAULT_LAYOUTS
from openidp.service_layer.exceptions import AlreadyProvisioned, ThemeNotFoundError
from openidp.service_layer.provisioning_service import add_layout, add_template, create_theme, list_theme_templates

from . import uow_from_context

_code_file = click.Path(exists=True, dir_okay=False, path_type=Path)


@click.group()
def themes() -> None:
    """Theme management commands."""
    pass


@themes.command("create")
@click.argument("name")
@click.pass_context
def create(ctx: click.Context, name: str) -> None:
    """Create an empty theme."""
    try:
        theme = create_theme(uow_from_context(ctx), name)
    except (AlreadyProvisioned, ValueError) as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style(f"✓ Theme '{theme.name}' created ({theme.id})", "green"))


@themes.command("add-layout")
@click.argument("theme_name")
@click.argument("layout_name")
@click.argument("code_file", type=_code_file)
@click.pass_context
def add_layout_cmd(ctx: click.Context, theme_name: str, layout_name: str, code_file: Path) -> None:
    """Add or replace a layout in a theme."""
    try:
        add_layout(uow_from_context(ctx), theme_name, layout_name, code_file.read_text(encoding="utf-8"))
    except ThemeNotFoundError as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style(f"✓ Layout '{layout_name}' saved in theme '{theme_name}'", "green"))


@themes.command("add-template")
@click.argument("theme_name")
@click.argument("page", type=click.Choice(sorted(DEFAULT_LAYOUTS)))
@click.argument("code_file", type=_code_file)
@click.option("--layout", "layout_name", required=True, help="Name of a layout in the same theme")
@click.pass_context
def add_template_cmd(ctx: click.Context, theme_name: str, page: str, code_file: Path, layout_name: str) -> None:
    """Add or replace the themed template for a page."""
    try:
        add_template(uow_from_context(ctx), theme_name, page, layout_name, code_file.read_text(encoding="utf-8"))
    except ThemeNotFoundError as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style(f"✓ Template for '{page}' saved in theme '{theme_name}'", "green"))


@themes.command("templates")
@click.argument("theme_name")
@click.pass_context
def list_templates(ctx: click.Context, theme_name: str) -> None:
    """List the pages a theme overrides, with the layout each one uses."""
    try:
        templates = list_theme_templates(uow_from_context(ctx), theme_name)
    except ThemeNotFoundError as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    if not templates:
        click.echo(f"Theme '{theme_name}' has no templates, every page uses the defaults.")
        return

    click.echo(f"Found {len(templates)} template(s) in theme '{theme_name}':")
    for template in templates:
        updated = f"{template.updated_at:%Y-%m-%d %H:%M}"
        click.echo(f"  {template.name:<25} layout={template.layout.name:<20} updated={updated}")
