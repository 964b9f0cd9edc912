"""ABOUTME: CLI commands for registering OIDC clients
ABOUTME: Provides commands to add clients, attach them to themes, and list them"""

import click

from openidp.service_layer.exceptions import AlreadyProvisioned, ThemeNotFoundError
from openidp.service_layer.provisioning_service import create_client, list_clients

from . import uow_from_context


@click.group()
def clients() -> None:
    """Client management commands."""
    pass


@clients.command("add")
@click.option("--client-id", required=True, help="OIDC client_id")
@click.option("--name", "client_name", default="", help="Name shown in emails (defaults to the client_id)")
@click.option("--theme", "theme_name", default="", help="Name of an existing theme")
@click.option("--redirect-uri", "redirect_uris", multiple=True, help="Allowed redirect_uri, may be repeated")
@click.option(
    "--post-logout-redirect-uri",
    "post_logout_redirect_uris",
    multiple=True,
    help="Allowed post_logout_redirect_uri, may be repeated",
)
@click.pass_context
def add_client(
    ctx: click.Context,
    client_id: str,
    client_name: str,
    theme_name: str,
    redirect_uris: tuple[str, ...],
    post_logout_redirect_uris: tuple[str, ...],
) -> None:
    """Register a new client."""
    try:
        client = create_client(
            uow_from_context(ctx),
            client_id=client_id,
            client_name=client_name,
            theme_name=theme_name,
            redirect_uris=redirect_uris,
            post_logout_redirect_uris=post_logout_redirect_uris,
        )
    except (AlreadyProvisioned, ThemeNotFoundError) as e:
        click.echo(click.style(f"✗ Error: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style("✓ Client created successfully:", "green"))
    click.echo(f"  Client ID: {client.client_id}")
    click.echo(f"  Name: {client.client_name}")
    click.echo(f"  Themed: {'yes' if client.has_theme else 'no'}")


@clients.command("list")
@click.pass_context
def list_all(ctx: click.Context) -> None:
    """List registered clients."""
    all_clients = list_clients(uow_from_context(ctx))
    if not all_clients:
        click.echo("No clients found.")
        return

    click.echo(f"Found {len(all_clients)} client(s):")
    for client in sorted(all_clients, key=lambda c: c.client_id):
        theme = str(client.theme_id) if client.theme_id else "-"
        click.echo(f"  {client.client_id:<30} {client.client_name:<30} theme={theme}")
