"""ABOUTME: CLI commands for database management operations
ABOUTME: Provides commands to create and reset the database tables"""

import os

import click
from sqlalchemy import Engine

from openidp.adapters.orm import metadata


def _engine(ctx: click.Context) -> Engine:
    return ctx.obj["session_factory"].kw["bind"]


@click.group()
def database() -> None:
    """Database management commands."""
    pass


@database.command("init")
@click.pass_context
def init_db(ctx: click.Context) -> None:
    """Create any tables that don't exist yet."""
    try:
        metadata.create_all(_engine(ctx))
    except Exception as e:
        click.echo(click.style(f"✗ Error creating tables: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style("✓ Database tables created.", "green"))


@database.command("reset")
@click.pass_context
def reset_db(ctx: click.Context) -> None:
    """Reset the database (drop all tables and recreate)."""
    if os.environ.get("ALLOW_RESET_DB", "") != "DANGEROUS":
        click.echo("Resetting the database is a dangerous operation. In order to enable it set the")
        click.echo("environment variable ALLOW_RESET_DB to DANGEROUS.")
        return

    click.echo(click.style("⚠️  WARNING: This will destroy ALL data in the database!", "red"))
    delete_confirm = click.prompt("Type 'delete everything' if you want to continue.")
    if delete_confirm != "delete everything":
        click.echo("Operation cancelled.")
        return

    try:
        engine = _engine(ctx)
        metadata.drop_all(engine)
        metadata.create_all(engine)
    except Exception as e:
        click.echo(click.style(f"✗ Error resetting database: {e}", "red"))
        raise click.Abort() from e

    click.echo(click.style("✓ Database reset successfully.", "green"))
