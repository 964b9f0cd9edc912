"""ABOUTME: Main CLI entry point using Click for OpenIDP administration
ABOUTME: Provides subcommands for database setup and client and theme provisioning"""

import click
from sqlalchemy.orm import sessionmaker

from openidp.adapters.database import create_session_factory, start_mappers
from openidp.config import get_config
from openidp.service_layer.unit_of_work import SqlAlchemyUnitOfWork


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """OpenIDP administration CLI."""
    ctx.ensure_object(dict)

    config = get_config()
    ctx.obj["config"] = config
    # tests pass their own session factory in
    if "session_factory" not in ctx.obj:
        ctx.obj["session_factory"] = create_session_factory(config.SQLALCHEMY_DATABASE_URI)
    start_mappers()


def uow_from_context(ctx: click.Context) -> SqlAlchemyUnitOfWork:
    session_factory: sessionmaker = ctx.obj["session_factory"]
    return SqlAlchemyUnitOfWork(session_factory)


@cli.command()
def version() -> None:
    """Show OpenIDP version."""
    click.echo("OpenIDP 0.1.0")


# Import subcommands to register them
from .clients import clients  # noqa: E402
from .database import database  # noqa: E402
from .themes import themes  # noqa: E402

cli.add_command(clients)
cli.add_command(database)
cli.add_command(themes)


if __name__ == "__main__":
    cli()
