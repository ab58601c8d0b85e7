"""Command-line interface for Expense RBAC.

This module provides the CLI commands for running and managing
the Expense RBAC service.
"""

import os
from typing import NoReturn

import click

from expense_rbac.core.config import get_settings
from expense_rbac.core.logging import configure_logging, get_logger


@click.group()
@click.version_option(version="0.1.0", prog_name="Expense RBAC")
@click.option(
    "--debug/--no-debug",
    default=False,
    help="Enable debug mode",
)
def cli(debug: bool) -> None:
    """Expense RBAC - roles, permissions and feature visibility.

    Settings are read from EXPENSE_RBAC_* environment variables and .env.
    """
    if debug:
        os.environ["EXPENSE_RBAC_DEBUG"] = "true"
        os.environ["EXPENSE_RBAC_LOG_LEVEL"] = "DEBUG"
        get_settings.cache_clear()


@cli.command()
@click.option(
    "--host",
    type=str,
    default=None,
    help="Host to bind to (overrides config)",
)
@click.option(
    "--port",
    type=int,
    default=None,
    help="Port to bind to (overrides config)",
)
@click.option(
    "--reload",
    is_flag=True,
    default=False,
    help="Enable auto-reload for development",
)
def serve(host: str | None, port: int | None, reload: bool) -> None:
    """Start the Expense RBAC server.

    Runs a single worker: role and visibility state is held in process.
    """
    import uvicorn

    settings = get_settings()

    bind_host = host or settings.host
    bind_port = port or settings.port

    # Configure logging before starting server
    configure_logging(settings)

    logger = get_logger(__name__)
    logger.info(
        "Starting Expense RBAC server",
        host=bind_host,
        port=bind_port,
        reload=reload,
        environment=settings.environment,
    )

    uvicorn.run(
        "expense_rbac.infrastructure.api.app:app",
        host=bind_host,
        port=bind_port,
        workers=1,
        reload=reload,
        log_level=settings.log_level.lower(),
        access_log=True,
    )


@cli.command()
@click.option(
    "--force",
    is_flag=True,
    help="Skip confirmation prompt",
)
def init_db(force: bool) -> None:
    """Initialize the database.

    Creates all database tables and seeds the system roles.
    """
    import asyncio

    from expense_rbac.infrastructure.persistence.database import (
        get_db_manager,
        init_database,
    )

    settings = get_settings()
    configure_logging(settings)

    if not force:
        click.confirm(
            "This will create all database tables. Continue?",
            abort=True,
            default=False,
        )

    async def initialize():
        try:
            await init_database()
            click.echo("Database initialized successfully.")
        finally:
            db = get_db_manager()
            await db.disconnect()

    asyncio.run(initialize())


@cli.command()
def check_catalog() -> None:
    """Check the feature catalog for dependency cycles and inconsistencies.

    Exits with status 1 when a problem is found.
    """
    from expense_rbac.domain.services.feature_catalog import default_feature_graph

    check = default_feature_graph.validate_feature_dependencies()

    click.echo(
        f"Features: {len(default_feature_graph.features)} "
        f"in {len(default_feature_graph.categories)} categories"
    )
    for cycle in check.cycles:
        click.echo(f"Cycle: {' -> '.join(cycle)}", err=True)
    for inconsistency in check.inconsistencies:
        click.echo(f"Inconsistent: {inconsistency}", err=True)

    if not check.is_consistent:
        raise SystemExit(1)
    click.echo("Feature catalog is consistent.")


@cli.command()
@click.argument("user_id")
@click.argument("role_name")
def assign_role(user_id: str, role_name: str) -> None:
    """Assign ROLE_NAME to USER_ID, replacing any previous assignment."""
    import asyncio

    from expense_rbac.domain.entities.role import role_slug
    from expense_rbac.infrastructure.persistence.database import get_db_manager
    from expense_rbac.infrastructure.persistence.repositories import (
        RoleRepository,
        UserRoleRepository,
    )

    settings = get_settings()
    configure_logging(settings)
    logger = get_logger(__name__)

    async def assign() -> None:
        db = get_db_manager()
        try:
            async with db.session() as session:
                role = await RoleRepository(session).get_by_name(role_slug(role_name))
                if role is None:
                    raise click.ClickException(f"Role '{role_name}' not found")
                await UserRoleRepository(session).assign(user_id, role.id)
                await session.commit()

            click.echo(f"Assigned role '{role.name}' to user {user_id}.")
            logger.info("Role assigned via CLI", user_id=user_id, role_id=role.id)
        finally:
            await db.disconnect()

    asyncio.run(assign())


@cli.command()
def info() -> None:
    """Display Expense RBAC configuration."""
    settings = get_settings()

    click.echo(f"""
Expense RBAC v{settings.app_version}
{'=' * 40}

Configuration:
  Environment:  {settings.environment}
  Debug:        {settings.debug}
  API Prefix:   {settings.api_prefix}

Server:
  Host:         {settings.host}
  Port:         {settings.port}

Database:
  URL:          {settings.database_url}
  Echo:         {settings.db_echo}

Roles:
  Administrator: {settings.administrator_role_name}
  Default Role:  {settings.default_role_name}
  Seed System:   {settings.seed_system_roles}

Feature Visibility:
  Toggle Debounce:  {settings.toggle_debounce_seconds}s
  Bulk Warn Above:  {settings.bulk_impact_warning_threshold} users
  Preview Minimum:  {settings.preview_min_feature_count} features

Logging:
  Level:        {settings.log_level}
  Format:       {settings.log_format}
""")


def main() -> NoReturn:
    """Main entry point for the CLI.

    This function is called when the `expense-rbac` command is run
    or when using `python -m expense_rbac`.
    """
    cli()


if __name__ == "__main__":
    main()
