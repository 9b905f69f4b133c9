"""Lunay operations CLI — database setup and maintenance.

Usage:
    lunay init-db                      # Create all tables
    lunay repair-teams --dry-run       # List teams whose creator lost their admin row
    lunay repair-teams                 # ...and restore the missing rows
    lunay serve --reload               # Run the API with uvicorn

Every command takes --database-url (default: LUNAY_DATABASE_URL).
"""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import Optional

import click

from lunay import __version__
from lunay.config import settings

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from synchronous Click handler.

    Handles nested event loops (e.g. when invoked via Click CliRunner
    inside an existing async context like tests) by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        # No running loop: normal CLI invocation
        return asyncio.run(coro)
    else:
        # Already inside an event loop (e.g. test runner), run in a thread
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _engine(database_url: Optional[str]):
    from lunay.db.engine import build_engine

    return build_engine(database_url or settings.database_url)


database_url_option = click.option(
    "--database-url",
    envvar="LUNAY_DATABASE_URL",
    default=None,
    help="SQLAlchemy async URL (defaults to LUNAY_DATABASE_URL)",
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="lunay")
def cli():
    """Lunay — multi-tenant backend for AI agents, workspaces and teams."""


# ---------------------------------------------------------------------------
# lunay init-db
# ---------------------------------------------------------------------------


@cli.command("init-db")
@database_url_option
def init_db(database_url: Optional[str]):
    """Create every table that doesn't exist yet."""
    _run(_init_db_impl(database_url))
    click.secho("Database tables created.", fg="green")


async def _init_db_impl(database_url: Optional[str]) -> None:
    from lunay.db.models import Base

    engine = _engine(database_url)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# lunay repair-teams
# ---------------------------------------------------------------------------


@cli.command("repair-teams")
@database_url_option
@click.option("--dry-run", is_flag=True, help="Only list the teams that need repair")
def repair_teams(database_url: Optional[str], dry_run: bool):
    """Give team creators back a missing 'admin' membership."""
    orphans = _run(_repair_teams_impl(database_url, dry_run))

    if not orphans:
        click.echo("No orphaned teams found.")
        return

    verb = "Would repair" if dry_run else "Repaired"
    click.secho(f"{verb} {len(orphans)} team(s):", bold=True)
    for team_id, name, created_by in orphans:
        click.echo(f"  {team_id}  {name[:40]:40s}  creator={created_by}")


async def _repair_teams_impl(
    database_url: Optional[str], dry_run: bool
) -> list[tuple[str, str, str]]:
    from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

    from lunay.services.team_service import TeamService

    engine = _engine(database_url)
    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            teams = await TeamService(session).repair_orphaned_teams(dry_run=dry_run)
            return [(str(t.id), t.name, str(t.created_by)) for t in teams]
    finally:
        await engine.dispose()


# ---------------------------------------------------------------------------
# lunay serve
# ---------------------------------------------------------------------------


@cli.command()
@click.option("--host", default=None, help="Bind address (default: LUNAY_HOST)")
@click.option("--port", type=int, default=None, help="Port (default: LUNAY_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: Optional[str], port: Optional[int], reload: bool):
    """Run the API server."""
    import uvicorn

    uvicorn.run(
        "lunay.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    cli()
