"""`l10n-api` command implementations."""

from __future__ import annotations

import os
import sys

import typer
from alembic import command

from l10n_api.settings import Settings
from l10n_db.migrations_runner import alembic_config, run_migrations

from .common import run

APP_TARGET = "l10n_api.main:create_app"

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    help="Localization API CLI (start, dev, migrate, history, current, routes).",
)


@app.callback()
def _main(ctx: typer.Context) -> None:
    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _uvicorn_command(settings: Settings, *, host: str | None, port: int | None) -> list[str]:
    cmd = [
        sys.executable,
        "-m",
        "uvicorn",
        APP_TARGET,
        "--factory",
        "--host",
        host or settings.api_host,
        "--port",
        str(port or settings.api_port),
        "--log-level",
        settings.effective_request_log_level.lower(),
    ]
    if not settings.access_log_enabled:
        cmd.append("--no-access-log")
    return cmd


@app.command(name="start", help="Run the API server.")
def start(
    host: str | None = typer.Option(None, "--host", help="Bind host."),
    port: int | None = typer.Option(None, "--port", help="Bind port."),
    migrate_first: bool = typer.Option(
        True, "--migrate/--no-migrate", help="Apply migrations before starting."
    ),
) -> None:
    settings = Settings()
    if migrate_first:
        run_migrations(settings)
    bind_host = host or settings.api_host
    bind_port = port or settings.api_port
    cmd = _uvicorn_command(settings, host=bind_host, port=bind_port)
    typer.echo(f"Starting l10n API on http://{bind_host}:{bind_port}")
    run(cmd, env=os.environ.copy())


@app.command(name="dev", help="Run the API server with auto-reload.")
def dev(
    host: str | None = typer.Option(None, "--host", help="Bind host."),
    port: int | None = typer.Option(None, "--port", help="Bind port."),
) -> None:
    settings = Settings()
    run_migrations(settings)
    cmd = [*_uvicorn_command(settings, host=host, port=port), "--reload", "--reload-dir", "src"]
    run(cmd, env=os.environ.copy())


@app.command(name="migrate", help="Apply Alembic migrations (upgrade head).")
def migrate(
    revision: str = typer.Argument("head", help="Alembic revision to upgrade to."),
) -> None:
    run_migrations(Settings(), revision=revision)


@app.command(name="history", help="Show migration history.")
def history(
    verbose: bool = typer.Option(False, "--verbose", help="Verbose output."),
) -> None:
    with alembic_config(Settings()) as cfg:
        command.history(cfg, verbose=verbose)


@app.command(name="current", help="Show current database revision.")
def current(
    verbose: bool = typer.Option(False, "--verbose", help="Verbose output."),
) -> None:
    with alembic_config(Settings()) as cfg:
        command.current(cfg, verbose=verbose)


@app.command(name="routes", help="List HTTP routes.")
def routes() -> None:
    from fastapi.routing import APIRoute

    from l10n_api.main import create_app

    application = create_app(Settings())
    for route in application.routes:
        if isinstance(route, APIRoute):
            methods = ",".join(sorted(route.methods or []))
            typer.echo(f"{methods:<12} {route.path}")


if __name__ == "__main__":
    app()
