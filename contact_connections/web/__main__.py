from __future__ import annotations

import json
import os
import shutil
import subprocess
from multiprocessing import cpu_count
from pathlib import Path
from typing import TYPE_CHECKING, Final

import anyio
import click
import structlog

from contact_connections.api import logging, oauth2, services
from contact_connections.api.settings import get_settings
from contact_connections.web import __version__, app

if TYPE_CHECKING:
    from contact_connections.api import models

logger = structlog.get_logger(__name__)

GUNICORN_PATH: Final[str | None] = shutil.which("gunicorn")
ALL_INTERFACES: Final[str] = "0.0.0.0"  # noqa: S104


def _authorization_flow(credentials: Path | None, token: Path | None) -> oauth2.AuthorizationFlow:
    settings = get_settings()
    store = oauth2.CredentialStore(credentials or settings.credentials_file, token or settings.token_file)
    return oauth2.AuthorizationFlow(store, settings.oauth_client)


credentials_option = click.option(
    "-c",
    "--credentials",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="The path to the credentials file",
)
token_option = click.option(
    "-t",
    "--token",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="The path to the token file",
)


@click.group()
def cli() -> None:
    pass


@cli.command("dev")
@click.option("-p", "--port", type=int, default=None, help="Default running port.")
def dev(port: int | None) -> None:
    settings = get_settings()
    logging.configure(level=settings.log_level)

    logger.info("Running", version=f"v{__version__}")
    application = app.create_app(settings)
    application.run(debug=True, host=ALL_INTERFACES, port=port or settings.port)


@cli.command("gunicorn")
@click.option("-p", "--port", type=int, default=None, help="Default running port.")
def gunicorn(port: int | None) -> None:
    settings = get_settings()
    logging.configure(level=settings.log_level, renderer=logging.LogRenderer.JSON)

    build_timestamp = os.getenv("BUILD_TIMESTAMP", "").strip()
    if build_timestamp:
        build_timestamp = f" (built {build_timestamp})"

    logger.info("Running", version=f"v{__version__}{build_timestamp}")

    if GUNICORN_PATH is None:
        message = "gunicorn not found"
        raise ValueError(message)

    args = [
        GUNICORN_PATH,
        "--bind",
        f"{ALL_INTERFACES}:{port or settings.port}",
        "--workers",
        "1",
        "--threads",
        str(cpu_count()),
        "--timeout",
        "0",
        "--log-level=info",
        "contact_connections.web.app:serve()",
    ]
    subprocess.check_output(args)  # noqa: S603


@cli.command("authorize")
@credentials_option
@token_option
def authorize(credentials: Path | None, token: Path | None) -> None:
    """Signs in through the browser and saves the credential to the token file."""
    logging.configure(level=get_settings().log_level, stream=logging.STDERR)
    flow = _authorization_flow(credentials, token)
    creds = anyio.run(flow.authorize)
    logger.info("Authorized", token_file=str(flow.store.token_file), valid=bool(creds and creds.refresh_token))


@cli.command("list-connections")
@credentials_option
@token_option
def list_connections(credentials: Path | None, token: Path | None) -> None:
    """Prints every connection as JSON."""
    logging.configure(level=get_settings().log_level, stream=logging.STDERR)
    flow = _authorization_flow(credentials, token)

    async def run() -> list[models.ContactSummary]:
        creds = await flow.authorize()
        return await services.Connections(creds).list_all()

    summaries = anyio.run(run)
    if not summaries:
        click.echo(app.NO_CONNECTIONS)
        return

    click.echo(json.dumps([summary.as_json() for summary in summaries], indent=2))


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
