# backlog_sync/cli.py

import asyncio
import logging
import os

import click

from .api import BacklogAPI
from .config import Config, Settings
from .exceptions import ConfigurationError, MissingArgumentError
from .logger import setup_logger
from .main import SyncOrchestrator


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "-k",
    "--api-key",
    envvar="BACKLOG_API_KEY",
    help="Backlog API key.",
)
@click.option(
    "-s",
    "--space-id",
    envvar="BACKLOG_SPACE_ID",
    help="Backlog space ID, the subdomain of https://[SPACE_ID].backlog.com.",
)
@click.option(
    "-p",
    "--project-id",
    "project_ids",
    multiple=True,
    envvar="BACKLOG_PROJECT_ID",
    help="Project ID to download attachments from. May be given more than once.",
)
@click.option(
    "--host",
    default=Config.BACKLOG_HOST,
    show_default=True,
    help="Backlog host domain.",
)
@click.option(
    "--page-size",
    type=click.IntRange(min=1),
    default=Config.PAGE_SIZE,
    show_default=True,
    help="Issues requested per listing call.",
)
@click.option(
    "-o",
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory the <space_id>/ tree is written under. Defaults to the current directory.",
)
@click.option("--progress", is_flag=True, help="Show a progress bar on stderr.")
@click.option("-v", "--verbose", is_flag=True, help="Log debug output to stderr.")
@click.option(
    "--log-file",
    default=Config.LOG_FILE,
    help="Log file path. Pass an empty string to disable file logging.",
)
def cli(
    api_key,
    space_id,
    project_ids,
    host,
    page_size,
    output_dir,
    progress,
    verbose,
    log_file,
):
    """Download every attachment of every issue in a Backlog project."""
    settings = Settings(
        api_key=api_key,
        space_id=space_id,
        host=host,
        page_size=page_size,
        base_dir=os.path.abspath(output_dir or Config.DOWNLOAD_DIR),
    )
    try:
        settings.validate()
        if not project_ids:
            raise MissingArgumentError("Missing required settings: project_id")
    except ConfigurationError as e:
        ctx = click.get_current_context()
        click.echo(ctx.get_usage(), err=True)
        click.echo(f"Try '{ctx.command_path} -h' for help.", err=True)
        click.echo(f"Error: {e}", err=True)
        raise SystemExit(1)

    logger = setup_logger(
        "backlog_sync",
        log_file or None,
        level=logging.DEBUG if verbose else logging.INFO,
        console=verbose,
    )
    logger.info(
        f"Starting sync of space {settings.space_id} projects {', '.join(project_ids)}"
    )

    summary = asyncio.run(run_sync(settings, project_ids, progress))
    logger.info(f"Sync finished: {summary}")


async def run_sync(settings, project_ids, show_progress=False):
    async with BacklogAPI(settings) as api:
        orchestrator = SyncOrchestrator(api, show_progress=show_progress)
        return await orchestrator.sync_projects(project_ids)


if __name__ == "__main__":
    cli()
