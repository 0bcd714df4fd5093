import logging
from pathlib import Path
from typing import Optional

import typer

from . import config
from .cleaner import run_cleanup
from .client import connect
from .exceptions import ConfigError, DaemonError, InvalidDurationError
from .logger import setup_logging

logger = logging.getLogger(__name__)

app = typer.Typer(add_completion=False)


@app.command()
def main(
    ctx: typer.Context,
    docker_url: str = typer.Option(config.DEFAULT_DOCKER_URL, "--docker", "-docker", help="Connection to Docker."),
    clean_old: str = typer.Option(
        "", "--clean-old", "-clean-old", help="Delete all images older than this. Use units: 'h','m','s'"
    ),
    clean_none: bool = typer.Option(
        False, "--clean-none", "-clean-none", help="Delete all untagged images. (<none>:<none>)"
    ),
    stop_old: str = typer.Option(
        "", "--stop-old", "-stop-old", help="Stop all containers that are running longer than this. Use units: 'h','m','s'"
    ),
    yes: bool = typer.Option(False, "--yes", "-yes", help="Do not require confirmation."),
    dry_run: bool = typer.Option(False, "--dry-run", help="Only log what would be stopped or deleted."),
    config_file: Optional[Path] = typer.Option(None, "--config", help="JSON file with log_level and log_file."),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Overrides log_level from the config file."),
):
    """Stop long-running containers and delete old or untagged Docker images."""
    try:
        cfg = config.load_config(config_file)
        setup_logging(log_level or cfg.get("log_level", "INFO"), cfg.get("log_file"))
    except ConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)

    try:
        options = config.build_options(
            docker_url=docker_url,
            clean_old=clean_old,
            clean_none=clean_none,
            stop_old=stop_old,
            no_confirm=yes,
            dry_run=dry_run,
        )
    except InvalidDurationError as e:
        logger.error(f"{e}. Use units: 'h','m','s'")
        raise typer.Exit(code=1)

    # Nothing to do is not an error
    if not options.has_action:
        typer.echo(ctx.get_help())
        raise typer.Exit()

    try:
        client = connect(options.docker_url)
    except DaemonError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)

    try:
        reports = run_cleanup(options, client)
    except DaemonError as e:
        logger.error(str(e))
        raise typer.Exit(code=1)
    finally:
        client.close()

    # Per-item failures are reported but never change the exit code
    failed = sum(len(report.errors) for report in reports)
    if failed:
        logger.warning(f"Cleanup finished with {failed} error(s).")
    else:
        logger.info("Cleanup finished.")


if __name__ == "__main__":
    app()
