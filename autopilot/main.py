"""
Command line entry point for git-autopilot.
"""

import sys
import logging
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from .config.config import DotDirectory
from .config.settings import get_settings, print_config_summary
from .errors import AutoPilotError
from .session import WatchSession
from .watcher.git_repository import GitRepository

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbosity: int, level_override: Optional[str] = None) -> None:
    """
    0 -> WARNING, 1 -> INFO, 2 -> DEBUG, 3+ -> DEBUG including GitPython
    """
    if level_override:
        level = getattr(logging, level_override.upper(), logging.WARNING)
    elif verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)

    # GitPython and watchdog are chatty at DEBUG
    noisy_level = logging.DEBUG if verbosity >= 3 else logging.WARNING
    for name in ("git", "watchdog"):
        logging.getLogger(name).setLevel(noisy_level)


def _dot_directory(settings) -> DotDirectory:
    return DotDirectory(settings.DOT_DIR, settings.CONFIG_FILE_NAME)


@click.group(invoke_without_command=True)
@click.option("-v", "--verbose", count=True, help="Increases logging verbosity each use for up to 3 times")
@click.pass_context
def cli(ctx, verbose):
    """Watch git working directories and commit every change automatically."""
    load_dotenv()
    settings = get_settings()
    setup_logging(verbose, settings.LOG_LEVEL)
    ctx.ensure_object(dict)
    ctx.obj["settings"] = settings

    if ctx.invoked_subcommand is None:
        ctx.invoke(watch)


@cli.command()
@click.pass_context
def watch(ctx):
    """Watch all configured repositories until interrupted."""
    settings = ctx.obj["settings"]
    try:
        session = WatchSession.bootstrap(settings)
    except AutoPilotError as e:
        logger.error(f"Failed to start watch session: {e}")
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    print_config_summary(settings, session.config)
    session.watch()


@cli.command("add-repo")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.pass_context
def add_repo(ctx, path):
    """Add a repository to the watch list."""
    try:
        dot_dir = _dot_directory(ctx.obj["settings"])
        repo = GitRepository(str(path))
        config = dot_dir.load()
        if Path(repo.repo_path) in config.repos:
            click.echo(f"Already watching {repo.repo_path}")
            return
        config.repos.append(Path(repo.repo_path))
        dot_dir.save(config)
    except AutoPilotError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Added {repo.repo_path}")


@cli.command("remove-repo")
@click.argument("path", type=click.Path(path_type=Path))
@click.pass_context
def remove_repo(ctx, path):
    """Remove a repository from the watch list."""
    target = path.expanduser().resolve()
    try:
        dot_dir = _dot_directory(ctx.obj["settings"])
        config = dot_dir.load()
        remaining = [p for p in config.repos if Path(p).expanduser().resolve() != target]
        if len(remaining) == len(config.repos):
            click.echo(f"Not watching {target}")
            return
        config.repos = remaining
        dot_dir.save(config)
    except AutoPilotError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    click.echo(f"Removed {target}")


@cli.command("show-config")
@click.pass_context
def show_config(ctx):
    """Print the persisted configuration (password masked)."""
    try:
        dot_dir = _dot_directory(ctx.obj["settings"])
        config = dot_dir.load()
    except AutoPilotError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if config.git_credentials and config.git_credentials.password:
        config.git_credentials = config.git_credentials.model_copy(update={"password": "*******"})
    click.echo(config.model_dump_json(indent=2))


def main():
    cli(obj={})


if __name__ == "__main__":
    main()
