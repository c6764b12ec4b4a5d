"""CLI for inspecting notebook statuses."""

import functools
import os
import sys
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

import click
import yaml
from pydantic import ValidationError
from safir.asyncio import run_with_asyncio
from safir.click import display_help
from safir.sentry import initialize_sentry, report_exception
from structlog.stdlib import get_logger

from . import __version__
from .config import Config
from .constants import CONFIG_FILE, CONFIG_FILE_ENV_VAR, ROOT_LOGGER
from .exceptions import InvalidNotebookError
from .models.v1.notebook import Notebook, NotebookList, NotebookState

__all__ = ["main", "main_with_sentry"]


def _common[R](func: Callable[..., Awaitable[R]]) -> Callable[..., R]:
    """Add common Click options, configuration and error reporting.

    The wrapped command does not see ``--config-file`` or ``--debug``. They
    are used to load the configuration, which also sets up logging and
    Slack alerting.
    """

    @click.option(
        "--debug",
        "-d",
        is_flag=True,
        help="Enable debug logging",
    )
    @click.option(
        "--config-file",
        "-c",
        help="Application configuration file",
        type=Path,
        default=None,
    )
    @run_with_asyncio
    @functools.wraps(func)
    async def wrapper(
        *args: Any, config_file: Path | None, debug: bool, **kwargs: Any
    ) -> R:
        config = _load_config(config_file=config_file, debug=debug)
        slack_client = config.slack_client(get_logger(ROOT_LOGGER))
        try:
            return await func(*args, **kwargs)
        except Exception as exc:
            await report_exception(exc, slack_client)
            raise

    return wrapper


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(
    package_name="gradient-notebook", message="%(version)s"
)
def main() -> None:
    """Gradient notebook status command-line interface."""


@main.command()
@click.argument("topic", default=None, required=False, nargs=1)
@click.argument("subtopic", default=None, required=False, nargs=1)
@click.pass_context
def help(ctx: click.Context, topic: str | None, subtopic: str | None) -> None:
    """Show help for any command."""
    display_help(main, ctx, topic, subtopic)


def _load_config(*, config_file: Path | None, debug: bool) -> Config:
    """Load the configuration, overriding it from CLI options."""
    # Prefer config file from env var
    if env_config_path := os.getenv(CONFIG_FILE_ENV_VAR):
        config_file = Path(env_config_path)
    elif config_file is None and CONFIG_FILE.exists():
        config_file = CONFIG_FILE

    if config_file:
        config = Config.from_file(config_file)
    else:
        config = Config()
        config.configure_logging()

    if debug:
        config.debug = debug
        config.configure_logging()
    return config


def _load_notebooks(path: Path) -> list[Notebook]:
    """Load a ``Notebook`` or ``NotebookList`` from a YAML or JSON file.

    Raises
    ------
    InvalidNotebookError
        Raised if the file does not hold a valid notebook or notebook list.
    """
    data = yaml.safe_load(path.read_text())
    if isinstance(data, dict) and "items" in data:
        try:
            notebooks = NotebookList.model_validate(data).items
        except ValidationError as e:
            raise InvalidNotebookError.from_exception(e) from e
    else:
        notebooks = [Notebook.from_document(data)]
    logger = get_logger(ROOT_LOGGER)
    logger.debug("Loaded notebooks", path=str(path), count=len(notebooks))
    return notebooks


def _classify(notebook: Notebook) -> str:
    status = notebook.status
    if status.is_success():
        return "success"
    elif status.is_errored():
        return "errored"
    elif status.state.is_pending:
        return "pending"
    elif status.state == NotebookState.UNSET:
        return "new"
    else:
        return "active"


def _echo_table(rows: list[dict[str, str]]) -> None:
    """Print rows the way ``kubectl get`` does."""
    if not rows:
        click.echo("No notebooks found")
        return
    headers = list(rows[0].keys())
    widths = {h: max(len(h), *(len(r[h]) for r in rows)) for h in headers}
    lines = [{h: h.upper() for h in headers}, *rows]
    for line in lines:
        cells = [line[h].ljust(widths[h]) for h in headers]
        click.echo("   ".join(cells).rstrip())


@main.command
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@_common
async def show(*, file: Path) -> None:
    """Show the state, last update and age of notebooks."""
    rows = [
        {"Name": n.metadata.name, **n.columns()}
        for n in _load_notebooks(file)
    ]
    _echo_table(rows)


@main.command
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@_common
async def classify(*, file: Path) -> None:
    """Classify notebooks as succeeded, errored, pending or active."""
    rows = [
        {
            "Name": n.metadata.name,
            "State": n.status.state.value or "<none>",
            "Class": _classify(n),
        }
        for n in _load_notebooks(file)
    ]
    _echo_table(rows)


@main.command(name="check-gc")
@click.argument(
    "file", type=click.Path(exists=True, dir_okay=False, path_type=Path)
)
@_common
async def check_gc(*, file: Path) -> None:
    """Report which notebooks still have pods to clean up.

    Exits with status 1 if any notebook needs garbage collection.
    """
    pending = False
    rows = []
    for notebook in _load_notebooks(file):
        needs_gc = notebook.status.needs_garbage_collection()
        pending = pending or needs_gc
        rows.append(
            {
                "Name": notebook.metadata.name,
                "NeedsGC": "yes" if needs_gc else "no",
            }
        )
    _echo_table(rows)
    if pending:
        sys.exit(1)


def main_with_sentry() -> None:
    """Call the main command group after initializing Sentry."""
    initialize_sentry(release=__version__)
    main()
