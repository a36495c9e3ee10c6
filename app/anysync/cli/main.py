"""Main CLI application entry point.

Defines the Typer application and global options.
"""

from pathlib import Path
from typing import Annotated

import typer

from anysync import __version__
from anysync.cli.commands import check, config, flush, info, prepare, restore, start, stop
from anysync.core.paths import CONFIG_ENV_VAR, DEFAULT_LOCK_PATH, LOCK_ENV_VAR
from anysync.utils.logging import LogLevel, configure_logging, resolve_log_level

app = typer.Typer(
    name="anysync",
    help="Keep directories on volatile storage with a durable copy on disk.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"anysync version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            envvar=CONFIG_ENV_VAR,
            help="Configuration file [default: /etc/anysync.conf].",
        ),
    ] = None,
    lock_path: Annotated[
        Path,
        typer.Option(
            "--lock-path",
            envvar=LOCK_ENV_VAR,
            help="Process lock directory; its parent must be a root-owned 0755 directory.",
        ),
    ] = DEFAULT_LOCK_PATH,
    lock_timeout: Annotated[
        float | None,
        typer.Option(
            "--lock-timeout",
            min=0,
            help="Give up waiting for the lock after this many seconds.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Only log errors.",
        ),
    ] = False,
    log_level: Annotated[
        LogLevel | None,
        typer.Option(
            "--log-level",
            case_sensitive=False,
            help="Explicit log level (overrides --verbose/--quiet).",
        ),
    ] = None,
    syslog: Annotated[
        bool,
        typer.Option(
            "--syslog",
            help="Also log to the system log.",
        ),
    ] = False,
) -> None:
    """anysync - keep directories on volatile storage.

    Sync sources are replaced by symlinks into a tmpfs while a backup
    stays on disk. Run `start` at boot, `flush` periodically and `stop`
    at shutdown.
    """
    configure_logging(
        resolve_log_level(verbose=verbose, quiet=quiet, level=log_level),
        syslog=syslog,
    )

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["lock_path"] = lock_path
    ctx.obj["lock_timeout"] = lock_timeout
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet


# Register commands
app.add_typer(check.app, name="check")
app.add_typer(prepare.app, name="prepare")
app.add_typer(prepare.app, name="initsync", hidden=True)
app.add_typer(flush.app, name="flush")
app.add_typer(flush.app, name="sync", hidden=True)
app.add_typer(restore.app, name="restore")
app.add_typer(restore.app, name="unsync", hidden=True)
app.add_typer(start.app, name="start")
app.add_typer(stop.app, name="stop")
app.add_typer(info.app, name="info")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
