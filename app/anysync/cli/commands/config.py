"""Configuration commands.

Provides commands to display the resolved configuration and to write a
new configuration file.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from pydantic import ValidationError

from anysync.cli.display import OutputFormat
from anysync.cli.session import get_option, load_sync_config
from anysync.core.config import ConfigError, SyncConfig, save_config
from anysync.core.paths import get_config_path
from anysync.relocation.mirror import DEFAULT_COPY_TOOL
from anysync.utils.formatting import console, create_table, print_error, print_info, print_success

app = typer.Typer(
    help="Show or write the anysync configuration.",
    no_args_is_help=True,
)


@app.command()
def show(
    ctx: typer.Context,
    output_format: Annotated[
        OutputFormat,
        typer.Option(
            "--format",
            "-f",
            help="Output format.",
            case_sensitive=False,
        ),
    ] = OutputFormat.TABLE,
) -> None:
    """Show the resolved configuration.

    The copy tool is shown as the absolute path it resolves to.
    """
    config = load_sync_config(ctx)

    if output_format == OutputFormat.JSON:
        data = {
            "volatile_root": str(config.volatile_root),
            "copy_tool": config.copy_tool,
            "sources": [str(s) for s in config.sources],
        }
        console.print_json(json.dumps(data))
        return

    table = create_table("Configuration")
    table.add_column("Option", style="header", no_wrap=True)
    table.add_column("Value")
    table.add_row("TMPFS", f"[path]{config.volatile_root}[/]")
    table.add_row("RSYNC_BIN", config.copy_tool)
    table.add_row("WHATTOSYNC", "\n".join(str(s) for s in config.sources))
    console.print(table)


@app.command()
def init(
    ctx: typer.Context,
    volatile_root: Annotated[
        Path,
        typer.Option(
            "--tmpfs",
            "-t",
            help="Volatile storage root.",
        ),
    ],
    sources: Annotated[
        list[Path],
        typer.Option(
            "--source",
            "-s",
            help="Directory to sync (repeatable).",
        ),
    ],
    copy_tool: Annotated[
        str,
        typer.Option(
            "--copy-tool",
            help="rsync-compatible copy tool.",
        ),
    ] = DEFAULT_COPY_TOOL,
    output: Annotated[
        Path | None,
        typer.Option(
            "--output",
            "-o",
            help="Output path (defaults to the --config path). A .toml suffix writes TOML.",
        ),
    ] = None,
    force: Annotated[
        bool,
        typer.Option(
            "--force",
            help="Overwrite an existing configuration file.",
        ),
    ] = False,
) -> None:
    """Write a new configuration file.

    Examples:
        anysync config init -t /tmp/anysync -s /home/user/.cache
        anysync config init -t /tmp/anysync -s ~/a -s ~/b -o anysync.toml
    """
    config_path = get_option(ctx, "config_path")
    output_path = output or (config_path if isinstance(config_path, Path) else get_config_path())

    if output_path.exists() and not force:
        print_error(f"Configuration already exists: {output_path}")
        print_info("Use --force to overwrite or choose another path with --output.")
        raise typer.Exit(code=1)

    try:
        config = SyncConfig(
            volatile_root=volatile_root,
            copy_tool=copy_tool,
            sources=tuple(s.expanduser() for s in sources),
        )
    except ValidationError as e:
        print_error(f"Invalid configuration: {e}")
        raise typer.Exit(code=1) from e

    try:
        saved = save_config(config, output_path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    print_success(f"Configuration written to {saved}")
