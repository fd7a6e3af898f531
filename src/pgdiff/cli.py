"""
Command-line interface for pgdiff.
"""

import asyncio
import sys
from functools import wraps
from pathlib import Path
from typing import Optional, Tuple

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from . import __version__
from .config import DatabaseConnection, DiffConfig, PgDiffConfig, setup_logging
from .database.connection import ConnectionConfig, ConnectionPool
from .diff.engine import DiffSummary
from .diff.statements import StreamSink
from .exceptions import ConfigurationError, PgDiffError
from .service import diff_columns


# SQL goes to stdout; everything else goes to stderr
console = Console(stderr=True)


def handle_errors(func):
    """Decorator to handle errors gracefully in CLI commands."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except PgDiffError as e:
            console.print(f"[red]Error:[/red] {escape(str(e))}")
            sys.exit(1)
        except KeyboardInterrupt:
            console.print("\n[yellow]Interrupted by user[/yellow]")
            sys.exit(0)
        except Exception as e:
            console.print(f"[red]Unexpected error:[/red] {escape(str(e))}")
            if "--debug" in sys.argv:
                import traceback
                traceback.print_exc()
            sys.exit(1)
    return wrapper


@click.group()
@click.version_option(__version__)
@click.option(
    "--debug", is_flag=True, help="Enable debug mode"
)
@click.pass_context
def main(ctx, debug):
    """pgdiff: Compare PostgreSQL schemas and print the SQL to reconcile them."""
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    help="Configuration file path",
)
@click.option("--source", "source_url", help="Source database URL (desired schema)")
@click.option("--target", "target_url", help="Target database URL (schema to change)")
@click.option("--schema", "table_schema", help="Schema to compare (default: public)")
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False),
    help="Write the SQL script to a file instead of stdout",
)
@click.pass_context
@handle_errors
def columns(
    ctx,
    config: Optional[str],
    source_url: Optional[str],
    target_url: Optional[str],
    table_schema: Optional[str],
    output: Optional[str],
):
    """Print ALTER TABLE statements that make target's columns match source's."""
    pgdiff_config = PgDiffConfig.from_yaml(config) if config else PgDiffConfig()
    setup_logging(pgdiff_config.logging, debug=bool(ctx.obj and ctx.obj.get("debug")))

    diff_config = pgdiff_config.diff
    if table_schema:
        diff_config = diff_config.model_copy(update={"table_schema": table_schema})

    source_config, target_config = _resolve_connections(
        pgdiff_config, source_url, target_url
    )

    console.print(
        f"[blue]Comparing columns[/blue] of schema '{diff_config.table_schema}': "
        f"{source_config.display_name} -> {target_config.display_name}"
    )

    async def run_diff(stream) -> DiffSummary:
        async with ConnectionPool(source_config) as source_pool:
            async with ConnectionPool(target_config) as target_pool:
                return await diff_columns(
                    source_pool, target_pool, StreamSink(stream), diff_config
                )

    if output:
        with open(output, "w", encoding="utf-8") as f:
            summary = asyncio.run(run_diff(f))
        console.print(f"[green]✓[/green] SQL written to {output}")
    else:
        summary = asyncio.run(run_diff(sys.stdout))

    _display_summary(summary)


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Path(),
    default="pgdiff-config.yaml",
    help="Output configuration file path",
)
@handle_errors
def init(output: str):
    """Initialize a new pgdiff configuration file."""
    if Path(output).exists():
        if not click.confirm(f"Configuration file {output} already exists. Overwrite?"):
            return

    _create_default_config().to_yaml(output)
    console.print(f"[green]✓[/green] Configuration file created: {output}")
    console.print("\n[yellow]Next steps:[/yellow]")
    console.print("1. Edit the source and target database details")
    console.print(f"2. Run: pgdiff validate-config --config {output}")
    console.print(f"3. Run: pgdiff columns --config {output}")


@main.command()
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True),
    required=True,
    help="Configuration file path",
)
@handle_errors
def validate_config(config: str):
    """Validate configuration file."""
    console.print(f"Validating configuration: {config}")

    try:
        pgdiff_config = PgDiffConfig.from_yaml(config)
        pgdiff_config.validate_config()
    except ConfigurationError as e:
        console.print(f"[red]✗[/red] Configuration error: {escape(str(e))}")
        sys.exit(1)

    console.print("[green]✓[/green] Configuration is valid")
    _display_config_summary(pgdiff_config)


def _resolve_connections(
    config: PgDiffConfig,
    source_url: Optional[str],
    target_url: Optional[str],
) -> Tuple[ConnectionConfig, ConnectionConfig]:
    """Pick connection settings from URLs first, then the config file."""
    resolved = []
    for name, url, settings in (
        ("source", source_url, config.source),
        ("target", target_url, config.target),
    ):
        if url:
            resolved.append(ConnectionConfig.from_url(url))
        elif settings is not None:
            resolved.append(ConnectionConfig.from_settings(settings))
        else:
            raise ConfigurationError(
                f"No {name} database given: use --{name} or a configuration file"
            )
    return resolved[0], resolved[1]


def _create_default_config() -> PgDiffConfig:
    """Create a default configuration."""
    return PgDiffConfig(
        source=DatabaseConnection(
            host="localhost",
            database="source_db",
            user="postgres",
            password="${SOURCE_DB_PASSWORD}",
        ),
        target=DatabaseConnection(
            host="localhost",
            database="target_db",
            user="postgres",
            password="${TARGET_DB_PASSWORD}",
        ),
        diff=DiffConfig(),
    )


def _display_config_summary(config: PgDiffConfig) -> None:
    """Display a summary of the configuration."""
    table = Table(title="Configuration Summary")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")

    for name in ("source", "target"):
        settings = getattr(config, name)
        table.add_row(
            f"{name.capitalize()} database",
            f"{settings.host}:{settings.port}/{settings.database}",
        )
    table.add_row("Schema", config.diff.table_schema)
    table.add_row("Updatable tables only", str(config.diff.updatable_only))
    table.add_row("Default varchar length", str(config.diff.default_varchar_length))

    console.print(table)


def _display_summary(summary: DiffSummary) -> None:
    """Display counts of the comparison."""
    table = Table(title=f"{summary.kind.capitalize()} differences")
    table.add_column("Outcome", style="cyan")
    table.add_column("Count", justify="right", style="magenta")

    table.add_row("Only in source (added)", str(summary.added))
    table.add_row("Only in target (dropped)", str(summary.dropped))
    table.add_row("Changed", str(summary.changed))
    table.add_row("Unchanged", str(summary.unchanged))
    table.add_row("Statements", str(summary.statements))
    table.add_row("Warnings", str(summary.warnings))

    console.print(table)

    if not summary.has_differences:
        console.print("[green]✓[/green] Schemas match")


if __name__ == "__main__":
    main()
