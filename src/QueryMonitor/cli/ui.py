"""Click CLI interface definitions.

Defines the command-line interface structure and routes commands
to the command runner.
"""

from __future__ import annotations

from pathlib import Path

import click
from dotenv import load_dotenv

from QueryMonitor.cli.runner import CommandRunner
from QueryMonitor.config import load_config, load_config_with_defaults
from QueryMonitor.renderers import create_output_writer

DEFAULT_CONFIG_PATH = Path("config/default.yml")


@click.group(help="QueryMonitor: match documents against stored queries.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=DEFAULT_CONFIG_PATH,
    show_default=True,
    help="Path to YAML config file, merged over config/default.yml when present.",
)
@click.pass_context
def cli(ctx: click.Context, config_path: Path) -> None:
    """CLI entry group.

    Loads environment variables from .env file before processing config.
    """
    load_dotenv()

    if DEFAULT_CONFIG_PATH.is_file():
        cfg = load_config_with_defaults(config_path, default_path=DEFAULT_CONFIG_PATH)
    else:
        cfg = load_config(config_path)
    ctx.obj = CommandRunner(cfg)


@cli.command("analyze")
@click.argument("query")
@click.pass_context
def analyze_cmd(ctx: click.Context, query: str) -> None:
    """Print the presearcher terms extracted from QUERY."""
    ctx.obj.run(ctx.command.name, lambda commands: commands.analyze(query))


@cli.command("match")
@click.argument("docs", type=click.Path(path_type=Path, dir_okay=False, exists=True))
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["console", "json"]),
    default="console",
    show_default=True,
    help="Output format.",
)
@click.option(
    "--output-dir",
    type=click.Path(path_type=Path, file_okay=False),
    default=Path("output"),
    show_default=True,
    help="Base directory for file output.",
)
@click.pass_context
def match_cmd(ctx: click.Context, docs: Path, output_format: str, output_dir: Path) -> None:
    """Match the documents in the JSON file DOCS against the stored queries."""
    action = ctx.command.name
    writer = create_output_writer(output_format, output_dir)

    def _run(commands) -> None:
        commands.match(docs, writer)
        writer.finalize(action)

    ctx.obj.run(action, _run)


@cli.command("register")
@click.argument("query_id")
@click.argument("query")
@click.option("--meta", "meta", multiple=True, help="Metadata entry as key=value; repeatable.")
@click.pass_context
def register_cmd(ctx: click.Context, query_id: str, query: str, meta: tuple[str, ...]) -> None:
    """Register QUERY under QUERY_ID in the query store."""
    metadata = _parse_meta(meta)
    ctx.obj.run(ctx.command.name, lambda commands: commands.register(query_id, query, metadata))


@cli.command("delete")
@click.argument("query_ids", nargs=-1, required=True)
@click.pass_context
def delete_cmd(ctx: click.Context, query_ids: tuple[str, ...]) -> None:
    """Delete stored queries by id."""
    ctx.obj.run(ctx.command.name, lambda commands: commands.delete(query_ids))


@cli.command("list")
@click.pass_context
def list_cmd(ctx: click.Context) -> None:
    """List the registered queries."""
    ctx.obj.run(ctx.command.name, lambda commands: commands.list_queries())


def _parse_meta(entries: tuple[str, ...]) -> dict[str, str]:
    metadata: dict[str, str] = {}
    for entry in entries:
        key, sep, value = entry.partition("=")
        if not sep or not key.strip():
            raise click.BadParameter(f"expected key=value, got {entry!r}", param_hint="--meta")
        metadata[key.strip()] = value
    return metadata
