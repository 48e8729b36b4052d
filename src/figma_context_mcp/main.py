"""
Main entry point for the Figma Model Context MCP Server.

Provides the command-line interface: serve over stdio, initialize a
configuration file, convert a Figma file, and validate a stored Model
Context document.
"""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
import structlog
from pydantic import ValidationError

from . import __version__
from .client.figma_client import FigmaAPIError, FigmaClient
from .config.settings import Config, load_config
from .converter.figma_adapter import ConversionError, ConversionOptions, FigmaToModelContextAdapter
from .model.context import serialize_context
from .model.validator import validate_context
from .server import FigmaContextMCPServer
from .utils.logging import setup_logging

logger = structlog.get_logger()

config_option = click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, path_type=Path),
    help="Path to configuration file",
)
log_level_option = click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    help="Set logging level",
)


def _load(config: Optional[Path], log_level: Optional[str]) -> Config:
    config_data = load_config(config_path=config)
    if log_level:
        config_data.server.log_level = log_level.upper()
    setup_logging(config_data.server.log_level, config_data.server.log_format)
    return config_data


@click.group()
@click.version_option(__version__)
def cli() -> None:
    """Figma Model Context MCP Server CLI."""


@cli.command(name="serve")
@config_option
@log_level_option
def serve(config: Optional[Path] = None, log_level: Optional[str] = None) -> None:
    """
    Run the MCP server over stdio.

    Exposes Figma files, nodes, styles and their Model Context to MCP hosts.
    """
    try:
        config_data = _load(config, log_level)
        logger.info(
            "Starting Figma Context MCP Server",
            version=__version__,
            config_file=str(config) if config else "default",
            log_level=config_data.server.log_level,
        )

        if not config_data.figma.access_token:
            logger.error("FIGMA_ACCESS_TOKEN environment variable is required")
            sys.exit(1)

        server = FigmaContextMCPServer(config_data)
        asyncio.run(server.run_stdio())

    except KeyboardInterrupt:
        logger.info("Server shutdown requested")
        sys.exit(0)
    except Exception as e:
        logger.error("Server startup failed", error=str(e), exc_info=True)
        sys.exit(1)


@cli.command(name="init")
@click.option(
    "--config",
    "-c",
    type=click.Path(path_type=Path),
    help="Path to save configuration file",
)
def init_config(config: Optional[Path] = None) -> None:
    """Initialize a configuration file with default settings."""
    from .config.settings import create_default_config

    config_path = config or Path("config.json")

    if config_path.exists():
        click.echo(f"Configuration file already exists: {config_path}")
        if not click.confirm("Overwrite?"):
            return

    try:
        create_default_config(config_path)
    except OSError as e:
        click.echo(f"Failed to create configuration file: {e}", err=True)
        sys.exit(1)

    click.echo(f"Created configuration file: {config_path}")
    click.echo("\nNext step: export FIGMA_ACCESS_TOKEN='your-personal-access-token'")


@cli.command(name="convert")
@click.argument("file_key")
@config_option
@log_level_option
@click.option("--output", "-o", type=click.Path(path_type=Path), help="Write the context to a file")
@click.option("--styles/--no-styles", default=None, help="Copy style definitions")
@click.option("--variables/--no-variables", default=None, help="Attach local variables")
@click.option("--images/--no-images", default=None, help="Resolve image fills to URLs")
@click.option("--team-id", help="Attach the team's component library")
def convert(
    file_key: str,
    config: Optional[Path] = None,
    log_level: Optional[str] = None,
    output: Optional[Path] = None,
    styles: Optional[bool] = None,
    variables: Optional[bool] = None,
    images: Optional[bool] = None,
    team_id: Optional[str] = None,
) -> None:
    """Convert a Figma file into a Model Context document."""
    config_data = _load(config, log_level or "WARNING")

    overrides = {
        "include_styles": styles,
        "include_variables": variables,
        "include_images": images,
        "team_id": team_id,
    }
    options = ConversionOptions.from_config(config_data.converter).model_copy(
        update={key: value for key, value in overrides.items() if value is not None}
    )

    async def _convert() -> str:
        async with FigmaClient(config_data.figma) as client:
            context = await FigmaToModelContextAdapter(client).convert_file(file_key, options)
        if config_data.converter.validate_output:
            report = validate_context(context)
            for error in report.errors:
                click.echo(f"warning: {error}", err=True)
        return serialize_context(context)

    try:
        text = asyncio.run(_convert())
    except (FigmaAPIError, ConversionError) as e:
        click.echo(f"Conversion failed: {e}", err=True)
        sys.exit(1)

    if output:
        output.write_text(text + "\n", encoding="utf-8")
        click.echo(f"Wrote Model Context to {output}", err=True)
    else:
        click.echo(text)


@cli.command(name="validate")
@click.argument("path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def validate(path: Path) -> None:
    """Validate a stored Model Context JSON document."""
    try:
        document = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        click.echo(f"Cannot read {path}: {e}", err=True)
        sys.exit(2)

    report = validate_context(document)
    if report.valid:
        click.echo(f"{path}: valid")
        return

    click.echo(f"{path}: {len(report.errors)} error(s)")
    for error in report.errors:
        click.echo(f"  - {error}")
    sys.exit(1)


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
