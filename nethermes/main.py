"""
Main entry point for the Nethermes relay.

This module provides the command-line interface and server startup logic.
"""

import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional

import aiohttp
import typer
import uvicorn

from .infrastructure.config.loader import ConfigLoader, DEFAULT_CONFIG_FILE
from .infrastructure.config.models import ApplicationConfig
from .infrastructure.logging.setup import setup_logging
from .presentation.api.app import create_app

# Create CLI application
cli = typer.Typer(
    name="nethermes",
    help="Rendezvous file relay: uploads wait until a downloader fetches them as a ZIP"
)

logger = logging.getLogger(__name__)


@cli.command()
def start(
    config_file: Optional[str] = typer.Option(
        None, "--config", "-c", help=f"Configuration file path (default: ./{DEFAULT_CONFIG_FILE} if present)"
    ),
    host: Optional[str] = typer.Option(
        None, "--host", help="Server host address"
    ),
    port: Optional[int] = typer.Option(
        None, "--port", "-p", help="Server port"
    ),
    log_level: Optional[str] = typer.Option(
        None, "--log-level", help="Logging level"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug mode"
    )
) -> None:
    """Start the relay server."""

    use_defaults = config_file is None and not Path(DEFAULT_CONFIG_FILE).exists()
    if config_file is None and not use_defaults:
        config_file = DEFAULT_CONFIG_FILE

    config_loader = ConfigLoader()
    try:
        config = config_loader.load_config(config_file)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"Error loading configuration: {e}", err=True)
        sys.exit(1)

    # Override with command line arguments
    if host:
        config.server.host = host
    if port:
        config.server.port = port
    if log_level:
        config.logging.level = log_level.upper()
    if debug:
        config.debug = True
        config.logging.level = "DEBUG"

    setup_logging(config.logging)

    if use_defaults:
        logger.info(f"Could not read {DEFAULT_CONFIG_FILE}, using defaults")
    logger.info(f"Starting {config.name} v{config.version}")
    logger.info(f"Using following configuration: {config.to_dict()}")

    try:
        asyncio.run(run_application(config))
    except KeyboardInterrupt:
        logger.info("Application interrupted by user")
    except Exception as e:
        logger.critical(f"Application failed to start: {e}")
        sys.exit(1)


@cli.command()
def init_config(
    output: str = typer.Option(
        DEFAULT_CONFIG_FILE, "--output", "-o", help="Output configuration file"
    ),
    format: str = typer.Option(
        "json", "--format", "-f", help="Configuration format (json/yaml)"
    )
) -> None:
    """Generate a default configuration file."""

    config = ApplicationConfig()
    config_loader = ConfigLoader()

    try:
        config_loader.save_config(config, output, format)
        typer.echo(f"Default configuration saved to {output}")
    except ValueError as e:
        typer.echo(f"Error saving configuration: {e}", err=True)
        sys.exit(1)


@cli.command()
def validate_config(
    config_file: str = typer.Argument(...,
                                      help="Configuration file to validate")
) -> None:
    """Validate a configuration file."""

    config_loader = ConfigLoader()

    try:
        config = config_loader.load_config(config_file)
        typer.echo(f"Configuration file {config_file} is valid")
        typer.echo(f"Application: {config.name} v{config.version}")
        typer.echo(f"Keys: {config.transfer.key_length} chars from {config.transfer.key_charset!r}")
    except (FileNotFoundError, ValueError, TypeError) as e:
        typer.echo(f"Configuration validation failed: {e}", err=True)
        sys.exit(1)


@cli.command()
def health_check(
    host: str = typer.Option("localhost", "--host", help="Server host"),
    port: int = typer.Option(8080, "--port", help="Server port"),
    timeout: float = typer.Option(10.0, "--timeout", help="Request timeout")
) -> None:
    """Check the health of a running server."""

    async def check_health() -> bool:
        url = f"http://{host}:{port}/health"
        timeout_config = aiohttp.ClientTimeout(total=timeout)

        try:
            async with aiohttp.ClientSession(timeout=timeout_config) as session:
                async with session.get(url) as response:
                    if response.status == 200:
                        data = await response.json()
                        sessions = data.get("sessions", {})
                        typer.echo(
                            f"Server is {data.get('status', 'unknown')}: "
                            f"{sessions.get('total', 0)} sessions")
                        return True
                    else:
                        typer.echo(f"Server returned status {response.status}")
                        return False
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            typer.echo(f"Health check failed: {e}")
            return False

    result = asyncio.run(check_health())
    if not result:
        sys.exit(1)


async def run_application(config: ApplicationConfig) -> None:
    """
    Run the relay server with the given configuration.

    Args:
        config: Application configuration
    """
    app = create_app(config)

    server_config = uvicorn.Config(
        app=app,
        host=config.server.host,
        port=config.server.port,
        log_level=config.logging.level.lower(),
        log_config=None,
        access_log=False
    )

    server = uvicorn.Server(server_config)
    await server.serve()


def main() -> None:
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
