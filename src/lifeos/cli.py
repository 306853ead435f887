"""
Command-line interface for LifeOS.
"""

from datetime import timedelta
from pathlib import Path
from typing import List, Optional

import typer
import uvicorn
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from .infrastructure.config.settings import AppConfig, load_config, set_config
from .infrastructure.monitoring.logging import get_logger, setup_logging
from .infrastructure.monitoring.metrics import metrics
from .utils.exceptions import LifeOSError, format_error_for_user

logger = get_logger(__name__)

app = typer.Typer(help="LifeOS: API gateway and real-time notification service")

ConfigOption = typer.Option(None, "--config", "-c", help="YAML configuration file")


def _load(config_file: Optional[Path], log_level: Optional[str] = None) -> AppConfig:
    try:
        config = load_config(config_file)
    except (LifeOSError, FileNotFoundError) as e:
        rprint(f"[red]Error: {format_error_for_user(e, include_details=True)}[/red]")
        raise typer.Exit(1)

    set_config(config)
    setup_logging(level=log_level)
    return config


def _start_metrics(config: AppConfig) -> None:
    if config.monitoring.metrics_enabled:
        metrics.serve(config.monitoring.metrics_port)
        logger.info("metrics_server_started", port=config.monitoring.metrics_port)


@app.command()
def gateway(
    config_file: Optional[Path] = ConfigOption,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
):
    """Run the API gateway."""
    from .gateway.app import create_app

    config = _load(config_file, log_level)
    _start_metrics(config)

    host = host or config.gateway.host
    port = port or config.gateway.port
    logger.info("gateway_starting", host=host, port=port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@app.command()
def notifications(
    config_file: Optional[Path] = ConfigOption,
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Listen port"),
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Log level"),
):
    """Run the notification service."""
    from .notifications.app import create_app

    config = _load(config_file, log_level)
    _start_metrics(config)

    host = host or config.notifications.host
    port = port or config.notifications.port
    logger.info("notifications_starting", host=host, port=port)
    uvicorn.run(create_app(config), host=host, port=port, log_config=None)


@app.command()
def routes(
    paths: Optional[List[str]] = typer.Argument(None, help="Paths to classify"),
    config_file: Optional[Path] = ConfigOption,
):
    """Show the routing table, or where each given path would go."""
    from .gateway.routing import RouteTable

    config = _load(config_file)
    gateway_config = config.gateway
    table_rules = RouteTable.from_pairs(gateway_config.routes, gateway_config.default_backend)
    console = Console()

    if paths:
        table = Table(title="Path Classification")
        table.add_column("Path", style="cyan")
        table.add_column("Backend", style="green")
        table.add_column("Upstream")
        for path in paths:
            backend = table_rules.classify(path)
            table.add_row(path, backend, gateway_config.services[backend].rstrip("/") + path)
    else:
        table = Table(title="Routing Table")
        table.add_column("Prefix", style="cyan")
        table.add_column("Backend", style="green")
        table.add_column("Service URL")
        for rule in table_rules.rules:
            table.add_row(rule.prefix, rule.backend, gateway_config.services[rule.backend])
        table.add_row("[dim]*[/dim]", table_rules.default_backend, gateway_config.services[table_rules.default_backend])

    console.print(table)


@app.command()
def token(
    subject: str = typer.Argument(..., help="User id placed in the sub claim"),
    expires_minutes: Optional[int] = typer.Option(
        None, "--expires-minutes", "-e", help="Lifetime in minutes"
    ),
    config_file: Optional[Path] = ConfigOption,
):
    """Issue a bearer token for local testing."""
    from .notifications.auth import TokenVerifier

    config = _load(config_file, log_level="WARNING")
    expires = timedelta(minutes=expires_minutes) if expires_minutes else None
    typer.echo(TokenVerifier(config.auth).create_access_token(subject, expires_delta=expires))


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
