# src/swarmrest/cli.py
"""CLI for the swarm-rest server.

Usage:
    swarmrest serve                                  # Start with defaults
    swarmrest serve --config=swarmrest.yaml --port=8080
    swarmrest serve --route=/api --max-parallel-opens=20
    swarmrest parse GET '/Mouse#A~GoImd#A000un'      # Show descriptors
    swarmrest parse POST '/Mouse#A~GoImd.set' --body='{"x": 1}'
    swarmrest show-config --format=json
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import pydantic
import typer
import yaml

from swarmrest.contracts.errors import SwarmRestError
from swarmrest.core.config import SwarmRestConfig, load_config
from swarmrest.core.logging import configure_logging
from swarmrest.engine.extractor import extract

app = typer.Typer(
    name="swarmrest",
    help="swarm-rest: REST surface over a versioned object host.",
    no_args_is_help=True,
)

ConfigFileOption = Annotated[
    Path | None,
    typer.Option(
        "--config",
        "-c",
        help="Path to YAML configuration file.",
        exists=True,
        file_okay=True,
        dir_okay=False,
        resolve_path=True,
    ),
]


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from swarmrest import __version__

        typer.echo(f"swarmrest {__version__}")
        raise typer.Exit()


def _load_config_or_exit(config_file: Path | None, cli_overrides: dict[str, Any] | None = None) -> SwarmRestConfig:
    """Load configuration, reporting problems as a clean exit 1."""
    try:
        return load_config(config_file=config_file, cli_overrides=cli_overrides)
    except FileNotFoundError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e
    except (pydantic.ValidationError, yaml.YAMLError, ValueError) as e:
        typer.secho(f"Configuration error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e


@app.callback()
def main_callback(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=_version_callback,
            is_eager=True,
            help="Show version.",
        ),
    ] = False,
) -> None:
    """swarm-rest command line."""


@app.command()
def serve(
    config_file: ConfigFileOption = None,
    host: Annotated[
        str | None,
        typer.Option("--host", help="Host address to bind to."),
    ] = None,
    port: Annotated[
        int | None,
        typer.Option("--port", "-P", help="Port to listen on.", min=1, max=65535),
    ] = None,
    route: Annotated[
        str | None,
        typer.Option("--route", "-r", help="Path prefix for the API (default: root)."),
    ] = None,
    max_parallel_opens: Annotated[
        int | None,
        typer.Option("--max-parallel-opens", help="Objects opened concurrently per request.", min=1),
    ] = None,
    log_level: Annotated[
        str | None,
        typer.Option("--log-level", "-l", help="DEBUG, INFO, WARNING or ERROR."),
    ] = None,
    json_logs: Annotated[
        bool | None,
        typer.Option("--json-logs/--console-logs", help="Emit JSON log lines."),
    ] = None,
) -> None:
    """Start the swarm-rest server over an in-memory object host.

    Configuration precedence (highest to lowest):
    1. Command-line flags
    2. Config file (--config)
    3. Built-in defaults
    """
    cli_overrides: dict[str, Any] = {}

    server_overrides: dict[str, Any] = {}
    if host is not None:
        server_overrides["host"] = host
    if port is not None:
        server_overrides["port"] = port
    if server_overrides:
        cli_overrides["server"] = server_overrides

    api_overrides: dict[str, Any] = {}
    if route is not None:
        api_overrides["route"] = route
    if max_parallel_opens is not None:
        api_overrides["max_parallel_opens"] = max_parallel_opens
    if api_overrides:
        cli_overrides["api"] = api_overrides

    logging_overrides: dict[str, Any] = {}
    if log_level is not None:
        logging_overrides["level"] = log_level.upper()
    if json_logs is not None:
        logging_overrides["json_output"] = json_logs
    if logging_overrides:
        cli_overrides["logging"] = logging_overrides

    config = _load_config_or_exit(config_file, cli_overrides)

    configure_logging(json_output=config.logging.json_output, level=config.logging.level)

    typer.secho(
        f"Starting swarm-rest on {config.server.host}:{config.server.port}",
        fg=typer.colors.GREEN,
    )
    if config_file:
        typer.echo(f"  Config: {config_file}")
    typer.echo(f"  Route: {config.api.route or '/'}")
    typer.echo(f"  Host id: {config.memory_host.host_id}")
    typer.echo(f"  Types: {', '.join([*config.memory_host.models, *config.memory_host.collections]) or '(none)'}")
    typer.echo(f"  Max parallel opens: {config.api.max_parallel_opens}")
    typer.echo()

    import uvicorn

    from swarmrest.api.app import create_app

    uvicorn.run(
        create_app(config),
        host=config.server.host,
        port=config.server.port,
        log_config=None,
    )


@app.command()
def parse(
    method: Annotated[str, typer.Argument(help="HTTP method: GET, POST or PUT.")],
    path: Annotated[str, typer.Argument(help="Request path with the route removed, e.g. '/Mouse#A#B'.")],
    body: Annotated[
        str | None,
        typer.Option("--body", "-b", help="JSON request body for POST/PUT."),
    ] = None,
) -> None:
    """Show the operation descriptors a request would produce."""
    try:
        parsed_body = json.loads(body) if body is not None else {}
    except json.JSONDecodeError as e:
        typer.secho(f"Error: --body is not valid JSON: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    try:
        descriptors = extract(method, path, parsed_body)
    except SwarmRestError as e:
        typer.secho(f"Error: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(1) from e

    rows = [
        {
            "target_id": d.target_id,
            "op": d.op,
            "locator": str(d.locator) if d.locator is not None else None,
            "value": d.value,
        }
        for d in descriptors
    ]
    typer.echo(json.dumps(rows, indent=2))


@app.command()
def show_config(
    config_file: ConfigFileOption = None,
    output_format: Annotated[
        str,
        typer.Option("--format", "-f", help="Output format: json or yaml."),
    ] = "yaml",
) -> None:
    """Show the effective configuration."""
    config = _load_config_or_exit(config_file)

    config_dict = config.model_dump()
    if output_format == "json":
        typer.echo(json.dumps(config_dict, indent=2))
    else:
        typer.echo(yaml.dump(config_dict, default_flow_style=False, sort_keys=False))


def main() -> None:
    """Entry point for swarmrest CLI."""
    app()


if __name__ == "__main__":
    main()
