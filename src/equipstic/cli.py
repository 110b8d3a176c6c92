"""Command-line interface for the EquipsTIC client.

This module implements the CLI using Click. Each command opens a client,
runs one operation and prints the result as JSON on stdout. Errors go to
stderr and make the command exit with status 1.
"""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import click
from pydantic import BaseModel, ValidationError

from equipstic.config import (
    BASE_URL_ENV,
    PASSWORD_ENV,
    TIMEZONE_ENV,
    USERNAME_ENV,
    Settings,
)
from equipstic.libs.inventory import (
    ClientConfig,
    EquipsTicClient,
    EquipsTicError,
)
from equipstic.libs.inventory.endpoints import GET_ENDPOINTS, LIST_ENDPOINTS
from equipstic.libs.inventory.models import TIMEZONE_CONTEXT_KEY
from equipstic.observability import initialize_logfire

T = TypeVar("T")

# ---------------------------------------------------------------------------
# Helper functions
# ---------------------------------------------------------------------------


def _setup_logging(verbose: bool) -> None:
    """Configure global logging.

    Logs go to stderr so that stdout only carries the JSON output.

    Args:
        verbose: If *True* enable *DEBUG* level logging, otherwise only
        warnings are shown.
    """
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, stream=sys.stderr)

    # Install secret filter to prevent credential leakage in logs
    from equipstic.logging_security import install_filter

    install_filter()


def _create_settings(overrides: dict[str, str]) -> Settings:
    """Return validated settings, exiting with status *1* if validation fails."""
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        click.echo(f"✗ Configuration error: {exc}", err=True)
        click.echo("\nRequired environment variables or CLI options:", err=True)
        click.echo(f"  --base-url or {BASE_URL_ENV}", err=True)
        click.echo(f"  --username or {USERNAME_ENV}", err=True)
        click.echo(f"  --password or {PASSWORD_ENV}", err=True)
        sys.exit(1)

    from equipstic.logging_security import register_secret

    register_secret(settings.password)
    register_secret(settings.logfire_token)
    return settings


def _client_config(ctx: click.Context) -> ClientConfig:
    """Build the client configuration the first time a command needs it."""
    state: dict[str, Any] = ctx.ensure_object(dict)
    if "config" not in state:
        settings = _create_settings(state["overrides"])
        initialize_logfire(settings)
        try:
            state["config"] = settings.to_client_config()
        except EquipsTicError as exc:
            click.echo(f"✗ Configuration error: {exc}", err=True)
            sys.exit(1)
    config: ClientConfig = state["config"]
    return config


def _run(ctx: click.Context, operation: Callable[[EquipsTicClient], Awaitable[T]]) -> T:
    """Run one client operation, exiting with status *1* on any client error."""
    config = _client_config(ctx)

    async def _call() -> T:
        async with EquipsTicClient(config) as client:
            return await operation(client)

    try:
        return asyncio.run(_call())
    except EquipsTicError as exc:
        click.echo(f"✗ {type(exc).__name__}: {exc}", err=True)
        sys.exit(1)


def _echo_json(ctx: click.Context, result: BaseModel | list[Any] | None, missing: str) -> None:
    """Print a model or a list of models as JSON; report absence on stderr."""
    if result is None:
        click.echo(f"✗ {missing}", err=True)
        sys.exit(1)

    context = {TIMEZONE_CONTEXT_KEY: _client_config(ctx).zone}
    if isinstance(result, list):
        payload: Any = [item.model_dump(mode="json", context=context) for item in result]
    else:
        payload = result.model_dump(mode="json", context=context)
    click.echo(json.dumps(payload, indent=2, ensure_ascii=False))


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@click.group()
@click.option(
    "--base-url",
    envvar=BASE_URL_ENV,
    help=f"Base URL of the EquipsTIC API (env: {BASE_URL_ENV})",
)
@click.option(
    "--username",
    envvar=USERNAME_ENV,
    help=f"SOA bus user (env: {USERNAME_ENV})",
)
@click.option(
    "--password",
    envvar=PASSWORD_ENV,
    help=f"SOA bus password (env: {PASSWORD_ENV})",
)
@click.option(
    "--timezone",
    envvar=TIMEZONE_ENV,
    help=f"Time zone of the EquipsTIC server (env: {TIMEZONE_ENV}, default: Europe/Madrid)",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
@click.pass_context
def main(
    ctx: click.Context,
    base_url: str | None,
    username: str | None,
    password: str | None,
    timezone: str | None,
    verbose: bool,
) -> None:
    """EquipsTIC client - query the equipment inventory."""
    _setup_logging(verbose)

    # CLI values take precedence over the environment read by Settings
    options = {
        BASE_URL_ENV: base_url,
        USERNAME_ENV: username,
        PASSWORD_ENV: password,
        TIMEZONE_ENV: timezone,
    }
    ctx.ensure_object(dict)["overrides"] = {k: v for k, v in options.items() if v}


@main.command("list")
@click.argument("resource", type=click.Choice(sorted(LIST_ENDPOINTS)))
@click.pass_context
def list_command(ctx: click.Context, resource: str) -> None:
    """List every entity of a reference RESOURCE."""
    result = _run(ctx, lambda client: client.list_resource(resource))
    _echo_json(ctx, result, f"No {resource} found")


@main.command("get")
@click.argument("resource", type=click.Choice(sorted(GET_ENDPOINTS)))
@click.argument("entity_id", type=int)
@click.pass_context
def get_command(ctx: click.Context, resource: str, entity_id: int) -> None:
    """Fetch one entity of a reference RESOURCE by its ENTITY_ID."""
    result = _run(ctx, lambda client: client.get_resource(resource, entity_id))
    _echo_json(ctx, result, f"{resource} {entity_id} does not exist")


@main.command("infrastructure")
@click.argument("infrastructure_id", type=int)
@click.pass_context
def infrastructure_command(ctx: click.Context, infrastructure_id: int) -> None:
    """Fetch an equipment record with all its relations resolved."""
    result = _run(ctx, lambda client: client.get_infrastructure_by_id(infrastructure_id))
    _echo_json(ctx, result, f"Infrastructure {infrastructure_id} does not exist")


@main.command("infrastructures-by-unit")
@click.argument("unit_id", type=int)
@click.pass_context
def infrastructures_by_unit_command(ctx: click.Context, unit_id: int) -> None:
    """List the equipment records of a unit, relations resolved."""
    result = _run(ctx, lambda client: client.get_infrastructures_by_unit(unit_id))
    _echo_json(ctx, result, f"No infrastructure found for unit {unit_id}")


if __name__ == "__main__":
    main()
