"""Command line entry point.

Examples:
    allocopt actionqueue --indexer 0xabc... --filepath lists.csv --maxgas 100 \
        --allocation-lifetime 28 --maxnew 5 --tau 0.2 \
        --network-url http://localhost:7600/network --management-url http://localhost:18000
    allocopt rules --indexer 0xabc... --filepath lists.csv --maxgas 100 \
        --allocation-lifetime 28 --maxnew 5 --tau 0.2 --network-url http://localhost:7600/network
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable, Optional

import click

from .config import AppConfig
from .errors import AllocOptError
from .filterlists import read_filterlists
from .network.client import GraphQLClient
from .optimizer.base import MAX_ALLOCATION_LIFETIME
from .service import AllocationService, RunPlan
from .services.http import configure_http
from .services.logging import configure_logging


def _run_options(func: Callable[..., Any]) -> Callable[..., Any]:
    options = [
        click.option("--indexer", "indexer_id", required=True, help="Indexer address to optimise."),
        click.option("--network-id", type=int, default=None, help="Graph network id (defaults to ALLOCOPT_NETWORK_ID)."),
        click.option(
            "--filepath",
            type=click.Path(dir_okay=False, path_type=Path),
            required=True,
            help="CSV with whitelist, blacklist, pinnedlist and frozenlist columns.",
        ),
        click.option("--maxgas", type=float, required=True, help="Gas in GRT spent per allocation transaction."),
        click.option(
            "--allocation-lifetime",
            type=int,
            required=True,
            help=f"Epochs the allocations stay open (0-{MAX_ALLOCATION_LIFETIME}).",
        ),
        click.option("--maxnew", type=int, required=True, help="Maximum number of new allocations to open."),
        click.option("--tau", type=float, required=True, help="Exploration parameter in [0, 1]."),
        click.option(
            "--min-allocation",
            "min_allocation",
            type=float,
            default=0.0,
            show_default=True,
            help="Smallest amount of GRT worth allocating to one deployment.",
        ),
        click.option(
            "--network-url",
            default=None,
            help="Indexer service network endpoint, e.g. http://localhost:7600/network.",
        ),
        click.option("--log-level", default=None, help="Logging level (defaults to LOG_LEVEL)."),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _prepare(ctx: click.Context, *, network_id: Optional[int], network_url: Optional[str], log_level: Optional[str], **extra: Any) -> AppConfig:
    config: AppConfig = ctx.obj
    config = config.with_overrides(network_id=network_id, network_url=network_url, log_level=log_level, **extra)
    configure_logging(level=config.log_level, log_file_path=config.log_file_path)
    configure_http(config.http_settings())
    return config


def _build_plan(config: AppConfig, params: dict) -> tuple[AllocationService, RunPlan]:
    service = AllocationService(config, network_client=GraphQLClient(config.network_url))
    filterlists = read_filterlists(params["filepath"])
    plan = service.plan(
        params["indexer_id"],
        filterlists,
        max_new_allocations=params["maxnew"],
        tau=params["tau"],
        gas=params["maxgas"],
        allocation_lifetime=params["allocation_lifetime"],
        min_allocation_amount=params["min_allocation"],
    )
    return service, plan


@click.group()
@click.pass_context
def cli(ctx: click.Context) -> None:
    """Optimise indexer allocations and converge the network to them."""
    if ctx.obj is None:
        try:
            ctx.obj = AppConfig.load()
        except ValueError as exc:
            raise click.ClickException(f"Invalid configuration: {exc}") from exc


@cli.command("actionqueue")
@_run_options
@click.option("--management-url", default=None, help="Indexer management server, e.g. http://localhost:18000.")
@click.pass_context
def actionqueue_command(ctx: click.Context, management_url: Optional[str], network_id, network_url, log_level, **params: Any) -> None:
    """Queue the computed actions on the indexer management server."""
    config = _prepare(ctx, network_id=network_id, network_url=network_url, log_level=log_level, management_url=management_url)
    try:
        service, plan = _build_plan(config, params)
        queued = service.push_allocations(plan, GraphQLClient(config.management_url))
    except (AllocOptError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(queued, indent=2))


@cli.command("rules")
@_run_options
@click.pass_context
def rules_command(ctx: click.Context, network_id, network_url, log_level, **params: Any) -> None:
    """Print the computed actions as indexer CLI commands; nothing is queued."""
    config = _prepare(ctx, network_id=network_id, network_url=network_url, log_level=log_level)
    try:
        service, plan = _build_plan(config, params)
    except (AllocOptError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    for line in service.create_rules(plan):
        click.echo(line)


def main() -> None:
    cli(prog_name="allocopt")


if __name__ == "__main__":
    main()
