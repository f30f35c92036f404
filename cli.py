#!/usr/bin/env python3
"""CLI for the TRPG mock infrastructure."""

import asyncio
import json
import logging
import sys

import click

from trpg_mocks.clock import RealClock
from trpg_mocks.config import load_config
from trpg_mocks.errors import ConfigurationError, ScenarioInducedError
from trpg_mocks.http_boundary import default_routes
from trpg_mocks.presets import PRESETS
from trpg_mocks.providers import ProviderRegistry, Scenario, ScenarioConfig, list_providers
from trpg_mocks.storage import setup_database


@click.group()
@click.version_option(version="0.1.0")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """TRPG Mocks - simulators for AI providers, sessions, storage and HTTP."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


@cli.command("config")
@click.option("--preset", "-p", type=click.Choice(sorted(PRESETS)), default=None, help="Named preset to show")
@click.option("--camel", is_flag=True, help="Use the camelCase option names")
def show_config(preset: str | None, camel: bool):
    """Print the resolved mock server configuration as JSON."""
    try:
        config = PRESETS[preset]() if preset else load_config()
    except ConfigurationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(json.dumps(config.model_dump(mode="json", by_alias=camel), indent=2))


def _request_for(style: str, prompt: str) -> dict:
    if style == "generate":
        return {"prompt": prompt}
    return {"messages": [{"role": "user", "content": prompt}]}


async def _invoke(provider: str, prompt: str, scenario: str, delay: int) -> tuple[dict, str]:
    registry = ProviderRegistry(RealClock())
    instance = registry.create(provider)
    instance.set_scenario(ScenarioConfig(scenario=scenario, delay_ms=delay))
    return await instance.invoke(_request_for(instance.style, prompt)), instance.style


@cli.command("invoke")
@click.argument("provider", type=click.Choice(list_providers() + ["gemini"]))
@click.argument("prompt")
@click.option(
    "--scenario",
    "-s",
    type=click.Choice([s.value for s in Scenario]),
    default="success",
    help="Scenario for this call",
)
@click.option("--delay", "-d", default=0, type=click.IntRange(min=0), help="Simulated latency in ms")
def invoke(provider: str, prompt: str, scenario: str, delay: int):
    """Run one simulated provider call and print the response body."""
    try:
        body, style = asyncio.run(_invoke(provider, prompt, scenario, delay))
    except ScenarioInducedError as e:
        retry = "retryable" if e.retryable else "not retryable"
        click.echo(f"Error ({e.kind}, {retry}): {e}", err=True)
        sys.exit(1)

    if style == "generate":
        click.echo(body["response"]["text"]())
    else:
        click.echo(json.dumps(body, indent=2, ensure_ascii=False))


@cli.command("seed-stats")
@click.option("--no-fk", is_flag=True, help="Disable foreign key enforcement")
def seed_stats(no_fk: bool):
    """Seed an in-memory database and show row counts per table."""
    database = setup_database(enable_foreign_keys=not no_fk, seed_test_data=True)
    counts = database.data_store.counts()
    click.echo("Seeded tables:")
    for table, count in counts.items():
        click.echo(f"  {table}: {count}")
    click.echo(f"Total rows: {sum(counts.values())}")
    database.close()


@cli.command("routes")
@click.option("--base-url", default=None, help="Base URL of the proxy API")
def routes(base_url: str | None):
    """List the default HTTP boundary routes."""
    if base_url is None:
        base_url = load_config().http.base_url
    for route in default_routes(base_url):
        click.echo(f"  {route.method:<6} {route.url_pattern}")


if __name__ == "__main__":
    cli()
