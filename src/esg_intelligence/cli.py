import asyncio
import json

import click

from . import __version__
from .config.settings import get_settings


def get_version():
    return __version__


def run_server(host, port, reload=False):
    import uvicorn

    uvicorn.run("esg_intelligence.server.main:app", host=host, port=port, reload=reload)


async def _with_container(func):
    from .bootstrap import build_container
    from .telemetry import setup_logging

    settings = get_settings()
    setup_logging(level=settings.log_level, format=settings.log_format)
    container = build_container(settings)
    await container.start(background=False)
    try:
        return await func(container)
    finally:
        await container.stop()


@click.group()
def cli():
    pass


@cli.command()
@click.option("--format", default="text", type=click.Choice(["text", "json"]))
def version(format):
    if format == "json":
        click.echo(json.dumps({"version": get_version()}))
    else:
        click.echo(f"v{get_version()}")


@cli.command()
@click.option("--host", default=None, help="Bind address (defaults to HOST)")
@click.option("--port", default=None, type=int, help="Port (defaults to PORT)")
@click.option("--reload", is_flag=True)
def serve(host, port, reload):
    settings = get_settings()
    run_server(host or settings.host, port or settings.port, reload)


@cli.command()
@click.argument("query")
@click.option("--namespace", default="query", show_default=True)
@click.option("--prefer-speed", is_flag=True)
def analyze(query, namespace, prefer_speed):
    """Run one analysis and print the result as JSON."""

    async def _analyze(container):
        return await container.orchestrator.analyze(
            query, namespace=namespace, prefer_speed=prefer_speed
        )

    result = asyncio.run(_with_container(_analyze))
    click.echo(result.model_dump_json(indent=2))


@cli.command("sweep-cache")
def sweep_cache():
    """Delete expired cache entries."""

    async def _sweep(container):
        return await container.cache.sweep_expired()

    removed = asyncio.run(_with_container(_sweep))
    click.echo(f"Removed {removed} expired cache entries")


@cli.command()
def providers():
    """Show configured providers and their current ranking."""

    async def _providers(container):
        return {
            "configured": container.registry.provider_names,
            "ranking": [
                {"provider": score.provider, "score": round(score.total, 2)}
                for score in container.selector.preview()
            ],
        }

    click.echo(json.dumps(asyncio.run(_with_container(_providers)), indent=2))


if __name__ == "__main__":
    cli()
