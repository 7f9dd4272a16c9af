"""
cli.py — Click CLI for inspecting and maintaining a durable cache.

Usage:
    durable-cache set session:42 '{"user": 42}' --ttl 600
    durable-cache get session:42
    durable-cache delete session:42
    durable-cache sweep
    durable-cache --backend supabase watch --interval 30
"""

from __future__ import annotations

import json
import time
from datetime import timedelta
from typing import Any

import click
import structlog

from durable_cache.cache import CacheStore
from durable_cache.config import CacheOptions, settings
from durable_cache.db import open_document_store
from durable_cache.exceptions import NotFoundError, StoreError
from durable_cache.logging import configure_logging

log = structlog.get_logger(__name__)


def _parse_value(raw: str) -> Any:
    """JSON when it parses, the raw string otherwise."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _cache(ctx: click.Context) -> CacheStore:
    obj = ctx.ensure_object(dict)
    if "cache" not in obj:
        source = obj["settings"]
        obj["cache"] = CacheStore(
            open_document_store(source),
            CacheOptions.from_settings(source).with_overrides(start_sweep=False),
        )
    return obj["cache"]


@click.group()
@click.option(
    "--log-level",
    default=settings.log_level,
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]),
    help="Log level",
)
@click.option(
    "--backend",
    default=settings.cache_backend,
    type=click.Choice(["duckdb", "supabase", "memory"]),
    help="Document store backend",
)
@click.option("--collection", default=settings.cache_collection_name, help="Collection name")
@click.pass_context
def main(ctx: click.Context, log_level: str, backend: str, collection: str) -> None:
    """durable-cache maintenance commands."""
    configure_logging(log_level=log_level)
    ctx.ensure_object(dict)["settings"] = settings.model_copy(
        update={"cache_backend": backend, "cache_collection_name": collection}
    )


@main.command()
@click.argument("key")
@click.pass_context
def get(ctx: click.Context, key: str) -> None:
    """Print the value stored under KEY as JSON."""
    try:
        value = _cache(ctx).get(key)
    except NotFoundError:
        click.echo(f"Key not found: {key}", err=True)
        ctx.exit(1)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(json.dumps(value))


@main.command(name="set")
@click.argument("key")
@click.argument("value")
@click.option("--ttl", type=float, default=None, help="TTL in seconds (default: configured TTL)")
@click.pass_context
def set_(ctx: click.Context, key: str, value: str, ttl: float | None) -> None:
    """Store VALUE (JSON or plain text) under KEY."""
    cache = _cache(ctx)
    try:
        if ttl is None:
            cache.set(key, _parse_value(value))
        else:
            cache.set_with_ttl(key, _parse_value(value), timedelta(seconds=ttl))
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Stored {key}")


@main.command()
@click.argument("key")
@click.pass_context
def delete(ctx: click.Context, key: str) -> None:
    """Delete KEY. Missing keys are not an error."""
    try:
        _cache(ctx).delete(key)
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Deleted {key}")


@main.command()
@click.pass_context
def sweep(ctx: click.Context) -> None:
    """Run one expiry sweep and report how many entries were removed."""
    try:
        deleted = _cache(ctx).delete_expired()
    except StoreError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Removed {deleted} expired entries")


@main.command()
@click.option(
    "--interval",
    type=float,
    default=settings.cache_sweep_interval_seconds,
    show_default=True,
    help="Seconds between sweeps",
)
@click.option("--duration", type=float, default=None, help="Stop after this many seconds")
@click.pass_context
def watch(ctx: click.Context, interval: float, duration: float | None) -> None:
    """Keep sweeping in the background until interrupted."""
    if interval <= 0:
        raise click.BadParameter("must be positive", param_hint="--interval")
    cache = _cache(ctx)
    cache.start_sweep(timedelta(seconds=interval))
    click.echo(f"Sweeping {cache.collection_name} every {interval:g}s (Ctrl-C to stop)")
    deadline = time.monotonic() + duration if duration is not None else None
    try:
        while deadline is None or time.monotonic() < deadline:
            time.sleep(0.1)
    except KeyboardInterrupt:
        log.info("watch_interrupted")
    finally:
        cache.stop_sweep()
    click.echo("Stopped")


if __name__ == "__main__":
    main()
