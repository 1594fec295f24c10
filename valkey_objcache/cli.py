"""
Command line access to an object cache.

Reads and writes the same compressed JSON documents as the library, so
cached values can be inspected without decoding base64 by hand.

Usage:
    objcache get user:42
    objcache set user:42 '{"name": "Ada"}' --ttl 60
    objcache hgetall session:abc
    objcache ttl user:42
    objcache --url valkey://cache:6379/1 info
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, Callable, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .exceptions import ObjectCacheError
from .manager import ObjectCache
from .utils import TTLState

app = typer.Typer(
    help="Inspect and edit values in a Valkey object cache",
    add_completion=False,
)
console = Console()


def _run(ctx: typer.Context, operation: Callable[[ObjectCache], Awaitable[Any]]) -> Any:
    """Connect, run one operation, close. Errors exit with code 1."""

    async def runner():
        cache = await ObjectCache.create(ctx.obj["url"], password=ctx.obj["password"])
        try:
            return await operation(cache)
        finally:
            if cache.is_connected():
                await cache.quit()

    try:
        return asyncio.run(runner())
    except ObjectCacheError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(code=1)


def _print_value(value: Any) -> None:
    if value is None:
        console.print("[dim](nil)[/dim]")
    else:
        console.print_json(json.dumps(value))


def _parse_json(text: str) -> Any:
    try:
        return json.loads(text)
    except json.JSONDecodeError as e:
        raise typer.BadParameter(f"not valid JSON: {e}")


@app.callback()
def main(
    ctx: typer.Context,
    url: Optional[str] = typer.Option(None, "--url", "-u", help="Store URL, defaults to VALKEY_URL"),
    password: Optional[str] = typer.Option(None, "--password", "-p", help="Store password, defaults to VALKEY_PASSWORD"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(message)s",
            handlers=[RichHandler(console=console, show_path=False)],
        )
    ctx.obj = {"url": url, "password": password}


@app.command()
def get(ctx: typer.Context, key: str):
    """Print the document stored at KEY."""
    _print_value(_run(ctx, lambda cache: cache.get(key)))


@app.command("set")
def set_value(
    ctx: typer.Context,
    key: str,
    value: str = typer.Argument(..., help="JSON document"),
    ttl: Optional[int] = typer.Option(None, "--ttl", "-t", help="Expiration in seconds"),
):
    """Store a JSON document at KEY."""
    document = _parse_json(value)
    _run(ctx, lambda cache: cache.set(key, document, ttl=ttl))
    console.print("[green]OK[/green]")


@app.command()
def delete(ctx: typer.Context, key: str):
    """Delete KEY, scalar or hash."""
    console.print(_run(ctx, lambda cache: cache.delete(key)))


@app.command()
def hget(ctx: typer.Context, key: str, field: str):
    """Print the document stored in FIELD of hash KEY."""
    _print_value(_run(ctx, lambda cache: cache.hget(key, field)))


@app.command()
def hset(ctx: typer.Context, key: str, field: str, value: str = typer.Argument(..., help="JSON document")):
    """Store a JSON document in FIELD of hash KEY."""
    document = _parse_json(value)
    console.print(_run(ctx, lambda cache: cache.hset(key, field, document)))


@app.command()
def hdel(ctx: typer.Context, key: str, field: str):
    """Remove FIELD from hash KEY."""
    console.print(_run(ctx, lambda cache: cache.hdel(key, field)))


@app.command()
def hgetall(ctx: typer.Context, key: str):
    """Print every field of hash KEY."""
    values = _run(ctx, lambda cache: cache.hgetall(key))
    if not values:
        console.print("[dim](empty hash)[/dim]")
        return
    table = Table(title=key)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in values.items():
        table.add_row(name, json.dumps(value))
    console.print(table)


@app.command()
def hlen(ctx: typer.Context, key: str):
    """Print the number of fields in hash KEY."""
    console.print(_run(ctx, lambda cache: cache.hlen(key)))


@app.command()
def expire(ctx: typer.Context, key: str, seconds: int):
    """Set the expiration of KEY."""
    if _run(ctx, lambda cache: cache.expire(key, seconds)):
        console.print("[green]OK[/green]")
    else:
        console.print(f"[yellow]No such key:[/yellow] {key}")


@app.command()
def ttl(ctx: typer.Context, key: str):
    """Print the remaining time to live of KEY."""
    status = _run(ctx, lambda cache: cache.ttl_status(key))
    if status.state is TTLState.MISSING:
        console.print(f"[yellow]No such key[/yellow] ({status.raw})")
    elif status.state is TTLState.NO_EXPIRY:
        console.print(f"No expiration ({status.raw})")
    else:
        console.print(f"{status.remaining}s")


@app.command()
def info(ctx: typer.Context):
    """Print connection and server information."""
    details = _run(ctx, lambda cache: cache.get_client().get_connection_info())
    table = Table(title="Valkey connection")
    table.add_column("Property", style="cyan")
    table.add_column("Value")
    for name, value in details.items():
        table.add_row(name, str(value))
    console.print(table)


if __name__ == "__main__":
    app()
