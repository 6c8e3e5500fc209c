"""
Content Manager CLI.

Usage:
    conmanager get players -p limit=10 -p fields=id,name
    conmanager upload ./picture.jpg Pictures/picture.jpg
    conmanager download data/webdav/picture.jpg ./picture.jpg
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any

import click
import httpx
from rich.console import Console
from rich.table import Table

from conmanager.client import AsyncConManager
from conmanager.config import DEFAULT_TOKEN_NAME
from conmanager.exceptions import ConManagerError
from conmanager.logging import configure_logging

console = Console()
err_console = Console(stderr=True)


def get_connection(ctx: click.Context) -> dict[str, Any]:
    """Get connection options from context, exiting if incomplete."""
    conn = ctx.obj or {}
    missing = [
        option
        for option, key in (("--base-url", "base_url"), ("--username", "username"))
        if not conn.get(key)
    ]
    if missing:
        err_console.print(
            f"[red]Error:[/red] Missing {', '.join(missing)} "
            "(or set CONMANAGER_BASE_URL / CONMANAGER_USERNAME)"
        )
        raise SystemExit(1)
    return conn


def parse_params(params: tuple[str, ...]) -> dict[str, str]:
    """Parse ``key=value`` pairs."""
    data = {}
    for param in params:
        key, sep, value = param.partition("=")
        if not sep or not key:
            raise click.BadParameter(f"expected key=value, got {param!r}", param_hint="--param")
        data[key] = value
    return data


def run(coro: Any) -> Any:
    """Run coroutine, turning client errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except (ConManagerError, httpx.HTTPError) as e:
        err_console.print(f"[red]Error:[/red] {e}")
        raise SystemExit(1)


async def _connect(conn: dict[str, Any]) -> AsyncConManager:
    client = AsyncConManager(conn["base_url"], conn["token_name"])
    try:
        await client.login(conn["username"], conn["password"])
    except BaseException:
        await client.close()
        raise
    return client


@click.group()
@click.option("--base-url", envvar="CONMANAGER_BASE_URL", help="Content Manager URL")
@click.option("--username", "-u", envvar="CONMANAGER_USERNAME", help="Login name")
@click.option("--password", "-p", envvar="CONMANAGER_PASSWORD", help="Password")
@click.option(
    "--token-name",
    envvar="CONMANAGER_TOKEN_NAME",
    default=DEFAULT_TOKEN_NAME,
    show_default=True,
    help="Token field name (use 'token' for releases before 10.2)",
)
@click.option("--verbose", "-v", is_flag=True, help="Trace requests and responses")
@click.version_option(package_name="conmanager")
@click.pass_context
def main(
    ctx: click.Context,
    base_url: str | None,
    username: str | None,
    password: str | None,
    token_name: str,
    verbose: bool,
) -> None:
    """Content Manager command-line interface."""
    ctx.ensure_object(dict)
    ctx.obj.update(
        base_url=base_url,
        username=username,
        password=password,
        token_name=token_name,
    )
    if verbose:
        configure_logging("DEBUG", console=err_console)


# =============================================================================
# Get Command
# =============================================================================


@main.command()
@click.argument("endpoint")
@click.option("--param", "-P", "params", multiple=True, help="Query parameter key=value")
@click.pass_context
def get(ctx: click.Context, endpoint: str, params: tuple[str, ...]) -> None:
    """GET an API endpoint and print the JSON result.

    Examples:

        conmanager get players -P limit=0 -P fields=id,name,enabled
    """
    conn = get_connection(ctx)
    result = run(_get_async(conn, endpoint, parse_params(params)))
    console.print_json(data=result)


async def _get_async(conn: dict[str, Any], endpoint: str, data: dict[str, str]) -> Any:
    client = await _connect(conn)
    async with client:
        return await client.get(endpoint, data or None)


# =============================================================================
# Upload Command
# =============================================================================


@main.command()
@click.argument("local", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.argument("remote", required=False)
@click.option(
    "--type",
    "upload_type",
    type=click.Choice(["auto", "media_item", "maint_item"], case_sensitive=False),
    default="auto",
    show_default=True,
    help="Upload classification",
)
@click.pass_context
def upload(ctx: click.Context, local: Path, remote: str | None, upload_type: str) -> None:
    """Upload LOCAL file (to REMOTE path, defaults to the file name)."""
    conn = get_connection(ctx)
    item = run(_upload_async(conn, local, remote, upload_type))

    table = Table(show_header=True, header_style="bold")
    table.add_column("Field")
    table.add_column("Value")
    for key, value in item.to_payload().items():
        table.add_row(key, str(value))
    console.print(table)


async def _upload_async(
    conn: dict[str, Any],
    local: Path,
    remote: str | None,
    upload_type: str,
) -> Any:
    client = await _connect(conn)
    async with client:
        return await client.upload(local, remote, upload_type)


# =============================================================================
# Download Command
# =============================================================================


@main.command()
@click.argument("remote")
@click.argument("local", type=click.Path(dir_okay=False, path_type=Path))
@click.pass_context
def download(ctx: click.Context, remote: str, local: Path) -> None:
    """Download REMOTE path to LOCAL file."""
    conn = get_connection(ctx)
    path = run(_download_async(conn, remote, local))
    console.print(f"Saved [cyan]{path}[/cyan] ({path.stat().st_size:,} bytes)")


async def _download_async(conn: dict[str, Any], remote: str, local: Path) -> Path:
    client = await _connect(conn)
    async with client:
        return await client.download(remote, local)


if __name__ == "__main__":
    main()
