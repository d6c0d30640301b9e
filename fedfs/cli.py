"""
fedfs CLI：管理联邦源，列出聚合后的文件，读取单个文件或元数据。
"""

from __future__ import annotations

import asyncio
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Annotated, Optional

import httpx
import typer

from fedfs.config import add_source, load_federation_configs, read_federation_configs, remove_source
from fedfs.errors import NotFoundError, OfflineError
from fedfs.federation import FederatedFS
from fedfs.logger import setup_logging
from fedfs.models import FileMeta
from fedfs.store import MemoryStore


def _format_size(n: int) -> str:
    """将字节数格式化为人类可读（KiB/MiB/GiB）。"""
    if n < 1024:
        return f"{n} B"
    if n < 1024 * 1024:
        return f"{n / 1024:.1f} KiB"
    if n < 1024 * 1024 * 1024:
        return f"{n / (1024 * 1024):.1f} MiB"
    return f"{n / (1024 * 1024 * 1024):.1f} GiB"


def _format_mtime(ms: int) -> str:
    """epoch 毫秒 -> UTC ISO 时间；0 表示未知。"""
    if not ms:
        return "-"
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


app = typer.Typer(
    name="fedfs",
    help="Federated file listing CLI. Aggregates remote index.json sources into one read-only namespace.",
)

_no_cache_option: type = Annotated[
    bool,
    typer.Option("--no-cache", help="Do not read or write the persistent listing cache"),
]


@app.callback()
def main_callback(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging to stderr")] = False,
) -> None:
    setup_logging(verbose)


def _make_fs(no_cache: bool) -> FederatedFS:
    return FederatedFS(read_federation_configs, MemoryStore() if no_cache else None)


def _require_sources() -> None:
    if not load_federation_configs():
        typer.echo("error: no federation sources configured. run 'fedfs source add URI'", err=True)
        raise typer.Exit(1)


async def _with_fs(no_cache: bool, fn):
    fs = _make_fs(no_cache)
    try:
        return await fn(fs)
    finally:
        await fs.aclose()


def _print_meta(meta: FileMeta) -> None:
    typer.echo(
        f"  {meta.name}  {_format_size(meta.size)}  {meta.perm}  {meta.content_type}  {_format_mtime(meta.last_modified)}"
    )


# ------------------------- list / ls -------------------------


def _cmd_list_impl(no_cache: bool) -> None:
    _require_sources()
    files = asyncio.run(_with_fs(no_cache, lambda fs: fs.list_files()))
    for meta in sorted(files, key=lambda m: m.name):
        _print_meta(meta)


@app.command("list", help="List files across all federation sources")
def list_cmd(no_cache: _no_cache_option = False) -> None:
    _cmd_list_impl(no_cache)


@app.command("ls", help="Alias for list")
def ls_cmd(no_cache: _no_cache_option = False) -> None:
    _cmd_list_impl(no_cache)


@app.command("sources", help="Show per-source listing status (fresh/fetched/stale/failed)")
def sources_cmd(no_cache: _no_cache_option = False) -> None:
    _require_sources()
    try:
        listings = asyncio.run(_with_fs(no_cache, lambda fs: fs.list_sources()))
    except Exception as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    for listing in listings:
        line = f"  {listing.config.uri}  {listing.status.value}  {len(listing.items)} file(s)"
        if listing.error:
            line += f"  ({listing.error})"
        typer.echo(line)


# ------------------------- cat / meta -------------------------


@app.command("cat", help="Read a federated file (to stdout or --output)")
def cat_cmd(
    name: Annotated[str, typer.Argument(help="Federated file name, e.g. silverbullet.md/Library/Core.md")],
    output: Annotated[Optional[Path], typer.Option("--output", "-o", help="Save to local path instead of stdout")] = None,
) -> None:
    try:
        result = asyncio.run(_with_fs(True, lambda fs: fs.read_file(name)))
    except OfflineError:
        typer.echo("error: offline", err=True)
        raise typer.Exit(1)
    except NotFoundError:
        typer.echo(f"error: not found: {name}", err=True)
        raise typer.Exit(1)
    except (ValueError, httpx.InvalidURL) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    if output is not None:
        output.parent.mkdir(parents=True, exist_ok=True)
        output.write_bytes(result.data)
        typer.echo(f"Saved to {output}.")
        return
    typer.echo(result.data, nl=False)


@app.command("meta", help="Show metadata of a federated file (JSON)")
def meta_cmd(
    name: Annotated[str, typer.Argument(help="Federated file name")],
) -> None:
    try:
        meta = asyncio.run(_with_fs(True, lambda fs: fs.get_file_meta(name)))
    except OfflineError:
        typer.echo("error: offline", err=True)
        raise typer.Exit(1)
    except NotFoundError:
        typer.echo(f"error: not found: {name}", err=True)
        raise typer.Exit(1)
    except (ValueError, httpx.InvalidURL) as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(json.dumps(meta.to_dict(), ensure_ascii=False, indent=2))


# ------------------------- source -------------------------


source_app = typer.Typer(help="Federation source subcommands")
app.add_typer(source_app, name="source")


@source_app.command("add", help="Add (or replace) a federation source")
def source_add(
    uri: Annotated[str, typer.Argument(help="Source URI: <host>[/<prefix>], e.g. silverbullet.md/Library")],
    rw: Annotated[bool, typer.Option("--rw", help="Mark files from this source as read-write")] = False,
) -> None:
    try:
        config = add_source(uri, "rw" if rw else None)
    except ValueError as e:
        typer.echo(f"error: {e}", err=True)
        raise typer.Exit(1)
    typer.echo(f"Added {config.uri}.")


@source_app.command("remove", help="Remove a federation source")
def source_remove(
    uri: Annotated[str, typer.Argument(help="Source URI")],
) -> None:
    if remove_source(uri):
        typer.echo("Removed.")
    else:
        typer.echo(f"error: no such source: {uri}", err=True)
        raise typer.Exit(1)


@source_app.command("list", help="Print configured federation sources")
def source_list() -> None:
    configs = load_federation_configs()
    if not configs:
        typer.echo("No federation sources configured.")
        return
    for config in configs:
        typer.echo(f"  {config.uri}  {config.perm or 'ro'}")


# ------------------------- main -------------------------


def main() -> None:
    app()


if __name__ == "__main__":
    main()
