"""CLI entry point for the flex_poller daemon."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from dotenv import load_dotenv

from flex_poller.config import load_config
from flex_poller.daemon import build_store, run_daemon
from flex_poller.errors import FlexApiError, PersistError
from flex_poller.flex.client import FlexIntegrationClient
from flex_poller.flex.listings import ListingLikesUpdater
from flex_poller.interfaces.store import ActivityLog
from flex_poller.models.config import PollerConfig, StorageBackend


def _require_credentials(cfg: PollerConfig) -> None:
    """Exit with error if no API credentials are configured."""
    if not cfg.client_id or not cfg.client_secret:
        click.echo("Error: No Integration API credentials configured.", err=True)
        click.echo(
            "Set FLEX_INTEGRATION_CLIENT_ID and FLEX_INTEGRATION_CLIENT_SECRET "
            "(env or .env) or [flex] in the config file.",
            err=True,
        )
        sys.exit(1)


@click.group()
@click.option("-c", "--config", "config_path", default=None, help="Path to config TOML file")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """flex_poller - react to marketplace events from the Flex Integration API."""
    load_dotenv()
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose

    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


# ── Daemon ─────────────────────────────────────────────


@cli.command()
@click.pass_context
def run(ctx: click.Context) -> None:
    """Start polling for events."""
    cfg = load_config(ctx.obj["config_path"])
    _require_credentials(cfg)

    click.echo("Press <CTRL>+C to quit.")
    asyncio.run(run_daemon(cfg))


# ── Info ───────────────────────────────────────────────


@cli.command()
@click.pass_context
def status(ctx: click.Context) -> None:
    """Show poller configuration and the stored cursor."""
    cfg = load_config(ctx.obj["config_path"])

    async def _cursor() -> int | None:
        store = build_store(cfg)
        await store.initialize()
        try:
            return await store.get_cursor()
        finally:
            await store.close()

    cursor = asyncio.run(_cursor())
    location = cfg.db_path if cfg.storage == StorageBackend.SQLITE else cfg.state_file

    click.echo(f"API URL:      {cfg.base_url}")
    click.echo(f"Client ID:    {cfg.client_id or '(not set)'}")
    click.echo(f"Secret:       {'***configured***' if cfg.client_secret else '(not set)'}")
    click.echo(f"Event types:  {', '.join(cfg.event_types)}")
    click.echo(f"Handlers:     {', '.join(cfg.handlers) or '(none)'}")
    click.echo(f"Poll wait:    {cfg.poll_wait}s (full page) / {cfg.poll_idle_wait}s (idle)")
    click.echo(f"Storage:      {cfg.storage.value} ({location})")
    click.echo(f"Cursor:       {cursor if cursor is not None else '(none, cold start)'}")


@cli.command()
@click.option("-n", "--limit", type=int, default=20, help="Number of entries to show")
@click.pass_context
def activity(ctx: click.Context, limit: int) -> None:
    """Show recent activity (sqlite storage only)."""
    cfg = load_config(ctx.obj["config_path"])
    store = build_store(cfg)
    if not isinstance(store, ActivityLog):
        click.echo("Activity log requires storage backend 'sqlite'.", err=True)
        sys.exit(1)

    async def _activity():
        await store.initialize()
        try:
            return await store.get_recent_activity(limit)
        finally:
            await store.close()

    records = asyncio.run(_activity())
    if not records:
        click.echo("No activity recorded.")
        return
    for r in records:
        seq = f"#{r.sequence_id}" if r.sequence_id is not None else "-"
        click.echo(f"{r.created_at}  {r.kind:<14} {seq:<10} {r.message}")


# ── Cursor ─────────────────────────────────────────────


@cli.group()
def cursor() -> None:
    """Inspect or change the stored cursor."""


@cursor.command("show")
@click.pass_context
def cursor_show(ctx: click.Context) -> None:
    """Print the stored sequence ID."""
    cfg = load_config(ctx.obj["config_path"])

    async def _show():
        store = build_store(cfg)
        await store.initialize()
        try:
            return await store.get_cursor()
        finally:
            await store.close()

    value = asyncio.run(_show())
    click.echo(str(value) if value is not None else "(none)")


@cursor.command("set")
@click.argument("sequence_id", type=click.IntRange(min=0))
@click.pass_context
def cursor_set(ctx: click.Context, sequence_id: int) -> None:
    """Resume polling after SEQUENCE_ID on the next run."""
    cfg = load_config(ctx.obj["config_path"])

    async def _set():
        store = build_store(cfg)
        await store.initialize()
        try:
            await store.set_cursor(sequence_id)
        finally:
            await store.close()

    try:
        asyncio.run(_set())
    except PersistError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Cursor set to {sequence_id}")


@cursor.command("reset")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation prompt")
@click.pass_context
def cursor_reset(ctx: click.Context, yes: bool) -> None:
    """Forget the cursor; the next run starts from the current time."""
    cfg = load_config(ctx.obj["config_path"])
    if not yes:
        click.confirm("Forget the stored cursor?", abort=True)

    async def _reset():
        store = build_store(cfg)
        await store.initialize()
        try:
            await store.clear_cursor()
        finally:
            await store.close()

    try:
        asyncio.run(_reset())
    except PersistError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo("Cursor cleared")


# ── Listings ───────────────────────────────────────────


@cli.command()
@click.argument("listing_id")
@click.option("--delta", type=int, default=1, show_default=True, help="Signed amount to add")
@click.pass_context
def like(ctx: click.Context, listing_id: str, delta: int) -> None:
    """Add DELTA to a listing's like counter."""
    cfg = load_config(ctx.obj["config_path"])
    _require_credentials(cfg)

    async def _like():
        client = FlexIntegrationClient(
            cfg.client_id, cfg.client_secret, cfg.base_url, cfg.request_timeout,
        )
        try:
            return await ListingLikesUpdater(client).apply_delta(listing_id, delta)
        finally:
            await client.close()

    try:
        likes = asyncio.run(_like())
    except FlexApiError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)
    click.echo(f"Listing {listing_id} now has {likes} likes")


if __name__ == "__main__":
    cli()
