"""Directline CLI — run the server and poke at it from a terminal.

Usage:
    directline serve                         # Run the API + WebSocket server
    directline init-db                       # Create tables if missing
    directline users                         # List users
    directline add-user "Alice" 555-0001     # Register a user
    directline send 1 2 "hi"                 # Send a message from 1 to 2
    directline conversation 1 2              # Show the conversation between 1 and 2
    directline inbox 2                       # Latest message per contact for user 2
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys

import click
import httpx

from directline import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("DIRECTLINE_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Directline backend."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Offloads to a thread when a loop is already running (e.g. tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _check(r: httpx.Response) -> None:
    """Exit with the server's error detail on a non-2xx response."""
    if r.is_success:
        return
    try:
        detail = r.json().get("detail", r.text)
    except (json.JSONDecodeError, AttributeError):
        detail = r.text
    click.secho(f"Error ({r.status_code}): {detail}", fg="red", err=True)
    sys.exit(1)


def _print_table(rows: list[dict], columns: list[tuple[str, str, int]]):
    """Print a simple ASCII table.

    columns: list of (header, dict_key, width)
    """
    header = "  ".join(h.ljust(w) for h, _, w in columns)
    click.secho(header, bold=True)
    click.echo("-" * len(header))
    for row in rows:
        line = "  ".join(str(row.get(k, "—"))[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="directline")
def main():
    """Directline — two-party direct messaging with live delivery."""


@main.command()
@click.option("--host", default=None, help="Bind address (default: DIRECTLINE_HOST)")
@click.option("--port", default=None, type=int, help="Port (default: DIRECTLINE_PORT)")
@click.option("--reload", is_flag=True, help="Reload on code changes")
def serve(host: str | None, port: int | None, reload: bool):
    """Run the HTTP + WebSocket server."""
    import uvicorn

    from directline.config import settings

    uvicorn.run(
        "directline.main:app",
        host=host or settings.host,
        port=port or settings.port,
        reload=reload,
    )


@main.command("init-db")
def init_db_cmd():
    """Create the users and messages tables if they don't exist."""
    from directline.db.engine import engine, init_db

    async def _impl():
        try:
            await init_db()
        finally:
            await engine.dispose()

    _run(_impl())
    click.secho("Tables ready.", fg="green")


@main.command()
def users():
    """List registered users, ordered by name."""
    _run(_users_impl())


async def _users_impl():
    async with _client() as c:
        r = await c.get("/users")
        _check(r)
        rows = r.json()

    if not rows:
        click.echo("No users yet.")
        return
    _print_table(rows, [("ID", "id", 6), ("NAME", "name", 24), ("HANDLE", "handle", 20)])


@main.command("add-user")
@click.argument("name")
@click.argument("handle")
def add_user(name: str, handle: str):
    """Register NAME under contact HANDLE."""
    _run(_add_user_impl(name, handle))


async def _add_user_impl(name: str, handle: str):
    async with _client() as c:
        r = await c.post("/users", json={"name": name, "handle": handle})
        _check(r)
        user = r.json()
    click.secho(f"User #{user['id']} created: {user['name']} ({user['handle']})", fg="green")


@main.command()
@click.argument("sender_id", type=int)
@click.argument("recipient_id", type=int)
@click.argument("body")
def send(sender_id: int, recipient_id: int, body: str):
    """Send BODY from SENDER_ID to RECIPIENT_ID."""
    _run(_send_impl(sender_id, recipient_id, body))


async def _send_impl(sender_id: int, recipient_id: int, body: str):
    async with _client() as c:
        r = await c.post(
            "/messages",
            json={"senderId": sender_id, "recipientId": recipient_id, "body": body},
        )
        _check(r)
        msg = r.json()
    click.secho(f"Message #{msg['id']} sent at {msg['sentAt']}", fg="green")


@main.command()
@click.argument("user_a", type=int)
@click.argument("user_b", type=int)
def conversation(user_a: int, user_b: int):
    """Show every message between USER_A and USER_B, oldest first."""
    _run(_conversation_impl(user_a, user_b))


async def _conversation_impl(user_a: int, user_b: int):
    async with _client() as c:
        r = await c.get(f"/messages/{user_a}/{user_b}")
        _check(r)
        messages = r.json()

    if not messages:
        click.echo("No messages yet.")
        return
    for m in messages:
        who = click.style(m["senderName"], bold=True)
        click.echo(f"  [{m['sentAt']}] {who}: {m['body']}")


@main.command()
@click.argument("user_id", type=int)
def inbox(user_id: int):
    """Latest message with each contact of USER_ID."""
    _run(_inbox_impl(user_id))


async def _inbox_impl(user_id: int):
    async with _client() as c:
        r = await c.get(f"/conversations/{user_id}")
        _check(r)
        rows = r.json()

    if not rows:
        click.echo("No conversations yet.")
        return
    _print_table(
        rows,
        [
            ("CONTACT", "counterpartyName", 24),
            ("LAST MESSAGE", "lastMessage", 40),
            ("SENT", "sentAt", 26),
        ],
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
