"""Eduprima CLI — sign in and manage tutor statuses from the terminal.

Usage:
    eduprima login admin@eduprima.id                 # Prompt for password, save session
    eduprima whoami                                  # Who the saved session belongs to
    eduprima set-status <user-id> active             # Set one tutor's status
    eduprima bulk-status active <id> <id> ...        # Same status for several tutors
    eduprima statuses                                # List the status catalog
    eduprima hash-password                           # bcrypt hash for seeding accounts
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from pathlib import Path
from typing import Optional

import click
import httpx

from eduprima import __version__

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:8000"


def _api_url() -> str:
    return os.environ.get("EDUPRIMA_API_URL", DEFAULT_API_URL).rstrip("/")


def _session_path() -> Path:
    override = os.environ.get("EDUPRIMA_SESSION_FILE")
    if override:
        return Path(override)
    return Path.home() / ".config" / "eduprima" / "session.json"


def _load_session() -> dict:
    path = _session_path()
    if not path.exists():
        return {}
    try:
        data = json.loads(path.read_text())
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def _save_session(token: str, user: dict) -> Path:
    path = _session_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps({"token": token, "user": user}, indent=2))
    path.chmod(0o600)
    return path


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the Eduprima API."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous click handler.

    Offloads to a thread when a loop is already running (CliRunner inside
    async tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token() -> str:
    token = _load_session().get("token")
    if not token:
        click.secho("Not signed in. Run `eduprima login` first.", fg="red", err=True)
        sys.exit(1)
    return token


def _check(r: httpx.Response) -> dict:
    """Return the envelope's data, or exit with its message."""
    try:
        body = r.json()
    except ValueError:
        body = {}
    if r.status_code >= 400 or not body.get("success", False):
        message = body.get("message") or f"HTTP {r.status_code}"
        click.secho(f"Error: {message}", fg="red", err=True)
        sys.exit(1)
    return body.get("data") or {}


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
@click.version_option(version=__version__, prog_name="eduprima")
def main():
    """Eduprima — dashboard access and tutor status management."""


# ---------------------------------------------------------------------------
# eduprima login / whoami
# ---------------------------------------------------------------------------


@main.command()
@click.argument("email")
@click.password_option(confirmation_prompt=False)
def login(email: str, password: str):
    """Sign in and save the session locally."""
    _run(_login_impl(email, password))


async def _login_impl(email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/auth/login", json={"email": email, "password": password})
    data = _check(r)
    path = _save_session(data["access_token"], data["user"])
    user = data["user"]
    click.secho(f"Signed in as {user['email']} ({user['role']})", fg="green")
    click.echo(f"Session saved to {path}")


@main.command()
@click.option("--offline", is_flag=True, help="Use the saved record without asking the API")
def whoami(offline: bool):
    """Show who the saved session belongs to."""
    _run(_whoami_impl(offline))


async def _whoami_impl(offline: bool):
    from eduprima.auth.resolver import IdentityResolver, PersistedPrincipal

    saved = _load_session()
    if not offline and saved.get("token"):
        async with _client(saved["token"]) as c:
            r = await c.get("/api/auth/session")
        user = _check(r)["user"]
    else:
        raw = json.dumps(saved["user"]) if "user" in saved else None
        principal = IdentityResolver([PersistedPrincipal(raw)]).resolve().principal
        if principal is None:
            click.secho("Not signed in.", fg="yellow")
            sys.exit(1)
        user = principal.to_payload()

    click.echo(f"{user['email']}  role={user['role']}  id={user['id']}")


# ---------------------------------------------------------------------------
# eduprima set-status / bulk-status
# ---------------------------------------------------------------------------


@main.command("set-status")
@click.argument("user_id")
@click.argument("status")
def set_status(user_id: str, status: str):
    """Set a tutor's status (USER_ID is the tutor's user UUID)."""
    _run(_set_status_impl(user_id, status))


async def _set_status_impl(user_id: str, status: str):
    token = _require_token()
    async with _client(token) as c:
        r = await c.put("/api/tutors/status", json={"user_id": user_id, "status_tutor": status})
    data = _check(r)
    verb = "Created" if data.get("created") else "Updated"
    click.secho(
        f"{verb} status {data['status']} for {user_id} at {data['last_status_change']}",
        fg="green",
    )


@main.command("bulk-status")
@click.argument("status")
@click.argument("user_ids", nargs=-1, required=True)
def bulk_status(status: str, user_ids: tuple[str, ...]):
    """Set the same STATUS on several tutors."""
    _run(_bulk_status_impl(status, list(user_ids)))


async def _bulk_status_impl(status: str, user_ids: list[str]):
    token = _require_token()
    async with _client(token) as c:
        r = await c.put(
            "/api/tutors/status/bulk",
            json={"user_ids": user_ids, "status_tutor": status},
        )
    data = _check(r)
    changed = data.get("updated_at_map", {})
    click.secho(f"Set {data['status_tutor']} on {len(changed)} tutor(s)", fg="green")
    for missing in data.get("missing_user_ids", []):
        click.secho(f"  not found: {missing}", fg="yellow")


# ---------------------------------------------------------------------------
# eduprima statuses
# ---------------------------------------------------------------------------


@main.command()
def statuses():
    """List tutor status options."""
    _run(_statuses_impl())


async def _statuses_impl():
    async with _client() as c:
        r = await c.get("/api/tutor-status-types")
    options = _check(r)
    _print_table(options, [("VALUE", "value", 22), ("LABEL", "label", 40)])


# ---------------------------------------------------------------------------
# eduprima hash-password
# ---------------------------------------------------------------------------


@main.command("hash-password")
@click.password_option()
def hash_password_cmd(password: str):
    """Print a bcrypt hash for users_universal.password_hash."""
    from eduprima.auth.password import hash_password

    click.echo(hash_password(password))


if __name__ == "__main__":
    main()
