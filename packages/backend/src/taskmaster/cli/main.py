"""TaskMaster CLI — a thin terminal client for the TaskMaster API.

Usage:
    taskmaster register alice alice@example.com      # prompts for password
    taskmaster login alice@example.com               # prints a bearer token
    export TASKMASTER_TOKEN=<token>
    taskmaster tasks                                 # list your tasks
    taskmaster add "Buy milk" --due 2025-01-01       # create a task
    taskmaster status <task-id> completed            # change task status
    taskmaster rm <task-id>                          # delete a task
    taskmaster team                                  # list team members
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3000"


def _api_url() -> str:
    return os.environ.get("TASKMASTER_API_URL", DEFAULT_API_URL).rstrip("/")


def _client(token: Optional[str] = None) -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the TaskMaster backend."""
    headers = {"Authorization": f"Bearer {token}"} if token else {}
    return httpx.AsyncClient(base_url=_api_url(), headers=headers, timeout=30.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Falls back to a worker thread when an event loop is already running
    (e.g. CliRunner invoked from async tests).
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _require_token(token: Optional[str]) -> str:
    tok = token or os.environ.get("TASKMASTER_TOKEN")
    if not tok:
        click.secho(
            "Error: --token required (or set TASKMASTER_TOKEN; get one with `taskmaster login`)",
            fg="red",
            err=True,
        )
        sys.exit(1)
    return tok


def _check(r: httpx.Response) -> dict | list:
    """Return the JSON body, or print the API's error and exit non-zero."""
    if r.is_success:
        return r.json()
    try:
        detail = r.json().get("detail", r.text)
    except (ValueError, AttributeError):
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
        line = "  ".join(str(row.get(k) or "-")[:w].ljust(w) for _, k, w in columns)
        click.echo(line)


def _status_color(status: str) -> str:
    return {
        "pending": "yellow",
        "in-progress": "cyan",
        "completed": "green",
    }.get(status, "white")


token_option = click.option(
    "--token", envvar="TASKMASTER_TOKEN", help="Bearer token (or set TASKMASTER_TOKEN)"
)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version="0.1.0", prog_name="taskmaster")
def main():
    """TaskMaster — manage your tasks from the terminal."""


# ---------------------------------------------------------------------------
# Accounts
# ---------------------------------------------------------------------------


@main.command()
@click.argument("username")
@click.argument("email")
@click.password_option()
def register(username: str, email: str, password: str):
    """Create a new account."""
    _run(_register_impl(username, email, password))


async def _register_impl(username: str, email: str, password: str):
    async with _client() as c:
        r = await c.post("/api/auth/register", json={
            "username": username,
            "email": email,
            "password": password,
        })
        data = _check(r)
    click.secho(f"{data['message']} ({data['user']['username']})", fg="green")


@main.command()
@click.argument("email")
@click.option("--password", prompt=True, hide_input=True)
@click.option("--json", "as_json", is_flag=True, help="Print the full response")
def login(email: str, password: str, as_json: bool):
    """Log in and print a bearer token."""
    _run(_login_impl(email, password, as_json))


async def _login_impl(email: str, password: str, as_json: bool):
    async with _client() as c:
        r = await c.post("/api/auth/login", json={"email": email, "password": password})
        data = _check(r)
    if as_json:
        click.echo(json.dumps(data, indent=2, default=str))
    else:
        click.echo(data["token"])


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


@main.command()
@token_option
@click.option("--status", "-s", "status_filter", help="Only show tasks with this status")
def tasks(token: Optional[str], status_filter: Optional[str]):
    """List your tasks, newest first."""
    _run(_tasks_impl(_require_token(token), status_filter))


async def _tasks_impl(token: str, status_filter: Optional[str]):
    async with _client(token) as c:
        rows = _check(await c.get("/api/tasks"))

    if status_filter:
        rows = [t for t in rows if t["status"] == status_filter]
    if not rows:
        click.echo("No tasks found.")
        return

    click.secho(f"Tasks ({len(rows)}):", bold=True)
    click.echo()
    _print_table(rows, [
        ("ID", "_id", 36),
        ("Status", "status", 12),
        ("Priority", "priority", 8),
        ("Due", "dueDate", 10),
        ("Title", "title", 40),
    ])


@main.command()
@click.argument("title")
@click.option("--due", "due_date", required=True, help="Due date, e.g. 2025-01-01")
@click.option("--description", "-d", default="", help="Task description")
@click.option("--priority", "-p", type=click.Choice(["high", "medium", "low"]), default="medium")
@click.option("--assignee", "-a", help="Free-text assignee")
@token_option
def add(title: str, due_date: str, description: str, priority: str,
        assignee: Optional[str], token: Optional[str]):
    """Create a task."""
    _run(_add_impl(_require_token(token), title, due_date, description, priority, assignee))


async def _add_impl(token: str, title: str, due_date: str, description: str,
                    priority: str, assignee: Optional[str]):
    body: dict = {
        "title": title,
        "dueDate": due_date,
        "description": description,
        "priority": priority,
    }
    if assignee:
        body["assignee"] = assignee

    async with _client(token) as c:
        data = _check(await c.post("/api/tasks", json=body))
    task = data["task"]
    click.secho(f"Task created: {task['_id']}", fg="green")


@main.command()
@click.argument("task_id")
@click.argument("new_status", type=click.Choice(["pending", "in-progress", "completed"]))
@token_option
def status(task_id: str, new_status: str, token: Optional[str]):
    """Change a task's status."""
    _run(_status_impl(_require_token(token), task_id, new_status))


async def _status_impl(token: str, task_id: str, new_status: str):
    async with _client(token) as c:
        data = _check(await c.patch(f"/api/tasks/{task_id}", json={"status": new_status}))
    task = data["task"]
    status_str = click.style(task["status"], fg=_status_color(task["status"]))
    click.echo(f"{task['title']}: {status_str}")


@main.command()
@click.argument("task_id")
@token_option
def rm(task_id: str, token: Optional[str]):
    """Delete a task."""
    _run(_rm_impl(_require_token(token), task_id))


async def _rm_impl(token: str, task_id: str):
    async with _client(token) as c:
        data = _check(await c.delete(f"/api/tasks/{task_id}"))
    click.secho(data["message"], fg="green")


# ---------------------------------------------------------------------------
# Team
# ---------------------------------------------------------------------------


@main.command()
@token_option
def team(token: Optional[str]):
    """List team members."""
    _run(_team_impl(_require_token(token)))


async def _team_impl(token: str):
    async with _client(token) as c:
        members = _check(await c.get("/api/team/members"))

    if not members:
        click.echo("No team members.")
        return
    _print_table(members, [
        ("Username", "username", 20),
        ("Email", "email", 32),
        ("Role", "role", 6),
    ])


if __name__ == "__main__":
    main()
