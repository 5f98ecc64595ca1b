"""CLI tests — click commands against a mocked HTTP backend.

Learn: _client() is patched to return an httpx.AsyncClient backed by
MockTransport, so every command runs end to end without a server. The
handler records each request for assertions.
"""

import json

import httpx
import pytest
from click.testing import CliRunner

from taskmaster.cli import main as cli_module

TASK = {
    "_id": "3f1c5a52-7f1e-4d2b-9a57-1b2c3d4e5f60",
    "ownerId": "9a0b1c2d-3e4f-5a6b-7c8d-9e0f1a2b3c4d",
    "title": "Buy milk",
    "description": "",
    "dueDate": "2025-01-01T00:00:00",
    "priority": "medium",
    "status": "pending",
    "assignee": None,
    "createdAt": "2024-12-01T10:00:00",
    "updatedAt": "2024-12-01T10:00:00",
}


@pytest.fixture()
def api(monkeypatch):
    """Route CLI traffic to a handler; returns the list of seen requests."""
    seen: list[httpx.Request] = []
    responses: dict[tuple[str, str], httpx.Response] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        key = (request.method, request.url.path)
        if key in responses:
            return responses[key]
        return httpx.Response(404, json={"detail": "Not Found"})

    def fake_client(token=None):
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler),
            base_url="http://taskmaster.test",
            headers=headers,
        )

    monkeypatch.setattr(cli_module, "_client", fake_client)
    monkeypatch.delenv("TASKMASTER_TOKEN", raising=False)

    class Api:
        requests = seen

        def respond(self, method, path, status, body):
            responses[(method, path)] = httpx.Response(status, json=body)

    return Api()


def test_login_prints_token(api):
    api.respond("POST", "/api/auth/login", 200, {"message": "Login successful!", "token": "tok123", "user": {}})
    result = CliRunner().invoke(cli_module.main, ["login", "alice@example.com", "--password", "secret1"])
    assert result.exit_code == 0, result.output
    assert result.output.strip() == "tok123"
    sent = json.loads(api.requests[0].content)
    assert sent == {"email": "alice@example.com", "password": "secret1"}


def test_login_failure_exits_non_zero(api):
    api.respond("POST", "/api/auth/login", 401, {"detail": "Invalid credentials."})
    result = CliRunner().invoke(cli_module.main, ["login", "alice@example.com", "--password", "nope"])
    assert result.exit_code == 1
    assert "Invalid credentials." in result.output


def test_register(api):
    api.respond("POST", "/api/auth/register", 201, {
        "message": "User registered successfully!",
        "user": {"username": "alice"},
    })
    result = CliRunner().invoke(
        cli_module.main,
        ["register", "alice", "alice@example.com", "--password", "secret1"],
    )
    assert result.exit_code == 0, result.output
    assert "User registered successfully!" in result.output


def test_tasks_requires_token(api):
    result = CliRunner().invoke(cli_module.main, ["tasks"])
    assert result.exit_code == 1
    assert api.requests == []


def test_tasks_lists_with_bearer(api):
    api.respond("GET", "/api/tasks", 200, [TASK])
    result = CliRunner().invoke(cli_module.main, ["tasks", "--token", "tok123"])
    assert result.exit_code == 0, result.output
    assert "Buy milk" in result.output
    assert api.requests[0].headers["Authorization"] == "Bearer tok123"


def test_tasks_status_filter(api):
    api.respond("GET", "/api/tasks", 200, [TASK])
    result = CliRunner().invoke(
        cli_module.main, ["tasks", "--status", "completed"], env={"TASKMASTER_TOKEN": "tok123"}
    )
    assert result.exit_code == 0, result.output
    assert "No tasks found." in result.output


def test_add_task(api):
    api.respond("POST", "/api/tasks", 201, {"message": "Task created successfully!", "task": TASK})
    result = CliRunner().invoke(
        cli_module.main,
        ["add", "Buy milk", "--due", "2025-01-01", "-p", "high", "-a", "bob", "--token", "tok123"],
    )
    assert result.exit_code == 0, result.output
    assert TASK["_id"] in result.output
    sent = json.loads(api.requests[0].content)
    assert sent["dueDate"] == "2025-01-01"
    assert sent["priority"] == "high"
    assert sent["assignee"] == "bob"


def test_status_change(api):
    done = dict(TASK, status="completed")
    api.respond("PATCH", f"/api/tasks/{TASK['_id']}", 200, {"message": "Task updated successfully!", "task": done})
    result = CliRunner().invoke(
        cli_module.main, ["status", TASK["_id"], "completed", "--token", "tok123"]
    )
    assert result.exit_code == 0, result.output
    assert "completed" in result.output
    assert json.loads(api.requests[0].content) == {"status": "completed"}


def test_rm_missing_task(api):
    result = CliRunner().invoke(cli_module.main, ["rm", TASK["_id"], "--token", "tok123"])
    assert result.exit_code == 1
    assert "404" in result.output


def test_team(api):
    api.respond("GET", "/api/team/members", 200, [
        {"username": "alice", "email": "alice@example.com", "role": "admin"},
    ])
    result = CliRunner().invoke(cli_module.main, ["team", "--token", "tok123"])
    assert result.exit_code == 0, result.output
    assert "alice@example.com" in result.output
