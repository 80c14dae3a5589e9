"""CLI tests — click commands against a mocked HTTP backend."""

import json

import httpx
import pytest
from click.testing import CliRunner

from directline.cli import main as cli


@pytest.fixture
def backend(monkeypatch):
    """Route the CLI's HTTP calls to an in-process handler; record requests."""
    calls: list[httpx.Request] = []
    responses: dict[tuple[str, str], httpx.Response] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return responses.get(
            (request.method, request.url.path),
            httpx.Response(404, json={"detail": "Not Found"}),
        )

    def fake_client() -> httpx.AsyncClient:
        return httpx.AsyncClient(
            transport=httpx.MockTransport(handler), base_url="http://test"
        )

    monkeypatch.setattr(cli, "_client", fake_client)
    return calls, responses


def test_users_prints_table(backend):
    calls, responses = backend
    responses[("GET", "/users")] = httpx.Response(
        200,
        json=[
            {"id": 1, "name": "Alice", "handle": "555-0001", "createdAt": None},
            {"id": 2, "name": "Bob", "handle": "555-0002", "createdAt": None},
        ],
    )

    result = CliRunner().invoke(cli.main, ["users"])
    assert result.exit_code == 0, result.output
    assert "Alice" in result.output
    assert "555-0002" in result.output


def test_add_user_posts_body(backend):
    calls, responses = backend
    responses[("POST", "/users")] = httpx.Response(
        200, json={"id": 5, "name": "Alice", "handle": "555-0001", "createdAt": None}
    )

    result = CliRunner().invoke(cli.main, ["add-user", "Alice", "555-0001"])
    assert result.exit_code == 0, result.output
    assert json.loads(calls[0].content) == {"name": "Alice", "handle": "555-0001"}
    assert "User #5 created" in result.output


def test_add_user_duplicate_exits_nonzero(backend):
    _, responses = backend
    responses[("POST", "/users")] = httpx.Response(
        400, json={"detail": "Handle '555-0001' is already registered"}
    )

    result = CliRunner().invoke(cli.main, ["add-user", "Alice", "555-0001"])
    assert result.exit_code == 1
    assert "already registered" in result.output


def test_send_uses_wire_names(backend):
    calls, responses = backend
    responses[("POST", "/messages")] = httpx.Response(
        200,
        json={
            "id": 9,
            "senderId": 1,
            "recipientId": 2,
            "body": "hi",
            "sentAt": "2026-03-01T09:30:00Z",
        },
    )

    result = CliRunner().invoke(cli.main, ["send", "1", "2", "hi"])
    assert result.exit_code == 0, result.output
    assert json.loads(calls[0].content) == {"senderId": 1, "recipientId": 2, "body": "hi"}
    assert "Message #9 sent" in result.output


def test_conversation_and_inbox(backend):
    _, responses = backend
    responses[("GET", "/messages/1/2")] = httpx.Response(
        200,
        json=[
            {
                "id": 9,
                "senderId": 1,
                "recipientId": 2,
                "body": "hi",
                "sentAt": "2026-03-01T09:30:00Z",
                "senderName": "Alice",
                "recipientName": "Bob",
            }
        ],
    )
    responses[("GET", "/conversations/2")] = httpx.Response(
        200,
        json=[
            {
                "counterpartyId": 1,
                "counterpartyName": "Alice",
                "lastMessage": "hi",
                "sentAt": "2026-03-01T09:30:00Z",
            }
        ],
    )

    convo = CliRunner().invoke(cli.main, ["conversation", "1", "2"])
    assert convo.exit_code == 0, convo.output
    assert "Alice" in convo.output and "hi" in convo.output

    inbox = CliRunner().invoke(cli.main, ["inbox", "2"])
    assert inbox.exit_code == 0, inbox.output
    assert "Alice" in inbox.output


def test_inbox_empty(backend):
    _, responses = backend
    responses[("GET", "/conversations/3")] = httpx.Response(200, json=[])

    result = CliRunner().invoke(cli.main, ["inbox", "3"])
    assert result.exit_code == 0
    assert "No conversations yet." in result.output
