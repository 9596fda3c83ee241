"""Tests for wren.server.sender response emission rules."""

import pytest

from wren.http.response import Response
from wren.server.sender import send_response


async def _send(response: Response, *, head: bool = False) -> list[dict]:
    messages: list[dict] = []

    async def send(message: dict) -> None:
        messages.append(message)

    await send_response(response, send, head=head)
    return messages


class TestSendResponse:
    async def test_start_then_body(self) -> None:
        messages = await _send(Response("hello").with_header("X-Trace", "1"))
        assert [m["type"] for m in messages] == ["http.response.start", "http.response.body"]
        headers = dict(messages[0]["headers"])
        assert headers[b"content-type"] == b"text/plain; charset=utf-8"
        assert headers[b"x-trace"] == b"1"
        assert headers[b"content-length"] == b"5"
        assert messages[1]["body"] == b"hello"

    @pytest.mark.parametrize("status", [204, 304])
    async def test_no_body_statuses(self, status: int) -> None:
        messages = await _send(Response("unexpected-body", status=status))
        assert dict(messages[0]["headers"])[b"content-length"] == b"0"
        assert messages[1]["body"] == b""

    async def test_head_keeps_length_drops_body(self) -> None:
        messages = await _send(Response("hello"), head=True)
        assert dict(messages[0]["headers"])[b"content-length"] == b"5"
        assert messages[1]["body"] == b""
