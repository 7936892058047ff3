"""Shared fixtures: a scripted httpx transport and a client wired to it.

``ScriptedTransport`` replays a queue of canned replies, one per request, and
records every request it sees.  A reply may be:

- a ``dict`` / ``list``   -> 200 JSON response
- ``(status, body)``      -> response with that status; body is bytes, str or JSON
- an ``httpx.Response``   -> returned as is
- an ``Exception``        -> raised from the transport
- a callable              -> called with the request (may be async)
"""
from __future__ import annotations

import json
import os
from collections import deque
from typing import Any, Deque, List, Optional

import httpx
import pytest
import pytest_asyncio

# Keep a developer's real gateway settings out of the test run.
for _var in ("PZ_ADDR", "PZ_AUTH", "DOMAIN"):
    os.environ.pop(_var, None)

from piazza_client.client import PiazzaClient  # noqa: E402

BASE_URL = "https://pz-gateway.test"
AUTH_KEY = "Basic dGVzdDp0ZXN0"


class ScriptedTransport:
    def __init__(self) -> None:
        self.replies: Deque[Any] = deque()
        self.requests: List[httpx.Request] = []

    def queue(self, *replies: Any) -> "ScriptedTransport":
        self.replies.extend(replies)
        return self

    @property
    def calls(self) -> int:
        return len(self.requests)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def __call__(self, request: httpx.Request) -> Any:
        self.requests.append(request)
        if not self.replies:
            raise AssertionError(f"Unexpected request: {request.method} {request.url}")
        reply = self.replies.popleft()

        if isinstance(reply, Exception):
            raise reply
        if callable(reply) and not isinstance(reply, httpx.Response):
            return reply(request)
        if isinstance(reply, httpx.Response):
            return reply
        if isinstance(reply, tuple):
            status, body = reply
            return httpx.Response(status, content=_encode(body))
        return httpx.Response(200, json=reply)


def _encode(body: Any) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, str):
        return body.encode("utf-8")
    return json.dumps(body).encode("utf-8")


def job_status(
    status: str,
    result: Any = None,
    message: Optional[str] = None,
    job_id: str = "job-1",
) -> dict:
    """Body of a ``GET /job/{jobId}`` response."""
    data: dict = {"jobId": job_id, "status": status}
    if result is not None:
        data["result"] = result
    if message is not None:
        data["message"] = message
    return {"type": "status", "data": data}


def job_created(job_id: str = "job-1") -> dict:
    """Body of the immediate response to a job-creating call."""
    return {"type": "job", "data": {"jobId": job_id}}


# ===========================================================================
# Fixtures
# ===========================================================================


@pytest.fixture
def transport() -> ScriptedTransport:
    return ScriptedTransport()


@pytest_asyncio.fixture
async def pz(transport: ScriptedTransport):
    client = PiazzaClient(
        base_url=BASE_URL,
        auth_key=AUTH_KEY,
        transport=httpx.MockTransport(transport),
    )
    yield client
    await client.close()
