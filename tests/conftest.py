"""Shared fixtures: an in-process fake of the transactional endpoint."""

from __future__ import annotations

import json
from typing import Any

import httpx
import pytest

from rainbird_neo4j import AsyncNeo4j, Neo4j

BASE_URI = "http://localhost:7474"


class FakeNeo4j:
    """Records requests and answers each with a canned JSON body."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.body: Any = {"results": [], "errors": []}
        self.status_code = 200
        self.raw: bytes | None = None
        self.exception: Exception | None = None

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.exception is not None:
            raise self.exception
        if self.raw is not None:
            return httpx.Response(self.status_code, content=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self) -> dict[str, Any]:
        return json.loads(self.last.content)


@pytest.fixture(scope="session")
def anyio_backend():
    return "asyncio"


@pytest.fixture
def server() -> FakeNeo4j:
    return FakeNeo4j()


@pytest.fixture
def db(server):
    http_client = httpx.Client(transport=httpx.MockTransport(server.handler))
    yield Neo4j(BASE_URI, http_client=http_client)
    http_client.close()


@pytest.fixture
async def async_db(server):
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(server.handler))
    yield AsyncNeo4j(BASE_URI, http_client=http_client)
    await http_client.aclose()
