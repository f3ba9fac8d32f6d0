"""Shared fixtures: a fresh registry and mock push endpoints behind httpx.MockTransport."""

import asyncio
import json
from typing import Dict, List

import httpx
import pytest
import pytest_asyncio

from pubsub_emulator.dispatcher import Dispatcher
from pubsub_emulator.registry import Registry


class PushEndpoints:
    """Stands in for subscriber services: records every POST and answers with a per-URL status."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self.statuses: Dict[str, int] = {}
        self.delays: Dict[str, float] = {}
        self.unreachable: set = set()
        self.timeouts: set = set()
        self.crashing: set = set()

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        delay = self.delays.get(url)
        if delay:
            await asyncio.sleep(delay)
        if url in self.unreachable:
            raise httpx.ConnectError("connection refused", request=request)
        if url in self.timeouts:
            raise httpx.ReadTimeout("timed out", request=request)
        if url in self.crashing:
            raise RuntimeError("subscriber blew up")
        self.requests.append(request)
        return httpx.Response(self.statuses.get(url, 200))

    def received(self, url: str) -> List[dict]:
        return [json.loads(r.content) for r in self.requests if str(r.url) == url]


@pytest.fixture
def registry() -> Registry:
    return Registry()


@pytest.fixture
def endpoints() -> PushEndpoints:
    return PushEndpoints()


@pytest_asyncio.fixture
async def push_client(endpoints):
    async with httpx.AsyncClient(transport=httpx.MockTransport(endpoints)) as client:
        yield client


@pytest_asyncio.fixture
async def dispatcher(push_client):
    dispatcher = Dispatcher(client=push_client, timeout_sec=1.0)
    yield dispatcher
    await dispatcher.aclose()


class LocalEndpoint:
    """A real HTTP endpoint on 127.0.0.1; `respond(writer)` writes the response after the request is read."""

    def __init__(self, respond) -> None:
        self._respond = respond
        self._handlers: set = set()
        self._server = None
        self.hits = 0
        self.url = ""

    async def start(self) -> "LocalEndpoint":
        self._server = await asyncio.start_server(self._handle, "127.0.0.1", 0)
        port = self._server.sockets[0].getsockname()[1]
        self.url = f"http://127.0.0.1:{port}/hook"
        return self

    async def _handle(self, reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        task = asyncio.current_task()
        self._handlers.add(task)
        try:
            head = await reader.readuntil(b"\r\n\r\n")
            length = 0
            for line in head.decode("latin-1").split("\r\n"):
                name, _, value = line.partition(":")
                if name.strip().lower() == "content-length":
                    length = int(value.strip())
            await reader.readexactly(length)
            self.hits += 1
            await self._respond(writer)
        except (ConnectionError, asyncio.IncompleteReadError):
            pass
        finally:
            self._handlers.discard(task)
            writer.close()

    async def stop(self) -> None:
        for task in list(self._handlers):
            task.cancel()
        self._server.close()
        await self._server.wait_closed()


@pytest_asyncio.fixture
async def local_endpoints():
    started: List[LocalEndpoint] = []

    async def start(respond) -> LocalEndpoint:
        endpoint = await LocalEndpoint(respond).start()
        started.append(endpoint)
        return endpoint

    yield start
    for endpoint in started:
        await endpoint.stop()
