"""Fan-out of published messages to push endpoints (fire-and-forget, best-effort)."""

import asyncio
from typing import Iterable, Optional, Set

import httpx

from pubsub_emulator.config import DEFAULT_DELIVERY_TIMEOUT_SEC
from pubsub_emulator.errors import DeliveryFailed
from pubsub_emulator.message import Message
from pubsub_emulator.observability import Metrics, get_logger

JSON_HEADERS = {"Content-Type": "application/json"}

# No cap on concurrent connections: one slow endpoint must not hold the pool for the others.
DELIVERY_LIMITS = httpx.Limits(max_connections=None, max_keepalive_connections=20)

DELIVERIES_LAUNCHED = "deliveries_launched"
DELIVERIES_SUCCEEDED = "deliveries_succeeded"
DELIVERIES_FAILED = "deliveries_failed"

logger = get_logger("pubsub_emulator.dispatcher")


class Dispatcher:
    """
    Launches one asyncio task per endpoint for each message and returns without awaiting them.

    Outcomes are logged and counted only: no retries, nothing reported back to the publisher.
    Only an exact 200 response counts as delivered.
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout_sec: float = DEFAULT_DELIVERY_TIMEOUT_SEC,
        metrics: Optional[Metrics] = None,
    ) -> None:
        self._timeout_sec = timeout_sec
        self._timeout = httpx.Timeout(timeout_sec)
        self._owns_client = client is None
        self._client = (
            client
            if client is not None
            else httpx.AsyncClient(timeout=self._timeout, limits=DELIVERY_LIMITS)
        )
        self._metrics = metrics or Metrics()
        self._pending: Set[asyncio.Task] = set()

    @property
    def metrics(self) -> Metrics:
        return self._metrics

    @property
    def pending(self) -> int:
        """Number of delivery attempts still in flight."""
        return len(self._pending)

    def dispatch(self, endpoints: Iterable[str], message: Message) -> int:
        """Start one delivery per endpoint; returns how many were launched. Needs a running loop."""
        loop = asyncio.get_running_loop()
        body = message.serialize()
        launched = 0
        for endpoint in list(endpoints):
            task = loop.create_task(self._deliver(endpoint, body, message.message_id))
            self._pending.add(task)
            task.add_done_callback(self._on_done)
            launched += 1
        self._metrics.increment(DELIVERIES_LAUNCHED, launched)
        return launched

    async def _deliver(self, endpoint: str, body: bytes, message_id: Optional[str]) -> None:
        try:
            await self._post(endpoint, body)
        except DeliveryFailed as exc:
            self._metrics.increment(DELIVERIES_FAILED)
            logger.warning(
                "delivery_failed endpoint=%s message_id=%s error=%s",
                exc.endpoint,
                message_id,
                exc.message,
                extra={"endpoint": exc.endpoint, "message_id": message_id, "error": exc.message},
            )
            return
        self._metrics.increment(DELIVERIES_SUCCEEDED)
        logger.info(
            "delivered endpoint=%s message_id=%s bytes=%d",
            endpoint,
            message_id,
            len(body),
            extra={"endpoint": endpoint, "message_id": message_id, "bytes": len(body)},
        )

    async def _post(self, endpoint: str, body: bytes) -> None:
        # httpx.Timeout bounds each connect/read/write step; wait_for bounds the whole attempt.
        try:
            response = await asyncio.wait_for(
                self._client.post(endpoint, content=body, headers=JSON_HEADERS, timeout=self._timeout),
                self._timeout_sec,
            )
        except asyncio.TimeoutError as exc:
            raise DeliveryFailed(
                endpoint, f"request to {endpoint} did not finish within {self._timeout_sec}s"
            ) from exc
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise DeliveryFailed(
                endpoint, f"could not complete request to {endpoint}: {exc!r}"
            ) from exc
        if response.status_code != 200:
            raise DeliveryFailed(
                endpoint, f"service on {endpoint} returned status {response.status_code}"
            )

    def _on_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self._metrics.increment(DELIVERIES_FAILED)
            logger.error("delivery_crashed error=%r", exc, exc_info=exc)

    async def drain(self) -> None:
        """Wait for every in-flight delivery (including ones launched while waiting)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def aclose(self) -> None:
        """Drain, then close the HTTP client if this dispatcher created it."""
        await self.drain()
        if self._owns_client:
            await self._client.aclose()
        logger.info("dispatcher_closed counters=%s", self._metrics.snapshot())
