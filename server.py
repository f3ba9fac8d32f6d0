"""HTTP server: topics, push subscriptions, publish fan-out, liveness."""

from dotenv import load_dotenv
load_dotenv()

import os
import time
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import APIRouter, Depends, FastAPI, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware

from pubsub_emulator.config import Settings
from pubsub_emulator.dispatcher import Dispatcher
from pubsub_emulator.errors import PubSubError
from pubsub_emulator.observability import configure_logging, get_logger
from pubsub_emulator.protocol import (
    API_PREFIX,
    HEALTH_TEXT,
    PublishRequest,
    SubscriptionBody,
    decode_body,
)
from pubsub_emulator.registry import Registry

logger = get_logger("pubsub_emulator.server")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log method, path, status and duration of every request."""
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        logger.info(
            "request_completed method=%s path=%s status=%s",
            request.method,
            request.url.path,
            response.status_code,
            extra={
                "method": request.method,
                "path": request.url.path,
                "status_code": response.status_code,
                "duration_ms": round((time.perf_counter() - start) * 1000, 2),
            },
        )
        return response


def get_registry(request: Request) -> Registry:
    return request.app.state.registry


def get_dispatcher(request: Request) -> Dispatcher:
    return request.app.state.dispatcher


router = APIRouter(prefix=API_PREFIX)


# ---- Topics ----

@router.put("/topics/{topicName}")
def create_topic(topicName: str, registry: Registry = Depends(get_registry)) -> Response:
    """PUT /topics/{topicName} → 200, or 400 if it already exists."""
    registry.create_topic(topicName)
    return Response(status_code=200)


@router.post("/topics/{topic}:publish")
async def publish(
    topic: str,
    request: Request,
    registry: Registry = Depends(get_registry),
    dispatcher: Dispatcher = Depends(get_dispatcher),
) -> Response:
    """Fan each message out to the topic's current endpoints; 204 once deliveries are launched."""
    body = decode_body(PublishRequest, await request.body())
    endpoints = registry.get_topic(topic).list_endpoints()
    launched = 0
    for item in body.messages:
        launched += dispatcher.dispatch(endpoints, item.to_message())
    logger.info(
        "published topic=%s messages=%d deliveries=%d",
        topic,
        len(body.messages),
        launched,
        extra={"topic": topic, "messages": len(body.messages), "deliveries": launched},
    )
    return Response(status_code=204)


# ---- Subscriptions ----

@router.put("/subscriptions/{subId}")
async def create_subscription(
    subId: str,
    request: Request,
    registry: Registry = Depends(get_registry),
) -> Response:
    """PUT /subscriptions/{subId} { topic, pushConfig: { pushEndpoint } } → 200 or 400."""
    body = decode_body(SubscriptionBody, await request.body())
    registry.create_subscription(body.topic_name, subId, body.push_endpoint)
    return Response(status_code=200)


@router.delete("/subscriptions/{subId}")
def delete_subscription(subId: str, registry: Registry = Depends(get_registry)) -> Response:
    """DELETE /subscriptions/{subId} → 200, or 400 if unknown."""
    registry.remove_subscription(subId)
    return Response(status_code=200)


@router.get("/subscriptions")
def health() -> PlainTextResponse:
    """Liveness probe."""
    return PlainTextResponse(HEALTH_TEXT, status_code=200)


def create_app(
    settings: Optional[Settings] = None,
    registry: Optional[Registry] = None,
    dispatcher: Optional[Dispatcher] = None,
) -> FastAPI:
    """Build the app around one registry and one dispatcher (created if not given)."""
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        topics = app.state.registry.topic_count()
        logger.info("started topics=%d", topics, extra={"topics": topics})
        yield
        await app.state.dispatcher.aclose()

    app = FastAPI(title="Pub/Sub Push Emulator", lifespan=lifespan)
    app.state.settings = settings
    app.state.registry = registry if registry is not None else Registry()
    app.state.dispatcher = (
        dispatcher if dispatcher is not None else Dispatcher(timeout_sec=settings.delivery_timeout_sec)
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.include_router(router)

    @app.exception_handler(PubSubError)
    async def pubsub_error_handler(request: Request, exc: PubSubError) -> PlainTextResponse:
        logger.warning(
            "request_error method=%s path=%s error=%s",
            request.method,
            request.url.path,
            exc.message,
            extra={"method": request.method, "path": request.url.path, "error": exc.message},
        )
        return PlainTextResponse(exc.message, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> PlainTextResponse:
        logger.exception(
            "unhandled_error method=%s path=%s",
            request.method,
            request.url.path,
            extra={"method": request.method, "path": request.url.path},
        )
        return PlainTextResponse("internal server error", status_code=500)

    return app


app = create_app()


def main() -> None:
    settings = app.state.settings
    os.environ["PUBSUB_EMULATOR_HOST"] = settings.emulator_host
    uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
