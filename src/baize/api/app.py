"""
HTTP serving layer for the Baize gateway.

Endpoints:
- POST /api/v1/chat       unary or streaming chat through a configured platform
- GET  /api/v1/platforms  configured platforms (without credentials)
- GET  /api/v1/health     liveness
- GET  /api/v1/metrics    in-process request metrics
"""

import json
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

from fastapi import FastAPI, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from pydantic import BaseModel, ValidationError

from ..config import ConfigError, PlatformNotFoundError, load_config
from ..core.errors import (
    InvalidRequestError,
    ProviderError,
    TransportError,
    UnsupportedPlatformType,
    UpstreamStatusError,
)
from ..core.options import ProviderOptions
from ..core.registry import ProviderRegistry
from ..core.transport import close_shared_client
from ..models.request import ChatCall, Message
from .dispatch import FragmentStream, call_with_retries, dispatch
from .metrics import RequestMetrics

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_REQUEST_TIMEOUT = 30.0


class ChatRequestBody(BaseModel):
    """Body of POST /api/v1/chat."""
    platform: str = ""
    model: str = ""
    message: Optional[str] = None
    messages: Optional[List[Message]] = None
    stream: bool = False


class ChatResponseBody(BaseModel):
    reply: str = ""
    error: str = ""


@dataclass
class GatewayState:
    """Objects shared by all handlers of one app."""
    config_path: Path
    registry: ProviderRegistry
    options: ProviderOptions
    metrics: RequestMetrics
    request_timeout: Optional[float]


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ChatResponseBody(reply="", error=message).model_dump(),
    )


def status_for(error: Exception) -> int:
    """HTTP status used to report a gateway error."""
    if isinstance(error, PlatformNotFoundError):
        return 400
    if isinstance(error, ConfigError):
        return 500
    if isinstance(error, (InvalidRequestError, UnsupportedPlatformType)):
        return 400
    if isinstance(error, UpstreamStatusError):
        return 502
    if isinstance(error, TransportError):
        return 504
    return 502


def _sse(payload: dict) -> str:
    return f"data: {json.dumps(payload, ensure_ascii=False)}\n\n"


def create_app(
    config_path: Union[str, Path],
    registry: Optional[ProviderRegistry] = None,
    options: Optional[ProviderOptions] = None,
    request_timeout: Optional[float] = DEFAULT_REQUEST_TIMEOUT,
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config_path: Platforms file, re-read on every request
        registry: Provider registry; built-in providers when omitted
        options: Options applied to every provider created
        request_timeout: Deadline in seconds for each upstream call

    Returns:
        Configured application
    """
    state = GatewayState(
        config_path=Path(config_path),
        registry=registry or ProviderRegistry.with_defaults(),
        options=options or ProviderOptions(),
        metrics=RequestMetrics(),
        request_timeout=request_timeout,
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Gateway starting with config {state.config_path}")
        yield
        await close_shared_client()
        logger.info("Gateway stopped")

    app = FastAPI(
        title="Baize Gateway",
        description="Unified chat gateway over OpenAI-compatible and Anthropic APIs",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.gateway = state

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # Instrument with OpenTelemetry
    FastAPIInstrumentor.instrument_app(app)

    @app.middleware("http")
    async def record_metrics(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000
        path = request.url.path
        if path != "/api/v1/metrics":
            state.metrics.record(path, response.status_code, elapsed_ms)
        logger.info(f"Request done - path: {path}, status: {response.status_code}, time: {elapsed_ms:.0f}ms")
        return response

    @app.exception_handler(RequestValidationError)
    async def invalid_body(request: Request, exc: RequestValidationError):
        logger.warning(f"Invalid request body: {exc.errors()}")
        return error_response(400, f"Invalid request: {exc.errors()}")

    @app.exception_handler(ConfigError)
    async def config_failed(request: Request, exc: ConfigError):
        status = status_for(exc)
        if status >= 500:
            logger.error(f"Failed to load config: {exc}")
        else:
            logger.warning(str(exc))
        return error_response(status, str(exc))

    @app.exception_handler(ProviderError)
    async def provider_failed(request: Request, exc: ProviderError):
        logger.error(f"Chat request failed: {exc.message}")
        return error_response(status_for(exc), exc.message)

    @app.post("/api/v1/chat")
    async def chat(body: ChatRequestBody):
        if not body.platform:
            return error_response(400, "Missing platform")
        if not body.model:
            return error_response(400, "Missing model")
        try:
            call = ChatCall(
                model=body.model,
                message=body.message,
                messages=body.messages,
                stream=body.stream,
            )
        except ValidationError as e:
            return error_response(400, f"Invalid chat request: {e.errors()[0]['msg']}")

        logger.info(f"Chat request - platform: {body.platform}, model: {body.model}, stream: {call.stream}")

        with tracer.start_as_current_span("chat_request") as span:
            span.set_attribute("platform", body.platform)
            span.set_attribute("model", body.model)
            span.set_attribute("stream", call.stream)
            span.set_attribute("history_length", len(call.history()))

            config = await run_in_threadpool(load_config, state.config_path, state.registry.types())
            platform = config.get_platform(body.platform)
            if not platform.supports_model(body.model):
                raise InvalidRequestError(
                    f"Model {body.model} is not available on platform {platform.id}", platform.id
                )
            provider = state.registry.create(platform, state.options)
            span.set_attribute("provider_type", provider.provider_type)

            if call.stream:
                fragments = FragmentStream(provider, call, timeout=state.request_timeout)
                await fragments.first()
                parent = trace.set_span_in_context(span)
                return StreamingResponse(_events(fragments, parent), media_type="text/event-stream")

            reply = await call_with_retries(
                lambda: dispatch(provider, call, timeout=state.request_timeout),
                state.options.max_retries,
            )
            span.set_attribute("reply_length", len(reply))

        logger.info(f"Chat request succeeded - platform: {body.platform}, model: {body.model}")
        return ChatResponseBody(reply=reply, error="")

    @app.get("/api/v1/platforms")
    async def platforms():
        config = await run_in_threadpool(load_config, state.config_path, state.registry.types())
        return {
            "platforms": [
                {"id": p.id, "name": p.name, "type": p.type, "models": list(p.models)}
                for p in config.list_platforms()
            ]
        }

    @app.get("/api/v1/health")
    async def health():
        return {
            "status": "ok",
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/api/v1/metrics")
    async def metrics():
        return state.metrics.snapshot()

    return app


async def _events(fragments: FragmentStream, parent=None):
    """SSE frames for a started stream, traced until the last frame is sent."""
    span = tracer.start_span("chat_stream", context=parent)
    delivered = 0
    try:
        async for item in fragments:
            if isinstance(item, BaseException):
                message = item.message if isinstance(item, ProviderError) else str(item)
                span.record_exception(item)
                span.set_status(Status(StatusCode.ERROR, message))
                yield _sse({"error": message})
                return
            delivered += 1
            yield _sse({"reply": item})
        yield "data: [DONE]\n\n"
    finally:
        span.set_attribute("fragments", delivered)
        span.end()
