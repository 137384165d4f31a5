"""
Entry point for the Baize gateway server.
"""

import os
import logging
from dataclasses import dataclass
from typing import Optional

from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor

from .api import create_app
from .core.options import ProviderOptions, normalize_log_level
from .core.registry import ProviderRegistry

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Process settings read from the environment."""

    config_path: str = os.getenv("BAIZE_CONFIG", "config/platforms.yaml")
    host: str = os.getenv("HOST", "0.0.0.0")
    port: int = int(os.getenv("PORT", "8080"))
    log_level: str = os.getenv("LOG_LEVEL", "info")
    timeout: float = float(os.getenv("PROVIDER_TIMEOUT", "30"))
    max_retries: int = int(os.getenv("PROVIDER_MAX_RETRIES", "0"))
    otel_endpoint: Optional[str] = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")


def setup_tracing(endpoint: Optional[str], service_name: str = "baize-gateway") -> Optional[TracerProvider]:
    """Export spans over OTLP when an endpoint is configured."""
    if not endpoint:
        logger.info("OTEL_EXPORTER_OTLP_ENDPOINT not set, tracing disabled")
        return None
    resource = Resource.create({"service.name": service_name})
    provider = TracerProvider(resource=resource)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint)))
    trace.set_tracer_provider(provider)
    logger.info(f"Exporting traces to {endpoint}")
    return provider


def build_app(settings: Settings):
    """Compose registry, options and app from settings."""
    options = (
        ProviderOptions.builder()
        .timeout(settings.timeout)
        .max_retries(settings.max_retries)
        .log_level(settings.log_level)
        .build()
    )
    registry = ProviderRegistry.with_defaults()
    return create_app(
        settings.config_path,
        registry=registry,
        options=options,
        request_timeout=settings.timeout,
    )


def main() -> None:
    import uvicorn

    settings = Settings()
    level = ProviderOptions(log_level=normalize_log_level(settings.log_level)).logging_level
    logging.basicConfig(level=level)
    setup_tracing(settings.otel_endpoint)
    logger.info(f"Starting Baize on {settings.host}:{settings.port}")
    uvicorn.run(build_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
