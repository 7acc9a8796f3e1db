"""OpenTelemetry tracing configuration.

Tracing is off by default (``OTEL_EXPORTER_TYPE=none``). When enabled, a
TracerProvider with service resource attributes is installed globally, spans
are batched to the configured exporter, and FastAPI requests are
auto-instrumented. Store and identity-provider calls add child spans through
:mod:`scholaris.infra.observability.instrumentation`.

Usage:
    configure_tracing(app)   # lifespan startup
    shutdown_tracing()       # lifespan shutdown
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Any

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SpanExporter,
)
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from fastapi import FastAPI

_VALID_EXPORTERS = frozenset({"otlp", "console", "none"})

_tracer_provider: TracerProvider | None = None


class TracingSettings(BaseSettings):
    """OpenTelemetry tracing configuration from environment variables.

    Environment variables:
    - OTEL_SERVICE_NAME: Service name for traces (default: scholaris-api)
    - OTEL_SERVICE_VERSION: Service version (default: unknown)
    - OTEL_EXPORTER_TYPE: otlp, console or none (default: none)
    - OTEL_EXPORTER_OTLP_ENDPOINT: OTLP collector gRPC endpoint
    - OTEL_EXPORTER_OTLP_HEADERS: Auth headers as key1=val1,key2=val2
    """

    model_config = SettingsConfigDict(
        env_prefix="",
        extra="ignore",
        populate_by_name=True,
    )

    service_name: str = Field(default="scholaris-api", alias="OTEL_SERVICE_NAME")
    service_version: str = Field(default="unknown", alias="OTEL_SERVICE_VERSION")
    exporter_type: str = Field(
        default="none",
        alias="OTEL_EXPORTER_TYPE",
        description="Exporter type: otlp, console, none",
    )
    otlp_endpoint: str = Field(
        default="http://localhost:4317",
        alias="OTEL_EXPORTER_OTLP_ENDPOINT",
    )
    otlp_headers: str = Field(default="", alias="OTEL_EXPORTER_OTLP_HEADERS")

    @field_validator("exporter_type", mode="before")
    @classmethod
    def normalize_exporter_type(cls, v: Any) -> str:
        return v.lower() if isinstance(v, str) else str(v)

    @field_validator("exporter_type")
    @classmethod
    def validate_exporter_type(cls, v: str) -> str:
        if v not in _VALID_EXPORTERS:
            msg = f"exporter_type must be one of {sorted(_VALID_EXPORTERS)}"
            raise ValueError(msg)
        return v

    @property
    def is_enabled(self) -> bool:
        return self.exporter_type != "none"

    @property
    def otlp_headers_dict(self) -> dict[str, str]:
        """Parse OTLP headers from comma-separated key=value pairs.

        Example:
            >>> TracingSettings(otlp_headers="a=1,b=x=y").otlp_headers_dict
            {'a': '1', 'b': 'x=y'}
        """
        result: dict[str, str] = {}
        for pair in self.otlp_headers.split(","):
            if "=" in pair:
                key, value = pair.split("=", 1)
                result[key.strip()] = value.strip()
        return result


@lru_cache(maxsize=1)
def get_tracing_settings() -> TracingSettings:
    """Get cached TracingSettings. Clear with ``cache_clear()`` in tests."""
    return TracingSettings()


def _create_exporter(settings: TracingSettings) -> SpanExporter:
    if settings.exporter_type == "console":
        return ConsoleSpanExporter()
    if settings.exporter_type == "otlp":
        # Optional extra: scholaris[otlp]
        from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (  # type: ignore[import-not-found]
            OTLPSpanExporter,
        )

        return OTLPSpanExporter(  # type: ignore[no-any-return]
            endpoint=settings.otlp_endpoint,
            headers=settings.otlp_headers_dict or None,
        )
    msg = f"Unknown exporter type: {settings.exporter_type}"
    raise ValueError(msg)


def configure_tracing(app: FastAPI, settings: TracingSettings | None = None) -> None:
    """Install the global TracerProvider and instrument the FastAPI app.

    Returns immediately when tracing is disabled. Call after
    :func:`~scholaris.infra.observability.logging.configure_logging`.

    Args:
        app: FastAPI application instance for instrumentation.
        settings: Optional TracingSettings. If None, loads from environment.
    """
    global _tracer_provider

    if settings is None:
        settings = get_tracing_settings()
    if not settings.is_enabled:
        return

    provider = TracerProvider(
        resource=Resource.create(
            {
                "service.name": settings.service_name,
                "service.version": settings.service_version,
            }
        )
    )
    provider.add_span_processor(BatchSpanProcessor(_create_exporter(settings)))
    trace.set_tracer_provider(provider)
    _tracer_provider = provider

    from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor

    FastAPIInstrumentor.instrument_app(app, excluded_urls="healthz")


def shutdown_tracing() -> None:
    """Flush pending spans and shut the provider down. Idempotent."""
    global _tracer_provider

    if _tracer_provider is not None:
        _tracer_provider.shutdown()
        _tracer_provider = None
