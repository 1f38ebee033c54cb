"""
Telemetry configuration (Metrics & Tracing).

Prometheus metrics are exposed on /metrics when ENABLE_PROMETHEUS is set
and the ENABLE_METRICS environment variable is true. Traces are exported
over OTLP gRPC when ENABLE_OTEL is set.
"""
import logging
from typing import List

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from prometheus_fastapi_instrumentator import Instrumentator

from videovault.config import Settings, get_settings

logger = logging.getLogger(__name__)

UNMETERED_PATHS = ("/metrics", "/health", "/health/ready")


def excluded_handlers() -> List[str]:
    """Probe and scrape endpoints stay out of request metrics and traces."""
    return list(UNMETERED_PATHS)


def _setup_metrics(app: FastAPI) -> None:
    instrumentator = Instrumentator(
        should_group_status_codes=False,
        should_ignore_untemplated=True,
        should_respect_env_var=True,
        should_instrument_requests_inprogress=True,
        excluded_handlers=excluded_handlers(),
        env_var_name="ENABLE_METRICS",
        inprogress_name="videovault_requests_inprogress",
        inprogress_labels=True,
    )
    instrumentator.instrument(app).expose(app, include_in_schema=False)


def _build_tracer_provider(settings: Settings) -> TracerProvider:
    resource = Resource.create(attributes={
        "service.name": settings.APP_NAME,
        "service.version": settings.APP_VERSION,
        "deployment.environment": "development" if settings.DEBUG else "production",
    })
    provider = TracerProvider(resource=resource)
    # Exporter endpoint comes from OTEL_EXPORTER_OTLP_ENDPOINT (localhost:4317 by default)
    provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter()))
    return provider


def _setup_tracing(app: FastAPI, settings: Settings) -> None:
    provider = _build_tracer_provider(settings)
    trace.set_tracer_provider(provider)
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=provider,
        excluded_urls=",".join(excluded_handlers()),
    )


def setup_telemetry(app: FastAPI) -> None:
    """Attach metrics and tracing to the app according to settings."""
    settings = get_settings()

    if settings.ENABLE_PROMETHEUS:
        _setup_metrics(app)

    if settings.ENABLE_OTEL:
        _setup_tracing(app, settings)
        logger.info(f"OpenTelemetry tracing enabled for {settings.APP_NAME}")
