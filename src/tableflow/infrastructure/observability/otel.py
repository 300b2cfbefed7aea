from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.propagate import set_global_textmap
from opentelemetry.sdk.resources import SERVICE_NAME, Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.trace.propagation.tracecontext import TraceContextTextMapPropagator

logger = logging.getLogger(__name__)

# Probes and scrapes would otherwise dominate the trace volume.
UNTRACED_URLS = "/health/live,/health/ready,/metrics"

_provider: TracerProvider | None = None


def _tracer_provider() -> TracerProvider:
    global _provider
    if _provider is not None:
        return _provider

    service_name = os.getenv("OTEL_SERVICE_NAME", "tableflow-backend")
    provider = TracerProvider(resource=Resource.create({SERVICE_NAME: service_name}))

    endpoint = os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        try:
            exporter = OTLPSpanExporter(endpoint=endpoint, insecure=endpoint.startswith("http://"))
        except Exception:
            logger.exception("otel_exporter_setup_failed")
        else:
            provider.add_span_processor(BatchSpanProcessor(exporter))

    trace.set_tracer_provider(provider)
    set_global_textmap(TraceContextTextMapPropagator())
    _provider = provider
    return provider


def configure_otel(app: FastAPI) -> None:
    FastAPIInstrumentor.instrument_app(
        app,
        tracer_provider=_tracer_provider(),
        excluded_urls=UNTRACED_URLS,
    )


def current_trace_id() -> str | None:
    """Hex trace id of the active span, for event envelopes and log lines."""
    span_context = trace.get_current_span().get_span_context()
    return format(span_context.trace_id, "032x") if span_context.is_valid else None
