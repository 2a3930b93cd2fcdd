"""OpenTelemetry setup for the sync service."""

from __future__ import annotations

import logging
import os
from typing import Any

from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry._logs import set_logger_provider
from opentelemetry.exporter.otlp.proto.grpc._log_exporter import OTLPLogExporter
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.logging import LoggingInstrumentor
from opentelemetry.sdk._logs import LoggerProvider
from opentelemetry.sdk._logs.export import BatchLogRecordProcessor
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.trace.sampling import ParentBased, TraceIdRatioBased
from opentelemetry.semconv.resource import ResourceAttributes

logger = logging.getLogger(__name__)

_INIT = False


def _enabled() -> bool:
    # Enable when exporter endpoint or exporter name is provided
    return bool(
        os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT")
        or os.getenv("OTEL_TRACES_EXPORTER")
        or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    )


def _build_resource() -> Resource:
    service_name = os.getenv("OTEL_SERVICE_NAME", "ghostfolio-eic-sync")
    attributes: dict[str, Any] = {
        ResourceAttributes.SERVICE_NAME: service_name,
        ResourceAttributes.SERVICE_NAMESPACE: "ghostfolio-sync",
    }
    return Resource.create(attributes)


def _build_exporter_options() -> dict[str, Any]:
    options: dict[str, Any] = {"insecure": True}
    endpoint = os.getenv("OTEL_EXPORTER_OTLP_TRACES_ENDPOINT") or os.getenv("OTEL_EXPORTER_OTLP_ENDPOINT")
    if endpoint:
        options["endpoint"] = endpoint
    return options


def setup_telemetry(app: FastAPI | None = None) -> bool:
    """Install tracing and log export once; returns whether telemetry is active."""

    global _INIT
    if _INIT:
        return True
    if not _enabled():
        logger.info("Telemetry disabled for sync service (no OTEL exporter configured)")
        return False

    resource = _build_resource()
    sampler = ParentBased(TraceIdRatioBased(1.0))

    tracer_provider = TracerProvider(resource=resource, sampler=sampler)
    tracer_provider.add_span_processor(BatchSpanProcessor(OTLPSpanExporter(**_build_exporter_options())))
    trace.set_tracer_provider(tracer_provider)

    logger_provider = LoggerProvider(resource=resource)
    log_exporter = OTLPLogExporter(
        endpoint=os.getenv("OTEL_EXPORTER_OTLP_LOGS_ENDPOINT", "http://otel-collector:4317"), insecure=True
    )
    logger_provider.add_log_record_processor(BatchLogRecordProcessor(log_exporter))
    set_logger_provider(logger_provider)
    LoggingInstrumentor().instrument(set_logging_format=False)

    if app is not None:
        FastAPIInstrumentor.instrument_app(app, tracer_provider=tracer_provider)
    # Outbound Ghostfolio / justETF / OFX / EIC calls are traced through httpx
    HTTPXClientInstrumentor().instrument(tracer_provider=tracer_provider)

    _INIT = True
    logger.info("Sync service telemetry initialised")
    return True


__all__ = ["setup_telemetry"]
